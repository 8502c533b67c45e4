"""Entry point for adstory: headless generation or the web backend."""
from __future__ import annotations

import argparse
import asyncio
import logging
import mimetypes
import sys
from pathlib import Path

if sys.platform == 'win32':
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from .config import ASPECT_RATIOS, Config
from .models import AssetKind, ContentStyle, ProjectSettings, ReferenceImage, VoiceCharacter
from .orchestrator import Notice


def _setup_logging() -> None:
    log_dir = Path.home() / ".adstory"
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_dir / "adstory.log"),
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _reference(path: str) -> ReferenceImage:
    p = Path(path)
    mime, _ = mimetypes.guess_type(p.name)
    return ReferenceImage(data=p.read_bytes(), mime_type=mime or "image/jpeg")


def _print_notice(notice: Notice) -> None:
    print(f"⚠  Scene {notice.scene + 1} {notice.kind.value}: {notice.message}")
    if notice.requires_reauth:
        print("   The API key was rejected or the project was not found; save a new key and retry.")


async def run_headless(args: argparse.Namespace) -> int:
    """Draft a plan, render every scene, and save the results."""
    from .studio import Studio

    config = Config.load()
    if args.output:
        config.output_dir = Path(args.output)

    last_progress: dict[int, str] = {}

    def progress(index: int, message: str | None) -> None:
        if message and last_progress.get(index) != message:
            last_progress[index] = message
            print(f"  🎬 Scene {index + 1}: {message}")

    studio = Studio(config, use_placeholders=args.test, notify=_print_notice, progress_cb=progress)
    settings = ProjectSettings(
        product_images=[_reference(p) for p in args.product],
        model_image=_reference(args.model) if args.model else None,
        style=ContentStyle(args.style),
        preserve_face=args.preserve_face,
        voice=args.voice,
        aspect_ratio=args.aspect,
        language=args.language,
    )

    print("📝 Drafting storyboard...")
    plan = await studio.create_project(settings)
    print(f"  {plan.content_title}")
    print(f"  Hook: {plan.killer_hook}")
    for row in plan.scenes:
        print(f"  Scene {row.no}: {row.visual_scene[:70]}")

    print(f"🎨 Generating {len(plan.scenes)} images...")
    await studio.orchestrator.join()

    orchestrator = studio.orchestrator
    if args.narrate:
        print("🎙️ Narrating scenes...")
        for scene in orchestrator.scenes:
            orchestrator.trigger(AssetKind.AUDIO, scene.index)
    if args.animate:
        print("🎬 Animating scenes (this can take a few minutes)...")
        for scene in orchestrator.scenes:
            if studio.store.get(scene.index, AssetKind.IMAGE).is_ready:
                orchestrator.trigger(AssetKind.VIDEO, scene.index)
    await orchestrator.join()

    written = studio.save_outputs()
    for path in written:
        print(f"  ✓ {path}")
    failed = len(plan.scenes) - sum(
        1 for s in orchestrator.scenes if studio.store.get(s.index, AssetKind.IMAGE).is_ready
    )
    print(f"\n🎉 Done! {len(written)} files saved to {config.output_dir}")
    return 1 if failed == len(plan.scenes) else 0


def serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run(
        "webui.backend.app:app",
        host=args.host,
        port=args.port,
        reload=args.dev,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="adstory", description="AI product ad storyboard generator")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Draft a plan and render its assets headlessly")
    gen.add_argument("--product", action="append", required=True, help="Product photo (repeatable)")
    gen.add_argument("--model", help="Photo of the model to feature")
    gen.add_argument("--style", default=ContentStyle.CINEMATIC.value,
                     choices=[s.value for s in ContentStyle])
    gen.add_argument("--language", default="Indonesia", help="Output language label")
    gen.add_argument("--voice", default=VoiceCharacter.ZEPHYR.value,
                     choices=[v.value for v in VoiceCharacter])
    gen.add_argument("--aspect", default="1:1", choices=ASPECT_RATIOS)
    gen.add_argument("--preserve-face", action="store_true")
    gen.add_argument("--narrate", action="store_true", help="Also generate voice-overs")
    gen.add_argument("--animate", action="store_true", help="Also animate every scene")
    gen.add_argument("--output", help="Output directory (default from config)")
    gen.add_argument("--test", action="store_true", help="Placeholder assets, no API calls")

    srv = sub.add_parser("serve", help="Run the web backend")
    srv.add_argument("--host", default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--dev", action="store_true", help="Auto-reload on code changes")
    return parser


def main(argv: list[str] | None = None) -> None:
    """Launch adstory. `generate` runs headless and `serve` starts the web API."""
    _setup_logging()
    args = _build_parser().parse_args(argv)

    if args.command == "serve":
        serve(args)
        return

    from .errors import AdStoryError

    try:
        code = asyncio.run(run_headless(args))
    except (AdStoryError, ValueError, OSError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
