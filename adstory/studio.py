"""Wires config, provider, asset store, job runner and orchestrator together."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from schemas import AdPlanResponse

from .audio import AudioPlaybackAdapter, PlaybackSink
from .config import VOICE_PREVIEW_TEXT, Config
from .jobs import JobRunner, ProgressCallback, Sleep
from .models import AssetKind, ProjectSettings
from .orchestrator import Notifier, PlanOrchestrator
from .planner import generate_ad_plan
from .provider import GenerationProvider
from .store import AssetStore

log = logging.getLogger(__name__)


def make_provider(config: Config, use_placeholders: bool = False) -> GenerationProvider:
    """Gemini normally; the offline placeholder provider in test mode."""
    if use_placeholders:
        from .placeholder import PlaceholderProvider
        return PlaceholderProvider()
    from .utils.gemini_client import GeminiProvider
    return GeminiProvider(key_source=config.resolve_api_key)


class Studio:
    """One user's ad project: the plan plus every generated asset."""

    def __init__(
        self,
        config: Config | None = None,
        provider: GenerationProvider | None = None,
        *,
        use_placeholders: bool = False,
        notify: Notifier | None = None,
        progress_cb: ProgressCallback | None = None,
        playback_sink: PlaybackSink | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or Config.load()
        self.provider = provider or make_provider(self.config, use_placeholders)
        self.store = AssetStore()
        self.runner = JobRunner(
            self.store,
            self.provider,
            self.config.output_dir,
            poll_interval=self.config.video_poll_interval,
            max_polls=self.config.video_max_polls,
            progress_cb=progress_cb,
            sleep=sleep,
        )
        self.orchestrator = PlanOrchestrator(self.store, self.runner, notify)
        self.audio = AudioPlaybackAdapter(playback_sink)
        self.plan: AdPlanResponse | None = None

    async def create_project(self, settings: ProjectSettings) -> AdPlanResponse:
        """Draft a plan from the settings, load it and start the image burst."""
        plan = await generate_ad_plan(
            self.provider,
            settings.product_images,
            model_image=settings.model_image,
            style=settings.style,
            language=settings.language,
        )
        self.plan = plan
        self.orchestrator.load_plan(plan.to_plan(), settings)
        self.orchestrator.start()
        return plan

    def new_project(self) -> None:
        self.orchestrator.new_project()
        self.plan = None

    async def preview_voice(self, voice: str) -> bytes:
        """Speak a sample line in the given voice; returns the PCM."""
        pcm = await self.provider.generate_speech(VOICE_PREVIEW_TEXT, voice)
        self.audio.play(pcm)
        return pcm

    def export_file(self, index: int, kind: AssetKind) -> tuple[str, bytes | Path]:
        """Return (download filename, bytes or file path) for a ready asset.

        Raises:
            LookupError: If the asset is not ready.
        """
        asset = self.store.get(index, kind)
        if not asset.is_ready or asset.payload is None:
            raise LookupError(f"No ready {kind.value} for scene {index}")
        if kind is AssetKind.IMAGE:
            return f"adstory_image_{index + 1}.png", asset.payload
        if kind is AssetKind.AUDIO:
            return f"adstory_vo_{index + 1}.wav", self.audio.export(asset.payload)
        return f"adstory_video_{index + 1}.mp4", asset.payload

    def save_outputs(self, output_dir: Path | None = None) -> list[Path]:
        """Write every ready asset to disk; returns the written paths."""
        out = Path(output_dir or self.config.output_dir)
        out.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        for index, cells in self.store.snapshot().items():
            for kind in cells:
                try:
                    name, data = self.export_file(index, kind)
                except LookupError:
                    continue
                target = out / name
                if isinstance(data, Path):
                    if data.resolve() != target.resolve():
                        target.write_bytes(data.read_bytes())
                else:
                    target.write_bytes(data)
                written.append(target)
        log.info("Saved %d assets to %s", len(written), out)
        return written
