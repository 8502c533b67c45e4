"""Config read/write routes."""
from __future__ import annotations

from pathlib import Path

from litestar import delete, get, post

from adstory.config import Config
from webui.backend.models import ConfigPayload
from webui.backend.session import StudioSession


@get("/api/config")
async def get_config() -> ConfigPayload:
    cfg = Config.load()
    return ConfigPayload(
        # Mask the saved key, show only the ends
        gemini_api_key=_mask(cfg.stored_api_key),
        has_default_key=bool(cfg.default_api_key),
        output_dir=str(cfg.output_dir),
        aspect_ratio=cfg.aspect_ratio,
        voice=cfg.voice,
        language=cfg.language,
    )


@post("/api/config")
async def save_config(data: ConfigPayload, studio_session: StudioSession) -> dict:
    cfg = Config.load()
    # Only update the key if the user sent a non-masked value
    if data.gemini_api_key and "…" not in data.gemini_api_key:
        cfg.stored_api_key = data.gemini_api_key.strip()
    cfg.output_dir = Path(data.output_dir)
    cfg.aspect_ratio = data.aspect_ratio
    cfg.voice = data.voice
    cfg.language = data.language
    cfg.save()
    studio_session.apply_config(cfg)
    return {"ok": True}


@delete("/api/config/key", status_code=200)
async def clear_key(studio_session: StudioSession) -> dict:
    """Forget the saved key; the deployment default (if any) applies again."""
    cfg = Config.load()
    cfg.stored_api_key = ""
    cfg.save()
    studio_session.apply_config(cfg)
    return {"ok": True, "has_default_key": bool(cfg.default_api_key)}


def _mask(value: str) -> str:
    if not value:
        return ""
    return value[:4] + "…" + value[-4:] if len(value) > 8 else "…"
