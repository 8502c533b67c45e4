"""Settings and API key management."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ProviderUnavailable

CONFIG_DIR = Path.home() / ".adstory"
CONFIG_FILE = CONFIG_DIR / "config.json"

# Deployment-wide default key; a key saved on this device wins over these.
ENV_API_KEYS = ("ADSTORY_GEMINI_API_KEY", "GEMINI_API_KEY")

# Gemini models
PLAN_MODEL = "gemini-3-flash-preview"
IMAGE_MODEL = "gemini-2.5-flash-image"
VIDEO_MODEL = "veo-3.1-fast-generate-preview"
TTS_MODEL = "gemini-2.5-flash-preview-tts"

VIDEO_RESOLUTION = "720p"

# Video job polling
VIDEO_POLL_INTERVAL = 10.0  # seconds between status checks
VIDEO_MAX_POLLS = 60        # ~10 minutes at the default interval

# Cosmetic status line shown while a video renders
PROGRESS_INTERVAL = 4.0  # seconds
VIDEO_LOADING_MESSAGES = [
    "Preparing the digital stage...",
    "AI director is planning the motion...",
    "Rendering cinematic lighting...",
    "Almost there, finalizing pixels...",
    "Directing the best take for you...",
]

# TTS output: raw little-endian PCM16, mono
SAMPLE_RATE = 24000

ASPECT_RATIOS = ["1:1", "16:9", "9:16", "4:3", "3:4"]
DEFAULT_IMAGE_ASPECT = "1:1"
DEFAULT_VIDEO_ASPECT = "16:9"
VIDEO_ASPECT_RATIOS = ["16:9", "9:16"]

VOICE_PREVIEW_TEXT = "Hi! This is how I sound when I narrate your product ad."


@dataclass
class Config:
    stored_api_key: str = ""   # saved on this device via settings
    default_api_key: str = ""  # deployment default from the environment
    output_dir: Path = field(default_factory=lambda: Path("output"))
    aspect_ratio: str = DEFAULT_IMAGE_ASPECT
    voice: str = "Zephyr"
    language: str = "Indonesia"
    video_poll_interval: float = VIDEO_POLL_INTERVAL
    video_max_polls: int = VIDEO_MAX_POLLS

    @classmethod
    def load(cls) -> "Config":
        """Load config from the config file, then env vars for the default key."""
        cfg = cls()

        for name in ENV_API_KEYS:
            if value := os.environ.get(name, "").strip():
                cfg.default_api_key = value
                break

        if CONFIG_FILE.exists():
            try:
                data = json.loads(CONFIG_FILE.read_text(encoding="utf-8-sig"))
                if not isinstance(data, dict):
                    data = {}
                cfg.stored_api_key = str(data.get("gemini_api_key") or "").strip()
                if out := data.get("output_dir"):
                    cfg.output_dir = Path(out)
                if ratio := data.get("aspect_ratio"):
                    cfg.aspect_ratio = ratio
                if voice := data.get("voice"):
                    cfg.voice = voice
                if language := data.get("language"):
                    cfg.language = language
                if data.get("video_poll_interval") is not None:
                    cfg.video_poll_interval = float(data["video_poll_interval"])
                if data.get("video_max_polls") is not None:
                    cfg.video_max_polls = int(data["video_max_polls"])
            except (json.JSONDecodeError, OSError, TypeError, ValueError):
                pass

        return cfg

    def save(self) -> None:
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        data = {
            "output_dir": str(self.output_dir),
            "aspect_ratio": self.aspect_ratio,
            "voice": self.voice,
            "language": self.language,
            "video_poll_interval": self.video_poll_interval,
            "video_max_polls": self.video_max_polls,
        }
        if self.stored_api_key:
            data["gemini_api_key"] = self.stored_api_key
        CONFIG_FILE.write_text(json.dumps(data, indent=2))

    def resolve_api_key(self) -> str:
        """Return the key to call Gemini with.

        Raises:
            ProviderUnavailable: If neither a stored nor a default key is set.
        """
        key = (self.stored_api_key or self.default_api_key).strip()
        if not key:
            raise ProviderUnavailable(
                "Gemini API key is not set. Save one in settings or set GEMINI_API_KEY."
            )
        return key
