"""The generation backend boundary.

Anything that can draft a plan and render images, speech and video can back
the job runner. ``utils.gemini_client.GeminiProvider`` talks to Google's API;
``placeholder.PlaceholderProvider`` renders offline stand-ins for test mode.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from .models import ContentStyle, ReferenceImage


@dataclass
class VideoJobStatus:
    """Result of one poll of a long-running video job."""
    done: bool
    media_uri: str | None = None
    error: str | None = None


class GenerationProvider(Protocol):
    async def generate_plan(self, prompt: str, images: list[ReferenceImage]) -> str:
        """Return the storyboard as JSON text."""
        ...

    async def generate_image(
        self,
        prompt: str,
        reference_images: list[ReferenceImage],
        aspect_ratio: str,
        style: ContentStyle,
    ) -> bytes:
        ...

    async def start_video_job(self, prompt: str, source_image: bytes, aspect_ratio: str) -> Any:
        """Submit a video job and return an opaque handle for polling."""
        ...

    async def poll_video_job(self, handle: Any) -> VideoJobStatus:
        ...

    async def download_video(self, media_uri: str, output_path: Path) -> Path:
        ...

    async def generate_speech(self, text: str, voice: str) -> bytes:
        """Return raw PCM16 mono audio."""
        ...
