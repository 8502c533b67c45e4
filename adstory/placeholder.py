"""Offline stand-in provider for test mode (no API calls).

Draws the prompt onto a plain card instead of an image, beeps instead of
speaking, and pans over the still with ffmpeg instead of running Veo.
"""
from __future__ import annotations

import asyncio
import io
import itertools
import json
import logging
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .config import SAMPLE_RATE
from .models import ContentStyle, ReferenceImage
from .provider import VideoJobStatus

log = logging.getLogger(__name__)

_SIZES = {
    "1:1": (1024, 1024),
    "16:9": (1280, 720),
    "9:16": (720, 1280),
    "4:3": (1024, 768),
    "3:4": (768, 1024),
}

_PLAN_SCENES = [
    {
        "visualScene": "Hero shot of the product on a clean studio table",
        "imagePrompt": "The product centered on a marble table, soft key light, shallow depth of field",
        "videoPrompt": "Slow dolly-in towards the product, light sweeping across it",
        "audioScript": "Meet the one product you did not know you needed.",
        "textOverlay": "NEW ARRIVAL",
    },
    {
        "visualScene": "A person using the product in daily life",
        "imagePrompt": "A smiling person using the product at home, natural window light",
        "videoPrompt": "Handheld shot following the person as they use the product",
        "audioScript": "Made for real life, built to last every single day.",
        "textOverlay": "EVERYDAY READY",
    },
    {
        "visualScene": "Close-up detail of materials and finish",
        "imagePrompt": "Macro close-up of the product texture and finish, crisp detail",
        "videoPrompt": "Slow orbit around the product detail, subtle rack focus",
        "audioScript": "Every detail is crafted with care.",
        "textOverlay": "PREMIUM DETAIL",
    },
    {
        "visualScene": "Call to action end card",
        "imagePrompt": "The product on a bold gradient background with empty space for text",
        "videoPrompt": "Gentle zoom out with the product floating slightly",
        "audioScript": "Get yours today, before it is gone.",
        "textOverlay": "SHOP NOW",
    },
]


@dataclass
class _PlaceholderJob:
    image: bytes
    polls_left: int


def _placeholder_image(prompt: str, width: int, height: int) -> bytes:
    img = Image.new("RGB", (width, height), color=(30, 30, 50))
    draw = ImageDraw.Draw(img)

    try:
        font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", 28)
    except OSError:
        font = ImageFont.load_default()

    # first line only; the full prompt carries the style boilerplate
    words = prompt.splitlines()[0].split() if prompt.strip() else []
    lines: list[str] = []
    current = ""
    for w in words:
        test = f"{current} {w}".strip()
        bbox = draw.textbbox((0, 0), test, font=font)
        if bbox[2] > width - 80:
            lines.append(current)
            current = w
        else:
            current = test
    if current:
        lines.append(current)

    y = height // 2 - len(lines) * 20
    for line in lines:
        bbox = draw.textbbox((0, 0), line, font=font)
        x = (width - bbox[2]) // 2
        draw.text((x + 2, y + 2), line, fill=(0, 0, 0), font=font)
        draw.text((x, y), line, fill=(200, 200, 255), font=font)
        y += 40

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _placeholder_speech(text: str, sample_rate: int = SAMPLE_RATE) -> bytes:
    """A soft 440 Hz tone, roughly as long as the text would take to read."""
    duration = max(1.0, 0.35 * len(text.split()))
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    tone = 0.2 * np.sin(2 * np.pi * 440.0 * t)
    fade = min(len(tone) // 10, sample_rate // 20)
    if fade:
        ramp = np.linspace(0.0, 1.0, fade)
        tone[:fade] *= ramp
        tone[-fade:] *= ramp[::-1]
    return (tone * 32767).astype("<i2").tobytes()


def _placeholder_video(image: bytes, output_path: Path, duration: float = 4.0) -> Path:
    """Pan gently over the still with ffmpeg."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(prefix="adstory_") as tmp:
        image_path = Path(tmp) / "frame.png"
        image_path.write_bytes(image)
        frames = int(duration * 30)
        cmd = [
            "ffmpeg", "-y",
            "-loop", "1", "-i", str(image_path),
            "-t", str(duration),
            "-vf", (
                f"scale=1440:-2,zoompan=z='min(zoom+0.002,1.08)'"
                f":x='iw/2-(iw/zoom/2)':y='ih/2-(ih/zoom/2)'"
                f":d={frames}:s=1280x720:fps=30"
            ),
            "-c:v", "libx264", "-pix_fmt", "yuv420p",
            "-r", "30",
            str(output_path),
        ]
        result = subprocess.run(cmd, capture_output=True, timeout=120)
        if result.returncode != 0:
            raise RuntimeError(
                f"Placeholder video failed: {result.stderr.decode(errors='replace')[-300:]}"
            )
    return output_path


class PlaceholderProvider:
    """GenerationProvider that never leaves the machine."""

    def __init__(self, polls_until_done: int = 2) -> None:
        self.polls_until_done = polls_until_done
        self._jobs: dict[str, _PlaceholderJob] = {}
        # finished job id -> source still, waiting to be downloaded
        self._finished: dict[str, bytes] = {}
        self._ids = itertools.count(1)

    async def generate_plan(self, prompt: str, images: list[ReferenceImage]) -> str:
        scenes = [dict(scene, no=i + 1) for i, scene in enumerate(_PLAN_SCENES[:3])]
        return json.dumps({
            "contentTitle": "Placeholder Product Ad",
            "killerHook": "Stop scrolling: this changes everything.",
            "productDescription": f"Product shown in {len(images)} reference photo(s).",
            "scenes": scenes,
        })

    async def generate_image(
        self,
        prompt: str,
        reference_images: list[ReferenceImage],
        aspect_ratio: str,
        style: ContentStyle,
    ) -> bytes:
        width, height = _SIZES.get(aspect_ratio, _SIZES["1:1"])
        return await asyncio.to_thread(_placeholder_image, prompt, width, height)

    async def start_video_job(self, prompt: str, source_image: bytes, aspect_ratio: str) -> str:
        job_id = f"placeholder-{next(self._ids)}"
        self._jobs[job_id] = _PlaceholderJob(image=source_image, polls_left=self.polls_until_done)
        return job_id

    async def poll_video_job(self, handle: str) -> VideoJobStatus:
        job = self._jobs[handle]
        job.polls_left -= 1
        if job.polls_left > 0:
            return VideoJobStatus(done=False)
        self._finished[handle] = self._jobs.pop(handle).image
        return VideoJobStatus(done=True, media_uri=f"placeholder://{handle}")

    async def download_video(self, media_uri: str, output_path: Path) -> Path:
        image = self._finished.pop(media_uri.removeprefix("placeholder://"))
        log.info("Rendering placeholder video -> %s", output_path)
        return await asyncio.to_thread(_placeholder_video, image, output_path)

    async def generate_speech(self, text: str, voice: str) -> bytes:
        return _placeholder_speech(text)
