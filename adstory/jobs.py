"""Drives a single asset generation request to completion.

Each entry point owns one (scene, kind) cell for the duration of the call:
it flips the cell to pending, talks to the provider, and leaves the cell
ready or failed. A cell that is already pending is never submitted twice.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Any, Awaitable, Callable

from . import prompts
from .config import (
    DEFAULT_VIDEO_ASPECT,
    PROGRESS_INTERVAL,
    VIDEO_LOADING_MESSAGES,
    VIDEO_MAX_POLLS,
    VIDEO_POLL_INTERVAL,
)
from .errors import AdStoryError, JobTimeout, PreconditionNotMet, ProviderRequestFailed
from .models import Asset, AssetKind, ImageContext, Payload
from .provider import GenerationProvider, VideoJobStatus
from .store import AssetStore, CellWriter

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
# (scene index, message): message is None once the video is no longer rendering
ProgressCallback = Callable[[int, "str | None"], None]


class ProgressTicker:
    """Cycles through status lines on a timer while a video renders.

    Purely cosmetic: the lines say nothing about the real job state.
    """

    def __init__(
        self,
        messages: list[str],
        interval: float,
        on_message: Callable[[str], None],
    ) -> None:
        self._messages = messages
        self._interval = interval
        self._on_message = on_message
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._messages and self._task is None:
            self._task = asyncio.create_task(self._run())

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        i = 0
        while True:
            self._on_message(self._messages[i % len(self._messages)])
            await asyncio.sleep(self._interval)
            i += 1


def _classify(exc: Exception) -> AdStoryError:
    if isinstance(exc, AdStoryError):
        return exc
    return ProviderRequestFailed(str(exc) or exc.__class__.__name__)


class JobRunner:
    """Runs image, audio and video generation for individual scene cells."""

    def __init__(
        self,
        store: AssetStore,
        provider: GenerationProvider,
        output_dir: Path = Path("output"),
        *,
        poll_interval: float = VIDEO_POLL_INTERVAL,
        max_polls: int = VIDEO_MAX_POLLS,
        progress_interval: float = PROGRESS_INTERVAL,
        progress_messages: list[str] | None = None,
        progress_cb: ProgressCallback | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._store = store
        self.provider = provider
        self.output_dir = Path(output_dir)
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self._progress_interval = progress_interval
        self._progress_messages = (
            VIDEO_LOADING_MESSAGES if progress_messages is None else progress_messages
        )
        self._progress_cb = progress_cb
        self._sleep = sleep
        # scene index -> current cosmetic status line of a rendering video
        self.progress: dict[int, str] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate_image(self, index: int, prompt: str, context: ImageContext) -> Asset:
        """Render the still for a scene, replacing any previous one."""
        full_prompt = prompts.image_prompt(prompt, context.style, context.preserve_face)

        async def _work() -> bytes:
            return await self.provider.generate_image(
                full_prompt,
                list(context.reference_images[:2]),
                context.aspect_ratio,
                context.style,
            )

        return await self._run(self._store.writer(index, AssetKind.IMAGE), _work)

    async def generate_audio(self, index: int, script: str, voice: str) -> Asset:
        """Narrate a scene script; the payload is raw PCM16."""

        async def _work() -> bytes:
            return await self.provider.generate_speech(script, voice)

        return await self._run(self._store.writer(index, AssetKind.AUDIO), _work)

    async def generate_video(
        self,
        index: int,
        motion_prompt: str,
        aspect_ratio: str = DEFAULT_VIDEO_ASPECT,
        source_image: bytes | None = None,
    ) -> Asset:
        """Animate the scene's ready image into a clip.

        Raises:
            PreconditionNotMet: If the scene has no ready image. No provider
                call is made in that case.
            JobTimeout: If the job is still running after ``max_polls`` polls.
        """
        writer = self._store.writer(index, AssetKind.VIDEO)
        current = writer.get()
        if current.is_pending:
            log.debug("Video for scene %d already rendering, ignoring trigger", index)
            return current

        image = self._store.get(index, AssetKind.IMAGE)
        if not image.is_ready:
            err = PreconditionNotMet(f"Scene {index + 1} needs an image before it can be animated.")
            # a finished clip stays downloadable while its image is redrawn
            if not current.is_ready:
                writer.set(current.failed(str(err)))
            raise err
        source = source_image if source_image is not None else image.payload

        async def _work() -> Path:
            return await self._render_video(index, motion_prompt, source, aspect_ratio)

        return await self._run(writer, _work, current)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _run(
        self,
        writer: CellWriter,
        work: Callable[[], Awaitable[Payload]],
        current: Asset | None = None,
    ) -> Asset:
        current = current or writer.get()
        if current.is_pending:
            log.debug("%s for scene %d already pending, ignoring trigger", writer.kind.value, writer.index)
            return current

        pending = current.pending()
        writer.set(pending)
        try:
            payload = await work()
        except asyncio.CancelledError:
            writer.set(pending.failed("Cancelled."))
            raise
        except Exception as exc:
            err = _classify(exc)
            log.warning("%s for scene %d failed: %s", writer.kind.value, writer.index, err)
            writer.set(pending.failed(str(err)))
            if err is exc:
                raise
            raise err from exc

        asset = pending.ready(payload)
        if writer.set(asset):
            log.info("%s for scene %d ready", writer.kind.value, writer.index)
        return asset

    async def _render_video(self, index: int, prompt: str, source: Any, aspect_ratio: str) -> Path:
        ticker = ProgressTicker(
            self._progress_messages,
            self._progress_interval,
            lambda msg: self._set_progress(index, msg),
        )
        ticker.start()
        try:
            handle = await self.provider.start_video_job(
                prompts.video_prompt(prompt), source, aspect_ratio
            )
            status = await self._await_video(index, handle)
            if status.error:
                raise ProviderRequestFailed(status.error)
            if not status.media_uri:
                raise ProviderRequestFailed("Video job finished without a media URI.")
            output_path = self.output_dir / f"adstory_video_{index + 1}_{uuid.uuid4().hex[:8]}.mp4"
            return await self.provider.download_video(status.media_uri, output_path)
        finally:
            ticker.stop()
            self._set_progress(index, None)

    async def _await_video(self, index: int, handle: Any) -> VideoJobStatus:
        """Poll the job on a fixed interval until done or out of attempts."""
        for attempt in range(1, self.max_polls + 1):
            await self._sleep(self.poll_interval)
            status = await self.provider.poll_video_job(handle)
            log.debug("Video job for scene %d: poll %d, done=%s", index, attempt, status.done)
            if status.done:
                return status
        raise JobTimeout(
            f"Video for scene {index + 1} did not finish within "
            f"{self.max_polls * self.poll_interval:.0f}s."
        )

    def _set_progress(self, index: int, message: str | None) -> None:
        if message is None:
            self.progress.pop(index, None)
        else:
            self.progress[index] = message
        if self._progress_cb:
            self._progress_cb(index, message)
