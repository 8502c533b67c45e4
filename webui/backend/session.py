"""The server-side studio session and its event fan-out to SSE clients."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import AsyncIterator, Callable

from adstory.config import Config
from adstory.models import Asset, AssetKind
from adstory.orchestrator import Notice
from adstory.studio import Studio

from .models import AssetView, PlanView, SceneView

log = logging.getLogger(__name__)

StudioFactory = Callable[..., Studio]


class StudioSession:
    """Owns the single Studio behind the web API.

    Asset changes, failure notices and video progress lines are pushed to
    every subscribed SSE client. Everything runs on the server's event loop,
    so queues are fed directly.
    """

    def __init__(self, factory: StudioFactory = Studio) -> None:
        self._factory = factory
        self._studio: Studio | None = None
        self._queues: set[asyncio.Queue] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def studio(self) -> Studio:
        if self._studio is None:
            self._studio = self._factory(notify=self._on_notice, progress_cb=self._on_progress)
            self._studio.store.subscribe(self._on_asset)
        return self._studio

    def apply_config(self, cfg: Config) -> None:
        """Pick up saved settings without dropping the current project."""
        current = self.studio.config
        current.stored_api_key = cfg.stored_api_key
        current.output_dir = cfg.output_dir
        current.aspect_ratio = cfg.aspect_ratio
        current.voice = cfg.voice
        current.language = cfg.language
        self.studio.runner.output_dir = cfg.output_dir

    def plan_view(self) -> PlanView | None:
        studio = self.studio
        orchestrator = studio.orchestrator
        if studio.plan is None or orchestrator.plan_id is None:
            return None
        scenes = [
            SceneView(
                index=scene.index,
                visual_scene=scene.visual_scene,
                image_prompt=scene.image_prompt,
                video_prompt=scene.video_prompt,
                audio_script=scene.audio_script,
                text_overlay=scene.text_overlay,
                image=self.asset_view(scene.index, AssetKind.IMAGE),
                video=self.asset_view(scene.index, AssetKind.VIDEO),
                audio=self.asset_view(scene.index, AssetKind.AUDIO),
            )
            for scene in orchestrator.scenes
        ]
        return PlanView(
            plan_id=orchestrator.plan_id,
            content_title=studio.plan.content_title,
            killer_hook=studio.plan.killer_hook,
            product_description=studio.plan.product_description,
            scenes=scenes,
        )

    async def stream(self) -> AsyncIterator[dict]:
        """Async generator: yields event dicts until the client disconnects."""
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.discard(queue)

    def asset_view(self, index: int, kind: AssetKind) -> AssetView:
        asset = self.studio.store.get(index, kind)
        return AssetView(
            state=asset.state.value,
            error=asset.error_message,
            download_url=(
                f"/api/scenes/{index}/{kind.value}/download" if asset.is_ready else None
            ),
            progress=(
                self.studio.runner.progress.get(index) if kind is AssetKind.VIDEO else None
            ),
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _push(self, msg: dict) -> None:
        msg["ts"] = time.time()
        for queue in list(self._queues):
            queue.put_nowait(msg)

    def _on_asset(self, index: int, asset: Asset) -> None:
        self._push({
            "type": "asset",
            "scene": index,
            "kind": asset.kind.value,
            "state": asset.state.value,
            "error": asset.error_message,
        })

    def _on_notice(self, notice: Notice) -> None:
        log.info("Scene %d %s failed: %s", notice.scene, notice.kind.value, notice.message)
        self._push({
            "type": "notice",
            "scene": notice.scene,
            "kind": notice.kind.value,
            "message": notice.message,
            "requires_reauth": notice.requires_reauth,
        })

    def _on_progress(self, index: int, message: str | None) -> None:
        self._push({"type": "progress", "scene": index, "message": message})


# Singleton
session = StudioSession()
