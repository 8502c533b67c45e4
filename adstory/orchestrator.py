"""Owns the current plan and fans out per-scene asset generation."""
from __future__ import annotations

import asyncio
import functools
import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable

from .errors import AdStoryError
from .jobs import JobRunner
from .models import AdPlan, Asset, AssetKind, ProjectSettings, Scene
from .store import AssetStore

log = logging.getLogger(__name__)


@dataclass
class Notice:
    """A single user-facing report of a failed generation."""
    scene: int
    kind: AssetKind
    message: str
    requires_reauth: bool = False


Notifier = Callable[[Notice], None]
# builds the job coroutine once its task actually runs
Job = Callable[[], Awaitable[Asset]]


def _log_notice(notice: Notice) -> None:
    log.warning("Scene %d %s: %s", notice.scene, notice.kind.value, notice.message)


class PlanOrchestrator:
    """Holds the scene list of the current plan and triggers jobs for it.

    When a plan is loaded, ``start()`` issues one image job per scene without
    waiting on any of them. After that, images, videos and narration are
    re-triggered per scene. Only this class writes to the store; jobs get a
    writer for their own cell.
    """

    def __init__(
        self,
        store: AssetStore,
        runner: JobRunner,
        notify: Notifier | None = None,
    ) -> None:
        self.store = store
        self.runner = runner
        self._notify = notify or _log_notice
        self.plan: AdPlan | None = None
        self.settings = ProjectSettings()
        self.plan_id: str | None = None
        self._started_plan_id: str | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def scenes(self) -> tuple[Scene, ...]:
        return self.plan.scenes if self.plan else ()

    # ------------------------------------------------------------------
    # Plan lifecycle
    # ------------------------------------------------------------------

    def load_plan(self, plan: AdPlan, settings: ProjectSettings | None = None) -> str:
        """Replace the current plan. Returns the new plan id."""
        self.cancel_pending()
        self.store.clear()
        self.plan = plan
        if settings is not None:
            self.settings = settings
        self.plan_id = uuid.uuid4().hex[:8]
        log.info("Loaded plan %s %r with %d scenes", self.plan_id, plan.title, len(plan.scenes))
        return self.plan_id

    def start(self) -> int:
        """Fan out the initial image burst; does nothing if already done for this plan.

        Returns the number of jobs issued.
        """
        if self.plan is None or self._started_plan_id == self.plan_id:
            return 0
        self._started_plan_id = self.plan_id
        context = self.settings.image_context()
        for scene in self.scenes:
            self._spawn(
                AssetKind.IMAGE,
                scene.index,
                functools.partial(self.runner.generate_image, scene.index, scene.image_prompt, context),
            )
        log.info("Plan %s: requested %d images", self.plan_id, len(self.scenes))
        return len(self.scenes)

    def new_project(self) -> None:
        self.cancel_pending()
        self.store.clear()
        self.plan = None
        self.plan_id = None
        self._started_plan_id = None

    def cancel_pending(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    async def join(self) -> None:
        """Wait until every job started through this orchestrator has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Per-scene triggers
    # ------------------------------------------------------------------

    def scene(self, index: int) -> Scene:
        scenes = self.scenes
        if not 0 <= index < len(scenes):
            raise IndexError(f"No scene {index} in the current plan")
        return scenes[index]

    async def redraw_image(self, index: int) -> Asset:
        scene = self.scene(index)
        return await self.runner.generate_image(index, scene.image_prompt, self.settings.image_context())

    async def animate(self, index: int) -> Asset:
        scene = self.scene(index)
        return await self.runner.generate_video(index, scene.video_prompt, self.settings.video_aspect_ratio)

    async def narrate(self, index: int, voice: str | None = None) -> Asset:
        scene = self.scene(index)
        return await self.runner.generate_audio(index, scene.audio_script, voice or self.settings.voice)

    def trigger(self, kind: AssetKind, index: int, voice: str | None = None) -> asyncio.Task:
        """Run a re-trigger in the background, reporting failures via the notifier."""
        self.scene(index)
        if kind is AssetKind.IMAGE:
            job = functools.partial(self.redraw_image, index)
        elif kind is AssetKind.VIDEO:
            job = functools.partial(self.animate, index)
        else:
            job = functools.partial(self.narrate, index, voice)
        return self._spawn(kind, index, job)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _spawn(self, kind: AssetKind, index: int, job: Job) -> asyncio.Task:
        task = asyncio.create_task(self._guarded(kind, index, self.plan_id, job))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(
        self,
        kind: AssetKind,
        index: int,
        plan_id: str | None,
        job: Job,
    ) -> Asset | None:
        try:
            return await job()
        except AdStoryError as exc:
            notice = Notice(index, kind, str(exc), exc.requires_reauth)
        except Exception as exc:
            log.exception("Unexpected error generating %s for scene %d", kind.value, index)
            notice = Notice(index, kind, str(exc) or exc.__class__.__name__)

        if plan_id == self.plan_id:
            self._notify(notice)
        return None
