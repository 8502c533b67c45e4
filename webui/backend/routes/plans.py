"""Plan create / view / discard routes."""
from __future__ import annotations

from litestar import delete, get, post
from litestar.exceptions import NotFoundException

from adstory.models import ProjectSettings
from webui.backend.models import CreatePlanRequest, PlanView
from webui.backend.session import StudioSession


@post("/api/plans")
async def create_plan(data: CreatePlanRequest, studio_session: StudioSession) -> PlanView:
    """Draft a storyboard and start rendering every scene image."""
    settings = ProjectSettings(
        product_images=[img.to_reference() for img in data.products],
        model_image=data.model.to_reference() if data.model else None,
        style=data.style,
        preserve_face=data.preserve_face,
        voice=data.voice.value,
        aspect_ratio=data.aspect_ratio,
        language=data.language,
    )
    await studio_session.studio.create_project(settings)
    return studio_session.plan_view()


@get("/api/plan")
async def get_plan(studio_session: StudioSession) -> PlanView:
    view = studio_session.plan_view()
    if view is None:
        raise NotFoundException("No plan loaded")
    return view


@delete("/api/plan", status_code=200)
async def discard_plan(studio_session: StudioSession) -> dict:
    """Start a new project: cancels running jobs and clears every asset."""
    studio_session.studio.new_project()
    return {"ok": True}
