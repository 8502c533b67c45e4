"""Per-scene asset trigger and download routes."""
from __future__ import annotations

from litestar import Response, get, post
from litestar.exceptions import ClientException, NotFoundException
from litestar.response import File

from adstory.errors import PreconditionNotMet
from adstory.models import AssetKind
from webui.backend.models import AssetView, TriggerRequest
from webui.backend.session import StudioSession

MEDIA_TYPES = {
    AssetKind.IMAGE: "image/png",
    AssetKind.AUDIO: "audio/wav",
    AssetKind.VIDEO: "video/mp4",
}


def _kind(kind: str) -> AssetKind:
    try:
        return AssetKind(kind)
    except ValueError:
        raise NotFoundException(f"Unknown asset kind {kind!r}") from None


@post("/api/scenes/{index:int}/{kind:str}", status_code=202)
async def trigger_asset(
    index: int,
    kind: str,
    studio_session: StudioSession,
    data: TriggerRequest | None = None,
) -> AssetView:
    """(Re)generate one asset in the background; returns the cell as it is now."""
    asset_kind = _kind(kind)
    orchestrator = studio_session.studio.orchestrator
    try:
        orchestrator.scene(index)
    except IndexError as exc:
        raise NotFoundException(str(exc)) from exc

    if asset_kind is AssetKind.VIDEO:
        image = studio_session.studio.store.get(index, AssetKind.IMAGE)
        if not image.is_ready:
            try:
                # records the failed video cell
                await orchestrator.animate(index)
            except PreconditionNotMet as exc:
                raise ClientException(str(exc), status_code=409) from exc

    voice = data.voice.value if data and data.voice else None
    orchestrator.trigger(asset_kind, index, voice)
    return studio_session.asset_view(index, asset_kind)


@get("/api/scenes/{index:int}/{kind:str}/download")
async def download_asset(index: int, kind: str, studio_session: StudioSession) -> Response:
    asset_kind = _kind(kind)
    try:
        filename, payload = studio_session.studio.export_file(index, asset_kind)
    except LookupError as exc:
        raise NotFoundException(str(exc)) from exc

    if isinstance(payload, bytes):
        return Response(
            content=payload,
            media_type=MEDIA_TYPES[asset_kind],
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return File(path=payload, filename=filename, media_type=MEDIA_TYPES[asset_kind])
