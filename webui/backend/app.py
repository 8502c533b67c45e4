"""Litestar ASGI application: AdStory Web API."""
from __future__ import annotations

import logging
from pathlib import Path

from litestar import Litestar, Request, Response
from litestar.config.cors import CORSConfig
from litestar.di import Provide
from litestar.logging import LoggingConfig
from litestar.static_files import create_static_files_router

from adstory.errors import (
    AdStoryError,
    JobTimeout,
    PreconditionNotMet,
    ProviderUnavailable,
    ResourceNotFound,
)
from webui.backend.routes.config import clear_key, get_config, save_config
from webui.backend.routes.plans import create_plan, discard_plan, get_plan
from webui.backend.routes.scenes import download_asset, trigger_asset
from webui.backend.routes.stream import stream_events
from webui.backend.routes.voices import list_options, list_voices, preview_voice
from webui.backend.session import StudioSession, session as default_session

log = logging.getLogger(__name__)

FRONTEND_DIST = Path(__file__).parent.parent / "frontend" / "dist"

_STATUS = {
    ProviderUnavailable: 401,
    ResourceNotFound: 401,
    PreconditionNotMet: 409,
    JobTimeout: 504,
}


def _adstory_error(request: Request, exc: AdStoryError) -> Response:
    status = _STATUS.get(type(exc), 502)
    log.warning("%s %s -> %d: %s", request.method, request.url.path, status, exc)
    return Response(
        content={"detail": str(exc), "requires_reauth": exc.requires_reauth},
        status_code=status,
    )


def create_app(studio_session: StudioSession | None = None) -> Litestar:
    studio_session = studio_session or default_session

    app = Litestar(
        route_handlers=[
            get_config,
            save_config,
            clear_key,
            create_plan,
            get_plan,
            discard_plan,
            trigger_asset,
            download_asset,
            list_voices,
            list_options,
            preview_voice,
            stream_events,
        ],
        dependencies={
            "studio_session": Provide(lambda: studio_session, sync_to_thread=False),
        },
        exception_handlers={AdStoryError: _adstory_error},
        cors_config=CORSConfig(
            allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
            allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type"],
        ),
        logging_config=LoggingConfig(
            loggers={
                "adstory": {"level": "INFO", "handlers": ["queue_listener"]},
                "webui": {"level": "INFO", "handlers": ["queue_listener"]},
            }
        ),
    )

    # Serve built frontend (production). During dev, Vite dev server handles this.
    if FRONTEND_DIST.exists():
        app.register(
            create_static_files_router(
                path="/",
                directories=[FRONTEND_DIST],
                html_mode=True,
            )
        )
    return app


app = create_app()
