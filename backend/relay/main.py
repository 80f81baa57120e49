from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay.api.rooms import router as rooms_router
from relay.core.config import Settings, get_settings
from relay.core.logging_config import get_logger, setup_logging
from relay.state.member_registry import MemberRegistry
from relay.ws.broadcaster import RoomBroadcaster
from relay.ws.dispatcher import RelayDispatcher
from relay.ws.routes import router as ws_router

logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(title="Room Relay", version="0.1.0")
    app.state.settings = settings
    app.state.registry = MemberRegistry()
    app.state.broadcaster = RoomBroadcaster(app.state.registry)
    app.state.dispatcher = RelayDispatcher(app.state.registry, app.state.broadcaster, settings)

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(rooms_router)
    app.include_router(ws_router)

    logger.info("relay app initialized env=%s", settings.app_env)
    return app


app = create_app()
