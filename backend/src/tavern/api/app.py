"""FastAPI application and Socket.IO wiring for the Tavern service.

``create_app()`` builds every service once and hangs it on ``app.state``; the
routes and socket handlers only ever reach services through that state.
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from auth.src.models import User  # noqa: F401  (registers the users table)
from auth.src.token_service import TokenService
from auth.src.user_service import UserService
from db.src.connection import DatabaseManager
from tavern.api.routes.auth import router as auth_router
from tavern.api.routes.characters import router as characters_router
from tavern.api.routes.sessions import router as sessions_router
from tavern.config.settings import Settings, get_settings
from tavern.connection.socketio_broadcaster import SessionBroadcaster
from tavern.connection.socketio_server import (
    SessionSocketHandlers,
    create_socketio_app,
    create_socketio_server,
)
from tavern.errors import TavernError
from tavern.infra.storage import CharacterRepository, SessionRepository
from tavern.models import Character  # noqa: F401  (registers the characters table)
from tavern.models.session_settings import SessionSettings
from tavern.services.character_service import CharacterService
from tavern.session.character_binding import CharacterBindingService
from tavern.session.player_roster import PlayerRoster
from tavern.session.session_events import SessionEventService
from tavern.session.session_registry import SessionRegistry
from tavern.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TavernError)
    async def tavern_error_handler(request: Request, exc: TavernError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    db_manager = DatabaseManager(
        settings.database_url,
        pool_size=settings.db_pool_size,
        pool_timeout=settings.db_pool_timeout,
        echo=settings.db_echo,
    )

    sio = create_socketio_server(settings)
    broadcaster = SessionBroadcaster(sio)

    session_repository = SessionRepository(db_manager)
    registry = SessionRegistry(
        session_repository,
        broadcaster,
        default_settings=SessionSettings(
            max_participants=settings.default_max_participants,
            allow_spectators=settings.default_allow_spectators,
            dice_visibility=settings.default_dice_visibility,
        ),
    )
    roster = PlayerRoster(session_repository, registry, broadcaster)
    bindings = CharacterBindingService(session_repository, roster, broadcaster)
    events = SessionEventService(session_repository, registry, roster, bindings, broadcaster, settings)

    token_service = TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(hours=settings.token_ttl_hours),
    )
    user_service = UserService(db_manager, token_service)
    character_service = CharacterService(CharacterRepository(db_manager))

    SessionSocketHandlers(registry, roster, events, broadcaster).register(sio)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s (%s)", settings.service_name, settings.environment)
        db_manager.initialize()
        if settings.auto_create_tables:
            await db_manager.create_tables()
        yield
        logger.info("Shutting down %s", settings.service_name)
        await db_manager.close()

    app = FastAPI(
        title=settings.service_name,
        version=settings.service_version,
        lifespan=lifespan,
    )

    cors_origins = settings.cors_allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.db_manager = db_manager
    app.state.sio = sio
    app.state.broadcaster = broadcaster
    app.state.session_registry = registry
    app.state.player_roster = roster
    app.state.character_bindings = bindings
    app.state.session_events = events
    app.state.user_service = user_service
    app.state.character_service = character_service

    _register_exception_handlers(app)
    app.include_router(sessions_router)
    app.include_router(auth_router)
    app.include_router(characters_router)

    @app.get("/health")
    async def health_check():
        database = "ok" if db_manager.is_initialized and await db_manager.test_connection() else "unavailable"
        return {
            "status": "healthy",
            "service": settings.service_name,
            "version": settings.service_version,
            "database": database,
        }

    app.state.socket_app = create_socketio_app(sio, app)
    return app


app = create_app()
socket_app = app.state.socket_app
