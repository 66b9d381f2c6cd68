import asyncio
import os
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from config.logging import setup_logging
from config.settings import Settings, settings as default_settings
from core.services.scheduler import Scheduler
from infrastructure.db.memory import (
    InMemoryDatabaseRepository, InMemoryServerRepository, InMemoryUserRepository,
)
from infrastructure.db.sqlite import (
    SQLiteDatabaseRepository, SQLiteServerRepository, SQLiteUserRepository, connect, init_db,
)
from infrastructure.scheduling.asyncio_scheduler import AsyncioScheduler
from infrastructure.security.jwt_tokens import JWTTokenIssuer
from infrastructure.web.controllers.auth_controller import router as auth_router
from infrastructure.web.controllers.billing_controller import router as billing_router
from infrastructure.web.controllers.server_controller import router as server_router
from infrastructure.web.controllers.system_controller import router as system_router
from infrastructure.web.controllers.user_controller import router as user_router
from infrastructure.web.errors import install_error_handlers
from infrastructure.web.middleware import install_request_logging
from infrastructure.web.static import CachedStaticFiles


def build_repositories(settings: Settings):
    backend = settings.STORAGE_BACKEND.lower()
    if backend == "memory":
        return InMemoryUserRepository(), InMemoryServerRepository(), InMemoryDatabaseRepository()
    if backend == "sqlite":
        init_db(settings.DB_PATH)
        conn = connect(settings.DB_PATH)
        return SQLiteUserRepository(conn), SQLiteServerRepository(conn), SQLiteDatabaseRepository(conn)
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")


def create_app(settings: Optional[Settings] = None, scheduler: Optional[Scheduler] = None) -> FastAPI:
    settings = settings or default_settings
    scheduler = scheduler or AsyncioScheduler()

    app = FastAPI(title="Bot Hosting", version=settings.APP_VERSION)

    users, servers, databases = build_repositories(settings)
    app.state.settings = settings
    app.state.user_repo = users
    app.state.server_repo = servers
    app.state.database_repo = databases
    app.state.scheduler = scheduler
    app.state.token_issuer = JWTTokenIssuer(
        settings.SECRET_KEY, settings.ALGORITHM, settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_request_logging(app, verbose=settings.is_development)
    install_error_handlers(app)

    @app.on_event("startup")
    async def on_startup():
        if isinstance(scheduler, AsyncioScheduler):
            scheduler.bind(asyncio.get_running_loop())
        logger.info(
            f"Bot hosting API {settings.APP_VERSION} started "
            f"({settings.ENVIRONMENT}, storage={settings.STORAGE_BACKEND})"
        )

    app.include_router(system_router)
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(server_router)
    app.include_router(billing_router)

    # статика последней: всё, что не совпало с API, уходит сюда
    if os.path.isdir(settings.STATIC_DIR):
        app.mount(
            "/",
            CachedStaticFiles(
                directory=settings.STATIC_DIR, html=True, production=not settings.is_development,
            ),
            name="static",
        )
    return app


_app: Optional[FastAPI] = None


def get_app() -> FastAPI:
    """Приложение с настройками из окружения, создаётся при первом обращении"""
    global _app
    if _app is None:
        setup_logging(default_settings.LOG_LEVEL)
        _app = create_app()
    return _app


def __getattr__(name: str):
    # `uvicorn main:app` получает приложение через этот хук
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


if __name__ == "__main__":
    uvicorn.run(get_app(), host=default_settings.HOST, port=default_settings.PORT)
