import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from config.settings import Settings
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository
from infrastructure.web.dependencies import get_server_repo, get_settings, get_user_repo


router = APIRouter(tags=["system"])


@router.get("/health")
def health(
    request: Request,
    settings: Settings = Depends(get_settings),
    users: UserRepository = Depends(get_user_repo),
    servers: ServerRepository = Depends(get_server_repo),
):
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "users": users.count(),
        "servers": servers.count(),
    }

@router.get("/api/config")
def public_config(settings: Settings = Depends(get_settings)):
    return {
        "apiBaseUrl": settings.API_BASE_URL,
        "panelUrl": settings.PANEL_URL,
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "features": {
            "signup": True,
            "oauth": False,
            "databases": False,
            "billing": True,
            "passwordReset": True,
        },
    }
