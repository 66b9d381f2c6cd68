from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel

from core.entities.user import User
from core.repositories.database_repository import DatabaseRepository
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository
from core.use_cases.account_use_cases import update_settings
from core.use_cases.server_use_cases import list_databases, list_servers
from infrastructure.web.dependencies import (
    get_current_user, get_database_repo, get_server_repo, get_user_repo,
)
from infrastructure.web.schemas import (
    DatabaseResponse, ServerResponse, UserResponse, database_out, servers_out, user_out,
)


router = APIRouter(prefix="/api/user", tags=["user"])


class ProfileResponse(BaseModel):
    user: UserResponse

class SettingsResponse(BaseModel):
    settings: Dict[str, Any]

class ServerListResponse(BaseModel):
    servers: List[ServerResponse]

class DatabaseListResponse(BaseModel):
    databases: List[DatabaseResponse]


@router.get("/profile", response_model=ProfileResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return ProfileResponse(user=user_out(current_user))

@router.get("/settings", response_model=SettingsResponse)
def get_settings_view(current_user: User = Depends(get_current_user)):
    return SettingsResponse(settings=current_user.settings)

@router.api_route("/settings", methods=["PUT", "POST"], response_model=SettingsResponse)
def change_settings(
    payload: Dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repo),
):
    merged = update_settings(users, current_user.id, payload)
    return SettingsResponse(settings=merged)

@router.get("/servers", response_model=ServerListResponse)
def get_servers(
    current_user: User = Depends(get_current_user),
    servers: ServerRepository = Depends(get_server_repo),
):
    return ServerListResponse(servers=servers_out(list_servers(servers, current_user.id)))

@router.get("/databases", response_model=DatabaseListResponse)
def get_databases(
    current_user: User = Depends(get_current_user),
    databases: DatabaseRepository = Depends(get_database_repo),
):
    return DatabaseListResponse(
        databases=[database_out(d) for d in list_databases(databases, current_user.id)]
    )
