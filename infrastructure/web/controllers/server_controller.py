from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from config.settings import Settings
from core.entities.user import User
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository
from core.services.scheduler import Scheduler
from core.use_cases.server_use_cases import create_server, delete_server, transition_server
from infrastructure.web.dependencies import (
    get_current_user, get_scheduler, get_server_repo, get_settings, get_user_repo,
)
from infrastructure.web.schemas import MessageResponse, ServerResponse, server_out


router = APIRouter(prefix="/api/servers", tags=["servers"])

ACTION_MESSAGES = {
    "start": "Server is starting",
    "stop": "Server is stopping",
    "restart": "Server is restarting",
}


class CreateServerRequest(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    runtime: Optional[str] = None
    region: Optional[str] = None
    resources: Optional[str] = None

class CreateServerResponse(BaseModel):
    server: ServerResponse

class TransitionResponse(BaseModel):
    message: str
    server: ServerResponse


@router.post("/create", response_model=CreateServerResponse, status_code=201)
def create(
    payload: CreateServerRequest,
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repo),
    servers: ServerRepository = Depends(get_server_repo),
):
    server = create_server(
        users,
        servers,
        user_id=current_user.id,
        name=payload.name,
        type=payload.type,
        runtime=payload.runtime,
        region=payload.region,
        resources=payload.resources,
    )
    return CreateServerResponse(server=server_out(server))


# async: переходы и settle-таймеры выполняются на одном event loop
async def _transition(action: str, server_id: str, user: User, servers: ServerRepository,
                      scheduler: Scheduler, settings: Settings) -> TransitionResponse:
    server = transition_server(
        servers, scheduler, server_id, user.id, action, delays=settings.transition_delays(),
    )
    return TransitionResponse(message=ACTION_MESSAGES[action], server=server_out(server))

@router.post("/{server_id}/start", response_model=TransitionResponse)
async def start(
    server_id: str,
    current_user: User = Depends(get_current_user),
    servers: ServerRepository = Depends(get_server_repo),
    scheduler: Scheduler = Depends(get_scheduler),
    settings: Settings = Depends(get_settings),
):
    return await _transition("start", server_id, current_user, servers, scheduler, settings)

@router.post("/{server_id}/stop", response_model=TransitionResponse)
async def stop(
    server_id: str,
    current_user: User = Depends(get_current_user),
    servers: ServerRepository = Depends(get_server_repo),
    scheduler: Scheduler = Depends(get_scheduler),
    settings: Settings = Depends(get_settings),
):
    return await _transition("stop", server_id, current_user, servers, scheduler, settings)

@router.post("/{server_id}/restart", response_model=TransitionResponse)
async def restart(
    server_id: str,
    current_user: User = Depends(get_current_user),
    servers: ServerRepository = Depends(get_server_repo),
    scheduler: Scheduler = Depends(get_scheduler),
    settings: Settings = Depends(get_settings),
):
    return await _transition("restart", server_id, current_user, servers, scheduler, settings)

@router.delete("/{server_id}", response_model=MessageResponse)
@router.post("/{server_id}/delete", response_model=MessageResponse)
def remove(
    server_id: str,
    current_user: User = Depends(get_current_user),
    servers: ServerRepository = Depends(get_server_repo),
):
    delete_server(servers, server_id, current_user.id)
    return MessageResponse(message="Server deleted successfully")
