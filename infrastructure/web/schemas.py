from typing import Optional, Dict, Any, List

from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel

from core.entities.billing_event import BillingEvent
from core.entities.database import Database
from core.entities.server import Server
from core.entities.user import User


class CamelModel(BaseModel):
    """JSON наружу в camelCase (createdAt, ownerId)"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserResponse(CamelModel):
    id: str
    username: str
    email: EmailStr
    plan: str
    coins: int
    avatar: str
    created_at: str
    last_login: Optional[str] = None
    settings: Dict[str, Any] = {}

class ServerResponse(CamelModel):
    id: str
    owner_id: str
    name: str
    type: str
    status: str
    runtime: str
    region: str
    specs: Dict[str, str]
    created_at: str

class DatabaseResponse(CamelModel):
    id: str
    owner_id: str
    name: str
    engine: str
    status: str
    created_at: str

class BillingEventResponse(CamelModel):
    id: str
    type: str
    plan: str
    coins_after: int
    created_at: str

class MessageResponse(BaseModel):
    message: str


def user_out(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        plan=user.plan,
        coins=user.coins,
        avatar=user.avatar,
        created_at=user.created_at,
        last_login=user.last_login,
        settings=user.settings,
    )

def server_out(server: Server) -> ServerResponse:
    return ServerResponse(
        id=server.id,
        owner_id=server.owner_id,
        name=server.name,
        type=server.type,
        status=server.status,
        runtime=server.runtime,
        region=server.region,
        specs=server.specs,
        created_at=server.created_at,
    )

def database_out(database: Database) -> DatabaseResponse:
    return DatabaseResponse(
        id=database.id,
        owner_id=database.owner_id,
        name=database.name,
        engine=database.engine,
        status=database.status,
        created_at=database.created_at,
    )

def billing_event_out(event: BillingEvent) -> BillingEventResponse:
    return BillingEventResponse(
        id=event.id,
        type=event.type,
        plan=event.plan,
        coins_after=event.coins_after,
        created_at=event.created_at,
    )

def servers_out(servers: List[Server]) -> List[ServerResponse]:
    return [server_out(s) for s in servers]
