from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4

from loguru import logger

from core.entities.database import Database
from core.entities.server import (
    Server, SERVER_TYPES, SERVER_QUOTAS, TIER_SPECS, TRANSITIONS,
)
from core.entities.user import PLANS
from core.exceptions import NotFoundError, QuotaError, ValidationError
from core.repositories.database_repository import DatabaseRepository
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository
from core.services.scheduler import Scheduler


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def _resolve_tier(plan: str, requested: Optional[str]) -> str:
    # запрошенный тариф не может быть выше тарифа пользователя
    plan = plan if plan in PLANS else "free"
    requested = (requested or "").lower().strip()
    if requested in PLANS and PLANS.index(requested) <= PLANS.index(plan):
        return requested
    return plan

def _owned(servers: ServerRepository, server_id: str, user_id: str) -> Server:
    server = servers.get(server_id)
    if server is None or server.owner_id != user_id:
        raise NotFoundError("Server not found")
    return server


def list_servers(servers: ServerRepository, user_id: str) -> List[Server]:
    return servers.list_by_owner(user_id)

def list_databases(databases: DatabaseRepository, user_id: str) -> List[Database]:
    return databases.list_by_owner(user_id)

def create_server(
    users: UserRepository,
    servers: ServerRepository,
    user_id: str,
    name: Optional[str],
    type: Optional[str],
    runtime: Optional[str] = None,
    region: Optional[str] = None,
    resources: Optional[str] = None,
) -> Server:
    name = (name or "").strip()
    type = (type or "").strip()
    if not name:
        raise ValidationError("Server name is required")
    if not type:
        raise ValidationError("Server type is required")
    if type not in SERVER_TYPES:
        raise ValidationError(f"Unsupported server type: {type}")

    user = users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")

    quota = SERVER_QUOTAS.get(user.plan, SERVER_QUOTAS["free"])
    tier = _resolve_tier(user.plan, resources)
    server = servers.add_within_quota(Server(
        id=str(uuid4()),
        owner_id=user.id,
        name=name,
        type=type,
        runtime=(runtime or "nodejs").strip(),
        region=(region or "us-east").strip(),
        created_at=_now(),
        status="offline",
        specs=dict(TIER_SPECS[tier]),
    ), quota)
    if server is None:
        raise QuotaError(f"Server limit reached for the {user.plan} plan ({quota} servers)")
    logger.info(f"Server {server.id} '{server.name}' created for {user.username} ({tier})")
    return server

def transition_server(
    servers: ServerRepository,
    scheduler: Scheduler,
    server_id: str,
    user_id: str,
    action: str,
    delays: Dict[str, float],
) -> Server:
    """
    Ставит промежуточный статус сразу и планирует settle в конечный.
    Возвращается не дожидаясь settle.
    """
    if action not in TRANSITIONS:
        raise ValidationError(f"Unsupported action: {action}")
    server = _owned(servers, server_id, user_id)

    transient, terminal = TRANSITIONS[action]
    server.status = transient
    server.version += 1
    servers.update(server)

    version = server.version
    delay = delays[action]
    scheduler.schedule(delay, lambda: settle_server(servers, server_id, version, terminal))
    logger.info(f"Server {server_id}: {action} requested -> {transient} (settle in {delay}s)")
    return server

def settle_server(servers: ServerRepository, server_id: str, version: int, terminal: str) -> bool:
    """Применяет конечный статус, только если после запроса не было новых переходов."""
    server = servers.get(server_id)
    if server is None:
        logger.debug(f"Server {server_id} deleted before settle")
        return False
    if server.version != version:
        logger.debug(f"Server {server_id}: settle v{version} superseded by v{server.version}")
        return False
    server.status = terminal
    servers.update(server)
    logger.info(f"Server {server_id} settled -> {terminal}")
    return True

def delete_server(servers: ServerRepository, server_id: str, user_id: str) -> None:
    server = _owned(servers, server_id, user_id)
    servers.delete(server.id)
    logger.info(f"Server {server_id} deleted (status was {server.status})")
