import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote
from uuid import uuid4

from email_validator import validate_email, EmailNotValidError
from loguru import logger
from passlib.context import CryptContext

from core.entities.billing_event import BillingEvent
from core.entities.database import Database
from core.entities.server import Server, SERVER_QUOTAS, TIER_SPECS
from core.entities.user import User, PAID_PLANS
from core.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from core.repositories.database_repository import DatabaseRepository
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

USERNAME_RE = re.compile(r"^[A-Za-z0-9_-]{3,32}$")
MIN_PASSWORD_LENGTH = 6

STARTER_SERVER = {
    "name": "My Discord Bot",
    "type": "discord-bot",
    "runtime": "nodejs",
    "region": "us-east",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)

def avatar_url(username: str) -> str:
    return f"https://ui-avatars.com/api/?name={quote(username)}&background=random"

def _clean_username(username: Optional[str]) -> str:
    username = (username or "").strip()
    if not USERNAME_RE.match(username):
        raise ValidationError(
            "Username must be 3-32 characters of letters, digits, '_' or '-'"
        )
    return username

def _clean_email(email: Optional[str]) -> str:
    try:
        info = validate_email((email or "").strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Invalid email address")
    return info.normalized.lower()

def _check_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


def create_account(
    users: UserRepository,
    servers: ServerRepository,
    username: str,
    email: str,
    password: str,
    starting_coins: int = 100,
) -> Tuple[User, Server]:
    username = _clean_username(username)
    email = _clean_email(email)
    password = _check_password(password)

    # ранний отказ до bcrypt; окончательно уникальность проверяет users.add
    if users.get_by_email(email) is not None:
        raise ConflictError("User with this email already exists")
    if users.get_by_username(username) is not None:
        raise ConflictError("Username is already taken")

    now = _now()
    user = users.add(User(
        id=str(uuid4()),
        username=username,
        email=email,
        password_hash=get_password_hash(password),
        created_at=now,
        plan="free",
        coins=starting_coins,
        avatar=avatar_url(username),
        last_login=now,
    ))

    # стартовый сервер, чтобы дашборд не был пустым
    server = servers.add(Server(
        id=str(uuid4()),
        owner_id=user.id,
        created_at=now,
        status="offline",
        specs=dict(TIER_SPECS["free"]),
        **STARTER_SERVER,
    ))
    logger.info(f"Account created: {user.username} ({user.id})")
    return user, server

def authenticate(users: UserRepository, identifier: str, password: str) -> User:
    identifier = (identifier or "").strip()
    if not identifier or not password:
        raise ValidationError("Email and password are required")

    user = users.get_by_email(identifier.lower()) or users.get_by_username(identifier)
    if user is None or not verify_password(password, user.password_hash):
        logger.warning(f"Failed login for '{identifier}'")
        raise AuthError("Invalid credentials")

    user.last_login = _now()
    users.update(user)
    logger.info(f"User logged in: {user.username}")
    return user

def get_user(users: UserRepository, user_id: str) -> User:
    user = users.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user

def update_settings(users: UserRepository, user_id: str, partial: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(partial, dict):
        raise ValidationError("Settings must be an object")
    for key, value in partial.items():
        if not isinstance(value, (bool, str, int, float)):
            raise ValidationError(f"Unsupported value for setting '{key}'")

    user = get_user(users, user_id)
    user.settings = {**user.settings, **partial}
    users.update(user)
    return user.settings

def upgrade_plan(users: UserRepository, user_id: str, plan: Optional[str]) -> User:
    plan = (plan or "").lower().strip()
    if plan not in PAID_PLANS:
        raise ValidationError("Invalid plan")

    user = get_user(users, user_id)
    user.plan = plan
    users.update(user)

    # оплаты нет, только запись в историю
    users.log_billing_event(BillingEvent(
        id=str(uuid4()),
        user_id=user.id,
        type="upgrade",
        plan=plan,
        coins_after=user.coins,
        created_at=_now(),
    ))
    logger.info(f"User {user.username} upgraded to {plan}")
    return user

def billing_info(
    users: UserRepository,
    servers: ServerRepository,
    databases: DatabaseRepository,
    user_id: str,
) -> Dict[str, Any]:
    user = get_user(users, user_id)
    owned_servers = servers.list_by_owner(user.id)
    owned_databases: List[Database] = databases.list_by_owner(user.id)
    return {
        "plan": user.plan,
        "coins": user.coins,
        "usage": {
            "servers": len(owned_servers),
            "maxServers": SERVER_QUOTAS.get(user.plan, SERVER_QUOTAS["free"]),
            "databases": len(owned_databases),
        },
        "specs": dict(TIER_SPECS.get(user.plan, TIER_SPECS["free"])),
        "availablePlans": list(PAID_PLANS),
    }

def billing_history(users: UserRepository, user_id: str, limit: int = 50) -> List[BillingEvent]:
    user = get_user(users, user_id)
    return users.list_billing_events(user.id, limit=limit)

def request_password_reset(users: UserRepository, email: Optional[str]) -> None:
    """Письма не отправляются. Ответ не выдаёт, существует ли адрес."""
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("Email is required")
    user = users.get_by_email(email)
    if user is not None:
        logger.info(f"Password reset requested for user {user.id}")
    else:
        logger.info("Password reset requested for unknown email")
