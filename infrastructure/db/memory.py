from copy import deepcopy
from threading import Lock
from typing import Dict, List, Optional

from core.entities.billing_event import BillingEvent
from core.entities.database import Database
from core.entities.server import Server
from core.entities.user import User
from core.exceptions import ConflictError
from core.repositories.database_repository import DatabaseRepository
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository


class InMemoryUserRepository(UserRepository):
    """Пользователи в памяти процесса. Наружу отдаются копии."""
    def __init__(self):
        self._users: Dict[str, User] = {}
        self._events: Dict[str, List[BillingEvent]] = {}
        self._lock = Lock()

    def add(self, user: User) -> User:
        email, username = user.email, user.username.lower()
        with self._lock:
            for existing in self._users.values():
                if existing.email == email:
                    raise ConflictError("User with this email already exists")
                if existing.username.lower() == username:
                    raise ConflictError("Username is already taken")
            self._users[user.id] = deepcopy(user)
        return deepcopy(user)

    def get_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return deepcopy(user) if user else None

    def get_by_username(self, username: str) -> Optional[User]:
        key = username.lower()
        with self._lock:
            for user in self._users.values():
                if user.username.lower() == key:
                    return deepcopy(user)
        return None

    def get_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return deepcopy(user)
        return None

    def update(self, user: User) -> User:
        with self._lock:
            if user.id not in self._users:
                raise ValueError("User not found")
            self._users[user.id] = deepcopy(user)
        return deepcopy(user)

    def count(self) -> int:
        with self._lock:
            return len(self._users)

    def log_billing_event(self, event: BillingEvent) -> None:
        with self._lock:
            self._events.setdefault(event.user_id, []).append(deepcopy(event))

    def list_billing_events(self, user_id: str, limit: int = 100) -> List[BillingEvent]:
        with self._lock:
            events = self._events.get(user_id, [])
            return [deepcopy(e) for e in reversed(events[-limit:])] if limit > 0 else []


class InMemoryServerRepository(ServerRepository):
    def __init__(self):
        self._servers: Dict[str, Server] = {}
        self._by_owner: Dict[str, List[str]] = {}  # owner_id -> [server_id]
        self._lock = Lock()

    def add(self, server: Server) -> Server:
        with self._lock:
            self._insert(server)
        return deepcopy(server)

    def add_within_quota(self, server: Server, quota: int) -> Optional[Server]:
        with self._lock:
            if len(self._by_owner.get(server.owner_id, [])) >= quota:
                return None
            self._insert(server)
        return deepcopy(server)

    def _insert(self, server: Server) -> None:
        # вызывается под self._lock
        self._servers[server.id] = deepcopy(server)
        self._by_owner.setdefault(server.owner_id, []).append(server.id)

    def get(self, server_id: str) -> Optional[Server]:
        with self._lock:
            server = self._servers.get(server_id)
            return deepcopy(server) if server else None

    def update(self, server: Server) -> Server:
        with self._lock:
            if server.id not in self._servers:
                raise ValueError("Server not found")
            self._servers[server.id] = deepcopy(server)
        return deepcopy(server)

    def list_by_owner(self, owner_id: str) -> List[Server]:
        with self._lock:
            return [deepcopy(self._servers[sid]) for sid in self._by_owner.get(owner_id, [])]

    def delete(self, server_id: str) -> bool:
        with self._lock:
            server = self._servers.pop(server_id, None)
            if server is None:
                return False
            self._by_owner[server.owner_id].remove(server_id)
            return True

    def count(self) -> int:
        with self._lock:
            return len(self._servers)


class InMemoryDatabaseRepository(DatabaseRepository):
    """Базы данных пока не создаются, коллекция всегда пустая."""
    def __init__(self):
        self._databases: Dict[str, Database] = {}

    def list_by_owner(self, owner_id: str) -> List[Database]:
        return [deepcopy(d) for d in self._databases.values() if d.owner_id == owner_id]

    def count(self) -> int:
        return len(self._databases)
