import sqlite3
import threading
from typing import Optional, List
from pathlib import Path
import json

from core.entities.billing_event import BillingEvent
from core.entities.database import Database
from core.entities.server import Server
from core.entities.user import User
from core.exceptions import ConflictError
from core.repositories.database_repository import DatabaseRepository
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository


def init_db(db_path: str) -> None:
    if db_path != ":memory:" and not db_path.startswith("file:"):
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, check_same_thread=False)
    try:
        cur = conn.cursor()

        cur.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            username TEXT UNIQUE NOT NULL COLLATE NOCASE,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            plan TEXT NOT NULL DEFAULT 'free',
            coins INTEGER NOT NULL DEFAULT 0 CHECK (coins >= 0),
            avatar TEXT NOT NULL DEFAULT '',
            settings TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL,
            last_login TEXT
        );
        """)

        cur.execute("""
        CREATE TABLE IF NOT EXISTS servers (
            id TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL,
            name TEXT NOT NULL,
            type TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'offline',
            runtime TEXT NOT NULL,
            region TEXT NOT NULL,
            specs TEXT NOT NULL,
            version INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            FOREIGN KEY(owner_id) REFERENCES users(id) ON DELETE CASCADE
        );
        """)
        cur.execute("CREATE INDEX IF NOT EXISTS idx_servers_owner ON servers(owner_id);")

        cur.execute("""
        CREATE TABLE IF NOT EXISTS databases (
            id TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL,
            name TEXT NOT NULL,
            engine TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'offline',
            created_at TEXT NOT NULL,
            FOREIGN KEY(owner_id) REFERENCES users(id) ON DELETE CASCADE
        );
        """)

        cur.execute("""
        CREATE TABLE IF NOT EXISTS billing_events (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            type TEXT NOT NULL,
            plan TEXT NOT NULL,
            coins_after INTEGER NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );
        """)
        conn.commit()
    finally:
        conn.close()


class LockedConnection(sqlite3.Connection):
    """Соединение с собственной блокировкой.
    Одним соединением пользуются пул потоков FastAPI и event loop, поэтому
    запрос и commit каждой операции выполняются под self.lock."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lock = threading.RLock()


def connect(db_path: str) -> LockedConnection:
    conn = sqlite3.connect(db_path, check_same_thread=False, factory=LockedConnection)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _conflict(exc: sqlite3.IntegrityError) -> ConflictError:
    # sqlite сообщает колонку: "UNIQUE constraint failed: users.email"
    if "users.email" in str(exc):
        return ConflictError("User with this email already exists")
    if "users.username" in str(exc):
        return ConflictError("Username is already taken")
    return ConflictError("Record already exists")


class SQLiteUserRepository(UserRepository):
    def __init__(self, conn: LockedConnection):
        self.conn = conn

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            created_at=row["created_at"],
            plan=row["plan"],
            coins=int(row["coins"]),
            avatar=row["avatar"],
            last_login=row["last_login"],
            settings=json.loads(row["settings"] or "{}"),
        )

    def _row_to_event(self, row: sqlite3.Row) -> BillingEvent:
        return BillingEvent(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            plan=row["plan"],
            coins_after=int(row["coins_after"]),
            created_at=row["created_at"],
        )

    def _fetch_one(self, query: str, params: tuple) -> Optional[User]:
        with self.conn.lock:
            row = self.conn.execute(query, params).fetchone()
        return self._row_to_user(row) if row else None

    def add(self, user: User) -> User:
        with self.conn.lock:
            try:
                self.conn.execute(
                    "INSERT INTO users (id, username, email, password_hash, plan, coins, avatar, settings, created_at, last_login) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (user.id, user.username, user.email, user.password_hash, user.plan, int(user.coins),
                     user.avatar, json.dumps(user.settings, ensure_ascii=False), user.created_at, user.last_login),
                )
                self.conn.commit()
            except sqlite3.IntegrityError as e:
                self.conn.rollback()
                raise _conflict(e) from e
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))

    def get_by_username(self, username: str) -> Optional[User]:
        return self._fetch_one("SELECT * FROM users WHERE username = ?", (username,))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._fetch_one("SELECT * FROM users WHERE email = ?", (email,))

    def update(self, user: User) -> User:
        with self.conn.lock:
            cur = self.conn.execute(
                "UPDATE users SET plan = ?, coins = ?, avatar = ?, settings = ?, last_login = ? WHERE id = ?",
                (user.plan, int(user.coins), user.avatar, json.dumps(user.settings, ensure_ascii=False),
                 user.last_login, user.id),
            )
            if cur.rowcount == 0:
                raise ValueError("User not found")
            self.conn.commit()
        return user

    def count(self) -> int:
        with self.conn.lock:
            return int(self.conn.execute("SELECT COUNT(*) FROM users").fetchone()[0])

    def log_billing_event(self, event: BillingEvent) -> None:
        with self.conn.lock:
            self.conn.execute(
                "INSERT INTO billing_events (id, user_id, type, plan, coins_after, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                (event.id, event.user_id, event.type, event.plan, int(event.coins_after), event.created_at),
            )
            self.conn.commit()

    def list_billing_events(self, user_id: str, limit: int = 100) -> List[BillingEvent]:
        with self.conn.lock:
            rows = self.conn.execute(
                "SELECT * FROM billing_events WHERE user_id = ? ORDER BY rowid DESC LIMIT ?",
                (user_id, int(limit)),
            ).fetchall()
        return [self._row_to_event(r) for r in rows]


class SQLiteServerRepository(ServerRepository):
    def __init__(self, conn: LockedConnection):
        self.conn = conn

    def _row_to_server(self, row: sqlite3.Row) -> Server:
        return Server(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            type=row["type"],
            runtime=row["runtime"],
            region=row["region"],
            created_at=row["created_at"],
            status=row["status"],
            specs=json.loads(row["specs"]),
            version=int(row["version"]),
        )

    def _values(self, server: Server) -> tuple:
        return (server.id, server.owner_id, server.name, server.type, server.status, server.runtime,
                server.region, json.dumps(server.specs), int(server.version), server.created_at)

    def add(self, server: Server) -> Server:
        with self.conn.lock:
            self.conn.execute(
                "INSERT INTO servers (id, owner_id, name, type, status, runtime, region, specs, version, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                self._values(server),
            )
            self.conn.commit()
        return server

    def add_within_quota(self, server: Server, quota: int) -> Optional[Server]:
        with self.conn.lock:
            cur = self.conn.execute(
                "INSERT INTO servers (id, owner_id, name, type, status, runtime, region, specs, version, created_at) "
                "SELECT ?, ?, ?, ?, ?, ?, ?, ?, ?, ? "
                "WHERE (SELECT COUNT(*) FROM servers WHERE owner_id = ?) < ?",
                self._values(server) + (server.owner_id, int(quota)),
            )
            self.conn.commit()
            if cur.rowcount == 0:
                return None
        return server

    def get(self, server_id: str) -> Optional[Server]:
        with self.conn.lock:
            row = self.conn.execute("SELECT * FROM servers WHERE id = ?", (server_id,)).fetchone()
        return self._row_to_server(row) if row else None

    def update(self, server: Server) -> Server:
        with self.conn.lock:
            cur = self.conn.execute(
                "UPDATE servers SET name = ?, status = ?, runtime = ?, region = ?, specs = ?, version = ? WHERE id = ?",
                (server.name, server.status, server.runtime, server.region, json.dumps(server.specs),
                 int(server.version), server.id),
            )
            if cur.rowcount == 0:
                raise ValueError("Server not found")
            self.conn.commit()
        return server

    def list_by_owner(self, owner_id: str) -> List[Server]:
        with self.conn.lock:
            rows = self.conn.execute(
                "SELECT * FROM servers WHERE owner_id = ? ORDER BY rowid", (owner_id,),
            ).fetchall()
        return [self._row_to_server(r) for r in rows]

    def delete(self, server_id: str) -> bool:
        with self.conn.lock:
            cur = self.conn.execute("DELETE FROM servers WHERE id = ?", (server_id,))
            self.conn.commit()
            return cur.rowcount > 0

    def count(self) -> int:
        with self.conn.lock:
            return int(self.conn.execute("SELECT COUNT(*) FROM servers").fetchone()[0])


class SQLiteDatabaseRepository(DatabaseRepository):
    def __init__(self, conn: LockedConnection):
        self.conn = conn

    def list_by_owner(self, owner_id: str) -> List[Database]:
        with self.conn.lock:
            rows = self.conn.execute(
                "SELECT * FROM databases WHERE owner_id = ? ORDER BY rowid", (owner_id,),
            ).fetchall()
        return [
            Database(
                id=r["id"], owner_id=r["owner_id"], name=r["name"], engine=r["engine"],
                created_at=r["created_at"], status=r["status"],
            )
            for r in rows
        ]

    def count(self) -> int:
        with self.conn.lock:
            return int(self.conn.execute("SELECT COUNT(*) FROM databases").fetchone()[0])
