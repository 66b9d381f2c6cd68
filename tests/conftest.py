"""
Общие fixtures: репозитории в памяти, ручной планировщик, тестовое приложение.
"""

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from config.settings import Settings
from core.entities.user import User
from core.services.scheduler import Scheduler
from infrastructure.db.memory import (
    InMemoryDatabaseRepository, InMemoryServerRepository, InMemoryUserRepository,
)
from main import create_app


class ManualScheduler(Scheduler):
    """Копит отложенные вызовы, тест сам решает когда и в каком порядке их выполнить"""

    def __init__(self):
        self.pending = []

    def schedule(self, delay_seconds, callback):
        self.pending.append((delay_seconds, callback))

    def run_all(self, reverse: bool = False):
        pending, self.pending = self.pending, []
        for _, callback in (reversed(pending) if reverse else pending):
            callback()


@pytest.fixture
def users():
    return InMemoryUserRepository()


@pytest.fixture
def servers():
    return InMemoryServerRepository()


@pytest.fixture
def databases():
    return InMemoryDatabaseRepository()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def make_user(users):
    """Пользователь напрямую через репозиторий, без bcrypt и стартового сервера"""
    def _make(username: str = "owner", plan: str = "free") -> User:
        return users.add(User(
            id=str(uuid4()),
            username=username,
            email=f"{username}@example.com",
            password_hash="not-a-real-hash",
            created_at=datetime.now(timezone.utc).isoformat(),
            plan=plan,
            coins=100,
        ))
    return _make


@pytest.fixture
def static_dir(tmp_path):
    root = tmp_path / "static"
    root.mkdir()
    (root / "index.html").write_text("<!DOCTYPE html><title>Bot Hosting</title>", encoding="utf-8")
    (root / "app.js").write_text("console.log('ok');", encoding="utf-8")
    return root


@pytest.fixture
def test_settings(static_dir):
    return Settings(
        SECRET_KEY="test-secret",
        ENVIRONMENT="development",
        STORAGE_BACKEND="memory",
        STATIC_DIR=str(static_dir),
    )


@pytest.fixture
def app(test_settings, scheduler):
    return create_app(test_settings, scheduler=scheduler)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def signup(client):
    def _signup(username: str = "ana", email: str = "ana@x.com", password: str = "secret1"):
        response = client.post(
            "/api/auth/signup",
            json={"username": username, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return data["token"], data
    return _signup


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_header
