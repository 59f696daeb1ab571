"""Общие фикстуры тестов."""
import os

# Настройки читаются при импорте app.core.config
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test-notebook.db")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import httpx

from app.core.config import Settings
from app.core.db import Database
from app.core.security import create_access_token
from app.domains.notebook.services import NotebookService
from app.main import create_app

USER_A = "user-a"
USER_B = "user-b"


@pytest.fixture
async def database(tmp_path):
    """Временная SQLite база со схемой"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'notebook.db'}")
    await db.open()
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def service(session):
    return NotebookService(session)


@pytest.fixture
async def make_service(database):
    """Сервис на отдельной сессии (как отдельный запрос)"""
    sessions = []

    def factory() -> NotebookService:
        session = database.session()
        sessions.append(session)
        return NotebookService(session)

    yield factory

    for session in sessions:
        await session.close()


@pytest.fixture
def app(database):
    settings = Settings(database_url=database.url, jwt_secret=os.environ["JWT_SECRET"], create_schema=False)
    return create_app(settings=settings, database=database)


def auth_headers(user_id: str) -> dict:
    token = create_access_token({"sub": user_id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="auth_headers")
def auth_headers_fixture():
    return auth_headers


@pytest.fixture
async def http_client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def client_a(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://test", headers=auth_headers(USER_A)
    ) as client:
        yield client


@pytest.fixture
async def client_b(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://test", headers=auth_headers(USER_B)
    ) as client:
        yield client
