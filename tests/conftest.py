"""Pytest configuration for all tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from docstore.core.config import Settings
from docstore.main import create_app
from docstore.models.database import CollectionStore
from docstore.models.file import UploadStore
from docstore.models.user import UserStore


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "storage_root": tmp_path / "db",
        "secret_key": "test-secret-key-with-enough-bytes-for-hs256",
        "require_auth": False,
        "log_format": "console",
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def store(tmp_path) -> CollectionStore:
    return CollectionStore(tmp_path / "db")


@pytest.fixture
def uploads(store) -> UploadStore:
    return UploadStore(store)


@pytest.fixture
def users(tmp_path) -> UserStore:
    return UserStore(tmp_path / "db")


@pytest_asyncio.fixture
async def client(settings) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against an app that does not require tokens."""
    app = create_app(settings)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def secured_client(tmp_path) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against an app that enforces tokens on every data route."""
    app = create_app(make_settings(tmp_path, require_auth=True))
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def token(secured_client) -> str:
    credentials = {"username": "alice", "password": "s3cret"}
    response = await secured_client.post("/register", json=credentials)
    assert response.status_code == 201
    response = await secured_client.post("/login", json=credentials)
    assert response.status_code == 200
    return response.json()["accessToken"]
