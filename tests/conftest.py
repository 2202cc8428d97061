"""Shared pytest fixtures.

Every test that touches storage gets its own SQLite file under tmp_path.
"""

from __future__ import annotations

import random

import pytest

from jai_chat.config import AppConfig
from jai_chat.core.identity import Identity
from jai_chat.storage.chat_repo import ChatRepository
from jai_chat.storage.custom_model_repo import CustomModelRepository
from jai_chat.storage.database import Database
from jai_chat.storage.user_repo import UserRepository


@pytest.fixture
async def db(tmp_path):
    database = Database(str(tmp_path / "test.db"))
    await database.initialize()
    yield database
    await database.close()


@pytest.fixture
def chat_repo(db) -> ChatRepository:
    return ChatRepository(db)


@pytest.fixture
def custom_repo(db) -> CustomModelRepository:
    return CustomModelRepository(db)


@pytest.fixture
def user_repo(db) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def guest() -> Identity:
    return Identity.guest("f" * 64)


@pytest.fixture
async def user(user_repo) -> Identity:
    created = await user_repo.create_user("user-1", "hash", "User One")
    return Identity.user(created.id)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        storage={"db_path": str(tmp_path / "app.db")},
        server={"session_secret": "test-secret"},
        admin={"token": "admin-token"},
        generation={"timeout": 1.0},
    )
