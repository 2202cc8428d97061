"""User account repository."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import aiosqlite

from jai_chat.errors import ConflictError, PersistenceError
from jai_chat.storage.database import Database
from jai_chat.storage.models import User


class UserRepository:
    def __init__(self, db: Database):
        self._db = db

    async def create_user(self, username: str, password_hash: str, name: str) -> User:
        user_id = uuid.uuid4().hex
        try:
            await self._db.conn.execute(
                "INSERT INTO users (id, username, password_hash, name) VALUES (?, ?, ?, ?)",
                (user_id, username, password_hash, name),
            )
            await self._db.conn.commit()
        except aiosqlite.IntegrityError as e:
            raise ConflictError("Username already exists") from e
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to create user: {e}") from e
        user = await self.get_user(user_id)
        if user is None:
            raise PersistenceError(f"User {user_id} missing after insert")
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        cursor = await self._db.conn.execute("SELECT * FROM users WHERE id = ?", (user_id,))
        row = await cursor.fetchone()
        return self._row_to_user(row) if row else None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        cursor = await self._db.conn.execute("SELECT * FROM users WHERE username = ?", (username,))
        row = await cursor.fetchone()
        return self._row_to_user(row) if row else None

    @staticmethod
    def _row_to_user(row) -> User:
        return User(
            id=row["id"],
            username=row["username"],
            password_hash=row["password_hash"],
            name=row["name"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
