"""Chat and message repository with ownership-scoped queries."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import aiosqlite

from jai_chat.core.identity import Identity
from jai_chat.errors import PersistenceError
from jai_chat.log import get_logger
from jai_chat.storage.database import Database
from jai_chat.storage.models import DEFAULT_CHAT_TITLE, Chat, Message

logger = get_logger(__name__)


class ChatRepository:
    """CRUD over chats and their messages."""

    def __init__(self, db: Database):
        self._db = db

    async def create_chat(self, owner: Identity, title: str = DEFAULT_CHAT_TITLE) -> Chat:
        """Create a chat owned by *owner* (user id or guest fingerprint)."""
        chat_id = uuid.uuid4().hex
        user_id = owner.value if owner.is_authenticated else None
        guest_id = None if owner.is_authenticated else owner.value
        try:
            await self._db.conn.execute(
                "INSERT INTO chats (id, user_id, guest_id, title) VALUES (?, ?, ?, ?)",
                (chat_id, user_id, guest_id, title),
            )
            await self._db.conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to create chat: {e}") from e
        chat = await self.get_chat(chat_id)
        if chat is None:
            raise PersistenceError(f"Chat {chat_id} missing after insert")
        return chat

    async def get_chat(self, chat_id: str) -> Optional[Chat]:
        cursor = await self._db.conn.execute("SELECT * FROM chats WHERE id = ?", (chat_id,))
        row = await cursor.fetchone()
        return self._row_to_chat(row) if row else None

    async def get_all_chats(self, owner: Identity) -> list[Chat]:
        """List chats owned by *owner*, newest first."""
        if owner.is_authenticated:
            query = "SELECT * FROM chats WHERE user_id = ? ORDER BY created_at DESC, rowid DESC"
        else:
            query = (
                "SELECT * FROM chats WHERE guest_id = ? AND user_id IS NULL "
                "ORDER BY created_at DESC, rowid DESC"
            )
        cursor = await self._db.conn.execute(query, (owner.value,))
        rows = await cursor.fetchall()
        return [self._row_to_chat(row) for row in rows]

    async def delete_chat(self, chat_id: str) -> None:
        try:
            await self._db.conn.execute("DELETE FROM chats WHERE id = ?", (chat_id,))
            await self._db.conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to delete chat: {e}") from e

    async def update_chat_title(self, chat_id: str, title: str) -> None:
        try:
            await self._db.conn.execute("UPDATE chats SET title = ? WHERE id = ?", (title, chat_id))
            await self._db.conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to update chat title: {e}") from e

    async def claim_guest_chats(self, guest_id: str, user_id: str) -> int:
        """Move every unclaimed chat of a guest to *user_id*. Returns rows moved.

        One UPDATE statement, so a chat created by the guest mid-login is
        either claimed or left for the next login, never half-migrated.
        """
        try:
            cursor = await self._db.conn.execute(
                "UPDATE chats SET user_id = ?, guest_id = NULL WHERE guest_id = ? AND user_id IS NULL",
                (user_id, guest_id),
            )
            await self._db.conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to claim guest chats: {e}") from e
        if cursor.rowcount:
            logger.info("guest_chats_claimed", user_id=user_id, count=cursor.rowcount)
        return cursor.rowcount

    async def create_message(
        self,
        chat_id: str,
        content: str,
        image_url: Optional[str] = None,
        is_ai: bool = False,
    ) -> Message:
        """Append a turn to a chat and return it as stored."""
        message_id = uuid.uuid4().hex
        try:
            await self._db.conn.execute(
                "INSERT INTO messages (id, chat_id, content, image_url, is_ai) VALUES (?, ?, ?, ?, ?)",
                (message_id, chat_id, content, image_url, int(is_ai)),
            )
            await self._db.conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to save message: {e}") from e
        cursor = await self._db.conn.execute("SELECT * FROM messages WHERE id = ?", (message_id,))
        row = await cursor.fetchone()
        return self._row_to_message(row)

    async def get_messages(self, chat_id: str) -> list[Message]:
        """All turns of a chat in insertion order.

        Ordered by rowid rather than ``created_at`` so two turns stamped in
        the same millisecond, or across a clock step, keep their append order.
        """
        cursor = await self._db.conn.execute(
            """SELECT * FROM messages
               WHERE chat_id = ?
               ORDER BY rowid ASC""",
            (chat_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_message(row) for row in rows]

    @staticmethod
    def _row_to_chat(row) -> Chat:
        return Chat(
            id=row["id"],
            title=row["title"],
            user_id=row["user_id"],
            guest_id=row["guest_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_message(row) -> Message:
        return Message(
            id=row["id"],
            chat_id=row["chat_id"],
            content=row["content"],
            image_url=row["image_url"],
            is_ai=bool(row["is_ai"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
