"""Chat service: ownership checks and the end-to-end flow of one chat turn."""

from __future__ import annotations

import asyncio
import weakref
from typing import Optional

from jai_chat.ai.orchestrator import ProviderFallbackOrchestrator
from jai_chat.core.identity import Identity
from jai_chat.core.modes import DEFAULT_MODE, resolve_mode
from jai_chat.errors import AccessDeniedError, NotFoundError, ValidationError
from jai_chat.log import get_logger
from jai_chat.storage.chat_repo import ChatRepository
from jai_chat.storage.models import DEFAULT_CHAT_TITLE, Chat, Message

logger = get_logger(__name__)

TITLE_MAX_LENGTH = 40
IMAGE_CHAT_TITLE = "Image"


def derive_title(text: str) -> str:
    """Chat title from the first user message, truncated with an ellipsis."""
    text = " ".join(text.split())
    if not text:
        return IMAGE_CHAT_TITLE
    if len(text) > TITLE_MAX_LENGTH:
        return text[:TITLE_MAX_LENGTH] + "..."
    return text


class ChatService:
    """Handles the full flow: identity -> ownership -> user turn -> history -> AI turn."""

    def __init__(self, chat_repo: ChatRepository, orchestrator: ProviderFallbackOrchestrator):
        self._repo = chat_repo
        self._orchestrator = orchestrator
        # An entry lives only while some send for that chat holds or awaits its lock
        self._chat_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @property
    def repo(self) -> ChatRepository:
        return self._repo

    async def create_chat(self, identity: Identity, title: Optional[str] = None) -> Chat:
        title = (title or "").strip() or DEFAULT_CHAT_TITLE
        chat = await self._repo.create_chat(identity, title)
        logger.info("chat_created", chat_id=chat.id, owner_kind=identity.kind.value)
        return chat

    async def list_chats(self, identity: Identity) -> list[Chat]:
        return await self._repo.get_all_chats(identity)

    async def get_owned_chat(self, identity: Identity, chat_id: str) -> Chat:
        chat = await self._repo.get_chat(chat_id)
        if chat is None:
            raise NotFoundError("Chat", chat_id)
        if not identity.owns(chat):
            raise AccessDeniedError("Chat", chat_id)
        return chat

    async def get_messages(self, identity: Identity, chat_id: str) -> list[Message]:
        await self.get_owned_chat(identity, chat_id)
        return await self._repo.get_messages(chat_id)

    async def delete_chat(self, identity: Identity, chat_id: str) -> None:
        await self.get_owned_chat(identity, chat_id)
        await self._repo.delete_chat(chat_id)
        logger.info("chat_deleted", chat_id=chat_id)

    async def claim_guest_chats(self, guest_fingerprint: str, user_id: str) -> int:
        """Re-own a guest's unclaimed chats after login or signup. Safe to repeat."""
        return await self._repo.claim_guest_chats(guest_fingerprint, user_id)

    async def send(
        self,
        identity: Identity,
        chat_id: str,
        message: str = "",
        image_url: Optional[str] = None,
        mode_key: Optional[str] = None,
    ) -> Message:
        """Persist the user turn, generate a reply, and persist the assistant turn.

        Validation and ownership are checked before anything is written. Turns
        within one chat are serialized, so a second send waits until the first
        reply has been stored before it loads history.
        """
        mode = resolve_mode(mode_key or DEFAULT_MODE)
        text = message or ""
        if not text.strip() and not image_url:
            raise ValidationError("A message or an image is required")

        chat = await self.get_owned_chat(identity, chat_id)

        lock = self._chat_locks.setdefault(chat_id, asyncio.Lock())
        async with lock:
            user_turn = await self._repo.create_message(chat_id, text, image_url=image_url, is_ai=False)
            history = await self._repo.get_messages(chat_id)

            if chat.title == DEFAULT_CHAT_TITLE and sum(1 for m in history if not m.is_ai) == 1:
                await self._repo.update_chat_title(chat_id, derive_title(user_turn.content))

            reply = await self._orchestrator.generate(history, mode.key)
            ai_turn = await self._repo.create_message(chat_id, reply, is_ai=True)

        logger.info(
            "chat_turn_completed",
            chat_id=chat_id,
            mode=mode.key,
            history_length=len(history),
            has_image=image_url is not None,
        )
        return ai_turn
