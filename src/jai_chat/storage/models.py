"""Data models for storage layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from jai_chat.core.types import Role

DEFAULT_CHAT_TITLE = "New Chat"


@dataclass
class Chat:
    id: str
    title: str
    created_at: datetime
    user_id: Optional[str] = None
    guest_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "user_id": self.user_id,
            "guest_id": self.guest_id,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Message:
    id: str
    chat_id: str
    content: str
    is_ai: bool
    created_at: datetime
    image_url: Optional[str] = None

    @property
    def role(self) -> Role:
        return Role.ASSISTANT if self.is_ai else Role.USER

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chat_id": self.chat_id,
            "content": self.content,
            "image_url": self.image_url,
            "is_ai": self.is_ai,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class EventTrigger:
    trigger: str
    response: str


@dataclass
class CustomModelConfig:
    mode_key: str
    base_prompt: str = ""
    # Raw persisted entries; the override engine filters out malformed ones
    event_triggers: list[Any] = field(default_factory=list)
    random_injections: list[Any] = field(default_factory=list)
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode_key": self.mode_key,
            "base_prompt": self.base_prompt,
            "event_triggers": self.event_triggers,
            "random_injections": self.random_injections,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class User:
    id: str
    username: str
    password_hash: str
    name: str
    created_at: datetime

    def to_public_dict(self) -> dict[str, Any]:
        return {"id": self.id, "username": self.username, "name": self.name}
