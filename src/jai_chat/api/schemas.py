"""Request bodies for the HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from jai_chat.core.modes import DEFAULT_MODE, ModeKey


class ChatTurnRequest(BaseModel):
    chat_id: str = Field(min_length=1)
    message: str = ""
    image_url: Optional[str] = None
    # Unknown mode keys fail validation with 422 before anything is stored
    mode: ModeKey = DEFAULT_MODE


class CreateChatRequest(BaseModel):
    title: Optional[str] = None


class SignupRequest(BaseModel):
    username: str = ""
    password: str = ""
    name: Optional[str] = None


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class EventTriggerModel(BaseModel):
    trigger: str = Field(min_length=1)
    response: str = Field(min_length=1)


class CustomModelConfigRequest(BaseModel):
    base_prompt: str = ""
    event_triggers: list[EventTriggerModel] = Field(default_factory=list)
    random_injections: list[str] = Field(default_factory=list)
