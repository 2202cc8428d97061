"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    USER = "user"
    ASSISTANT = "assistant"


class IdentityKind(StrEnum):
    AUTHENTICATED = "authenticated"
    GUEST = "guest"
