"""Convert stored chat history into provider-agnostic chat messages."""

from __future__ import annotations

from typing import Any

from jai_chat.storage.models import Message

IMAGE_FALLBACK_PROMPT = "What's in this image?"


def build_messages(history: list[Message]) -> list[dict[str, Any]]:
    """Map each stored turn to a ``{"role", "content"}`` message.

    A turn with an image becomes a multi-part message: a text part (the
    turn's text, or IMAGE_FALLBACK_PROMPT when empty) followed by an
    ``image_url`` part. Other turns keep plain string content.
    """
    messages: list[dict[str, Any]] = []

    for record in history:
        if record.image_url and not record.is_ai:
            text = record.content if record.content and record.content.strip() else IMAGE_FALLBACK_PROMPT
            content: str | list[dict[str, Any]] = [
                {"type": "text", "text": text},
                {"type": "image_url", "image_url": {"url": record.image_url}},
            ]
        else:
            content = record.content

        messages.append({"role": record.role.value, "content": content})

    return messages


def latest_user_text(history: list[Message]) -> str:
    """Text of the most recent user turn, or an empty string."""
    for record in reversed(history):
        if not record.is_ai:
            return record.content or ""
    return ""
