"""Registry of personality modes: label, description, and base system prompt.

Prompts are fixed at deploy time. Modes flagged ``customizable`` additionally
consult the admin-editable custom model configuration on every turn.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from jai_chat.errors import UnknownModeError

ModeKey = Literal[
    "standard",
    "creative",
    "concise",
    "expert",
    "casual",
    "unprofessional",
    "j-realistic",
]


@dataclass(frozen=True, slots=True)
class ModeConfig:
    key: str
    name: str
    description: str
    system_prompt: str
    customizable: bool = False


_MODES: tuple[ModeConfig, ...] = (
    ModeConfig(
        key="standard",
        name="JAI",
        description="Professional and helpful",
        system_prompt=(
            "You are Joseph AI, a helpful and professional AI assistant. "
            "Provide clear, accurate, and thoughtful responses."
        ),
    ),
    ModeConfig(
        key="creative",
        name="JAI Creative",
        description="Imaginative and playful",
        system_prompt=(
            "You are Joseph AI in creative mode. Be imaginative, playful, and think outside the box. "
            "Use metaphors, storytelling, and creative approaches to explain concepts."
        ),
    ),
    ModeConfig(
        key="concise",
        name="JAI Concise",
        description="Brief and to the point",
        system_prompt=(
            "You are Joseph AI in concise mode. Keep responses brief and to the point. "
            "No fluff, just the essential information."
        ),
    ),
    ModeConfig(
        key="expert",
        name="JAI Expert",
        description="Detailed technical explanations",
        system_prompt=(
            "You are Joseph AI in expert mode. Provide detailed, technical, and comprehensive explanations. "
            "Include relevant examples, context, and in-depth analysis."
        ),
    ),
    ModeConfig(
        key="casual",
        name="JAI Casual",
        description="Friendly conversational tone",
        system_prompt=(
            "You are Joseph AI in casual mode. Talk like a relaxed friend: informal, warm, "
            "and conversational, while still being helpful."
        ),
    ),
    ModeConfig(
        key="unprofessional",
        name="J-REAL",
        description="Unfiltered and blunt",
        system_prompt=(
            "You are J-REAL, the unfiltered version of Joseph AI. Be blunt, sarcastic, and "
            "informal, and give the user some attitude."
        ),
        customizable=True,
    ),
    ModeConfig(
        key="j-realistic",
        name="J-Realistic",
        description="Custom trained model",
        system_prompt=(
            "You are J-Realistic, a custom AI model with unique behaviors and responses "
            "configured by the admin."
        ),
        customizable=True,
    ),
)

MODES: dict[str, ModeConfig] = {mode.key: mode for mode in _MODES}

DEFAULT_MODE = "standard"


def resolve_mode(key: str) -> ModeConfig:
    """Return the mode for *key*, raising UnknownModeError for anything else."""
    try:
        return MODES[key]
    except KeyError:
        raise UnknownModeError(key) from None


def list_modes() -> list[ModeConfig]:
    return list(_MODES)


def is_customizable(key: str) -> bool:
    mode = MODES.get(key)
    return mode is not None and mode.customizable
