"""Admin-configured per-mode behavior layered on top of a mode's default prompt.

For customizable modes, each turn is checked against the stored config:

1. Trigger phrases: the first ``{trigger, response}`` pair (in list order)
   whose trigger is a case-insensitive substring of the message returns its
   response verbatim and skips generation.
2. Random injection: with probability ``injection_probability`` one of the
   injection strings is chosen to prefix the generated reply.
3. Base prompt: a non-blank base prompt replaces the mode's system prompt.

Loading problems never fail a turn; they degrade to ``NoOverride``.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Optional, Union

from jai_chat.core.modes import is_customizable
from jai_chat.log import get_logger
from jai_chat.storage.custom_model_repo import CustomModelRepository
from jai_chat.storage.models import EventTrigger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class NoOverride:
    pass


@dataclass(frozen=True, slots=True)
class CannedResponse:
    text: str


@dataclass(frozen=True, slots=True)
class PromptOverride:
    base_prompt_override: Optional[str] = None
    injected_prefix: Optional[str] = None


Decision = Union[NoOverride, CannedResponse, PromptOverride]

NO_OVERRIDE = NoOverride()


def parse_event_triggers(raw: list[Any]) -> list[EventTrigger]:
    """Keep well-formed entries in order; drop malformed pairs and blank triggers or responses."""
    triggers: list[EventTrigger] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        trigger, response = item.get("trigger"), item.get("response")
        if not isinstance(trigger, str) or not isinstance(response, str):
            continue
        # A blank trigger is a substring of every message
        if not trigger.strip():
            continue
        if not response.strip():
            continue
        triggers.append(EventTrigger(trigger=trigger, response=response))
    return triggers


def parse_random_injections(raw: list[Any]) -> list[str]:
    return [item for item in raw if isinstance(item, str) and item.strip()]


def match_trigger(message: str, triggers: list[EventTrigger]) -> Optional[str]:
    """First trigger in list order contained in *message* wins, not the longest."""
    normalized = message.lower().strip()
    for trigger in triggers:
        if trigger.trigger.lower().strip() in normalized:
            return trigger.response
    return None


class CustomOverrideEngine:
    """Decides canned replies, prompt substitution, and injections for a turn."""

    def __init__(
        self,
        repo: CustomModelRepository,
        injection_probability: float = 0.15,
        rng: random.Random | None = None,
    ):
        self._repo = repo
        self._injection_probability = injection_probability
        self._rng = rng or random.Random()

    def pick_injection(self, injections: list[str]) -> Optional[str]:
        if not injections:
            return None
        if self._rng.random() >= self._injection_probability:
            return None
        return self._rng.choice(injections)

    async def decide(self, mode_key: str, user_message: str) -> Decision:
        if not is_customizable(mode_key):
            return NO_OVERRIDE

        try:
            config = await self._repo.get_config(mode_key)
        except Exception as e:
            logger.warning("custom_config_load_failed", mode=mode_key, error=str(e))
            return NO_OVERRIDE

        if config is None:
            logger.debug("custom_config_missing", mode=mode_key)
            return NO_OVERRIDE

        triggers = parse_event_triggers(config.event_triggers)
        injections = parse_random_injections(config.random_injections)

        canned = match_trigger(user_message, triggers)
        if canned is not None:
            logger.info("custom_trigger_matched", mode=mode_key)
            return CannedResponse(canned)

        injected = self.pick_injection(injections)
        base_prompt = config.base_prompt if config.base_prompt.strip() else None

        if injected is None and base_prompt is None:
            return NO_OVERRIDE

        logger.info(
            "custom_override_applied",
            mode=mode_key,
            base_prompt=base_prompt is not None,
            injected=injected is not None,
        )
        return PromptOverride(base_prompt_override=base_prompt, injected_prefix=injected)
