"""Generate the assistant reply for a turn, failing over across providers.

Attempt sequence for one turn::

    Composing -> Attempting[0] -> Success
                              \\-> Attempting[1] -> Success
                                               \\-> ... -> Degraded

Providers are tried once each, in configured order, every attempt bounded
by ``timeout``. When all fail, or none are configured, the fixed degraded
text is returned instead of raising, so the caller can still persist an
assistant turn.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from jai_chat.ai.client import ChatProvider
from jai_chat.ai.conversation import build_messages, latest_user_text
from jai_chat.ai.overrides import CannedResponse, CustomOverrideEngine, PromptOverride
from jai_chat.config import GenerationConfig
from jai_chat.core.modes import resolve_mode
from jai_chat.log import get_logger
from jai_chat.storage.models import Message

logger = get_logger(__name__)


class ProviderFallbackOrchestrator:
    """Composes the request and walks the provider list until one succeeds."""

    def __init__(
        self,
        providers: list[ChatProvider],
        override_engine: CustomOverrideEngine,
        generation: GenerationConfig | None = None,
    ):
        self._providers = list(providers)
        self._overrides = override_engine
        self._generation = generation or GenerationConfig()

    @property
    def providers(self) -> list[ChatProvider]:
        return list(self._providers)

    @property
    def degraded_response(self) -> str:
        return self._generation.degraded_response

    async def generate(self, history: list[Message], mode_key: str) -> str:
        """Return assistant text for *history*; never raises for provider failures."""
        mode = resolve_mode(mode_key)
        decision = await self._overrides.decide(mode.key, latest_user_text(history))

        if isinstance(decision, CannedResponse):
            return decision.text

        system_prompt = mode.system_prompt
        injected_prefix: Optional[str] = None
        if isinstance(decision, PromptOverride):
            if decision.base_prompt_override:
                system_prompt = decision.base_prompt_override
            injected_prefix = decision.injected_prefix

        messages = build_messages(history)

        text = await self._complete_with_fallback(system_prompt, messages, mode.key)
        if text is None:
            return self._generation.degraded_response

        if injected_prefix:
            return f"{injected_prefix}\n\n{text}"
        return text

    async def _complete_with_fallback(
        self, system_prompt: str, messages: list[dict], mode_key: str
    ) -> Optional[str]:
        if not self._providers:
            logger.error("no_providers_configured", mode=mode_key)
            return None

        for attempt, provider in enumerate(self._providers):
            try:
                text = await asyncio.wait_for(
                    provider.complete(
                        system=system_prompt,
                        messages=messages,
                        max_tokens=self._generation.max_tokens,
                        temperature=self._generation.temperature,
                    ),
                    timeout=self._generation.timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "provider_timeout",
                    provider=provider.name,
                    attempt=attempt,
                    timeout=self._generation.timeout,
                )
                continue
            except Exception as e:
                logger.warning("provider_failed", provider=provider.name, attempt=attempt, error=str(e))
                continue

            logger.info("provider_succeeded", provider=provider.name, attempt=attempt, mode=mode_key)
            return text

        logger.error("all_providers_failed", mode=mode_key, attempts=len(self._providers))
        return None
