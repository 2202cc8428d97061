"""Chat-completion provider abstraction with OpenAI-compatible and Anthropic backends.

Every provider accepts the same request shape: a system prompt plus a list of
role-tagged messages whose content is either a string or a list of
``{"type": "text"}`` / ``{"type": "image_url"}`` parts. Backends translate
that shape to their own wire format, so the orchestrator can swap one for
another without knowing which it is talking to.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

from jai_chat.config import ProviderConfig
from jai_chat.errors import ProviderError
from jai_chat.log import get_logger

logger = get_logger(__name__)

_DATA_URI_PATTERN = re.compile(r"^data:(?P<media_type>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)


class ChatProvider(ABC):
    """Abstract base class for LLM chat-completion backends."""

    def __init__(self, name: str, model: str):
        self.name = name
        self.model = model

    @abstractmethod
    async def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> str:
        """Return the completion text.

        Raises ProviderError for a non-success response or a completion with
        no usable text.
        """
        ...


class OpenAICompatibleProvider(ChatProvider):
    """Any endpoint speaking the OpenAI chat completions API (GitHub Models, OpenRouter, ...)."""

    def __init__(self, config: ProviderConfig, timeout: float):
        import openai

        super().__init__(config.name, config.model)
        self._errors = (openai.OpenAIError,)
        self._client = openai.AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=0,
            timeout=timeout,
        )

    async def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> str:
        payload = [{"role": "system", "content": system}, *messages]

        logger.debug("provider_request", provider=self.name, model=self.model, message_count=len(payload))
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=payload,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except self._errors as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}") from e

        if not response.choices:
            raise ProviderError(self.name, "completion has no choices")
        text = response.choices[0].message.content
        if not text or not text.strip():
            raise ProviderError(self.name, "completion text is empty")

        usage = getattr(response, "usage", None)
        logger.debug(
            "provider_response",
            provider=self.name,
            input_tokens=getattr(usage, "prompt_tokens", 0),
            output_tokens=getattr(usage, "completion_tokens", 0),
            finish_reason=response.choices[0].finish_reason,
        )
        return text


class AnthropicProvider(ChatProvider):
    """Anthropic Messages API backend using the official SDK."""

    def __init__(self, config: ProviderConfig, timeout: float):
        import anthropic

        super().__init__(config.name, config.model)
        self._errors = (anthropic.AnthropicError,)
        self._client = anthropic.AsyncAnthropic(
            api_key=config.api_key,
            base_url=config.base_url,
            max_retries=0,
            timeout=timeout,
        )

    async def complete(
        self,
        system: str,
        messages: list[dict[str, Any]],
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> str:
        converted = [
            {"role": m["role"], "content": self._convert_content(m["content"])} for m in messages
        ]

        logger.debug("provider_request", provider=self.name, model=self.model, message_count=len(converted))
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                system=system,
                messages=converted,
                temperature=temperature,
            )
        except self._errors as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}") from e

        text = "".join(block.text for block in response.content if block.type == "text")
        if not text.strip():
            raise ProviderError(self.name, "completion text is empty")

        logger.debug(
            "provider_response",
            provider=self.name,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            stop_reason=response.stop_reason,
        )
        return text

    @staticmethod
    def _convert_content(content: str | list[dict[str, Any]]) -> str | list[dict[str, Any]]:
        """Translate image_url parts into Anthropic image blocks."""
        if isinstance(content, str):
            return content

        blocks: list[dict[str, Any]] = []
        for part in content:
            if part.get("type") == "image_url":
                url = part["image_url"]["url"]
                match = _DATA_URI_PATTERN.match(url)
                if match:
                    source = {
                        "type": "base64",
                        "media_type": match.group("media_type"),
                        "data": match.group("data"),
                    }
                else:
                    source = {"type": "url", "url": url}
                blocks.append({"type": "image", "source": source})
            else:
                blocks.append(part)
        return blocks


def create_provider(config: ProviderConfig, timeout: float) -> ChatProvider:
    """Build the backend named by ``config.kind``."""
    if config.kind == "anthropic":
        return AnthropicProvider(config, timeout)
    return OpenAICompatibleProvider(config, timeout)
