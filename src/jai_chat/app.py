"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

import random

from jai_chat.ai.client import ChatProvider, create_provider
from jai_chat.ai.handler import ChatService
from jai_chat.ai.orchestrator import ProviderFallbackOrchestrator
from jai_chat.ai.overrides import CustomOverrideEngine
from jai_chat.config import AppConfig
from jai_chat.core.accounts import AccountService
from jai_chat.log import get_logger
from jai_chat.storage.chat_repo import ChatRepository
from jai_chat.storage.custom_model_repo import CustomModelRepository
from jai_chat.storage.database import Database
from jai_chat.storage.user_repo import UserRepository

logger = get_logger(__name__)


class JaiChatApp:
    """Top-level application orchestrator."""

    def __init__(
        self,
        config: AppConfig,
        providers: list[ChatProvider] | None = None,
        rng: random.Random | None = None,
    ):
        self.config = config
        self.db = Database(config.storage.db_path)
        self.chat_repo = ChatRepository(self.db)
        self.custom_model_repo = CustomModelRepository(self.db)
        self.user_repo = UserRepository(self.db)

        if providers is None:
            providers = self._create_providers(config)
        self.override_engine = CustomOverrideEngine(
            self.custom_model_repo,
            injection_probability=config.generation.injection_probability,
            rng=rng,
        )
        self.orchestrator = ProviderFallbackOrchestrator(
            providers=providers,
            override_engine=self.override_engine,
            generation=config.generation,
        )
        self.chat_service = ChatService(self.chat_repo, self.orchestrator)
        self.account_service = AccountService(self.user_repo, self.chat_repo)

    @staticmethod
    def _create_providers(config: AppConfig) -> list[ChatProvider]:
        """Build clients for providers that have credentials, in fallback order."""
        providers: list[ChatProvider] = []
        for provider_cfg in config.providers:
            if not provider_cfg.has_credentials:
                logger.warning("provider_skipped", provider=provider_cfg.name, reason="missing_api_key")
                continue
            providers.append(create_provider(provider_cfg, timeout=config.generation.timeout))
        return providers

    async def start(self) -> None:
        """Initialize storage."""
        await self.db.initialize()
        logger.info(
            "jai_chat_started",
            providers=[p.name for p in self.orchestrator.providers],
        )

    async def stop(self) -> None:
        await self.db.close()
        logger.info("jai_chat_stopped")
