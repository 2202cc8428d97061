"""Persistence for admin-editable per-mode custom model configuration."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

import aiosqlite

from jai_chat.errors import PersistenceError
from jai_chat.log import get_logger
from jai_chat.storage.database import Database
from jai_chat.storage.models import CustomModelConfig

logger = get_logger(__name__)


class CustomModelRepository:
    """One row per mode key; triggers and injections are stored as JSON text."""

    def __init__(self, db: Database):
        self._db = db

    async def get_config(self, mode_key: str) -> Optional[CustomModelConfig]:
        """Load a mode's config. Raises ValueError when the stored JSON is not a list."""
        cursor = await self._db.conn.execute(
            "SELECT * FROM custom_model_configs WHERE mode_key = ?", (mode_key,)
        )
        row = await cursor.fetchone()
        return self._row_to_config(row) if row else None

    async def list_configs(self) -> list[CustomModelConfig]:
        cursor = await self._db.conn.execute("SELECT * FROM custom_model_configs ORDER BY mode_key")
        rows = await cursor.fetchall()
        return [self._row_to_config(row) for row in rows]

    async def upsert_config(
        self,
        mode_key: str,
        base_prompt: str,
        event_triggers: list[dict[str, str]],
        random_injections: list[str],
    ) -> CustomModelConfig:
        try:
            await self._db.conn.execute(
                """INSERT INTO custom_model_configs
                   (mode_key, base_prompt, event_triggers, random_injections)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(mode_key) DO UPDATE SET
                       base_prompt = excluded.base_prompt,
                       event_triggers = excluded.event_triggers,
                       random_injections = excluded.random_injections,
                       updated_at = strftime('%Y-%m-%dT%H:%M:%f','now')""",
                (mode_key, base_prompt, json.dumps(event_triggers), json.dumps(random_injections)),
            )
            await self._db.conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to save custom model config: {e}") from e
        logger.info(
            "custom_config_saved",
            mode=mode_key,
            triggers=len(event_triggers),
            injections=len(random_injections),
        )
        config = await self.get_config(mode_key)
        if config is None:
            raise PersistenceError(f"Custom model config {mode_key} missing after save")
        return config

    async def delete_config(self, mode_key: str) -> bool:
        try:
            cursor = await self._db.conn.execute(
                "DELETE FROM custom_model_configs WHERE mode_key = ?", (mode_key,)
            )
            await self._db.conn.commit()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to delete custom model config: {e}") from e
        return cursor.rowcount > 0

    @staticmethod
    def _load_list(raw: str, column: str) -> list[Any]:
        value = json.loads(raw)
        if not isinstance(value, list):
            raise ValueError(f"{column} must be a JSON array, got {type(value).__name__}")
        return value

    @classmethod
    def _row_to_config(cls, row) -> CustomModelConfig:
        return CustomModelConfig(
            mode_key=row["mode_key"],
            base_prompt=row["base_prompt"] or "",
            event_triggers=cls._load_list(row["event_triggers"], "event_triggers"),
            random_injections=cls._load_list(row["random_injections"], "random_injections"),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
