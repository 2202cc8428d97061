"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


class ProviderConfig(BaseModel):
    name: str
    kind: Literal["openai", "anthropic"] = "openai"
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str

    @property
    def has_credentials(self) -> bool:
        """False when the key is empty or still an unresolved ${VAR} reference."""
        key = (self.api_key or "").strip()
        return bool(key) and not _ENV_VAR_PATTERN.fullmatch(key)


class GenerationConfig(BaseModel):
    temperature: float = 0.7
    max_tokens: int = 4096
    timeout: float = Field(default=60.0, gt=0)  # seconds, per provider attempt
    injection_probability: float = Field(default=0.15, ge=0.0, le=1.0)
    degraded_response: str = "Sorry, the assistant is currently unavailable."


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 5000
    session_secret: Optional[str] = None
    trust_proxy: bool = False
    cors_origins: list[str] = Field(default_factory=list)

    @field_validator("session_secret")
    @classmethod
    def drop_unresolved(cls, value: Optional[str]) -> Optional[str]:
        return _unresolved_to_none(value)


class AdminConfig(BaseModel):
    token: Optional[str] = None

    @field_validator("token")
    @classmethod
    def drop_unresolved(cls, value: Optional[str]) -> Optional[str]:
        return _unresolved_to_none(value)


class StorageConfig(BaseModel):
    db_path: str = "./data/jai_chat.db"


class AppConfig(BaseModel):
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"
    data_dir: str = "./data"
    providers: list[ProviderConfig] = Field(default_factory=list)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    admin: AdminConfig = Field(default_factory=AdminConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    def active_providers(self) -> list[ProviderConfig]:
        """Providers in fallback order, skipping those without credentials."""
        return [p for p in self.providers if p.has_credentials]


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _unresolved_to_none(value: Optional[str]) -> Optional[str]:
    """Treat a blank value or a leftover ${VAR} reference as unset."""
    if value is None or not value.strip() or _ENV_VAR_PATTERN.fullmatch(value.strip()):
        return None
    return value


def _interpolate_env_vars(text: str, extra: dict[str, str] | None = None) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        if extra and var_name in extra:
            return extra[var_name]
        value = os.environ.get(var_name)
        if value is None:
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration from YAML file with env-var interpolation."""
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_file}")

    raw_text = config_file.read_text(encoding="utf-8")

    # First pass: extract data_dir for self-referencing
    raw_data = yaml.safe_load(raw_text) or {}
    data_dir = raw_data.get("data_dir", "./data")
    data_dir = _interpolate_env_vars(data_dir)

    # Second pass: interpolate all env vars
    interpolated = _interpolate_env_vars(raw_text, extra={"data_dir": data_dir})
    data = yaml.safe_load(interpolated) or {}

    return AppConfig(**data)
