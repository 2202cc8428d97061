"""Tests for configuration loading."""

import pytest

from jai_chat.config import AppConfig, ProviderConfig, load_config

CONFIG_YAML = """
log_level: DEBUG
data_dir: ./tmp-data
storage:
  db_path: ${data_dir}/chat.db
generation:
  temperature: 0.5
  injection_probability: 0.1
providers:
  - name: github
    kind: openai
    api_key: ${TEST_GITHUB_TOKEN}
    base_url: https://models.example/v1
    model: gpt-4o
  - name: openrouter
    kind: openai
    api_key: ${TEST_OPENROUTER_KEY}
    base_url: https://openrouter.example/api/v1
    model: some/model
"""


def test_load_config_interpolates_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_GITHUB_TOKEN", "ghp_123")
    monkeypatch.delenv("TEST_OPENROUTER_KEY", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")

    config = load_config(path, tmp_path / "missing.env")

    assert config.log_level == "DEBUG"
    assert config.storage.db_path == "./tmp-data/chat.db"
    assert config.generation.temperature == 0.5
    assert config.generation.injection_probability == 0.1
    assert config.providers[0].api_key == "ghp_123"
    # Unresolved ${VAR} counts as no credentials
    assert [p.name for p in config.active_providers()] == ["github"]


def test_dotenv_file_loaded(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("TEST_OPENROUTER_KEY", raising=False)
    (tmp_path / ".env").write_text("TEST_OPENROUTER_KEY=or-key\n", encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")

    config = load_config(path, tmp_path / ".env")
    assert [p.name for p in config.active_providers()] == ["openrouter"]


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_defaults():
    config = AppConfig()
    assert config.providers == []
    assert config.generation.injection_probability == 0.15
    assert config.generation.degraded_response


def test_blank_key_has_no_credentials():
    assert not ProviderConfig(name="x", model="m", api_key="  ").has_credentials
    assert ProviderConfig(name="x", model="m", api_key="k").has_credentials


def test_injection_probability_bounds():
    with pytest.raises(ValueError):
        AppConfig(generation={"injection_probability": 1.5})
