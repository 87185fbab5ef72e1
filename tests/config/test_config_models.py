# tests/config/test_config_models.py
"""Tests for FallbackConfig and the configuration enums."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from model_fallback.config.defaults import (
    DEFAULT_FALLBACK_HIERARCHY,
    DEFAULT_HEALTH_CACHE_TTL,
    DEFAULT_HEALTH_TIMEOUT,
    DEFAULT_PROVIDER,
)
from model_fallback.config.enums import ProviderType, is_local_provider
from model_fallback.config.env_vars import EnvVar
from model_fallback.config.models import FallbackConfig


class TestProviderType:
    """Tests for the provider enum."""

    def test_values_in_declaration_order(self) -> None:
        assert ProviderType.values() == [
            "ollama",
            "lmstudio",
            "gemini",
            "openai",
            "anthropic",
        ]

    def test_locality(self) -> None:
        assert ProviderType.OLLAMA.is_local
        assert ProviderType.LMSTUDIO.is_local
        assert not ProviderType.GEMINI.is_local
        assert is_local_provider("ollama")
        assert not is_local_provider("anthropic")
        assert not is_local_provider("mystery")


class TestFallbackConfig:
    """Tests for FallbackConfig."""

    def test_defaults(self) -> None:
        config = FallbackConfig()

        assert config.default_provider == DEFAULT_PROVIDER == "gemini"
        assert config.fallback_hierarchy == list(DEFAULT_FALLBACK_HIERARCHY)
        assert config.fallback_hierarchy == ["ollama", "gemini"]
        assert config.health_timeout == DEFAULT_HEALTH_TIMEOUT == 3.0
        assert config.health_cache_ttl == DEFAULT_HEALTH_CACHE_TTL == 300.0
        assert config.equivalence_file is None

    def test_unknown_default_provider(self) -> None:
        with pytest.raises(ValidationError, match="Unknown provider 'mystery'"):
            FallbackConfig(default_provider="mystery")

    def test_hierarchy_validation(self) -> None:
        with pytest.raises(ValidationError):
            FallbackConfig(fallback_hierarchy=[])
        with pytest.raises(ValidationError):
            FallbackConfig(fallback_hierarchy=["ollama", "mystery"])

    def test_hierarchy_deduplicated(self) -> None:
        config = FallbackConfig(fallback_hierarchy=["ollama", "gemini", "ollama"])
        assert config.fallback_hierarchy == ["ollama", "gemini"]

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            FallbackConfig(health_timeout=0)

    def test_frozen(self) -> None:
        config = FallbackConfig()
        with pytest.raises(ValidationError):
            config.health_timeout = 10.0

    def test_from_env(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv(EnvVar.DEFAULT_PROVIDER.value, "ollama")
        clean_env.setenv(EnvVar.HIERARCHY.value, "lmstudio, ollama, gemini")
        clean_env.setenv(EnvVar.HEALTH_TIMEOUT.value, "1.5")
        clean_env.setenv(EnvVar.EQUIVALENCE_FILE.value, "/etc/equivalence.json")

        config = FallbackConfig.from_env()

        assert config.default_provider == "ollama"
        assert config.fallback_hierarchy == ["lmstudio", "ollama", "gemini"]
        assert config.health_timeout == 1.5
        assert config.health_cache_ttl == DEFAULT_HEALTH_CACHE_TTL
        assert config.equivalence_file == "/etc/equivalence.json"

    def test_from_env_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        assert FallbackConfig.from_env() == FallbackConfig()

    def test_from_env_loads_dotenv(
        self, clean_env: pytest.MonkeyPatch, tmp_path
    ) -> None:
        dotenv = tmp_path / ".env"
        dotenv.write_text("MODEL_FALLBACK_HEALTH_TIMEOUT=7\n")
        # Registered so the value loaded from the file is removed afterwards
        clean_env.setenv(EnvVar.HEALTH_TIMEOUT.value, "")
        clean_env.delenv(EnvVar.HEALTH_TIMEOUT.value)

        config = FallbackConfig.from_env(load_dotenv_file=True, dotenv_path=str(dotenv))

        assert config.health_timeout == 7.0
