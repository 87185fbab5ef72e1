# src/model_fallback/model_management/provider.py
"""
Provider configuration models.

Pydantic models describing how to reach each statically known provider, and
the registry that builds them from environment variables.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from model_fallback.config.defaults import (
    DEFAULT_ANTHROPIC_BASE_URL,
    DEFAULT_GEMINI_BASE_URL,
    DEFAULT_LMSTUDIO_API_KEY,
    DEFAULT_LMSTUDIO_HOST,
    DEFAULT_OLLAMA_API_KEY,
    DEFAULT_OLLAMA_HOST,
    DEFAULT_OPENAI_BASE_URL,
)
from model_fallback.config.enums import ProviderType
from model_fallback.config.env_vars import EnvVar, get_env
from model_fallback.model_management.errors import ProviderConfigurationError

logger = logging.getLogger(__name__)

# Canonical liveness endpoint per provider, relative to its base URL.
HEALTH_PATHS: dict[ProviderType, str] = {
    ProviderType.OLLAMA: "/api/tags",
    ProviderType.LMSTUDIO: "/v1/models",
    ProviderType.GEMINI: "/models",
    ProviderType.OPENAI: "/v1/models",
    ProviderType.ANTHROPIC: "/v1/models",
}


def provider_health_path(provider: ProviderType) -> str:
    """Liveness path for a provider."""
    return HEALTH_PATHS[provider]


class ProviderConfig(BaseModel):
    """
    Connection settings for one provider.

    Remote providers require an API key; local servers accept a placeholder.
    """

    provider: ProviderType = Field(..., description="Provider identity")
    base_url: Optional[str] = Field(None, description="API base URL")
    api_key: Optional[str] = Field(None, description="Bearer credential")
    requires_auth: bool = Field(
        default=False, description="True if probes are rejected without api_key"
    )

    model_config = {"frozen": True}

    @property
    def name(self) -> str:
        return self.provider.value

    @property
    def is_local(self) -> bool:
        return self.provider.is_local

    @property
    def health_path(self) -> str:
        return provider_health_path(self.provider)

    @property
    def health_url(self) -> str:
        """
        Full liveness URL.

        Raises:
            ProviderConfigurationError: If no base URL is configured
        """
        if not self.base_url:
            raise ProviderConfigurationError(
                self.name, f"No base URL configured for {self.name}"
            )
        return f"{self.base_url.rstrip('/')}{self.health_path}"

    def auth_headers(self) -> dict[str, str]:
        """
        Headers to send with a probe.

        Raises:
            ProviderConfigurationError: If the provider requires a key and has none
        """
        if self.api_key:
            return {"Authorization": f"Bearer {self.api_key}"}
        if self.requires_auth:
            raise ProviderConfigurationError(
                self.name, f"No API key configured for {self.name}"
            )
        return {}


class ProviderRegistry:
    """
    The fixed set of provider configurations known to this process.

    Built once at startup; there is no runtime registration.
    """

    def __init__(self, configs: Iterable[ProviderConfig]):
        self._configs: dict[str, ProviderConfig] = {}
        for config in configs:
            self._configs[config.name] = config

    @classmethod
    def from_env(cls) -> ProviderRegistry:
        """Build a registry for every ProviderType from environment variables."""
        configs = [
            ProviderConfig(
                provider=ProviderType.OLLAMA,
                base_url=get_env(EnvVar.OLLAMA_HOST, DEFAULT_OLLAMA_HOST),
                api_key=DEFAULT_OLLAMA_API_KEY,
            ),
            ProviderConfig(
                provider=ProviderType.LMSTUDIO,
                base_url=get_env(EnvVar.LMSTUDIO_HOST, DEFAULT_LMSTUDIO_HOST),
                api_key=get_env(EnvVar.LMSTUDIO_API_KEY, DEFAULT_LMSTUDIO_API_KEY),
            ),
            ProviderConfig(
                provider=ProviderType.GEMINI,
                base_url=get_env(EnvVar.GEMINI_BASE_URL, DEFAULT_GEMINI_BASE_URL),
                api_key=get_env(EnvVar.GEMINI_API_KEY),
                requires_auth=True,
            ),
            ProviderConfig(
                provider=ProviderType.OPENAI,
                base_url=get_env(EnvVar.OPENAI_BASE_URL, DEFAULT_OPENAI_BASE_URL),
                api_key=get_env(EnvVar.OPENAI_API_KEY),
                requires_auth=True,
            ),
            ProviderConfig(
                provider=ProviderType.ANTHROPIC,
                base_url=get_env(
                    EnvVar.ANTHROPIC_BASE_URL, DEFAULT_ANTHROPIC_BASE_URL
                ),
                api_key=get_env(EnvVar.ANTHROPIC_API_KEY),
                requires_auth=True,
            ),
        ]
        logger.debug(f"Loaded {len(configs)} provider configurations")
        return cls(configs)

    @property
    def providers(self) -> list[str]:
        """Provider names in registration order."""
        return list(self._configs)

    def get(self, provider: str) -> ProviderConfig:
        """
        Look up a provider's configuration.

        Raises:
            ProviderConfigurationError: If the provider is unknown or not registered
        """
        if provider not in ProviderType.values():
            raise ProviderConfigurationError(
                provider,
                f"Unknown provider '{provider}'. Known providers: "
                f"{', '.join(ProviderType.values())}",
            )
        config = self._configs.get(provider)
        if config is None:
            raise ProviderConfigurationError(
                provider, f"Provider '{provider}' is not configured"
            )
        return config

    def __contains__(self, provider: object) -> bool:
        return provider in self._configs

    def __len__(self) -> int:
        return len(self._configs)
