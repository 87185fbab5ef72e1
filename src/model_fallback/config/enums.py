"""Configuration enums - no magic strings!"""

from __future__ import annotations

from enum import Enum

from model_fallback.config.defaults import (
    PROVIDER_ANTHROPIC,
    PROVIDER_GEMINI,
    PROVIDER_LMSTUDIO,
    PROVIDER_OLLAMA,
    PROVIDER_OPENAI,
)


class ProviderType(str, Enum):
    """Every backend this library knows how to probe.

    The set is closed: a provider name outside this enum is a configuration
    error, never silently mapped to a generic endpoint.
    """

    OLLAMA = PROVIDER_OLLAMA
    LMSTUDIO = PROVIDER_LMSTUDIO
    GEMINI = PROVIDER_GEMINI
    OPENAI = PROVIDER_OPENAI
    ANTHROPIC = PROVIDER_ANTHROPIC

    @property
    def is_local(self) -> bool:
        """True for inference servers running on the user's machine."""
        return self in (ProviderType.OLLAMA, ProviderType.LMSTUDIO)

    @classmethod
    def values(cls) -> list[str]:
        """Plain string names, in declaration order."""
        return [member.value for member in cls]


class FailureKind(str, Enum):
    """Why a health check or a fallback resolution did not succeed."""

    CONNECTIVITY = "connectivity"
    PROTOCOL = "protocol"
    TIMEOUT = "timeout"
    CONFIGURATION = "configuration"
    NOT_INITIALIZED = "not_initialized"
    NO_HEALTHY_PROVIDER = "no_healthy_provider"


class ModelStatus(str, Enum):
    """Tracked runtime status of one (provider, model) pair."""

    UNKNOWN = "unknown"
    AVAILABLE = "available"
    FAILED = "failed"


def is_local_provider(provider: str) -> bool:
    """Check whether a provider name refers to a local inference server."""
    try:
        return ProviderType(provider).is_local
    except ValueError:
        return False
