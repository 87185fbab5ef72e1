"""
Environment variables read by model-fallback.

Provider endpoints and credentials keep the names their own SDKs use;
library settings share the ``MODEL_FALLBACK_`` prefix. Everything that reads
the environment goes through :class:`EnvVar` and the getters below.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)


class EnvVar(str, Enum):
    """Every environment variable the library reads."""

    # Provider endpoints and credentials
    OLLAMA_HOST = "OLLAMA_HOST"
    LMSTUDIO_HOST = "LMSTUDIO_HOST"
    LMSTUDIO_API_KEY = "LMSTUDIO_API_KEY"
    GEMINI_API_KEY = "GEMINI_API_KEY"
    GEMINI_BASE_URL = "GEMINI_BASE_URL"
    OPENAI_API_KEY = "OPENAI_API_KEY"
    OPENAI_BASE_URL = "OPENAI_BASE_URL"
    ANTHROPIC_API_KEY = "ANTHROPIC_API_KEY"
    ANTHROPIC_BASE_URL = "ANTHROPIC_BASE_URL"

    # Fallback behaviour
    DEFAULT_PROVIDER = "MODEL_FALLBACK_DEFAULT_PROVIDER"
    HIERARCHY = "MODEL_FALLBACK_HIERARCHY"
    EQUIVALENCE_FILE = "MODEL_FALLBACK_EQUIVALENCE_FILE"

    # Timeouts and cache lifetimes, in seconds
    HEALTH_TIMEOUT = "MODEL_FALLBACK_HEALTH_TIMEOUT"
    HEALTH_CACHE_TTL = "MODEL_FALLBACK_HEALTH_CACHE_TTL"
    CATALOG_CACHE_TTL = "MODEL_FALLBACK_CATALOG_CACHE_TTL"

    LOG_LEVEL = "MODEL_FALLBACK_LOG_LEVEL"


def get_env(var: EnvVar, default: str | None = None) -> str | None:
    """Value of ``var``, or ``default`` when unset."""
    return os.getenv(var.value, default)


def get_env_float(var: EnvVar, default: float | None = None) -> float | None:
    """
    Value of ``var`` as seconds.

    An unparsable value is logged and ``default`` is used instead, so a typo
    in one tunable does not stop the monitor from starting.

    Example:
        >>> get_env_float(EnvVar.HEALTH_TIMEOUT, 3.0)
    """
    value = get_env(var)
    if value is None:
        return default

    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring {var.value}={value!r}: not a number, using {default}")
        return default


def get_env_list(var: EnvVar, default: list[str] | None = None) -> list[str]:
    """
    Comma-separated value of ``var`` as a list.

    Items are stripped and empty items dropped, so ``"ollama, ,gemini"``
    reads as ``["ollama", "gemini"]``.
    """
    value = get_env(var)
    if value is None:
        return list(default or [])

    return [item.strip() for item in value.split(",") if item.strip()]


__all__ = [
    "EnvVar",
    "get_env",
    "get_env_float",
    "get_env_list",
]
