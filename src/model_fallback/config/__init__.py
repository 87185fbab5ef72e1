"""
Configuration management for model-fallback.

Defaults, environment variables, enums, and the pydantic FallbackConfig.
"""

from model_fallback.config.enums import (
    FailureKind,
    ModelStatus,
    ProviderType,
    is_local_provider,
)
from model_fallback.config.env_vars import EnvVar, get_env
from model_fallback.config.logging import setup_logging
from model_fallback.config.models import FallbackConfig

__all__ = [
    "EnvVar",
    "FailureKind",
    "FallbackConfig",
    "ModelStatus",
    "ProviderType",
    "get_env",
    "is_local_provider",
    "setup_logging",
]
