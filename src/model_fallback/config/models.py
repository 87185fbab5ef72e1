"""Pydantic configuration model - type safe, loaded from the environment."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from model_fallback.config.defaults import (
    DEFAULT_CATALOG_CACHE_TTL,
    DEFAULT_FALLBACK_HIERARCHY,
    DEFAULT_HEALTH_CACHE_TTL,
    DEFAULT_HEALTH_TIMEOUT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PROVIDER,
)
from model_fallback.config.enums import ProviderType
from model_fallback.config.env_vars import (
    EnvVar,
    get_env,
    get_env_float,
    get_env_list,
)


def _validate_provider_name(name: str) -> str:
    if name not in ProviderType.values():
        raise ValueError(
            f"Unknown provider '{name}'. Known providers: "
            f"{', '.join(ProviderType.values())}"
        )
    return name


class FallbackConfig(BaseModel):
    """Tunables for health checking and fallback resolution.

    All durations in seconds. Immutable after creation.
    """

    default_provider: str = Field(
        default=DEFAULT_PROVIDER,
        description="Provider assumed for model names without a prefix",
    )
    fallback_hierarchy: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FALLBACK_HIERARCHY),
        description="Providers consulted, in order, when a model is unavailable",
    )
    health_timeout: float = Field(
        default=DEFAULT_HEALTH_TIMEOUT,
        gt=0,
        description="Liveness probe timeout",
    )
    health_cache_ttl: float = Field(
        default=DEFAULT_HEALTH_CACHE_TTL,
        ge=0,
        description="How long a provider health result stays valid",
    )
    catalog_cache_ttl: float = Field(
        default=DEFAULT_CATALOG_CACHE_TTL,
        ge=0,
        description="How long a discovered model catalog stays valid",
    )
    equivalence_file: str | None = Field(
        default=None,
        description="Path to a model equivalence table (bundled table if None)",
    )
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Log level")

    model_config = {"frozen": True}

    @field_validator("default_provider")
    @classmethod
    def validate_default_provider(cls, v: str) -> str:
        """Reject provider names outside the known set."""
        return _validate_provider_name(v)

    @field_validator("fallback_hierarchy")
    @classmethod
    def validate_hierarchy(cls, v: list[str]) -> list[str]:
        """Known providers only, duplicates dropped, order kept."""
        if not v:
            raise ValueError("fallback_hierarchy must name at least one provider")
        seen: list[str] = []
        for name in v:
            _validate_provider_name(name)
            if name not in seen:
                seen.append(name)
        return seen

    @classmethod
    def from_env(
        cls, load_dotenv_file: bool = False, dotenv_path: str | None = None
    ) -> FallbackConfig:
        """
        Build a config from ``MODEL_FALLBACK_*`` environment variables.

        Args:
            load_dotenv_file: Load a ``.env`` file into the environment first
            dotenv_path: Explicit ``.env`` location (searched for if None)

        Returns:
            FallbackConfig with environment overrides applied over defaults
        """
        if load_dotenv_file:
            from dotenv import load_dotenv

            load_dotenv(dotenv_path)

        return cls(
            default_provider=get_env(EnvVar.DEFAULT_PROVIDER, DEFAULT_PROVIDER),
            fallback_hierarchy=get_env_list(
                EnvVar.HIERARCHY, default=list(DEFAULT_FALLBACK_HIERARCHY)
            ),
            health_timeout=get_env_float(
                EnvVar.HEALTH_TIMEOUT, DEFAULT_HEALTH_TIMEOUT
            ),
            health_cache_ttl=get_env_float(
                EnvVar.HEALTH_CACHE_TTL, DEFAULT_HEALTH_CACHE_TTL
            ),
            catalog_cache_ttl=get_env_float(
                EnvVar.CATALOG_CACHE_TTL, DEFAULT_CATALOG_CACHE_TTL
            ),
            equivalence_file=get_env(EnvVar.EQUIVALENCE_FILE),
            log_level=get_env(EnvVar.LOG_LEVEL, DEFAULT_LOG_LEVEL),
        )
