# src/model_fallback/model_management/models.py
"""
Data models for health checking, fallback resolution and usage tracking.

Pydantic models so results are validated on construction and serialise
cleanly for callers that render or export them.
"""

from __future__ import annotations

import time
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from model_fallback.config.enums import FailureKind, ModelStatus


def model_key(model: str, provider: str) -> str:
    """Composite key identifying one (provider, model) pair."""
    return f"{provider}:{model}"


class ModelInfo(BaseModel):
    """
    One servable model as reported by discovery.

    Immutable once obtained; a catalog refresh replaces entries wholesale.
    """

    id: str = Field(..., description="Canonical model id")
    provider: str = Field(..., description="Owning provider")
    aliases: List[str] = Field(default_factory=list, description="Short names")
    display_name: Optional[str] = Field(None, description="Human-readable name")
    description: Optional[str] = Field(None, description="Free-text description")

    model_config = {"frozen": True}

    def matches(self, name: str, case_sensitive: bool = True) -> bool:
        """Check whether ``name`` is this model's id or one of its aliases."""
        if case_sensitive:
            return self.id == name or name in self.aliases
        lowered = name.lower()
        return self.id.lower() == lowered or any(
            alias.lower() == lowered for alias in self.aliases
        )


class HealthStatus(BaseModel):
    """Outcome of one liveness probe against a provider."""

    provider: str = Field(..., description="Provider name")
    is_healthy: bool = Field(..., description="True if the probe returned 2xx")
    last_checked: float = Field(
        default_factory=time.time, description="Epoch seconds of the probe"
    )
    response_time: Optional[float] = Field(
        None, description="Probe round trip in milliseconds"
    )
    error: Optional[str] = Field(None, description="Why the probe failed")
    failure: Optional[FailureKind] = Field(None, description="Failure category")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def require_error_when_unhealthy(self):
        """An unhealthy status always explains itself."""
        if not self.is_healthy and not self.error:
            object.__setattr__(self, "error", "Provider unhealthy")
        return self


class HealthCheckOptions(BaseModel):
    """Per-call overrides for a health check."""

    timeout: Optional[float] = Field(None, gt=0, description="Probe timeout (s)")
    cache_ttl: Optional[float] = Field(None, ge=0, description="Cache TTL (s)")
    force_refresh: bool = Field(default=False, description="Bypass the cache")

    model_config = {"frozen": True}


class ModelState(BaseModel):
    """Runtime status and usage history of one (provider, model) pair."""

    model: ModelInfo
    provider: str
    status: ModelStatus = ModelStatus.UNKNOWN
    usage_count: int = 0
    last_checked: float = Field(default_factory=time.time)
    last_used: Optional[float] = None
    response_time: Optional[float] = None
    error_message: Optional[str] = None

    @property
    def key(self) -> str:
        return model_key(self.model.id, self.provider)


class FallbackOptions(BaseModel):
    """Caller preferences for a fallback resolution."""

    prefer_local: bool = Field(default=False, description="Local providers first")
    prefer_remote: bool = Field(default=False, description="Remote providers first")
    exclude_providers: List[str] = Field(
        default_factory=list, description="Providers never consulted"
    )
    max_attempts: Optional[int] = Field(
        None, gt=0, description="Maximum candidate providers to walk"
    )
    timeout: Optional[float] = Field(
        None, gt=0, description="Probe timeout per candidate (s)"
    )

    model_config = {"frozen": True}


class FallbackResult(BaseModel):
    """
    Outcome of a resolution attempt.

    Always fully populated; failures are described, never raised.
    """

    original_model: str
    selected_model: str
    selected_provider: str
    fallback_reason: Optional[str] = None
    attempted_providers: List[str] = Field(default_factory=list)
    is_original_available: bool = False
    failure: Optional[FailureKind] = None

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def dedupe_attempted(self):
        """Keep first occurrence order, drop repeats."""
        unique = list(dict.fromkeys(self.attempted_providers))
        if unique != self.attempted_providers:
            object.__setattr__(self, "attempted_providers", unique)
        return self

    @property
    def used_fallback(self) -> bool:
        """True if a different provider/model than requested was selected."""
        return not self.is_original_available and self.failure is None


class ProviderSummary(BaseModel):
    """Aggregated health and model counts for one provider."""

    provider: str
    is_healthy: bool
    model_count: int = 0
    available_models: int = 0
    failed_models: int = 0
    avg_response_time: Optional[float] = None
    last_health_check: Optional[float] = None


class ModelUsage(BaseModel):
    """Usage entry of :class:`UsageStats`."""

    model: str
    provider: str
    usage_count: int
    last_used: Optional[float] = None
    status: ModelStatus


class ProviderUsage(BaseModel):
    """Provider entry of :class:`UsageStats`."""

    provider: str
    is_healthy: bool
    model_count: int


class UsageSummary(BaseModel):
    """Global totals of :class:`UsageStats`."""

    total_models: int = 0
    total_usage: int = 0
    active_providers: int = 0


class UsageStats(BaseModel):
    """Serializable snapshot of usage and provider health."""

    models: List[ModelUsage] = Field(default_factory=list)
    providers: List[ProviderUsage] = Field(default_factory=list)
    summary: UsageSummary = Field(default_factory=UsageSummary)
