# src/model_fallback/model_management/model_manager.py
"""
ModelManager - catalog cache, usage tracking and health-aware recommendations.

This module provides the ModelManager class that orchestrates:
- Catalog discovery through a ModelDiscovery collaborator, cached for a TTL
- Per-model runtime state and usage counters
- Provider summaries built from health checks and model states
- Recommendations and recovery delegated to the FallbackResolver
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from model_fallback.config.defaults import (
    DEFAULT_CATALOG_CACHE_TTL,
    DEFAULT_MAX_SUGGESTIONS,
    DEFAULT_USAGE_LIMIT,
)
from model_fallback.config.enums import FailureKind, ModelStatus
from model_fallback.config.models import FallbackConfig
from model_fallback.model_management.discovery import Catalog, ModelDiscovery
from model_fallback.model_management.fallback import FallbackResolver
from model_fallback.model_management.health import HealthMonitor
from model_fallback.model_management.models import (
    FallbackOptions,
    FallbackResult,
    HealthCheckOptions,
    HealthStatus,
    ModelInfo,
    ModelState,
    ModelUsage,
    ProviderSummary,
    ProviderUsage,
    UsageStats,
    UsageSummary,
    model_key,
)
from model_fallback.model_management.provider import ProviderRegistry

logger = logging.getLogger(__name__)

NOT_INITIALIZED_REASON = "Model discovery not initialized"


class ModelManager:
    """
    Owns the model catalog and the usage table for one process.

    Nothing is shared between instances; construct one per application and
    pass it where it is needed.
    """

    def __init__(
        self,
        health_monitor: Optional[HealthMonitor] = None,
        resolver: Optional[FallbackResolver] = None,
        *,
        cache_ttl: float = DEFAULT_CATALOG_CACHE_TTL,
        enable_cache: bool = True,
        enable_usage_tracking: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if health_monitor is None:
            health_monitor = (
                resolver.health_monitor if resolver is not None else HealthMonitor()
            )
        self._health = health_monitor
        self._resolver = resolver or FallbackResolver(health_monitor)
        self._cache_ttl = cache_ttl
        self._enable_cache = enable_cache
        self._enable_usage_tracking = enable_usage_tracking
        self._clock = clock

        self._discovery: Optional[ModelDiscovery] = None
        self._catalog: Optional[Catalog] = None
        self._catalog_timestamp: Optional[float] = None
        self._model_states: dict[str, ModelState] = {}
        self._provider_states: dict[str, HealthStatus] = {}

    @classmethod
    def from_config(
        cls,
        config: Optional[FallbackConfig] = None,
        registry: Optional[ProviderRegistry] = None,
    ) -> ModelManager:
        """
        Wire a monitor, resolver and manager from one configuration.

        Args:
            config: Tunables (read from the environment if omitted)
            registry: Provider configurations (read from the environment if omitted)
        """
        config = config or FallbackConfig.from_env()
        monitor = HealthMonitor(
            registry,
            timeout=config.health_timeout,
            cache_ttl=config.health_cache_ttl,
        )
        resolver = FallbackResolver.from_config(monitor, config)
        return cls(monitor, resolver, cache_ttl=config.catalog_cache_ttl)

    @property
    def health_monitor(self) -> HealthMonitor:
        return self._health

    @property
    def resolver(self) -> FallbackResolver:
        return self._resolver

    # ── Catalog ───────────────────────────────────────────────────────────────

    async def initialize(self, discovery: ModelDiscovery) -> bool:
        """
        Discover the catalog, seed model states and check provider health.

        Discovery failures are logged; the manager stays usable but reports
        not-initialized results until a later refresh succeeds.

        Returns:
            True if the catalog was discovered
        """
        self._discovery = discovery
        if not await self._discover(discovery):
            return False
        await self.refresh_provider_health()
        logger.info(
            f"ModelManager initialized: {len(self._model_states)} models "
            f"across {len(self._catalog or {})} providers"
        )
        return True

    async def refresh_catalog(self, discovery: Optional[ModelDiscovery] = None) -> bool:
        """Re-run discovery, with ``discovery`` or the last collaborator used."""
        discovery = discovery or self._discovery
        if discovery is None:
            logger.warning("Cannot refresh catalog: no discovery configured")
            return False
        self._discovery = discovery
        return await self._discover(discovery)

    @property
    def is_ready(self) -> bool:
        """True while a fresh catalog is available."""
        return self.get_cached_catalog() is not None

    def get_cached_catalog(self) -> Optional[Catalog]:
        """The catalog snapshot, or None when missing or expired."""
        if self._catalog is None or self._catalog_timestamp is None:
            return None
        if not self._enable_cache:
            return self._catalog
        if self._clock() - self._catalog_timestamp > self._cache_ttl:
            logger.debug("Model catalog cache expired")
            self._catalog = None
            self._catalog_timestamp = None
            return None
        return self._catalog

    async def _discover(self, discovery: ModelDiscovery) -> bool:
        try:
            catalog = await discovery.list_all_provider_models()
        except Exception as e:
            logger.warning(f"Model discovery failed: {e}")
            return False

        self._catalog = {provider: list(models) for provider, models in catalog.items()}
        self._catalog_timestamp = self._clock()
        self._seed_states(self._catalog)
        return True

    def _seed_states(self, catalog: Catalog) -> None:
        for provider, models in catalog.items():
            for model in models:
                key = model_key(model.id, provider)
                state = self._model_states.get(key)
                if state is None:
                    self._model_states[key] = ModelState(
                        model=model,
                        provider=provider,
                        last_checked=self._clock(),
                    )
                else:
                    state.model = model
                    state.last_checked = self._clock()

    async def _current_catalog(self) -> Optional[Catalog]:
        # With caching off every query sees a fresh discovery
        if not self._enable_cache and self._discovery is not None:
            await self._discover(self._discovery)
        return self.get_cached_catalog()

    # ── Recommendations ───────────────────────────────────────────────────────

    async def get_recommended_model(
        self, requested_model: str, prefer_local: bool = True
    ) -> FallbackResult:
        """
        Resolve ``requested_model`` against the cached catalog.

        Returns a not-initialized result instead of resolving when there is
        no fresh catalog.
        """
        catalog = await self._current_catalog()
        if catalog is None:
            return self._not_initialized(requested_model)
        return await self._resolver.resolve(
            requested_model, catalog, FallbackOptions(prefer_local=prefer_local)
        )

    async def recover_model(
        self, failed_model: str, options: Optional[FallbackOptions] = None
    ) -> FallbackResult:
        """Find a replacement for a model that failed at runtime."""
        catalog = await self._current_catalog()
        if catalog is None:
            return self._not_initialized(failed_model)
        return await self._resolver.recover_from_failure(failed_model, catalog, options)

    async def get_model_alternatives(
        self, failed_model: str, limit: int = DEFAULT_MAX_SUGGESTIONS
    ) -> list[ModelInfo]:
        catalog = await self._current_catalog()
        if catalog is None:
            return []
        return await self._resolver.suggest_alternative_models(
            failed_model, catalog, limit
        )

    def _not_initialized(self, requested_model: str) -> FallbackResult:
        provider, _ = self._resolver.parse_model(requested_model)
        return FallbackResult(
            original_model=requested_model,
            selected_model=requested_model,
            selected_provider=provider,
            fallback_reason=NOT_INITIALIZED_REASON,
            attempted_providers=[],
            is_original_available=False,
            failure=FailureKind.NOT_INITIALIZED,
        )

    # ── Usage tracking ────────────────────────────────────────────────────────

    def track_model_usage(
        self,
        model: str,
        provider: str,
        success: bool = True,
        response_time: Optional[float] = None,
    ) -> None:
        """
        Record one use of a model.

        Args:
            model: Model id as listed in the catalog
            provider: Provider that served it
            success: Whether the call succeeded
            response_time: Call duration in milliseconds, if measured
        """
        if not self._enable_usage_tracking:
            return

        state = self._model_states.get(model_key(model, provider))
        if state is None:
            logger.debug(f"Ignoring usage of unknown model {provider}:{model}")
            return

        now = self._clock()
        state.usage_count += 1
        state.last_used = now
        if response_time is not None:
            state.response_time = response_time
        if success:
            state.status = ModelStatus.AVAILABLE
            state.error_message = None
        else:
            state.status = ModelStatus.FAILED
            state.error_message = (
                f"Model failed at {time.strftime('%Y-%m-%dT%H:%M:%S', time.gmtime(now))}Z"
            )

    def get_model_state(
        self, model: str, provider: Optional[str] = None
    ) -> Optional[ModelState]:
        """State of a model, given as ``provider:model`` or with ``provider``."""
        parsed_provider, model_name = self._resolver.parse_model(model)
        return self._model_states.get(model_key(model_name, provider or parsed_provider))

    async def find_model_state(
        self, model: str, provider: Optional[str] = None
    ) -> Optional[ModelState]:
        """
        Like :meth:`get_model_state`, but re-runs discovery once on a miss.

        A model that appeared on a provider since the last discovery is
        picked up here; None means it is still unknown afterwards.
        """
        state = self.get_model_state(model, provider)
        if state is not None or self._discovery is None:
            return state
        logger.debug(f"No state for {model}, refreshing catalog")
        if not await self.refresh_catalog():
            return None
        return self.get_model_state(model, provider)

    def clear_usage_stats(self) -> None:
        """Zero usage counters, keeping the model entries."""
        for state in self._model_states.values():
            state.usage_count = 0
            state.last_used = None

    def get_most_used_models(self, limit: int = DEFAULT_USAGE_LIMIT) -> list[ModelState]:
        used = [s for s in self._model_states.values() if s.usage_count > 0]
        used.sort(key=lambda s: s.usage_count, reverse=True)
        return used[:limit]

    def get_recently_used_models(
        self, limit: int = DEFAULT_USAGE_LIMIT
    ) -> list[ModelState]:
        used = [s for s in self._model_states.values() if s.last_used is not None]
        used.sort(key=lambda s: s.last_used or 0.0, reverse=True)
        return used[:limit]

    # ── Provider health ───────────────────────────────────────────────────────

    async def refresh_provider_health(self) -> list[HealthStatus]:
        """Force-probe every provider and record the results."""
        statuses = await self._health.check_all(HealthCheckOptions(force_refresh=True))
        for status in statuses:
            self._provider_states[status.provider] = status
        return statuses

    async def get_provider_summary(self, provider: str) -> ProviderSummary:
        """Health and model counts for one provider."""
        health = await self._health.check_health(provider)
        states = [s for s in self._model_states.values() if s.provider == provider]
        response_times = [s.response_time for s in states if s.response_time]

        return ProviderSummary(
            provider=provider,
            is_healthy=health.is_healthy,
            model_count=len(states),
            available_models=sum(1 for s in states if s.status == ModelStatus.AVAILABLE),
            failed_models=sum(1 for s in states if s.status == ModelStatus.FAILED),
            avg_response_time=(
                sum(response_times) / len(response_times) if response_times else None
            ),
            last_health_check=health.last_checked,
        )

    async def get_all_provider_summaries(self) -> list[ProviderSummary]:
        """Summaries of every provider with known models, healthiest first."""
        providers = list(dict.fromkeys(s.provider for s in self._model_states.values()))
        summaries = await asyncio.gather(
            *(self.get_provider_summary(provider) for provider in providers)
        )
        return sorted(
            summaries, key=lambda s: (not s.is_healthy, -s.available_models)
        )

    async def get_healthy_providers(self) -> list[str]:
        summaries = await self.get_all_provider_summaries()
        return [summary.provider for summary in summaries if summary.is_healthy]

    # ── Export ────────────────────────────────────────────────────────────────

    def export_usage_stats(self) -> UsageStats:
        """Snapshot of usage counters and the last recorded provider health."""
        models = [
            ModelUsage(
                model=state.model.id,
                provider=state.provider,
                usage_count=state.usage_count,
                last_used=state.last_used,
                status=state.status,
            )
            for state in self._model_states.values()
        ]
        providers = [
            ProviderUsage(
                provider=status.provider,
                is_healthy=status.is_healthy,
                model_count=sum(1 for m in models if m.provider == status.provider),
            )
            for status in self._provider_states.values()
        ]
        return UsageStats(
            models=models,
            providers=providers,
            summary=UsageSummary(
                total_models=len(models),
                total_usage=sum(m.usage_count for m in models),
                active_providers=sum(1 for p in providers if p.is_healthy),
            ),
        )

    def __repr__(self) -> str:
        return (
            f"ModelManager(models={len(self._model_states)}, "
            f"ready={self.is_ready}, providers={list(self._provider_states)})"
        )
