# src/model_fallback/model_management/health.py
"""
Provider health monitoring.

Probes each provider's liveness endpoint, caches the outcome for a TTL and
checks every known provider concurrently. Every public coroutine returns a
HealthStatus describing what happened; none of them raise.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

import httpx

from model_fallback.config.defaults import (
    DEFAULT_HEALTH_CACHE_TTL,
    DEFAULT_HEALTH_TIMEOUT,
    DEFAULT_RECOVERY_MAX_WAIT,
    DEFAULT_RECOVERY_POLL_INTERVAL,
)
from model_fallback.config.enums import FailureKind, ProviderType
from model_fallback.model_management.errors import ProviderConfigurationError
from model_fallback.model_management.models import HealthCheckOptions, HealthStatus
from model_fallback.model_management.provider import ProviderRegistry

logger = logging.getLogger(__name__)


def _provider_name(provider: str | ProviderType) -> str:
    return provider.value if isinstance(provider, ProviderType) else provider


class HealthMonitor:
    """
    Cached, time-bounded liveness checks for providers.

    Each instance owns its cache. With ``coalesce`` enabled, concurrent
    checks of the same uncached provider share one in-flight probe.
    """

    def __init__(
        self,
        registry: Optional[ProviderRegistry] = None,
        *,
        timeout: float = DEFAULT_HEALTH_TIMEOUT,
        cache_ttl: float = DEFAULT_HEALTH_CACHE_TTL,
        coalesce: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._registry = registry or ProviderRegistry.from_env()
        self._timeout = timeout
        self._cache_ttl = cache_ttl
        self._coalesce = coalesce
        self._transport = transport
        self._clock = clock
        self._cache: dict[str, HealthStatus] = {}
        self._in_flight: dict[str, asyncio.Task[HealthStatus]] = {}

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    # ── Checks ────────────────────────────────────────────────────────────────

    async def check_health(
        self,
        provider: str | ProviderType,
        options: Optional[HealthCheckOptions] = None,
    ) -> HealthStatus:
        """
        Check a provider, serving from cache while the entry is fresh.

        Args:
            provider: Provider name
            options: Timeout, cache TTL and force-refresh overrides

        Returns:
            The cached or newly probed HealthStatus
        """
        name = _provider_name(provider)
        opts = options or HealthCheckOptions()
        ttl = self._cache_ttl if opts.cache_ttl is None else opts.cache_ttl

        if not opts.force_refresh:
            cached = self._cache.get(name)
            if cached is not None and self._clock() - cached.last_checked < ttl:
                return cached

        timeout = opts.timeout or self._timeout
        if not self._coalesce:
            return await self._refresh(name, timeout)

        task = self._in_flight.get(name)
        if task is None:
            task = asyncio.ensure_future(self._refresh(name, timeout))
            self._in_flight[name] = task
            task.add_done_callback(lambda _done: self._in_flight.pop(name, None))
            # Shielded so one cancelled waiter does not cancel the shared probe
            return await asyncio.shield(task)

        logger.debug(f"Joining in-flight health probe for {name}")
        return await self._join(name, task, timeout)

    async def check_all(
        self, options: Optional[HealthCheckOptions] = None
    ) -> list[HealthStatus]:
        """Check every registered provider concurrently, in registry order."""
        providers = self._registry.providers
        statuses = await asyncio.gather(
            *(self.check_health(provider, options) for provider in providers)
        )
        healthy = sum(1 for status in statuses if status.is_healthy)
        logger.debug(f"Health check: {healthy}/{len(statuses)} providers healthy")
        return list(statuses)

    async def is_healthy(
        self,
        provider: str | ProviderType,
        options: Optional[HealthCheckOptions] = None,
    ) -> bool:
        status = await self.check_health(provider, options)
        return status.is_healthy

    async def get_healthy_providers(
        self, options: Optional[HealthCheckOptions] = None
    ) -> list[str]:
        """Names of the providers currently reporting healthy."""
        statuses = await self.check_all(options)
        return [status.provider for status in statuses if status.is_healthy]

    async def wait_for_recovery(
        self,
        provider: str | ProviderType,
        max_wait: float = DEFAULT_RECOVERY_MAX_WAIT,
        poll_interval: float = DEFAULT_RECOVERY_POLL_INTERVAL,
    ) -> bool:
        """
        Poll a provider with fresh probes until it is healthy.

        Args:
            provider: Provider name
            max_wait: Give up after this many seconds
            poll_interval: Seconds between probes

        Returns:
            True if the provider recovered within ``max_wait``
        """
        name = _provider_name(provider)
        deadline = time.monotonic() + max_wait
        refresh = HealthCheckOptions(force_refresh=True)

        while True:
            if await self.is_healthy(name, refresh):
                logger.info(f"Provider {name} recovered")
                return True
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.info(f"Provider {name} did not recover within {max_wait}s")
                return False
            await asyncio.sleep(min(poll_interval, remaining))

    # ── Cache ─────────────────────────────────────────────────────────────────

    def get_cached_health(self, provider: str | ProviderType) -> Optional[HealthStatus]:
        """Cached status without probing, regardless of age."""
        return self._cache.get(_provider_name(provider))

    def clear_cache(self, provider: str | ProviderType | None = None) -> None:
        """Drop one provider's cached status, or all of them."""
        if provider is None:
            self._cache.clear()
            logger.debug("Cleared health cache")
        else:
            self._cache.pop(_provider_name(provider), None)

    # ── Probing ───────────────────────────────────────────────────────────────

    async def _refresh(self, provider: str, timeout: float) -> HealthStatus:
        status = await self._probe(provider, timeout)

        previous = self._cache.get(provider)
        if previous is not None and previous.is_healthy != status.is_healthy:
            state = "healthy" if status.is_healthy else f"unhealthy ({status.error})"
            logger.info(f"Provider {provider} is now {state}")

        self._cache[provider] = status
        return status

    async def _join(
        self, provider: str, task: asyncio.Task[HealthStatus], timeout: float
    ) -> HealthStatus:
        """
        Wait on another caller's probe, bounded by this caller's own timeout.

        Expiry only affects this caller: the shared probe keeps running and
        nothing is cached for the timeout.
        """
        started = time.perf_counter()
        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        except asyncio.TimeoutError:
            return self._unhealthy(
                provider,
                f"Timeout after {timeout}s",
                FailureKind.TIMEOUT,
                self._elapsed_ms(started),
            )

    async def _probe(self, provider: str, timeout: float) -> HealthStatus:
        """Perform one liveness probe. Never raises."""
        try:
            config = self._registry.get(provider)
            url = config.health_url
            headers = config.auth_headers()
        except ProviderConfigurationError as e:
            logger.debug(f"Health check skipped for {provider}: {e}")
            return self._unhealthy(provider, str(e), FailureKind.CONFIGURATION)

        started = time.perf_counter()
        try:
            # wait_for cancels the request on expiry so no probe outlives it
            response = await asyncio.wait_for(
                self._get(url, headers, timeout), timeout=timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._unhealthy(
                provider,
                f"Timeout after {timeout}s",
                FailureKind.TIMEOUT,
                self._elapsed_ms(started),
            )
        except httpx.HTTPError as e:
            return self._unhealthy(
                provider,
                f"Connection failed: {str(e) or e.__class__.__name__}",
                FailureKind.CONNECTIVITY,
                self._elapsed_ms(started),
            )
        except Exception as e:
            logger.debug(f"Unexpected probe failure for {provider}: {e}")
            return self._unhealthy(
                provider,
                f"Connection failed: {str(e) or e.__class__.__name__}",
                FailureKind.CONNECTIVITY,
                self._elapsed_ms(started),
            )

        response_time = self._elapsed_ms(started)
        if response.is_success:
            logger.debug(f"Provider {provider} healthy ({response_time:.0f}ms)")
            return HealthStatus(
                provider=provider,
                is_healthy=True,
                last_checked=self._clock(),
                response_time=response_time,
            )

        return self._unhealthy(
            provider,
            f"HTTP {response.status_code}: {response.reason_phrase}",
            FailureKind.PROTOCOL,
            response_time,
        )

    async def _get(
        self, url: str, headers: dict[str, str], timeout: float
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=timeout, transport=self._transport
        ) as client:
            return await client.get(url, headers=headers)

    def _unhealthy(
        self,
        provider: str,
        error: str,
        failure: FailureKind,
        response_time: Optional[float] = None,
    ) -> HealthStatus:
        logger.debug(f"Provider {provider} unhealthy: {error}")
        return HealthStatus(
            provider=provider,
            is_healthy=False,
            last_checked=self._clock(),
            response_time=response_time,
            error=error,
            failure=failure,
        )

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000

    def __repr__(self) -> str:
        return (
            f"HealthMonitor(providers={self._registry.providers}, "
            f"cached={len(self._cache)}, ttl={self._cache_ttl})"
        )
