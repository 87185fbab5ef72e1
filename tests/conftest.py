"""Common test fixtures and utilities for model-fallback tests."""

from __future__ import annotations

import asyncio
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from model_fallback.config.enums import FailureKind, ProviderType
from model_fallback.config.env_vars import EnvVar
from model_fallback.model_management.health import HealthMonitor
from model_fallback.model_management.models import HealthStatus, ModelInfo
from model_fallback.model_management.provider import ProviderConfig, ProviderRegistry

BASE_URLS = {
    "ollama": "http://ollama.test",
    "lmstudio": "http://lmstudio.test",
    "gemini": "https://gemini.test/v1beta",
    "openai": "https://openai.test",
    "anthropic": "https://anthropic.test",
}


def make_registry(*providers: str) -> ProviderRegistry:
    """Registry with a base URL and an API key for each named provider."""
    names = providers or tuple(ProviderType.values())
    return ProviderRegistry(
        ProviderConfig(
            provider=ProviderType(name), base_url=BASE_URLS[name], api_key="test-key"
        )
        for name in names
    )


def make_models(provider: str, *ids: str, aliases: dict[str, list[str]] | None = None):
    """ModelInfo list for one provider; ``aliases`` maps id -> aliases."""
    aliases = aliases or {}
    return [
        ModelInfo(id=model_id, provider=provider, aliases=aliases.get(model_id, []))
        for model_id in ids
    ]


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeBackend:
    """
    Serves liveness probes through ``httpx.MockTransport``.

    ``outcomes`` maps a host to a status code or an exception to raise;
    unlisted hosts answer 200.
    """

    def __init__(
        self,
        outcomes: dict[str, int | Exception] | None = None,
        delay: float = 0.0,
    ):
        self.outcomes = outcomes or {}
        self.delay = delay
        self.requests: list[httpx.Request] = []
        self.active = 0
        self.max_active = 0
        self.cancelled = 0

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        finally:
            self.active -= 1

        outcome = self.outcomes.get(request.url.host, 200)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json={"models": []})

    def calls_to(self, host: str) -> int:
        return sum(1 for request in self.requests if request.url.host == host)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove every variable the library reads."""
    for var in EnvVar:
        monkeypatch.delenv(var.value, raising=False)
    return monkeypatch


@pytest.fixture
def registry() -> ProviderRegistry:
    return make_registry("ollama", "lmstudio", "gemini")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_monitor() -> Callable[[dict[str, bool]], MagicMock]:
    """
    Factory for a HealthMonitor double reporting fixed health per provider.

    Providers missing from the mapping report unhealthy.
    """

    def build(health: dict[str, bool]) -> MagicMock:
        def status(provider: str) -> HealthStatus:
            healthy = health.get(provider, False)
            return HealthStatus(
                provider=provider,
                is_healthy=healthy,
                error=None if healthy else "Connection failed: refused",
                failure=None if healthy else FailureKind.CONNECTIVITY,
            )

        async def check_health(provider, options=None):
            return status(provider)

        async def is_healthy(provider, options=None):
            return status(provider).is_healthy

        async def check_all(options=None):
            return [status(provider) for provider in health]

        monitor = MagicMock(spec=HealthMonitor)
        monitor.check_health = AsyncMock(side_effect=check_health)
        monitor.is_healthy = AsyncMock(side_effect=is_healthy)
        monitor.check_all = AsyncMock(side_effect=check_all)
        monitor.wait_for_recovery = AsyncMock(return_value=True)
        return monitor

    return build
