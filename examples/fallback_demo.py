#!/usr/bin/env python
"""
Fallback demo - a local model server goes down and requests move to the cloud.

This example demonstrates:
1. Probing providers with HealthMonitor
2. Resolving a request through ModelManager / FallbackResolver
3. Recovering after a runtime failure and listing alternatives
4. Exporting usage statistics

No real providers are needed; probes are answered by an in-process
httpx.MockTransport where Ollama refuses connections.

Usage:
    uv run python examples/fallback_demo.py
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import httpx

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from model_fallback import (  # noqa: E402
    FallbackConfig,
    FallbackResolver,
    HealthMonitor,
    ModelManager,
    StaticModelDiscovery,
    setup_logging,
)
from model_fallback.model_management import ProviderConfig, ProviderRegistry  # noqa: E402

CATALOG = {
    "ollama": ["llama3.2:1b", "llama3.2:3b", "qwen2.5:14b"],
    "gemini": [
        {"id": "gemini-1.5-flash", "aliases": ["flash"]},
        {"id": "gemini-1.5-flash-8b"},
        {"id": "gemini-1.5-pro", "aliases": ["pro"]},
    ],
}


def answer_probe(request: httpx.Request) -> httpx.Response:
    if request.url.host == "localhost":
        raise httpx.ConnectError("Connection refused")
    return httpx.Response(200, json={"models": []})


async def main() -> None:
    config = FallbackConfig(default_provider="ollama")
    setup_logging(level=config.log_level)

    registry = ProviderRegistry(
        [
            ProviderConfig(provider="ollama", base_url="http://localhost:11434"),
            ProviderConfig(
                provider="gemini",
                base_url="https://generativelanguage.googleapis.com/v1beta",
                api_key="demo-key",
                requires_auth=True,
            ),
        ]
    )
    monitor = HealthMonitor(
        registry,
        timeout=config.health_timeout,
        transport=httpx.MockTransport(answer_probe),
    )
    resolver = FallbackResolver.from_config(monitor, config)
    manager = ModelManager(monitor, resolver)

    print("── Initializing ──")
    await manager.initialize(StaticModelDiscovery(CATALOG))
    for status in await monitor.check_all():
        state = "healthy" if status.is_healthy else f"down ({status.error})"
        print(f"  {status.provider:8} {state}")

    print("\n── Recommendations ──")
    for requested in ("llama3.2:3b", "small", "gemini:pro"):
        result = await manager.get_recommended_model(requested)
        print(f"  {requested!r:16} -> {result.selected_provider}:{result.selected_model}")
        if result.fallback_reason:
            print(f"  {'':16}    {result.fallback_reason}")

    print("\n── Runtime failure ──")
    manager.track_model_usage("gemini-1.5-pro", "gemini", success=False)
    recovered = await manager.recover_model("gemini:gemini-1.5-pro")
    print(f"  recovered with {recovered.selected_provider}:{recovered.selected_model}")
    if recovered.failure:
        print(f"  {recovered.fallback_reason}")

    alternatives = await manager.get_model_alternatives("ollama:large")
    print(f"  alternatives: {[f'{m.provider}:{m.id}' for m in alternatives]}")

    print("\n── Usage ──")
    manager.track_model_usage("gemini-1.5-flash", "gemini", response_time=420.0)
    print(json.dumps(manager.export_usage_stats().model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
