# tests/model_management/test_discovery.py
"""Tests for discovery.py: DiscoveryResult and StaticModelDiscovery."""

import json

import pytest

from model_fallback.model_management.discovery import (
    DiscoveryResult,
    ModelDiscovery,
    StaticModelDiscovery,
)
from model_fallback.model_management.models import ModelInfo


class TestDiscoveryResult:
    """Test DiscoveryResult Pydantic model."""

    def test_successful_discovery(self):
        """Test creating a successful discovery result."""
        result = DiscoveryResult(
            provider="ollama",
            models=[ModelInfo(id="m1", provider="ollama"), ModelInfo(id="m2", provider="ollama")],
            success=True,
        )

        assert result.success is True
        assert result.error is None
        assert result.discovered_count == 2
        assert result.has_models is True
        assert result.error_message == ""

    def test_failed_discovery(self):
        """Test creating a failed discovery result."""
        result = DiscoveryResult(provider="gemini", success=False, error="API key invalid")

        assert result.discovered_count == 0
        assert result.has_models is False
        assert result.error_message == "Discovery failed for gemini: API key invalid"


class TestStaticModelDiscovery:
    """Test the static catalog implementation."""

    def test_satisfies_protocol(self):
        assert isinstance(StaticModelDiscovery({}), ModelDiscovery)

    @pytest.mark.asyncio
    async def test_entry_forms(self):
        """Ids, dicts and ModelInfo objects are all accepted."""
        discovery = StaticModelDiscovery(
            {
                "ollama": ["llama3.2:1b"],
                "gemini": [
                    {"id": "gemini-1.5-flash", "aliases": ["flash"]},
                    ModelInfo(id="gemini-1.5-pro", provider="gemini"),
                ],
            }
        )

        catalog = await discovery.list_all_provider_models()

        assert catalog["ollama"] == [ModelInfo(id="llama3.2:1b", provider="ollama")]
        assert catalog["gemini"][0].aliases == ["flash"]
        assert catalog["gemini"][0].provider == "gemini"
        assert [m.id for m in catalog["gemini"]] == ["gemini-1.5-flash", "gemini-1.5-pro"]

    @pytest.mark.asyncio
    async def test_invalid_entry_fails_only_its_provider(self):
        discovery = StaticModelDiscovery(
            {"ollama": ["llama3.2:1b"], "gemini": [42]}
        )

        catalog = await discovery.list_all_provider_models()

        assert [m.id for m in catalog["ollama"]] == ["llama3.2:1b"]
        assert catalog["gemini"] == []
        assert discovery.last_results["gemini"].success is False
        assert discovery.last_results["ollama"].discovered_count == 1

    def test_unknown_provider_result(self):
        result = StaticModelDiscovery({}).discover_provider("ollama")
        assert result.success is False
        assert result.error == "Provider not in catalog"

    @pytest.mark.asyncio
    async def test_from_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"ollama": ["llama3.2:3b"]}))

        catalog = await StaticModelDiscovery.from_file(path).list_all_provider_models()

        assert [m.id for m in catalog["ollama"]] == ["llama3.2:3b"]

    def test_from_file_rejects_wrong_shape(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(["llama3.2:3b"]))

        with pytest.raises(ValueError, match="must map provider names to lists"):
            StaticModelDiscovery.from_file(path)
