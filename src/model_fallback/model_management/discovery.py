# src/model_fallback/model_management/discovery.py
"""
Model discovery.

The catalog of servable models comes from a discovery collaborator. This
module defines its interface, the per-provider result model, and a static
implementation backed by a mapping or a JSON file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError, model_validator

from model_fallback.model_management.models import ModelInfo

logger = logging.getLogger(__name__)

Catalog = dict[str, list[ModelInfo]]


@runtime_checkable
class ModelDiscovery(Protocol):
    """Anything that can list the models of every provider."""

    async def list_all_provider_models(self, **options: Any) -> Catalog: ...


class DiscoveryResult(BaseModel):
    """
    Result of discovering one provider's models.

    Records the outcome even when discovery failed, so callers can report
    which providers contributed to a catalog.
    """

    provider: str = Field(..., description="Provider name")
    models: List[ModelInfo] = Field(default_factory=list, description="Models")
    success: bool = Field(..., description="Whether discovery succeeded")
    error: Optional[str] = Field(None, description="Error message if failed")
    discovered_count: int = Field(default=0, description="Number of models")

    @model_validator(mode="after")
    def count_models_after(self):
        """Auto-calculate discovered_count from models list if not provided."""
        if self.discovered_count == 0 and self.models:
            object.__setattr__(self, "discovered_count", len(self.models))
        return self

    @property
    def has_models(self) -> bool:
        return len(self.models) > 0

    @property
    def error_message(self) -> str:
        if self.error:
            return f"Discovery failed for {self.provider}: {self.error}"
        return ""

    model_config = {"frozen": True}


def _coerce_model(provider: str, entry: Any) -> ModelInfo:
    """Accept a bare id, a dict, or a ModelInfo and return a ModelInfo."""
    if isinstance(entry, ModelInfo):
        return entry
    if isinstance(entry, str):
        return ModelInfo(id=entry, provider=provider)
    if isinstance(entry, Mapping):
        return ModelInfo(**{"provider": provider, **entry})
    raise TypeError(f"Unsupported model entry for {provider}: {entry!r}")


class StaticModelDiscovery:
    """
    Discovery over a fixed catalog.

    Entries may be model ids, dicts of ModelInfo fields, or ModelInfo
    objects. Invalid entries fail only their own provider.
    """

    def __init__(self, catalog: Mapping[str, List[Any]]):
        self._raw: dict[str, list[Any]] = {
            provider: list(entries) for provider, entries in catalog.items()
        }
        self.last_results: dict[str, DiscoveryResult] = {}

    @classmethod
    def from_file(cls, path: str | Path) -> StaticModelDiscovery:
        """
        Load a catalog from JSON: ``{"ollama": ["llama3.2:1b", {...}], ...}``.

        Raises:
            ValueError: If the file is not a JSON object of lists
        """
        data = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
        if not isinstance(data, dict) or not all(
            isinstance(v, list) for v in data.values()
        ):
            raise ValueError(f"Catalog file {path} must map provider names to lists")
        return cls(data)

    def discover_provider(self, provider: str) -> DiscoveryResult:
        """Build the models of one provider."""
        entries = self._raw.get(provider)
        if entries is None:
            return DiscoveryResult(
                provider=provider, success=False, error="Provider not in catalog"
            )
        try:
            models = [_coerce_model(provider, entry) for entry in entries]
        except (TypeError, ValidationError) as e:
            logger.warning(f"Invalid catalog entry for {provider}: {e}")
            return DiscoveryResult(provider=provider, success=False, error=str(e))
        return DiscoveryResult(provider=provider, models=models, success=True)

    async def list_all_provider_models(self, **options: Any) -> Catalog:
        """
        List models per provider.

        Failed providers map to an empty list rather than aborting discovery.
        """
        catalog: Catalog = {}
        for provider in self._raw:
            result = self.discover_provider(provider)
            self.last_results[provider] = result
            if not result.success:
                logger.warning(result.error_message)
            catalog[provider] = list(result.models)
        logger.debug(
            f"Discovered {sum(len(m) for m in catalog.values())} models "
            f"across {len(catalog)} providers"
        )
        return catalog
