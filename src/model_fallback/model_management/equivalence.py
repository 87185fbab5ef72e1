# src/model_fallback/model_management/equivalence.py
"""
Model equivalence classes.

An equivalence class is a short alias (``small``, ``medium``, ``large``)
naming, per provider, an ordered list of stand-in models. The table is a
versioned JSON document so the mapping can evolve with provider catalogs
without a code change. A bare string counts as a one-entry list::

    {
      "version": "2025.2",
      "classes": {"medium": {"ollama": ["llama3.2:3b", "qwen2.5:7b"]}}
    }
"""

from __future__ import annotations

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field, ValidationError, field_validator

from model_fallback.config.defaults import EQUIVALENCE_DATA_FILE
from model_fallback.config.enums import ProviderType
from model_fallback.model_management.errors import EquivalenceTableError

logger = logging.getLogger(__name__)


class EquivalenceTable(BaseModel):
    """Alias class -> provider -> candidate model ids, best first."""

    version: str = Field(..., description="Table version")
    classes: Dict[str, Dict[str, List[str]]] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("classes", mode="before")
    @classmethod
    def validate_classes(cls, v: Any) -> Any:
        """Lower-case class names, check providers, accept a bare id for one candidate."""
        if not isinstance(v, dict):
            return v
        normalized: Dict[str, Any] = {}
        for alias_class, mapping in v.items():
            if not isinstance(mapping, dict):
                normalized[str(alias_class).lower()] = mapping
                continue
            for provider in mapping:
                if provider not in ProviderType.values():
                    raise ValueError(
                        f"Unknown provider '{provider}' in class '{alias_class}'"
                    )
            normalized[str(alias_class).lower()] = {
                provider: [models] if isinstance(models, str) else models
                for provider, models in mapping.items()
            }
        return normalized

    def candidates(self, alias_class: str, provider: str) -> list[str]:
        """Stand-ins for ``alias_class`` on ``provider``, in preference order."""
        return list(self.classes.get(alias_class.lower(), {}).get(provider, []))

    def classes_of(self, name: str) -> list[str]:
        """
        Classes a requested name belongs to.

        The name is either a class alias itself or one of a class's
        candidates on some provider.
        """
        lowered = name.lower()
        if lowered in self.classes:
            return [lowered]
        return [
            alias_class
            for alias_class, mapping in self.classes.items()
            if any(
                model_id.lower() == lowered
                for models in mapping.values()
                for model_id in models
            )
        ]

    @classmethod
    def from_file(cls, path: str | Path) -> EquivalenceTable:
        """
        Load a table from a JSON file.

        Raises:
            EquivalenceTableError: If the file is missing, not JSON, or invalid
        """
        try:
            raw = Path(path).expanduser().read_text(encoding="utf-8")
        except OSError as e:
            raise EquivalenceTableError(f"Cannot read equivalence table {path}: {e}") from e
        return cls.from_json(raw, source=str(path))

    @classmethod
    def from_json(cls, raw: str, source: str = "<string>") -> EquivalenceTable:
        """Parse and validate a table from a JSON string."""
        try:
            table = cls.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise EquivalenceTableError(f"Invalid equivalence table {source}: {e}") from e
        logger.debug(
            f"Loaded equivalence table {table.version} from {source} "
            f"({len(table.classes)} classes)"
        )
        return table

    @classmethod
    def bundled(cls) -> EquivalenceTable:
        """The table shipped with the package."""
        data = resources.files("model_fallback.model_management.data").joinpath(
            EQUIVALENCE_DATA_FILE
        )
        return cls.from_json(data.read_text(encoding="utf-8"), source=EQUIVALENCE_DATA_FILE)


def load_equivalence_table(path: str | None = None) -> EquivalenceTable:
    """Load ``path`` if given, otherwise the bundled table."""
    if path:
        return EquivalenceTable.from_file(path)
    return EquivalenceTable.bundled()
