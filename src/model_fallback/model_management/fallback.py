# src/model_fallback/model_management/fallback.py
"""
Model fallback resolution.

Decides whether a requested model is servable as-is and, when it is not,
walks an ordered hierarchy of candidate providers looking for an equivalent
model on a healthy one. Resolution never raises: every path ends in a fully
populated FallbackResult.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from model_fallback.config.defaults import (
    DEFAULT_FALLBACK_HIERARCHY,
    DEFAULT_MAX_SUGGESTIONS,
    DEFAULT_PROVIDER,
    DEFAULT_RECOVERY_MAX_WAIT,
)
from model_fallback.config.enums import FailureKind, ProviderType, is_local_provider
from model_fallback.config.models import FallbackConfig
from model_fallback.model_management.equivalence import (
    EquivalenceTable,
    load_equivalence_table,
)
from model_fallback.model_management.health import HealthMonitor
from model_fallback.model_management.models import (
    FallbackOptions,
    FallbackResult,
    HealthCheckOptions,
    ModelInfo,
)

logger = logging.getLogger(__name__)

Catalog = Mapping[str, Sequence[ModelInfo]]


def _local_first(provider: str) -> int:
    return 0 if is_local_provider(provider) else 1


def _remote_first(provider: str) -> int:
    return 1 if is_local_provider(provider) else 0


class FallbackResolver:
    """
    Finds a servable (provider, model) for a requested model.

    The candidate walk is sequential: each provider's health check completes
    before the next candidate is considered, so the first match always wins.
    """

    def __init__(
        self,
        health_monitor: HealthMonitor,
        *,
        equivalence: Optional[EquivalenceTable] = None,
        hierarchy: Sequence[str] = DEFAULT_FALLBACK_HIERARCHY,
        default_provider: str = DEFAULT_PROVIDER,
    ) -> None:
        self._health = health_monitor
        self._equivalence = equivalence or EquivalenceTable.bundled()
        self._hierarchy = list(dict.fromkeys(hierarchy))
        self._default_provider = default_provider

    @classmethod
    def from_config(
        cls, health_monitor: HealthMonitor, config: FallbackConfig
    ) -> FallbackResolver:
        """Build a resolver from a FallbackConfig."""
        return cls(
            health_monitor,
            equivalence=load_equivalence_table(config.equivalence_file),
            hierarchy=config.fallback_hierarchy,
            default_provider=config.default_provider,
        )

    @property
    def health_monitor(self) -> HealthMonitor:
        return self._health

    @property
    def hierarchy(self) -> list[str]:
        return list(self._hierarchy)

    @property
    def default_provider(self) -> str:
        return self._default_provider

    # ── Parsing and matching ──────────────────────────────────────────────────

    def parse_model(self, model: str) -> tuple[str, str]:
        """
        Split ``provider:model`` into its parts.

        Only a known provider name counts as a prefix, so Ollama tags such as
        ``llama3.2:1b`` stay whole and resolve against the default provider.
        """
        prefix, sep, rest = model.partition(":")
        if sep and rest and prefix in ProviderType.values():
            return prefix, rest
        return self._default_provider, model

    def is_model_available(
        self,
        requested_model: str,
        catalog: Catalog,
        provider: Optional[str] = None,
    ) -> bool:
        """Check whether a provider's catalog lists the model by id or alias."""
        original_provider, model_name = self.parse_model(requested_model)
        models = catalog.get(provider or original_provider, [])
        return any(
            model.matches(model_name) or model.matches(requested_model)
            for model in models
        )

    def find_equivalent_model(
        self, model_name: str, provider: str, models: Sequence[ModelInfo]
    ) -> Optional[ModelInfo]:
        """
        Find the model on ``provider`` that best stands in for ``model_name``.

        Tried in order: id or alias match, the provider's stand-ins for the
        same equivalence class (each in turn, then any model tagged with the
        class alias), then substring containment either way.
        """
        name = model_name.lower()

        for model in models:
            if model.matches(name, case_sensitive=False):
                return model

        for alias_class in self._equivalence.classes_of(name):
            for candidate in self._equivalence.candidates(alias_class, provider):
                for model in models:
                    if model.matches(candidate, case_sensitive=False):
                        return model
            for model in models:
                if model.matches(alias_class, case_sensitive=False):
                    return model

        if not name:
            return None
        for model in models:
            model_id = model.id.lower()
            if name in model_id or model_id in name:
                return model

        return None

    def build_hierarchy(
        self, original_provider: str, options: Optional[FallbackOptions] = None
    ) -> list[str]:
        """
        Ordered candidate providers for a request.

        The original provider goes first unless excluded; local/remote
        preference is then applied as a stable sort and excluded providers
        are dropped.
        """
        opts = options or FallbackOptions()
        excluded = set(opts.exclude_providers)

        hierarchy = list(self._hierarchy)
        if original_provider not in excluded:
            hierarchy = [original_provider] + [
                p for p in hierarchy if p != original_provider
            ]

        if opts.prefer_local:
            hierarchy.sort(key=_local_first)
        elif opts.prefer_remote:
            hierarchy.sort(key=_remote_first)

        return [p for p in hierarchy if p not in excluded]

    # ── Resolution ────────────────────────────────────────────────────────────

    async def resolve(
        self,
        requested_model: str,
        catalog: Catalog,
        options: Optional[FallbackOptions] = None,
    ) -> FallbackResult:
        """
        Pick the provider and model that should serve ``requested_model``.

        Args:
            requested_model: ``provider:model`` or a bare model name / alias
            catalog: Models per provider
            options: Preferences, exclusions, attempt limit and probe timeout

        Returns:
            FallbackResult describing the selection or why none was possible
        """
        opts = options or FallbackOptions()
        original_provider, model_name = self.parse_model(requested_model)

        # Catalog presence is enough; no health check on the direct path
        excluded = original_provider in opts.exclude_providers
        if not excluded and self.is_model_available(
            requested_model, catalog, original_provider
        ):
            return FallbackResult(
                original_model=requested_model,
                selected_model=requested_model,
                selected_provider=original_provider,
                attempted_providers=[original_provider],
                is_original_available=True,
            )

        hierarchy = self.build_hierarchy(original_provider, opts)
        if opts.max_attempts is not None:
            hierarchy = hierarchy[: opts.max_attempts]

        health_options = HealthCheckOptions(timeout=opts.timeout)
        attempted: list[str] = []
        notes: list[str] = []

        for provider in hierarchy:
            attempted.append(provider)

            status = await self._health.check_health(provider, health_options)
            if not status.is_healthy:
                notes.append(f"{provider} unavailable: {status.error}")
                continue

            match = self.find_equivalent_model(
                model_name, provider, catalog.get(provider, [])
            )
            if match is None:
                notes.append(f"{provider} has no equivalent of '{model_name}'")
                continue

            reason = self._fallback_reason(original_provider, model_name, provider, match, notes)
            logger.info(f"Fallback for {requested_model}: {reason}")
            return FallbackResult(
                original_model=requested_model,
                selected_model=match.id,
                selected_provider=provider,
                fallback_reason=reason,
                attempted_providers=attempted,
                is_original_available=False,
            )

        reason = (
            f"No healthy providers found for '{requested_model}'. "
            f"Attempted: {', '.join(attempted) or 'none'}"
        )
        if notes:
            reason += f" ({'; '.join(notes)})"
        logger.warning(reason)
        return FallbackResult(
            original_model=requested_model,
            selected_model=requested_model,
            selected_provider=original_provider,
            fallback_reason=reason,
            attempted_providers=attempted,
            is_original_available=False,
            failure=FailureKind.NO_HEALTHY_PROVIDER,
        )

    async def recover_from_failure(
        self,
        failed_model: str,
        catalog: Catalog,
        options: Optional[FallbackOptions] = None,
    ) -> FallbackResult:
        """
        Find a replacement for a model that failed during use.

        Tries the provider right after the failed one in the hierarchy, then
        falls back to a full resolution that excludes the failed provider.
        """
        opts = options or FallbackOptions()
        failed_provider, model_name = self.parse_model(failed_model)
        hierarchy = self.build_hierarchy(failed_provider, opts)

        if failed_provider in hierarchy:
            index = hierarchy.index(failed_provider)
            if index < len(hierarchy) - 1:
                next_provider = hierarchy[index + 1]
                match = self.find_equivalent_model(
                    model_name, next_provider, catalog.get(next_provider, [])
                )
                if match is not None and await self._health.is_healthy(
                    next_provider, HealthCheckOptions(timeout=opts.timeout)
                ):
                    logger.info(
                        f"Recovered {failed_model} with {next_provider}:{match.id}"
                    )
                    return FallbackResult(
                        original_model=failed_model,
                        selected_model=match.id,
                        selected_provider=next_provider,
                        fallback_reason=(
                            f"Provider {failed_provider} failed, "
                            f"recovered with {next_provider}:{match.id}"
                        ),
                        attempted_providers=[failed_provider, next_provider],
                        is_original_available=False,
                    )

        excluding_failed = opts.model_copy(
            update={
                "exclude_providers": [failed_provider, *opts.exclude_providers]
            }
        )
        return await self.resolve(failed_model, catalog, excluding_failed)

    async def get_healthy_providers_by_preference(
        self, options: Optional[FallbackOptions] = None
    ) -> list[str]:
        """Healthy providers, ordered by locality preference or the hierarchy."""
        opts = options or FallbackOptions()
        statuses = await self._health.check_all(HealthCheckOptions(timeout=opts.timeout))
        healthy = [
            status.provider
            for status in statuses
            if status.is_healthy and status.provider not in opts.exclude_providers
        ]

        if opts.prefer_local:
            return sorted(healthy, key=_local_first)
        if opts.prefer_remote:
            return sorted(healthy, key=_remote_first)

        def hierarchy_rank(provider: str) -> int:
            if provider in self._hierarchy:
                return self._hierarchy.index(provider)
            return len(self._hierarchy)

        return sorted(healthy, key=hierarchy_rank)

    async def suggest_alternative_models(
        self,
        failed_model: str,
        catalog: Catalog,
        max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
    ) -> list[ModelInfo]:
        """
        Equivalent models on healthy providers, local providers first.

        At most one suggestion per provider; the failed model itself is
        never suggested.
        """
        failed_provider, model_name = self.parse_model(failed_model)
        suggestions: list[ModelInfo] = []
        if max_suggestions <= 0:
            return suggestions

        providers = await self.get_healthy_providers_by_preference(
            FallbackOptions(prefer_local=True)
        )
        for provider in providers:
            if len(suggestions) >= max_suggestions:
                break
            match = self.find_equivalent_model(
                model_name, provider, catalog.get(provider, [])
            )
            if match is None:
                continue
            if provider == failed_provider and match.matches(model_name):
                continue
            if any(
                s.id == match.id and s.provider == match.provider for s in suggestions
            ):
                continue
            suggestions.append(match)

        return suggestions

    async def wait_for_recovery(
        self, provider: str, max_wait: float = DEFAULT_RECOVERY_MAX_WAIT
    ) -> bool:
        """Wait for a provider to report healthy again."""
        return await self._health.wait_for_recovery(provider, max_wait)

    # ── Helpers ───────────────────────────────────────────────────────────────

    @staticmethod
    def _fallback_reason(
        original_provider: str,
        model_name: str,
        provider: str,
        match: ModelInfo,
        notes: list[str],
    ) -> str:
        if provider == original_provider:
            return (
                f"Model '{model_name}' not found on {original_provider}, "
                f"using equivalent {provider}:{match.id}"
            )
        skipped = f" ({'; '.join(notes)})" if notes else ""
        return (
            f"Original {original_provider} model '{model_name}' unavailable"
            f"{skipped}, using {provider}:{match.id}"
        )
