"""
Model management: provider health, fallback resolution and the model catalog.

- HealthMonitor: cached liveness probes per provider
- FallbackResolver: picks a servable provider/model for a request
- ModelManager: catalog cache, usage tracking and recommendations
"""

from model_fallback.model_management.discovery import (
    DiscoveryResult,
    ModelDiscovery,
    StaticModelDiscovery,
)
from model_fallback.model_management.equivalence import (
    EquivalenceTable,
    load_equivalence_table,
)
from model_fallback.model_management.errors import (
    EquivalenceTableError,
    ProviderConfigurationError,
)
from model_fallback.model_management.fallback import FallbackResolver
from model_fallback.model_management.health import HealthMonitor
from model_fallback.model_management.model_manager import ModelManager
from model_fallback.model_management.models import (
    FallbackOptions,
    FallbackResult,
    HealthCheckOptions,
    HealthStatus,
    ModelInfo,
    ModelState,
    ProviderSummary,
    UsageStats,
)
from model_fallback.model_management.provider import ProviderConfig, ProviderRegistry

__all__ = [
    "DiscoveryResult",
    "EquivalenceTable",
    "EquivalenceTableError",
    "FallbackOptions",
    "FallbackResolver",
    "FallbackResult",
    "HealthCheckOptions",
    "HealthMonitor",
    "HealthStatus",
    "ModelDiscovery",
    "ModelInfo",
    "ModelManager",
    "ModelState",
    "ProviderConfig",
    "ProviderConfigurationError",
    "ProviderRegistry",
    "ProviderSummary",
    "StaticModelDiscovery",
    "UsageStats",
    "load_equivalence_table",
]
