"""
model-fallback - health-aware provider selection for AI models.

Checks provider liveness, substitutes equivalent models on healthy providers
and tracks model usage.
"""

from model_fallback.config import FallbackConfig, ProviderType, setup_logging
from model_fallback.model_management import (
    FallbackOptions,
    FallbackResolver,
    FallbackResult,
    HealthMonitor,
    ModelInfo,
    ModelManager,
    StaticModelDiscovery,
)

__version__ = "0.1.0"

__all__ = [
    "FallbackConfig",
    "FallbackOptions",
    "FallbackResolver",
    "FallbackResult",
    "HealthMonitor",
    "ModelInfo",
    "ModelManager",
    "ProviderType",
    "StaticModelDiscovery",
    "setup_logging",
]
