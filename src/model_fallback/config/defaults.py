"""Default configuration values - no more magic numbers!

All default values should be defined here, not hardcoded in the code.
"""

from __future__ import annotations


# ================================================================
# Health Check Defaults (in seconds)
# ================================================================

DEFAULT_HEALTH_TIMEOUT = 3.0
"""Default timeout for a single liveness probe."""

DEFAULT_HEALTH_CACHE_TTL = 300.0
"""Default time-to-live of a cached provider health status (5 minutes)."""

DEFAULT_RECOVERY_MAX_WAIT = 30.0
"""Default maximum time to wait for a provider to recover."""

DEFAULT_RECOVERY_POLL_INTERVAL = 2.0
"""Default interval between recovery probes."""


# ================================================================
# Catalog Defaults
# ================================================================

DEFAULT_CATALOG_CACHE_TTL = 300.0
"""Default time-to-live of the discovered model catalog (5 minutes)."""

DEFAULT_MAX_SUGGESTIONS = 3
"""Default number of alternative models suggested after a failure."""

DEFAULT_USAGE_LIMIT = 10
"""Default length of most-used / recently-used listings."""


# ================================================================
# Provider/Model Defaults
# ================================================================

PROVIDER_OLLAMA = "ollama"
PROVIDER_LMSTUDIO = "lmstudio"
PROVIDER_GEMINI = "gemini"
PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"

DEFAULT_PROVIDER = PROVIDER_GEMINI
"""Provider assumed for model names without a ``provider:`` prefix."""

DEFAULT_FALLBACK_HIERARCHY: tuple[str, ...] = (PROVIDER_OLLAMA, PROVIDER_GEMINI)
"""Providers consulted, in order, when a requested model is unavailable."""


# ================================================================
# Provider Endpoints
# ================================================================

DEFAULT_OLLAMA_HOST = "http://localhost:11434"
"""Default Ollama server address."""

DEFAULT_LMSTUDIO_HOST = "http://localhost:1234"
"""Default LM Studio server address."""

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
"""Default Gemini API base URL."""

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com"
"""Default OpenAI API base URL."""

DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com"
"""Default Anthropic API base URL."""

DEFAULT_OLLAMA_API_KEY = "ollama"
"""Placeholder credential sent to Ollama (it ignores it)."""

DEFAULT_LMSTUDIO_API_KEY = "lm-studio"
"""Placeholder credential sent to LM Studio (it ignores it)."""


# ================================================================
# Logging Defaults
# ================================================================

DEFAULT_LOG_LEVEL = "WARNING"
"""Default log level."""

DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024
"""Maximum size of a log file before rotation."""

DEFAULT_LOG_BACKUP_COUNT = 3
"""Number of rotated log files to keep."""


# ================================================================
# Application Constants
# ================================================================

EQUIVALENCE_DATA_FILE = "equivalence.json"
"""Name of the bundled model equivalence table."""
