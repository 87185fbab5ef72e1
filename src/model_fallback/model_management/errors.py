"""Exceptions raised at configuration seams.

Health checks and fallback resolution never raise; they report failures on
their result objects using :class:`~model_fallback.config.enums.FailureKind`.
"""

from __future__ import annotations


class ProviderConfigurationError(ValueError):
    """A provider is unknown or lacks the address/credential it needs."""

    def __init__(self, provider: str, message: str):
        super().__init__(message)
        self.provider = provider


class EquivalenceTableError(ValueError):
    """A model equivalence table could not be read or is malformed."""
