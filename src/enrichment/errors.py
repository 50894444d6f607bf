"""Exceptions raised while collecting external enrichment data."""

from __future__ import annotations

from typing import Optional


class EnrichmentError(Exception):
    """Base class for every enrichment failure."""


class ConfigurationMissing(EnrichmentError):
    """No credential configured for a provider."""


class InvalidReference(EnrichmentError):
    """A profile or repository URL does not have the expected shape."""


class UpstreamError(EnrichmentError):
    """A provider call failed (status, transport, or payload decoding)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CacheReadError(EnrichmentError):
    """A cache file exists but could not be read or decoded."""


class CacheSetupError(EnrichmentError):
    """The cache root directory could not be resolved or created."""


__all__ = [
    "EnrichmentError",
    "ConfigurationMissing",
    "InvalidReference",
    "UpstreamError",
    "CacheReadError",
    "CacheSetupError",
]
