"""
Exception types raised by dependency-lens.
"""

from __future__ import annotations

from typing import Optional


class DependencyLensError(Exception):
    """Base class for all dependency-lens errors."""


class ConfigError(DependencyLensError):
    """Raised when command-line or routing configuration is malformed."""


class ManifestError(DependencyLensError):
    """Raised when the manifest is missing or cannot be parsed."""


class RegistryError(DependencyLensError):
    """Raised when package metadata cannot be retrieved."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class RegistryNetworkError(RegistryError):
    """Connection-level failure talking to the registry."""


class RegistryHTTPError(RegistryError):
    """Registry answered with a non-2xx status."""


class RegistryParseError(RegistryError):
    """Registry answered 2xx but the body is not a JSON object."""
