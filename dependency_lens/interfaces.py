"""
Interfaces for the collaborators of the analyzer.
"""

from __future__ import annotations

from typing import Dict, Protocol

from .models import RegistryRoute


class RouteResolver(Protocol):
    """Map a package name to the registry route used to look it up."""

    def resolve(self, package_name: str) -> RegistryRoute:
        ...


class PackageMetadataFetcher(Protocol):
    """Retrieve the registry metadata document for a package."""

    def fetch(self, package_name: str, route: RegistryRoute) -> Dict:
        ...
