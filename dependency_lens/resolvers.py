"""
Registry and authentication routing per package scope.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import SCOPE_MARKER, ScopeRoutingConfig
from .interfaces import RouteResolver
from .models import RegistryRoute


logger = logging.getLogger(__name__)

USER_AGENT = "declared-vs-latest-checker"


def parse_scope(package_name: str) -> Optional[str]:
    """Return ``@scope`` for ``@scope/name``, None for unscoped names."""
    if package_name.startswith(SCOPE_MARKER):
        idx = package_name.find("/")
        if idx > 0:
            return package_name[:idx]
    return None


class RegistryResolver(RouteResolver):
    """Resolve the registry and headers to use for a package."""

    def __init__(self, config: ScopeRoutingConfig) -> None:
        self.config = config

    def resolve(self, package_name: str) -> RegistryRoute:
        scope = parse_scope(package_name)
        registry = (scope and self.config.scope_registries.get(scope)) or self.config.default_registry

        headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
        token = self.config.scope_credentials.get(scope) if scope else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("[registry] %s -> %s%s", package_name, registry, " (auth)" if token else "")
        return RegistryRoute(
            registry=registry.rstrip("/"),
            headers=headers,
            authenticated=bool(token),
        )
