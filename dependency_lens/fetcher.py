"""
Registry metadata retrieval.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional
from urllib.parse import quote, urlparse

import requests

from .errors import RegistryError, RegistryHTTPError, RegistryNetworkError, RegistryParseError
from .interfaces import PackageMetadataFetcher
from .models import RegistryRoute


logger = logging.getLogger(__name__)

GITHUB_PACKAGES_HOST = "npm.pkg.github.com"
# Same unreserved set as JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "!*'()"


def is_github_packages_registry(registry: str) -> bool:
    host = urlparse(registry).hostname or ""
    return host == GITHUB_PACKAGES_HOST or host.endswith("." + GITHUB_PACKAGES_HOST)


def candidate_urls(package_name: str, registry: str) -> List[str]:
    """Request URLs to try, in order, for a package.

    GitHub Packages wants the scoped name literally; other registries are
    asked with the percent-encoded name first.
    """
    registry = registry.rstrip("/")
    literal = f"{registry}/{package_name}"
    encoded = f"{registry}/{quote(package_name, safe=_URI_COMPONENT_SAFE)}"
    if literal == encoded:
        return [literal]
    if is_github_packages_registry(registry):
        return [literal, encoded]
    return [encoded, literal]


class MetadataFetcher(PackageMetadataFetcher):
    """Fetch full package documents, first successful candidate wins."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: Optional[float] = None) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, package_name: str, route: RegistryRoute) -> Dict:
        *fallbacks, last_url = candidate_urls(package_name, route.registry)
        for url in fallbacks:
            logger.debug("[fetch] %s <- %s", package_name, url)
            try:
                return self._get_json(url, route.headers)
            except RegistryError as e:
                logger.debug("[fetch] %s failed: %s", package_name, e)
        # The last candidate's failure is the one surfaced to the caller.
        logger.debug("[fetch] %s <- %s", package_name, last_url)
        return self._get_json(last_url, route.headers)

    def _get_json(self, url: str, headers: Dict[str, str]) -> Dict:
        try:
            with self.session.get(url, headers=headers, timeout=self.timeout, stream=True) as response:
                status = response.status_code
                if not 200 <= status < 300:
                    for _ in response.iter_content(chunk_size=8192):
                        pass
                    raise RegistryHTTPError(f"GET {url} -> {status}", url=url, status_code=status)
                try:
                    data = response.json()
                except ValueError as e:
                    raise RegistryParseError(
                        f"GET {url} -> invalid JSON: {e}", url=url, status_code=status
                    ) from e
        except requests.RequestException as e:
            raise RegistryNetworkError(f"GET {url} failed: {e}", url=url) from e

        if not isinstance(data, dict):
            raise RegistryParseError(
                f"GET {url} -> expected a JSON object, got {type(data).__name__}",
                url=url,
                status_code=status,
            )
        return data

    def close(self) -> None:
        self.session.close()
