"""
Run configuration: scope routing, credentials and checker settings.
"""

from __future__ import annotations

import base64
import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Mapping, Optional

from .errors import ConfigError


logger = logging.getLogger(__name__)

DEFAULT_REGISTRY = "https://registry.npmjs.org"
DEFAULT_THRESHOLD_DAYS = 60
SCOPE_MARKER = "@"


def parse_scope_pairs(values: Optional[Iterable[str]]) -> Dict[str, str]:
    """Parse repeatable ``@scope=value`` options into a mapping.

    Only the first ``=`` separates scope from value, so values may contain
    further ``=`` characters (URLs with query strings, base64 padding).
    """
    pairs: Dict[str, str] = {}
    for item in values or ():
        scope, sep, value = item.partition("=")
        scope = scope.strip()
        if not sep or not scope:
            raise ConfigError(f"Expected @scope=value, got {item!r}")
        pairs[scope] = value.strip()
    return pairs


def resolve_credential(spec: Optional[str], environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Turn a credential specifier into the token attached to requests.

    ``env:NAME`` reads the environment (unset or empty yields None),
    ``user:password`` is base64-encoded as one credential, anything else is
    used as a raw token.
    """
    if not spec:
        return None
    if environ is None:
        environ = os.environ
    if spec.startswith("env:"):
        name = spec[len("env:"):]
        token = environ.get(name) or None
        if token is None:
            logger.debug("Credential variable %s is not set", name)
        return token
    if ":" in spec:
        return base64.b64encode(spec.encode("utf-8")).decode("ascii")
    return spec


def parse_default_scope_registries(raw: Optional[str]) -> Dict[str, str]:
    """Parse a JSON object of scope -> registry URL."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid --default-scope-registry JSON: {e}") from e
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise ConfigError("--default-scope-registry must be a JSON object of strings")
    return data


@dataclass(frozen=True)
class ScopeRoutingConfig:
    """Registry and credential routing per package scope."""

    default_registry: str = DEFAULT_REGISTRY
    scope_registries: Mapping[str, str] = field(default_factory=dict)
    scope_credentials: Mapping[str, Optional[str]] = field(default_factory=dict)
    skip_scopes: FrozenSet[str] = frozenset()

    @staticmethod
    def from_options(
        default_registry: Optional[str] = None,
        scope_registries: Optional[Iterable[str]] = None,
        scope_auth: Optional[Iterable[str]] = None,
        skip_registries: Optional[Iterable[str]] = None,
        default_scope_registries: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> ScopeRoutingConfig:
        """Build routing from raw option values.

        Scope registries given on the command line override the ones from the
        JSON defaults. Credentials are resolved here, once per run.
        """
        registries = parse_default_scope_registries(default_scope_registries)
        registries.update(parse_scope_pairs(scope_registries))

        credentials = {
            scope: resolve_credential(spec, environ)
            for scope, spec in parse_scope_pairs(scope_auth).items()
        }

        skips = set()
        for entry in skip_registries or ():
            # "name=@scope" pairs match on their value.
            key, sep, value = entry.partition("=")
            entry = (value if sep else key).strip()
            if entry:
                skips.add(entry)

        return ScopeRoutingConfig(
            default_registry=default_registry or DEFAULT_REGISTRY,
            scope_registries=registries,
            scope_credentials=credentials,
            skip_scopes=frozenset(skips),
        )

    def is_skipped(self, scope: Optional[str]) -> bool:
        """Exact scope match; entries without the scope marker never match."""
        if not scope:
            return False
        return any(
            entry.startswith(SCOPE_MARKER) and entry == scope
            for entry in self.skip_scopes
        )


@dataclass(frozen=True)
class CheckerSettings:
    """Settings for one checker run."""

    routing: ScopeRoutingConfig = field(default_factory=ScopeRoutingConfig)
    threshold_days: int = DEFAULT_THRESHOLD_DAYS
    include_dev: bool = False
    include_peer: bool = False
    include_optional: bool = False
    concurrency: Optional[int] = None
    timeout: Optional[float] = None
    progress: bool = False
