"""
Version normalization, ordering and npm range matching.
"""

from __future__ import annotations

import re
from functools import cmp_to_key
from typing import Any, Iterable, List, Optional

import nodesemver

from .models import NormalizedVersion


_IDENT = r"(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    rf"(?:-({_IDENT}(?:\.{_IDENT})*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)
COERCE_RE = re.compile(r"(?<!\d)(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?")
LEADING_NOISE_RE = re.compile(r"^[\s=vV]+")


def normalize_version(raw: Optional[str]) -> Optional[str]:
    """Coerce a raw version string into strict semver, or None.

    A full ``MAJOR.MINOR.PATCH[-pre][+build]`` survives as-is once leading
    noise such as ``v`` or ``=`` is stripped. Anything else is coerced from
    its first numeric ``N[.N[.N]]`` run, with missing parts set to zero.
    """
    if not raw or not isinstance(raw, str):
        return None
    cleaned = LEADING_NOISE_RE.sub("", raw.strip())
    if SEMVER_RE.match(cleaned):
        return cleaned

    match = COERCE_RE.search(raw)
    if not match:
        return None
    major, minor, patch = (int(part or 0) for part in match.groups())
    return f"{major}.{minor}.{patch}"


def _compare_canonical(a: str, b: str) -> int:
    return nodesemver.compare(a, b, False)


_CanonicalKey = cmp_to_key(_compare_canonical)


def npm_semver_key(raw: Optional[str]) -> Optional[Any]:
    """Sort key following semver precedence, or None for unusable input.

    Build metadata is ignored. A release sorts above any of its prereleases,
    numeric prerelease identifiers sort below alphanumeric ones.
    """
    canonical = normalize_version(raw)
    if canonical is None:
        return None
    return _CanonicalKey(canonical)


def compare_versions(a: str, b: str) -> int:
    """Three-way comparison of two versions by semver precedence."""
    canonical_a = normalize_version(a)
    canonical_b = normalize_version(b)
    if canonical_a is None or canonical_b is None:
        raise ValueError(f"Cannot compare non-semver versions: {a!r}, {b!r}")
    return _compare_canonical(canonical_a, canonical_b)


def release_core(canonical: str) -> str:
    """``MAJOR.MINOR.PATCH`` with prerelease and build parts removed."""
    return canonical.split("+", 1)[0].split("-", 1)[0]


def is_valid_range(spec: Optional[str]) -> bool:
    if spec is None:
        return False
    try:
        return nodesemver.valid_range(spec, False) is not None
    except (ValueError, TypeError):
        return False


def satisfies(version: str, spec: str) -> bool:
    """Whether a canonical version matches an npm range."""
    try:
        return bool(nodesemver.satisfies(version, spec, loose=False))
    except (ValueError, TypeError):
        return False


def sort_versions_normalized(raw_versions: Iterable[str]) -> List[NormalizedVersion]:
    """Normalize, drop unusable entries and sort ascending (stable)."""
    normalized = []
    for raw in raw_versions:
        canonical = normalize_version(raw)
        if canonical is None:
            continue
        normalized.append(NormalizedVersion(raw=raw, canonical=canonical))
    return sorted(normalized, key=lambda item: npm_semver_key(item.canonical))
