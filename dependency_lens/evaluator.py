"""
Decide whether a declared dependency is outdated and since when.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .models import UNKNOWN, DependencyDeclaration, NormalizedVersion, OutdatedResult
from .time_utils import days_between, parse_timestamp
from .versions import (
    compare_versions,
    is_valid_range,
    normalize_version,
    release_core,
    satisfies,
    sort_versions_normalized,
)


logger = logging.getLogger(__name__)

# Protocol, URL and path specs that name a source, not a version.
NON_SEMVER_SPEC_RE = re.compile(
    r"^(?:[a-z][a-z0-9+.-]*:|\.{1,2}/|/|~/)|^[\w.-]+/[\w.-]+(?:#.*)?$",
    re.IGNORECASE,
)


class SpecKind(str, Enum):
    RANGE = "range"
    EXACT = "exact"
    UNSUPPORTED = "unsupported"


def classify_spec(declared_spec: str) -> Tuple[SpecKind, Optional[str]]:
    """Classify a declared spec as an npm range, an exact version or neither.

    Returns the kind together with the normalized exact version (only for
    EXACT).
    """
    spec = (declared_spec or "").strip()
    if NON_SEMVER_SPEC_RE.match(spec):
        return SpecKind.UNSUPPORTED, None
    if is_valid_range(spec):
        return SpecKind.RANGE, None
    exact = normalize_version(spec)
    if exact is not None:
        return SpecKind.EXACT, exact
    return SpecKind.UNSUPPORTED, None


def _mapping(metadata: Dict, key: str) -> Dict:
    value = metadata.get(key)
    return value if isinstance(value, dict) else {}


def pick_latest(versions: List[NormalizedVersion], dist_tags: Dict) -> Optional[NormalizedVersion]:
    """The dist-tag ``latest`` entry when it matches a version, else the greatest."""
    if not versions:
        return None
    tagged = dist_tags.get("latest")
    tagged_canonical = normalize_version(tagged) if isinstance(tagged, str) else None
    if tagged_canonical is not None:
        for item in versions:
            if item.canonical == tagged_canonical:
                return item
    return versions[-1]


def within_declared_range(canonical: str, declared_spec: str) -> bool:
    """Whether a version falls inside the declared range.

    A prerelease counts as inside when its release core does, so a
    ``1.6.0-beta.1`` sits within ``^1.0.0`` rather than breaking it.
    """
    if satisfies(canonical, declared_spec):
        return True
    core = release_core(canonical)
    return core != canonical.split("+", 1)[0] and satisfies(core, declared_spec)


def find_onset_version(
    kind: SpecKind,
    declared_spec: str,
    exact: Optional[str],
    versions: List[NormalizedVersion],
) -> Optional[NormalizedVersion]:
    """Earliest published version that breaks the declared constraint."""
    if kind is SpecKind.RANGE:
        satisfying = [v for v in versions if within_declared_range(v.canonical, declared_spec)]
        max_sat = satisfying[-1].canonical if satisfying else None
        for item in versions:
            if within_declared_range(item.canonical, declared_spec):
                continue
            if max_sat is None or compare_versions(item.canonical, max_sat) > 0:
                return item
        return None

    if kind is SpecKind.EXACT and exact is not None:
        for item in versions:
            if compare_versions(item.canonical, exact) > 0:
                return item
    return None


@dataclass(frozen=True)
class Assessment:
    """Outcome of evaluating one package.

    ``evaluable`` is False when the package was skipped: no semver versions
    published, or a declared spec that is not a version.
    """

    evaluable: bool
    result: Optional[OutdatedResult] = None


class OutdatedEvaluator:
    """Compare a declared constraint against published registry metadata."""

    def __init__(self, threshold_days: int = 0) -> None:
        self.threshold_days = threshold_days

    def evaluate(
        self,
        declaration: DependencyDeclaration,
        metadata: Dict,
        now: datetime,
    ) -> Optional[OutdatedResult]:
        """Return a result row, or None when the package is not reportable."""
        return self.assess(declaration, metadata, now).result

    def assess(
        self,
        declaration: DependencyDeclaration,
        metadata: Dict,
        now: datetime,
    ) -> Assessment:
        name = declaration.name
        declared = declaration.declared_spec

        versions = sort_versions_normalized(_mapping(metadata, "versions").keys())
        latest = pick_latest(versions, _mapping(metadata, "dist-tags"))
        if latest is None:
            logger.debug("[skip] %s (no semver versions published)", name)
            return Assessment(evaluable=False)

        kind, exact = classify_spec(declared)
        if kind is SpecKind.UNSUPPORTED:
            logger.debug('[skip] %s declared="%s" (non-semver)', name, declared)
            return Assessment(evaluable=False)

        if kind is SpecKind.RANGE:
            is_outdated = not within_declared_range(latest.canonical, declared)
        else:
            is_outdated = compare_versions(latest.canonical, exact) > 0
        if not is_outdated:
            return Assessment(evaluable=True)

        time_map = _mapping(metadata, "time")
        onset = find_onset_version(kind, declared, exact, versions)

        since_version: Optional[str] = None
        since_date: Optional[datetime] = None
        for candidate in (onset, latest):
            if candidate is None:
                continue
            published = parse_timestamp(time_map.get(candidate.raw))
            if published is not None:
                since_version, since_date = candidate.raw, published
                break

        days = days_between(now, since_date) if since_date is not None else None
        if days is None or days < self.threshold_days:
            logger.debug("[skip] %s outdated for %s days (< %s)", name, days, self.threshold_days)
            return Assessment(evaluable=True)

        return Assessment(
            evaluable=True,
            result=OutdatedResult(
                name=name,
                declared_spec=declared,
                latest=latest.canonical,
                outdated_since_version=since_version or UNKNOWN,
                outdated_since_date=since_date.date().isoformat() if since_date else UNKNOWN,
                days_outdated=days,
            ),
        )
