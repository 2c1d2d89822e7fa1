"""
Core data models for outdated dependency checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple


UNKNOWN = "unknown"


class ResultStatus(str, Enum):
    """Status of a reported package row."""

    OUTDATED = "outdated"
    ERROR = "error"


@dataclass(frozen=True)
class DependencyDeclaration:
    """A dependency as declared in the manifest."""

    name: str
    declared_spec: str


@dataclass(frozen=True)
class NormalizedVersion:
    """A published version with its canonical semver form."""

    raw: str
    canonical: str


@dataclass(frozen=True)
class RegistryRoute:
    """Registry base URL and request headers for one package."""

    registry: str
    headers: Dict[str, str]
    authenticated: bool = False


@dataclass(frozen=True)
class OutdatedResult:
    """One reported package row."""

    name: str
    declared_spec: str
    latest: Optional[str]
    outdated_since_version: str
    outdated_since_date: str
    days_outdated: Optional[int]
    status: ResultStatus = ResultStatus.OUTDATED
    error: Optional[str] = None

    @classmethod
    def from_error(cls, declaration: DependencyDeclaration, exc: BaseException) -> "OutdatedResult":
        """Build an error row carrying the failure message."""
        return cls(
            name=declaration.name,
            declared_spec=declaration.declared_spec,
            latest=None,
            outdated_since_version=UNKNOWN,
            outdated_since_date=UNKNOWN,
            days_outdated=None,
            status=ResultStatus.ERROR,
            error=str(exc) or exc.__class__.__name__,
        )


@dataclass(frozen=True)
class AnalysisReport:
    """Ordered results of a run plus the counters presentation needs."""

    results: Tuple[OutdatedResult, ...] = field(default_factory=tuple)
    evaluated: int = 0
    skipped: int = 0
    threshold_days: int = 0

    @property
    def errors(self) -> Tuple[OutdatedResult, ...]:
        return tuple(r for r in self.results if r.status is ResultStatus.ERROR)

    @property
    def outdated(self) -> Tuple[OutdatedResult, ...]:
        return tuple(r for r in self.results if r.status is ResultStatus.OUTDATED)

    @property
    def nothing_evaluable(self) -> bool:
        return self.evaluated == 0 and not self.results
