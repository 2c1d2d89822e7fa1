"""
Core orchestration: drive declared dependencies through resolve, fetch and evaluate.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, as_completed
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from tqdm import tqdm

from .config import CheckerSettings
from .evaluator import Assessment, OutdatedEvaluator
from .fetcher import MetadataFetcher
from .interfaces import PackageMetadataFetcher, RouteResolver
from .limiter import ConcurrencyLimiter
from .models import AnalysisReport, DependencyDeclaration, OutdatedResult, ResultStatus
from .resolvers import RegistryResolver, parse_scope
from .time_utils import ensure_utc, utc_now


logger = logging.getLogger(__name__)


def sort_results(results: Iterable[OutdatedResult]) -> List[OutdatedResult]:
    """Most stale first; unknown and error rows last; ties by name."""

    def key(result: OutdatedResult) -> Tuple[int, str]:
        days = result.days_outdated if isinstance(result.days_outdated, int) else -1
        return -days, result.name

    return sorted(results, key=key)


def dedupe_declarations(declarations: Iterable[DependencyDeclaration]) -> List[DependencyDeclaration]:
    """One declaration per name, later entries override, sorted by name."""
    merged: Dict[str, DependencyDeclaration] = {}
    for declaration in declarations:
        merged[declaration.name] = declaration
    return [merged[name] for name in sorted(merged)]


class DependencyAnalyzer:
    """Check declared dependencies against their registries' latest versions."""

    def __init__(
        self,
        settings: Optional[CheckerSettings] = None,
        resolver: Optional[RouteResolver] = None,
        fetcher: Optional[PackageMetadataFetcher] = None,
        limiter: Optional[ConcurrencyLimiter] = None,
        evaluator: Optional[OutdatedEvaluator] = None,
    ) -> None:
        """Initialize the analyzer.

        Args:
            settings: Run settings; defaults are used when omitted
            resolver: Registry route resolver (built from settings.routing)
            fetcher: Metadata fetcher (a requests-backed one by default)
            limiter: Concurrency gate (sized from settings.concurrency); a
                limiter passed in is shared and left open by close()
            evaluator: Outdated evaluator (using settings.threshold_days)
        """
        self.settings = settings or CheckerSettings()
        self.resolver = resolver or RegistryResolver(self.settings.routing)
        self._owns_fetcher = fetcher is None
        self._owns_limiter = limiter is None
        self.fetcher = fetcher or MetadataFetcher(timeout=self.settings.timeout)
        self.limiter = limiter or ConcurrencyLimiter(self.settings.concurrency)
        self.evaluator = evaluator or OutdatedEvaluator(self.settings.threshold_days)

    def select(self, declarations: Iterable[DependencyDeclaration]) -> Tuple[List[DependencyDeclaration], int]:
        """Deduplicate and drop skip-listed scopes; returns (kept, skipped count)."""
        kept = []
        skipped = 0
        for declaration in dedupe_declarations(declarations):
            scope = parse_scope(declaration.name)
            if self.settings.routing.is_skipped(scope):
                logger.debug("[skip] %s (registry: %s)", declaration.name, scope)
                skipped += 1
                continue
            kept.append(declaration)
        return kept, skipped

    def check_dependency(self, declaration: DependencyDeclaration, now: datetime) -> Assessment:
        """Resolve, fetch and evaluate one dependency.

        Failures become error rows instead of propagating, so one package
        never affects the others.
        """
        try:
            route = self.resolver.resolve(declaration.name)
            metadata = self.fetcher.fetch(declaration.name, route)
            return self.evaluator.assess(declaration, metadata, now)
        except Exception as e:
            logger.debug("[error] %s: %s", declaration.name, e)
            return Assessment(evaluable=False, result=OutdatedResult.from_error(declaration, e))

    def analyze(
        self,
        declarations: Iterable[DependencyDeclaration],
        now: Optional[datetime] = None,
    ) -> AnalysisReport:
        """Run the whole pipeline and return the ordered report."""
        now = ensure_utc(now) if now is not None else utc_now()
        selected, skipped = self.select(declarations)
        logger.info("Checking %d dependencies", len(selected))

        futures: List[Future] = [
            self.limiter.schedule(self.check_dependency, declaration, now)
            for declaration in selected
        ]

        results: List[OutdatedResult] = []
        evaluated = 0
        with tqdm(
            total=len(futures),
            unit="pkg",
            disable=not self.settings.progress,
            leave=False,
        ) as pbar:
            for future in as_completed(futures):
                assessment = future.result()
                result = assessment.result
                if assessment.evaluable:
                    evaluated += 1
                elif result is None or result.status is not ResultStatus.ERROR:
                    skipped += 1
                if result is not None:
                    results.append(result)
                pbar.update(1)

        return AnalysisReport(
            results=tuple(sort_results(results)),
            evaluated=evaluated,
            skipped=skipped,
            threshold_days=self.settings.threshold_days,
        )

    def close(self) -> None:
        """Release the limiter and fetcher this analyzer created itself."""
        if self._owns_limiter:
            self.limiter.shutdown(wait=True)
        if self._owns_fetcher:
            self.fetcher.close()

    def __enter__(self) -> DependencyAnalyzer:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
