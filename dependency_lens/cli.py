"""
Command-line interface for the declared-vs-latest checker.
"""

import argparse
import logging
import sys
from pathlib import Path

from .analyzer import DependencyAnalyzer
from .config import DEFAULT_REGISTRY, DEFAULT_THRESHOLD_DAYS, CheckerSettings, ScopeRoutingConfig
from .errors import ConfigError, ManifestError
from .manifest import load_manifest, select_dependencies
from .reporting import export_results_csv, render_json, render_table


EXIT_OK = 0
EXIT_OUTDATED = 1
EXIT_FATAL = 2


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Send diagnostics to stderr; trace lines only when verbose."""
    logger = logging.getLogger("dependency_lens")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dependency-lens",
        description="Report dependencies whose latest release falls outside the declared range",
    )

    parser.add_argument(
        "manifest",
        nargs="?",
        default="package.json",
        help="Path to package.json. Default: ./package.json"
    )

    parser.add_argument(
        "--days",
        type=int,
        default=DEFAULT_THRESHOLD_DAYS,
        help=f"Only report dependencies outdated for at least this many days. Default: {DEFAULT_THRESHOLD_DAYS}"
    )

    parser.add_argument("--include-dev", action="store_true", help="Include devDependencies")
    parser.add_argument("--include-peer", action="store_true", help="Include peerDependencies")
    parser.add_argument("--include-optional", action="store_true", help="Include optionalDependencies")

    parser.add_argument(
        "--registry",
        default=DEFAULT_REGISTRY,
        help=f"Default registry URL. Default: {DEFAULT_REGISTRY}"
    )

    parser.add_argument(
        "--scope-registry",
        action="append",
        default=[],
        metavar="@SCOPE=URL",
        help="Registry for a package scope (repeatable)"
    )

    parser.add_argument(
        "--default-scope-registry",
        default=None,
        metavar="JSON",
        help='JSON object of scope registries, e.g. {"@org": "https://npm.pkg.github.com"}'
    )

    parser.add_argument(
        "--scope-auth",
        action="append",
        default=[],
        metavar="@SCOPE=SPEC",
        help="Credential for a scope: env:VARNAME, user:password or a raw token (repeatable)"
    )

    parser.add_argument(
        "--skip-registry",
        action="append",
        default=[],
        metavar="@SCOPE",
        help="Skip packages of this scope entirely (repeatable)"
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum parallel registry requests. Default: CPU count clamped to 2..10"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds. Default: no timeout"
    )

    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format. Default: table"
    )

    parser.add_argument("--output", default=None, help="Also write the results to this CSV file")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar on stderr")
    parser.add_argument(
        "--fail-on-outdated",
        action="store_true",
        help="Exit with status 1 when any outdated or error row is reported"
    )
    parser.add_argument("--verbose", action="store_true", help="Print trace lines to stderr")
    return parser


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.concurrency is not None and args.concurrency < 1:
        parser.error("--concurrency must be at least 1")

    try:
        routing = ScopeRoutingConfig.from_options(
            default_registry=args.registry,
            scope_registries=args.scope_registry,
            scope_auth=args.scope_auth,
            skip_registries=args.skip_registry,
            default_scope_registries=args.default_scope_registry,
        )
        manifest = load_manifest(Path(args.manifest))
    except (ConfigError, ManifestError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    settings = CheckerSettings(
        routing=routing,
        threshold_days=args.days,
        include_dev=args.include_dev,
        include_peer=args.include_peer,
        include_optional=args.include_optional,
        concurrency=args.concurrency,
        timeout=args.timeout,
        progress=args.progress,
    )

    declarations = select_dependencies(
        manifest,
        include_dev=settings.include_dev,
        include_peer=settings.include_peer,
        include_optional=settings.include_optional,
    )
    if not declarations:
        print("No dependencies found in the selected sections.")
        return EXIT_OK

    with DependencyAnalyzer(settings) as analyzer:
        report = analyzer.analyze(declarations)

    if args.format == "json":
        print(render_json(report))
    else:
        print(render_table(report))

    if args.output:
        export_results_csv(report, Path(args.output))

    if args.fail_on_outdated and report.results:
        return EXIT_OUTDATED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
