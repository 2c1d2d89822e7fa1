#!/usr/bin/env python3
"""
Example script showing how to use the dependency-lens library.
"""

from pathlib import Path

from dependency_lens.analyzer import DependencyAnalyzer
from dependency_lens.config import CheckerSettings, ScopeRoutingConfig
from dependency_lens.manifest import load_manifest, select_dependencies
from dependency_lens.reporting import export_results_csv, render_table


def example_basic_check():
    """Example: Check production dependencies against the public registry."""
    print("="*60)
    print("Example 1: Basic Check")
    print("="*60)

    manifest = load_manifest(Path("package.json"))
    declarations = select_dependencies(manifest)

    with DependencyAnalyzer(CheckerSettings(threshold_days=60)) as analyzer:
        report = analyzer.analyze(declarations)

    print(render_table(report))


def example_private_scope():
    """Example: Route a scope to GitHub Packages with a token from the environment."""
    print("\n" + "="*60)
    print("Example 2: Private Scope")
    print("="*60)

    routing = ScopeRoutingConfig.from_options(
        scope_registries=["@acme=https://npm.pkg.github.com"],
        scope_auth=["@acme=env:GITHUB_TOKEN"],
        skip_registries=["@legacy"],
    )
    settings = CheckerSettings(routing=routing, threshold_days=30, include_dev=True, progress=True)

    manifest = load_manifest(Path("package.json"))
    declarations = select_dependencies(manifest, include_dev=settings.include_dev)

    with DependencyAnalyzer(settings) as analyzer:
        report = analyzer.analyze(declarations)

    print(render_table(report))
    csv_file = export_results_csv(report, Path("./output/outdated.csv"))
    print(f"Results saved to: {csv_file}")


if __name__ == "__main__":
    example_basic_check()
    example_private_scope()
