"""
Reporting and export utilities.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

from .models import AnalysisReport, OutdatedResult, ResultStatus


logger = logging.getLogger(__name__)

COLUMNS = [
    "name",
    "declared",
    "latest",
    "outdatedSinceVersion",
    "outdatedSinceDate",
    "daysOutdated",
    "status",
]
ERROR_MARK = "(error)"


def result_to_row(result: OutdatedResult, threshold_days: int) -> Dict:
    if result.status is ResultStatus.ERROR:
        return {
            "name": result.name,
            "declared": result.declared_spec,
            "latest": ERROR_MARK,
            "outdatedSinceVersion": ERROR_MARK,
            "outdatedSinceDate": ERROR_MARK,
            "daysOutdated": None,
            "status": f"Error: {result.error}",
        }
    return {
        "name": result.name,
        "declared": result.declared_spec,
        "latest": result.latest,
        "outdatedSinceVersion": result.outdated_since_version,
        "outdatedSinceDate": result.outdated_since_date,
        "daysOutdated": result.days_outdated,
        "status": f"OUTDATED >={threshold_days}d",
    }


def report_rows(report: AnalysisReport) -> List[Dict]:
    return [result_to_row(r, report.threshold_days) for r in report.results]


def results_to_frame(report: AnalysisReport) -> pd.DataFrame:
    df = pd.DataFrame(report_rows(report), columns=COLUMNS)
    df["daysOutdated"] = df["daysOutdated"].astype("Int64")
    return df


def summary_message(report: AnalysisReport) -> str:
    """One line telling healthy, nothing-evaluable and error runs apart."""
    errors = len(report.errors)
    outdated = len(report.outdated)
    if errors:
        return (
            f"Errors encountered for {errors} "
            f"{'dependency' if errors == 1 else 'dependencies'}; "
            f"{outdated} outdated by >= {report.threshold_days} days."
        )
    if report.nothing_evaluable:
        return "No dependencies with semantic versions could be evaluated."
    if not outdated:
        return f"No dependencies (declared vs latest) are outdated by >= {report.threshold_days} days."
    return (
        f"{outdated} {'dependency' if outdated == 1 else 'dependencies'} "
        f"outdated by >= {report.threshold_days} days."
    )


def render_table(report: AnalysisReport) -> str:
    if not report.results:
        return summary_message(report)
    df = results_to_frame(report)
    return df.to_string(index=False, na_rep="") + "\n\n" + summary_message(report)


def render_json(report: AnalysisReport) -> str:
    payload = {
        "thresholdDays": report.threshold_days,
        "evaluated": report.evaluated,
        "skipped": report.skipped,
        "errors": len(report.errors),
        "summary": summary_message(report),
        "results": report_rows(report),
    }
    return json.dumps(payload, indent=2)


def export_results_csv(report: AnalysisReport, output_file: Path) -> Path:
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    results_to_frame(report).to_csv(output_file, index=False)
    logger.info("Results saved to: %s", output_file)
    return output_file
