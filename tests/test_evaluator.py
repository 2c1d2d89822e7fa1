"""Tests for the outdated evaluation rules."""

from datetime import datetime, timezone

import pytest

from dependency_lens import evaluator as evaluator_module
from dependency_lens.evaluator import (
    OutdatedEvaluator,
    SpecKind,
    classify_spec,
    find_onset_version,
    pick_latest,
    within_declared_range,
)
from dependency_lens.models import UNKNOWN, DependencyDeclaration, ResultStatus
from dependency_lens.versions import sort_versions_normalized


NOW = datetime(2024, 12, 31, tzinfo=timezone.utc)


def metadata(times, latest=None, extra_versions=()):
    versions = {v: {} for v in list(times) + list(extra_versions)}
    doc = {"versions": versions, "time": {v: t for v, t in times.items() if t}}
    if latest is not None:
        doc["dist-tags"] = {"latest": latest}
    return doc


def declared(spec, name="demo"):
    return DependencyDeclaration(name=name, declared_spec=spec)


def test_caret_range_outdated_since_first_breaking_release():
    meta = metadata(
        {
            "1.0.0": "2023-01-01T00:00:00.000Z",
            "1.5.0": "2023-06-01T00:00:00.000Z",
            "2.0.0": "2024-01-01T00:00:00.000Z",
        },
        latest="2.0.0",
    )

    result = OutdatedEvaluator(threshold_days=0).evaluate(declared("^1.0.0"), meta, NOW)

    assert result is not None
    assert result.status is ResultStatus.OUTDATED
    assert result.latest == "2.0.0"
    assert result.outdated_since_version == "2.0.0"
    assert result.outdated_since_date == "2024-01-01"
    assert result.days_outdated == 365


def test_prerelease_inside_declared_range_is_not_the_onset():
    meta = metadata(
        {
            "1.0.0": "2023-01-01T00:00:00Z",
            "1.6.0-beta.1": "2023-05-31T00:00:00Z",
            "2.0.0": "2024-01-01T00:00:00Z",
        },
        latest="2.0.0",
    )

    result = OutdatedEvaluator(threshold_days=0).evaluate(declared("^1.0.0"), meta, NOW)

    assert result.outdated_since_version == "2.0.0"
    assert result.outdated_since_date == "2024-01-01"
    assert result.days_outdated == 365


def test_within_declared_range_counts_prereleases_by_release_core():
    assert within_declared_range("1.6.0-beta.1", "^1.0.0")
    assert within_declared_range("1.2.0", "^1.0.0")
    assert not within_declared_range("2.0.0-rc.1", "^1.0.0")
    assert not within_declared_range("2.0.0", "^1.0.0")


def test_prerelease_latest_inside_range_is_not_outdated():
    meta = metadata(
        {"1.0.0": "2020-01-01T00:00:00Z", "1.1.0-rc.1": "2020-02-01T00:00:00Z"},
        latest="1.1.0-rc.1",
    )
    assert OutdatedEvaluator().evaluate(declared("^1.0.0"), meta, NOW) is None


def test_range_satisfied_by_latest_emits_nothing():
    meta = metadata({"1.0.0": "2020-01-01T00:00:00Z", "1.9.0": "2020-02-01T00:00:00Z"}, latest="1.9.0")
    assessment = OutdatedEvaluator().assess(declared("^1.0.0"), meta, NOW)
    assert assessment.evaluable
    assert assessment.result is None


def test_dist_tag_latest_wins_over_greatest_version():
    meta = metadata(
        {"1.5.0": "2020-01-01T00:00:00Z", "2.0.0-beta.1": "2020-02-01T00:00:00Z", "2.0.0": "2020-03-01T00:00:00Z"},
        latest="1.5.0",
    )
    assert OutdatedEvaluator().evaluate(declared("^1.0.0"), meta, NOW) is None


def test_missing_or_unknown_dist_tag_falls_back_to_greatest():
    versions = sort_versions_normalized(["1.0.0", "3.0.0", "2.0.0"])
    assert pick_latest(versions, {}).raw == "3.0.0"
    assert pick_latest(versions, {"latest": "9.9.9"}).raw == "3.0.0"
    assert pick_latest(versions, {"latest": "v2.0.0"}).raw == "2.0.0"
    assert pick_latest([], {"latest": "1.0.0"}) is None


def test_exact_declaration_onset_is_first_greater_version(monkeypatch):
    monkeypatch.setattr(evaluator_module, "is_valid_range", lambda spec: False)
    meta = metadata(
        {
            "1.1.0": "2022-01-01T00:00:00Z",
            "1.2.0": "2022-02-01T00:00:00Z",
            "1.2.1": "2022-03-01T00:00:00Z",
            "1.3.0": "2022-04-01T00:00:00Z",
        },
        latest="1.3.0",
    )

    assert classify_spec("1.2.0") == (SpecKind.EXACT, "1.2.0")
    result = OutdatedEvaluator().evaluate(declared("1.2.0"), meta, NOW)

    assert result.latest == "1.3.0"
    assert result.outdated_since_version == "1.2.1"
    assert result.outdated_since_date == "2022-03-01"


def test_exact_pin_as_range_gives_same_onset():
    meta = metadata(
        {"1.2.0": "2022-02-01T00:00:00Z", "1.2.1": "2022-03-01T00:00:00Z", "1.3.0": "2022-04-01T00:00:00Z"},
        latest="1.3.0",
    )
    result = OutdatedEvaluator().evaluate(declared("1.2.0"), meta, NOW)
    assert result.outdated_since_version == "1.2.1"


def test_find_onset_version_exact():
    versions = sort_versions_normalized(["1.0.0", "1.2.0", "1.2.1", "1.3.0"])
    onset = find_onset_version(SpecKind.EXACT, "1.2.0", "1.2.0", versions)
    assert onset.raw == "1.2.1"


def test_onset_when_nothing_ever_satisfied_is_earliest_version():
    meta = metadata({"1.0.0": "2021-01-01T00:00:00Z", "2.0.0": "2021-06-01T00:00:00Z"}, latest="2.0.0")
    result = OutdatedEvaluator().evaluate(declared("^5.0.0"), meta, NOW)
    assert result.outdated_since_version == "1.0.0"
    assert result.outdated_since_date == "2021-01-01"


def test_onset_without_timestamp_falls_back_to_latest_publish_date():
    meta = metadata(
        {"1.0.0": "2021-01-01T00:00:00Z", "2.0.0": None, "3.0.0": "2023-01-01T00:00:00Z"},
        latest="3.0.0",
    )
    result = OutdatedEvaluator().evaluate(declared("^1.0.0"), meta, NOW)
    assert result.outdated_since_version == "3.0.0"
    assert result.outdated_since_date == "2023-01-01"


def test_unknown_onset_and_latest_dates_are_suppressed():
    meta = metadata({"1.0.0": None, "2.0.0": None}, latest="2.0.0")
    assessment = OutdatedEvaluator().assess(declared("^1.0.0"), meta, NOW)
    assert assessment.evaluable
    assert assessment.result is None


def test_below_threshold_is_suppressed():
    meta = metadata({"1.0.0": "2024-01-01T00:00:00Z", "2.0.0": "2024-12-21T00:00:00Z"}, latest="2.0.0")
    evaluator = OutdatedEvaluator(threshold_days=60)
    assert evaluator.evaluate(declared("^1.0.0"), meta, NOW) is None
    assert OutdatedEvaluator(threshold_days=10).evaluate(declared("^1.0.0"), meta, NOW).days_outdated == 10


def test_days_outdated_is_floored():
    meta = metadata({"1.0.0": "2024-12-01T00:00:00Z", "2.0.0": "2024-12-29T01:00:00Z"}, latest="2.0.0")
    result = OutdatedEvaluator().evaluate(declared("^1.0.0"), meta, NOW)
    assert result.days_outdated == 1


@pytest.mark.parametrize(
    "spec",
    [
        "workspace:*",
        "npm:other-package@^1.0.0",
        "file:../local-lib",
        "link:../linked",
        "git+https://github.com/acme/lib.git#v1.2.3",
        "github:acme/lib#v2.0.0",
        "acme/lib",
        "./vendor/lib",
        "https://example.com/lib-1.0.0.tgz",
        "latest",
    ],
)
def test_non_semver_declarations_are_skipped(spec):
    meta = metadata({"1.0.0": "2020-01-01T00:00:00Z", "2.0.0": "2020-06-01T00:00:00Z"}, latest="2.0.0")
    assessment = OutdatedEvaluator().assess(declared(spec), meta, NOW)
    assert assessment.result is None
    assert not assessment.evaluable
    assert classify_spec(spec) == (SpecKind.UNSUPPORTED, None)


def test_no_semver_versions_is_skipped():
    meta = {"versions": {"latest-build": {}, "nightly": {}}, "dist-tags": {"latest": "nightly"}}
    assessment = OutdatedEvaluator().assess(declared("^1.0.0"), meta, NOW)
    assert not assessment.evaluable
    assert assessment.result is None


def test_malformed_metadata_is_treated_as_empty():
    meta = {"versions": ["1.0.0"], "time": "yesterday", "dist-tags": None}
    assert OutdatedEvaluator().evaluate(declared("^1.0.0"), meta, NOW) is None
    assert OutdatedEvaluator().evaluate(declared("^1.0.0"), {}, NOW) is None


def test_unknown_marker_is_used_for_error_rows():
    from dependency_lens.models import OutdatedResult

    row = OutdatedResult.from_error(declared("^1.0.0"), RuntimeError("boom"))
    assert row.status is ResultStatus.ERROR
    assert row.error == "boom"
    assert row.outdated_since_date == UNKNOWN
    assert row.days_outdated is None
