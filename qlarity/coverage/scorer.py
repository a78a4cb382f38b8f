"""Coverage percentages and feature listings used by the report views.

Percentages are computed without guarding against missing or zero
denominators: an absent counter or an empty report gives NaN, which the
views print as ``nan%``.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from qlarity.models.report import COVERAGE_STATES, CoverageReport, Feature, Statistics

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "tests", "state")
STATE_FILTERS = ("all",) + COVERAGE_STATES


def percent(part: Optional[float], whole: Optional[float]) -> float:
    """Return part/whole as a percentage, NaN when undefined."""
    if part is None or whole is None or whole == 0:
        return math.nan
    return part / whole * 100


def coverage_breakdown(stats: Statistics) -> dict[str, float]:
    """Share of features fully, partially and not covered."""
    fc = stats.feature_coverage
    return {
        "full": percent(fc.fully_covered, fc.total_features),
        "partial": percent(fc.partially_covered, fc.total_features),
        "none": percent(fc.no_automated_coverage, fc.total_features),
    }


def _add(*values: Optional[int]) -> Optional[int]:
    if any(v is None for v in values):
        return None
    return sum(values)


def pyramid_breakdown(stats: Statistics) -> dict[str, dict[str, float]]:
    """Test file share and feature share for each suite."""
    total_files = _add(
        stats.unit.test_file_count,
        stats.integration.test_file_count,
        stats.e2e.test_file_count,
    )
    total_features = stats.feature_coverage.total_features
    pyramid = {}
    for name in ("unit", "integration", "e2e"):
        suite = getattr(stats, name)
        pyramid[name] = {
            "test_files": suite.test_file_count,
            "test_share": percent(suite.test_file_count, total_files),
            "features_covered": suite.features_covered,
            "feature_share": percent(suite.features_covered, total_features),
        }
    return pyramid


def feature_state_counts(features: list[Feature]) -> dict[str, dict[str, float]]:
    """Count features per coverage state, with their share of the list."""
    counts = {}
    for state in COVERAGE_STATES:
        n = sum(1 for f in features if f.coverage_state == state)
        counts[state] = {"count": n, "share": percent(n, len(features))}
    return counts


def filter_features(features: list[Feature], state: str = "all") -> list[Feature]:
    if state not in STATE_FILTERS:
        raise ValueError(f"Unknown coverage state filter: {state}")
    if state == "all":
        return list(features)
    return [f for f in features if f.coverage_state == state]


def _tests_sort_key(feature: Feature) -> float:
    total = feature.total_tests
    return -math.inf if math.isnan(total) else total


def sort_features(features: list[Feature], by: str = "name") -> list[Feature]:
    """Sort by name (A-Z), total tests (most first) or coverage state (A-Z)."""
    if by == "name":
        return sorted(features, key=lambda f: f.display_name.casefold())
    if by == "tests":
        return sorted(features, key=_tests_sort_key, reverse=True)
    if by == "state":
        return sorted(features, key=lambda f: f.coverage_state)
    raise ValueError(f"Unknown sort key: {by}")


def coverage_state_label(state: str) -> str:
    if state in COVERAGE_STATES:
        return state.capitalize()
    return "Unknown"


def format_percent(value: float) -> str:
    if math.isnan(value):
        return "nan%"
    return f"{value:.1f}%"


def calculate_coverage_summary(report: CoverageReport) -> str:
    """Generate a human-readable coverage summary."""
    stats = report.statistics
    fc = stats.feature_coverage
    breakdown = coverage_breakdown(stats)
    lines = [
        f"Coverage Summary for {report.context.repository}",
        f"  Generated: {report.generated_at}",
        f"  Features: {fc.total_features}",
        f"  Fully covered: {fc.fully_covered} ({format_percent(breakdown['full'])})",
        f"  Partially covered: {fc.partially_covered} ({format_percent(breakdown['partial'])})",
        f"  No automated coverage: {fc.no_automated_coverage} ({format_percent(breakdown['none'])})",
    ]
    for name in ("unit", "integration", "e2e"):
        suite = getattr(stats, name)
        lines.append(
            f"  {name.capitalize()}: {suite.test_file_count} test files, "
            f"{suite.features_covered} features"
        )
    if report.blind_spots:
        lines.append(f"  Blind spots: {len(report.blind_spots)}")
    return "\n".join(lines)
