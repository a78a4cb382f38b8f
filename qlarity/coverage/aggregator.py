"""Merges per-repository coverage reports into a single "All" view."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from qlarity.models.report import (
    CoverageReport,
    FeatureCoverageStats,
    ReportContext,
    Statistics,
    SuiteStats,
)

logger = logging.getLogger(__name__)

SUITES = ("unit", "integration", "e2e")
FEATURE_COVERAGE_FIELDS = (
    "total_features", "fully_covered", "partially_covered", "no_automated_coverage",
)


def aggregate_label(count: int) -> str:
    return f"All ({count})"


def _sum_counts(values: Iterable[Optional[int]]) -> Optional[int]:
    """Sum counters; an absent counter anywhere makes the total absent."""
    total = 0
    for v in values:
        if v is None:
            return None
        total += v
    return total


def _aggregate_statistics(reports: list[CoverageReport]) -> Statistics:
    suites = {}
    for suite in SUITES:
        per_report = [getattr(r.statistics, suite) for r in reports]
        suites[suite] = SuiteStats(
            features_covered=_sum_counts(s.features_covered for s in per_report),
            test_file_count=_sum_counts(s.test_file_count for s in per_report),
        )

    feature_coverage = FeatureCoverageStats(**{
        name: _sum_counts(getattr(r.statistics.feature_coverage, name) for r in reports)
        for name in FEATURE_COVERAGE_FIELDS
    })
    return Statistics(feature_coverage=feature_coverage, **suites)


def aggregate(reports: list[CoverageReport], now: Optional[str] = None) -> CoverageReport:
    """Merge reports into one synthetic report.

    Statistics are summed, lists are concatenated in input order, and each
    feature's ``sourceModulePath`` is prefixed with its origin repository.
    Feature keys are left as they are, so keys may repeat across repositories.
    Inputs are not modified.
    """
    generated_at = now or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    features = []
    concerns = []
    blind_spots = []
    action_plan = []
    paths: list[str] = []
    for report in reports:
        repository = report.context.repository
        paths.extend(report.context.paths_analyzed)
        for feature in report.features:
            features.append(feature.model_copy(update={
                "source_module_path": f"{repository}/{feature.source_module_path}",
            }))
        concerns.extend(report.coverage_concerns or [])
        blind_spots.extend(report.blind_spots or [])
        action_plan.extend(report.action_plan or [])

    result = CoverageReport(
        generated_at=generated_at,
        context=ReportContext(repository=aggregate_label(len(reports)), paths_analyzed=paths),
        statistics=_aggregate_statistics(reports),
        features=features,
        coverage_concerns=concerns,
        blind_spots=blind_spots,
        action_plan=action_plan,
    )
    logger.debug(
        "Aggregated %d reports: %d features, %d blind spots",
        len(reports), len(features), len(blind_spots),
    )
    return result
