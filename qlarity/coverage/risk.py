"""Feature risk classification.

Each feature is assigned one tier from a fixed, ordered rule list::

    untested suite  (state "none" and more than 10 tests)  -> critical
    low coverage    (fewer than 5 tests, or state "none")  -> high
    complex partial (more than 50 tests, state "partial")  -> medium
    anything else                                           -> low

The first matching rule wins. The "untested suite" signal was called "high
churn" in earlier dashboards; it is a test-count/coverage-state combination,
not a measure of how often the code changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from qlarity.models.config import RiskThresholds
from qlarity.models.report import Feature

logger = logging.getLogger(__name__)

CRITICAL = "critical"
HIGH = "high"
MEDIUM = "medium"
LOW = "low"
RISK_LEVELS = (CRITICAL, HIGH, MEDIUM, LOW)

DEFAULT_THRESHOLDS = RiskThresholds()


@dataclass
class FeatureRisk:
    feature: Feature
    total_tests: float
    low_coverage: bool
    complex: bool
    untested_suite: bool
    level: str


def assess(feature: Feature, thresholds: Optional[RiskThresholds] = None) -> FeatureRisk:
    """Compute the risk signals and tier for one feature."""
    t = thresholds or DEFAULT_THRESHOLDS
    state = feature.coverage_state

    # NaN totals compare false everywhere, so absent counts only trip the state checks
    total = feature.total_tests
    low_coverage = total < t.low_test_count or state == "none"
    complex_ = total > t.complex_test_count
    untested_suite = state == "none" and total > t.untested_suite_count

    if untested_suite:
        level = CRITICAL
    elif low_coverage:
        level = HIGH
    elif complex_ and state == "partial":
        level = MEDIUM
    else:
        level = LOW

    return FeatureRisk(
        feature=feature,
        total_tests=total,
        low_coverage=low_coverage,
        complex=complex_,
        untested_suite=untested_suite,
        level=level,
    )


def classify(feature: Feature, thresholds: Optional[RiskThresholds] = None) -> str:
    """Return the risk tier of a feature."""
    return assess(feature, thresholds).level


def group_by_risk(
    features: list[Feature], thresholds: Optional[RiskThresholds] = None
) -> dict[str, list[FeatureRisk]]:
    """Assess every feature and bucket the results by tier, most severe first."""
    groups: dict[str, list[FeatureRisk]] = {level: [] for level in RISK_LEVELS}
    for feature in features:
        risk = assess(feature, thresholds)
        groups[risk.level].append(risk)
    logger.debug(
        "Risk analysis: %s",
        ", ".join(f"{level}={len(groups[level])}" for level in RISK_LEVELS),
    )
    return groups


def risk_summary(
    features: list[Feature], thresholds: Optional[RiskThresholds] = None
) -> dict[str, int]:
    """Count features per tier."""
    return {level: len(items) for level, items in group_by_risk(features, thresholds).items()}
