"""JSON report output."""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Optional

from qlarity.coverage.grouping import group_action_plan, group_blind_spots
from qlarity.coverage.risk import group_by_risk
from qlarity.models.config import RiskThresholds
from qlarity.models.report import CoverageReport

logger = logging.getLogger(__name__)


def generate_json_report(
    report: CoverageReport,
    output_path: Path,
    thresholds: Optional[RiskThresholds] = None,
) -> None:
    """Write the report along with its risk tiers and grouped findings."""
    data = report.to_json_dict()
    data["riskAnalysis"] = {
        level: [
            {
                "featureKey": r.feature.feature_key,
                "displayName": r.feature.display_name,
                "sourceModulePath": r.feature.source_module_path,
                "totalTests": None if math.isnan(r.total_tests) else r.total_tests,
                "coverageState": r.feature.coverage_state,
            }
            for r in risks
        ]
        for level, risks in group_by_risk(report.features, thresholds).items()
    }
    data["blindSpotGroups"] = [
        {"reason": reason, "count": len(spots), "featureKeys": [s.feature_key for s in spots]}
        for reason, spots in group_blind_spots(report.blind_spots or [])
    ]
    data["actionPlanGroups"] = {
        criticality: [item.description for item in items]
        for criticality, items in group_action_plan(report.action_plan or [])
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str, allow_nan=False)
    logger.info("JSON report: %s", output_path)
