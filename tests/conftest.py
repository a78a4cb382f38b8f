"""Pytest configuration and shared fixtures."""

import json
from pathlib import Path
from typing import Any

import pytest

from qlarity.models.config import DashboardConfig
from qlarity.models.report import CoverageReport, Feature
from qlarity.store.registry import ReportStore


def make_feature(
    key: str = "feature",
    unit: int | None = 0,
    integration: int | None = 0,
    e2e: int | None = 0,
    state: str | None = "full",
    path: str = "src/feature",
) -> Feature:
    """Build a Feature from plain counts."""
    return Feature.model_validate({
        "featureKey": key,
        "displayName": key.replace("-", " ").title(),
        "sourceModulePath": path,
        "unitIntegration": {"unitTestCount": unit, "integrationTestCount": integration},
        "e2e": {"testCount": e2e},
        "coverageState": state,
    })


def make_report_dict(repository: str = "web", features: int = 2, scale: int = 1) -> dict[str, Any]:
    """Build the JSON form of a single coverage report."""
    return {
        "generatedAt": "2025-01-01T00:00:00Z",
        "context": {"repository": repository, "pathsAnalyzed": ["src", "lib"]},
        "statistics": {
            "unit": {"featuresCovered": 2 * scale, "testFileCount": 10 * scale},
            "integration": {"featuresCovered": 1 * scale, "testFileCount": 4 * scale},
            "e2e": {"featuresCovered": 1 * scale, "testFileCount": 2 * scale},
            "featureCoverage": {
                "totalFeatures": 4 * scale,
                "fullyCovered": 2 * scale,
                "partiallyCovered": 1 * scale,
                "noAutomatedCoverage": 1 * scale,
            },
        },
        "features": [
            {
                "featureKey": f"{repository}-f{i}",
                "displayName": f"Feature {i}",
                "sourceModulePath": f"src/module_{i}",
                "unitIntegration": {"unitTestCount": 3, "integrationTestCount": 2},
                "e2e": {"testCount": 1},
                "coverageState": "full",
            }
            for i in range(features)
        ],
        "coverageConcerns": [
            {"featureKey": f"{repository}-f0", "displayName": "Feature 0", "reason": "Flaky"},
        ],
        "blindSpots": [
            {"featureKey": f"{repository}-f1", "displayName": "Feature 1", "reason": "No e2e tests"},
        ],
        "actionPlan": [
            {"description": f"Stabilise {repository}", "criticality": "High"},
        ],
    }


# ============================================================================
# Report Fixtures
# ============================================================================


@pytest.fixture
def report_dict() -> dict[str, Any]:
    """A single report in JSON form."""
    return make_report_dict("web")


@pytest.fixture
def web_report() -> CoverageReport:
    return CoverageReport.model_validate(make_report_dict("web", features=2))


@pytest.fixture
def api_report() -> CoverageReport:
    return CoverageReport.model_validate(make_report_dict("api", features=3, scale=2))


# ============================================================================
# Store & Config Fixtures
# ============================================================================


@pytest.fixture
def store(tmp_path: Path) -> ReportStore:
    """An empty report store in a temp directory."""
    return ReportStore(tmp_path / "store" / "reports.json")


@pytest.fixture
def fallback_file(tmp_path: Path) -> Path:
    """A bundled dataset using the multi-repository wrapper."""
    path = tmp_path / "fallback.json"
    path.write_text(json.dumps({
        "reports": [
            {"name": "storefront", "data": make_report_dict("web")},
            {"name": "", "data": make_report_dict("api", features=1)},
        ],
    }))
    return path


@pytest.fixture
def dashboard_config(tmp_path: Path, fallback_file: Path) -> DashboardConfig:
    return DashboardConfig(
        store_path=str(tmp_path / "store" / "reports.json"),
        fallback_data_path=str(fallback_file),
        export_output_dir=str(tmp_path / "exports"),
    )
