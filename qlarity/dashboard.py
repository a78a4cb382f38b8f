"""Dashboard state — loads stored reports and builds the selected report views."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from qlarity.api.handlers import handle_fetch, handle_upload
from qlarity.coverage.aggregator import aggregate
from qlarity.coverage.grouping import group_action_plan, group_blind_spots
from qlarity.coverage.risk import group_by_risk
from qlarity.coverage.scorer import (
    coverage_breakdown,
    feature_state_counts,
    filter_features,
    pyramid_breakdown,
    sort_features,
)
from qlarity.ingest.validator import ReportFormatError, infer_repository, parse_reports_text
from qlarity.models.config import DashboardConfig
from qlarity.models.report import CoverageReport, StoredReport
from qlarity.store.registry import ReportStore

logger = logging.getLogger(__name__)

ALL = "all"
TABS = ("overview", "map", "pyramid", "risks", "blindspots", "actions", "charts")


class UploadError(RuntimeError):
    """Raised when an uploaded file is rejected."""


class DashboardState:
    """Holds the loaded report records; views are derived on demand."""

    def __init__(self, config: DashboardConfig, store: Optional[ReportStore] = None):
        self.config = config
        self.store = store or ReportStore(Path(config.store_path))
        self.records: list[StoredReport] = []
        self.source = ""

    def load(self) -> list[StoredReport]:
        """Load stored reports, falling back to the bundled dataset."""
        response = handle_fetch(self.store, limit=self.config.fetch_limit)
        if response.ok and response.body["reports"]:
            self.records = [StoredReport.model_validate(r) for r in response.body["reports"]]
            self.source = "store"
            logger.info("Loaded %d reports from %s", len(self.records), self.store.path)
            return self.records

        if not response.ok:
            logger.warning("Report store unavailable: %s", response.body.get("error"))
        self.records = self._load_fallback()
        self.source = "fallback" if self.records else ""
        return self.records

    def _load_fallback(self) -> list[StoredReport]:
        path = Path(self.config.fallback_data_path)
        logger.info("Loading bundled coverage data from %s", path)
        try:
            reports = parse_reports_text(path.read_bytes())
        except (OSError, ReportFormatError) as e:
            logger.error("Failed to load coverage data: %s", e)
            return []
        return [
            StoredReport(id=f"default-{i}", repository=r.context.repository, data=r)
            for i, r in enumerate(reports)
        ]

    def select(self, selector: str = ALL) -> CoverageReport:
        """Return one record's report, or the aggregate of all records."""
        for record in self.records:
            if record.id == selector:
                return record.data
        if selector != ALL:
            logger.warning("No report with id %s, showing all reports", selector)
        return aggregate([r.data for r in self.records])

    def upload(self, path: str | Path, repository: Optional[str] = None) -> dict[str, Any]:
        """Validate and store a report file, then reload state.

        On failure the loaded records are left unchanged.
        """
        path = Path(path)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise UploadError(f"Failed to read {path}: {e}") from e

        if repository is None:
            try:
                repository = infer_repository(json.loads(content))
            except ValueError as e:
                raise UploadError(f"Invalid JSON file format: {e}") from e

        response = handle_upload(self.store, path.name, content, repository)
        if not response.ok:
            raise UploadError(response.body.get("error", "Upload failed"))
        self.load()
        return response.body

    def view(self, tab: str, selector: str = ALL, **options: Any) -> dict[str, Any]:
        """Build the data behind one dashboard tab for the selected report."""
        return build_view(self.select(selector), tab, self.config, **options)


def build_view(
    report: CoverageReport,
    tab: str,
    config: Optional[DashboardConfig] = None,
    state: str = "all",
    sort_by: str = "tests",
) -> dict[str, Any]:
    """Compute the data shown on a dashboard tab."""
    config = config or DashboardConfig()
    stats = report.statistics

    if tab == "overview":
        return {
            "repository": report.context.repository,
            "generated_at": report.generated_at,
            "paths_analyzed": report.context.paths_analyzed,
            "feature_coverage": stats.feature_coverage,
            "breakdown": coverage_breakdown(stats),
            "suites": {name: getattr(stats, name) for name in ("unit", "integration", "e2e")},
        }
    if tab == "map":
        features = filter_features(report.features, state)
        return {
            "state_counts": feature_state_counts(report.features),
            "features": sort_features(features, sort_by),
        }
    if tab == "pyramid":
        return {"pyramid": pyramid_breakdown(stats)}
    if tab == "risks":
        return {
            "groups": group_by_risk(report.features, config.risk),
            "concerns": report.coverage_concerns or [],
        }
    if tab == "blindspots":
        blind_spots = report.blind_spots or []
        return {"total": len(blind_spots), "groups": group_blind_spots(blind_spots)}
    if tab == "actions":
        return {"groups": group_action_plan(report.action_plan or [])}
    if tab == "charts":
        return {
            "test_files": {n: getattr(stats, n).test_file_count for n in ("unit", "integration", "e2e")},
            "coverage_states": {
                "Fully Covered": stats.feature_coverage.fully_covered,
                "Partially Covered": stats.feature_coverage.partially_covered,
                "No Coverage": stats.feature_coverage.no_automated_coverage,
            },
            "features_covered": {
                n: getattr(stats, n).features_covered for n in ("unit", "integration", "e2e")
            },
        }
    raise ValueError(f"Unknown tab: {tab}")
