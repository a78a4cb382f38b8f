"""Tests for merging coverage reports."""

from datetime import datetime, timezone

import pytest

from qlarity.coverage.aggregator import aggregate, aggregate_label
from qlarity.models.report import CoverageReport

from conftest import make_report_dict

NOW = "2025-03-04T05:06:07Z"


class TestAggregateEmpty:
    """Tests for aggregating zero reports."""

    def test_returns_placeholder(self):
        result = aggregate([], now=NOW)
        assert result.features == []
        assert result.context.repository == "All (0)"
        assert result.context.paths_analyzed == []

    def test_all_counters_zero(self):
        stats = aggregate([]).statistics
        for suite in (stats.unit, stats.integration, stats.e2e):
            assert suite.features_covered == 0
            assert suite.test_file_count == 0
        fc = stats.feature_coverage
        assert (fc.total_features, fc.fully_covered, fc.partially_covered, fc.no_automated_coverage) == (0, 0, 0, 0)

    def test_lists_empty(self):
        result = aggregate([])
        assert result.coverage_concerns == []
        assert result.blind_spots == []
        assert result.action_plan == []


class TestAggregateSingle:
    """Aggregating one report is the report itself, relabelled."""

    def test_label_is_synthetic(self, web_report):
        result = aggregate([web_report], now=NOW)
        assert result.context.repository == "All (1)"
        assert result.context.repository != web_report.context.repository

    def test_generated_at_is_aggregation_time(self, web_report):
        result = aggregate([web_report], now=NOW)
        assert result.generated_at == NOW
        assert result.generated_at != web_report.generated_at

    def test_default_timestamp(self, web_report):
        result = aggregate([web_report])
        assert result.generated_at.endswith("Z")
        assert result.generated_at != web_report.generated_at

    def test_default_timestamp_is_current_utc(self, web_report):
        before = datetime.now(timezone.utc).replace(microsecond=0)
        result = aggregate([web_report])
        after = datetime.now(timezone.utc)
        stamp = datetime.strptime(result.generated_at, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)
        assert before <= stamp <= after

    def test_statistics_and_features_preserved(self, web_report):
        result = aggregate([web_report], now=NOW)
        assert result.statistics == web_report.statistics
        assert len(result.features) == len(web_report.features)
        assert [f.feature_key for f in result.features] == [f.feature_key for f in web_report.features]


class TestAggregateMany:
    """Tests for aggregating several reports."""

    def test_sums_statistics(self, web_report, api_report):
        result = aggregate([web_report, api_report], now=NOW)
        stats = result.statistics
        assert stats.unit.test_file_count == (
            web_report.statistics.unit.test_file_count + api_report.statistics.unit.test_file_count
        )
        assert stats.integration.features_covered == 3
        assert stats.e2e.test_file_count == 6
        assert stats.feature_coverage.total_features == 12
        assert stats.feature_coverage.fully_covered == 6
        assert stats.feature_coverage.partially_covered == 3
        assert stats.feature_coverage.no_automated_coverage == 3

    def test_label_counts_reports(self, web_report, api_report):
        assert aggregate([web_report, api_report]).context.repository == aggregate_label(2)

    def test_concatenates_paths_with_duplicates(self, web_report, api_report):
        result = aggregate([web_report, api_report])
        assert result.context.paths_analyzed == ["src", "lib", "src", "lib"]

    def test_namespaces_module_paths(self, web_report, api_report):
        result = aggregate([web_report, api_report])
        assert len(result.features) == len(web_report.features) + len(api_report.features)
        assert [f.source_module_path for f in result.features] == [
            "web/src/module_0", "web/src/module_1",
            "api/src/module_0", "api/src/module_1", "api/src/module_2",
        ]

    def test_feature_keys_not_namespaced(self):
        a = CoverageReport.model_validate(make_report_dict("same"))
        b = CoverageReport.model_validate(make_report_dict("same"))
        keys = [f.feature_key for f in aggregate([a, b]).features]
        assert keys == ["same-f0", "same-f1", "same-f0", "same-f1"]

    def test_concatenates_findings(self, web_report, api_report):
        result = aggregate([web_report, api_report])
        assert [a.description for a in result.action_plan] == ["Stabilise web", "Stabilise api"]
        assert len(result.blind_spots) == 2
        assert len(result.coverage_concerns) == 2

    def test_missing_lists_treated_as_empty(self, web_report):
        bare = make_report_dict("bare")
        for key in ("coverageConcerns", "blindSpots", "actionPlan"):
            del bare[key]
        result = aggregate([web_report, CoverageReport.model_validate(bare)])
        assert len(result.blind_spots) == 1
        assert len(result.action_plan) == 1

    def test_inputs_not_modified(self, web_report, api_report):
        before = (web_report.model_dump(), api_report.model_dump())
        aggregate([web_report, api_report])
        assert (web_report.model_dump(), api_report.model_dump()) == before

    def test_deterministic(self, web_report, api_report):
        assert aggregate([web_report, api_report], now=NOW) == aggregate([web_report, api_report], now=NOW)

    def test_missing_counter_makes_total_absent(self, web_report):
        partial = make_report_dict("partial")
        del partial["statistics"]["unit"]["testFileCount"]
        result = aggregate([web_report, CoverageReport.model_validate(partial)])
        assert result.statistics.unit.test_file_count is None
        assert result.statistics.unit.features_covered == 4
