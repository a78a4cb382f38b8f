"""Coverage report data structures."""

from __future__ import annotations

import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

COVERAGE_STATES = ("full", "partial", "none")
CRITICALITIES = ("High", "Medium", "Low")


class ReportModel(BaseModel):
    """Base for models read from the camelCase report JSON."""

    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class SuiteStats(ReportModel):
    features_covered: Optional[int] = Field(default=None, alias="featuresCovered")
    test_file_count: Optional[int] = Field(default=None, alias="testFileCount")


class FeatureCoverageStats(ReportModel):
    total_features: Optional[int] = Field(default=None, alias="totalFeatures")
    fully_covered: Optional[int] = Field(default=None, alias="fullyCovered")
    partially_covered: Optional[int] = Field(default=None, alias="partiallyCovered")
    no_automated_coverage: Optional[int] = Field(default=None, alias="noAutomatedCoverage")


class Statistics(ReportModel):
    unit: SuiteStats = Field(default_factory=SuiteStats)
    integration: SuiteStats = Field(default_factory=SuiteStats)
    e2e: SuiteStats = Field(default_factory=SuiteStats)
    feature_coverage: FeatureCoverageStats = Field(
        default_factory=FeatureCoverageStats, alias="featureCoverage"
    )


class ReportContext(ReportModel):
    repository: str = ""
    paths_analyzed: list[str] = Field(default_factory=list, alias="pathsAnalyzed")


class UnitIntegrationCounts(ReportModel):
    unit_test_count: Optional[int] = Field(default=None, alias="unitTestCount")
    integration_test_count: Optional[int] = Field(default=None, alias="integrationTestCount")


class E2ECounts(ReportModel):
    test_count: Optional[int] = Field(default=None, alias="testCount")


class Feature(ReportModel):
    feature_key: str = Field(alias="featureKey")
    display_name: str = Field(default="", alias="displayName")
    source_module_path: str = Field(default="", alias="sourceModulePath")
    unit_integration: UnitIntegrationCounts = Field(
        default_factory=UnitIntegrationCounts, alias="unitIntegration"
    )
    e2e: E2ECounts = Field(default_factory=E2ECounts)
    coverage_state: str = Field(default="", alias="coverageState")

    @field_validator("coverage_state", mode="before")
    @classmethod
    def coerce_state(cls, v):
        # Unrecognized states display as "Unknown"; never reject them
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @property
    def total_tests(self) -> float:
        """Unit + integration + e2e tests; NaN when any count is absent."""
        counts = (
            self.unit_integration.unit_test_count,
            self.unit_integration.integration_test_count,
            self.e2e.test_count,
        )
        if any(c is None for c in counts):
            return math.nan
        return sum(counts)


class FeatureNote(ReportModel):
    feature_key: str = Field(default="", alias="featureKey")
    display_name: str = Field(default="", alias="displayName")
    reason: str = ""


class BlindSpot(FeatureNote):
    pass


class Concern(FeatureNote):
    pass


class ActionItem(ReportModel):
    description: str = ""
    criticality: str = "Low"


class CoverageReport(ReportModel):
    generated_at: str = Field(default="", alias="generatedAt")
    context: ReportContext = Field(default_factory=ReportContext)
    statistics: Statistics = Field(default_factory=Statistics)
    features: list[Feature] = Field(default_factory=list)
    coverage_concerns: Optional[list[Concern]] = Field(default=None, alias="coverageConcerns")
    blind_spots: Optional[list[BlindSpot]] = Field(default=None, alias="blindSpots")
    action_plan: Optional[list[ActionItem]] = Field(default=None, alias="actionPlan")

    @property
    def repository(self) -> str:
        return self.context.repository


class StoredReport(ReportModel):
    id: str
    repository: str
    data: CoverageReport
    uploaded_at: str = Field(default="", alias="uploadedAt")
