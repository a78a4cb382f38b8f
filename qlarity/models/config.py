"""Configuration models for the coverage dashboard."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

# Shipped as package data so it resolves regardless of the working directory
DEFAULT_FALLBACK_DATA = str(Path(__file__).resolve().parent.parent / "data" / "test-coverage-data.json")


class RiskThresholds(BaseModel):
    # Fewer tests than this counts as low coverage
    low_test_count: int = 5
    # More tests than this marks a feature as complex
    complex_test_count: int = 50
    # An uncovered feature with more tests than this is critical
    untested_suite_count: int = 10


class DashboardConfig(BaseModel):
    # Storage
    store_path: str = ".qlarity/reports.json"
    fallback_data_path: str = DEFAULT_FALLBACK_DATA

    # Fetching
    fetch_limit: int = 10

    # Risk analysis
    risk: RiskThresholds = Field(default_factory=RiskThresholds)

    # Export
    export_output_dir: str = "./qlarity-reports"

    @field_validator("fetch_limit")
    @classmethod
    def positive_limit(cls, v: int) -> int:
        if v < 1:
            raise ValueError("fetch_limit must be at least 1")
        return v

    @classmethod
    def load(cls, path: str | Path) -> "DashboardConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def load_or_default(cls, path: str | Path) -> "DashboardConfig":
        """Load config if the file exists, otherwise return defaults."""
        if Path(path).exists():
            return cls.load(path)
        return cls()

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
