"""Report store — persists uploaded coverage reports to a JSON file."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from qlarity.models.report import CoverageReport, StoredReport

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


class StoreError(RuntimeError):
    """Raised when the report store cannot be read or written."""


class ReportStore:
    """Manages the stored reports JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> list[StoredReport]:
        if not self.path.exists():
            return []
        try:
            with open(self.path) as f:
                data = json.load(f)
            return [StoredReport.model_validate(r) for r in data.get("reports", [])]
        except (OSError, ValueError, AttributeError, ValidationError) as e:
            raise StoreError(f"Failed to read report store {self.path}: {e}") from e

    def _write(self, records: list[StoredReport]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump({"reports": [r.to_json_dict() for r in records]}, f, indent=2)
        except OSError as e:
            raise StoreError(f"Failed to write report store {self.path}: {e}") from e
        logger.debug("Saved %d reports to %s", len(records), self.path)

    def save(
        self, repository: str, data: dict[str, Any] | CoverageReport,
        uploaded_at: Optional[str] = None,
    ) -> StoredReport:
        """Persist a report under a repository name and return the stored record."""
        if not isinstance(data, CoverageReport):
            data = CoverageReport.model_validate(data)
        record = StoredReport(
            id=uuid.uuid4().hex,
            repository=repository,
            data=data,
            uploaded_at=uploaded_at or datetime.now(timezone.utc).isoformat(),
        )
        records = self._read()
        records.append(record)
        self._write(records)
        logger.info("Stored report %s for %s", record.id, repository)
        return record

    def recent(self, repository: Optional[str] = None, limit: int = DEFAULT_LIMIT) -> list[StoredReport]:
        """Return the most recent reports, newest first."""
        records = self._read()
        if repository:
            records = [r for r in records if r.repository == repository]
        # Later inserts win ties on equal timestamps
        records = sorted(reversed(records), key=lambda r: r.uploaded_at, reverse=True)
        return records[:limit]

    def reset(self) -> None:
        """Delete every stored report."""
        if self.path.exists():
            self.path.unlink()
        logger.info("Report store reset")
