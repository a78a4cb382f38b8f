"""Report payload detection and normalization.

Uploaded and bundled JSON comes in three shapes:

* a single report (``context`` and ``statistics`` at the top level),
* a multi-context wrapper ``{"contexts": [report, ...]}``,
* a multi-repository wrapper ``{"reports": [{"name": ..., "data": report}, ...]}``.

:func:`detect_format` turns a parsed value into exactly one of the payload
variants below, and :func:`normalize` flattens any variant into a list of
:class:`CoverageReport`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Union

from pydantic import ValidationError

from qlarity.models.report import CoverageReport

logger = logging.getLogger(__name__)


class ReportFormatError(ValueError):
    """Raised when content is not JSON or matches none of the report shapes."""


@dataclass(frozen=True)
class SingleReport:
    report: CoverageReport


@dataclass(frozen=True)
class MultiContextReport:
    contexts: list[CoverageReport]


@dataclass(frozen=True)
class NamedReport:
    name: str
    data: CoverageReport


@dataclass(frozen=True)
class MultiRepositoryReport:
    reports: list[NamedReport]


ParsedPayload = Union[SingleReport, MultiContextReport, MultiRepositoryReport]


def _to_report(value: Any, where: str) -> CoverageReport:
    if not isinstance(value, dict):
        raise ReportFormatError(f"{where}: expected a report object, got {type(value).__name__}")
    try:
        return CoverageReport.model_validate(value)
    except ValidationError as e:
        raise ReportFormatError(f"{where}: invalid report: {e}") from e


def detect_format(value: Any) -> ParsedPayload:
    """Classify a parsed JSON value into one of the accepted payload shapes."""
    if not isinstance(value, dict):
        raise ReportFormatError(
            f"Unrecognized report format: expected an object, got {type(value).__name__}"
        )

    if isinstance(value.get("reports"), list):
        if not value["reports"]:
            raise ReportFormatError("reports: wrapper contains no reports")
        named = []
        for i, entry in enumerate(value["reports"]):
            if not isinstance(entry, dict):
                raise ReportFormatError(f"reports[{i}]: expected an object")
            data = _to_report(entry.get("data"), f"reports[{i}].data")
            named.append(NamedReport(name=entry.get("name") or "", data=data))
        logger.debug("Detected multi-repository payload with %d reports", len(named))
        return MultiRepositoryReport(reports=named)

    if isinstance(value.get("contexts"), list):
        if not value["contexts"]:
            raise ReportFormatError("contexts: wrapper contains no reports")
        contexts = [
            _to_report(ctx, f"contexts[{i}]") for i, ctx in enumerate(value["contexts"])
        ]
        logger.debug("Detected multi-context payload with %d contexts", len(contexts))
        return MultiContextReport(contexts=contexts)

    if "context" not in value or "statistics" not in value:
        raise ReportFormatError(
            "Unrecognized report format: expected 'context' and 'statistics', "
            "or a 'contexts' or 'reports' list"
        )
    return SingleReport(report=_to_report(value, "report"))


def normalize(payload: ParsedPayload) -> list[CoverageReport]:
    """Flatten a payload into reports, applying wrapper-level repository names."""
    if isinstance(payload, SingleReport):
        return [payload.report]
    if isinstance(payload, MultiContextReport):
        return list(payload.contexts)
    if isinstance(payload, MultiRepositoryReport):
        reports = []
        for entry in payload.reports:
            repository = entry.name or entry.data.context.repository
            context = entry.data.context.model_copy(update={"repository": repository})
            reports.append(entry.data.model_copy(update={"context": context}))
        return reports
    raise TypeError(f"Unsupported payload type: {type(payload).__name__}")


def parse_reports(value: Any) -> list[CoverageReport]:
    """Detect and normalize a parsed JSON value in one step."""
    return normalize(detect_format(value))


def parse_reports_text(text: str | bytes) -> list[CoverageReport]:
    """Decode JSON text and normalize it into reports."""
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ReportFormatError(f"Invalid JSON: {e}") from e
    return parse_reports(value)


def infer_repository(value: Any) -> str:
    """Guess the repository name an upload should be filed under."""
    if not isinstance(value, dict):
        return "unknown"
    context = value.get("context")
    if isinstance(context, dict) and context.get("repository"):
        return context["repository"]
    reports = value.get("reports")
    if isinstance(reports, list) and reports:
        first = reports[0] if isinstance(reports[0], dict) else {}
        if first.get("name"):
            return first["name"]
        if len(reports) == 1:
            data = first.get("data")
            nested = data.get("context") if isinstance(data, dict) else None
            if isinstance(nested, dict) and nested.get("repository"):
                return nested["repository"]
            return "merged-report"
    return "unknown"
