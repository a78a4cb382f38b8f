"""Upload and fetch handlers in front of the report store.

Both handlers return an :class:`ApiResponse` carrying an HTTP-style status
and a JSON-serializable body, so any transport can expose them unchanged.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from qlarity.ingest.validator import ReportFormatError, SingleReport, detect_format, normalize
from qlarity.store.registry import DEFAULT_LIMIT, ReportStore, StoreError

logger = logging.getLogger(__name__)


@dataclass
class ApiResponse:
    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def sanitize_filename(repository: str) -> str:
    """Derive a ``.json`` filename from a repository name."""
    return re.sub(r"[^a-z0-9-]", "-", repository, flags=re.IGNORECASE) + ".json"


def handle_upload(
    store: ReportStore,
    filename: Optional[str],
    content: Optional[bytes],
    repository: Optional[str],
) -> ApiResponse:
    """Validate an uploaded report file and persist it.

    Single reports are stored under ``repository``; wrapper payloads store
    one record per contained report, each under its own repository name.
    """
    if content is None or not filename or not repository:
        return ApiResponse(400, {"error": "File and repository name are required"})
    if not filename.endswith(".json"):
        return ApiResponse(400, {"error": "Only JSON files are allowed"})

    try:
        raw = json.loads(content)
        payload = detect_format(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Rejected upload %s: invalid JSON: %s", filename, e)
        return ApiResponse(400, {"error": f"Invalid JSON: {e}"})
    except ReportFormatError as e:
        logger.warning("Rejected upload %s: %s", filename, e)
        return ApiResponse(400, {"error": str(e)})

    reports = normalize(payload)
    try:
        if isinstance(payload, SingleReport):
            stored = [store.save(repository, reports[0])]
        else:
            stored = [store.save(r.context.repository or repository, r) for r in reports]
    except StoreError as e:
        logger.error("Upload of %s failed: %s", filename, e)
        return ApiResponse(500, {"error": str(e)})

    return ApiResponse(200, {
        "success": True,
        "filename": sanitize_filename(repository),
        "repository": repository,
        "ids": [r.id for r in stored],
        "data": raw,
        "message": f"Stored {len(stored)} report(s) for {repository}",
    })


def handle_fetch(
    store: ReportStore,
    repository: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
) -> ApiResponse:
    """Return the most recent stored reports, newest first."""
    try:
        records = store.recent(repository=repository, limit=limit)
    except StoreError as e:
        logger.error("Fetch failed: %s", e)
        return ApiResponse(500, {"error": f"Failed to fetch reports: {e}"})
    return ApiResponse(200, {
        "success": True,
        "reports": [r.to_json_dict() for r in records],
    })
