"""
Offline catalog quality report.

Answers "can every destination be scored as intended?" without touching the
network. Missing affinity scores never break matching (they read as 50), but they
flatten the ranking, so the report surfaces them next to harder errors.

Used by `erranza quality-report` and `GET /api/quality/report`.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from erranza.catalog.loader import load_destinations
from erranza.config.settings import Settings
from erranza.core.env import resolve_project_path
from erranza.domain.models import DestinationRecord

SAMPLE_SIZE = 8
SEVERITY_ORDER = ("info", "warning", "error")

_AFFINITY_FIELDS = tuple(name for name in DestinationRecord.model_fields if name.endswith("_score"))


@dataclass(frozen=True)
class Issue:
    severity: str  # one of SEVERITY_ORDER
    code: str
    message: str
    count: int = 1
    sample: list[str] | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "severity": self.severity,
            "code": self.code,
            "message": self.message,
            "count": int(self.count),
            "sample": list(self.sample or []),
        }


def _issue_if_any(severity: str, code: str, message: str, offenders: list[str]) -> list[Issue]:
    if not offenders:
        return []
    return [Issue(severity=severity, code=code, message=message, count=len(offenders), sample=offenders[:SAMPLE_SIZE])]


def _raw_entries(path: Path) -> list[dict[str, Any]]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        return []
    return [entry for entry in payload if isinstance(entry, dict)]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def catalog_issues(settings: Settings) -> list[Issue]:
    catalog_path = resolve_project_path(settings.catalog.path)
    try:
        destinations = load_destinations(catalog_path)
        raw_entries = _raw_entries(catalog_path)
    except Exception as e:
        return [Issue(severity="error", code="CATALOG_LOAD_FAILED", message=str(e))]

    issues: list[Issue] = []
    if not destinations:
        issues.append(Issue(severity="error", code="CATALOG_EMPTY", message="The catalog has no destinations."))

    id_counts = Counter(d.id for d in destinations)
    issues += _issue_if_any(
        "error",
        "CATALOG_DUPLICATE_ID",
        "Duplicate destination ids in catalog.",
        sorted(i for i, n in id_counts.items() if n > 1),
    )

    # Validation has already defaulted/clamped scores, so look at the raw payload.
    missing, out_of_range = [], []
    for entry in raw_entries:
        for field in _AFFINITY_FIELDS:
            value = entry.get(field)
            ref = f"{entry.get('id', '?')}:{field}"
            if not _is_number(value):
                missing.append(ref)
            elif not 0 <= value <= 100:
                out_of_range.append(ref)
    issues += _issue_if_any(
        "warning",
        "CATALOG_MISSING_SCORE",
        "Some affinity scores are missing or non-numeric (scored as neutral 50).",
        missing,
    )
    issues += _issue_if_any(
        "warning",
        "CATALOG_SCORE_OUT_OF_RANGE",
        "Some affinity scores fall outside 0..100 (clamped).",
        out_of_range,
    )

    issues += _issue_if_any(
        "info",
        "CATALOG_INACTIVE",
        "Some destinations are inactive and never matched.",
        [d.id for d in destinations if not d.is_active],
    )
    issues += _issue_if_any(
        "info",
        "CATALOG_MISSING_FLIGHT_TIME",
        "Some active destinations have no flight time (excluded by flight-radius filters).",
        [d.id for d in destinations if d.is_active and d.flight_time_hours is None],
    )
    return issues


def build_quality_report(settings: Settings) -> dict[str, Any]:
    issues = catalog_issues(settings)
    worst = max((i.severity for i in issues), key=SEVERITY_ORDER.index, default="info")
    return {
        "overall": {"severity": worst, "issue_count": len(issues)},
        "paths": {"catalog_path": str(resolve_project_path(settings.catalog.path))},
        "issues": [i.as_dict() for i in issues],
    }
