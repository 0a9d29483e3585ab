"""
Respondent store (read-only).

Raw questionnaire answers exported as one JSON object keyed by respondent id:

    {"resp-001": {"Q4": 80, "Q5": 75, "Q41": ["nature", "visual", ...]}, ...}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from erranza.core.env import resolve_project_path


class RespondentStore:
    """In-memory view of a respondent export file."""

    def __init__(self, responses: dict[str, dict[str, Any]]):
        self._responses = responses

    @classmethod
    def from_file(cls, path: str | Path) -> "RespondentStore":
        resolved = resolve_project_path(path)
        payload = json.loads(resolved.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"Respondent file {resolved} must contain a JSON object")
        responses = {str(k): v for k, v in payload.items() if isinstance(v, dict)}
        return cls(responses)

    def ids(self) -> list[str]:
        return sorted(self._responses)

    def get(self, respondent_id: str) -> dict[str, Any]:
        """Return the raw answers for a respondent; raises KeyError if unknown."""
        try:
            return dict(self._responses[respondent_id])
        except KeyError:
            raise KeyError(f"Unknown respondent '{respondent_id}'") from None
