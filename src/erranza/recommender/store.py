"""
Match persistence (optional).

Stores the top-N rows of each match run for analytics/audit. A re-run for the same
respondent replaces its previous rows. Matching never reads from this store, so
results are identical whether or not it is enabled.

Concurrency:
- Every `JsonMatchStore` on the same resolved path shares one process-wide lock, so
  per-request instances (API) and batch workers serialize their read-modify-write.
- Each write goes through its own temp file in the target directory, then an atomic rename.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from erranza.core.env import resolve_project_path
from erranza.domain.models import MatchResult

logger = logging.getLogger(__name__)

_PATH_LOCKS: dict[Path, threading.Lock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _PATH_LOCKS_GUARD:
        return _PATH_LOCKS.setdefault(path, threading.Lock())


class JsonMatchStore:
    """A single JSON file mapping respondent id -> list of ranked match rows."""

    def __init__(self, path: str | Path):
        self._path = resolve_project_path(path)
        self._lock = _lock_for(self._path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, list[dict[str, Any]]]:
        if not self._path.exists():
            return {}
        payload = json.loads(self._path.read_text(encoding="utf-8"))
        return payload if isinstance(payload, dict) else {}

    def _write(self, data: dict[str, list[dict[str, Any]]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self._path.parent,
            prefix=self._path.name + ".",
            suffix=".tmp",
            delete=False,
        ) as fh:
            json.dump(data, fh, ensure_ascii=False, indent=2)
            tmp = Path(fh.name)
        try:
            os.replace(tmp, self._path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def replace(self, respondent_id: str, matches: list[MatchResult], *, created_at: datetime) -> int:
        """Replace every stored row for `respondent_id`; returns the number written."""
        rows = [
            {
                "respondent_id": respondent_id,
                "destination_id": m.destination_id,
                "fit_score": m.fit_score,
                "fit_breakdown": m.breakdown.model_dump(mode="json"),
                "rank": m.rank,
                "created_at": created_at.isoformat(),
            }
            for m in matches
        ]
        with self._lock:
            data = self._read()
            data[respondent_id] = rows
            self._write(data)
        logger.info("Stored %d match rows for respondent %s", len(rows), respondent_id)
        return len(rows)

    def get(self, respondent_id: str) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._read().get(respondent_id, []))

    def respondent_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._read())
