"""
Destination catalog loader.

The catalog is a local JSON file (default: `data/catalogs/destinations.json`)
exported from the admin destinations table. It is validated into typed
`DestinationRecord` models so scoring code can assume every affinity score exists.

Geographic pre-filtering also lives here: the fit scorer only ever sees the
already-filtered candidate list.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import TypeAdapter

from erranza.core.env import resolve_project_path
from erranza.domain.models import DestinationRecord, GeoConstraint

logger = logging.getLogger(__name__)

_DESTINATIONS_ADAPTER = TypeAdapter(list[DestinationRecord])


def load_destinations(path: str | Path) -> list[DestinationRecord]:
    """Load and validate a destination catalog JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return _DESTINATIONS_ADAPTER.validate_python(payload)


def active_destinations(destinations: list[DestinationRecord]) -> list[DestinationRecord]:
    return [d for d in destinations if d.is_active]


def _passes_geo(destination: DestinationRecord, constraint: GeoConstraint) -> bool:
    value = (constraint.value or "").strip()
    if constraint.kind == "anywhere" or not value:
        return True
    if constraint.kind == "country":
        return value.lower() in destination.country.lower()
    if constraint.kind == "region":
        return destination.region == value
    # flight_radius: value is a maximum flight time in hours.
    try:
        max_hours = float(value)
    except ValueError:
        return True
    return destination.flight_time_hours is not None and destination.flight_time_hours <= max_hours


def filter_candidates(
    destinations: list[DestinationRecord], constraint: GeoConstraint | None = None
) -> tuple[list[DestinationRecord], bool]:
    """Return `(candidates, fell_back)` for the active catalog under a geographic constraint.

    When the constraint excludes every active destination, all active destinations are
    returned and `fell_back` is True.
    """
    active = active_destinations(destinations)
    constraint = constraint or GeoConstraint()
    candidates = [d for d in active if _passes_geo(d, constraint)]
    if not candidates and active and constraint.kind != "anywhere":
        logger.info(
            "No destinations matched geo constraint %s=%r, falling back to all active",
            constraint.kind,
            constraint.value,
        )
        return active, True
    return candidates, False
