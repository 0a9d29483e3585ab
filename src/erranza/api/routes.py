"""
API routes.

Endpoints:
- POST `/api/matches`: main matching entrypoint (raw answers or respondent id).
- POST `/api/traits`: trait extraction only.
- GET  `/api/destinations`: active catalog summary.
- GET  `/api/settings`: public settings (secrets redacted).
- GET  `/api/quality/report`: offline catalog quality report.
"""

from __future__ import annotations

import logging
import time
import uuid
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Body, HTTPException

from erranza.catalog.loader import active_destinations, load_destinations
from erranza.catalog.respondents import RespondentStore
from erranza.config.settings import get_settings
from erranza.domain.models import MatchRequest, MatchRunResult, PsychometricProfile, TraitVector
from erranza.features.psychometrics import calculate_profile
from erranza.features.traits import calculate_all_traits, parse_response
from erranza.narrative.generative import NarrativeClient
from erranza.quality.report import build_quality_report
from erranza.recommender.match import match

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def _respondents() -> RespondentStore:
    return RespondentStore.from_file(get_settings().respondents.path)


@lru_cache
def _narrative_client() -> NarrativeClient:
    return NarrativeClient(get_settings())


@router.get("/api/health")
def get_health() -> dict:
    return {"status": "ok"}


@router.post("/api/traits")
def post_traits(raw_responses: dict[str, Any] = Body(...)) -> dict:
    """Extract the trait vector and psychometric profile from raw answers."""
    parsed = parse_response(raw_responses)
    traits: TraitVector = calculate_all_traits(parsed)
    profile: PsychometricProfile = calculate_profile(parsed)
    return {"traits": traits.model_dump(mode="json"), "profile": profile.model_dump(mode="json")}


@router.post("/api/matches", response_model=MatchRunResult)
def post_matches(request: MatchRequest) -> MatchRunResult:
    """Run trait extraction + fit scoring and return the top-N matches with narratives."""
    t0 = time.monotonic()
    request_id = uuid.uuid4().hex[:12]
    settings = get_settings()
    try:
        respondents = _respondents() if request.raw_responses is None else None
        result = match(
            request,
            settings=settings,
            respondents=respondents,
            narrative_client=_narrative_client(),
        )
    except KeyError as e:
        raise HTTPException(
            status_code=404,
            detail={"code": "NOT_FOUND", "message": str(e.args[0]) if e.args else "Not found"},
        ) from e
    except ValueError as e:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": str(e)},
        ) from e
    except Exception as e:
        logger.exception("Match run failed request_id=%s", request_id)
        raise HTTPException(
            status_code=500,
            detail={"code": "INTERNAL_ERROR", "message": str(e)},
        ) from e

    debug = {"request_id": request_id, "api_ms": int((time.monotonic() - t0) * 1000)}
    return result.model_copy(update={"meta": {**(result.meta or {}), "debug": debug}})


@router.get("/api/destinations")
def get_destinations(country: str | None = None, region: str | None = None) -> dict:
    """Return the active catalog (display fields only), optionally filtered."""
    settings = get_settings()
    destinations = active_destinations(load_destinations(settings.catalog.path))
    out = []
    for d in destinations:
        if country and country.lower() not in d.country.lower():
            continue
        if region and d.region != region:
            continue
        out.append(
            {
                "id": d.id,
                "name": d.name,
                "country": d.country,
                "region": d.region,
                "cost_per_day": d.cost_per_day,
                "flight_time_hours": d.flight_time_hours,
                "best_season": d.best_season,
                "climate_tags": d.climate_tags,
            }
        )
    regions = sorted({d.region for d in destinations if d.region})
    return {"count": len(out), "regions": regions, "destinations": out}


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return safe-to-expose settings (gateway credentials removed)."""
    settings = get_settings()
    data = settings.model_dump(mode="json")
    generative = dict(data.get("narrative", {}).get("generative", {}))
    generative.pop("api_key", None)
    generative.pop("system_prompt", None)
    return {
        "app": {"timezone": data.get("app", {}).get("timezone")},
        "scoring": data.get("scoring", {}),
        "narrative": {
            "templates": data.get("narrative", {}).get("templates", {}),
            "generative": generative,
        },
    }


@router.get("/api/quality/report")
def get_quality_report() -> dict:
    """Return an offline catalog quality report (no network)."""
    return build_quality_report(get_settings())
