from __future__ import annotations

# This module is the "orchestrator" for a match run.
# It wires together:
# - input (MatchRequest: raw answers or a respondent id, geo constraint, top-N)
# - trait extraction (TraitVector + PsychometricProfile)
# - catalog loading + geographic pre-filter
# - fit scoring + ranking (full list, then truncated to top-N here, not in the scorer)
# - narratives for the displayed results
# - optional persistence of the displayed rows
#
# Design goal:
# - Keep each layer focused (features extract, scoring does math, narrative writes prose).
# - Every run is independent and idempotent: same inputs -> same ranked output.

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from erranza.catalog.loader import filter_candidates, load_destinations
from erranza.catalog.respondents import RespondentStore
from erranza.config.overrides import apply_settings_overrides
from erranza.config.settings import Settings, get_settings
from erranza.domain.models import DestinationRecord, MatchItem, MatchRequest, MatchRunResult
from erranza.features.psychometrics import calculate_profile
from erranza.features.traits import calculate_all_traits, parse_response
from erranza.narrative.generative import NarrativeClient, generate_profile_narrative
from erranza.narrative.templates import build_match_narrative
from erranza.recommender.store import JsonMatchStore
from erranza.scoring.explain import traits_summary
from erranza.scoring.fit import rank_with_records

logger = logging.getLogger(__name__)


def _effective_max_results(request: MatchRequest, settings: Settings) -> int:
    return int(request.max_results or settings.scoring.top_n_default)


def match(
    request: MatchRequest,
    *,
    settings: Settings | None = None,
    destinations: list[DestinationRecord] | None = None,
    respondents: RespondentStore | None = None,
    narrative_client: NarrativeClient | None = None,
    match_store: JsonMatchStore | None = None,
) -> MatchRunResult:
    t0 = time.monotonic()
    timings_ms: dict[str, int] = {}

    # ---- Step 1: Resolve settings for THIS run ----
    settings = settings or get_settings()
    settings = apply_settings_overrides(settings, request.settings_overrides)

    # ---- Step 2: Resolve raw answers (inline payload wins over the respondent store) ----
    if request.raw_responses is not None:
        raw = request.raw_responses
    else:
        if respondents is None:
            respondents = RespondentStore.from_file(settings.respondents.path)
        # KeyError here becomes a 404 in the API layer.
        raw = respondents.get(str(request.respondent_id))

    # ---- Step 3: Extract traits once; the parsed shape is shared by both extractors ----
    parsed = parse_response(raw)
    traits = calculate_all_traits(parsed)
    profile = calculate_profile(parsed)
    logger.debug("Traits for respondent=%s: %s", request.respondent_id, traits_summary(traits))
    timings_ms["extract"] = int((time.monotonic() - t0) * 1000)

    # ---- Step 4: Load the catalog (unless the caller injected one) and pre-filter ----
    if destinations is None:
        destinations = load_destinations(settings.catalog.path)
    candidates, geo_fell_back = filter_candidates(destinations, request.geo)
    timings_ms["load_catalog"] = int((time.monotonic() - t0) * 1000)

    # ---- Step 5: Score + rank every candidate, then apply the display policy (top-N) ----
    t_score = time.monotonic()
    ranked_pairs = rank_with_records(traits, candidates, settings=settings)
    ranked = [m for m, _ in ranked_pairs]
    top_n = _effective_max_results(request, settings)
    shown_pairs = ranked_pairs[:top_n]
    shown = [m for m, _ in shown_pairs]
    timings_ms["score"] = int((time.monotonic() - t_score) * 1000)

    # ---- Step 6: Narratives for what is displayed ----
    # Each result stays with the record it was scored from (catalog ids may repeat).
    items: list[MatchItem] = []
    for m, dest in shown_pairs:
        narrative = build_match_narrative(traits, m, dest, settings=settings) if request.include_narratives else None
        items.append(MatchItem(destination=dest, match=m, narrative=narrative))

    profile_narrative = None
    if request.include_profile_narrative:
        t_narr = time.monotonic()
        profile_narrative = generate_profile_narrative(
            traits, profile, shown, settings=settings, client=narrative_client
        )
        timings_ms["profile_narrative"] = int((time.monotonic() - t_narr) * 1000)

    generated_at = datetime.now(ZoneInfo(settings.app.timezone))

    # ---- Step 7: Optional persistence (never affects the returned ranking) ----
    stored_rows = None
    if match_store is None and settings.match_store.enabled:
        match_store = JsonMatchStore(settings.match_store.path)
    if match_store is not None and request.respondent_id:
        stored_rows = match_store.replace(request.respondent_id, shown, created_at=generated_at)

    if shown:
        logger.info(
            "Matched respondent=%s top=%s",
            request.respondent_id,
            ", ".join(f"{m.destination_name}:{m.fit_score:.1f}" for m in shown),
        )
    else:
        logger.info("No destinations available for respondent=%s", request.respondent_id)

    warnings: list[dict[str, Any]] = []
    if not candidates:
        warnings.append({"code": "NO_DESTINATIONS", "message": "No destinations available."})
    if geo_fell_back:
        warnings.append(
            {
                "code": "GEO_FILTER_EMPTY",
                "message": "No destinations matched the geographic constraint; showing all active destinations.",
                "detail": request.geo.model_dump(mode="json"),
            }
        )
    if profile_narrative is not None and profile_narrative.source == "template" and settings.narrative.generative.enabled:
        warnings.append(
            {"code": "NARRATIVE_FALLBACK", "message": "Generative narrative unavailable; template narrative used."}
        )
    timings_ms["total"] = int((time.monotonic() - t0) * 1000)

    meta = {
        "catalog": {
            "destinations_total": len(destinations),
            "candidates_scored": len(candidates),
            "geo_fallback": geo_fell_back,
        },
        "ranked": [{"destination_id": m.destination_id, "fit_score": m.fit_score} for m in ranked],
        "settings_snapshot": {
            "max_results": top_n,
            "weights": {k: float(v) for k, v in settings.scoring.weights.items()},
            "sensory_blend": list(settings.scoring.sensory_blend),
            "overrides_enabled": bool(request.settings_overrides),
            "geo": request.geo.model_dump(mode="json"),
        },
        "stored_rows": stored_rows,
        "warnings": warnings,
        "timings_ms": timings_ms,
    }

    return MatchRunResult(
        generated_at=generated_at,
        respondent_id=request.respondent_id,
        traits=traits,
        profile=profile,
        profile_narrative=profile_narrative,
        results=items,
        meta=meta,
    )


def match_many(
    responses: dict[str, dict[str, Any]],
    *,
    settings: Settings | None = None,
    destinations: list[DestinationRecord] | None = None,
    max_workers: int | None = None,
    include_narratives: bool = False,
    match_store: JsonMatchStore | None = None,
) -> dict[str, MatchRunResult]:
    """Match many respondents against one catalog.

    Scoring shares nothing mutable, so runs are spread over a thread pool; the output
    is the same as calling `match` for each respondent in turn. All workers write
    through one match store (when enabled), whose writes are serialized.
    """
    settings = settings or get_settings()
    if destinations is None:
        destinations = load_destinations(settings.catalog.path)
    if match_store is None and settings.match_store.enabled:
        match_store = JsonMatchStore(settings.match_store.path)
    workers = int(max_workers or settings.batch.max_workers)

    def _run(item: tuple[str, dict[str, Any]]) -> tuple[str, MatchRunResult]:
        respondent_id, raw = item
        request = MatchRequest(respondent_id=respondent_id, raw_responses=raw, include_narratives=include_narratives)
        return respondent_id, match(request, settings=settings, destinations=destinations, match_store=match_store)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = dict(pool.map(_run, sorted(responses.items())))
    logger.info("Batch matched %d respondents", len(results))
    return results
