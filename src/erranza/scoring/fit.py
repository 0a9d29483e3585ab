# src/erranza/scoring/fit.py
"""
Fit scorer (destination-level).

Compares one traveler `TraitVector` against catalog destinations and produces an
explainable `MatchResult` per destination:

- energy  = closeness(traveler energy, 100 - restorative_score)
- social  = closeness(traveler social, social_vibe_score)
- sensory = top1 category score * 0.6 + top2 category score * 0.4
- luxury  = closeness(traveler luxury, luxury_style_score)

The composite is the weighted sum (default 0.35 / 0.25 / 0.25 / 0.15), rounded to
one decimal place.

Polarity note:
- Travelers are scored on energy (100 = high stimulation) while destinations carry a
  restorative score (100 = calm). The scorer always inverts the destination side,
  so 100 on both sides means the same thing.
"""

from __future__ import annotations

import logging

from erranza.config.settings import Settings
from erranza.domain.models import DestinationRecord, FitBreakdown, MatchResult, TraitVector
from erranza.scoring.composite import clamp100, closeness, normalize_weights

logger = logging.getLogger(__name__)


def _sensory_blend(settings: Settings) -> tuple[float, float]:
    first, second = settings.scoring.sensory_blend
    weights = normalize_weights({"top1": first, "top2": second})
    return weights["top1"], weights["top2"]


def compute_breakdown(traits: TraitVector, destination: DestinationRecord, *, settings: Settings) -> FitBreakdown:
    """Compute the four 0..100 sub-scores for one destination."""
    top1, top2 = traits.top_sensory
    w1, w2 = _sensory_blend(settings)
    return FitBreakdown(
        energy=closeness(traits.energy, destination.energy_level),
        social=closeness(traits.social, destination.social_vibe_score),
        sensory=clamp100(destination.sensory_score(top1) * w1 + destination.sensory_score(top2) * w2),
        luxury=closeness(traits.luxury, destination.luxury_style_score),
    )


def composite_score(breakdown: FitBreakdown, *, settings: Settings) -> float:
    """Weighted sum of the breakdown, rounded to one decimal place."""
    weights = normalize_weights(dict(settings.scoring.weights))
    total = sum(float(getattr(breakdown, name)) * weight for name, weight in weights.items())
    return round(clamp100(total), 1)


def score_destination(traits: TraitVector, destination: DestinationRecord, *, settings: Settings) -> MatchResult:
    breakdown = compute_breakdown(traits, destination, settings=settings)
    return MatchResult(
        destination_id=destination.id,
        destination_name=destination.name,
        fit_score=composite_score(breakdown, settings=settings),
        breakdown=breakdown,
    )


def rank_with_records(
    traits: TraitVector, destinations: list[DestinationRecord], *, settings: Settings
) -> list[tuple[MatchResult, DestinationRecord]]:
    """Score and rank, keeping each result next to the record it was scored from.

    Order is descending fit score; equal scores fall back to ascending destination id
    (then catalog order) so repeated runs are reproducible. Truncation is left to the caller.
    """
    scored = [(score_destination(traits, d, settings=settings), d) for d in destinations]
    scored.sort(key=lambda pair: (-pair[0].fit_score, pair[0].destination_id))
    ranked = [(m.model_copy(update={"rank": idx}), d) for idx, (m, d) in enumerate(scored, start=1)]
    logger.debug("Ranked %d destinations", len(ranked))
    return ranked


def rank_destinations(
    traits: TraitVector, destinations: list[DestinationRecord], *, settings: Settings
) -> list[MatchResult]:
    """Score every destination and return the full ranked list (see `rank_with_records`)."""
    return [m for m, _ in rank_with_records(traits, destinations, settings=settings)]
