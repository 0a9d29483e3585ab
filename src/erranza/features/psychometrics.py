"""
Psychometric profile (respondent-level).

Beyond the five matching traits, the SoulPrint report shows the underlying scales:
Big Five, travel behavior, two internal tensions and a traveler "tribe".
These feed the profile headline and the generative narrative prompt; the fit
scorer does not use them.
"""

from __future__ import annotations

from erranza.domain.models import ParsedResponse, PsychometricProfile, RawResponse
from erranza.features.traits import (
    ADVENTURE_ORIENTATION,
    AGREEABLENESS,
    CONSCIENTIOUSNESS,
    EMOTIONAL_STABILITY,
    ENVIRONMENTAL_ADAPTATION,
    EXTRAVERSION,
    OPENNESS,
    SPONTANEITY,
    parse_response,
)
from erranza.scoring.composite import clamp100


def classify_tribe(*, extraversion: float, openness: float, agreeableness: float, emotional_stability: float) -> tuple[str, str]:
    """Return `(tribe, confidence)`; rules are checked in order, first hit wins."""
    if extraversion >= 60 and emotional_stability >= 60:
        tribe = "Hunters"
    elif openness >= 60 and emotional_stability < 50:
        tribe = "Observers"
    elif agreeableness >= 60:
        tribe = "Connectors"
    else:
        tribe = "Mixed"

    if tribe == "Mixed":
        confidence = "Low"
    elif max(extraversion, openness, agreeableness) >= 75:
        confidence = "High"
    else:
        confidence = "Medium"
    return tribe, confidence


def calculate_profile(raw: RawResponse | ParsedResponse | None) -> PsychometricProfile:
    parsed = raw if isinstance(raw, ParsedResponse) else parse_response(raw)
    answers = parsed.items

    e = EXTRAVERSION.score(answers)
    o = OPENNESS.score(answers)
    c = CONSCIENTIOUSNESS.score(answers)
    a = AGREEABLENESS.score(answers)
    es = EMOTIONAL_STABILITY.score(answers)
    sf = SPONTANEITY.score(answers)
    ao = ADVENTURE_ORIENTATION.score(answers)
    ea = ENVIRONMENTAL_ADAPTATION.score(answers)

    tribe, confidence = classify_tribe(extraversion=e, openness=o, agreeableness=a, emotional_stability=es)
    return PsychometricProfile(
        extraversion=e,
        openness=o,
        conscientiousness=c,
        agreeableness=a,
        emotional_stability=es,
        spontaneity=sf,
        adventure_orientation=ao,
        environmental_adaptation=ea,
        travel_freedom_index=clamp100(0.4 * sf + 0.4 * ao + 0.2 * ea),
        tension_flow=abs(c - sf),
        tension_risk=abs(ao - ea),
        tribe=tribe,
        tribe_confidence=confidence,
    )
