# src/erranza/features/traits.py
"""
Trait extraction (respondent-level).

Turns a raw questionnaire answer mapping into a `TraitVector`:
- energy   0 = restorative, 100 = achievement / high stimulation
- social   0 = intimate,    100 = communal
- luxury   0 = authentic,   100 = polished
- pace     0 = unhurried,   100 = densely scheduled
- sensory priorities, ranked from the closed category set

Every trait is a weighted blend of psychometric scales; every scale is the mean of
a fixed list of questions, some of them reverse-scored (`100 - value`) because the
survey phrases them negatively.

Failure policy:
- Extraction never raises. Missing or malformed answers read as the neutral 50,
  because traits feed a ranking, not a pass/fail decision.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from erranza.domain.models import (
    NEUTRAL_SCORE,
    SENSORY_CATEGORIES,
    ParsedResponse,
    RankedSensory,
    RawResponse,
    ResponseFormat,
    SensoryCategory,
    SensoryPriority,
    SliderSensory,
    TraitVector,
)
from erranza.scoring.composite import clamp100


@dataclass(frozen=True)
class Scale:
    """A psychometric scale: the mean of its items, with reverse-scored items flipped."""

    name: str
    items: tuple[tuple[str, bool], ...]

    def score(self, answers: dict[str, float]) -> float:
        values = []
        for question, reverse in self.items:
            value = answers.get(question, NEUTRAL_SCORE)
            values.append(100.0 - value if reverse else value)
        return clamp100(sum(values) / len(values))


# Question table. `True` marks a reverse-scored item.
EXTRAVERSION = Scale("extraversion", (("Q4", False), ("Q5", False), ("Q6", False), ("Q7", True)))
OPENNESS = Scale("openness", (("Q8", False), ("Q9", False), ("Q10", False), ("Q11", True)))
CONSCIENTIOUSNESS = Scale("conscientiousness", (("Q12", False), ("Q13", False), ("Q14", False), ("Q15", True)))
AGREEABLENESS = Scale("agreeableness", (("Q16", False), ("Q17", False), ("Q18", False), ("Q19", True)))
EMOTIONAL_STABILITY = Scale("emotional_stability", (("Q20", False), ("Q21", False), ("Q22", True), ("Q23", True)))
SPONTANEITY = Scale("spontaneity", (("Q24", False), ("Q25", False), ("Q26", False), ("Q27", True)))
ADVENTURE_ORIENTATION = Scale("adventure_orientation", (("Q28", False), ("Q29", False), ("Q30", True)))
ENVIRONMENTAL_ADAPTATION = Scale("environmental_adaptation", (("Q31", False), ("Q32", False), ("Q33", True)))
LUXURY_STYLE = Scale("luxury_style", (("Q34", False), ("Q35", True), ("Q36", False), ("Q37", True)))
TRAVEL_PACE = Scale("travel_pace", (("Q38", False), ("Q39", True), ("Q40", False)))

# Questions whose non-numeric answers identify the older questionnaire
# (Q34 held the elemental drag-rank string, Q38 the inner-compass item).
LEGACY_MARKER_QUESTIONS = ("Q34", "Q38")

SENSORY_RANKING_KEYS = ("Q41_SENSORY_RANKING", "Q41")

SENSORY_LABELS: dict[SensoryCategory, str] = {
    "visual": "Visual Beauty",
    "culinary": "Culinary Excellence",
    "nature": "Nature Immersion",
    "cultural": "Cultural Sensory",
    "wellness": "Wellness & Spa",
}

_SENSORY_ALIASES: dict[str, SensoryCategory] = {
    "cultural_sensory": "cultural",
    "culture": "cultural",
    "food": "culinary",
    "spa": "wellness",
    **{label.lower().replace(" ", "_"): category for category, label in SENSORY_LABELS.items()},
}


def safe_number(value: Any) -> float | None:
    """Coerce a questionnaire answer to a 0..100 float, or None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return clamp100(number)


def _normalize_label(label: Any) -> SensoryCategory | None:
    if not isinstance(label, str):
        return None
    key = "_".join(label.strip().lower().split())
    if key in SENSORY_CATEGORIES:
        return key  # type: ignore[return-value]
    return _SENSORY_ALIASES.get(key)


def _ranked_categories(value: Any) -> list[SensoryCategory]:
    if not isinstance(value, (list, tuple)):
        return []
    seen: list[SensoryCategory] = []
    for label in value:
        category = _normalize_label(label)
        if category and category not in seen:
            seen.append(category)
    return seen


def _detect_format(raw: dict[str, Any]) -> ResponseFormat:
    for question in LEGACY_MARKER_QUESTIONS:
        if question in raw and raw[question] is not None and safe_number(raw[question]) is None:
            return "legacy"
    return "current"


def parse_response(raw: RawResponse | None) -> ParsedResponse:
    """Resolve a raw answer mapping into a `ParsedResponse` (format + sensory shape)."""
    upper: dict[str, Any] = {}
    if isinstance(raw, Mapping):
        for key, value in raw.items():
            if isinstance(key, str) and key.strip():
                upper[key.strip().upper()] = value

    items: dict[str, float] = {}
    for key, value in upper.items():
        number = safe_number(value)
        if number is not None:
            items[key] = number

    sensory: RankedSensory | SliderSensory | None = None
    for key in SENSORY_RANKING_KEYS:
        ranking = _ranked_categories(upper.get(key))
        if len(ranking) >= 2:
            sensory = RankedSensory(ranking=ranking)
            break
    if sensory is None:
        sensory = SliderSensory(
            scores={c: items.get(f"Q41_{c.upper()}", NEUTRAL_SCORE) for c in SENSORY_CATEGORIES}
        )

    return ParsedResponse(format=_detect_format(upper), items=items, sensory=sensory)


def calculate_energy_score(parsed: ParsedResponse) -> float:
    """Energy: high extraversion and adventure, low structure -> achievement-oriented."""
    e = EXTRAVERSION.score(parsed.items)
    ao = ADVENTURE_ORIENTATION.score(parsed.items)
    c = CONSCIENTIOUSNESS.score(parsed.items)
    return clamp100(e * 0.4 + ao * 0.4 + (100.0 - c) * 0.2)


def calculate_social_score(parsed: ParsedResponse) -> float:
    e = EXTRAVERSION.score(parsed.items)
    a = AGREEABLENESS.score(parsed.items)
    return clamp100(e * 0.6 + a * 0.4)


def calculate_luxury_score(parsed: ParsedResponse) -> float:
    # Gated on Q34 alone: a legacy (non-numeric) Q34 means no luxury sliders were shown,
    # whatever shape Q38 has.
    if "Q34" not in parsed.items:
        return NEUTRAL_SCORE
    return LUXURY_STYLE.score(parsed.items)


def calculate_pace_score(parsed: ParsedResponse) -> float:
    # Gated on Q38 alone (the legacy inner-compass item).
    if "Q38" not in parsed.items:
        return NEUTRAL_SCORE
    return TRAVEL_PACE.score(parsed.items)


def get_sensory_priorities(parsed: ParsedResponse) -> list[SensoryPriority]:
    """Rank sensory categories; ranked input keeps its order, sliders sort by score."""
    sensory = parsed.sensory
    if isinstance(sensory, RankedSensory):
        step = 100.0 / len(sensory.ranking)
        return [
            SensoryPriority(category=category, weight=clamp100(100.0 - idx * step))
            for idx, category in enumerate(sensory.ranking)
        ]

    order = {c: i for i, c in enumerate(SENSORY_CATEGORIES)}
    ranked = sorted(sensory.scores.items(), key=lambda kv: (-kv[1], order[kv[0]]))
    return [SensoryPriority(category=c, weight=clamp100(s)) for c, s in ranked]


def calculate_all_traits(raw: RawResponse | ParsedResponse | None) -> TraitVector:
    """Extract the full `TraitVector` from a raw answer mapping (or a pre-parsed one)."""
    parsed = raw if isinstance(raw, ParsedResponse) else parse_response(raw)
    return TraitVector(
        energy=calculate_energy_score(parsed),
        social=calculate_social_score(parsed),
        luxury=calculate_luxury_score(parsed),
        pace=calculate_pace_score(parsed),
        sensory_priorities=get_sensory_priorities(parsed),
        format=parsed.format,
    )
