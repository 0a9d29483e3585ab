"""
Domain models (Pydantic).

These types are the contract between layers:
- questionnaire input (`ParsedResponse`, resolved once from a raw answer mapping)
- derived traveler traits (`TraitVector`, `PsychometricProfile`)
- catalog entities (`DestinationRecord`)
- explainable match output (`MatchResult`, `MatchNarrative`, `MatchRunResult`)

All scores in this module live on a 0..100 scale.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Annotated, Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

RawResponse = Mapping[str, Any]

SensoryCategory = Literal["visual", "culinary", "nature", "cultural", "wellness"]
SENSORY_CATEGORIES: tuple[SensoryCategory, ...] = ("visual", "culinary", "nature", "cultural", "wellness")

ResponseFormat = Literal["current", "legacy"]
FitDimension = Literal["energy", "social", "sensory", "luxury"]
TensionDimension = Literal["energy", "social", "luxury"]

NEUTRAL_SCORE = 50.0


class RankedSensory(BaseModel):
    """Sensory input from the drag-rank question: categories in priority order."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ranked"] = "ranked"
    ranking: list[SensoryCategory] = Field(..., min_length=2)


class SliderSensory(BaseModel):
    """Sensory input from the per-category slider questions."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["slider"] = "slider"
    scores: dict[SensoryCategory, float]


SensoryInput = Annotated[RankedSensory | SliderSensory, Field(discriminator="kind")]


class ParsedResponse(BaseModel):
    """A raw questionnaire answer set with its shape resolved.

    `items` holds every numeric answer keyed by upper-cased question id, already
    clamped into 0..100. Non-numeric answers are not kept.
    """

    model_config = ConfigDict(frozen=True)

    format: ResponseFormat
    items: dict[str, float] = Field(default_factory=dict)
    sensory: SensoryInput


class SensoryPriority(BaseModel):
    category: SensoryCategory
    weight: float = Field(..., ge=0, le=100)


class TraitVector(BaseModel):
    """The five traveler dimensions the fit scorer consumes."""

    energy: float = Field(..., ge=0, le=100)
    social: float = Field(..., ge=0, le=100)
    luxury: float = Field(..., ge=0, le=100)
    pace: float = Field(..., ge=0, le=100)
    sensory_priorities: list[SensoryPriority] = Field(..., min_length=2)
    format: ResponseFormat = "current"

    @property
    def top_sensory(self) -> tuple[SensoryCategory, SensoryCategory]:
        return self.sensory_priorities[0].category, self.sensory_priorities[1].category


class PsychometricProfile(BaseModel):
    """Big Five + travel-behavior scales, internal tensions and traveler tribe."""

    extraversion: float = Field(..., ge=0, le=100)
    openness: float = Field(..., ge=0, le=100)
    conscientiousness: float = Field(..., ge=0, le=100)
    agreeableness: float = Field(..., ge=0, le=100)
    emotional_stability: float = Field(..., ge=0, le=100)
    spontaneity: float = Field(..., ge=0, le=100)
    adventure_orientation: float = Field(..., ge=0, le=100)
    environmental_adaptation: float = Field(..., ge=0, le=100)
    travel_freedom_index: float = Field(..., ge=0, le=100)
    tension_flow: float = Field(..., ge=0, le=100)
    tension_risk: float = Field(..., ge=0, le=100)
    tribe: Literal["Hunters", "Observers", "Connectors", "Mixed"]
    tribe_confidence: Literal["High", "Medium", "Low"]


_SCORE_FIELDS = (
    "restorative_score",
    "achievement_score",
    "cultural_score",
    "social_vibe_score",
    "visual_score",
    "culinary_score",
    "nature_score",
    "cultural_sensory_score",
    "wellness_score",
    "luxury_style_score",
)

SENSORY_SCORE_FIELDS: dict[SensoryCategory, str] = {
    "visual": "visual_score",
    "culinary": "culinary_score",
    "nature": "nature_score",
    "cultural": "cultural_sensory_score",
    "wellness": "wellness_score",
}


class DestinationRecord(BaseModel):
    """A catalog destination. Affinity scores are always populated (missing -> 50)."""

    id: str
    name: str
    country: str = ""
    region: str = ""

    restorative_score: float = NEUTRAL_SCORE
    achievement_score: float = NEUTRAL_SCORE
    cultural_score: float = NEUTRAL_SCORE
    social_vibe_score: float = NEUTRAL_SCORE
    visual_score: float = NEUTRAL_SCORE
    culinary_score: float = NEUTRAL_SCORE
    nature_score: float = NEUTRAL_SCORE
    cultural_sensory_score: float = NEUTRAL_SCORE
    wellness_score: float = NEUTRAL_SCORE
    luxury_style_score: float = NEUTRAL_SCORE

    # Display/filter metadata; never used for matching.
    cost_per_day: float | None = None
    flight_time_hours: float | None = None
    best_season: str | None = None
    climate_tags: list[str] = Field(default_factory=list)
    description: str | None = None
    is_active: bool = True

    @field_validator(*_SCORE_FIELDS, mode="before")
    @classmethod
    def _neutral_if_missing(cls, value: Any) -> float:
        if value is None or isinstance(value, bool):
            return NEUTRAL_SCORE
        try:
            number = float(value)
        except (TypeError, ValueError):
            return NEUTRAL_SCORE
        if not math.isfinite(number):
            return NEUTRAL_SCORE
        return max(0.0, min(100.0, number))

    @property
    def energy_level(self) -> float:
        """Destination stimulation on the traveler energy scale (100 = high energy)."""
        return 100.0 - self.restorative_score

    def sensory_score(self, category: SensoryCategory) -> float:
        return float(getattr(self, SENSORY_SCORE_FIELDS[category]))


class FitBreakdown(BaseModel):
    energy: float = Field(..., ge=0, le=100)
    social: float = Field(..., ge=0, le=100)
    sensory: float = Field(..., ge=0, le=100)
    luxury: float = Field(..., ge=0, le=100)


class MatchResult(BaseModel):
    """One scored destination. `rank` is assigned once the catalog is ranked."""

    destination_id: str
    destination_name: str
    fit_score: float = Field(..., ge=0, le=100)
    breakdown: FitBreakdown
    rank: int | None = Field(default=None, ge=1)


class TensionNote(BaseModel):
    dimension: TensionDimension | None = None
    gap: float = Field(0.0, ge=0, le=100)
    text: str


class MatchNarrative(BaseModel):
    affinity_label: str
    why_it_fits: str
    tension: TensionNote
    best_for: str
    dimension_explanations: dict[FitDimension, str] = Field(default_factory=dict)
    personality: dict[str, str] = Field(default_factory=dict)


class ProfileNarrative(BaseModel):
    headline: str
    tagline: str
    summary: str
    source: Literal["template", "generative"] = "template"
    model: str | None = None


class MatchItem(BaseModel):
    destination: DestinationRecord
    match: MatchResult
    narrative: MatchNarrative | None = None


class GeoConstraint(BaseModel):
    """Caller-side catalog pre-filter."""

    kind: Literal["anywhere", "country", "region", "flight_radius"] = "anywhere"
    value: str | None = None


class MatchRequest(BaseModel):
    """Payload for one match run (API/CLI)."""

    raw_responses: dict[str, Any] | None = None
    respondent_id: str | None = None
    geo: GeoConstraint = Field(default_factory=GeoConstraint)
    max_results: int | None = Field(default=None, ge=1, le=50)
    include_narratives: bool = True
    include_profile_narrative: bool = False
    settings_overrides: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _require_source(self) -> "MatchRequest":
        if self.raw_responses is None and not self.respondent_id:
            raise ValueError("either raw_responses or respondent_id is required")
        return self


class MatchRunResult(BaseModel):
    generated_at: datetime
    respondent_id: str | None = None
    traits: TraitVector
    profile: PsychometricProfile
    profile_narrative: ProfileNarrative | None = None
    results: list[MatchItem]
    meta: dict[str, Any] = Field(default_factory=dict)
