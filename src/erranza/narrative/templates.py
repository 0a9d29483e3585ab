# src/erranza/narrative/templates.py
"""
Template narratives (deterministic).

Everything a match card shows in prose is composed here from scores alone:
- affinity label (threshold ladder on the fit score)
- "why this fits you" paragraph
- "one honest note" tension caveat
- "best for" tag, per-dimension explanations and destination personality
- the traveler profile headline / tagline / summary

No model is involved, so the same inputs always produce the same strings. The
generative path (`erranza.narrative.generative`) falls back to these.
"""

from __future__ import annotations

from erranza.config.settings import Settings
from erranza.domain.models import (
    SENSORY_CATEGORIES,
    DestinationRecord,
    MatchNarrative,
    MatchResult,
    ProfileNarrative,
    PsychometricProfile,
    TensionDimension,
    TensionNote,
    TraitVector,
)
from erranza.features.traits import SENSORY_LABELS


def _band(value: float, *, settings: Settings, low: str, mid: str, high: str) -> str:
    bands = settings.narrative.templates.bands
    if value < bands.low:
        return low
    if value > bands.high:
        return high
    return mid


def affinity_label(score: float, *, settings: Settings) -> str:
    """Map a fit score onto the affinity ladder (inclusive lower bounds)."""
    cfg = settings.narrative.templates
    for tier in sorted(cfg.affinity_tiers, key=lambda t: t.min_score, reverse=True):
        if score >= tier.min_score:
            return tier.label
    return cfg.affinity_fallback_label


def why_it_fits(destination: DestinationRecord, traits: TraitVector, *, settings: Settings) -> str:
    dominant = _band(traits.energy, settings=settings, low="restorative", mid="balanced", high="adventure-seeking")
    # Destination bands read the restorative score directly: high = calm.
    energy_type = _band(
        destination.restorative_score,
        settings=settings,
        low="energising, stimulating",
        mid="balanced",
        high="calm, restorative",
    )
    pace = _band(traits.pace, settings=settings, low="unhurried pace", mid="moderate rhythm", high="active schedule")
    dest_social = _band(
        destination.social_vibe_score,
        settings=settings,
        low="intimate, uncrowded",
        mid="gently social",
        high="vibrant, communal",
    )
    user_social = _band(
        traits.social,
        settings=settings,
        low="preference for solitude",
        mid="balanced social style",
        high="sociable nature",
    )
    return (
        f"{destination.name} aligns with your {dominant} profile. "
        f"Its {energy_type} environment suits your {pace}, "
        f"and the {dest_social} setting complements your {user_social}."
    )


def _energy_caveat(name: str, traveler_higher: bool) -> str:
    if traveler_higher:
        return (
            f"Travellers with your adventurous profile sometimes find the slower pace of {name} "
            "under-stimulating. If you seek out the more active excursions available, this won't be a concern."
        )
    return (
        f"Travellers with your restorative profile sometimes find the high-energy pace of {name} "
        "overwhelming at first. If you build in rest days between activities, this won't be a concern."
    )


def _social_caveat(name: str, traveler_higher: bool) -> str:
    if traveler_higher:
        return (
            f"Travellers with your sociable nature sometimes find {name}'s quieter atmosphere isolating. "
            "If you stay in communal lodges or join group tours, this won't be a concern."
        )
    return (
        f"Travellers with your private nature sometimes find the social bustle of {name} intense. "
        "If you choose accommodation away from the main tourist areas, this won't be a concern."
    )


def _luxury_caveat(name: str, traveler_higher: bool) -> str:
    if traveler_higher:
        return (
            f"Travellers with your refined taste sometimes find {name}'s rustic infrastructure basic. "
            "If you book the premium tier accommodations available, this won't be a concern."
        )
    return (
        f"Travellers who value raw authenticity sometimes find {name}'s polished tourism scene too curated. "
        "If you venture into the local neighbourhoods, this won't be a concern."
    )


def tension_note(destination: DestinationRecord, traits: TraitVector, *, settings: Settings) -> TensionNote:
    """Surface the single largest traveler/destination gap above its threshold.

    Dimensions are evaluated in the order energy, social, luxury; a later dimension
    only wins with a strictly larger gap.
    """
    thresholds = settings.narrative.templates.tension_thresholds
    pairs: list[tuple[TensionDimension, float, float, float]] = [
        ("energy", traits.energy, destination.energy_level, thresholds.energy),
        ("social", traits.social, destination.social_vibe_score, thresholds.social),
        ("luxury", traits.luxury, destination.luxury_style_score, thresholds.luxury),
    ]
    caveats = {"energy": _energy_caveat, "social": _social_caveat, "luxury": _luxury_caveat}

    best: tuple[TensionDimension, float, bool] | None = None
    for dimension, traveler, dest, threshold in pairs:
        gap = abs(traveler - dest)
        if gap > threshold and (best is None or gap > best[1]):
            best = (dimension, gap, traveler > dest)

    if best is None:
        return TensionNote(
            dimension=None,
            gap=0.0,
            text=(
                f"{destination.name} aligns well across all your key dimensions. "
                "No significant tensions were identified between your profile and this destination."
            ),
        )
    dimension, gap, traveler_higher = best
    return TensionNote(dimension=dimension, gap=gap, text=caveats[dimension](destination.name, traveler_higher))


_BEST_FOR = (
    ("restorative_score", "restoration"),
    ("cultural_score", "cultural immersion"),
    ("nature_score", "nature exploration"),
    ("wellness_score", "wellness retreats"),
    ("culinary_score", "culinary discovery"),
    ("social_vibe_score", "social connection"),
    ("visual_score", "visual beauty"),
    ("luxury_style_score", "luxury experiences"),
)


def best_for_tag(destination: DestinationRecord) -> str:
    # Stable sort: ties keep the listed order.
    ranked = sorted(_BEST_FOR, key=lambda item: -float(getattr(destination, item[0])))
    return f"Best for {ranked[0][1]}"


def dimension_explanation(key: str, score: float, traits: TraitVector, destination_name: str) -> str:
    s = round(score)
    if key == "energy":
        if traits.energy < 50:
            return (
                f"This destination's restorative pacing aligns {'precisely' if s >= 80 else 'well'} "
                "with your recovery-oriented travel style."
            )
        return f"{destination_name}'s active energy {'perfectly matches' if s >= 80 else 'connects with'} your adventurous approach."
    if key == "social":
        if traits.social < 50:
            return "The intimate, uncrowded vibe matches your preference for privacy and quiet spaces."
        return "The social atmosphere and communal experiences align with your outgoing nature."
    if key == "sensory":
        top1, top2 = traits.top_sensory
        quality = "defining features" if s >= 85 else "well-represented"
        return f"Your top sensory priorities, {top1} and {top2}, are {quality} here."
    if key == "luxury":
        if traits.luxury < 50:
            return "Authentic, locally-rooted experiences with rustic elegance match your style."
        return "Polished, seamless service and refined accommodations suit your taste."
    return f"This dimension scores {s}% alignment with your profile."


def destination_personality(destination: DestinationRecord, *, settings: Settings) -> dict[str, str]:
    sensory = [destination.sensory_score(c) for c in SENSORY_CATEGORIES]
    intensity = sum(sensory) / len(sensory)
    return {
        "pace": _band(destination.restorative_score, settings=settings, low="Fast", mid="Moderate", high="Slow"),
        "social_vibe": _band(
            destination.social_vibe_score, settings=settings, low="Intimate", mid="Mixed", high="Vibrant"
        ),
        "sensory_intensity": _band(intensity, settings=settings, low="Calm", mid="Moderate", high="Rich"),
        "luxury_style": _band(
            destination.luxury_style_score, settings=settings, low="Raw", mid="Refined", high="Opulent"
        ),
    }


def build_match_narrative(
    traits: TraitVector, match: MatchResult, destination: DestinationRecord, *, settings: Settings
) -> MatchNarrative:
    """Compose every display string for one ranked match."""
    breakdown = match.breakdown
    return MatchNarrative(
        affinity_label=affinity_label(match.fit_score, settings=settings),
        why_it_fits=why_it_fits(destination, traits, settings=settings),
        tension=tension_note(destination, traits, settings=settings),
        best_for=best_for_tag(destination),
        dimension_explanations={
            name: dimension_explanation(name, float(getattr(breakdown, name)), traits, destination.name)
            for name in ("energy", "social", "sensory", "luxury")
        },
        personality=destination_personality(destination, settings=settings),
    )


def _sensory_label(category: str) -> str:
    return SENSORY_LABELS.get(category, category)  # type: ignore[call-overload]


def profile_headline(traits: TraitVector, profile: PsychometricProfile | None, *, settings: Settings) -> str:
    if profile is not None and profile.tribe != "Mixed":
        return f"The {profile.tribe}"
    energy_word = _band(traits.energy, settings=settings, low="Contemplative", mid="Curious", high="Adventurous")
    social_word = _band(traits.social, settings=settings, low="Wanderer", mid="Explorer", high="Connector")
    return f"The {energy_word} {social_word}"


def profile_tagline(traits: TraitVector, *, settings: Settings) -> str:
    bands = settings.narrative.templates.bands
    low_energy, high_energy = traits.energy < bands.low, traits.energy > bands.high
    low_social, high_social = traits.social < bands.low, traits.social > bands.high
    if low_energy and low_social:
        return "Seeking beauty in quiet spaces"
    if high_energy and high_social:
        return "Chasing horizons with kindred spirits"
    if high_energy and low_social:
        return "Conquering peaks on your own terms"
    if low_energy and high_social:
        return "Finding connection in serene settings"
    top1, _ = traits.top_sensory
    return f"Drawn to {_sensory_label(top1).lower()} and authentic discovery"


def profile_summary(traits: TraitVector, *, settings: Settings) -> str:
    energy = _band(
        traits.energy, settings=settings, low="restorative and calming", mid="balanced", high="achievement-driven"
    )
    social = _band(
        traits.social,
        settings=settings,
        low="intimate and private",
        mid="a mix of social and solitary",
        high="social and communal",
    )
    luxury = _band(
        traits.luxury,
        settings=settings,
        low="authentic, rustic experiences",
        mid="a blend of comfort and authenticity",
        high="seamless, polished luxury",
    )
    pace = _band(traits.pace, settings=settings, low="slow and unhurried", mid="moderately paced", high="packed with activities")
    top1, top2 = traits.top_sensory
    return (
        f"You are drawn to {energy} travel experiences. You prefer {social} settings and prioritize "
        f"{_sensory_label(top1)} and {_sensory_label(top2)} in your destinations. Your ideal pace is {pace}, "
        f"and you appreciate {luxury}. These preferences shape your perfect destination, one that resonates "
        "with who you are at your core."
    )


def build_profile_narrative(
    traits: TraitVector, profile: PsychometricProfile | None, *, settings: Settings
) -> ProfileNarrative:
    return ProfileNarrative(
        headline=profile_headline(traits, profile, settings=settings),
        tagline=profile_tagline(traits, settings=settings),
        summary=profile_summary(traits, settings=settings),
        source="template",
    )
