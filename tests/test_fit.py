import itertools

import pytest

from erranza.config.overrides import apply_settings_overrides
from erranza.config.settings import get_settings
from erranza.domain.models import DestinationRecord, SensoryPriority, TraitVector
from erranza.scoring.fit import compute_breakdown, rank_destinations, score_destination


def _traits(energy=50.0, social=50.0, luxury=50.0, pace=50.0, sensory=("nature", "visual")) -> TraitVector:
    return TraitVector(
        energy=energy,
        social=social,
        luxury=luxury,
        pace=pace,
        sensory_priorities=[
            SensoryPriority(category=sensory[0], weight=100),
            SensoryPriority(category=sensory[1], weight=50),
        ],
    )


def test_breakdown_inverts_destination_restorative_score():
    settings = get_settings()
    traits = _traits(energy=70)
    dest = DestinationRecord(
        id="d1",
        name="Ridge",
        restorative_score=30,
        social_vibe_score=50,
        nature_score=90,
        visual_score=80,
        luxury_style_score=50,
    )

    b = compute_breakdown(traits, dest, settings=settings)

    assert b.energy == pytest.approx(100.0)
    assert b.social == pytest.approx(100.0)
    assert b.sensory == pytest.approx(0.6 * 90 + 0.4 * 80)
    assert b.luxury == pytest.approx(100.0)


def test_high_energy_traveler_prefers_stimulating_destination():
    settings = get_settings()
    traits = _traits(energy=90)
    calm = DestinationRecord(id="calm", name="Calm", restorative_score=90)
    lively = DestinationRecord(id="lively", name="Lively", restorative_score=10)

    ranked = rank_destinations(traits, [calm, lively], settings=settings)

    assert [m.destination_id for m in ranked] == ["lively", "calm"]
    assert ranked[0].breakdown.energy == pytest.approx(100.0)
    assert ranked[1].breakdown.energy == pytest.approx(20.0)


def test_missing_destination_fields_score_as_neutral():
    settings = get_settings()
    dest = DestinationRecord.model_validate({"id": "x", "name": "X", "luxury_style_score": None, "nature_score": "n/a"})

    m = score_destination(_traits(), dest, settings=settings)

    assert dest.luxury_style_score == 50
    assert dest.nature_score == 50
    # energy/social/luxury identical (100), sensory 50.
    assert m.fit_score == pytest.approx(87.5)


def test_composite_is_rounded_weighted_sum_within_bounds():
    settings = get_settings()
    weights = settings.scoring.weights
    values = (0, 17, 50, 83, 100)
    for energy, restorative, social, vibe in itertools.product(values, repeat=4):
        traits = _traits(energy=energy, social=social, luxury=energy, sensory=("culinary", "wellness"))
        dest = DestinationRecord(
            id="d",
            name="D",
            restorative_score=restorative,
            social_vibe_score=vibe,
            culinary_score=vibe,
            wellness_score=restorative,
            luxury_style_score=social,
        )
        m = score_destination(traits, dest, settings=settings)
        b = m.breakdown
        expected = sum(getattr(b, name) * w for name, w in weights.items())

        assert 0 <= m.fit_score <= 100
        for name in ("energy", "social", "sensory", "luxury"):
            assert 0 <= getattr(b, name) <= 100
        assert abs(m.fit_score - expected) <= 0.1
        assert m.fit_score == round(m.fit_score, 1)


def test_ranking_breaks_ties_by_destination_id():
    settings = get_settings()
    twins = [
        DestinationRecord(id="dest-b", name="B"),
        DestinationRecord(id="dest-c", name="C"),
        DestinationRecord(id="dest-a", name="A"),
    ]

    ranked = rank_destinations(_traits(), twins, settings=settings)

    assert [m.destination_id for m in ranked] == ["dest-a", "dest-b", "dest-c"]
    assert [m.rank for m in ranked] == [1, 2, 3]


def test_ranking_is_stable_across_runs():
    settings = get_settings()
    traits = _traits(energy=65, social=40, luxury=70, sensory=("cultural", "culinary"))
    catalog = [
        DestinationRecord(id=f"d{i}", name=f"D{i}", restorative_score=(i * 37) % 100, cultural_sensory_score=(i * 53) % 100)
        for i in range(12)
    ]

    first = rank_destinations(traits, catalog, settings=settings)
    second = rank_destinations(traits, list(reversed(catalog)), settings=settings)

    assert first == second
    scores = [m.fit_score for m in first]
    assert scores == sorted(scores, reverse=True)


def test_empty_catalog_ranks_to_empty_list():
    assert rank_destinations(_traits(), [], settings=get_settings()) == []


def test_weight_overrides_change_the_composite():
    settings = apply_settings_overrides(
        get_settings(), {"scoring": {"weights": {"energy": 1, "social": 0, "sensory": 0, "luxury": 0}}}
    )
    dest = DestinationRecord(id="d", name="D", restorative_score=80, social_vibe_score=0)

    m = score_destination(_traits(energy=50), dest, settings=settings)

    assert m.fit_score == pytest.approx(70.0)
