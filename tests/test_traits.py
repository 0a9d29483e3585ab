import random

import pytest

from erranza.domain.models import RankedSensory, SliderSensory
from erranza.features.traits import calculate_all_traits, parse_response, safe_number


def test_energy_example_is_achievement_oriented():
    raw = {
        "Q4": 80, "Q5": 75, "Q6": 70, "Q7": 20,
        "Q28": 85, "Q29": 80, "Q30": 10,
        "Q12": 60, "Q13": 55, "Q14": 50, "Q15": 40,
    }
    traits = calculate_all_traits(raw)

    # E=76.25, AO=85, C=56.25 -> 0.4*76.25 + 0.4*85 + 0.2*43.75
    assert traits.energy == pytest.approx(73.25)
    assert traits.energy > 60


def test_empty_response_is_fully_neutral():
    traits = calculate_all_traits({})

    assert traits.energy == 50
    assert traits.social == 50
    assert traits.luxury == 50
    assert traits.pace == 50
    assert traits.top_sensory == ("visual", "culinary")
    assert [p.weight for p in traits.sensory_priorities[:2]] == [50, 50]


def test_none_response_does_not_raise():
    traits = calculate_all_traits(None)
    assert traits.energy == 50
    assert traits.format == "current"


def test_malformed_values_read_as_neutral():
    raw = {"Q4": "abc", "Q5": None, "Q6": float("nan"), "Q7": True, "Q41": "visual"}
    traits = calculate_all_traits(raw)

    assert traits.energy == 50
    assert traits.social == 50


def test_out_of_range_answers_are_clamped_before_reverse_scoring():
    traits = calculate_all_traits({"Q4": 150, "Q5": 150, "Q6": 150, "Q7": -20})

    # E = 100 (Q7 clamps to 0, reversed to 100); AO and C stay neutral.
    assert traits.energy == pytest.approx(70.0)
    assert traits.social == pytest.approx(80.0)


def test_numeric_strings_are_accepted():
    assert safe_number(" 75 ") == 75.0
    assert safe_number("") is None
    assert safe_number(float("inf")) is None


def test_luxury_reverse_scored_items():
    traits = calculate_all_traits({"Q34": 100, "Q35": 0, "Q36": 100, "Q37": 0})
    assert traits.luxury == pytest.approx(100.0)

    traits = calculate_all_traits({"Q34": 0, "Q35": 100, "Q36": 0, "Q37": 100})
    assert traits.luxury == pytest.approx(0.0)


def test_pace_reverse_scored_item():
    traits = calculate_all_traits({"Q38": 20, "Q39": 85, "Q40": 15})
    assert traits.pace == pytest.approx((20 + 15 + 15) / 3)


def test_legacy_questionnaire_has_neutral_luxury_and_pace():
    raw = {"Q34": "fire, water, stone, urban, desert", "Q36": 90, "Q38": "north", "Q39": 0, "Q40": 90}
    parsed = parse_response(raw)
    traits = calculate_all_traits(parsed)

    assert parsed.format == "legacy"
    assert traits.format == "legacy"
    assert traits.luxury == 50
    assert traits.pace == 50


def test_legacy_q34_only_neutralizes_luxury():
    raw = {"Q34": "fire, water, stone, urban, desert", "Q36": 90, "Q38": 90, "Q39": 0, "Q40": 90}
    traits = calculate_all_traits(raw)

    assert traits.format == "legacy"
    assert traits.luxury == 50
    assert traits.pace == pytest.approx((90 + 100 + 90) / 3)


def test_legacy_q38_only_neutralizes_pace():
    raw = {"Q34": 100, "Q35": 0, "Q36": 100, "Q37": 0, "Q38": "inner compass", "Q40": 10}
    traits = calculate_all_traits(raw)

    assert traits.format == "legacy"
    assert traits.luxury == pytest.approx(100.0)
    assert traits.pace == 50


def test_keys_are_case_insensitive():
    upper = calculate_all_traits({"Q4": 90, "Q5": 90, "Q6": 90, "Q7": 10})
    lower = calculate_all_traits({"q4": 90, "q5": 90, "q6": 90, "q7": 10})
    assert upper == lower


def test_ranked_sensory_weights_follow_rank():
    raw = {"Q41": ["nature", "visual", "culinary", "cultural", "wellness"]}
    parsed = parse_response(raw)
    traits = calculate_all_traits(parsed)

    assert isinstance(parsed.sensory, RankedSensory)
    assert [p.category for p in traits.sensory_priorities] == ["nature", "visual", "culinary", "cultural", "wellness"]
    assert [p.weight for p in traits.sensory_priorities] == pytest.approx([100, 80, 60, 40, 20])


def test_ranked_sensory_accepts_display_labels():
    traits = calculate_all_traits({"Q41_sensory_ranking": ["Wellness & Spa", "Nature Immersion"]})

    assert traits.top_sensory == ("wellness", "nature")
    assert [p.weight for p in traits.sensory_priorities] == pytest.approx([100, 50])


def test_short_ranking_falls_back_to_sliders():
    raw = {"Q41": ["nature", "not-a-category"], "Q41_WELLNESS": 90}
    parsed = parse_response(raw)
    traits = calculate_all_traits(parsed)

    assert isinstance(parsed.sensory, SliderSensory)
    # Wellness leads; the 50-point ties keep the fixed category order.
    assert traits.top_sensory == ("wellness", "visual")
    assert traits.sensory_priorities[0].weight == 90


def test_slider_sensory_from_lowercase_keys():
    raw = {"q41_visual": 60, "q41_culinary": 55, "q41_nature": 70, "q41_cultural": 40, "q41_wellness": 95}
    traits = calculate_all_traits(raw)

    assert [p.category for p in traits.sensory_priorities] == ["wellness", "nature", "visual", "culinary", "cultural"]


def test_traits_stay_in_range_and_are_deterministic():
    rng = random.Random(7)
    junk = [None, "", "n/a", -500, 500, 3.5, True, [1, 2], {"a": 1}]
    for _ in range(50):
        raw = {}
        for q in range(1, 42):
            if rng.random() < 0.3:
                continue
            raw[f"Q{q}"] = rng.choice(junk) if rng.random() < 0.2 else rng.uniform(-20, 120)
        first = calculate_all_traits(raw)
        second = calculate_all_traits(dict(raw))

        assert first == second
        for value in (first.energy, first.social, first.luxury, first.pace):
            assert 0 <= value <= 100
        assert len(first.sensory_priorities) >= 2
        assert all(0 <= p.weight <= 100 for p in first.sensory_priorities)
