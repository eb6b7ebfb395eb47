"""Tests for emotional-weighted profile updates."""

import random
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from palategraph.core.interfaces import ContextWeigher
from palategraph.core.models import (
    Context,
    EmotionalResponse,
    EmotionMatrix,
    EvolutionType,
    FoodExperience,
    PalateVector,
    ProfileMaturity,
    UserPalateProfile,
)
from palategraph.core.updater import (
    FamiliarityContextWeigher,
    FlatContextWeigher,
    ProfileUpdater,
    emotional_consistency,
    emotional_weight,
    satisfaction_gradient,
)

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
WEIGHTS = [0.35, 0.25, 0.20, 0.15, 0.05]


def _updater() -> ProfileUpdater:
    return ProfileUpdater(clock=lambda: FIXED_NOW)


def _uniform_response(value: float, intensity: float = 10.0) -> EmotionalResponse:
    return EmotionalResponse(
        satisfaction=value,
        excitement=value,
        comfort=value,
        surprise=value,
        nostalgia=value,
        overall_rating=value,
        emotional_intensity=intensity,
    )


def _make_experience(
    palate: PalateVector,
    response: EmotionalResponse,
    experience_id: str = "exp1",
    user_id: str = "u1",
    context: Context | None = None,
    confidence: float = 1.0,
) -> FoodExperience:
    return FoodExperience(
        experience_id=experience_id,
        user_id=user_id,
        palate_vector=palate,
        emotional_response=response,
        food_item="Sample Dish",
        cuisine="sample",
        context=context or Context(),
        timestamp=FIXED_NOW,
        confidence=confidence,
    )


def _make_profile(
    total: int = 10, confidence: float = 50.0, vector: PalateVector | None = None
) -> UserPalateProfile:
    return UserPalateProfile(
        user_id="u1",
        palate_vector=vector or PalateVector.uniform(5.0),
        confidence_score=confidence,
        total_experiences=total,
    )


def _distance(a: PalateVector, b: PalateVector) -> float:
    return float(abs(a.as_array() - b.as_array()).sum())


def test_initialize_copies_first_experience() -> None:
    palate = PalateVector(sweet=7, salty=3, umami=6, crunchy=2)
    experience = _make_experience(palate, _uniform_response(8), confidence=0.8)
    profile = _updater().update(None, experience)

    assert profile.palate_vector == palate
    assert profile.total_experiences == 1
    assert profile.profile_maturity == ProfileMaturity.NOVICE
    assert profile.emotional_preference_matrix == EmotionMatrix.neutral()
    assert profile.evolution_history == ()
    assert profile.confidence_score == pytest.approx(80.0)
    assert profile.last_updated == FIXED_NOW


def test_sweet_scenario_moves_toward_experience() -> None:
    profile = _make_profile(total=10, confidence=50.0)
    response = EmotionalResponse(
        satisfaction=9,
        excitement=8,
        comfort=8,
        surprise=5,
        nostalgia=5,
        overall_rating=9,
        emotional_intensity=8,
    )
    experience = _make_experience(PalateVector(sweet=9, **_fives_except("sweet")), response)

    updated = _updater().update(profile, experience)

    # lr 1.2, gradient 0.55, emotional weight 0.8 * 0.888, contextual 0.5
    assert updated.palate_vector.sweet == pytest.approx(5.0 + 1.2 * 4 * 0.55 * 0.7104 * 0.5)
    assert 5.0 < updated.palate_vector.sweet <= 10.0
    assert updated.palate_vector.salty == pytest.approx(5.0)
    assert updated.total_experiences == 11
    assert len(updated.evolution_history) == 1
    evolution = updated.evolution_history[0]
    assert evolution.change_magnitude > 0
    assert evolution.trigger_experience == "exp1"
    assert evolution.evolution_type == EvolutionType.GRADUAL
    assert profile.total_experiences == 10


def _fives_except(name: str) -> dict[str, float]:
    names = ("sweet", "salty", "sour", "bitter", "umami", "spicy",
             "crunchy", "creamy", "chewy", "hot", "cold")
    return {n: 5.0 for n in names if n != name}


def test_high_satisfaction_converges_toward_experience() -> None:
    updater = _updater()
    target = PalateVector(sweet=9, salty=1, spicy=8, crunchy=7, hot=9)
    profile = _make_profile(total=5, confidence=40.0)
    previous = _distance(profile.palate_vector, target)

    for index in range(15):
        profile = updater.update(
            profile, _make_experience(target, _uniform_response(10), experience_id=f"e{index}")
        )
        current = _distance(profile.palate_vector, target)
        assert current < previous
        previous = current


def test_low_satisfaction_does_not_move_toward_experience() -> None:
    updater = _updater()
    target = PalateVector(sweet=9, salty=1, spicy=8)
    profile = _make_profile(total=5, confidence=40.0)
    previous = _distance(profile.palate_vector, target)

    for index in range(10):
        profile = updater.update(
            profile, _make_experience(target, _uniform_response(0), experience_id=f"e{index}")
        )
        current = _distance(profile.palate_vector, target)
        assert current >= previous - 1e-9
        previous = current


def test_bounds_hold_under_iteration() -> None:
    rng = random.Random(7)
    updater = _updater()
    profile = None
    for index in range(200):
        palate = PalateVector.from_sequence([rng.choice([0.0, 10.0, rng.uniform(0, 10)])
                                             for _ in range(11)])
        response = EmotionalResponse(
            satisfaction=rng.uniform(0, 10),
            excitement=rng.uniform(0, 10),
            comfort=rng.uniform(0, 10),
            surprise=rng.uniform(0, 10),
            nostalgia=rng.uniform(0, 10),
            emotional_intensity=rng.uniform(0, 10),
        )
        context = Context(social_setting=rng.choice(["solo", "friends", "family"]))
        profile = updater.update(
            profile, _make_experience(palate, response, experience_id=f"e{index}", context=context)
        )
        assert all(0.0 <= value <= 10.0 for value in profile.palate_vector.values())
        assert float(profile.emotional_preference_matrix.values.min()) >= 0.0
        assert float(profile.emotional_preference_matrix.values.max()) <= 1.0
        assert all(0.5 <= weight <= 1.0 for weight in profile.context_weights.values())
        assert 0.0 <= profile.confidence_score <= 100.0

    assert profile.total_experiences == 200
    assert profile.profile_maturity == ProfileMaturity.ESTABLISHED
    assert len(profile.evolution_history) == 199


def test_maturity_follows_experience_count() -> None:
    profile = _make_profile(total=24)
    updated = _updater().update(
        profile, _make_experience(PalateVector.uniform(5.0), _uniform_response(6))
    )
    assert updated.total_experiences == 25
    assert updated.profile_maturity == ProfileMaturity.DEVELOPING


def test_learning_rate_by_maturity_and_confidence() -> None:
    updater = _updater()
    assert updater.learning_rate(_make_profile(total=3, confidence=0.0)) == pytest.approx(1.6)
    assert updater.learning_rate(_make_profile(total=150, confidence=100.0)) == pytest.approx(0.3)
    assert updater.learning_rate(_make_profile(total=600, confidence=50.0)) == pytest.approx(0.15)


def test_matrix_smoothing() -> None:
    profile = _make_profile()
    updated = _updater().update(
        profile, _make_experience(PalateVector.uniform(10.0), _uniform_response(10))
    )
    assert updated.emotional_preference_matrix[4, 2] == pytest.approx(0.525)


def test_confidence_blend_weight_is_capped() -> None:
    updater = _updater()
    experience = _make_experience(PalateVector.uniform(5.0), _uniform_response(7), confidence=1.0)

    early = updater.update(_make_profile(total=2, confidence=50.0), experience)
    late = updater.update(_make_profile(total=40, confidence=50.0), experience)

    assert early.confidence_score == pytest.approx(55.0)
    assert late.confidence_score == pytest.approx(50.0 * (1 - 1 / 40) + 100.0 / 40)


def test_update_rejects_other_users_experience() -> None:
    experience = _make_experience(
        PalateVector.uniform(5.0), _uniform_response(7), user_id="someone_else"
    )
    with pytest.raises(ValueError):
        _updater().update(_make_profile(), experience)


def test_context_weights_learn_familiar_situations() -> None:
    updater = _updater()
    context = Context(social_setting="friends", time_of_day="dinner")
    experience = _make_experience(PalateVector.uniform(5.0), _uniform_response(7), context=context)

    profile = updater.update(None, experience)
    assert profile.context_weights["social_setting:friends"] == pytest.approx(0.55)

    profile = updater.update(profile, replace(experience, experience_id="exp2"))
    assert profile.context_weights["time_of_day:dinner"] == pytest.approx(0.595)


def test_familiarity_weigher() -> None:
    weigher = FamiliarityContextWeigher()
    profile = replace(_make_profile(), context_weights={"weather:rainy": 0.9, "occasion:date": 0.7})

    assert weigher.weigh(Context(), profile) == 0.5
    assert weigher.weigh(Context(weather="rainy"), profile) == pytest.approx(0.9)
    assert weigher.weigh(Context(weather="rainy", occasion="date"), profile) == pytest.approx(0.8)
    assert weigher.weigh(Context(weather="sunny"), profile) == pytest.approx(0.5)


def test_flat_weigher_can_be_injected() -> None:
    updater = ProfileUpdater(context_weigher=FlatContextWeigher(1.0), clock=lambda: FIXED_NOW)
    profile = _make_profile(total=10, confidence=100.0)
    updated = updater.update(
        profile, _make_experience(PalateVector.uniform(7.0), _uniform_response(10))
    )
    # lr 0.8, gradient 1, emotional weight 1, contextual 1
    assert updated.palate_vector.sweet == pytest.approx(5.0 + 0.8 * 2.0)


def test_emotional_helpers() -> None:
    assert satisfaction_gradient(_uniform_response(10), WEIGHTS) == pytest.approx(1.0)
    assert satisfaction_gradient(_uniform_response(0), WEIGHTS) == pytest.approx(-1.0)
    assert satisfaction_gradient(_uniform_response(5), WEIGHTS) == pytest.approx(0.0)

    scattered = EmotionalResponse(
        satisfaction=10, excitement=0, comfort=10, surprise=0, nostalgia=10
    )
    assert emotional_consistency(_uniform_response(7)) == 1.0
    assert emotional_consistency(scattered) == pytest.approx(0.1)
    assert emotional_weight(_uniform_response(7, intensity=6)) == pytest.approx(0.6)


def test_weighers_satisfy_protocol():
    assert isinstance(FamiliarityContextWeigher(), ContextWeigher)
    assert isinstance(FlatContextWeigher(), ContextWeigher)
