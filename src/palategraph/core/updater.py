"""Profile updater: emotional-weighted learning from one food experience at a time."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

import numpy as np

from palategraph.core.config import EngineConfig
from palategraph.core.interfaces import ContextWeigher
from palategraph.core.models import (
    Context,
    EmotionalResponse,
    EmotionMatrix,
    EvolutionType,
    FoodExperience,
    PalateEvolution,
    PalateVector,
    UserPalateProfile,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def satisfaction_gradient(response: EmotionalResponse, weights: Sequence[float]) -> float:
    """Weighted emotional satisfaction re-centered from [0, 10] onto [-1, +1]."""
    weighted = float(np.dot(response.as_array(), np.asarray(weights, dtype=float)))
    return (weighted - 5.0) / 5.0


def emotional_consistency(response: EmotionalResponse) -> float:
    """Inverse variance of the five emotions; a scattershot report scores low."""
    variance = float(np.var(response.as_array()))
    return max(0.1, 1.0 - variance / 25.0)


def emotional_weight(response: EmotionalResponse) -> float:
    return min(1.0, (response.emotional_intensity / 10.0) * emotional_consistency(response))


class FlatContextWeigher:
    """Constant contextual weight, ignoring context history."""

    def __init__(self, weight: float = 0.5) -> None:
        self.weight = weight

    def weigh(self, context: Context, profile: UserPalateProfile) -> float:
        return self.weight


class FamiliarityContextWeigher:
    """
    Contextual weight from how familiar the experience's situation is.

    Averages the profile's learned weight for each populated context signature.
    Signatures never seen before count as neutral, and an experience without
    any context gets the neutral weight.
    """

    def __init__(
        self,
        neutral_weight: float = 0.5,
        min_weight: float = 0.3,
        max_weight: float = 1.0,
    ) -> None:
        self.neutral_weight = neutral_weight
        self.min_weight = min_weight
        self.max_weight = max_weight

    def weigh(self, context: Context, profile: UserPalateProfile) -> float:
        signatures = context.signatures()
        if signatures:
            weights = [
                profile.context_weights.get(signature, self.neutral_weight)
                for signature in signatures
            ]
            familiarity = sum(weights) / len(weights)
        else:
            familiarity = self.neutral_weight
        return max(self.min_weight, min(self.max_weight, familiarity))


class ProfileUpdater:
    """
    Applies emotional gradient descent to a user's palate profile.

    The palate moves toward an experience's taste profile in proportion to how
    satisfying it was, and away from it when the experience disappointed.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        context_weigher: Optional[ContextWeigher] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.context_weigher = context_weigher or FamiliarityContextWeigher(
            neutral_weight=self.config.neutral_context_weight,
            min_weight=self.config.min_contextual_weight,
        )
        self.clock = clock or _utcnow

    def initialize(self, experience: FoodExperience) -> UserPalateProfile:
        """Build a novice profile from a user's first experience."""
        return UserPalateProfile(
            user_id=experience.user_id,
            palate_vector=experience.palate_vector,
            emotional_preference_matrix=EmotionMatrix.neutral(),
            context_weights=self._learn_context(experience.context, {}),
            evolution_history=(),
            confidence_score=max(0.0, min(100.0, experience.confidence * 100.0)),
            total_experiences=1,
            last_updated=self.clock(),
        )

    def update(
        self, profile: Optional[UserPalateProfile], experience: FoodExperience
    ) -> UserPalateProfile:
        """
        Fold one experience into a profile.

        Args:
            profile: Latest profile, or None for the user's first experience
            experience: The new experience

        Returns:
            A new profile; the input profile is left untouched

        Raises:
            ValueError: If the experience belongs to a different user
        """
        if profile is None:
            return self.initialize(experience)

        if profile.user_id != experience.user_id:
            raise ValueError(
                f"Experience {experience.experience_id} belongs to user "
                f"'{experience.user_id}', not '{profile.user_id}'"
            )

        rate = self.learning_rate(profile)
        weight = emotional_weight(experience.emotional_response)
        contextual = self.context_weigher.weigh(experience.context, profile)

        new_vector = self.apply_gradient(
            profile.palate_vector,
            experience.palate_vector,
            experience.emotional_response,
            rate * weight * contextual,
        )
        matrix = profile.emotional_preference_matrix.blend(
            experience.palate_vector,
            experience.emotional_response,
            self.config.matrix_decay,
        )
        now = self.clock()
        evolution = self._evolution(profile.palate_vector, new_vector, experience, now)

        logger.debug(
            "Updated palate for %s: lr=%.3f emotional=%.3f contextual=%.3f %s (%.3f)",
            profile.user_id,
            rate,
            weight,
            contextual,
            evolution.evolution_type.value,
            evolution.change_magnitude,
        )

        return replace(
            profile,
            palate_vector=new_vector,
            emotional_preference_matrix=matrix,
            context_weights=self._learn_context(experience.context, profile.context_weights),
            evolution_history=profile.evolution_history + (evolution,),
            confidence_score=self._updated_confidence(profile, experience),
            total_experiences=profile.total_experiences + 1,
            last_updated=now,
        )

    def learning_rate(self, profile: UserPalateProfile) -> float:
        """Maturity-indexed base rate, scaled up while the profile is unsure of itself."""
        base_rate = self.config.learning_rate_for(profile.profile_maturity)
        confidence = max(0.0, min(100.0, profile.confidence_score))
        return base_rate * (1.0 + (1.0 - confidence / 100.0))

    def apply_gradient(
        self,
        current: PalateVector,
        target: PalateVector,
        response: EmotionalResponse,
        step: float,
    ) -> PalateVector:
        """
        Emotional gradient descent on every taste dimension.

        ``step`` is the product of learning rate, emotional weight and contextual
        weight. Results are clamped to [0, 10] by PalateVector itself.
        """
        gradient = satisfaction_gradient(response, self.config.emotion_weight_vector())
        old = current.as_array()
        updated = old + step * (target.as_array() - old) * gradient
        return PalateVector.from_sequence(np.clip(updated, 0.0, 10.0).tolist())

    def _learn_context(self, context: Context, weights: dict[str, float]) -> dict[str, float]:
        learned = dict(weights)
        step = self.config.context_learning_step
        for signature in context.signatures():
            current = learned.get(signature, self.config.neutral_context_weight)
            learned[signature] = min(1.0, current + (1.0 - current) * step)
        return learned

    def _evolution(
        self,
        old: PalateVector,
        new: PalateVector,
        experience: FoodExperience,
        timestamp: datetime,
    ) -> PalateEvolution:
        delta = new.as_array() - old.as_array()
        magnitude = float(np.abs(delta).sum())
        return PalateEvolution(
            timestamp=timestamp,
            vector_change=tuple(float(value) for value in delta),
            trigger_experience=experience.experience_id,
            change_magnitude=magnitude,
            evolution_type=EvolutionType.classify(magnitude),
        )

    def _updated_confidence(
        self, profile: UserPalateProfile, experience: FoodExperience
    ) -> float:
        weight = min(self.config.max_confidence_blend, 1.0 / max(profile.total_experiences, 1))
        blended = profile.confidence_score * (1.0 - weight) + experience.confidence * 100.0 * weight
        return max(0.0, min(100.0, blended))
