"""Cross-user palate similarity across taste, emotion, context and evolution."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence

import numpy as np

from palategraph.core.config import EngineConfig
from palategraph.core.confidence import boost_confidence, combine_confidences
from palategraph.core.models import (
    EmotionMatrix,
    PalateEvolution,
    PalateVector,
    UserPalateProfile,
    UserSimilarity,
)

logger = logging.getLogger(__name__)


def cosine_similarity(a: PalateVector, b: PalateVector) -> float:
    """Cosine of the angle between two palates; 0.0 if either has zero magnitude."""
    va = a.as_array()
    vb = b.as_array()
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return max(-1.0, min(1.0, float(np.dot(va, vb)) / norm))


def emotional_alignment(a: EmotionMatrix, b: EmotionMatrix) -> float:
    return float(np.mean(1.0 - np.abs(a.values - b.values)))


def context_alignment(
    a: Mapping[str, float], b: Mapping[str, float], neutral: float = 0.5
) -> float:
    keys = sorted(set(a) | set(b))
    if not keys:
        return 1.0
    total = sum(1.0 - abs(a.get(key, neutral) - b.get(key, neutral)) for key in keys)
    return total / len(keys)


def evolution_alignment(
    a: Sequence[PalateEvolution],
    b: Sequence[PalateEvolution],
    window: int = 10,
    one_sided: float = 0.3,
) -> float:
    """
    Compare recent palate shifts pairwise, newest first.

    Pairs with the same evolution type contribute how close their magnitudes
    are; mismatched pairs contribute nothing.
    """
    if not a and not b:
        return 1.0
    if not a or not b:
        return one_sided

    recent_a = list(a[-window:])
    recent_b = list(b[-window:])
    compared = min(len(recent_a), len(recent_b))
    total = 0.0
    for offset in range(1, compared + 1):
        evo_a = recent_a[-offset]
        evo_b = recent_b[-offset]
        if evo_a.evolution_type == evo_b.evolution_type:
            closeness = 1.0 - abs(evo_a.change_magnitude - evo_b.change_magnitude) / 10.0
            total += max(0.0, closeness)
    return total / compared


class SimilarityEngine:
    """Computes composite palate similarity and finds highly similar users."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()

    def similarity(
        self,
        a: UserPalateProfile,
        b: UserPalateProfile,
        context_weight: float = 1.0,
    ) -> UserSimilarity:
        """
        Compare two profiles.

        Args:
            a: First profile
            b: Second profile
            context_weight: Caller-supplied multiplier on the composite score

        Returns:
            UserSimilarity with the composite score, sub-scores and confidence
        """
        weights = self.config.similarity_weights
        taste = max(0.0, cosine_similarity(a.palate_vector, b.palate_vector))
        emotional = emotional_alignment(
            a.emotional_preference_matrix, b.emotional_preference_matrix
        )
        context = context_alignment(
            a.context_weights, b.context_weights, self.config.neutral_context_weight
        )
        evolution = evolution_alignment(
            a.evolution_history,
            b.evolution_history,
            window=self.config.evolution_window,
            one_sided=self.config.one_sided_evolution_alignment,
        )

        composite = (
            taste * weights["taste"]
            + emotional * weights["emotional"]
            + context * weights["context"]
            + evolution * weights["evolution"]
        ) * context_weight
        score = max(0.0, min(1.0, composite))

        return UserSimilarity(
            user_a=a.user_id,
            user_b=b.user_id,
            similarity_score=score,
            taste_alignment=taste,
            emotional_alignment=emotional,
            context_alignment=context,
            evolution_alignment=evolution,
            confidence=self._confidence(a, b, score),
        )

    def find_similar(
        self,
        target: UserPalateProfile,
        candidates: Iterable[UserPalateProfile],
        threshold: Optional[float] = None,
    ) -> list[UserSimilarity]:
        """
        Return candidates that clear both the score threshold and the confidence floor.

        The target's own profile is never returned. Results are sorted by
        similarity score, highest first.
        """
        threshold = self.config.similarity_threshold if threshold is None else threshold
        matches: list[UserSimilarity] = []
        for candidate in candidates:
            if candidate.user_id == target.user_id:
                continue
            result = self.similarity(target, candidate)
            if (
                result.similarity_score >= threshold
                and result.confidence >= self.config.min_similarity_confidence
            ):
                matches.append(result)

        matches.sort(key=lambda s: (-s.similarity_score, s.user_b))
        logger.debug(
            "Found %d similar users for %s at threshold %.2f",
            len(matches),
            target.user_id,
            threshold,
        )
        return matches

    def _confidence(self, a: UserPalateProfile, b: UserPalateProfile, score: float) -> float:
        maturity = (a.profile_maturity.score + b.profile_maturity.score) / 2.0
        larger = max(a.total_experiences, b.total_experiences)
        overlap = min(a.total_experiences, b.total_experiences) / larger if larger else 0.0
        profile_confidence = (a.confidence_score + b.confidence_score) / 200.0
        base = combine_confidences([maturity, overlap, profile_confidence], method="average")
        if score > self.config.similarity_threshold:
            return boost_confidence(base, self.config.similarity_confidence_boost)
        return base
