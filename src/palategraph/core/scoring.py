"""Recommendation scoring, ranking and cuisine diversity."""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from dataclasses import replace
from typing import Iterable, Mapping, Optional, Sequence

import numpy as np
from rapidfuzz import fuzz, process

from palategraph.core.config import EngineConfig
from palategraph.core.confidence import combine_confidences
from palategraph.core.interfaces import (
    CategoryExtractor,
    CollaborativeSignal,
    ReasoningGenerator,
)
from palategraph.core.models import (
    CandidateItem,
    Context,
    EmotionMatrix,
    PalateVector,
    RecommendationScore,
    UserPalateProfile,
    UserSimilarity,
)

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"

CUISINE_STOPWORDS = {"cuisine", "food", "foods", "style", "restaurant", "dishes", "kitchen"}


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def taste_score(user: PalateVector, item: PalateVector) -> float:
    """Alignment weighted toward the user's strong preferences."""
    user_values = user.as_array()
    weights = np.maximum(0.1, user_values / 10.0)
    alignment = 1.0 - np.abs(user_values - item.as_array()) / 10.0
    return float(np.sum(alignment * weights) / np.sum(weights))


def emotional_score(matrix: EmotionMatrix, item: PalateVector, weights: Sequence[float]) -> float:
    """Predicted satisfaction: the matrix as a linear map from taste to emotion."""
    predicted = matrix.predict(item.as_array() / 10.0)
    return _clamp01(float(np.dot(predicted, np.asarray(weights, dtype=float))))


def context_score(item_context: Context, current_context: Context) -> float:
    """Share of the requested context that the candidate matches exactly."""
    requested = list(current_context.items())
    if not requested:
        return 0.5
    matches = sum(1 for key, value in requested if getattr(item_context, key) == value)
    return matches / len(requested)


def novelty_score(user: PalateVector, item: PalateVector) -> float:
    difference = float(np.mean(np.abs(user.as_array() - item.as_array())))
    return min(1.0, difference / 5.0)


def normalize_cuisine(label: str | None) -> str:
    tokens = re.sub(r"[^a-z0-9]+", " ", (label or "").lower()).split()
    return " ".join(token for token in tokens if token not in CUISINE_STOPWORDS)


def fold_categories(labels: Sequence[str], match_threshold: int = 85) -> list[str]:
    """
    Collapse near-duplicate category labels onto the first spelling seen.

    Labels are compared with rapidfuzz ratio, so 'japanese' and 'japaneese'
    share a category while 'latin american' and 'american' do not.
    """
    canonical: list[str] = []
    folded: list[str] = []
    for label in labels:
        match = process.extractOne(
            label, canonical, scorer=fuzz.ratio, score_cutoff=match_threshold
        )
        if match:
            folded.append(match[0])
        else:
            canonical.append(label)
            folded.append(label)
    return folded


def apply_diversity_filter(
    scores: Sequence[RecommendationScore], max_n: int
) -> list[RecommendationScore]:
    """
    Greedy top-N selection that caps how many picks share one category.

    The cap is ceil(max_n / distinct categories in the pool), so a pool
    dominated by one cuisine still leaves room for the others. Items skipped
    by the cap then fill any remaining slots in score order; the cap decides
    priority, never the length of the result.
    """
    if max_n <= 0:
        return []
    if len(scores) <= max_n:
        return list(scores)

    categories = {score.category or UNCATEGORIZED for score in scores}
    cap = max(1, math.ceil(max_n / len(categories)))
    counts: Counter[str] = Counter()
    selected: list[RecommendationScore] = []
    skipped: list[RecommendationScore] = []
    for score in scores:
        if len(selected) >= max_n:
            break
        category = score.category or UNCATEGORIZED
        if counts[category] >= cap:
            skipped.append(score)
            continue
        counts[category] += 1
        selected.append(score)

    selected.extend(skipped[: max_n - len(selected)])
    return selected


class CuisineCategorizer:
    """Diversity category from the explicit category, else the cuisine label."""

    def category(self, candidate: CandidateItem) -> str:
        return normalize_cuisine(candidate.category or candidate.cuisine) or UNCATEGORIZED


class SimilarityMeanSignal:
    """Collaborative score as the mean similarity of the supplied peers."""

    def __init__(self, neutral: float = 0.5) -> None:
        self.neutral = neutral

    def score(self, candidate: CandidateItem, similar_users: Sequence[UserSimilarity]) -> float:
        if not similar_users:
            return self.neutral
        return sum(s.similarity_score for s in similar_users) / len(similar_users)


class PeerRatingSignal:
    """
    Collaborative score from what similar users actually thought of the item.

    ``peer_ratings`` maps peer user id -> item id -> rating on a 0-10 scale.
    Peers are read from ``UserSimilarity.user_b``, which is how
    SimilarityEngine.find_similar reports them. Ratings are weighted by
    similarity; the neutral score is returned when no peer rated the item.
    """

    def __init__(
        self,
        peer_ratings: Mapping[str, Mapping[str, float]],
        neutral: float = 0.5,
        rating_scale: float = 10.0,
    ) -> None:
        self.peer_ratings = peer_ratings
        self.neutral = neutral
        self.rating_scale = rating_scale

    def score(self, candidate: CandidateItem, similar_users: Sequence[UserSimilarity]) -> float:
        weighted = 0.0
        total_weight = 0.0
        for similarity in similar_users:
            rating = self.peer_ratings.get(similarity.user_b, {}).get(candidate.item_id)
            if rating is None:
                continue
            weighted += similarity.similarity_score * (float(rating) / self.rating_scale)
            total_weight += similarity.similarity_score
        if total_weight <= 0:
            return self.neutral
        return _clamp01(weighted / total_weight)


class TemplateReasoning:
    """Fixed explanation templates keyed on which sub-scores clear their thresholds."""

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()

    def explain(
        self,
        taste_score: float,
        emotional_score: float,
        context_score: float,
        candidate: CandidateItem,
    ) -> str:
        reasons: list[str] = []
        if taste_score > self.config.taste_excellent_threshold:
            reasons.append("Excellent match for your taste preferences")
        elif taste_score > self.config.taste_good_threshold:
            reasons.append("Good alignment with your palate profile")

        if emotional_score > self.config.emotional_reasoning_threshold:
            reasons.append("Likely to provide high emotional satisfaction")

        if context_score > self.config.context_reasoning_threshold:
            reasons.append("Perfect for your current situation")

        if not reasons:
            reasons.append("Worth trying based on similar users' experiences")
        return "; ".join(reasons)


class RecommendationScorer:
    """
    Multi-factor scorer: taste fit, predicted emotion, context, peers and novelty.

    Strategies for the collaborative signal, the reasoning text and the
    diversity category are injected and can be swapped independently.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        collaborative: Optional[CollaborativeSignal] = None,
        reasoning: Optional[ReasoningGenerator] = None,
        categorizer: Optional[CategoryExtractor] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.collaborative = collaborative or SimilarityMeanSignal(
            neutral=self.config.neutral_collaborative_score
        )
        self.reasoning = reasoning or TemplateReasoning(self.config)
        self.categorizer = categorizer or CuisineCategorizer()

    def score(
        self,
        profile: UserPalateProfile,
        candidate: CandidateItem,
        current_context: Context,
        similar_users: Sequence[UserSimilarity] = (),
    ) -> RecommendationScore:
        """
        Score one candidate in isolation.

        ``category`` is the categorizer's normalized label for this candidate
        alone. ``recommend`` later folds near-duplicate labels across the
        whole pool, so a ranked score may carry the folded spelling instead
        (e.g. 'japaneese' becomes 'japanese' when both appear).
        """
        weights = self.config.recommendation_weights
        taste = taste_score(profile.palate_vector, candidate.palate_vector)
        emotional = emotional_score(
            profile.emotional_preference_matrix,
            candidate.palate_vector,
            self.config.emotion_weight_vector(),
        )
        context = context_score(candidate.context, current_context)
        collaborative = self.collaborative.score(candidate, similar_users)
        novelty = novelty_score(profile.palate_vector, candidate.palate_vector)

        total = (
            taste * weights["taste"]
            + emotional * weights["emotional"]
            + context * weights["context"]
            + collaborative * weights["collaborative"]
            + novelty * weights["novelty"]
        )
        confidence = combine_confidences(
            [
                max(0.0, min(100.0, profile.confidence_score)) / 100.0,
                1.0 - abs(taste - emotional),
                context,
            ],
            method="average",
        )

        return RecommendationScore(
            item_id=candidate.item_id,
            user_id=profile.user_id,
            total_score=_clamp01(total),
            taste_score=taste,
            emotional_score=emotional,
            context_score=context,
            collaborative_score=collaborative,
            novelty_score=novelty,
            confidence=confidence,
            reasoning=self.reasoning.explain(taste, emotional, context, candidate),
            category=self.categorizer.category(candidate),
        )

    def recommend(
        self,
        profile: UserPalateProfile,
        candidates: Iterable[CandidateItem],
        current_context: Context,
        similar_users: Sequence[UserSimilarity] = (),
        max_n: int = 10,
    ) -> list[RecommendationScore]:
        """
        Rank candidates for a user and return a diversified top-N.

        Candidates under the minimum total score are dropped, duplicate item
        ids keep their best score, and ties rank by item id.
        """
        if max_n <= 0:
            return []

        scored = [
            self.score(profile, candidate, current_context, similar_users)
            for candidate in candidates
        ]
        eligible = [s for s in scored if s.total_score >= self.config.min_total_score]
        eligible.sort(key=lambda s: (-s.total_score, s.item_id))

        ranked: list[RecommendationScore] = []
        seen: set[str] = set()
        for score in eligible:
            if score.item_id in seen:
                continue
            seen.add(score.item_id)
            ranked.append(score)

        pool = ranked[: max_n * self.config.candidate_pool_factor]
        folded = fold_categories(
            [score.category or UNCATEGORIZED for score in pool],
            self.config.cuisine_match_threshold,
        )
        pool = [replace(score, category=category) for score, category in zip(pool, folded)]

        selected = apply_diversity_filter(pool, max_n)
        logger.debug(
            "Recommended %d of %d candidates for %s (%d above threshold)",
            len(selected),
            len(scored),
            profile.user_id,
            len(eligible),
        )
        return selected
