"""Engine orchestration: wires updater, store, similarity and scoring together."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from palategraph.core.config import EngineConfig
from palategraph.core.interfaces import ProfileStore
from palategraph.core.models import (
    CandidateItem,
    Context,
    FoodExperience,
    RecommendationScore,
    UserPalateProfile,
    UserSimilarity,
)
from palategraph.core.scoring import RecommendationScorer
from palategraph.core.similarity import SimilarityEngine
from palategraph.core.store import InMemoryProfileStore
from palategraph.core.updater import ProfileUpdater

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _sort_key(experience: FoodExperience) -> tuple[datetime, str]:
    timestamp = experience.timestamp or _EPOCH
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp, experience.experience_id


class PalateEngine:
    """
    Learn -> match -> recommend over a profile store.

    All stages are injected, so implementations can be swapped at runtime;
    defaults share one EngineConfig.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        store: Optional[ProfileStore] = None,
        updater: Optional[ProfileUpdater] = None,
        similarity: Optional[SimilarityEngine] = None,
        scorer: Optional[RecommendationScorer] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.store: ProfileStore = store or InMemoryProfileStore()
        self.updater = updater or ProfileUpdater(self.config)
        self.similarity = similarity or SimilarityEngine(self.config)
        self.scorer = scorer or RecommendationScorer(self.config)

    def learn(self, experiences: Iterable[FoodExperience]) -> list[UserPalateProfile]:
        """Fold experiences into the store in timestamp order; return the touched profiles."""
        touched: dict[str, UserPalateProfile] = {}
        for experience in sorted(experiences, key=_sort_key):
            touched[experience.user_id] = self.store.apply(experience, self.updater)
        logger.info("Learned from experiences for %d users", len(touched))
        return list(touched.values())

    def profile(self, user_id: str) -> UserPalateProfile:
        """
        Raises:
            KeyError: If the user has no profile
        """
        profile = self.store.load(user_id)
        if profile is None:
            raise KeyError(f"No palate profile for user '{user_id}'")
        return profile

    def similar_users(
        self, user_id: str, threshold: Optional[float] = None
    ) -> list[UserSimilarity]:
        target = self.profile(user_id)
        return self.similarity.find_similar(
            target, self.store.list_all().values(), threshold=threshold
        )

    def recommend_for(
        self,
        user_id: str,
        candidates: Iterable[CandidateItem],
        current_context: Optional[Context] = None,
        similar_users: Optional[Sequence[UserSimilarity]] = None,
        max_n: int = 10,
    ) -> list[RecommendationScore]:
        """Recommend for a stored user, finding similar users first when none are given."""
        profile = self.profile(user_id)
        if similar_users is None:
            similar_users = self.similar_users(user_id)
        return self.scorer.recommend(
            profile,
            candidates,
            current_context or Context(),
            similar_users,
            max_n=max_n,
        )
