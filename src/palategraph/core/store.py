"""In-memory profile store with per-user serialized updates."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from palategraph.core.models import FoodExperience, UserPalateProfile
from palategraph.core.updater import ProfileUpdater

logger = logging.getLogger(__name__)


class InMemoryProfileStore:
    """
    Dict-backed ProfileStore.

    ``apply`` runs the read-modify-write of one user's profile under that
    user's lock, so concurrent experiences for the same user are never lost.
    Different users use different locks and can update in parallel.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, UserPalateProfile] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def load(self, user_id: str) -> Optional[UserPalateProfile]:
        return self._profiles.get(user_id)

    def save(self, profile: UserPalateProfile) -> None:
        self._profiles[profile.user_id] = profile

    def apply(self, experience: FoodExperience, updater: ProfileUpdater) -> UserPalateProfile:
        """
        Fold one experience into the stored profile of its user.

        Args:
            experience: The new experience
            updater: Updater that computes the next profile

        Returns:
            The saved profile
        """
        with self._lock_for(experience.user_id):
            current = self.load(experience.user_id)
            if current is None:
                logger.info("Creating palate profile for %s", experience.user_id)
            updated = updater.update(current, experience)
            self.save(updated)
            return updated

    def list_all(self) -> dict[str, UserPalateProfile]:
        return dict(self._profiles)

    def __len__(self) -> int:
        return len(self._profiles)

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock
