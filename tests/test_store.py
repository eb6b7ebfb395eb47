"""Tests for the in-memory profile store."""

import threading
from datetime import datetime, timezone

from palategraph.core.models import (
    EmotionalResponse,
    FoodExperience,
    PalateVector,
    UserPalateProfile,
)
from palategraph.core.interfaces import ProfileStore
from palategraph.core.store import InMemoryProfileStore
from palategraph.core.updater import ProfileUpdater


def _experience(user_id: str, experience_id: str) -> FoodExperience:
    return FoodExperience(
        experience_id=experience_id,
        user_id=user_id,
        palate_vector=PalateVector(sweet=8, umami=6),
        emotional_response=EmotionalResponse(satisfaction=8, excitement=7, comfort=6),
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


def test_load_returns_none_for_unknown_user():
    store = InMemoryProfileStore()
    assert store.load("nobody") is None
    assert len(store) == 0


def test_save_and_list():
    store = InMemoryProfileStore()
    store.save(UserPalateProfile(user_id="u1", palate_vector=PalateVector()))
    store.save(UserPalateProfile(user_id="u2", palate_vector=PalateVector()))
    assert set(store.list_all()) == {"u1", "u2"}
    assert len(store) == 2


def test_apply_creates_then_updates():
    store = InMemoryProfileStore()
    updater = ProfileUpdater()

    first = store.apply(_experience("u1", "e1"), updater)
    second = store.apply(_experience("u1", "e2"), updater)

    assert first.total_experiences == 1
    assert second.total_experiences == 2
    assert store.load("u1") == second


def test_concurrent_updates_for_one_user_are_not_lost():
    store = InMemoryProfileStore()
    updater = ProfileUpdater()
    barrier = threading.Barrier(8)

    def worker(worker_id: int) -> None:
        barrier.wait()
        for index in range(25):
            store.apply(_experience("shared", f"w{worker_id}-{index}"), updater)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    profile = store.load("shared")
    assert profile is not None
    assert profile.total_experiences == 200
    assert len(profile.evolution_history) == 199


def test_different_users_update_independently():
    store = InMemoryProfileStore()
    updater = ProfileUpdater()

    def worker(user_id: str) -> None:
        for index in range(10):
            store.apply(_experience(user_id, f"{user_id}-{index}"), updater)

    threads = [threading.Thread(target=worker, args=(f"user{i}",)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) == 4
    assert all(p.total_experiences == 10 for p in store.list_all().values())


def test_store_satisfies_profile_store_protocol():
    assert isinstance(InMemoryProfileStore(), ProfileStore)
