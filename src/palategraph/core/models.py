"""Core immutable data models for palate learning and recommendation."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Sequence

import numpy as np

TASTE_DIMENSIONS = (
    "sweet",
    "salty",
    "sour",
    "bitter",
    "umami",
    "spicy",
    "crunchy",
    "creamy",
    "chewy",
    "hot",
    "cold",
)

EMOTION_DIMENSIONS = (
    "satisfaction",
    "excitement",
    "comfort",
    "surprise",
    "nostalgia",
)

CONTEXT_KEYS = (
    "time_of_day",
    "mood_before",
    "social_setting",
    "occasion",
    "energy_level",
    "weather",
    "location_type",
)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))


class ProfileMaturity(str, Enum):
    """Coarse reliability tier derived from how many experiences shaped a profile."""

    NOVICE = "novice"
    DEVELOPING = "developing"
    ESTABLISHED = "established"
    EXPERT = "expert"

    @classmethod
    def for_experience_count(cls, count: int) -> "ProfileMaturity":
        if count >= 500:
            return cls.EXPERT
        if count >= 100:
            return cls.ESTABLISHED
        if count >= 25:
            return cls.DEVELOPING
        return cls.NOVICE

    @property
    def score(self) -> float:
        return _MATURITY_SCORES[self]


_MATURITY_SCORES = {
    ProfileMaturity.NOVICE: 0.4,
    ProfileMaturity.DEVELOPING: 0.6,
    ProfileMaturity.ESTABLISHED: 0.8,
    ProfileMaturity.EXPERT: 1.0,
}


class EvolutionType(str, Enum):
    """Classification of a single palate shift by its L1 magnitude."""

    SUDDEN = "sudden"
    GRADUAL = "gradual"
    CONTEXTUAL = "contextual"

    @classmethod
    def classify(cls, magnitude: float) -> "EvolutionType":
        if magnitude > 5:
            return cls.SUDDEN
        if magnitude > 2:
            return cls.GRADUAL
        if magnitude > 1:
            return cls.CONTEXTUAL
        return cls.GRADUAL


@dataclass(frozen=True)
class PalateVector:
    """
    Immutable 11-dimensional taste/texture/temperature profile.

    Every field is clamped to [0, 10] on construction, so an instance can never
    hold an out-of-range value. Updates always produce a new instance.
    """

    sweet: float = 0.0
    salty: float = 0.0
    sour: float = 0.0
    bitter: float = 0.0
    umami: float = 0.0
    spicy: float = 0.0
    crunchy: float = 0.0
    creamy: float = 0.0
    chewy: float = 0.0
    hot: float = 0.0
    cold: float = 0.0

    def __post_init__(self) -> None:
        for name in TASTE_DIMENSIONS:
            object.__setattr__(self, name, _clamp(getattr(self, name), 0.0, 10.0))

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "PalateVector":
        """
        Build a vector from values in TASTE_DIMENSIONS order.

        Raises:
            ValueError: If the sequence does not hold exactly 11 values
        """
        values = list(values)
        if len(values) != len(TASTE_DIMENSIONS):
            raise ValueError(
                f"Palate vector needs {len(TASTE_DIMENSIONS)} values, got {len(values)}"
            )
        return cls(**dict(zip(TASTE_DIMENSIONS, values)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PalateVector":
        """Build a vector from a name -> value mapping; missing dimensions are 0."""
        return cls(**{name: float(data.get(name, 0.0) or 0.0) for name in TASTE_DIMENSIONS})

    @classmethod
    def uniform(cls, value: float) -> "PalateVector":
        return cls.from_sequence([value] * len(TASTE_DIMENSIONS))

    def values(self) -> tuple[float, ...]:
        return tuple(getattr(self, name) for name in TASTE_DIMENSIONS)

    def as_array(self) -> np.ndarray:
        return np.array(self.values(), dtype=float)

    def to_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in TASTE_DIMENSIONS}


@dataclass(frozen=True)
class EmotionalResponse:
    """How a user felt about one experience. All fields are on a 0-10 scale."""

    satisfaction: float = 5.0
    excitement: float = 5.0
    comfort: float = 5.0
    surprise: float = 5.0
    nostalgia: float = 5.0
    overall_rating: float = 5.0
    emotional_intensity: float = 5.0

    def __post_init__(self) -> None:
        for item in fields(self):
            object.__setattr__(self, item.name, _clamp(getattr(self, item.name), 0.0, 10.0))

    def emotions(self) -> tuple[float, ...]:
        """The five affective fields in EMOTION_DIMENSIONS order."""
        return tuple(getattr(self, name) for name in EMOTION_DIMENSIONS)

    def as_array(self) -> np.ndarray:
        return np.array(self.emotions(), dtype=float)


@dataclass(frozen=True)
class Context:
    """Situational record attached to an experience or a recommendation request."""

    time_of_day: Optional[str] = None
    mood_before: Optional[str] = None
    social_setting: Optional[str] = None
    occasion: Optional[str] = None
    energy_level: Optional[str] = None
    weather: Optional[str] = None
    location_type: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "Context":
        """
        Build a context from a plain mapping.

        Raises:
            ValueError: If the mapping holds a key outside CONTEXT_KEYS
        """
        if not data:
            return cls()
        unknown = sorted(set(data) - set(CONTEXT_KEYS))
        if unknown:
            raise ValueError(f"Unknown context keys: {', '.join(unknown)}")
        return cls(**{key: str(value) for key, value in data.items() if value not in (None, "")})

    def items(self) -> Iterator[tuple[str, str]]:
        """Yield (key, value) for populated fields only."""
        for key in CONTEXT_KEYS:
            value = getattr(self, key)
            if value is not None:
                yield key, value

    def signatures(self) -> list[str]:
        """Context signatures ("key:value") used as keys of a profile's context weights."""
        return [f"{key}:{value}" for key, value in self.items()]

    def to_dict(self) -> dict[str, str]:
        return dict(self.items())


class EmotionMatrix:
    """
    Fixed 11x5 grid correlating taste dimensions (rows) with emotions (columns).

    Backed by a read-only numpy array; every cell is clamped to [0, 1]. The shape
    is invariant, so building one from anything other than 11 rows of 5 values
    raises ValueError.
    """

    shape = (len(TASTE_DIMENSIONS), len(EMOTION_DIMENSIONS))

    def __init__(self, values: Any) -> None:
        array = np.array(values, dtype=float)
        if array.shape != self.shape:
            raise ValueError(
                f"Emotion matrix must be {self.shape[0]}x{self.shape[1]}, got {array.shape}"
            )
        array = np.clip(array, 0.0, 1.0)
        array.setflags(write=False)
        self._values = array

    @classmethod
    def neutral(cls) -> "EmotionMatrix":
        return cls(np.full(cls.shape, 0.5))

    @property
    def values(self) -> np.ndarray:
        return self._values

    def __getitem__(self, key: tuple[int, int]) -> float:
        row, col = key
        if not (0 <= row < self.shape[0] and 0 <= col < self.shape[1]):
            raise IndexError(f"Emotion matrix cell ({row}, {col}) out of range")
        return float(self._values[row, col])

    def cell(self, taste: str, emotion: str) -> float:
        return self[TASTE_DIMENSIONS.index(taste), EMOTION_DIMENSIONS.index(emotion)]

    def blend(
        self, palate: PalateVector, response: EmotionalResponse, decay: float
    ) -> "EmotionMatrix":
        """Exponentially smooth toward the instantaneous taste x emotion correlation."""
        observation = np.outer(palate.as_array() / 10.0, response.as_array() / 10.0)
        return EmotionMatrix(self._values * decay + observation * (1.0 - decay))

    def predict(self, unit_taste: np.ndarray) -> np.ndarray:
        """Map a [0, 1]-scaled taste vector onto the five emotion dimensions."""
        return unit_taste @ self._values

    def to_rows(self) -> list[list[float]]:
        return self._values.tolist()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EmotionMatrix):
            return NotImplemented
        return bool(np.array_equal(self._values, other._values))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"EmotionMatrix(mean={float(self._values.mean()):.4f})"


@dataclass(frozen=True)
class FoodExperience:
    """
    One rated food experience, produced by the food-logging flow.

    Read-only to the engine: it is never mutated or deleted here.
    """

    experience_id: str
    """Stable identifier of the logged experience."""

    user_id: str
    """Who had the experience."""

    palate_vector: PalateVector
    """Sensory profile of the dish."""

    emotional_response: EmotionalResponse
    """How the user felt about it."""

    food_item: str = ""
    """Dish label (e.g., 'tonkotsu ramen')."""

    cuisine: str = ""
    """Cuisine label (e.g., 'japanese')."""

    context: Context = field(default_factory=Context)
    """Situation the dish was eaten in."""

    timestamp: Optional[datetime] = None
    """When the experience happened."""

    confidence: float = 1.0
    """How sure the user is about their own rating (0-1)."""


@dataclass(frozen=True)
class PalateEvolution:
    """Append-only audit record of one palate shift."""

    timestamp: Optional[datetime]
    vector_change: tuple[float, ...]
    """Per-dimension delta (new - old) in TASTE_DIMENSIONS order."""

    trigger_experience: str
    change_magnitude: float
    """Sum of absolute deltas."""

    evolution_type: EvolutionType


@dataclass(frozen=True)
class UserPalateProfile:
    """
    Per-user aggregate palate state.

    Instances are immutable; the profile updater returns a new profile for every
    experience. Maturity is derived from total_experiences and cannot be set.
    """

    user_id: str
    palate_vector: PalateVector
    """Learned taste center."""

    emotional_preference_matrix: EmotionMatrix = field(default_factory=EmotionMatrix.neutral)
    """Learned taste x emotion correlation."""

    context_weights: dict[str, float] = field(default_factory=dict)
    """Context signature ("key:value") -> familiarity weight."""

    evolution_history: tuple[PalateEvolution, ...] = ()
    confidence_score: float = 0.0
    """Reliability of the profile itself (0-100)."""

    total_experiences: int = 0
    last_updated: Optional[datetime] = None

    @property
    def profile_maturity(self) -> ProfileMaturity:
        return ProfileMaturity.for_experience_count(self.total_experiences)


@dataclass(frozen=True)
class UserSimilarity:
    """Transient similarity between two profiles."""

    user_a: str
    user_b: str
    similarity_score: float
    taste_alignment: float
    emotional_alignment: float
    context_alignment: float
    evolution_alignment: float
    confidence: float


@dataclass(frozen=True)
class CandidateItem:
    """A dish or restaurant experience that can be recommended."""

    item_id: str
    palate_vector: PalateVector
    food_item: str = ""
    cuisine: str = ""
    context: Context = field(default_factory=Context)
    category: Optional[str] = None
    """Explicit diversity category; the cuisine is used when absent."""

    @classmethod
    def from_experience(cls, experience: FoodExperience) -> "CandidateItem":
        return cls(
            item_id=experience.experience_id,
            palate_vector=experience.palate_vector,
            food_item=experience.food_item,
            cuisine=experience.cuisine,
            context=experience.context,
        )


@dataclass(frozen=True)
class RecommendationScore:
    """Transient multi-factor score for one (user, candidate) pair."""

    item_id: str
    user_id: str
    total_score: float
    taste_score: float
    emotional_score: float
    context_score: float
    collaborative_score: float
    novelty_score: float
    confidence: float
    reasoning: str = ""
    category: Optional[str] = None
