"""PalateGraph: emotion-weighted taste learning and recommendation engine."""

__version__ = "0.1.0"

# Core exports
from palategraph.core.models import (
    TASTE_DIMENSIONS,
    EMOTION_DIMENSIONS,
    PalateVector,
    EmotionalResponse,
    Context,
    EmotionMatrix,
    FoodExperience,
    PalateEvolution,
    EvolutionType,
    ProfileMaturity,
    UserPalateProfile,
    UserSimilarity,
    CandidateItem,
    RecommendationScore,
)
from palategraph.core.interfaces import (
    ContextWeigher,
    CollaborativeSignal,
    ReasoningGenerator,
    CategoryExtractor,
    ProfileStore,
)
from palategraph.core.config import EngineConfig, load_engine_config
from palategraph.core.updater import ProfileUpdater, FamiliarityContextWeigher, FlatContextWeigher
from palategraph.core.similarity import SimilarityEngine, cosine_similarity
from palategraph.core.scoring import (
    RecommendationScorer,
    SimilarityMeanSignal,
    PeerRatingSignal,
    TemplateReasoning,
    CuisineCategorizer,
)
from palategraph.core.store import InMemoryProfileStore
from palategraph.core.pipeline import PalateEngine
from palategraph.core import metrics

__all__ = [
    "TASTE_DIMENSIONS",
    "EMOTION_DIMENSIONS",
    "PalateVector",
    "EmotionalResponse",
    "Context",
    "EmotionMatrix",
    "FoodExperience",
    "PalateEvolution",
    "EvolutionType",
    "ProfileMaturity",
    "UserPalateProfile",
    "UserSimilarity",
    "CandidateItem",
    "RecommendationScore",
    "ContextWeigher",
    "CollaborativeSignal",
    "ReasoningGenerator",
    "CategoryExtractor",
    "ProfileStore",
    "EngineConfig",
    "load_engine_config",
    "ProfileUpdater",
    "FamiliarityContextWeigher",
    "FlatContextWeigher",
    "SimilarityEngine",
    "cosine_similarity",
    "RecommendationScorer",
    "SimilarityMeanSignal",
    "PeerRatingSignal",
    "TemplateReasoning",
    "CuisineCategorizer",
    "InMemoryProfileStore",
    "PalateEngine",
    "metrics",
]
