"""Protocol definitions for pluggable engine strategies and profile storage."""

from typing import TYPE_CHECKING, Optional, Protocol, Sequence, runtime_checkable

from palategraph.core.models import (
    CandidateItem,
    Context,
    FoodExperience,
    UserPalateProfile,
    UserSimilarity,
)

if TYPE_CHECKING:
    from palategraph.core.updater import ProfileUpdater


@runtime_checkable
class ContextWeigher(Protocol):
    """ContextWeigher protocol: how reliable an experience's context is for a profile."""

    def weigh(self, context: Context, profile: UserPalateProfile) -> float:
        """
        Return a reliability multiplier for learning from this context.

        Args:
            context: Context of the incoming experience
            profile: Profile before the update

        Returns:
            Multiplier, expected within [0.3, 1]
        """
        ...


@runtime_checkable
class CollaborativeSignal(Protocol):
    """CollaborativeSignal protocol: would people like this user enjoy the candidate."""

    def score(self, candidate: CandidateItem, similar_users: Sequence[UserSimilarity]) -> float:
        """
        Score a candidate from peer evidence.

        Args:
            candidate: Item being scored
            similar_users: Similarities between the target user and their peers

        Returns:
            Collaborative score (0-1)
        """
        ...


@runtime_checkable
class ReasoningGenerator(Protocol):
    """ReasoningGenerator protocol: short human-readable explanation of a score."""

    def explain(
        self,
        taste_score: float,
        emotional_score: float,
        context_score: float,
        candidate: CandidateItem,
    ) -> str:
        ...


@runtime_checkable
class CategoryExtractor(Protocol):
    """CategoryExtractor protocol: diversity category of a candidate."""

    def category(self, candidate: CandidateItem) -> str:
        ...


@runtime_checkable
class ProfileStore(Protocol):
    """
    ProfileStore protocol: load and save whole profiles by user id.

    Partial-field updates are not part of the contract.
    """

    def load(self, user_id: str) -> Optional[UserPalateProfile]:
        """
        Load the latest profile for a user.

        Returns:
            The profile, or None if the user has no profile yet
        """
        ...

    def save(self, profile: UserPalateProfile) -> None:
        """Persist a full profile, replacing any previous one for the same user."""
        ...

    def apply(self, experience: FoodExperience, updater: "ProfileUpdater") -> UserPalateProfile:
        """
        Fold one experience into its user's stored profile and save the result.

        Implementations must serialize concurrent calls for the same user so
        no experience is lost.
        """
        ...

    def list_all(self) -> dict[str, UserPalateProfile]:
        """Snapshot of every stored profile keyed by user id."""
        ...
