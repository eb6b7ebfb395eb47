"""Offline evaluation helpers for recommendation output."""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence, Union

from palategraph.core.models import RecommendationScore

ActualRatings = Union[Mapping[str, float], Iterable[tuple[str, float]]]


def _index_ratings(actual: ActualRatings) -> dict[str, float]:
    pairs = actual.items() if isinstance(actual, Mapping) else actual
    ratings: dict[str, float] = {}
    for item_id, rating in pairs:
        ratings.setdefault(str(item_id), float(rating))
    return ratings


def _matched_errors(
    predictions: Sequence[RecommendationScore], actual: ActualRatings
) -> list[float]:
    ratings = _index_ratings(actual)
    return [
        abs(prediction.total_score * 10.0 - ratings[prediction.item_id])
        for prediction in predictions
        if prediction.item_id in ratings
    ]


def accuracy(
    predictions: Sequence[RecommendationScore],
    actual: ActualRatings,
    tolerance: float = 1.5,
) -> float:
    """Fraction of matched predictions within ``tolerance`` rating points (0-10 scale)."""
    errors = _matched_errors(predictions, actual)
    if not errors:
        return 0.0
    return sum(1 for error in errors if error <= tolerance) / len(errors)


def mean_absolute_error(
    predictions: Sequence[RecommendationScore], actual: ActualRatings
) -> float:
    errors = _matched_errors(predictions, actual)
    if not errors:
        return 0.0
    return sum(errors) / len(errors)


def diversity(recommendations: Sequence[RecommendationScore]) -> float:
    """Distinct categories present divided by list length."""
    if not recommendations:
        return 0.0
    categories = {rec.category or rec.item_id for rec in recommendations}
    return len(categories) / len(recommendations)
