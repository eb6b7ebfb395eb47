"""Confidence helpers shared by the similarity engine and the scorer."""

from typing import Callable, Sequence

_COMBINERS: dict[str, Callable[[Sequence[float]], float]] = {
    "average": lambda values: sum(values) / len(values),
    "min": min,
    "max": max,
}


def combine_confidences(scores: Sequence[float], method: str = "average") -> float:
    """
    Merge several [0, 1] confidence signals into one, clamped to [0, 1].

    An empty sequence has no evidence and yields 0.0.

    Raises:
        ValueError: If ``method`` is not one of 'average', 'min' or 'max'
    """
    combiner = _COMBINERS.get(method)
    if combiner is None:
        raise ValueError(f"Unknown confidence combination method: {method}")
    if not scores:
        return 0.0
    return max(0.0, min(1.0, float(combiner(scores))))


def boost_confidence(base_score: float, factor: float) -> float:
    """Scale a confidence by ``factor``, capped at 1 (strong similarity matches)."""
    return min(1.0, base_score * factor)
