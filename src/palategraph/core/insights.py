"""Human-readable summaries of a palate vector."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from palategraph.core.models import PalateVector

BASIC_TASTES = ("sweet", "salty", "sour", "bitter", "umami", "spicy")
TEXTURES = ("crunchy", "creamy", "chewy")
TEMPERATURES = ("hot", "cold")


@dataclass
class PalateSummary:
    dominant_tastes: list[tuple[str, float]] = field(default_factory=list)
    texture_preferences: list[tuple[str, float]] = field(default_factory=list)
    temperature_preferences: list[tuple[str, float]] = field(default_factory=list)
    adventurousness: float = 0.0
    description: str = ""


def _ranked(vector: PalateVector, dimensions: tuple[str, ...]) -> list[tuple[str, float]]:
    pairs = [(name, getattr(vector, name)) for name in dimensions]
    return sorted(pairs, key=lambda pair: (-pair[1], pair[0]))


def taste_diversity(vector: PalateVector) -> float:
    """Coefficient of variation across dimensions, scaled so 0.5 maps to 1."""
    values = vector.as_array()
    mean = float(values.mean())
    if mean == 0.0:
        return 0.0
    return min(1.0, (float(np.std(values)) / mean) / 0.5)


def summarize_palate(vector: PalateVector) -> PalateSummary:
    """
    Summarize dominant tastes, textures, temperatures and adventurousness.

    A basic taste counts as dominant above 6. Adventurousness averages taste
    diversity with the share of extreme dimensions (above 8 or below 2).
    """
    dominant = [pair for pair in _ranked(vector, BASIC_TASTES) if pair[1] > 6]
    extremes = sum(1 for value in vector.values() if value > 8 or value < 2)
    adventurousness = (taste_diversity(vector) + extremes / len(vector.values())) / 2

    if dominant:
        description = f"Strong preference for {dominant[0][0]} flavors"
        if len(dominant) > 1:
            description += f", also enjoys {dominant[1][0]}"
    else:
        description = "Balanced taste preferences across all dimensions"

    if adventurousness > 0.7:
        description += ". Highly adventurous eater."
    elif adventurousness < 0.3:
        description += ". Prefers familiar flavors."

    return PalateSummary(
        dominant_tastes=dominant,
        texture_preferences=_ranked(vector, TEXTURES),
        temperature_preferences=_ranked(vector, TEMPERATURES),
        adventurousness=adventurousness,
        description=description,
    )
