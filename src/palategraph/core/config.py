"""Engine configuration: weights, thresholds, and learning rates."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from importlib import resources
from pathlib import Path
from typing import Any

import yaml

from palategraph.core.models import EMOTION_DIMENSIONS, ProfileMaturity


def _emotional_weights() -> dict[str, float]:
    return {
        "satisfaction": 0.35,
        "excitement": 0.25,
        "comfort": 0.20,
        "surprise": 0.15,
        "nostalgia": 0.05,
    }


def _learning_rates() -> dict[str, float]:
    return {
        ProfileMaturity.NOVICE.value: 0.8,
        ProfileMaturity.DEVELOPING.value: 0.8,
        ProfileMaturity.ESTABLISHED.value: 0.3,
        ProfileMaturity.EXPERT.value: 0.1,
    }


def _similarity_weights() -> dict[str, float]:
    return {"taste": 0.40, "emotional": 0.30, "context": 0.20, "evolution": 0.10}


def _recommendation_weights() -> dict[str, float]:
    return {
        "taste": 0.35,
        "emotional": 0.25,
        "context": 0.20,
        "collaborative": 0.15,
        "novelty": 0.05,
    }


@dataclass(frozen=True)
class EngineConfig:
    """
    Tunable constants shared by the updater, similarity engine and scorer.

    Defaults reproduce the reference model; a YAML file can override any subset.
    """

    emotional_weights: dict[str, float] = field(default_factory=_emotional_weights)
    learning_rates: dict[str, float] = field(default_factory=_learning_rates)
    matrix_decay: float = 0.95
    context_learning_step: float = 0.1
    neutral_context_weight: float = 0.5
    min_contextual_weight: float = 0.3
    max_confidence_blend: float = 0.1

    similarity_weights: dict[str, float] = field(default_factory=_similarity_weights)
    similarity_threshold: float = 0.90
    min_similarity_confidence: float = 0.70
    similarity_confidence_boost: float = 1.2
    evolution_window: int = 10
    one_sided_evolution_alignment: float = 0.3

    recommendation_weights: dict[str, float] = field(default_factory=_recommendation_weights)
    min_total_score: float = 0.5
    candidate_pool_factor: int = 2
    neutral_collaborative_score: float = 0.5
    taste_excellent_threshold: float = 0.8
    taste_good_threshold: float = 0.6
    emotional_reasoning_threshold: float = 0.7
    context_reasoning_threshold: float = 0.8
    cuisine_match_threshold: int = 85

    accuracy_tolerance: float = 1.5

    def emotion_weight_vector(self) -> list[float]:
        return [self.emotional_weights[name] for name in EMOTION_DIMENSIONS]

    def learning_rate_for(self, maturity: ProfileMaturity) -> float:
        return self.learning_rates.get(maturity.value, self.learning_rates["novice"])


def _load_yaml(path: Path | None, resource_name: str) -> dict[str, Any]:
    if path:
        if not path.exists():
            raise ValueError(f"Config file not found: {path}")
        with path.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}

    try:
        resource = resources.files("palategraph.templates").joinpath(resource_name)
        with resource.open("r", encoding="utf-8") as handle:
            return yaml.safe_load(handle) or {}
    except FileNotFoundError:
        return {}


def config_from_dict(data: dict[str, Any]) -> EngineConfig:
    """
    Overlay a plain mapping on the default configuration.

    Mapping-valued settings are merged key by key, so a file may override a
    single weight without restating the others.

    Raises:
        ValueError: If the mapping holds an unknown setting
    """
    base = EngineConfig()
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown engine settings: {', '.join(unknown)}")

    overrides: dict[str, Any] = {}
    for key, value in data.items():
        current = getattr(base, key)
        if isinstance(current, dict):
            if not isinstance(value, dict):
                raise ValueError(f"Setting '{key}' must be a mapping")
            merged = dict(current)
            merged.update({str(k): float(v) for k, v in value.items()})
            overrides[key] = merged
        elif isinstance(current, int) and not isinstance(current, bool):
            overrides[key] = int(value)
        else:
            overrides[key] = float(value)
    return replace(base, **overrides)


def load_engine_config(path: str | Path | None = None) -> EngineConfig:
    """
    Load engine settings from YAML.

    Args:
        path: Optional YAML file; the packaged engine.yaml is used when omitted

    Returns:
        EngineConfig with file values overlaid on the defaults
    """
    data = _load_yaml(Path(path) if path else None, "engine.yaml")
    if not isinstance(data, dict):
        raise ValueError("Engine config must be a YAML mapping")
    return config_from_dict(data)
