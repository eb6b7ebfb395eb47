"""JSONL record codecs for experiences, profiles, candidates and scores."""

from __future__ import annotations

import json
from dataclasses import fields, is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from dateutil import parser as date_parser

from palategraph.core.models import (
    CandidateItem,
    Context,
    EmotionalResponse,
    EmotionMatrix,
    EvolutionType,
    FoodExperience,
    PalateEvolution,
    PalateVector,
    RecommendationScore,
    UserPalateProfile,
    UserSimilarity,
)


def read_jsonl(path: str | Path) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    with Path(path).open("r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as exc:
                raise ValueError(f"{path}:{line_no}: invalid JSON: {exc}") from exc
    return records


def write_jsonl(path: str | Path, records: list[dict[str, Any]]) -> None:
    path = Path(path)
    with path.open("w", encoding="utf-8") as handle:
        for record in records:
            handle.write(json.dumps(record, ensure_ascii=False) + "\n")


def dataclass_to_dict(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, EmotionMatrix):
        return obj.to_rows()
    if isinstance(obj, Context):
        return obj.to_dict()
    if is_dataclass(obj) and not isinstance(obj, type):
        return {item.name: dataclass_to_dict(getattr(obj, item.name)) for item in fields(obj)}
    if isinstance(obj, (list, tuple)):
        return [dataclass_to_dict(value) for value in obj]
    if isinstance(obj, dict):
        return {key: dataclass_to_dict(value) for key, value in obj.items()}
    return obj


def profile_to_dict(profile: UserPalateProfile) -> dict[str, Any]:
    data = dataclass_to_dict(profile)
    data["profile_maturity"] = profile.profile_maturity.value
    return data


def _require(data: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    raise ValueError(f"Record is missing required field '{keys[0]}'")


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return date_parser.isoparse(str(value))
    except (ValueError, TypeError):
        return None


def parse_palate_vector(value: Any) -> PalateVector:
    if isinstance(value, PalateVector):
        return value
    if isinstance(value, dict):
        return PalateVector.from_mapping(value)
    if isinstance(value, (list, tuple)):
        return PalateVector.from_sequence([float(v) for v in value])
    raise ValueError(f"Unsupported palate vector payload: {value!r}")


def parse_emotional_response(data: dict[str, Any] | None) -> EmotionalResponse:
    data = data or {}
    known = {item.name for item in fields(EmotionalResponse)}
    return EmotionalResponse(**{key: float(value) for key, value in data.items() if key in known})


def parse_food_experience(data: dict[str, Any]) -> FoodExperience:
    return FoodExperience(
        experience_id=_require(data, "experience_id", "id"),
        user_id=_require(data, "user_id"),
        palate_vector=parse_palate_vector(data.get("palate_vector") or {}),
        emotional_response=parse_emotional_response(data.get("emotional_response")),
        food_item=data.get("food_item", ""),
        cuisine=data.get("cuisine", "") or data.get("cuisine_type", ""),
        context=Context.from_mapping(data.get("context")),
        timestamp=_parse_datetime(data.get("timestamp")),
        confidence=float(data.get("confidence", 1.0)),
    )


def parse_candidate(data: dict[str, Any]) -> CandidateItem:
    return CandidateItem(
        item_id=_require(data, "item_id", "experience_id", "id"),
        palate_vector=parse_palate_vector(data.get("palate_vector") or {}),
        food_item=data.get("food_item", ""),
        cuisine=data.get("cuisine", "") or data.get("cuisine_type", ""),
        context=Context.from_mapping(data.get("context")),
        category=data.get("category"),
    )


def parse_evolution(data: dict[str, Any]) -> PalateEvolution:
    return PalateEvolution(
        timestamp=_parse_datetime(data.get("timestamp")),
        vector_change=tuple(float(v) for v in data.get("vector_change", []) or []),
        trigger_experience=data.get("trigger_experience", ""),
        change_magnitude=float(data.get("change_magnitude", 0.0)),
        evolution_type=EvolutionType(data.get("evolution_type", EvolutionType.GRADUAL.value)),
    )


def parse_profile(data: dict[str, Any]) -> UserPalateProfile:
    matrix_rows = data.get("emotional_preference_matrix")
    return UserPalateProfile(
        user_id=_require(data, "user_id"),
        palate_vector=parse_palate_vector(data.get("palate_vector") or {}),
        emotional_preference_matrix=(
            EmotionMatrix(matrix_rows) if matrix_rows is not None else EmotionMatrix.neutral()
        ),
        context_weights={
            str(key): float(value) for key, value in (data.get("context_weights") or {}).items()
        },
        evolution_history=tuple(
            parse_evolution(entry) for entry in data.get("evolution_history", []) or []
        ),
        confidence_score=float(data.get("confidence_score", 0.0)),
        total_experiences=int(data.get("total_experiences", 0)),
        last_updated=_parse_datetime(data.get("last_updated")),
    )


def parse_similarity(data: dict[str, Any]) -> UserSimilarity:
    return UserSimilarity(
        user_a=_require(data, "user_a"),
        user_b=_require(data, "user_b"),
        similarity_score=float(data.get("similarity_score", 0.0)),
        taste_alignment=float(data.get("taste_alignment", 0.0)),
        emotional_alignment=float(data.get("emotional_alignment", 0.0)),
        context_alignment=float(data.get("context_alignment", 0.0)),
        evolution_alignment=float(data.get("evolution_alignment", 0.0)),
        confidence=float(data.get("confidence", 0.0)),
    )


def parse_recommendation(data: dict[str, Any]) -> RecommendationScore:
    return RecommendationScore(
        item_id=_require(data, "item_id"),
        user_id=data.get("user_id", ""),
        total_score=float(data.get("total_score", 0.0)),
        taste_score=float(data.get("taste_score", 0.0)),
        emotional_score=float(data.get("emotional_score", 0.0)),
        context_score=float(data.get("context_score", 0.0)),
        collaborative_score=float(data.get("collaborative_score", 0.0)),
        novelty_score=float(data.get("novelty_score", 0.0)),
        confidence=float(data.get("confidence", 0.0)),
        reasoning=data.get("reasoning", ""),
        category=data.get("category"),
    )
