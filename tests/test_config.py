"""Tests for engine configuration loading."""

import pytest

from palategraph.core.config import EngineConfig, config_from_dict, load_engine_config
from palategraph.core.models import ProfileMaturity


def test_packaged_defaults_match_dataclass_defaults():
    assert load_engine_config() == EngineConfig()


def test_emotion_weight_vector_follows_emotion_order():
    assert EngineConfig().emotion_weight_vector() == [0.35, 0.25, 0.20, 0.15, 0.05]


def test_learning_rate_lookup():
    config = EngineConfig()
    assert config.learning_rate_for(ProfileMaturity.NOVICE) == 0.8
    assert config.learning_rate_for(ProfileMaturity.EXPERT) == 0.1


def test_yaml_overrides_merge_with_defaults(tmp_path):
    path = tmp_path / "engine.yaml"
    path.write_text(
        "similarity_weights:\n  taste: 0.5\nmin_total_score: 0.6\nevolution_window: 5\n",
        encoding="utf-8",
    )
    config = load_engine_config(path)

    assert config.similarity_weights == {
        "taste": 0.5,
        "emotional": 0.30,
        "context": 0.20,
        "evolution": 0.10,
    }
    assert config.min_total_score == 0.6
    assert config.evolution_window == 5
    assert isinstance(config.evolution_window, int)
    assert config.matrix_decay == 0.95


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_engine_config(path) == EngineConfig()


def test_missing_file_raises(tmp_path):
    with pytest.raises(ValueError):
        load_engine_config(tmp_path / "missing.yaml")


def test_non_mapping_yaml_raises(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_engine_config(path)


def test_unknown_setting_raises():
    with pytest.raises(ValueError, match="learning_rate_multiplier"):
        config_from_dict({"learning_rate_multiplier": 2})


def test_mapping_setting_requires_mapping():
    with pytest.raises(ValueError):
        config_from_dict({"recommendation_weights": 0.5})
