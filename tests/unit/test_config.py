# tests/unit/test_config.py
"""Unit tests for config schema validation and YAML loading."""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from pydantic import ValidationError

from windspire_console.config.loader import get_db_path, load_config
from windspire_console.config.schema import GenerationConfig, WindspireConfig
from windspire_console.models.content import Difficulty


def test_defaults():
    config = WindspireConfig()
    assert config.service.base_url == "http://localhost:3000/api"
    assert config.generation.max_attempts == 3
    assert config.generation.difficulty is Difficulty.BEGINNER
    assert config.duplicates.title_threshold == 0.8
    assert config.output.verbosity == "normal"


def test_unknown_keys_ignored():
    config = WindspireConfig(**{"service": {"base_url": "http://x", "legacy": 1}, "extra": True})
    assert config.service.base_url == "http://x"


@pytest.mark.parametrize("count", [0, 51])
def test_default_count_bounds(count):
    with pytest.raises(ValidationError):
        GenerationConfig(default_count=count)


def test_load_creates_default_file(tmp_path: Path):
    path = tmp_path / "nested" / "config.yaml"

    config = load_config(path)

    assert path.exists()
    assert config == WindspireConfig()
    written = yaml.safe_load(path.read_text())
    assert written["generation"]["pacing_floor"] == 2.0


def test_load_existing_file(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "service": {"api_token": "tok", "default_model": "gpt-4o"},
                "generation": {"default_count": 10, "difficulty": "advanced"},
                "output": {"verbosity": "quiet"},
            }
        )
    )

    config = load_config(path)

    assert config.service.api_token == "tok"
    assert config.generation.default_count == 10
    assert config.generation.difficulty is Difficulty.ADVANCED
    assert config.output.verbosity == "quiet"


def test_load_empty_file(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(path) == WindspireConfig()


def test_db_path_override(tmp_path: Path):
    config = WindspireConfig(storage={"db_path": str(tmp_path / "state.db")})
    assert get_db_path(config) == tmp_path / "state.db"


def test_db_path_default_in_config_dir(tmp_path: Path):
    with patch("windspire_console.config.loader.user_config_path", return_value=tmp_path):
        assert get_db_path(WindspireConfig()) == tmp_path / "console.db"
