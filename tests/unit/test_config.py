"""Unit tests for YAML configuration loading."""

import pytest

from symbolic_math_engine.core.config import DEFAULT_CONFIG_PATH, EngineConfig, load_config
from symbolic_math_engine.core.errors import InvalidConfigurationError
from symbolic_math_engine.models.parameters import AngleMeasurement


@pytest.fixture
def config_file(tmp_path):
    """Return a writer for a temporary config file."""

    def write(content):
        path = tmp_path / "engine.yaml"
        path.write_text(content)
        return path

    return write


def test_defaults():
    """Model defaults match the packaged file."""
    config = EngineConfig()
    assert config.default_variable == "x"
    assert config.angle_measurement == AngleMeasurement.RADIAN
    assert config.max_recursion_depth == 256
    assert config.integration_method == "simpson"


def test_packaged_config():
    """The bundled engine.yaml loads cleanly."""
    assert DEFAULT_CONFIG_PATH.exists()
    assert load_config() == EngineConfig()


def test_valid_file(config_file):
    """Values from the file override the defaults."""
    path = config_file(
        """
default_variable: t
angle_measurement: degree
max_recursion_depth: 64
integration_method: rectangle
"""
    )
    config = load_config(path)
    assert config.default_variable == "t"
    assert config.angle_measurement == AngleMeasurement.DEGREE
    assert config.max_recursion_depth == 64
    assert config.integration_method == "rectangle"


def test_partial_file(config_file):
    """Unspecified keys keep their defaults."""
    config = load_config(str(config_file("angle_measurement: gradian\n")))
    assert config.angle_measurement == AngleMeasurement.GRADIAN
    assert config.default_variable == "x"


def test_missing_file(tmp_path, caplog):
    """A missing file falls back to defaults with a warning."""
    config = load_config(tmp_path / "missing.yaml")
    assert config == EngineConfig()
    assert "Config file not found" in caplog.text


def test_empty_file(config_file):
    """An empty file means defaults."""
    assert load_config(config_file("")) == EngineConfig()


@pytest.mark.parametrize(
    "content, message",
    [
        ("angle_measurement: [unclosed\n", "Failed to parse"),
        ("- just\n- a list\n", "must be a mapping"),
        ("max_recursion_depth: 0\n", "Invalid settings"),
        ("integration_method: trapezoid\n", "Invalid settings"),
        ("angle_measurement: turns\n", "Invalid settings"),
        ("unknown_key: 1\n", "Invalid settings"),
    ],
)
def test_invalid_files(config_file, content, message):
    """Malformed files raise InvalidConfigurationError."""
    with pytest.raises(InvalidConfigurationError) as exc:
        load_config(config_file(content))
    assert message in str(exc.value)
