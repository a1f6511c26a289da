"""
Engine configuration loaded from YAML.

The packaged defaults live in config/engine.yaml. A missing file falls back
to the model defaults; a malformed one is an error.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from symbolic_math_engine.core.errors import InvalidConfigurationError
from symbolic_math_engine.models.parameters import AngleMeasurement

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "engine.yaml"


class EngineConfig(BaseModel):
    """Settings shared by the analyzers and the engine facade."""

    default_variable: str = "x"
    angle_measurement: AngleMeasurement = AngleMeasurement.RADIAN
    max_recursion_depth: int = Field(default=256, ge=1)
    integration_method: str = Field(default="simpson", pattern="^(simpson|rectangle)$")
    log_level: str = "WARNING"

    model_config = ConfigDict(extra="forbid")


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Load engine settings from a YAML file.

    Args:
        path: YAML file to read. Defaults to the packaged engine.yaml.

    Returns:
        EngineConfig: Parsed settings, or defaults if the file does not exist.

    Raises:
        InvalidConfigurationError: If the file is not valid YAML or holds invalid values.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return EngineConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidConfigurationError(f"Failed to parse {config_path}: {e}") from e

    if not raw:
        logger.warning(f"Empty config file {config_path}, using defaults")
        return EngineConfig()

    if not isinstance(raw, dict):
        raise InvalidConfigurationError(f"Config in {config_path} must be a mapping")

    try:
        config = EngineConfig(**raw)
    except ValidationError as e:
        raise InvalidConfigurationError(f"Invalid settings in {config_path}: {e}") from e

    logger.info(f"Loaded engine config from {config_path}")
    return config


__all__ = ["EngineConfig", "load_config", "DEFAULT_CONFIG_PATH"]
