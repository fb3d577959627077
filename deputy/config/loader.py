"""Configuration loader for deputy."""

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from deputy.config.schema import Config
from deputy.core.errors import ConfigReadError, InvalidConfigError

DEFAULT_CONFIG_DIR = Path.home() / ".deputy"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file and environment variables.

    Priority: config file > environment variables (DEPUTY_*) > defaults.

    Args:
        config_path: Optional path to config file. Defaults to ~/.deputy/config.json.

    Returns:
        Loaded configuration.

    Raises:
        ConfigReadError: If the file exists but cannot be read.
        InvalidConfigError: If the file is not valid JSON or violates the schema.
    """
    path = config_path or DEFAULT_CONFIG_FILE

    if not path.exists():
        try:
            return Config()
        except ValidationError as e:
            raise InvalidConfigError(f"environment: {e}") from e

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigReadError(f"{path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidConfigError(f"{path} must contain a JSON object")

    try:
        config = Config(**data)
    except ValidationError as e:
        raise InvalidConfigError(f"{path}: {e}") from e

    logger.debug(f"Config loaded from {path}")
    return config


def save_default_config(config_path: Path | None = None) -> Path:
    """
    Save default configuration to file.

    Args:
        config_path: Optional path to save config. Defaults to ~/.deputy/config.json.

    Returns:
        Path where config was saved.
    """
    path = config_path or DEFAULT_CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    data = Config().model_dump(mode="json")
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    logger.info(f"Default config saved to {path}")
    return path
