"""Configuration module."""

from deputy.config.schema import Config
from deputy.config.loader import load_config, save_default_config

__all__ = ["Config", "load_config", "save_default_config"]
