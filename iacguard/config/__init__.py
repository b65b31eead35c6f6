"""Configuration module for iacguard."""

from iacguard.config.loader import get_config_path, load_config
from iacguard.config.schema import Config

__all__ = ["Config", "load_config", "get_config_path"]
