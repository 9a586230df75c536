"""Configuration module for frontdesk."""

from frontdesk.config.loader import get_config_path, load_config, save_config
from frontdesk.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
