"""Configuration system."""

from repoflow.config.loader import load_config
from repoflow.config.schema import AppConfig

__all__ = ["AppConfig", "load_config"]
