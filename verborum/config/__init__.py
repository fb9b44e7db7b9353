"""Configuration module -- exports Settings and load_config."""

from verborum.config.loader import load_config
from verborum.config.settings import Settings

__all__ = ["Settings", "load_config"]
