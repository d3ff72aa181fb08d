"""Configuration loaded from the environment."""

from .config import Settings, load_config, validate_config

__all__ = ["Settings", "load_config", "validate_config"]
