"""Configuration for promptgen."""

from promptgen.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
