"""Configuration management module."""

from .settings import PikupSettings, get_settings, reset_settings

__all__ = ["PikupSettings", "get_settings", "reset_settings"]
