"""Configuration layer — settings, config discovery, logging setup."""

from cqrskit.config.settings import CqrsSettings, get_settings, reset_settings

__all__ = ["CqrsSettings", "get_settings", "reset_settings"]
