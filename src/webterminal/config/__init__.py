"""Configuration management for webterminal.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides with the ``WEBTERMINAL_``
prefix.
"""

from webterminal.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
