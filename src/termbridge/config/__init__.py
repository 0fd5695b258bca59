"""Configuration management for termbridge.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for deployment-specific values
like the endpoint whitelist and the project root.
"""

from termbridge.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
