"""Configuration loading (YAML validated with JSON schema)."""

from .loader import ConfigError, DatabaseConfig, ImportConfig, load_config

__all__ = [
    "ConfigError",
    "DatabaseConfig",
    "ImportConfig",
    "load_config",
]
