"""
Configuration management for csftracker.

This module handles loading, validating, and saving configuration settings.
"""

from csftracker.config.settings import (
    DEFAULT_CONFIG_DIR,
    AnalysisConfig,
    ConfigurationError,
    ProjectionConfig,
    ReportingConfig,
    Settings,
    get_config_path,
    load_config,
    save_config,
)

__all__ = [
    "Settings",
    "ProjectionConfig",
    "AnalysisConfig",
    "ReportingConfig",
    "DEFAULT_CONFIG_DIR",
    "get_config_path",
    "load_config",
    "save_config",
    "ConfigurationError",
]
