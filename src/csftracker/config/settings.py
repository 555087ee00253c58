"""
Configuration settings management for csftracker.

This module handles loading, validating, and saving configuration settings
from YAML files with support for environment variable overrides.

Configuration is loaded from ~/.csftracker/config.yaml by default, with the
path overridable via the CSFTRACKER_CONFIG environment variable.
"""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".csftracker"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"

# Allowed projection horizon in months
MIN_HORIZON_MONTHS = 8
MAX_HORIZON_MONTHS = 12


@dataclass
class ProjectionConfig:
    """Constants of the gap-closure and burn-down projections."""

    closure_rate: float = 0.15
    target_rate: float = 0.2
    horizon_months: int = 8
    burn_down_rate: float = 0.08
    burn_down_target_rate: float = 0.1


@dataclass
class AnalysisConfig:
    """Aggregation settings."""

    domain_ranking_limit: int = 5


@dataclass
class ReportingConfig:
    """Reporting settings."""

    organization_name: str = ""
    output_dir: str = str(DEFAULT_CONFIG_DIR / "reports")


@dataclass
class Settings:
    """
    Complete csftracker configuration settings.

    Settings are loaded from a YAML configuration file and can be overridden
    by environment variables prefixed with CSFTRACKER_.

    Attributes:
        data_dir: Directory holding the controls.db database.
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR).
        projections: Projection constants.
        analysis: Aggregation settings.
        reporting: Report generation settings.
    """

    data_dir: str = str(DEFAULT_CONFIG_DIR / "data")
    log_level: str = "INFO"

    projections: ProjectionConfig = field(default_factory=ProjectionConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def get_config_path() -> Path:
    """
    Get the configuration file path.

    Returns the path from CSFTRACKER_CONFIG environment variable if set,
    otherwise returns the default path (~/.csftracker/config.yaml).

    Returns:
        Path to the configuration file.
    """
    env_path = os.environ.get("CSFTRACKER_CONFIG")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def load_config(config_path: Path | None = None) -> Settings:
    """
    Load configuration from YAML file.

    Reads configuration from the specified path (or default if not provided),
    applies environment variable overrides, and validates the configuration.

    Args:
        config_path: Optional path to configuration file. If not provided,
                    uses CSFTRACKER_CONFIG environment variable or default path.

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If the configuration file cannot be read or
                          contains invalid settings.
    """
    if config_path is None:
        config_path = get_config_path()

    settings = Settings()

    if config_path.exists():
        try:
            with open(config_path) as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError("Config file must contain a YAML mapping")

        settings = _apply_config_data(settings, config_data)

    settings = _apply_environment_overrides(settings)

    _validate_config(settings)

    return settings


def save_config(settings: Settings, config_path: Path | None = None) -> None:
    """
    Save configuration to YAML file.

    Args:
        settings: Settings instance to save.
        config_path: Optional path to configuration file.

    Raises:
        ConfigurationError: If the configuration cannot be written.
    """
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_data = _settings_to_dict(settings)

    try:
        with open(config_path, "w") as f:
            yaml.safe_dump(config_data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ConfigurationError(f"Cannot write config file: {e}") from e


def _convert(section: str, key: str, value: Any, converter: Callable[[Any], Any]) -> Any:
    try:
        return converter(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {section}.{key}: {value!r}") from e


def _apply_config_data(settings: Settings, data: dict[str, Any]) -> Settings:
    """Apply configuration data from parsed YAML to settings."""
    tracker_data = data.get("csftracker") or {}

    if "data_dir" in tracker_data:
        settings.data_dir = str(tracker_data["data_dir"])
    if "log_level" in tracker_data:
        settings.log_level = str(tracker_data["log_level"]).upper()

    projections = data.get("projections") or {}
    for key, converter in (
        ("closure_rate", float),
        ("target_rate", float),
        ("horizon_months", int),
        ("burn_down_rate", float),
        ("burn_down_target_rate", float),
    ):
        if key in projections:
            value = _convert("projections", key, projections[key], converter)
            setattr(settings.projections, key, value)

    analysis = data.get("analysis") or {}
    if "domain_ranking_limit" in analysis:
        settings.analysis.domain_ranking_limit = _convert(
            "analysis", "domain_ranking_limit", analysis["domain_ranking_limit"], int
        )

    reporting = data.get("reporting") or {}
    if "organization_name" in reporting:
        settings.reporting.organization_name = str(reporting["organization_name"] or "")
    if "output_dir" in reporting:
        settings.reporting.output_dir = str(reporting["output_dir"])

    return settings


def _apply_environment_overrides(settings: Settings) -> Settings:
    """Apply environment variable overrides to settings."""
    env_map: dict[str, tuple[str, Callable[[str], Any]]] = {
        "CSFTRACKER_DATA_DIR": ("data_dir", str),
        "CSFTRACKER_LOG_LEVEL": ("log_level", lambda x: x.upper()),
        "CSFTRACKER_CLOSURE_RATE": ("projections.closure_rate", float),
        "CSFTRACKER_HORIZON_MONTHS": ("projections.horizon_months", int),
        "CSFTRACKER_ORGANIZATION": ("reporting.organization_name", str),
    }

    for env_var, (attr_path, converter) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            try:
                converted = converter(value)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {env_var}: {value!r}") from e
            _set_nested_attr(settings, attr_path, converted)

    return settings


def _set_nested_attr(obj: Any, path: str, value: Any) -> None:
    """Set a nested attribute on an object using dot notation."""
    parts = path.split(".")
    for part in parts[:-1]:
        obj = getattr(obj, part)
    setattr(obj, parts[-1], value)


def _validate_config(settings: Settings) -> None:
    """
    Validate configuration settings.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if settings.log_level not in valid_log_levels:
        raise ConfigurationError(
            f"Invalid log_level: {settings.log_level}. "
            f"Must be one of: {', '.join(sorted(valid_log_levels))}"
        )

    projections = settings.projections
    for name in ("closure_rate", "target_rate", "burn_down_rate", "burn_down_target_rate"):
        rate = getattr(projections, name)
        if not 0 <= rate <= 1:
            raise ConfigurationError(f"{name} must be between 0 and 1, got {rate}")

    if not MIN_HORIZON_MONTHS <= projections.horizon_months <= MAX_HORIZON_MONTHS:
        raise ConfigurationError(
            f"horizon_months must be between {MIN_HORIZON_MONTHS} and "
            f"{MAX_HORIZON_MONTHS}, got {projections.horizon_months}"
        )

    if settings.analysis.domain_ranking_limit < 1:
        raise ConfigurationError("domain_ranking_limit must be at least 1")


def _settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Convert Settings instance to dictionary for YAML serialization."""
    return {
        "csftracker": {
            "data_dir": settings.data_dir,
            "log_level": settings.log_level,
        },
        "projections": {
            "closure_rate": settings.projections.closure_rate,
            "target_rate": settings.projections.target_rate,
            "horizon_months": settings.projections.horizon_months,
            "burn_down_rate": settings.projections.burn_down_rate,
            "burn_down_target_rate": settings.projections.burn_down_target_rate,
        },
        "analysis": {
            "domain_ranking_limit": settings.analysis.domain_ranking_limit,
        },
        "reporting": {
            "organization_name": settings.reporting.organization_name,
            "output_dir": settings.reporting.output_dir,
        },
    }
