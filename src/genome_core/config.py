"""Configuration file support for genome-core."""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .database.loader import TABLE_NAMES
from .database.models import ClinicalSignificance
from .exceptions import GenomeCoreError
from .format_detection import DEFAULT_SNIFF_BYTES

logger = logging.getLogger(__name__)

DEFAULT_ACTIONABLE = frozenset(
    {ClinicalSignificance.PATHOGENIC, ClinicalSignificance.LIKELY_PATHOGENIC}
)

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

CONFIG_TABLE = "genome_core"


class ConfigValidationError(GenomeCoreError):
    """Raised when configuration validation fails."""

    pass


@dataclass
class AnalysisConfig:
    """Configuration for one analysis run."""

    actionable_significance: frozenset[ClinicalSignificance] = DEFAULT_ACTIONABLE
    match_no_calls: bool = False
    positional_fallback: bool = False
    required_tables: tuple[str, ...] = TABLE_NAMES
    samples: list[str] | None = None
    sniff_bytes: int = DEFAULT_SNIFF_BYTES
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict, repr=False)


def _require_type(config_dict: dict[str, Any], key: str, expected: type) -> None:
    value = config_dict[key]
    if not isinstance(value, expected) or (expected is int and isinstance(value, bool)):
        raise ConfigValidationError(
            f"{key} must be {expected.__name__}, got {type(value).__name__}"
        )


def _require_string_list(config_dict: dict[str, Any], key: str) -> None:
    value = config_dict[key]
    if not isinstance(value, list | tuple | set | frozenset) or not all(
        isinstance(item, str | ClinicalSignificance) for item in value
    ):
        raise ConfigValidationError(f"{key} must be a list of strings")


def validate_config(config_dict: dict[str, Any]) -> None:
    """Validate configuration values.

    Raises:
        ConfigValidationError: If any configuration value is invalid.
    """
    for key in ("match_no_calls", "positional_fallback"):
        if key in config_dict:
            _require_type(config_dict, key, bool)

    if "sniff_bytes" in config_dict:
        _require_type(config_dict, "sniff_bytes", int)
        if config_dict["sniff_bytes"] <= 0:
            raise ConfigValidationError(
                f"sniff_bytes must be positive, got {config_dict['sniff_bytes']}"
            )

    if "actionable_significance" in config_dict:
        _require_string_list(config_dict, "actionable_significance")
        valid = {s.value for s in ClinicalSignificance}
        for item in config_dict["actionable_significance"]:
            value = item.value if isinstance(item, ClinicalSignificance) else item
            if value not in valid:
                raise ConfigValidationError(
                    f"actionable_significance entries must be one of {sorted(valid)}, "
                    f"got '{value}'"
                )

    if "required_tables" in config_dict:
        _require_string_list(config_dict, "required_tables")
        for name in config_dict["required_tables"]:
            if name not in TABLE_NAMES:
                raise ConfigValidationError(
                    f"required_tables entries must be one of {TABLE_NAMES}, got '{name}'"
                )

    if config_dict.get("samples") is not None:
        _require_string_list(config_dict, "samples")
        if not config_dict["samples"]:
            raise ConfigValidationError("samples must not be empty when given")

    if "log_level" in config_dict:
        log_level = config_dict["log_level"]
        if not isinstance(log_level, str):
            raise ConfigValidationError(
                f"log_level must be a string, got {type(log_level).__name__}"
            )
        if log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigValidationError(
                f"log_level must be one of {VALID_LOG_LEVELS}, got '{log_level}'"
            )


def config_from_dict(config_dict: dict[str, Any]) -> AnalysisConfig:
    """Validate a flat settings dict and build an AnalysisConfig."""
    validate_config(config_dict)

    config = AnalysisConfig()
    extra = {}
    for key, value in config_dict.items():
        if key == "actionable_significance":
            config.actionable_significance = frozenset(ClinicalSignificance(v) for v in value)
        elif key == "required_tables":
            config.required_tables = tuple(value)
        elif key == "samples":
            config.samples = list(value) if value is not None else None
        elif key == "log_level":
            config.log_level = value.upper()
        elif key in ("match_no_calls", "positional_fallback", "sniff_bytes"):
            setattr(config, key, value)
        else:
            extra[key] = value

    if extra:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(sorted(extra)))
    config.extra = extra
    return config


def load_config(config_path: Path, overrides: dict[str, Any] | None = None) -> AnalysisConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to the TOML configuration file.
        overrides: Optional dict of values to override loaded config.

    Returns:
        AnalysisConfig instance with loaded values.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ConfigValidationError: If the file is not valid TOML or any value is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {config_path}: {e}") from e

    config_dict = dict(toml_data.get(CONFIG_TABLE, {}))

    if overrides:
        config_dict.update({k: v for k, v in overrides.items() if v is not None})

    return config_from_dict(config_dict)
