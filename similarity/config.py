"""
Detection settings.

Settings come from, lowest priority first:
    1. Defaults (DetectionConfig)
    2. YAML file (explicit path or $PLAGIARISM_CONFIG), top level or
       under a 'plagiarism:' section like the course configs
    3. Environment: PLAGIARISM_THRESHOLD, PLAGIARISM_MODE
    4. Keyword overrides passed to load_config
"""
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .exceptions import ConfigError
from .scorer import ScoringMode

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PLAGIARISM_CONFIG"
CONFIG_SECTION = "plagiarism"

# Short YAML spellings used in course files
KEY_ALIASES = {
    "max_matches": "max_matching_lines_per_pair",
    "max_files": "max_files_per_run",
}

ENV_OVERRIDES = {
    "PLAGIARISM_THRESHOLD": "threshold",
    "PLAGIARISM_MODE": "mode",
}


class DetectionConfig(BaseModel):
    # Reporting
    threshold: float = 0.5                       # Minimum score to report, 0..1
    risk_high: float = 0.8                       # Score above -> high risk
    risk_medium: float = 0.5                     # Score at or above -> medium risk

    # Normalization
    normalize_identifiers: bool = True
    min_code_length: int = Field(default=10, ge=0)        # Raw code chars
    min_normalized_length: int = Field(default=5, ge=0)   # Normalized chars

    # Scoring; None = choose by batch size
    mode: Optional[ScoringMode] = None
    fast_mode_min_files: int = Field(default=30, ge=2)

    # Limits
    max_files_per_run: int = Field(default=50, ge=1)
    max_matching_lines_per_pair: int = Field(default=30, ge=0)
    batch_size: int = Field(default=10, ge=1)     # Files read concurrently per group

    @field_validator("threshold", "risk_high", "risk_medium", mode="before")
    @classmethod
    def _percent_to_fraction(cls, value: Any) -> Any:
        """Accept 30 as well as 0.3."""
        if isinstance(value, str):
            value = float(value)
        if isinstance(value, (int, float)) and value > 1:
            return value / 100
        return value

    @field_validator("threshold", "risk_high", "risk_medium")
    @classmethod
    def _check_fraction(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("must be between 0 and 1 (or 0 and 100 percent)")
        return value

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if value in ("", "auto"):
                return None
        return value

    @model_validator(mode="after")
    def _check_bands(self) -> "DetectionConfig":
        if self.risk_medium > self.risk_high:
            raise ValueError("risk_medium must not exceed risk_high")
        return self

    def resolve_mode(self, valid_files: int) -> ScoringMode:
        """
        Pick the scoring mode for a run.

        Args:
            valid_files: Number of files that survived validation

        Returns:
            Configured mode, or FAST for large batches and THOROUGH otherwise
        """
        if self.mode is not None:
            return self.mode
        if valid_files >= self.fast_mode_min_files:
            return ScoringMode.FAST
        return ScoringMode.THOROUGH


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    result = {}
    for key, value in data.items():
        name = str(key).strip().replace("-", "_")
        result[KEY_ALIASES.get(name, name)] = value
    return result


def read_config_file(path: str | Path) -> dict[str, Any]:
    """
    Read detection settings from a YAML file.

    Args:
        path: YAML file path

    Returns:
        Settings dict with underscore keys

    Raises:
        ConfigError: If the file is missing or not a mapping
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    section = data.get(CONFIG_SECTION, data)
    if not isinstance(section, dict):
        raise ConfigError(f"'{CONFIG_SECTION}' section in {path} must be a mapping")

    return _normalize_keys(section)


def build_config(**settings: Any) -> DetectionConfig:
    """
    Validate settings into a DetectionConfig.

    Raises:
        ConfigError: If any value is invalid
    """
    try:
        return DetectionConfig(**_normalize_keys(settings))
    except ValidationError as e:
        raise ConfigError(f"Invalid detection config: {e}") from e


def load_config(path: str | Path | None = None, **overrides: Any) -> DetectionConfig:
    """
    Load detection config from file, environment and overrides.

    Args:
        path: YAML file; defaults to $PLAGIARISM_CONFIG when set
        **overrides: Highest-priority values; None values are ignored

    Returns:
        Validated DetectionConfig

    Raises:
        ConfigError: If the file or any value is invalid
    """
    load_dotenv()

    settings: dict[str, Any] = {}

    config_path = path or os.getenv(CONFIG_ENV_VAR)
    if config_path:
        settings.update(read_config_file(config_path))
        logger.info(f"Loaded detection config from {config_path}")

    for env_name, key in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            settings[key] = value

    settings.update(_normalize_keys({k: v for k, v in overrides.items() if v is not None}))
    return build_config(**settings)
