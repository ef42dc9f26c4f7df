"""Centralized configuration for salesboard.

Loads configuration from .env file and provides typed access to settings.
A fresh checkout runs with no configuration at all: every setting has a
default matching the business calendar of the sales dashboard.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "ConfigError",
    "Settings",
    "generate_example_env",
    "get_settings",
    "load_env_file",
    "load_settings",
    "parse_bool",
]

ENV_PREFIX = "SALESBOARD_"

_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


@dataclass
class Settings:
    """Centralized settings for salesboard.

    Attributes
    ----------
    utc_offset_hours : int
        Fixed business clock offset from UTC (default: -5, no DST)
    day_start_hour : int
        Local hour at which a business day starts (default: 5)
    weeks_back : int
        Weeks before the current one in the default report range
    verify_summary_totals : bool
        Compare upstream summary totals with their children and log mismatches
    summary_tolerance : float
        Absolute difference tolerated before a mismatch is logged
    log_level : str
        Logging level
    log_dir : Path | None
        Directory for JSONL log files (console only if not set)
    """

    utc_offset_hours: int = -5
    day_start_hour: int = 5
    weeks_back: int = 3

    verify_summary_totals: bool = True
    summary_tolerance: float = 0.01

    # Logging
    log_level: str = "INFO"
    log_dir: Path | None = None

    def __post_init__(self):
        """Validate settings after initialization."""
        if self.log_dir and isinstance(self.log_dir, str):
            self.log_dir = Path(self.log_dir)

        self.log_level = self.log_level.upper()

        if not -12 <= self.utc_offset_hours <= 14:
            raise ConfigError(
                f"SALESBOARD_UTC_OFFSET_HOURS must be between -12 and 14, got {self.utc_offset_hours}"
            )

        if not 0 <= self.day_start_hour <= 23:
            raise ConfigError(f"SALESBOARD_DAY_START_HOUR must be between 0 and 23, got {self.day_start_hour}")

        if self.weeks_back < 0:
            raise ConfigError(f"SALESBOARD_WEEKS_BACK must be >= 0, got {self.weeks_back}")

        if self.summary_tolerance < 0:
            raise ConfigError(f"SALESBOARD_SUMMARY_TOLERANCE must be >= 0, got {self.summary_tolerance}")

        if self.log_level not in _LOG_LEVELS:
            raise ConfigError(
                f"SALESBOARD_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}, got {self.log_level}"
            )

    @classmethod
    def from_env(cls, env_file: Path | str | None = None) -> Settings:
        """Load settings from environment.

        Loads from .env file if present, otherwise from os.environ.

        Parameters
        ----------
        env_file
            Path to .env file (default: .env in current directory)

        Returns
        -------
        Settings
            Loaded settings

        Raises
        ------
        ConfigError
            If settings are invalid
        """
        if env_file is None:
            env_file = Path(".env")

        if isinstance(env_file, str):
            env_file = Path(env_file)

        if env_file.exists():
            load_env_file(env_file)

        try:
            return cls(
                utc_offset_hours=int(os.environ.get("SALESBOARD_UTC_OFFSET_HOURS", "-5")),
                day_start_hour=int(os.environ.get("SALESBOARD_DAY_START_HOUR", "5")),
                weeks_back=int(os.environ.get("SALESBOARD_WEEKS_BACK", "3")),
                verify_summary_totals=parse_bool(os.environ.get("SALESBOARD_VERIFY_SUMMARY_TOTALS", "true")),
                summary_tolerance=float(os.environ.get("SALESBOARD_SUMMARY_TOLERANCE", "0.01")),
                log_level=os.environ.get("SALESBOARD_LOG_LEVEL", "INFO"),
                log_dir=Path(os.environ["SALESBOARD_LOG_DIR"]) if os.environ.get("SALESBOARD_LOG_DIR") else None,
            )

        except ValueError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_env_file(env_file: Path) -> None:
    """Load environment variables from .env file.

    Parameters
    ----------
    env_file
        Path to .env file
    """
    with open(env_file) as f:
        for line in f:
            line = line.strip()

            # Skip comments and empty lines
            if not line or line.startswith("#"):
                continue

            if "=" in line:
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                if (value.startswith('"') and value.endswith('"')) or (value.startswith("'") and value.endswith("'")):
                    value = value[1:-1]

                os.environ[key] = value


def parse_bool(value: str) -> bool:
    """Parse a boolean environment value (true/false, 1/0, yes/no, on/off)."""
    normalized = value.strip().lower()
    if normalized in ("true", "1", "yes", "on"):
        return True
    if normalized in ("false", "0", "no", "off", ""):
        return False
    raise ValueError(f"not a boolean: {value!r}")


# Global settings instance
_settings: Settings | None = None


def load_settings(env_file: Path | str | None = None) -> Settings:
    """Load settings from environment and keep them as the current settings.

    Raises
    ------
    ConfigError
        If settings are invalid
    """
    global _settings
    _settings = Settings.from_env(env_file)
    return _settings


def get_settings() -> Settings:
    """Get current settings.

    Raises
    ------
    ConfigError
        If settings not loaded
    """
    if _settings is None:
        raise ConfigError("Settings not loaded. Call load_settings() first.")
    return _settings


def generate_example_env(output_path: Path | None = None) -> str:
    """Generate example .env file with all settings."""
    example = """# salesboard configuration
# Copy this to .env and adjust values. Every setting is optional.

# ====================
# Business calendar
# ====================

# Fixed offset of the business clock from UTC (no DST)
SALESBOARD_UTC_OFFSET_HOURS=-5

# Local hour at which a business day starts
SALESBOARD_DAY_START_HOUR=5

# Weeks before the current one in the default report range
SALESBOARD_WEEKS_BACK=3

# ====================
# Aggregation
# ====================

# Compare upstream city totals with their points of sale and log mismatches
SALESBOARD_VERIFY_SUMMARY_TOTALS=true

# Absolute difference tolerated before a mismatch is logged
SALESBOARD_SUMMARY_TOLERANCE=0.01

# ====================
# Logging
# ====================

# Options: TRACE, DEBUG, INFO, SUCCESS, WARNING, ERROR, CRITICAL
SALESBOARD_LOG_LEVEL=INFO

# Directory for JSONL logs (optional, console only if not set)
# SALESBOARD_LOG_DIR=logs
"""

    if output_path:
        output_path.write_text(example)

    return example
