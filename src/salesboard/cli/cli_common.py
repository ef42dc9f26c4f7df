"""Common CLI utilities: stable exit codes and output rendering."""

from __future__ import annotations

import json
from enum import IntEnum
from typing import Any

import click
import yaml

__all__ = [
    "OUTPUT_FORMATS",
    "ExitCode",
    "echo_error",
    "render_output",
]

OUTPUT_FORMATS = ("json", "yaml")


class ExitCode(IntEnum):
    """Stable exit codes for CLI commands."""

    SUCCESS = 0  # Successful execution
    VALIDATION_ERROR = 2  # Bad arguments or unreadable payload
    IO_ERROR = 5  # File could not be read
    CONFIG_ERROR = 6  # Configuration error
    UNKNOWN_ERROR = 7  # Unknown/unexpected error


def render_output(data: Any, fmt: str = "json") -> str:
    """Serialize command output as JSON or YAML.

    Args:
        data: JSON-compatible result data
        fmt: "json" or "yaml"
    """
    if fmt == "yaml":
        return yaml.safe_dump(data, allow_unicode=True, sort_keys=False).rstrip("\n")
    return json.dumps(data, ensure_ascii=False, indent=2)


def echo_error(message: str) -> None:
    """Print an error message on stderr."""
    click.echo(f"❌ {message}", err=True)
