#!/usr/bin/env python3
"""Main CLI module for salesboard."""

import sys

import click

from ..config.settings import ConfigError, load_settings
from ..observability.loguru_config import configure_loguru
from .cli_common import ExitCode, echo_error
from .report import aggregate_command, compare_command, weeks_command

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
EPILOG = """
Examples:
  salesboard weeks                          # Current business week filter
  salesboard weeks --now 2025-01-01T03:00:00Z --json
  salesboard aggregate top_skus.json        # Table with grand totals
  salesboard aggregate report.json --format yaml --variations
  salesboard compare yearly.json --manual 2023=1500.5
""".strip()


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="salesboard - weekly report aggregation for the sales dashboard",
    epilog=EPILOG,
)
@click.option("--env-file", type=click.Path(dir_okay=False), default=None, help="Path to .env file")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, env_file: str | None, verbose: bool) -> None:
    """Root CLI command."""
    try:
        settings = load_settings(env_file)
    except ConfigError as exc:
        echo_error(f"Configuration error: {exc}")
        ctx.exit(ExitCode.CONFIG_ERROR)

    configure_loguru(
        log_dir=settings.log_dir,
        level="DEBUG" if verbose else settings.log_level,
    )
    ctx.obj = settings


cli.add_command(weeks_command, "weeks")
cli.add_command(aggregate_command, "aggregate")
cli.add_command(compare_command, "compare")


def main(args: list[str] | None = None) -> int:
    """Main CLI entry point."""

    try:
        normalized_args = list(args) if args is not None else None
        result = cli.main(args=normalized_args, prog_name="salesboard", standalone_mode=False)
    except click.FileError as exc:
        exc.show()
        return ExitCode.IO_ERROR
    except click.ClickException as exc:
        exc.show()
        return ExitCode.VALIDATION_ERROR
    except click.Abort:
        return ExitCode.UNKNOWN_ERROR
    except SystemExit as exc:  # pragma: no cover - click normalizes exit codes
        return int(exc.code) if exc.code is not None else 0

    return int(result) if result is not None else ExitCode.SUCCESS


if __name__ == "__main__":  # pragma: no cover - executable module
    sys.exit(main())
