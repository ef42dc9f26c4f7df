"""Report commands: default week filters, tree aggregation and yearly comparison."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import click

from ..config.settings import Settings
from ..core.time import (
    default_trailing_week_range,
    report_weekday,
    resolve_business_day,
    to_utc_datetime,
)
from ..observability.loguru_config import get_logger
from ..rollups.aggregator import AggregationResult, aggregate, has_categories
from ..rollups.comparison import yearly_comparison
from ..rollups.time_windows import compute_range_boundaries_utc, iter_week_keys
from ..rollups.variation import period_over_period
from .cli_common import OUTPUT_FORMATS, ExitCode, echo_error, render_output

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

log = get_logger("cli")


def _settings(ctx: click.Context) -> Settings:
    settings = ctx.find_object(Settings)
    return settings if settings is not None else Settings()


def _load_payload(source) -> Any:
    try:
        return json.load(source)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON ({exc})", param_hint="FILE") from exc


def format_value(value: float | None) -> str:
    """Format a table cell; missing values render as '-'."""
    if value is None:
        return "-"
    return f"{value:,.2f}"


def render_table(result: AggregationResult) -> str:
    """Render an aggregation as a plain text table with indented hierarchy."""
    headers = ["", *(key.upper() for key in result.period_keys), "TOTAL"]
    lines = []

    for row in result.rows:
        label = "  " * row.depth + (row.label if row.is_leaf else row.label.upper())
        cells = [format_value(row.period_values[key]) for key in result.period_keys]
        total = format_value(row.total) if row.total is not None else ""
        if row.kind == "header":
            cells = ["" for _ in result.period_keys]
        lines.append([label, *cells, total])

    grand = result.grand_total
    lines.append(["TOTAL GENERAL", *(format_value(grand.get(key)) for key in result.period_keys), format_value(grand.total)])

    widths = [max(len(str(line[i])) for line in [headers, *lines]) for i in range(len(headers))]

    def _fmt(line: list[str]) -> str:
        first = str(line[0]).ljust(widths[0])
        rest = [str(cell).rjust(width) for cell, width in zip(line[1:], widths[1:])]
        return "  ".join([first, *rest]).rstrip()

    separator = "  ".join("-" * width for width in widths)
    return "\n".join([_fmt(headers), separator, *(_fmt(line) for line in lines[:-1]), separator, _fmt(lines[-1])])


@click.command("weeks", context_settings=CONTEXT_SETTINGS, help="Show the default week filter of weekly reports")
@click.option("--now", "now_value", type=str, default=None, help="Current time (ISO-8601 or epoch ms, default: now)")
@click.option("--weeks-back", type=click.IntRange(min=0), default=None, help="Weeks before the current one")
@click.option("--json", "json_output", is_flag=True, help="JSON output")
@click.pass_context
def weeks_command(ctx: click.Context, now_value: str | None, weeks_back: int | None, json_output: bool) -> int:
    """Show the current business week range."""
    settings = _settings(ctx)

    if now_value is None:
        now: Any = datetime.now(timezone.utc)
    elif now_value.lstrip("-").isdigit():
        now = int(now_value)
    else:
        now = now_value

    try:
        now_utc = to_utc_datetime(now)
    except (ValueError, OverflowError, OSError) as exc:
        echo_error(str(exc))
        return ExitCode.VALIDATION_ERROR

    weeks_back = settings.weeks_back if weeks_back is None else weeks_back
    week_range = default_trailing_week_range(now_utc, weeks_back, settings.utc_offset_hours, settings.day_start_hour)
    start_utc, end_utc = compute_range_boundaries_utc(week_range, settings.utc_offset_hours, settings.day_start_hour)
    business_day = resolve_business_day(now_utc, settings.utc_offset_hours, settings.day_start_hour)

    data = {
        **week_range.to_dict(),
        "business_day": business_day.isoformat(),
        "weekday": report_weekday(now_utc, settings.utc_offset_hours, settings.day_start_hour),
        "weeks": [f"{key.year}-{key.period_key}" for key in iter_week_keys(week_range)],
        "start_utc": start_utc,
        "end_utc": end_utc,
    }
    log.debug("Resolved default week range", **week_range.to_dict())

    if json_output:
        click.echo(render_output(data))
        return ExitCode.SUCCESS

    click.echo(f"📅 Business day: {data['business_day']} (weekday {data['weekday']})")
    click.echo(
        f"   Weeks: W{week_range.start_week}/{week_range.start_year} - W{week_range.end_week}/{week_range.end_year}"
    )
    click.echo(f"   UTC window: {start_utc} -> {end_utc}")
    return ExitCode.SUCCESS


@click.command("aggregate", context_settings=CONTEXT_SETTINGS, help="Aggregate a saved weekly report payload")
@click.argument("source", metavar="FILE", type=click.File("r", encoding="utf-8"))
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", *OUTPUT_FORMATS]),
    default="table",
    show_default=True,
    help="Output format",
)
@click.option("--no-verify", is_flag=True, help="Skip the summary total check")
@click.option("--variations", is_flag=True, help="Include week-over-week variations")
@click.pass_context
def aggregate_command(ctx: click.Context, source, fmt: str, no_verify: bool, variations: bool) -> int:
    """Aggregate a report tree from FILE ('-' for stdin)."""
    settings = _settings(ctx)
    payload = _load_payload(source)

    verify = settings.verify_summary_totals and not no_verify
    result = aggregate(payload, verify=verify, tolerance=settings.summary_tolerance)

    if fmt == "table":
        if not result.period_keys:
            click.echo("ℹ️  Report has no weekly data")
            return ExitCode.SUCCESS
        click.echo(render_table(result))
        for item in result.discrepancies:
            click.echo(f"⚠️  {'-'.join(item.path)}: reported {item.reported_total} vs {item.children_total}")
        return ExitCode.SUCCESS

    data = result.to_dict()
    data["has_categories"] = has_categories(payload)
    if variations:
        data["variations"] = [item.to_dict() for item in period_over_period(result.grand_total, result.period_keys)]
    click.echo(render_output(data, fmt))
    return ExitCode.SUCCESS


def _parse_manual(values: tuple[str, ...]) -> dict[str, str]:
    manual = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--manual")
        manual[key.strip()] = value.strip()
    return manual


@click.command("compare", context_settings=CONTEXT_SETTINGS, help="Year-over-year comparison of a saved report")
@click.argument("source", metavar="FILE", type=click.File("r", encoding="utf-8"))
@click.option("--manual", multiple=True, help="Manual yearly total, YEAR=VALUE (repeatable)")
@click.option("--manual-city", multiple=True, help="Manual city total, CITY_YEAR=VALUE (repeatable)")
@click.option("--format", "fmt", type=click.Choice(OUTPUT_FORMATS), default="json", show_default=True)
def compare_command(source, manual: tuple[str, ...], manual_city: tuple[str, ...], fmt: str) -> int:
    """Compare yearly totals from FILE ('-' for stdin)."""
    payload = _load_payload(source)
    comparison = yearly_comparison(payload, _parse_manual(manual), _parse_manual(manual_city))
    click.echo(render_output(comparison.to_dict(), fmt))
    return ExitCode.SUCCESS
