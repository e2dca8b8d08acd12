"""
CLI interface for AI Usage Attribution.

Provides command-line access to synthesis, rate derivation and attribution.
"""

import json
import logging
import sys
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from ai_usage_attribution.config.loader import AttributionConfig, load_attribution_config
from ai_usage_attribution.core.date_range import (
    DateRange,
    last_n_days,
    month_from_iso,
    this_month,
    year_to_date
)
from ai_usage_attribution.core.pipeline import AttributionReport, aggregate_category_totals, attribute_usage
from ai_usage_attribution.core.projection import ViewMode, estimate_total_cost, project_series
from ai_usage_attribution.core.rates import derive_rates
from ai_usage_attribution.core.synthesis import summarize_day_by_user, synthesize_daily_usage
from ai_usage_attribution.ingest.reader import load_activity_rows, load_category_totals

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
):
    """AI Usage Attribution CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )
    if ctx.invoked_subcommand is None:
        console.print("AI Usage Attribution - Use --help to see available commands")


def _load_config(path: Optional[str]) -> AttributionConfig:
    if path is None:
        return AttributionConfig()
    return load_attribution_config(path)


def _resolve_span(
    start: Optional[str],
    end: Optional[str],
    last_days: Optional[int],
    period: Optional[str]
) -> Optional[DateRange]:
    """Pick the reporting span from explicit dates or a relative shortcut."""
    if start and end:
        return DateRange(since=start, until=end)
    if last_days is not None:
        if last_days <= 0:
            raise ValueError("--last-days must be > 0")
        return last_n_days(last_days)
    if period is not None:
        shortcuts = {"month": this_month, "ytd": year_to_date}
        if period.lower() not in shortcuts:
            raise ValueError(f"--period must be one of: {sorted(shortcuts)}")
        return shortcuts[period.lower()]()
    return None


@app.command()
def synthesize(
    totals: str = typer.Option(..., "--totals", "-t", help="JSON file of billing category totals"),
    start: str = typer.Option(..., "--start", help="First day (YYYY-MM-DD)"),
    end: str = typer.Option(..., "--end", help="Last day, inclusive (YYYY-MM-DD)"),
    users: Optional[List[str]] = typer.Option(None, "--user", "-u", help="User to fabricate usage for"),
    seed: Optional[str] = typer.Option(None, "--seed", "-s", help="Seed string"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write rows to this file"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML attribution config")
):
    """
    Fabricate deterministic daily usage rows from billing totals.

    The same inputs and seed always produce the same rows.
    """
    try:
        config = _load_config(config_path)
        category_totals = aggregate_category_totals(load_category_totals(totals))
        user_list = list(users or config.report.ensure_users)

        rows = synthesize_daily_usage(
            start_date=start,
            end_date=end,
            users=user_list,
            category_totals=category_totals,
            seed=seed or config.seed,
            settings=config.synthesis
        )
        payload = json.dumps([row.to_dict() for row in rows], indent=2)

        if output:
            with open(output, 'w', encoding='utf-8') as f:
                f.write(payload)
            console.print(f"[green]✓[/] Wrote {len(rows)} synthetic rows to {output}")
        else:
            typer.echo(payload)
        sys.exit(EXIT_CODE_PASS)
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def rates(
    totals: str = typer.Option(..., "--totals", "-t", help="JSON file of billing category totals"),
    rows: str = typer.Option(..., "--rows", "-r", help="JSON file of daily activity rows")
):
    """Show the derived cost-per-unit for each category."""
    try:
        rate_info = derive_rates(load_activity_rows(rows), load_category_totals(totals))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    table = Table(title="Estimated cost per unit")
    table.add_column("Category")
    table.add_column("Rate", justify="right")
    for category, rate in rate_info.rates.items():
        table.add_row(category, _format_rate(rate))
    console.print(table)

    if rate_info.used_blended_rate:
        console.print(
            f"[yellow]![/] Blended rate {_format_rate(rate_info.blended_rate)} "
            "used for categories without a billing match"
        )
    sys.exit(EXIT_CODE_PASS)


@app.command()
def attribute(
    totals: str = typer.Option(..., "--totals", "-t", help="JSON file of billing category totals"),
    rows: Optional[str] = typer.Option(None, "--rows", "-r", help="JSON file of daily activity rows"),
    users: Optional[List[str]] = typer.Option(None, "--user", "-u", help="User that must appear"),
    start: Optional[str] = typer.Option(None, "--start", help="First day (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", help="Last day, inclusive (YYYY-MM-DD)"),
    last_days: Optional[int] = typer.Option(None, "--last-days", help="Span of the last N days, ending today"),
    period: Optional[str] = typer.Option(None, "--period", "-p", help="Span shortcut: month or ytd"),
    seed: Optional[str] = typer.Option(None, "--seed", "-s", help="Seed for synthetic fallback"),
    mode: Optional[str] = typer.Option(None, "--mode", "-m", help="View mode: cost or requests"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML attribution config")
):
    """
    Attribute estimated cost to users.

    Without --rows, usage is synthesized from the billing totals across
    the reporting span and the report is flagged as synthetic.
    """
    try:
        config = _load_config(config_path)
        view_mode = ViewMode(mode.lower()) if mode else config.report.mode
        span = _resolve_span(start, end, last_days, period)
        category_totals = aggregate_category_totals(load_category_totals(totals))
        daily_rows = load_activity_rows(rows) if rows else None

        report = attribute_usage(
            category_totals=category_totals,
            daily_rows=daily_rows,
            users=list(users or config.report.ensure_users),
            start_date=span.since if span else None,
            end_date=span.until if span else None,
            seed=seed or config.seed,
            settings=config.synthesis
        )
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    _display_report(report, view_mode, config.report.top_users, span)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def breakdown(
    totals: str = typer.Option(..., "--totals", "-t", help="JSON file of billing category totals"),
    day: str = typer.Option(..., "--day", "-d", help="Day to break down (YYYY-MM-DD)"),
    users: Optional[List[str]] = typer.Option(None, "--user", "-u", help="User to fabricate usage for"),
    seed: Optional[str] = typer.Option(None, "--seed", "-s", help="Seed string"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="YAML attribution config")
):
    """Show the top users of one day of synthesized usage, by category."""
    try:
        config = _load_config(config_path)
        category_totals = aggregate_category_totals(load_category_totals(totals))
        rows = synthesize_daily_usage(
            start_date=day,
            end_date=day,
            users=list(users or config.report.ensure_users),
            category_totals=category_totals,
            seed=seed or config.seed,
            settings=config.synthesis
        )
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    entries = summarize_day_by_user(rows, day, top_users=config.report.top_users)
    if not entries:
        console.print(f"\n[dim]No material usage on {day}.[/]")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title=f"Daily usage by user, {day}")
    table.add_column("User")
    table.add_column("Net", justify="right")
    table.add_column("Requests", justify="right")
    categories = list(entries[0].by_category)
    for category in categories:
        table.add_column(category, justify="right")
    for entry in entries:
        table.add_row(
            entry.user,
            _format_currency(entry.total_net_amount),
            str(entry.total_requests),
            *[_format_currency(entry.by_category[c]) for c in categories]
        )
    console.print(table)
    sys.exit(EXIT_CODE_PASS)


def _format_currency(amount: float) -> str:
    """Format currency with proper symbols and formatting."""
    return f"${abs(amount):,.2f}"


def _format_rate(rate: float) -> str:
    return f"${rate:,.4f}"


def _format_percent(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


def _peak_day(points) -> str:
    peak = max(points, key=lambda p: (p.total(), p.day), default=None)
    if peak is None or peak.total() <= 0:
        return "-"
    return peak.day


def _display_report(
    report: AttributionReport,
    mode: ViewMode,
    top_users: int,
    span: Optional[DateRange] = None
):
    """Display per-user attribution in a clean, financial format."""
    result = report.result
    console.print("\n[bold]AI Usage Attribution[/bold]")
    if span is not None:
        year, month = month_from_iso(span.until)
        console.print(f"Period: {span.since} to {span.until} (billing month {year}-{month:02d})")
    console.print("-" * 40)

    if not result.users:
        console.print("\n[dim]No users to attribute.[/]")
        return

    value_label = "Est. cost" if mode == ViewMode.COST else "Units"
    table = Table()
    table.add_column("User")
    table.add_column(value_label, justify="right")
    table.add_column("Accept rate", justify="right")
    table.add_column("Top category")
    table.add_column("Top language")
    table.add_column("Top feature")
    table.add_column("Peak day")

    rate_table = result.rates.rates
    for series in result.users[:top_users]:
        if mode == ViewMode.COST:
            value = _format_currency(estimate_total_cost(series, rate_table))
        else:
            value = f"{series.total_generated:,.0f}"
        table.add_row(
            series.user,
            value,
            _format_percent(series.accept_rate),
            series.top_category or "-",
            series.top_language or "-",
            series.top_feature or "-",
            _peak_day(project_series(series, rate_table, mode))
        )
    console.print(table)

    if len(result.users) > top_users:
        console.print(f"[dim]{len(result.users) - top_users} more users not shown[/]")
    if result.rates.used_blended_rate:
        console.print(
            f"[yellow]![/] Blended rate {_format_rate(result.rates.blended_rate)} "
            "used for categories without a billing match"
        )
    if report.synthetic:
        console.print("[yellow]![/] Activity data unavailable; figures are synthesized from billing totals")


if __name__ == "__main__":
    app()
