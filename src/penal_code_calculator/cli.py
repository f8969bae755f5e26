"""
Penal Code Calculator

Parses punishment clauses and totals the penalties of a set of offenses.

Usage:
    penal-code parse --fine "$2,500 - $10,000" --jail "1 - 5 years imprisonment"
    penal-code calculate --catalog data/penal-code.json title-1-103 "2 01"
    penal-code calculate --catalog data/penal-code.json --json title-1-101 title-2-203
    penal-code audit --catalog data/penal-code.json --language id
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from rich.console import Console
from rich.table import Table

from penal_code_calculator.catalog import OffenseCatalog, load_catalog
from penal_code_calculator.config import get_settings
from penal_code_calculator.core.aggregator import EmptySelectionError, PenaltyAggregator, format_jail_total
from penal_code_calculator.core.punishment import (
    format_currency,
    format_duration,
    parse,
    severity_score,
    validate,
)
from penal_code_calculator.core.types import AggregatedPenalty

console = Console()


def setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def money_range(low: float, high: float, currency: str) -> str:
    low_text = format_currency(low, currency)
    high_text = format_currency(high, currency)
    return low_text if low_text == high_text else f"{low_text} - {high_text}"


def duration_range(low: int, high: int) -> str:
    low_text = format_duration(low)
    high_text = format_duration(high)
    return low_text if low_text == high_text else f"{low_text} - {high_text}"


def open_catalog(path: str | None, language: str) -> OffenseCatalog:
    catalog_path = path or get_settings().catalog_path
    if not catalog_path:
        raise FileNotFoundError("No catalog given; pass --catalog or set PENAL_CATALOG_PATH")
    return load_catalog(catalog_path, language)


def cmd_parse(args: argparse.Namespace) -> int:
    settings = get_settings()
    currency = args.currency or settings.default_currency
    parsed = parse(args.jail, args.fine, currency)
    validation = validate(parsed, settings.fine_warning_threshold)

    table = Table(title="Parsed punishment")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Fine", money_range(parsed.fine_min, parsed.fine_max, currency))
    table.add_row("Fine pattern", parsed.fine.pattern if parsed.fine else "-")
    table.add_row("Jail", duration_range(parsed.jail_min_days, parsed.jail_max_days))
    table.add_row("Jail pattern", parsed.jail.pattern if parsed.jail else "-")
    table.add_row("Severity", str(severity_score(parsed)))
    console.print(table)

    for issue in validation.issues:
        console.print(f"[red]Issue:[/] {issue}")
    for warning in validation.warnings:
        console.print(f"[yellow]Warning:[/] {warning}")
    return 0 if validation.is_valid else 1


def render_calculation(snapshot: AggregatedPenalty, currency: str) -> None:
    table = Table(title=f"Breakdown ({len(snapshot.breakdown)} offenses)")
    table.add_column("#", justify="right")
    table.add_column("Code", style="cyan")
    table.add_column("Offense")
    table.add_column("Fine", style="green")
    table.add_column("Jail", style="yellow")
    for index, entry in enumerate(snapshot.breakdown, start=1):
        table.add_row(
            str(index),
            entry.code,
            entry.title,
            money_range(entry.fine_min, entry.fine_max, currency),
            duration_range(entry.jail_min_days, entry.jail_max_days),
        )
    console.print(table)

    console.print(
        f"\n[bold]Total fine:[/] {money_range(snapshot.total_fine_min, snapshot.total_fine_max, currency)}"
    )
    console.print(f"[bold]Total jail time:[/] {format_jail_total(snapshot)}")


def cmd_calculate(args: argparse.Namespace) -> int:
    settings = get_settings()
    currency = args.currency or settings.default_currency
    catalog = open_catalog(args.catalog, args.language or settings.default_language)

    aggregator = PenaltyAggregator(currency=currency)
    for query in args.offenses:
        record = catalog.resolve(query)
        if record is None:
            console.print(f"[red]No offense matches {query!r}[/]")
            return 1
        if aggregator.is_selected(record.offense_id):
            console.print(f"[yellow]{record.code or record.offense_id} already selected; skipping[/]")
            continue
        aggregator.toggle_offense(record.offense_id, record)

    try:
        snapshot = aggregator.compute()
    except EmptySelectionError as exc:
        console.print(f"[red]{exc}[/]")
        return 1

    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False))
    else:
        render_calculation(snapshot, currency)
    return 0


def cmd_audit(args: argparse.Namespace) -> int:
    """Report catalog entries whose clauses fail to parse cleanly."""
    settings = get_settings()
    catalog = open_catalog(args.catalog, args.language or settings.default_language)

    table = Table(title=f"Catalog audit ({len(catalog)} offenses)")
    table.add_column("Offense", style="cyan")
    table.add_column("Level")
    table.add_column("Message")

    issue_count = 0
    warning_count = 0
    for record in catalog:
        validation = validate(parse(record.punishment_text, record.fine_text), settings.fine_warning_threshold)
        label = f"{record.code} {record.title}".strip()
        for issue in validation.issues:
            table.add_row(label, "[red]issue[/]", issue)
            issue_count += 1
        for warning in validation.warnings:
            table.add_row(label, "[yellow]warning[/]", warning)
            warning_count += 1

    if issue_count or warning_count:
        console.print(table)
    console.print(f"\n[bold]{issue_count}[/] issues, [bold]{warning_count}[/] warnings")
    return 1 if issue_count else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse penal code punishments and total the penalties of selected offenses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    parse_cmd = subparsers.add_parser("parse", help="Parse one fine clause and one jail clause")
    parse_cmd.add_argument("--fine", default="", help="Fine clause, e.g. '$2,500 - $10,000'")
    parse_cmd.add_argument("--jail", default="", help="Jail clause, e.g. '1 - 5 years imprisonment'")
    parse_cmd.add_argument("--currency", help="Currency code for display (default: USD)")
    parse_cmd.set_defaults(handler=cmd_parse)

    calc_cmd = subparsers.add_parser("calculate", help="Total the penalties of several offenses")
    calc_cmd.add_argument("offenses", nargs="+", help="Offense ids, section codes or titles")
    calc_cmd.add_argument("--catalog", help="Catalog JSON path (default: PENAL_CATALOG_PATH)")
    calc_cmd.add_argument("--language", help="Catalog language (default: en)")
    calc_cmd.add_argument("--currency", help="Currency code for display (default: USD)")
    calc_cmd.add_argument("--json", action="store_true", help="Print the calculation as JSON")
    calc_cmd.set_defaults(handler=cmd_calculate)

    audit_cmd = subparsers.add_parser("audit", help="Validate every punishment clause in a catalog")
    audit_cmd.add_argument("--catalog", help="Catalog JSON path (default: PENAL_CATALOG_PATH)")
    audit_cmd.add_argument("--language", help="Catalog language (default: en)")
    audit_cmd.set_defaults(handler=cmd_audit)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        return args.handler(args)
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"[red]{exc}[/]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
