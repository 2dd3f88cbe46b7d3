"""Configure loguru output and render client listings."""

from __future__ import annotations

import json
import sys
from typing import Any, Iterable

from loguru import logger
from rich.console import Console
from rich.table import Table

from .lanes.engine import LaneReport
from .lanes.model import Client, Lane


def configure_logging(level: str = "INFO") -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan> - "
            "{message}"
        ),
    )


def clients_table(clients: Iterable[Client], title: str = "Clients") -> Table:
    """Build a rich table of clients, sorted by lane then priority."""
    lane_order = {lane: idx for idx, lane in enumerate(Lane)}
    table = Table(title=title)
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Status")
    table.add_column("Priority", justify="right")
    table.add_column("Name")
    for c in sorted(clients, key=lambda c: (lane_order[c.status], c.priority, c.id or 0)):
        table.add_row(str(c.id), c.status.value, str(c.priority), c.name)
    return table


def report_table(reports: dict[Lane, LaneReport]) -> Table:
    table = Table(title="Lane density")
    table.add_column("Lane")
    table.add_column("Size", justify="right")
    table.add_column("Dense")
    table.add_column("Problems")
    for lane, report in reports.items():
        problems = []
        if report.duplicates:
            problems.append(f"duplicates {report.duplicates}")
        if report.missing:
            problems.append(f"missing {report.missing}")
        if report.out_of_range:
            problems.append(f"out of range {report.out_of_range}")
        table.add_row(
            lane.value,
            str(report.size),
            "[green]yes[/green]" if report.is_dense else "[red]no[/red]",
            "; ".join(problems) or "-",
        )
    return table


def print_output(console: Console, payload: Any, table: Table | None, as_json: bool) -> None:
    """Write *payload* as JSON, or *table* through rich."""
    if as_json or table is None:
        console.file.write(json.dumps(payload, indent=2, default=str) + "\n")
    else:
        console.print(table)
