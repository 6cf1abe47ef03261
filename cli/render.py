from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

import typer

_CALCULATION_COLUMNS: Dict[str, Sequence[str]] = {
    "power": ("date", "consumption", "netPrice", "grossPrice"),
    "gas": ("date", "consumption", "consumptionInKWh", "netPrice", "grossPrice"),
    "water": ("date", "consumption", "grossPrice"),
}
_READING_COLUMNS = ("id", "date", "power", "gas", "water", "gasPercentage", "powerReduction")
_SUMMARY_COLUMNS = ("date", "power", "gas", "water", "total")


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def echo_table(columns: Sequence[str], rows: Iterable[Dict[str, Any]]) -> None:
    cells: List[List[str]] = [[_cell(row.get(column)) for column in columns] for row in rows]
    widths = [
        max([len(column)] + [len(line[index]) for line in cells])
        for index, column in enumerate(columns)
    ]
    typer.echo("  ".join(column.ljust(width) for column, width in zip(columns, widths)))
    for line in cells:
        typer.echo("  ".join(cell.ljust(width) for cell, width in zip(line, widths)))


def render_readings(apartment: str, readings: List[Dict[str, Any]]) -> None:
    echo_heading(f"Readings for {apartment}")
    if not readings:
        typer.echo("No readings recorded.")
        return
    echo_table(_READING_COLUMNS, sorted(readings, key=lambda row: row.get("date") or ""))


def render_calculations(utility: str, rows: List[Dict[str, Any]]) -> None:
    echo_heading(f"{utility.capitalize()} bills")
    if not rows:
        typer.echo("No billed periods.")
        return
    echo_table(_CALCULATION_COLUMNS[utility], rows)


def render_summary(payload: Dict[str, Any]) -> None:
    echo_heading(f"Summary for {payload.get('apartment')}")
    periods = payload.get("periods") or []
    if not periods:
        typer.echo("No billed periods.")
        return
    echo_table(_SUMMARY_COLUMNS, periods)
