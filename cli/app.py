from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

import typer

from cli.client import UTILITIES, ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_calculations, render_readings, render_summary


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for recording meter readings and reviewing utility bills.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Billing API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("apartments")
def apartments_command(ctx: typer.Context) -> None:
    """List apartments known to the service."""
    state = _get_state(ctx)
    names = state.client.list_apartments()
    if not names:
        typer.echo("No apartments registered.")
        return
    for name in names:
        typer.echo(name)


@app.command("create")
def create_command(
    ctx: typer.Context,
    apartment: str = typer.Argument(..., help="Name of the apartment to register."),
) -> None:
    """Register an apartment with an empty reading history."""
    state = _get_state(ctx)
    state.client.create_apartment(apartment)
    typer.secho(f"Apartment {apartment} created.", fg=typer.colors.GREEN)


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    apartment: str = typer.Argument(..., help="Apartment name."),
) -> None:
    """Show the stored readings of an apartment."""
    state = _get_state(ctx)
    render_readings(apartment, state.client.list_readings(apartment))


@app.command("add")
def add_command(
    ctx: typer.Context,
    apartment: str = typer.Argument(..., help="Apartment name."),
    power: float = typer.Option(..., "--power", min=0, help="Power meter total."),
    gas: float = typer.Option(..., "--gas", min=0, help="Gas meter total."),
    water: float = typer.Option(..., "--water", min=0, help="Water meter total."),
    reading_date: Optional[datetime] = typer.Option(
        None,
        "--date",
        formats=["%Y-%m-%d"],
        help="Day the meters were read (defaults to today).",
    ),
    gas_percentage: float = typer.Option(
        100.0, "--gas-percentage", min=0, max=100, help="Share of the gas cost to bill."
    ),
    power_reduction: float = typer.Option(
        0.0, "--power-reduction", help="Units subtracted from the power delta."
    ),
) -> None:
    """Record a new meter reading."""
    state = _get_state(ctx)
    day = reading_date.date() if reading_date else date.today()
    created = state.client.add_reading(
        apartment,
        {
            "date": day.isoformat(),
            "power": power,
            "gas": gas,
            "water": water,
            "gasPercentage": gas_percentage,
            "powerReduction": power_reduction,
        },
    )
    typer.secho(f"Reading saved. id={created.get('id')}", fg=typer.colors.GREEN)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    apartment: str = typer.Argument(..., help="Apartment name."),
    reading_id: str = typer.Argument(..., help="Identifier of the reading to delete."),
) -> None:
    """Delete a stored reading."""
    state = _get_state(ctx)
    state.client.delete_reading(apartment, reading_id)
    typer.secho(f"Reading {reading_id} deleted.", fg=typer.colors.GREEN)


@app.command("bills")
def bills_command(
    ctx: typer.Context,
    apartment: str = typer.Argument(..., help="Apartment name."),
    utility: str = typer.Option(
        "all",
        "--utility",
        "-u",
        help="One of power, gas, water or all.",
    ),
) -> None:
    """Show billed periods for one utility, or the combined summary."""
    state = _get_state(ctx)
    if utility == "all":
        render_summary(state.client.get_summary(apartment))
        return
    if utility not in UTILITIES:
        raise typer.BadParameter(f"Unknown utility {utility!r}.", param_hint="--utility")
    render_calculations(utility, state.client.get_calculations(apartment, utility))


if __name__ == "__main__":
    app()
