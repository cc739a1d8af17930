"""Typer entry-point wiring for the casino CLI."""

from __future__ import annotations

import logging
from typing import List

import typer
from rich.console import Console
from rich.logging import RichHandler

from .. import segmentation, simulate, state
from .render import render_match, render_segmentation, render_state

app = typer.Typer(add_completion=False, rich_markup_mode="rich")
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show engine debug logging."),
) -> None:
    """Rules engine for the two-player casino card game."""

    _configure_logging(verbose)


@app.command()
def segment(
    values: List[int] = typer.Argument(..., help="Card values in the order they were stacked."),
) -> None:
    """Classify a staging stack and replay its live build calculator."""

    if any(value < 1 or value > 10 for value in values):
        raise typer.BadParameter("card values must lie in 1..10")
    detection = segmentation.detect_build_type(values)
    strict_values = segmentation.valid_build_values(values)
    trace = segmentation.trace_build(values)
    console.print(render_segmentation(values, detection, strict_values, trace))


@app.command()
def deal(
    seed: int | None = typer.Option(None, help="Random seed for a reproducible deal (omit for randomness)."),
) -> None:
    """Deal a fresh game and show the table."""

    game_state = state.deal_new_game(state.CasinoConfig(seed=seed))
    console.print(render_state(game_state))


@app.command("simulate")
def simulate_cli(
    games: int = typer.Option(10, min=1, help="Number of random self-play games."),
    seed: int = typer.Option(123, help="Random seed for the simulation."),
) -> None:
    """Play random legal games through the engine and print the scoreboard."""

    history = simulate.run_match(games, seed=seed)
    console.print(render_match(history))


if __name__ == "__main__":  # pragma: no cover
    app()
