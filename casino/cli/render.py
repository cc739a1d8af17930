"""Rendering helpers dedicated to the CLI experience."""

from __future__ import annotations

from typing import Sequence

from rich import box
from rich.console import RenderableType
from rich.panel import Panel
from rich.table import Table

from ..cards import Card, Suit
from ..scoreboard import MatchHistory
from ..segmentation import BuildDetection, BuildProgress
from ..state import GameState
from .views import StateSummaryView

_SUIT_COLORS = {
    Suit.SPADES: "cyan",
    Suit.HEARTS: "red",
    Suit.DIAMONDS: "magenta",
    Suit.CLUBS: "green",
}


def format_card(card: Card) -> str:
    """Return a Rich-rendered label for ``card``."""

    color = _SUIT_COLORS.get(card.suit, "white")
    return f"[{color}]{card.label()}[/{color}]"


def render_state(
    state: GameState,
    *,
    reveal_players: Sequence[int] = (0, 1),
    title: str = "Casino",
) -> RenderableType:
    """Return a Rich panel describing the current table state."""

    view = StateSummaryView(
        state=state,
        reveal_players=set(reveal_players),
        card_formatter=format_card,
    )
    return Panel(view.render(), title=title, padding=(0, 1), border_style="cyan")


def render_segmentation(
    values: Sequence[int],
    detection: BuildDetection | None,
    strict_values: Sequence[int],
    trace: Sequence[BuildProgress],
) -> RenderableType:
    """Return a table showing how a value sequence is classified card by card."""

    table = Table(box=box.SIMPLE_HEAVY, expand=False)
    table.add_column("Cards", justify="left")
    table.add_column("Build", justify="right")
    table.add_column("Running", justify="right")
    table.add_column("Segments", justify="right")
    table.add_column("Display", justify="right")
    for end, progress in enumerate(trace, start=2):
        display = str(progress.display_value)
        if not progress.is_valid:
            display = f"[bold red]{display}[/bold red]"
        elif progress.is_building:
            display = f"[yellow]{display}[/yellow]"
        table.add_row(
            " ".join(str(value) for value in values[:end]),
            "-" if progress.build_value is None else str(progress.build_value),
            str(progress.running_sum),
            str(progress.segment_count),
            display,
        )

    if detection is None:
        verdict = "[red]no build[/red]"
    else:
        verdict = f"[green]{detection.kind.value}[/green] build of [bold]{detection.build_value}[/bold]"
    options = ", ".join(str(value) for value in strict_values) or "none"
    title = f"{verdict} | strict values: {options}"
    return Panel(table, title=title, border_style="blue")


def render_match(history: MatchHistory) -> RenderableType:
    table = Table(title="Match Summary", box=box.SIMPLE_HEAVY)
    table.add_column("Player", justify="left")
    table.add_column("Wins", justify="right")
    table.add_column("Points", justify="right")
    table.add_column("Cards", justify="right")
    table.add_column("Spades", justify="right")
    for total in history.totals():
        table.add_row(
            f"P{total.player_index}",
            str(total.wins),
            str(total.points),
            str(total.cards),
            str(total.spades),
        )
    table.caption = f"{len(history.games)} game(s), {history.draws} draw(s)"
    return table
