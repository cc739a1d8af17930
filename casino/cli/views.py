"""Composable view primitives for the casino CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Set

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table

from ..cards import Card
from ..state import Build, GameState, StagingStack


@dataclass(slots=True)
class StateSummaryView:
    """Renderable summarising the current table state."""

    state: GameState
    reveal_players: Set[int]
    card_formatter: Callable[[Card], str]

    def _cards_markup(self, cards: list[Card], visible: bool) -> str:
        if not visible:
            return f"{len(cards)} cards"
        if not cards:
            return "-"
        return " ".join(self.card_formatter(card) for card in cards)

    def _item_markup(self, item: Card | Build | StagingStack) -> str:
        if isinstance(item, Card):
            return self.card_formatter(item)
        if isinstance(item, Build):
            cards = self._cards_markup(item.cards, True)
            return f"[bold]Build {item.value}[/bold] (P{item.owner}): {cards}"
        cards = self._cards_markup([staged.card for staged in item.cards], True)
        status = "[red]INVALID[/red]" if not item.is_valid else str(item.display_value)
        return f"[italic]Stack {status}[/italic] (P{item.owner}): {cards}"

    def _metadata_panel(self) -> Panel:
        grid = Table.grid(expand=True)
        grid.add_column(justify="left")
        grid.add_row(f"[cyan]Game[/cyan]: {self.state.game_id}")
        grid.add_row(f"[cyan]Round[/cyan]: {self.state.round_number}")
        grid.add_row(f"[cyan]Turn[/cyan]: P{self.state.current_player}")
        grid.add_row(f"[cyan]Deck[/cyan]: {len(self.state.deck)} card(s)")
        if self.state.game_over:
            grid.add_row("[bold green]Game over[/bold green]")
        return Panel(grid, title="Table State", box=box.SQUARE, border_style="blue")

    def render(self) -> RenderableType:
        table = Table(box=box.ROUNDED, expand=True)
        table.add_column("Player", justify="left", style="bold")
        table.add_column("Hand", justify="left")
        table.add_column("Captured", justify="right")

        for idx, hand in enumerate(self.state.hands):
            name = f"P{idx}"
            if idx == self.state.current_player and not self.state.game_over:
                name = f"[reverse]{name}[/reverse]"
            table.add_row(
                name,
                self._cards_markup(hand, idx in self.reveal_players),
                str(len(self.state.captures[idx])),
            )

        items = [self._item_markup(item) for item in self.state.table]
        table_panel = Panel(
            "  ".join(items) if items else "[dim]empty[/dim]",
            title="Table",
            box=box.SQUARE,
            border_style="green",
        )
        return Group(self._metadata_panel(), table_panel, table)
