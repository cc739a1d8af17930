"""Helpers for tracking multi-game casino match results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .scoring import PlayerGameScore

__all__ = ["GameSummary", "PlayerMatchTotal", "MatchHistory"]


@dataclass(frozen=True, slots=True)
class GameSummary:
    """Summary statistics captured after a single game."""

    game_number: int
    winner_index: int | None
    scores: Sequence[PlayerGameScore]


@dataclass(frozen=True, slots=True)
class PlayerMatchTotal:
    """Aggregate match totals accumulated across all recorded games."""

    player_index: int
    wins: int
    points: int
    cards: int
    spades: int


@dataclass(slots=True)
class MatchHistory:
    """Mutable tracker that accumulates game summaries for a match."""

    num_players: int = 2
    games: list[GameSummary] = field(default_factory=list)
    draws: int = 0
    _wins: list[int] = field(init=False, repr=False)
    _points: list[int] = field(init=False, repr=False)
    _cards: list[int] = field(init=False, repr=False)
    _spades: list[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.num_players <= 0:
            raise ValueError("num_players must be positive")
        self._wins = [0] * self.num_players
        self._points = [0] * self.num_players
        self._cards = [0] * self.num_players
        self._spades = [0] * self.num_players

    def record(self, summary: GameSummary) -> None:
        """Record ``summary`` and update cumulative totals."""

        if len(summary.scores) != self.num_players:
            raise ValueError("score count does not match number of players")
        self.games.append(summary)
        if summary.winner_index is None:
            self.draws += 1
        for score in summary.scores:
            idx = score.player_index
            if idx < 0 or idx >= self.num_players:
                raise ValueError("player index out of range")
            self._points[idx] += score.total
            self._cards[idx] += score.cards
            self._spades[idx] += score.spades
            if score.won_game:
                self._wins[idx] += 1

    def totals(self) -> list[PlayerMatchTotal]:
        """Return the cumulative totals for each player in seating order."""

        return [
            PlayerMatchTotal(
                player_index=idx,
                wins=self._wins[idx],
                points=self._points[idx],
                cards=self._cards[idx],
                spades=self._spades[idx],
            )
            for idx in range(self.num_players)
        ]
