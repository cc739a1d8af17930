"""End-of-game scoring for captured cards."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final, Sequence

from .cards import Card, Rank, Suit
from .state import GameState

__all__ = [
    "SPADES_BONUS_THRESHOLD",
    "CARD_COUNT_BONUS_THRESHOLD",
    "EVEN_SPLIT_CARDS",
    "EXPECTED_TOTAL",
    "PlayerGameScore",
    "card_points",
    "player_score",
    "final_scores",
    "winner_index",
]

logger = logging.getLogger(__name__)

SPADES_BONUS_THRESHOLD: Final = 6
SPADES_BONUS: Final = 2
CARD_COUNT_BONUS_THRESHOLD: Final = 21
CARD_COUNT_BONUS: Final = 2
EVEN_SPLIT_CARDS: Final = 20
EXPECTED_TOTAL: Final = 11


@dataclass(frozen=True, slots=True)
class PlayerGameScore:
    """Per-player scoring breakdown captured at the end of a game."""

    player_index: int
    card_points: int
    spades: int
    cards: int
    bonus_points: int
    total: int
    won_game: bool


def card_points(card: Card) -> int:
    """Return the points an individual captured card is worth."""

    if card.rank is Rank.TEN and card.suit is Suit.DIAMONDS:
        return 2
    if card.rank is Rank.TWO and card.suit is Suit.SPADES:
        return 1
    if card.rank is Rank.ACE:
        return 1
    return 0


def player_score(captured: Sequence[Card]) -> tuple[int, int]:
    """Return ``(card_points, bonus_points)`` for one capture pile."""

    points = sum(card_points(card) for card in captured)
    spades = sum(1 for card in captured if card.suit is Suit.SPADES)
    bonus = 0
    if spades >= SPADES_BONUS_THRESHOLD:
        bonus += SPADES_BONUS
    if len(captured) >= CARD_COUNT_BONUS_THRESHOLD:
        bonus += CARD_COUNT_BONUS
    return points, bonus


def winner_index(totals: Sequence[int]) -> int | None:
    """Return the index of the strictly highest total, ``None`` on a draw."""

    best = max(totals)
    leaders = [idx for idx, total in enumerate(totals) if total == best]
    return leaders[0] if len(leaders) == 1 else None


def final_scores(state: GameState) -> list[PlayerGameScore]:
    """Return the scoring breakdown for each player of a finished game."""

    if not state.game_over:
        raise ValueError("game is not finished")

    breakdown = [player_score(pile) for pile in state.captures]
    even_split = all(len(pile) == EVEN_SPLIT_CARDS for pile in state.captures)
    totals: list[int] = []
    bonuses: list[int] = []
    for points, bonus in breakdown:
        if even_split:
            bonus += 1
        bonuses.append(bonus)
        totals.append(points + bonus)

    if sum(totals) != EXPECTED_TOTAL:
        logger.warning("score total %d differs from expected %d", sum(totals), EXPECTED_TOTAL)

    winner = winner_index(totals)
    return [
        PlayerGameScore(
            player_index=idx,
            card_points=breakdown[idx][0],
            spades=sum(1 for card in pile if card.suit is Suit.SPADES),
            cards=len(pile),
            bonus_points=bonuses[idx],
            total=totals[idx],
            won_game=winner == idx,
        )
        for idx, pile in enumerate(state.captures)
    ]
