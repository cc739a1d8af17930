"""Card abstractions and helpers for the casino table game."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

__all__ = ["Suit", "Rank", "Card", "CardSource", "iter_full_deck", "parse_card", "DECK_SIZE"]


class Suit(str, Enum):
    """Enumeration of the four suits in a casino deck."""

    SPADES = "S"
    HEARTS = "H"
    DIAMONDS = "D"
    CLUBS = "C"

    @property
    def symbol(self) -> str:
        return {"S": "♠", "H": "♥", "D": "♦", "C": "♣"}[self.value]


class Rank(str, Enum):
    """Ranks present in the forty card deck (no court cards)."""

    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"

    @classmethod
    def ordered(cls) -> tuple["Rank", ...]:
        """Return ranks in ascending value order."""

        return tuple(cls)

    @property
    def value_points(self) -> int:
        return 1 if self is Rank.ACE else int(self.value)


DECK_SIZE = len(Suit) * len(Rank)


class CardSource(str, Enum):
    """Where a dragged card was picked up from."""

    HAND = "hand"
    TABLE = "table"
    CAPTURED = "captured"


@dataclass(frozen=True, slots=True)
class Card:
    """Value object describing a physical card.

    ``rank`` and ``suit`` are the card identity; ``value`` is derived from the
    rank and can never be set independently.
    """

    rank: Rank
    suit: Suit

    @property
    def value(self) -> int:
        """Return the numeric game value (1-10)."""

        return self.rank.value_points

    def label(self) -> str:
        """Create a display label suitable for CLI representations."""

        return f"{self.rank.value}{self.suit.symbol}"

    def __str__(self) -> str:
        return self.label()


def iter_full_deck() -> Iterable[Card]:
    """Yield all physical cards in a fresh forty card deck."""

    for suit in Suit:
        for rank in Rank.ordered():
            yield Card(rank=rank, suit=suit)


def parse_card(text: str) -> Card:
    """Parse labels such as ``"7H"``, ``"10D"`` or ``"A♠"`` into a :class:`Card`."""

    token = text.strip().upper()
    if len(token) < 2:
        raise ValueError(f"invalid card label: {text!r}")
    rank_part, suit_part = token[:-1], token[-1]
    symbols = {suit.symbol: suit for suit in Suit}
    suit = symbols.get(suit_part)
    if suit is None:
        try:
            suit = Suit(suit_part)
        except ValueError as exc:
            raise ValueError(f"invalid suit in card label: {text!r}") from exc
    try:
        rank = Rank(rank_part)
    except ValueError as exc:
        raise ValueError(f"invalid rank in card label: {text!r}") from exc
    return Card(rank=rank, suit=suit)
