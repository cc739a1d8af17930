"""Core game state data structures for the casino engine."""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence, Union

from .cards import DECK_SIZE, Card, CardSource, iter_full_deck
from .segmentation import BuildProgress

__all__ = [
    "CardSource",
    "CasinoConfig",
    "Build",
    "StagedCard",
    "StagingStack",
    "TableItem",
    "GameState",
    "shuffled_deck",
    "new_game_state",
    "deal_new_game",
    "deal_next_round",
]

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CasinoConfig:
    """Runtime configuration for a single casino game."""

    num_players: int = 2
    hand_size: int = 10
    rounds: int = 2
    max_build_value: int = 10
    max_build_cards: int = 5
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.num_players != 2:
            raise ValueError("casino is played by exactly two players")
        if self.hand_size <= 0:
            raise ValueError("hand_size must be positive")
        if self.rounds <= 0:
            raise ValueError("rounds must be positive")
        if self.num_players * self.hand_size * self.rounds > DECK_SIZE:
            raise ValueError("deck cannot cover the configured deals")
        if not 1 <= self.max_build_value <= 10:
            raise ValueError("max_build_value must lie in 1..10")
        if self.max_build_cards < 2:
            raise ValueError("max_build_cards must allow at least two cards")


@dataclass(slots=True)
class Build:
    """Committed, owned combination of cards with a fixed capture value."""

    build_id: str
    cards: list[Card]
    value: int
    owner: int
    is_extendable: bool = True

    def copy(self) -> "Build":
        return Build(
            build_id=self.build_id,
            cards=list(self.cards),
            value=self.value,
            owner=self.owner,
            is_extendable=self.is_extendable,
        )


@dataclass(frozen=True, slots=True)
class StagedCard:
    """A card inside a staging stack together with where it came from.

    ``original_index`` is the hand or table position the card left; cards
    taken from a capture pile always return to the top of that pile.
    ``origin_player`` names the hand or capture pile owner.
    """

    card: Card
    source: CardSource
    original_index: int | None = None
    origin_player: int | None = None


@dataclass(slots=True)
class StagingStack:
    """In-progress accumulation of cards owned by one player.

    ``hand_card_used`` is set once the owner stages a hand card and cleared
    whenever the turn passes.
    """

    stack_id: str
    owner: int
    cards: list[StagedCard]
    progress: BuildProgress = field(default_factory=BuildProgress)
    hand_card_used: bool = False

    @property
    def values(self) -> list[int]:
        return [staged.card.value for staged in self.cards]

    @property
    def sources(self) -> list[CardSource]:
        return [staged.source for staged in self.cards]

    @property
    def total(self) -> int:
        return sum(self.values)

    @property
    def display_value(self) -> int | str:
        return self.progress.display_value

    @property
    def build_value(self) -> int | None:
        return self.progress.build_value

    @property
    def is_valid(self) -> bool:
        return self.progress.is_valid

    @property
    def is_building(self) -> bool:
        return self.progress.is_building

    def copy(self) -> "StagingStack":
        return StagingStack(
            stack_id=self.stack_id,
            owner=self.owner,
            cards=list(self.cards),
            progress=self.progress,
            hand_card_used=self.hand_card_used,
        )


TableItem = Union[Card, Build, StagingStack]


def _copy_item(item: TableItem) -> TableItem:
    if isinstance(item, Card):
        return item
    return item.copy()


def _cards_in(item: TableItem) -> list[Card]:
    if isinstance(item, Card):
        return [item]
    if isinstance(item, Build):
        return list(item.cards)
    return [staged.card for staged in item.cards]


@dataclass(slots=True)
class GameState:
    """Authoritative state of one two-player game."""

    config: CasinoConfig
    hands: list[list[Card]]
    table: list[TableItem] = field(default_factory=list)
    captures: list[list[Card]] = field(default_factory=lambda: [[], []])
    deck: list[Card] = field(default_factory=list)
    current_player: int = 0
    round_number: int = 1
    game_id: str = ""
    last_capturer: int | None = None
    game_over: bool = False
    next_item_id: int = 1

    def clone(self) -> "GameState":
        """Return a copy whose lists, builds and stacks can be mutated independently."""

        return GameState(
            config=self.config,
            hands=[list(hand) for hand in self.hands],
            table=[_copy_item(item) for item in self.table],
            captures=[list(pile) for pile in self.captures],
            deck=list(self.deck),
            current_player=self.current_player,
            round_number=self.round_number,
            game_id=self.game_id,
            last_capturer=self.last_capturer,
            game_over=self.game_over,
            next_item_id=self.next_item_id,
        )

    @property
    def opponent(self) -> int:
        return 1 - self.current_player

    def allocate_id(self, prefix: str) -> str:
        """Return a fresh identifier for a build or staging stack."""

        item_id = f"{prefix}-{self.next_item_id}"
        self.next_item_id += 1
        return item_id

    def loose_cards(self) -> list[Card]:
        return [item for item in self.table if isinstance(item, Card)]

    def builds(self) -> list[Build]:
        return [item for item in self.table if isinstance(item, Build)]

    def staging_stacks(self) -> list[StagingStack]:
        return [item for item in self.table if isinstance(item, StagingStack)]

    def find_build(self, build_id: str) -> Build | None:
        for build in self.builds():
            if build.build_id == build_id:
                return build
        return None

    def find_stack(self, stack_id: str) -> StagingStack | None:
        for stack in self.staging_stacks():
            if stack.stack_id == stack_id:
                return stack
        return None

    def stack_for_player(self, player: int) -> StagingStack | None:
        for stack in self.staging_stacks():
            if stack.owner == player:
                return stack
        return None

    def builds_owned_by(self, player: int) -> list[Build]:
        return [build for build in self.builds() if build.owner == player]

    def table_index(self, item: TableItem) -> int:
        """Return the table position of ``item`` compared by identity for builds and stacks."""

        for idx, candidate in enumerate(self.table):
            if isinstance(item, Card):
                if candidate == item:
                    return idx
            elif candidate is item:
                return idx
        raise ValueError(f"{item!r} is not on the table")

    def iter_cards(self) -> Iterator[Card]:
        """Yield every card in the game, including undealt ones."""

        for hand in self.hands:
            yield from hand
        for item in self.table:
            yield from _cards_in(item)
        for pile in self.captures:
            yield from pile
        yield from self.deck

    def card_count(self) -> int:
        return sum(1 for _ in self.iter_cards())

    def is_conserved(self) -> bool:
        """Return ``True`` when every deck card is present exactly once."""

        cards = list(self.iter_cards())
        return len(cards) == DECK_SIZE and set(cards) == set(iter_full_deck())


def shuffled_deck(seed: int | None = None, rng: random.Random | None = None) -> list[Card]:
    """Return a freshly shuffled forty card deck."""

    generator = rng if rng is not None else random.Random(seed)
    deck = list(iter_full_deck())
    generator.shuffle(deck)
    return deck


def new_game_state(config: CasinoConfig, deck: Sequence[Card], game_id: str | None = None) -> GameState:
    """Create a state with empty hands and ``deck`` as the draw pile."""

    return GameState(
        config=config,
        hands=[[] for _ in range(config.num_players)],
        deck=list(deck),
        game_id=game_id or uuid.uuid4().hex[:12],
    )


def _deal_round(game_state: GameState) -> None:
    config = game_state.config
    needed = config.num_players * config.hand_size
    if len(game_state.deck) < needed:
        raise ValueError("insufficient cards to deal requested hands")
    for _ in range(config.hand_size):
        for player in range(config.num_players):
            game_state.hands[player].append(game_state.deck.pop(0))


def deal_new_game(
    config: CasinoConfig,
    deck: Iterable[Card] | None = None,
    game_id: str | None = None,
) -> GameState:
    """Deal round one and return the resulting :class:`GameState`."""

    cards = list(deck) if deck is not None else shuffled_deck(config.seed)
    game_state = new_game_state(config, cards, game_id)
    _deal_round(game_state)
    logger.info("dealt game %s: %d card(s) left in deck", game_state.game_id, len(game_state.deck))
    return game_state


def deal_next_round(game_state: GameState) -> None:
    """Deal the next round's hands in place and hand the lead to player 0."""

    if any(game_state.hands):
        raise ValueError("cannot deal while players still hold cards")
    _deal_round(game_state)
    game_state.round_number += 1
    game_state.current_player = 0
    logger.info("dealt round %d for game %s", game_state.round_number, game_state.game_id)
