"""State mutation rules for captures, trails, builds and turn flow.

Every function here validates first and mutates ``state`` in place only once
all checks pass, raising an :class:`~casino.errors.IllegalAction` subclass
otherwise.
"""

from __future__ import annotations

import logging
from typing import Final

from .actions import TargetInfo, TargetType
from .cards import Card
from .errors import InvalidBuild, InvalidBuildOverflow, MalformedTarget, NoValidAction, OutOfTurn, OwnershipViolation
from .segmentation import valid_build_values
from .state import Build, GameState, StagingStack, deal_next_round

__all__ = [
    "MIN_BUILD_CARDS",
    "require_turn",
    "take_from_hand",
    "holds_value",
    "trail_block_reason",
    "advance_turn",
    "finish_game",
    "capture",
    "trail",
    "create_build",
    "extend_build",
    "augment_build",
    "overtake_build",
]

logger = logging.getLogger(__name__)

MIN_BUILD_CARDS: Final = 2


def require_turn(state: GameState, player: int) -> None:
    """Raise unless ``player`` may act now."""

    if player not in (0, 1):
        raise OutOfTurn("invalid player index")
    if state.game_over:
        raise NoValidAction("game already finished")
    if player != state.current_player:
        raise OutOfTurn("not this player's turn")


def take_from_hand(state: GameState, player: int, card: Card) -> int:
    """Remove ``card`` from the player's hand and return its former index."""

    hand = state.hands[player]
    try:
        index = hand.index(card)
    except ValueError:
        raise MalformedTarget(f"{card} is not in player {player}'s hand") from None
    del hand[index]
    return index


def holds_value(state: GameState, player: int, value: int, exclude: Card | None = None) -> bool:
    """Return ``True`` when the player holds a card of ``value`` other than ``exclude``."""

    return any(card.value == value for card in state.hands[player] if card != exclude)


def _loose_index(state: GameState, card: Card) -> int:
    for idx, item in enumerate(state.table):
        if isinstance(item, Card) and item == card:
            return idx
    raise MalformedTarget(f"{card} is not a loose card on the table")


def _require_build(state: GameState, build_id: str | None) -> Build:
    build = state.find_build(build_id) if build_id is not None else None
    if build is None:
        raise MalformedTarget(f"unknown build {build_id!r}")
    return build


def _require_stack(state: GameState, stack_id: str | None) -> StagingStack:
    stack = state.find_stack(stack_id) if stack_id is not None else None
    if stack is None:
        raise MalformedTarget(f"unknown staging stack {stack_id!r}")
    return stack


def trail_block_reason(state: GameState, player: int, card: Card) -> str | None:
    """Explain why ``card`` cannot be trailed, or return ``None`` when it can."""

    if state.round_number == 1 and state.builds_owned_by(player):
        return "You cannot trail in round 1 while you own a build."
    if any(loose.value == card.value for loose in state.loose_cards()):
        return f"A loose card of value {card.value} is already on the table; capture it instead."
    return None


def advance_turn(state: GameState) -> None:
    """Pass the turn and, once both hands are empty, close the round.

    A player whose hand is empty while the opponent still holds cards is
    skipped, so the turn stays with the player who can still move.
    """

    for stack in state.staging_stacks():
        stack.hand_card_used = False
    state.current_player = 1 - state.current_player
    if any(state.hands):
        if not state.hands[state.current_player]:
            logger.info("player %d has no cards left; player %d plays again", state.current_player, state.opponent)
            state.current_player = state.opponent
        return
    if state.round_number < state.config.rounds:
        deal_next_round(state)
    else:
        finish_game(state)


def finish_game(state: GameState) -> None:
    """Sweep the table to the last capturer and mark the game finished."""

    if state.last_capturer is not None and state.table:
        pile = state.captures[state.last_capturer]
        for item in state.table:
            if isinstance(item, Card):
                pile.append(item)
            elif isinstance(item, Build):
                pile.extend(item.cards)
            else:
                pile.extend(staged.card for staged in item.cards)
        logger.info("player %d sweeps %d table item(s)", state.last_capturer, len(state.table))
        state.table.clear()
    state.game_over = True
    logger.info("game %s finished", state.game_id)


def capture(state: GameState, player: int, card: Card, target: TargetInfo) -> list[Card]:
    """Capture ``target`` with the hand ``card`` and return the captured cards."""

    require_turn(state, player)
    if card not in state.hands[player]:
        raise MalformedTarget(f"{card} is not in player {player}'s hand")

    if target.type is TargetType.LOOSE:
        if target.card is None:
            raise MalformedTarget("loose target without a card")
        index = _loose_index(state, target.card)
        if target.card.value != card.value:
            raise NoValidAction(f"{card} cannot capture {target.card}")
        taken = [target.card]
    elif target.type is TargetType.BUILD:
        build = _require_build(state, target.stack_id)
        if build.value != card.value:
            raise NoValidAction(f"{card} cannot capture a build of {build.value}")
        index = state.table_index(build)
        taken = list(build.cards)
    elif target.type is TargetType.TEMPORARY_STACK:
        stack = _require_stack(state, target.stack_id)
        if stack.owner != player:
            raise OwnershipViolation("cannot capture another player's staging stack")
        if not stack.is_valid:
            raise InvalidBuildOverflow("an overflowed staging stack can only be cancelled")
        if card.value not in valid_build_values(stack.values, stack.sources):
            raise InvalidBuild(f"{card} does not match the staging stack")
        index = state.table_index(stack)
        taken = [staged.card for staged in stack.cards]
    else:
        raise MalformedTarget(f"cannot capture a {target.type.value} target")

    take_from_hand(state, player, card)
    del state.table[index]
    captured = taken + [card]
    state.captures[player].extend(captured)
    state.last_capturer = player
    logger.info("player %d captured %s", player, " ".join(c.label() for c in captured))
    advance_turn(state)
    return captured


def trail(state: GameState, player: int, card: Card, *, enforce_restrictions: bool = True) -> None:
    """Place ``card`` on the table as a loose card."""

    require_turn(state, player)
    if card not in state.hands[player]:
        raise MalformedTarget(f"{card} is not in player {player}'s hand")
    reason = trail_block_reason(state, player, card)
    if reason is not None:
        if enforce_restrictions:
            raise NoValidAction(reason)
        logger.warning("forced trail of %s by player %d: %s", card, player, reason)
    take_from_hand(state, player, card)
    state.table.append(card)
    logger.info("player %d trailed %s", player, card)
    advance_turn(state)


def _build_block_reason(state: GameState, player: int, value: int, played: Card) -> str | None:
    if not 1 <= value <= state.config.max_build_value:
        return f"build value {value} is out of range"
    if not holds_value(state, player, value, exclude=played):
        return f"you need a {value} in hand to capture this build later"
    return None


def create_build(state: GameState, player: int, card: Card, target_card: Card, value: int) -> Build:
    """Play ``card`` onto a loose card, forming a new build owned by ``player``."""

    require_turn(state, player)
    if card not in state.hands[player]:
        raise MalformedTarget(f"{card} is not in player {player}'s hand")
    index = _loose_index(state, target_card)
    values = [target_card.value, card.value]
    if value not in valid_build_values(values):
        raise InvalidBuild(f"{target_card} and {card} cannot form a build of {value}")
    reason = _build_block_reason(state, player, value, card)
    if reason is not None:
        raise InvalidBuild(reason)
    if any(build.value == value and build.owner != player for build in state.builds()):
        raise InvalidBuild(f"your opponent already owns a build of {value}")

    take_from_hand(state, player, card)
    build = Build(
        build_id=state.allocate_id("build"),
        cards=[target_card, card],
        value=value,
        owner=player,
    )
    state.table[index] = build
    logger.info("player %d built %d from %s", player, value, " ".join(c.label() for c in build.cards))
    advance_turn(state)
    return build


def extend_build(state: GameState, player: int, card: Card, build_id: str, new_value: int) -> Build:
    """Raise a build's value by ``card``; ownership passes to the extender."""

    require_turn(state, player)
    if card not in state.hands[player]:
        raise MalformedTarget(f"{card} is not in player {player}'s hand")
    build = _require_build(state, build_id)
    if not build.is_extendable or len(build.cards) >= state.config.max_build_cards:
        raise InvalidBuild("this build can no longer be extended")
    if card.value == build.value:
        raise InvalidBuild("a card of the build's own value reinforces rather than extends")
    if new_value != build.value + card.value:
        raise InvalidBuild(f"extending {build.value} with {card} does not give {new_value}")
    reason = _build_block_reason(state, player, new_value, card)
    if reason is not None:
        raise InvalidBuild(reason)

    take_from_hand(state, player, card)
    previous_owner = build.owner
    build.cards.append(card)
    build.value = new_value
    build.owner = player
    build.is_extendable = len(build.cards) < state.config.max_build_cards
    logger.info("player %d extended build %s to %d (was owned by %d)", player, build_id, new_value, previous_owner)
    advance_turn(state)
    return build


def augment_build(
    state: GameState,
    player: int,
    build_id: str,
    cards: list[Card],
    *,
    from_hand: bool = True,
) -> Build:
    """Add ``cards`` totalling the build value to the player's own build."""

    require_turn(state, player)
    build = _require_build(state, build_id)
    if build.owner != player:
        raise OwnershipViolation("only the owner can augment a build")
    if sum(card.value for card in cards) != build.value:
        raise InvalidBuild(f"augmenting cards must total {build.value}")
    if from_hand:
        missing = [card for card in cards if card not in state.hands[player]]
        if missing:
            raise MalformedTarget(f"{missing[0]} is not in player {player}'s hand")
        remaining = [card for card in state.hands[player] if card not in cards]
        if not any(card.value == build.value for card in remaining):
            raise InvalidBuild(f"you need another {build.value} in hand to capture this build later")
        for card in cards:
            take_from_hand(state, player, card)
    build.cards.extend(cards)
    logger.info("player %d reinforced build %s (%d)", player, build_id, build.value)
    advance_turn(state)
    return build


def overtake_build(state: GameState, player: int, card: Card, build_id: str, own_build_id: str) -> list[Card]:
    """Capture the opponent's build ``build_id`` together with the player's own build of equal value.

    ``card`` must match the shared value. Both builds leave the table and
    the turn passes.
    """

    require_turn(state, player)
    if card not in state.hands[player]:
        raise MalformedTarget(f"{card} is not in player {player}'s hand")
    target = _require_build(state, build_id)
    own = _require_build(state, own_build_id)
    if target.owner == player:
        raise OwnershipViolation("only an opponent's build can be overtaken")
    if own.owner != player:
        raise OwnershipViolation("the overtaking build must be your own")
    if not target.value == own.value == card.value:
        raise InvalidBuild(f"{card} cannot overtake a build of {target.value} with a build of {own.value}")

    take_from_hand(state, player, card)
    state.table.remove(target)
    state.table.remove(own)
    captured = list(target.cards) + list(own.cards) + [card]
    state.captures[player].extend(captured)
    state.last_capturer = player
    logger.info("player %d overtook build %s with %s", player, build_id, own_build_id)
    advance_turn(state)
    return captured
