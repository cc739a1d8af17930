"""Lifecycle of staging (temporary) stacks.

A stack is created from a loose card plus a dragged card, grows as the
owner drops more cards on it, and ends either finalized into a build or a
capture, or cancelled with every card returned to where it came from.
"""

from __future__ import annotations

import logging
from typing import Final

from .actions import TargetInfo
from .cards import Card, CardSource
from .errors import (
    InvalidBuild,
    InvalidBuildOverflow,
    MalformedTarget,
    NoValidAction,
    OwnershipViolation,
    StackLimitExceeded,
)
from .rules import MIN_BUILD_CARDS, advance_turn, capture, holds_value, require_turn, take_from_hand
from .segmentation import detect_build_type, initialize_build_calculator, update_build_calculator, valid_build_values
from .state import Build, GameState, StagedCard, StagingStack

__all__ = [
    "HAND_CARD_LIMIT_MESSAGE",
    "create_staging_stack",
    "add_to_staging_stack",
    "finalize_staging_stack",
    "cancel_staging_stack",
]

logger = logging.getLogger(__name__)

HAND_CARD_LIMIT_MESSAGE: Final = "You can only add one card from your hand to a staging stack per turn."


def _loose_index(state: GameState, card: Card) -> int:
    for idx, item in enumerate(state.table):
        if isinstance(item, Card) and item == card:
            return idx
    raise MalformedTarget(f"{card} is not a loose card on the table")


def _check_origin(state: GameState, player: int, card: Card, source: CardSource) -> None:
    if source is CardSource.HAND:
        if card not in state.hands[player]:
            raise MalformedTarget(f"{card} is not in player {player}'s hand")
    elif source is CardSource.TABLE:
        _loose_index(state, card)
    elif source is CardSource.CAPTURED:
        pile = state.captures[1 - player]
        if not pile or pile[-1] != card:
            raise MalformedTarget(f"{card} is not on top of the opponent's capture pile")
    else:  # pragma: no cover - exhaustive enum
        raise MalformedTarget(f"unsupported source {source!r}")


def _detach(state: GameState, player: int, card: Card, source: CardSource) -> StagedCard:
    """Remove ``card`` from its origin and remember where it was."""

    if source is CardSource.HAND:
        index = take_from_hand(state, player, card)
        return StagedCard(card, source, original_index=index, origin_player=player)
    if source is CardSource.TABLE:
        index = _loose_index(state, card)
        del state.table[index]
        return StagedCard(card, source, original_index=index)
    opponent = 1 - player
    state.captures[opponent].pop()
    return StagedCard(card, source, origin_player=opponent)


def _require_owned_stack(state: GameState, player: int, stack_id: str) -> StagingStack:
    stack = state.find_stack(stack_id)
    if stack is None:
        raise MalformedTarget(f"unknown staging stack {stack_id!r}")
    if stack.owner != player:
        raise OwnershipViolation("this staging stack belongs to the other player")
    return stack


def create_staging_stack(
    state: GameState,
    player: int,
    card: Card,
    source: CardSource,
    target_card: Card,
) -> StagingStack:
    """Start a staging stack on ``target_card``; the turn does not pass."""

    require_turn(state, player)
    if state.stack_for_player(player) is not None:
        raise StackLimitExceeded("You can only have one staging stack at a time.")
    if card == target_card:
        raise MalformedTarget("a card cannot be staged onto itself")
    target_index = _loose_index(state, target_card)
    _check_origin(state, player, card, source)

    stack = StagingStack(
        stack_id=state.allocate_id("stack"),
        owner=player,
        cards=[StagedCard(target_card, CardSource.TABLE, original_index=target_index)],
    )
    # The stack takes the target's slot before the dragged card leaves its
    # origin so recorded table indices refer to a table holding the stack.
    state.table[target_index] = stack
    stack.cards.append(_detach(state, player, card, source))
    stack.hand_card_used = source is CardSource.HAND
    stack.progress = initialize_build_calculator(stack.values)
    logger.debug("player %d staged %s on %s (%s)", player, card, target_card, stack.progress.display_value)
    return stack


def add_to_staging_stack(
    state: GameState,
    player: int,
    card: Card,
    source: CardSource,
    stack_id: str,
) -> StagingStack:
    """Append ``card`` to the player's stack and update its live build metrics."""

    require_turn(state, player)
    stack = _require_owned_stack(state, player, stack_id)
    if source is CardSource.HAND and stack.hand_card_used:
        raise NoValidAction(HAND_CARD_LIMIT_MESSAGE)
    _check_origin(state, player, card, source)
    stack.cards.append(_detach(state, player, card, source))
    if source is CardSource.HAND:
        stack.hand_card_used = True
    stack.progress = update_build_calculator(stack.progress, stack.values)
    if not stack.is_valid:
        logger.debug("staging stack %s overflowed: %s", stack_id, stack.values)
    return stack


def _hand_staged(stack: StagingStack) -> list[StagedCard]:
    return [staged for staged in stack.cards if staged.source is CardSource.HAND]


def finalize_staging_stack(
    state: GameState,
    player: int,
    stack_id: str,
    build_value: int | None = None,
    capture_card: Card | None = None,
    target_build_id: str | None = None,
) -> Build | list[Card]:
    """Commit the stack after strict re-validation and pass the turn.

    ``build_value`` is a suggestion; it must match a value re-derived from
    the staged cards and their sources. Nothing is mutated when a check
    fails.
    """

    stack = _require_owned_stack(state, player, stack_id)
    require_turn(state, player)
    if not stack.is_valid:
        raise InvalidBuildOverflow("an overflowed staging stack can only be cancelled")
    if len(stack.cards) < MIN_BUILD_CARDS:
        raise InvalidBuild("a staging stack needs at least two cards")

    options = valid_build_values(stack.values, stack.sources)

    if capture_card is not None:
        if capture_card.value not in options:
            raise InvalidBuild(f"{capture_card} cannot capture this staging stack")
        return capture(state, player, capture_card, TargetInfo.staging(stack_id))

    if not _hand_staged(stack):
        raise InvalidBuild("a build must include at least one card from your hand")

    if target_build_id is not None:
        return _merge_into_build(state, player, stack, target_build_id, options)

    if build_value is None:
        detection = detect_build_type(stack.values, stack.sources)
        if detection is None:
            raise InvalidBuild("these cards do not form a build")
        build_value = detection.build_value
    if build_value not in options:
        raise InvalidBuild(f"these cards do not form a build of {build_value}")
    if not holds_value(state, player, build_value):
        raise InvalidBuild(f"you need a {build_value} in hand to capture this build later")
    if any(build.value == build_value and build.owner != player for build in state.builds()):
        raise InvalidBuild(f"your opponent already owns a build of {build_value}")

    index = state.table_index(stack)
    build = Build(
        build_id=state.allocate_id("build"),
        cards=[staged.card for staged in stack.cards],
        value=build_value,
        owner=player,
        is_extendable=len(stack.cards) < state.config.max_build_cards,
    )
    state.table[index] = build
    logger.info("player %d finalized %s into a build of %d", player, stack_id, build_value)
    advance_turn(state)
    return build


def _merge_into_build(
    state: GameState,
    player: int,
    stack: StagingStack,
    build_id: str,
    options: tuple[int, ...],
) -> Build:
    build = state.find_build(build_id)
    if build is None:
        raise MalformedTarget(f"unknown build {build_id!r}")
    if build.owner != player:
        raise OwnershipViolation("only the owner can augment a build")
    if build.value not in options:
        raise InvalidBuild(f"these cards do not add up to {build.value}")
    if not holds_value(state, player, build.value):
        raise InvalidBuild(f"you need a {build.value} in hand to capture this build later")

    state.table.remove(stack)
    build.cards.extend(staged.card for staged in stack.cards)
    logger.info("player %d augmented build %s with %s", player, build_id, stack.stack_id)
    advance_turn(state)
    return build


def cancel_staging_stack(state: GameState, player: int, stack_id: str) -> list[Card]:
    """Return every staged card to its recorded origin; the turn does not pass."""

    stack = _require_owned_stack(state, player, stack_id)
    require_turn(state, player)
    restored: list[Card] = []
    for position, staged in reversed(list(enumerate(stack.cards))):
        if staged.source is CardSource.TABLE:
            if position == 0:
                state.table[state.table_index(stack)] = staged.card
            else:
                index = min(staged.original_index or 0, len(state.table))
                state.table.insert(index, staged.card)
        elif staged.source is CardSource.HAND:
            hand = state.hands[staged.origin_player]
            hand.insert(min(staged.original_index or 0, len(hand)), staged.card)
        else:
            state.captures[staged.origin_player].append(staged.card)
        restored.append(staged.card)
    if stack in state.table:
        state.table.remove(stack)
    logger.debug("player %d cancelled %s", player, stack_id)
    return restored
