"""Action determination pipeline.

Turns a drop (dragged card plus target) into a :class:`~casino.actions.Decision`.
Evaluation is a pure read of the game state; every problem is reported as
data on the decision instead of being raised.
"""

from __future__ import annotations

import logging
from typing import Iterator

from .actions import (
    ActionType,
    AddToStagingStackAction,
    CreateStagingStackAction,
    Decision,
    DraggedItem,
    TargetInfo,
    TargetType,
)
from .cards import Card, CardSource
from .errors import ErrorKind, MalformedTarget
from .registry import RuleContext, RuleRegistry
from .rules import trail_block_reason
from .rulesets import default_registry
from .staging import HAND_CARD_LIMIT_MESSAGE
from .state import GameState

__all__ = ["resolve_context", "determine_actions", "iter_drops"]

logger = logging.getLogger(__name__)


def _check_dragged(dragged: DraggedItem, state: GameState) -> None:
    card = dragged.card
    if dragged.source is CardSource.HAND:
        if card not in state.hands[dragged.player]:
            raise MalformedTarget(f"{card} is not in your hand")
    elif dragged.source is CardSource.TABLE:
        if card not in state.loose_cards():
            raise MalformedTarget(f"{card} is not a loose card on the table")
    elif dragged.source is CardSource.CAPTURED:
        pile = state.captures[1 - dragged.player]
        if not pile or pile[-1] != card:
            raise MalformedTarget(f"{card} is not on top of your opponent's captures")


def resolve_context(dragged: DraggedItem, target: TargetInfo, state: GameState) -> RuleContext:
    """Look up the dragged card and target in ``state``.

    Raises :class:`MalformedTarget` when either cannot be found.
    """

    _check_dragged(dragged, state)
    if target.type is TargetType.LOOSE:
        if target.card is None or target.card not in state.loose_cards():
            raise MalformedTarget("target card is not loose on the table")
        if target.card == dragged.card:
            raise MalformedTarget("a card cannot be dropped on itself")
        return RuleContext(dragged, target, state, target_card=target.card)
    if target.type is TargetType.BUILD:
        build = state.find_build(target.stack_id) if target.stack_id else None
        if build is None:
            raise MalformedTarget(f"unknown build {target.stack_id!r}")
        return RuleContext(dragged, target, state, target_build=build)
    if target.type is TargetType.TEMPORARY_STACK:
        stack = state.find_stack(target.stack_id) if target.stack_id else None
        if stack is None:
            raise MalformedTarget(f"unknown staging stack {target.stack_id!r}")
        return RuleContext(dragged, target, state, target_stack=stack)
    return RuleContext(dragged, target, state)


def _table_drop(ctx: RuleContext) -> Decision:
    """Table-to-table moves only ever stage cards."""

    if ctx.target.type is TargetType.LOOSE:
        if ctx.state.stack_for_player(ctx.player) is not None:
            return Decision.error(ErrorKind.STACK_LIMIT_EXCEEDED, "You can only have one staging stack at a time.")
        action = CreateStagingStackAction(ctx.player, ctx.card, CardSource.TABLE, ctx.target_card)
        return Decision(actions=(action,))
    if ctx.target.type is TargetType.TEMPORARY_STACK:
        if ctx.target_stack.owner != ctx.player:
            return Decision.error(ErrorKind.OWNERSHIP_VIOLATION, "That staging stack belongs to your opponent.")
        action = AddToStagingStackAction(ctx.player, ctx.card, CardSource.TABLE, ctx.target_stack.stack_id)
        return Decision(actions=(action,))
    return Decision.error(ErrorKind.NO_VALID_ACTION, "Invalid table card drop target")


def _explain_no_action(ctx: RuleContext) -> Decision:
    target_type = ctx.target.type
    if target_type is TargetType.TEMPORARY_STACK and ctx.target_stack.owner != ctx.player:
        return Decision.error(ErrorKind.OWNERSHIP_VIOLATION, "That staging stack belongs to your opponent.")
    if target_type is TargetType.TEMPORARY_STACK and ctx.target_stack.hand_card_used:
        return Decision.error(ErrorKind.NO_VALID_ACTION, HAND_CARD_LIMIT_MESSAGE)
    if target_type is TargetType.LOOSE and ctx.state.stack_for_player(ctx.player) is not None:
        return Decision.error(ErrorKind.STACK_LIMIT_EXCEEDED, "You can only have one staging stack at a time.")
    if target_type is TargetType.TABLE and ctx.dragged.source is CardSource.HAND:
        reason = trail_block_reason(ctx.state, ctx.player, ctx.card)
        if reason is not None:
            return Decision.error(ErrorKind.NO_VALID_ACTION, reason)
    return Decision.error(ErrorKind.NO_VALID_ACTION, "No valid action for this move.")


def _duplicate_loose(state: GameState, target: Card) -> bool:
    return any(card != target and card.rank == target.rank for card in state.loose_cards())


def _card_drop(ctx: RuleContext, registry: RuleRegistry) -> Decision:
    evaluation = registry.evaluate(ctx)
    actions = evaluation.actions
    if not actions:
        return _explain_no_action(ctx)

    if len(actions) > 1:
        return Decision(actions=actions, requires_modal=True)

    action = actions[0]
    if action.type is ActionType.TRAIL:
        return Decision(actions=actions, requires_modal=True)
    if (
        action.type is ActionType.CAPTURE
        and ctx.target.type is TargetType.LOOSE
        and _duplicate_loose(ctx.state, ctx.target_card)
    ):
        return Decision.error(
            ErrorKind.AMBIGUOUS_CAPTURE,
            f"More than one loose {ctx.target_card.rank.value} is on the table; stack them before capturing.",
        )
    return Decision(actions=actions, requires_modal=evaluation.requires_modal)


def determine_actions(
    dragged: DraggedItem,
    target: TargetInfo,
    state: GameState,
    registry: RuleRegistry | None = None,
) -> Decision:
    """Decide what dropping ``dragged`` on ``target`` means in ``state``."""

    if state.game_over:
        return Decision.error(ErrorKind.NO_VALID_ACTION, "The game is over.")
    if dragged.player != state.current_player:
        return Decision.error(ErrorKind.OUT_OF_TURN, "It is not your turn.")
    try:
        ctx = resolve_context(dragged, target, state)
    except MalformedTarget as exc:
        return Decision.error(ErrorKind.MALFORMED_TARGET, str(exc))

    if dragged.source is CardSource.TABLE:
        decision = _table_drop(ctx)
    else:
        decision = _card_drop(ctx, registry if registry is not None else default_registry())
    if decision.is_error:
        logger.debug("drop of %s on %s rejected: %s", dragged.card, target.type.value, decision.error_message)
    return decision


def iter_drops(state: GameState, player: int) -> Iterator[tuple[DraggedItem, TargetInfo]]:
    """Yield every (dragged, target) pair a player could try with a hand card."""

    stack = state.stack_for_player(player)
    for card in state.hands[player]:
        dragged = DraggedItem(card, CardSource.HAND, player)
        for loose in state.loose_cards():
            yield dragged, TargetInfo.loose(loose)
        for build in state.builds():
            yield dragged, TargetInfo.build(build.build_id)
        if stack is not None:
            yield dragged, TargetInfo.staging(stack.stack_id)
        yield dragged, TargetInfo.empty_table()
