"""Apply engine actions and resolve drops end to end."""

from __future__ import annotations

import logging

from . import rules, staging
from .actions import (
    Action,
    AddToStagingStackAction,
    BuildAugmentAction,
    BuildCreateAction,
    BuildExtendAction,
    BuildOvertakeAction,
    CancelStagingStackAction,
    CaptureAction,
    CreateStagingStackAction,
    Decision,
    DraggedItem,
    FinalizeStagingStackAction,
    TargetInfo,
    TrailAction,
)
from .determine import determine_actions
from .registry import RuleRegistry
from .state import GameState

__all__ = ["apply_action_in_place", "apply_action", "resolve_drop"]

logger = logging.getLogger(__name__)


def apply_action_in_place(state: GameState, action: Action) -> None:
    """Apply ``action`` to ``state`` using the rules engine."""

    if isinstance(action, CaptureAction):
        rules.capture(state, action.player, action.card, action.target)
    elif isinstance(action, TrailAction):
        rules.trail(state, action.player, action.card)
    elif isinstance(action, BuildCreateAction):
        rules.create_build(state, action.player, action.card, action.target_card, action.value)
    elif isinstance(action, BuildExtendAction):
        rules.extend_build(state, action.player, action.card, action.build_id, action.new_value)
    elif isinstance(action, BuildAugmentAction):
        rules.augment_build(state, action.player, action.build_id, [action.card])
    elif isinstance(action, BuildOvertakeAction):
        rules.overtake_build(state, action.player, action.card, action.build_id, action.own_build_id)
    elif isinstance(action, CreateStagingStackAction):
        staging.create_staging_stack(state, action.player, action.card, action.source, action.target_card)
    elif isinstance(action, AddToStagingStackAction):
        staging.add_to_staging_stack(state, action.player, action.card, action.source, action.stack_id)
    elif isinstance(action, FinalizeStagingStackAction):
        staging.finalize_staging_stack(
            state,
            action.player,
            action.stack_id,
            build_value=action.build_value,
            capture_card=action.capture_card,
            target_build_id=action.target_build_id,
        )
    elif isinstance(action, CancelStagingStackAction):
        staging.cancel_staging_stack(state, action.player, action.stack_id)
    else:  # pragma: no cover - exhaustive union
        raise ValueError(f"Unknown action {action!r}")


def apply_action(state: GameState, action: Action) -> GameState:
    """Return the state that results from ``action``; ``state`` itself is untouched.

    A failing action raises and leaves no partial mutation behind.
    """

    updated = state.clone()
    apply_action_in_place(updated, action)
    logger.debug("applied %s for player %d", action.type.value, action.player)
    return updated


def resolve_drop(
    state: GameState,
    dragged: DraggedItem,
    target: TargetInfo,
    registry: RuleRegistry | None = None,
) -> tuple[GameState, Decision]:
    """Determine the meaning of a drop and apply it when it needs no choice."""

    decision = determine_actions(dragged, target, state, registry)
    action = decision.auto_action
    if action is None:
        return state, decision
    return apply_action(state, action), decision
