"""Default rule table for hand and capture-pile drops."""

from __future__ import annotations

from typing import Final

from .actions import (
    Action,
    AddToStagingStackAction,
    BuildAugmentAction,
    BuildCreateAction,
    BuildExtendAction,
    BuildOvertakeAction,
    CaptureAction,
    CreateStagingStackAction,
    TargetType,
    TrailAction,
)
from .cards import CardSource
from .registry import Rule, RuleCategory, RuleContext, RuleRegistry
from .rules import trail_block_reason
from .segmentation import is_same_value
from .state import Build

__all__ = [
    "SAME_VALUE_AUTO_CAPTURE",
    "LOOSE_CARD_OPTIONS",
    "SINGLE_CARD_CAPTURE",
    "BUILD_CAPTURE",
    "BUILD_OVERTAKE",
    "TEMP_STACK_CAPTURE",
    "OWN_BUILD_AUGMENTATION",
    "CREATE_OWN_BUILD",
    "EXTEND_OWN_BUILD",
    "EXTEND_OPPONENT_BUILD",
    "STAGING_CREATION",
    "TEMP_STACK_ADDITION",
    "TRAIL",
    "SUM_BUILD_CARD_LIMIT",
    "default_rules",
    "default_registry",
]

# Hand cards above this value never offer a doubled-sum build from the options modal.
SUM_BUILD_CARD_LIMIT: Final = 5


def _from_hand(ctx: RuleContext) -> bool:
    return ctx.dragged.source is CardSource.HAND


def _on_loose(ctx: RuleContext) -> bool:
    return ctx.target.type is TargetType.LOOSE and ctx.target_card is not None


def _on_build(ctx: RuleContext) -> bool:
    return ctx.target.type is TargetType.BUILD and ctx.target_build is not None


def _on_stack(ctx: RuleContext) -> bool:
    return ctx.target.type is TargetType.TEMPORARY_STACK and ctx.target_stack is not None


def _on_own_stack(ctx: RuleContext) -> bool:
    return _on_stack(ctx) and ctx.target_stack.owner == ctx.player


def _max_value(ctx: RuleContext) -> int:
    return ctx.state.config.max_build_value


def _opponent_has_build_value(ctx: RuleContext, value: int) -> bool:
    return any(build.value == value for build in ctx.state.builds() if build.owner != ctx.player)


def _loose_build_options(ctx: RuleContext) -> list[Action]:
    """Builds a same-value hand card could form with the loose target."""

    value = ctx.card.value
    options: list[Action] = []
    if ctx.holds_value(value) and not _opponent_has_build_value(ctx, value):
        options.append(
            BuildCreateAction(ctx.player, ctx.card, ctx.target_card, value=value, kind="same_value")
        )
    doubled = value * 2
    if (
        value <= SUM_BUILD_CARD_LIMIT
        and doubled <= _max_value(ctx)
        and ctx.holds_value(doubled)
        and not _opponent_has_build_value(ctx, doubled)
    ):
        options.append(BuildCreateAction(ctx.player, ctx.card, ctx.target_card, value=doubled, kind="sum"))
    return options


def _stack_can_build(ctx: RuleContext) -> bool:
    value = ctx.card.value
    if ctx.holds_value(value):
        return True
    total = value * (len(ctx.target_stack.cards) + 1)
    return value <= SUM_BUILD_CARD_LIMIT and total <= _max_value(ctx) and ctx.holds_value(total)


def _same_value_loose(ctx: RuleContext) -> bool:
    return _from_hand(ctx) and _on_loose(ctx) and ctx.card.value == ctx.target_card.value


def _same_value_stack(ctx: RuleContext) -> bool:
    if not (_from_hand(ctx) and _on_own_stack(ctx)):
        return False
    stack = ctx.target_stack
    return stack.is_valid and is_same_value(stack.values) and stack.values[0] == ctx.card.value


def _capture_target(ctx: RuleContext, capture_type: str, value: int) -> list[Action]:
    return [CaptureAction(ctx.player, ctx.card, ctx.target, value=value, capture_type=capture_type)]


# -- capture category ---------------------------------------------------------


def _auto_capture_condition(ctx: RuleContext) -> bool:
    if _same_value_loose(ctx):
        return not _loose_build_options(ctx)
    if _same_value_stack(ctx):
        return not _stack_can_build(ctx)
    return False


SAME_VALUE_AUTO_CAPTURE = Rule(
    rule_id="same-value-auto-capture",
    priority=210,
    category=RuleCategory.CAPTURE,
    condition=_auto_capture_condition,
    build=lambda ctx: _capture_target(ctx, "same_value_auto", ctx.card.value),
    exclusive=True,
)


LOOSE_CARD_OPTIONS = Rule(
    rule_id="loose-card-strategic-options",
    priority=205,
    category=RuleCategory.CAPTURE,
    condition=lambda ctx: _same_value_loose(ctx) and bool(_loose_build_options(ctx)),
    build=lambda ctx: _capture_target(ctx, "single", ctx.card.value) + _loose_build_options(ctx),
    requires_modal=True,
)


SINGLE_CARD_CAPTURE = Rule(
    rule_id="single-card-capture",
    priority=200,
    category=RuleCategory.CAPTURE,
    condition=_same_value_loose,
    build=lambda ctx: _capture_target(ctx, "single", ctx.card.value),
)


BUILD_CAPTURE = Rule(
    rule_id="build-capture",
    priority=45,
    category=RuleCategory.CAPTURE,
    condition=lambda ctx: _from_hand(ctx) and _on_build(ctx) and ctx.card.value == ctx.target_build.value,
    build=lambda ctx: _capture_target(ctx, "build", ctx.target_build.value),
)


def _stack_capture_condition(ctx: RuleContext) -> bool:
    if not (_from_hand(ctx) and _on_own_stack(ctx)):
        return False
    stack = ctx.target_stack
    if not stack.is_valid or stack.is_building:
        return False
    return stack.display_value == ctx.card.value


TEMP_STACK_CAPTURE = Rule(
    rule_id="temp-stack-capture",
    priority=40,
    category=RuleCategory.CAPTURE,
    condition=_stack_capture_condition,
    build=lambda ctx: _capture_target(ctx, "temp_stack", ctx.card.value),
)


def _overtaking_build(ctx: RuleContext) -> Build | None:
    if not (_from_hand(ctx) and _on_build(ctx)):
        return None
    target = ctx.target_build
    if target.owner == ctx.player or ctx.card.value != target.value:
        return None
    for build in ctx.state.builds_owned_by(ctx.player):
        if build.value == target.value:
            return build
    return None


def _overtake(ctx: RuleContext) -> list[Action]:
    own = _overtaking_build(ctx)
    return [BuildOvertakeAction(ctx.player, ctx.card, ctx.target_build.build_id, own.build_id)]


BUILD_OVERTAKE = Rule(
    rule_id="build-overtake",
    priority=50,
    category=RuleCategory.CAPTURE,
    condition=lambda ctx: _overtaking_build(ctx) is not None,
    build=_overtake,
)


# -- build category -----------------------------------------------------------


def _augment_condition(ctx: RuleContext) -> bool:
    if not (_from_hand(ctx) and _on_build(ctx)):
        return False
    build = ctx.target_build
    return build.owner == ctx.player and ctx.card.value == build.value and ctx.holds_value(build.value)


OWN_BUILD_AUGMENTATION = Rule(
    rule_id="own-build-augmentation",
    priority=40,
    category=RuleCategory.BUILD,
    condition=_augment_condition,
    build=lambda ctx: [BuildAugmentAction(ctx.player, ctx.card, ctx.target_build.build_id)],
)


def _create_value(ctx: RuleContext) -> int:
    return ctx.card.value + ctx.target_card.value


def _create_condition(ctx: RuleContext) -> bool:
    if not (_from_hand(ctx) and _on_loose(ctx)):
        return False
    if ctx.card.value == ctx.target_card.value:
        return False
    value = _create_value(ctx)
    return value <= _max_value(ctx) and ctx.holds_value(value) and not _opponent_has_build_value(ctx, value)


CREATE_OWN_BUILD = Rule(
    rule_id="create-own-build",
    priority=35,
    category=RuleCategory.BUILD,
    condition=_create_condition,
    build=lambda ctx: [BuildCreateAction(ctx.player, ctx.card, ctx.target_card, value=_create_value(ctx))],
)


def _extension_value(ctx: RuleContext) -> int:
    return ctx.target_build.value + ctx.card.value


def _extendable(ctx: RuleContext) -> bool:
    if not (_from_hand(ctx) and _on_build(ctx)):
        return False
    build = ctx.target_build
    if not build.is_extendable or len(build.cards) >= ctx.state.config.max_build_cards:
        return False
    if ctx.card.value == build.value:
        return False
    value = _extension_value(ctx)
    return value <= _max_value(ctx) and ctx.holds_value(value)


def _extend(ctx: RuleContext) -> list[Action]:
    return [BuildExtendAction(ctx.player, ctx.card, ctx.target_build.build_id, new_value=_extension_value(ctx))]


EXTEND_OWN_BUILD = Rule(
    rule_id="extend-own-build",
    priority=30,
    category=RuleCategory.BUILD,
    condition=lambda ctx: _extendable(ctx) and ctx.target_build.owner == ctx.player,
    build=_extend,
)


EXTEND_OPPONENT_BUILD = Rule(
    rule_id="extend-opponent-build",
    priority=25,
    category=RuleCategory.BUILD,
    condition=lambda ctx: _extendable(ctx) and ctx.target_build.owner != ctx.player,
    build=_extend,
)


# -- staging category ---------------------------------------------------------


def _stageable_source(ctx: RuleContext) -> bool:
    return ctx.dragged.source in (CardSource.HAND, CardSource.CAPTURED)


STAGING_CREATION = Rule(
    rule_id="staging-creation",
    priority=95,
    category=RuleCategory.STAGING,
    condition=lambda ctx: _stageable_source(ctx)
    and _on_loose(ctx)
    and ctx.state.stack_for_player(ctx.player) is None,
    build=lambda ctx: [CreateStagingStackAction(ctx.player, ctx.card, ctx.dragged.source, ctx.target_card)],
)


TEMP_STACK_ADDITION = Rule(
    rule_id="temp-stack-addition",
    priority=100,
    category=RuleCategory.STAGING,
    condition=lambda ctx: _stageable_source(ctx)
    and _on_own_stack(ctx)
    and not (_from_hand(ctx) and ctx.target_stack.hand_card_used),
    build=lambda ctx: [
        AddToStagingStackAction(ctx.player, ctx.card, ctx.dragged.source, ctx.target_stack.stack_id)
    ],
)


# -- trail category -----------------------------------------------------------


TRAIL = Rule(
    rule_id="trail",
    priority=10,
    category=RuleCategory.TRAIL,
    condition=lambda ctx: _from_hand(ctx)
    and ctx.target.type is TargetType.TABLE
    and trail_block_reason(ctx.state, ctx.player, ctx.card) is None,
    build=lambda ctx: [TrailAction(ctx.player, ctx.card)],
    requires_modal=True,
)


def default_rules() -> list[Rule]:
    """Return the standard rule table."""

    return [
        SAME_VALUE_AUTO_CAPTURE,
        LOOSE_CARD_OPTIONS,
        SINGLE_CARD_CAPTURE,
        BUILD_CAPTURE,
        BUILD_OVERTAKE,
        TEMP_STACK_CAPTURE,
        OWN_BUILD_AUGMENTATION,
        CREATE_OWN_BUILD,
        EXTEND_OWN_BUILD,
        EXTEND_OPPONENT_BUILD,
        STAGING_CREATION,
        TEMP_STACK_ADDITION,
        TRAIL,
    ]


def default_registry() -> RuleRegistry:
    """Create a fresh registry populated with :func:`default_rules`."""

    return RuleRegistry(default_rules())
