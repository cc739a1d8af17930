"""Prioritised rule records and the evaluator that runs them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Sequence

from .actions import Action, DraggedItem, TargetInfo
from .cards import Card
from .state import Build, GameState, StagingStack

__all__ = ["RuleCategory", "RuleContext", "Rule", "Evaluation", "RuleRegistry"]

logger = logging.getLogger(__name__)


class RuleCategory(str, Enum):
    CAPTURE = "capture"
    BUILD = "build"
    STAGING = "staging"
    TRAIL = "trail"


@dataclass(frozen=True, slots=True)
class RuleContext:
    """Read-only view of one drop that rule predicates inspect.

    The target objects are resolved once by the pipeline so predicates never
    search the table themselves.
    """

    dragged: DraggedItem
    target: TargetInfo
    state: GameState
    target_card: Card | None = None
    target_build: Build | None = None
    target_stack: StagingStack | None = None

    @property
    def player(self) -> int:
        return self.dragged.player

    @property
    def card(self) -> Card:
        return self.dragged.card

    @property
    def hand(self) -> list[Card]:
        return self.state.hands[self.dragged.player]

    def spare_cards(self) -> list[Card]:
        """Hand cards other than the dragged one."""

        return [card for card in self.hand if card != self.dragged.card]

    def holds_value(self, value: int) -> bool:
        """Return ``True`` when a spare hand card has ``value``."""

        return any(card.value == value for card in self.spare_cards())


Predicate = Callable[[RuleContext], bool]
Builder = Callable[[RuleContext], Sequence[Action]]


@dataclass(frozen=True, slots=True)
class Rule:
    """Condition/action record evaluated by :class:`RuleRegistry`.

    Higher ``priority`` values are preferred. Rules only describe actions;
    applying them is the job of :mod:`casino.rules`.
    """

    rule_id: str
    priority: int
    category: RuleCategory
    condition: Predicate
    build: Builder
    exclusive: bool = False
    requires_modal: bool = False


@dataclass(frozen=True, slots=True)
class Evaluation:
    """Actions produced by one evaluator run."""

    actions: tuple[Action, ...] = ()
    requires_modal: bool = False
    matched: tuple[str, ...] = ()
    exclusive_rule: str | None = None


class RuleRegistry:
    """Per-session ordered table of rules."""

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: list[Rule] = []
        for rule in rules:
            self.register(rule)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return any(rule.rule_id == rule_id for rule in self._rules)

    def register(self, rule: Rule) -> None:
        if rule.rule_id in self:
            raise ValueError(f"rule {rule.rule_id!r} already registered")
        self._rules.append(rule)

    def unregister(self, rule_id: str) -> Rule:
        for idx, rule in enumerate(self._rules):
            if rule.rule_id == rule_id:
                return self._rules.pop(idx)
        raise KeyError(rule_id)

    def rules(self, categories: Iterable[RuleCategory] | None = None) -> list[Rule]:
        """Return rules ordered by descending priority, registration order breaking ties."""

        wanted = set(categories) if categories is not None else None
        selected = [rule for rule in self._rules if wanted is None or rule.category in wanted]
        return sorted(selected, key=lambda rule: -rule.priority)

    def evaluate(
        self,
        context: RuleContext,
        categories: Iterable[RuleCategory] | None = None,
    ) -> Evaluation:
        """Run every rule against ``context``.

        If the best matching rule is exclusive its actions are the only
        result; otherwise the actions of all matching non-exclusive rules are
        collected, in priority order and without duplicates.
        """

        matched = [rule for rule in self.rules(categories) if rule.condition(context)]
        if not matched:
            return Evaluation()

        matched_ids = tuple(rule.rule_id for rule in matched)
        logger.debug("rules matched for %s: %s", context.card, ", ".join(matched_ids))

        top = matched[0]
        if top.exclusive:
            return Evaluation(
                actions=tuple(top.build(context)),
                requires_modal=top.requires_modal,
                matched=matched_ids,
                exclusive_rule=top.rule_id,
            )

        collected: list[Action] = []
        requires_modal = False
        for rule in matched:
            if rule.exclusive:
                continue
            produced = [action for action in rule.build(context) if action not in collected]
            if produced:
                requires_modal = requires_modal or rule.requires_modal
            collected.extend(produced)
        return Evaluation(actions=tuple(collected), requires_modal=requires_modal, matched=matched_ids)
