"""Action and interaction payloads exchanged with the casino engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from .cards import Card, CardSource
from .errors import ErrorKind

__all__ = [
    "ActionType",
    "TargetType",
    "DraggedItem",
    "TargetInfo",
    "CaptureAction",
    "BuildCreateAction",
    "BuildExtendAction",
    "BuildAugmentAction",
    "BuildOvertakeAction",
    "CreateStagingStackAction",
    "AddToStagingStackAction",
    "FinalizeStagingStackAction",
    "CancelStagingStackAction",
    "TrailAction",
    "Action",
    "TURN_ENDING",
    "Decision",
]


class ActionType(str, Enum):
    """Tag of every action the engine can apply."""

    CAPTURE = "capture"
    BUILD_CREATE = "build.create"
    BUILD_EXTEND = "build.extend"
    BUILD_AUGMENT = "build.augment"
    BUILD_OVERTAKE = "build.overtake"
    CREATE_STAGING_STACK = "createStagingStack"
    ADD_TO_STAGING_STACK = "addToStagingStack"
    FINALIZE_STAGING_STACK = "finalizeStagingStack"
    CANCEL_STAGING_STACK = "cancelStagingStack"
    TRAIL = "trail"


class TargetType(str, Enum):
    """Kind of table target a card was dropped on."""

    LOOSE = "loose"
    BUILD = "build"
    TEMPORARY_STACK = "temporary_stack"
    TABLE = "table"


@dataclass(frozen=True, slots=True)
class DraggedItem:
    """The card being moved, where it was picked up, and by whom."""

    card: Card
    source: CardSource
    player: int


@dataclass(frozen=True, slots=True)
class TargetInfo:
    """Drop target. ``stack_id`` identifies a build or a staging stack."""

    type: TargetType
    card: Card | None = None
    stack_id: str | None = None
    index: int | None = None

    @classmethod
    def loose(cls, card: Card, index: int | None = None) -> "TargetInfo":
        return cls(TargetType.LOOSE, card=card, index=index)

    @classmethod
    def build(cls, build_id: str) -> "TargetInfo":
        return cls(TargetType.BUILD, stack_id=build_id)

    @classmethod
    def staging(cls, stack_id: str) -> "TargetInfo":
        return cls(TargetType.TEMPORARY_STACK, stack_id=stack_id)

    @classmethod
    def empty_table(cls) -> "TargetInfo":
        return cls(TargetType.TABLE)


@dataclass(frozen=True, slots=True)
class CaptureAction:
    """Capture ``target`` with the hand ``card``.

    ``capture_type`` records which rule produced the capture
    (``same_value_auto``, ``single``, ``build`` or ``temp_stack``).
    """

    type: ClassVar[ActionType] = ActionType.CAPTURE

    player: int
    card: Card
    target: TargetInfo
    value: int
    capture_type: str = "single"


@dataclass(frozen=True, slots=True)
class BuildCreateAction:
    """Combine a hand card with a loose card into a new build of ``value``."""

    type: ClassVar[ActionType] = ActionType.BUILD_CREATE

    player: int
    card: Card
    target_card: Card
    value: int
    kind: str = "sum"


@dataclass(frozen=True, slots=True)
class BuildExtendAction:
    type: ClassVar[ActionType] = ActionType.BUILD_EXTEND

    player: int
    card: Card
    build_id: str
    new_value: int


@dataclass(frozen=True, slots=True)
class BuildAugmentAction:
    """Reinforce a build with a card of its own value."""

    type: ClassVar[ActionType] = ActionType.BUILD_AUGMENT

    player: int
    card: Card
    build_id: str


@dataclass(frozen=True, slots=True)
class BuildOvertakeAction:
    """Capture the opponent's build together with the player's own build of the same value."""

    type: ClassVar[ActionType] = ActionType.BUILD_OVERTAKE

    player: int
    card: Card
    build_id: str
    own_build_id: str


@dataclass(frozen=True, slots=True)
class CreateStagingStackAction:
    type: ClassVar[ActionType] = ActionType.CREATE_STAGING_STACK

    player: int
    card: Card
    source: CardSource
    target_card: Card


@dataclass(frozen=True, slots=True)
class AddToStagingStackAction:
    type: ClassVar[ActionType] = ActionType.ADD_TO_STAGING_STACK

    player: int
    card: Card
    source: CardSource
    stack_id: str


@dataclass(frozen=True, slots=True)
class FinalizeStagingStackAction:
    """Commit a staging stack.

    With ``capture_card`` the stack is captured by that hand card; with
    ``target_build_id`` it is merged into the player's build of the same
    value; otherwise it becomes a new build of ``build_value`` (derived when
    omitted).
    """

    type: ClassVar[ActionType] = ActionType.FINALIZE_STAGING_STACK

    player: int
    stack_id: str
    build_value: int | None = None
    capture_card: Card | None = None
    target_build_id: str | None = None


@dataclass(frozen=True, slots=True)
class CancelStagingStackAction:
    type: ClassVar[ActionType] = ActionType.CANCEL_STAGING_STACK

    player: int
    stack_id: str


@dataclass(frozen=True, slots=True)
class TrailAction:
    type: ClassVar[ActionType] = ActionType.TRAIL

    player: int
    card: Card


Action = Union[
    CaptureAction,
    BuildCreateAction,
    BuildExtendAction,
    BuildAugmentAction,
    BuildOvertakeAction,
    CreateStagingStackAction,
    AddToStagingStackAction,
    FinalizeStagingStackAction,
    CancelStagingStackAction,
    TrailAction,
]

TURN_ENDING = frozenset(
    {
        ActionType.CAPTURE,
        ActionType.BUILD_CREATE,
        ActionType.BUILD_EXTEND,
        ActionType.BUILD_AUGMENT,
        ActionType.BUILD_OVERTAKE,
        ActionType.FINALIZE_STAGING_STACK,
        ActionType.TRAIL,
    }
)


@dataclass(frozen=True, slots=True)
class Decision:
    """Outcome of action determination for a single drop."""

    actions: tuple[Action, ...] = ()
    requires_modal: bool = False
    error_kind: ErrorKind | None = None
    error_message: str | None = None

    @classmethod
    def error(cls, kind: ErrorKind, message: str) -> "Decision":
        return cls(error_kind=kind, error_message=message)

    @property
    def is_error(self) -> bool:
        return self.error_kind is not None

    @property
    def auto_action(self) -> Action | None:
        """Return the action to apply without asking the player, if any."""

        if self.is_error or self.requires_modal or len(self.actions) != 1:
            return None
        return self.actions[0]
