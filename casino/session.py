"""Serialized per-game sessions and the registry of running games."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterable

from .actions import Action, Decision, DraggedItem, TargetInfo
from .cards import Card
from .determine import determine_actions
from .engine import apply_action
from .errors import ErrorKind, IllegalAction
from .registry import RuleRegistry
from .rulesets import default_registry
from .state import CasinoConfig, GameState, deal_new_game

__all__ = ["ActionOutcome", "GameSession", "GameManager"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    """Result of submitting a drop or an action to a session.

    A rejected submission carries the error and a snapshot of the
    authoritative state the client should resynchronise to.
    """

    state: GameState
    decision: Decision | None = None
    applied: Action | None = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @property
    def resync(self) -> bool:
        return self.error_kind is not None


class GameSession:
    """One game id: owns its state and rule registry and applies actions one at a time."""

    def __init__(self, state: GameState, registry: RuleRegistry | None = None) -> None:
        self._state = state
        self.registry = registry if registry is not None else default_registry()
        self._lock = threading.Lock()

    @property
    def game_id(self) -> str:
        return self._state.game_id

    def snapshot(self) -> GameState:
        """Return an independent copy of the current state."""

        with self._lock:
            return self._state.clone()

    def determine(self, dragged: DraggedItem, target: TargetInfo) -> Decision:
        with self._lock:
            return determine_actions(dragged, target, self._state, self.registry)

    def drop(self, dragged: DraggedItem, target: TargetInfo) -> ActionOutcome:
        """Evaluate a drop and apply it straight away when no choice is needed."""

        with self._lock:
            decision = determine_actions(dragged, target, self._state, self.registry)
            if decision.is_error:
                logger.warning("game %s: %s", self.game_id, decision.error_message)
                return ActionOutcome(
                    state=self._state.clone(),
                    decision=decision,
                    error_kind=decision.error_kind,
                    error_message=decision.error_message,
                )
            action = decision.auto_action
            if action is None:
                return ActionOutcome(state=self._state.clone(), decision=decision)
            return self._apply_locked(action, decision)

    def submit(self, action: Action) -> ActionOutcome:
        """Apply an explicitly chosen action, such as a modal choice or a finalize."""

        with self._lock:
            return self._apply_locked(action, None)

    def _apply_locked(self, action: Action, decision: Decision | None) -> ActionOutcome:
        try:
            updated = apply_action(self._state, action)
        except IllegalAction as exc:
            logger.warning("game %s: rejected %s: %s", self.game_id, action.type.value, exc)
            return ActionOutcome(
                state=self._state.clone(),
                decision=decision,
                error_kind=exc.kind,
                error_message=str(exc),
            )
        self._state = updated
        return ActionOutcome(state=updated.clone(), decision=decision, applied=action)


class GameManager:
    """Maps game ids to independent sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, GameSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, game_id: object) -> bool:
        with self._lock:
            return game_id in self._sessions

    def create_game(
        self,
        config: CasinoConfig | None = None,
        deck: Iterable[Card] | None = None,
        game_id: str | None = None,
    ) -> GameSession:
        state = deal_new_game(config or CasinoConfig(), deck, game_id)
        session = GameSession(state)
        with self._lock:
            if session.game_id in self._sessions:
                raise ValueError(f"game {session.game_id!r} already exists")
            self._sessions[session.game_id] = session
        logger.info("created game %s", session.game_id)
        return session

    def get(self, game_id: str) -> GameSession:
        with self._lock:
            return self._sessions[game_id]

    def remove(self, game_id: str) -> None:
        with self._lock:
            del self._sessions[game_id]
