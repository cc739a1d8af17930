from __future__ import annotations

import threading

import pytest

from casino.actions import DraggedItem, TargetInfo, TrailAction
from casino.cards import CardSource, iter_full_deck
from casino.errors import ErrorKind
from casino.session import GameManager, GameSession
from casino.state import CasinoConfig, deal_new_game


def _session() -> GameSession:
    return GameSession(deal_new_game(CasinoConfig(), list(iter_full_deck()), game_id="g1"))


def test_drop_on_empty_table_waits_for_confirmation() -> None:
    session = _session()
    card = session.snapshot().hands[0][0]

    outcome = session.drop(DraggedItem(card, CardSource.HAND, 0), TargetInfo.empty_table())

    assert outcome.ok
    assert outcome.applied is None
    assert outcome.decision is not None and outcome.decision.requires_modal
    assert session.snapshot().current_player == 0


def test_submit_applies_and_advances_turn() -> None:
    session = _session()
    card = session.snapshot().hands[0][0]

    outcome = session.submit(TrailAction(0, card))

    assert outcome.ok
    assert outcome.state.current_player == 1
    assert session.snapshot().table == [card]


def test_rejected_submit_requests_resync() -> None:
    session = _session()
    card = session.snapshot().hands[1][0]

    outcome = session.submit(TrailAction(1, card))

    assert not outcome.ok
    assert outcome.resync
    assert outcome.error_kind is ErrorKind.OUT_OF_TURN
    assert outcome.state.current_player == 0


def test_drop_error_is_reported() -> None:
    session = _session()
    card = session.snapshot().hands[1][0]

    outcome = session.drop(DraggedItem(card, CardSource.HAND, 1), TargetInfo.empty_table())

    assert outcome.error_kind is ErrorKind.OUT_OF_TURN
    assert outcome.resync


def test_concurrent_submissions_are_serialized() -> None:
    session = _session()
    card = session.snapshot().hands[0][0]
    barrier = threading.Barrier(4)
    outcomes = []
    guard = threading.Lock()

    def worker() -> None:
        barrier.wait()
        outcome = session.submit(TrailAction(0, card))
        with guard:
            outcomes.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sum(1 for outcome in outcomes if outcome.ok) == 1
    assert session.snapshot().table == [card]


def test_manager_keeps_games_separate() -> None:
    manager = GameManager()
    first = manager.create_game(CasinoConfig(seed=1), game_id="a")
    second = manager.create_game(CasinoConfig(seed=2), game_id="b")

    first.submit(TrailAction(0, first.snapshot().hands[0][0]))

    assert len(manager) == 2
    assert manager.get("a").snapshot().current_player == 1
    assert manager.get("b").snapshot().current_player == 0
    assert second.registry is not first.registry
    with pytest.raises(ValueError):
        manager.create_game(game_id="a")
    manager.remove("a")
    assert "a" not in manager
