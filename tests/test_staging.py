from __future__ import annotations

from typing import Sequence

import pytest

from casino import staging
from casino.actions import (
    AddToStagingStackAction,
    CancelStagingStackAction,
    CreateStagingStackAction,
    FinalizeStagingStackAction,
    TrailAction,
)
from casino.cards import Card, CardSource, parse_card
from casino.engine import apply_action
from casino.errors import (
    InvalidBuild,
    InvalidBuildOverflow,
    NoValidAction,
    OutOfTurn,
    OwnershipViolation,
    StackLimitExceeded,
)
from casino.segmentation import INVALID_DISPLAY
from casino.state import Build, CasinoConfig, GameState, StagingStack, TableItem

c = parse_card


def _make_state(
    hands: Sequence[Sequence[Card]],
    table: Sequence[TableItem] = (),
    captures: Sequence[Sequence[Card]] = ((), ()),
    *,
    current_player: int = 0,
) -> GameState:
    return GameState(
        config=CasinoConfig(),
        hands=[list(hand) for hand in hands],
        table=list(table),
        captures=[list(pile) for pile in captures],
        current_player=current_player,
        game_id="test",
    )


def _stack(game_state: GameState) -> StagingStack:
    stacks = game_state.staging_stacks()
    assert len(stacks) == 1
    return stacks[0]


def test_create_from_hand_moves_card_and_keeps_turn() -> None:
    game_state = _make_state([[c("4S"), c("7C"), c("2D")], [c("9H")]], [c("3H")])
    before = game_state.card_count()

    updated = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))

    stack = _stack(updated)
    assert [staged.card for staged in stack.cards] == [c("3H"), c("4S")]
    assert stack.display_value == 7
    assert stack.build_value == 7
    assert c("4S") not in updated.hands[0]
    assert updated.current_player == 0
    assert updated.card_count() == before
    assert game_state.staging_stacks() == []


def test_add_updates_display_and_keeps_turn() -> None:
    game_state = _make_state([[c("7C"), c("2D")], [c("9H")]], [c("3H"), c("4C")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4C"), CardSource.TABLE, c("3H")))
    stack_id = _stack(game_state).stack_id

    updated = apply_action(game_state, AddToStagingStackAction(0, c("2D"), CardSource.HAND, stack_id))

    assert _stack(updated).display_value == 9
    assert updated.current_player == 0


def test_second_stack_is_refused() -> None:
    game_state = _make_state([[c("4S"), c("5C")], [c("9H")]], [c("3H"), c("6D")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))

    with pytest.raises(StackLimitExceeded):
        apply_action(game_state, CreateStagingStackAction(0, c("5C"), CardSource.HAND, c("6D")))
    assert len(game_state.staging_stacks()) == 1


def test_finalize_into_build_advances_turn() -> None:
    game_state = _make_state([[c("4S"), c("7C"), c("2D")], [c("9H")]], [c("3H")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))
    stack_id = _stack(game_state).stack_id

    updated = apply_action(game_state, FinalizeStagingStackAction(0, stack_id, build_value=7))

    builds = updated.builds()
    assert len(builds) == 1
    assert builds[0].value == 7
    assert builds[0].owner == 0
    assert builds[0].cards == [c("3H"), c("4S")]
    assert updated.staging_stacks() == []
    assert updated.current_player == 1


def test_finalize_rejects_unsupported_value_without_mutation() -> None:
    game_state = _make_state([[c("4S"), c("7C"), c("9D")], [c("9H")]], [c("3H")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))
    stack_id = _stack(game_state).stack_id

    with pytest.raises(InvalidBuild):
        apply_action(game_state, FinalizeStagingStackAction(0, stack_id, build_value=9))
    assert _stack(game_state).stack_id == stack_id
    assert game_state.current_player == 0


def test_finalize_requires_capture_card_in_hand() -> None:
    game_state = _make_state([[c("4S"), c("2D")], [c("9H")]], [c("3H")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))

    with pytest.raises(InvalidBuild):
        apply_action(game_state, FinalizeStagingStackAction(0, _stack(game_state).stack_id))


def test_finalize_requires_a_hand_card() -> None:
    game_state = _make_state([[c("7C"), c("2D")], [c("9H")]], [c("3H"), c("4C")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4C"), CardSource.TABLE, c("3H")))

    with pytest.raises(InvalidBuild):
        apply_action(game_state, FinalizeStagingStackAction(0, _stack(game_state).stack_id, build_value=7))


def test_finalize_by_other_player_is_ownership_violation() -> None:
    game_state = _make_state([[c("4S"), c("7C")], [c("7H")]], [c("3H")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))

    with pytest.raises(OwnershipViolation):
        apply_action(game_state, FinalizeStagingStackAction(1, _stack(game_state).stack_id))


def test_stack_actions_out_of_turn() -> None:
    game_state = _make_state([[c("4S")], [c("5H")]], [c("3H")])

    with pytest.raises(OutOfTurn):
        apply_action(game_state, CreateStagingStackAction(1, c("5H"), CardSource.HAND, c("3H")))


def _overflowed_state() -> GameState:
    game_state = _make_state([[c("7C"), c("9S")], [c("9H")]], [c("3H"), c("4C"), c("5D"), c("4H")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4C"), CardSource.TABLE, c("3H")))
    stack_id = _stack(game_state).stack_id
    game_state = apply_action(game_state, AddToStagingStackAction(0, c("5D"), CardSource.TABLE, stack_id))
    return apply_action(game_state, AddToStagingStackAction(0, c("4H"), CardSource.TABLE, stack_id))


def test_overflowed_stack_cannot_be_finalized() -> None:
    game_state = _overflowed_state()
    stack = _stack(game_state)

    assert not stack.is_valid
    assert stack.display_value == INVALID_DISPLAY
    with pytest.raises(InvalidBuildOverflow):
        apply_action(game_state, FinalizeStagingStackAction(0, stack.stack_id, build_value=7))
    with pytest.raises(InvalidBuildOverflow):
        apply_action(game_state, FinalizeStagingStackAction(0, stack.stack_id, capture_card=c("7C")))


def test_overflowed_stack_stays_invalid_and_can_be_cancelled() -> None:
    game_state = _overflowed_state()
    stack_id = _stack(game_state).stack_id
    game_state.hands[0].append(c("AH"))

    game_state = apply_action(game_state, AddToStagingStackAction(0, c("AH"), CardSource.HAND, stack_id))
    assert not _stack(game_state).is_valid

    restored = apply_action(game_state, CancelStagingStackAction(0, stack_id))
    assert restored.staging_stacks() == []
    assert restored.table == [c("3H"), c("4C"), c("5D"), c("4H")]
    assert c("AH") in restored.hands[0]
    assert restored.current_player == 0


def test_cancel_restores_original_positions() -> None:
    game_state = _make_state([[c("5S"), c("2D")], [c("9H")]], [c("3H"), c("9C"), c("4C")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4C"), CardSource.TABLE, c("3H")))
    stack_id = _stack(game_state).stack_id
    game_state = apply_action(game_state, AddToStagingStackAction(0, c("2D"), CardSource.HAND, stack_id))

    restored = apply_action(game_state, CancelStagingStackAction(0, stack_id))

    assert restored.table == [c("3H"), c("9C"), c("4C")]
    assert restored.hands[0] == [c("5S"), c("2D")]
    assert restored.current_player == 0


def test_cancel_by_other_player_is_refused() -> None:
    game_state = _make_state([[c("4S"), c("7C")], [c("7H")]], [c("3H")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))

    with pytest.raises(OwnershipViolation):
        staging.cancel_staging_stack(game_state, 1, _stack(game_state).stack_id)


def test_captured_card_returns_to_opponent_pile() -> None:
    game_state = _make_state(
        [[c("7C")], [c("9H")]],
        [c("3H")],
        captures=((), (c("8S"), c("2C"))),
    )
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("2C"), CardSource.CAPTURED, c("3H")))
    assert game_state.captures[1] == [c("8S")]

    restored = apply_action(game_state, CancelStagingStackAction(0, _stack(game_state).stack_id))

    assert restored.captures[1] == [c("8S"), c("2C")]
    assert restored.table == [c("3H")]


def test_table_base_build_is_accepted_at_finalize() -> None:
    game_state = _make_state([[c("3S"), c("5C")], [c("9H")]], [c("5H"), c("2D")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("3S"), CardSource.HAND, c("5H")))
    stack_id = _stack(game_state).stack_id
    game_state = apply_action(game_state, AddToStagingStackAction(0, c("2D"), CardSource.TABLE, stack_id))

    updated = apply_action(game_state, FinalizeStagingStackAction(0, stack_id, build_value=5))

    assert updated.builds()[0].value == 5
    assert len(updated.builds()[0].cards) == 3


def test_finalize_as_capture() -> None:
    game_state = _make_state([[c("4S"), c("7C"), c("2D")], [c("9H")]], [c("3H")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))
    stack_id = _stack(game_state).stack_id

    updated = apply_action(game_state, FinalizeStagingStackAction(0, stack_id, capture_card=c("7C")))

    assert updated.captures[0] == [c("3H"), c("4S"), c("7C")]
    assert updated.last_capturer == 0
    assert updated.table == []
    assert updated.current_player == 1


def test_finalize_into_own_build() -> None:
    build = Build("build-1", [c("6H"), c("AC")], value=7, owner=0)
    game_state = _make_state([[c("4S"), c("7C"), c("2D")], [c("9H")]], [build, c("3H")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))
    stack_id = _stack(game_state).stack_id

    updated = apply_action(game_state, FinalizeStagingStackAction(0, stack_id, target_build_id="build-1"))

    merged = updated.find_build("build-1")
    assert merged is not None
    assert merged.value == 7
    assert merged.cards == [c("6H"), c("AC"), c("3H"), c("4S")]
    assert updated.staging_stacks() == []
    assert updated.current_player == 1


def test_only_one_hand_card_per_turn() -> None:
    game_state = _make_state([[c("2H"), c("5H"), c("5S")], [c("6C"), c("9D")]], [c("3D")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("2H"), CardSource.HAND, c("3D")))
    stack_id = _stack(game_state).stack_id

    with pytest.raises(NoValidAction):
        apply_action(game_state, AddToStagingStackAction(0, c("5H"), CardSource.HAND, stack_id))
    assert game_state.hands[0] == [c("5H"), c("5S")]

    updated = apply_action(game_state, FinalizeStagingStackAction(0, stack_id, capture_card=c("5S")))
    assert updated.hands == [[c("5H")], [c("6C"), c("9D")]]
    assert updated.current_player == 1


def test_table_cards_can_follow_the_hand_card() -> None:
    game_state = _make_state([[c("2H"), c("7S")], [c("9D")]], [c("3D"), c("2C")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("2H"), CardSource.HAND, c("3D")))
    stack_id = _stack(game_state).stack_id

    updated = apply_action(game_state, AddToStagingStackAction(0, c("2C"), CardSource.TABLE, stack_id))

    assert _stack(updated).values == [3, 2, 2]
    assert _stack(updated).display_value == 7


def test_hand_card_allowance_resets_when_turn_passes() -> None:
    game_state = _make_state([[c("2H"), c("AS"), c("9S")], [c("6C"), c("8D")]], [c("3D")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("2H"), CardSource.HAND, c("3D")))
    stack_id = _stack(game_state).stack_id
    game_state = apply_action(game_state, TrailAction(0, c("9S")))
    assert not _stack(game_state).hand_card_used
    game_state = apply_action(game_state, TrailAction(1, c("8D")))

    updated = apply_action(game_state, AddToStagingStackAction(0, c("AS"), CardSource.HAND, stack_id))

    assert _stack(updated).values == [3, 2, 1]
    assert _stack(updated).display_value == 6
    assert _stack(updated).hand_card_used


def test_cancel_out_of_turn_is_refused() -> None:
    game_state = _make_state([[c("4S"), c("7C"), c("9S")], [c("7H"), c("8D")]], [c("3H")])
    game_state = apply_action(game_state, CreateStagingStackAction(0, c("4S"), CardSource.HAND, c("3H")))
    stack_id = _stack(game_state).stack_id
    game_state = apply_action(game_state, TrailAction(0, c("9S")))
    assert game_state.current_player == 1

    with pytest.raises(OutOfTurn):
        apply_action(game_state, CancelStagingStackAction(0, stack_id))
    assert _stack(game_state).stack_id == stack_id
    assert game_state.table[0] is _stack(game_state)
