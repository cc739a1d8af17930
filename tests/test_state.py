from __future__ import annotations

import random

import pytest

from casino import simulate, state
from casino.cards import DECK_SIZE, Card, Rank, Suit, iter_full_deck, parse_card


def test_full_deck_has_forty_unique_cards() -> None:
    deck = list(iter_full_deck())

    assert len(deck) == DECK_SIZE == 40
    assert len(set(deck)) == 40
    assert sum(card.value for card in deck) == 4 * 55


@pytest.mark.parametrize(
    ("label", "rank", "suit", "value"),
    [
        ("AS", Rank.ACE, Suit.SPADES, 1),
        ("10D", Rank.TEN, Suit.DIAMONDS, 10),
        ("7♥", Rank.SEVEN, Suit.HEARTS, 7),
        ("2c", Rank.TWO, Suit.CLUBS, 2),
    ],
)
def test_parse_card(label: str, rank: Rank, suit: Suit, value: int) -> None:
    card = parse_card(label)

    assert card == Card(rank, suit)
    assert card.value == value


@pytest.mark.parametrize("label", ["", "K", "KS", "11H", "7X"])
def test_parse_card_rejects_bad_labels(label: str) -> None:
    with pytest.raises(ValueError):
        parse_card(label)


def test_deal_new_game_assigns_hand_sizes() -> None:
    game_state = state.deal_new_game(state.CasinoConfig(seed=3))

    assert [len(hand) for hand in game_state.hands] == [10, 10]
    assert len(game_state.deck) == 20
    assert game_state.table == []
    assert game_state.current_player == 0
    assert game_state.round_number == 1
    assert game_state.is_conserved()


def test_seeded_deals_are_reproducible() -> None:
    first = state.deal_new_game(state.CasinoConfig(seed=11), game_id="a")
    second = state.deal_new_game(state.CasinoConfig(seed=11), game_id="b")

    assert first.hands == second.hands


def test_deal_with_short_deck_raises() -> None:
    deck = list(iter_full_deck())[:15]

    with pytest.raises(ValueError):
        state.deal_new_game(state.CasinoConfig(), deck)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"num_players": 3},
        {"hand_size": 0},
        {"hand_size": 15},
        {"max_build_value": 11},
        {"max_build_cards": 1},
    ],
)
def test_config_validation(kwargs: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        state.CasinoConfig(**kwargs)


def test_clone_is_independent() -> None:
    game_state = state.deal_new_game(state.CasinoConfig(seed=5))
    game_state.table.append(state.Build("build-1", [game_state.deck[0], game_state.deck[1]], value=5, owner=0))
    del game_state.deck[:2]

    clone = game_state.clone()
    clone.hands[0].pop()
    clone.builds()[0].owner = 1

    assert len(game_state.hands[0]) == 10
    assert game_state.builds()[0].owner == 0


def test_allocate_id_is_unique() -> None:
    game_state = state.new_game_state(state.CasinoConfig(), list(iter_full_deck()))

    assert game_state.allocate_id("build") != game_state.allocate_id("build")


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_cards_are_conserved_through_a_full_game(seed: int) -> None:
    final_state, summary = simulate.play_random_game(state.CasinoConfig(), random.Random(seed))

    assert final_state.game_over
    assert final_state.is_conserved()
    assert all(not hand for hand in final_state.hands)
    assert len(summary.scores) == 2
