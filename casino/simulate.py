"""Random self-play driven entirely through the action pipeline."""

from __future__ import annotations

import logging
import random

from . import rules, scoreboard, scoring, state
from .actions import TURN_ENDING, Action, ActionType
from .determine import determine_actions, iter_drops
from .engine import apply_action
from .errors import IllegalAction
from .registry import RuleRegistry
from .rulesets import default_registry

__all__ = ["choose_action", "play_random_game", "run_match"]

logger = logging.getLogger(__name__)

TURN_LIMIT = 200


def choose_action(
    game_state: state.GameState,
    player: int,
    rng: random.Random,
    registry: RuleRegistry,
) -> Action | None:
    """Pick a random turn-ending action, preferring captures."""

    candidates: list[Action] = []
    for dragged, target in iter_drops(game_state, player):
        decision = determine_actions(dragged, target, game_state, registry)
        if decision.is_error:
            continue
        candidates.extend(action for action in decision.actions if action.type in TURN_ENDING)
    if not candidates:
        return None
    captures = [action for action in candidates if action.type in (ActionType.CAPTURE, ActionType.BUILD_OVERTAKE)]
    return rng.choice(captures or candidates)


def _force_trail(game_state: state.GameState, player: int, rng: random.Random) -> state.GameState:
    updated = game_state.clone()
    card = rng.choice(updated.hands[player])
    rules.trail(updated, player, card, enforce_restrictions=False)
    return updated


def play_random_game(
    config: state.CasinoConfig,
    rng: random.Random,
    game_number: int = 1,
) -> tuple[state.GameState, scoreboard.GameSummary]:
    """Play one full game with random legal moves for both seats."""

    deck = state.shuffled_deck(rng=rng)
    game_state = state.deal_new_game(config, deck)
    registry = default_registry()

    for _ in range(TURN_LIMIT):
        if game_state.game_over:
            break
        player = game_state.current_player
        action = choose_action(game_state, player, rng, registry)
        if action is None:
            game_state = _force_trail(game_state, player, rng)
            continue
        try:
            game_state = apply_action(game_state, action)
        except IllegalAction as exc:
            logger.warning("simulated %s failed (%s); trailing instead", action.type.value, exc)
            game_state = _force_trail(game_state, player, rng)
    else:
        raise RuntimeError("simulation exceeded the turn limit")

    scores = scoring.final_scores(game_state)
    winner = next((score.player_index for score in scores if score.won_game), None)
    return game_state, scoreboard.GameSummary(game_number=game_number, winner_index=winner, scores=scores)


def run_match(games: int, *, seed: int = 123, config: state.CasinoConfig | None = None) -> scoreboard.MatchHistory:
    """Play ``games`` random games and return the accumulated history."""

    if games <= 0:
        raise ValueError("games must be positive")
    rng = random.Random(seed)
    history = scoreboard.MatchHistory(num_players=2)
    for number in range(1, games + 1):
        _, summary = play_random_game(config or state.CasinoConfig(), rng, number)
        history.record(summary)
    return history
