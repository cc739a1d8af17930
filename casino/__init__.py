"""Top-level package for the casino rules engine."""

from . import actions, cards, determine, engine, registry, rules, rulesets, segmentation, staging, state

__all__ = [
    "actions",
    "cards",
    "determine",
    "engine",
    "registry",
    "rules",
    "rulesets",
    "segmentation",
    "staging",
    "state",
]
