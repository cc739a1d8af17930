"""Build segmentation calculator.

A staging stack is an ordered sequence of card values. This module decides
whether such a sequence forms a legal build and at which value, using three
interpretations in fixed precedence:

1. base-value build: one card equals the sum of every other card,
2. sum build: the whole sequence totals at most ``MAX_BUILD_VALUE``,
3. segmented build: the sequence splits into consecutive runs that all sum
   to the value of the first run.

Two entry points exist. :func:`update_build_calculator` is the cheap,
optimistic tracker used while cards are being dragged together, and
:func:`valid_build_values` is the strict check used when a stack is
finalized. The optimistic result is only ever used for display.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Final, Sequence

import numpy as np

from .cards import CardSource

__all__ = [
    "MAX_BUILD_VALUE",
    "INVALID_DISPLAY",
    "BuildKind",
    "BuildDetection",
    "BuildProgress",
    "is_same_value",
    "can_form_segments",
    "split_segments",
    "base_position_allowed",
    "detect_build_type",
    "segmented_builds",
    "valid_build_values",
    "initialize_build_calculator",
    "update_build_calculator",
    "trace_build",
]

logger = logging.getLogger(__name__)

MAX_BUILD_VALUE: Final = 10
INVALID_DISPLAY: Final = "INVALID"


class BuildKind(str, Enum):
    """Interpretation that validated a sequence."""

    SAME_VALUE = "same_value"
    BASE = "base"
    SUM = "sum"
    BASE_SEGMENTED = "base_segmented"
    SEGMENTED = "segmented"

    @property
    def is_base(self) -> bool:
        # Same-value sets are only ever recognised through a base card.
        return self in (BuildKind.SAME_VALUE, BuildKind.BASE, BuildKind.BASE_SEGMENTED)


@dataclass(frozen=True, slots=True)
class BuildDetection:
    """Result of classifying a value sequence."""

    kind: BuildKind
    build_value: int
    segment_count: int
    base_index: int | None = None


@dataclass(frozen=True, slots=True)
class BuildProgress:
    """Live calculator state attached to a staging stack."""

    build_value: int | None = None
    running_sum: int = 0
    segment_count: int = 0
    display_value: int | str = 0
    is_valid: bool = True
    is_building: bool = True
    kind: BuildKind | None = None


def is_same_value(values: Sequence[int]) -> bool:
    """Return ``True`` for two or more cards that all share one value."""

    return len(values) >= 2 and len(set(values)) == 1


def can_form_segments(values: Sequence[int], target: int) -> bool:
    """Return ``True`` when ``values`` splits into consecutive runs summing to ``target``.

    An empty sequence trivially qualifies (zero segments).
    """

    return split_segments(values, target) is not None


def split_segments(values: Sequence[int], target: int) -> list[list[int]] | None:
    """Partition ``values`` into consecutive runs that each total ``target``."""

    if target <= 0:
        return None
    if len(values) == 0:
        return []
    return _split_on_prefix(values, np.cumsum(np.asarray(values, dtype=np.int64)), target)


def _split_on_prefix(values: Sequence[int], running: np.ndarray, target: int) -> list[list[int]] | None:
    # ``running`` holds the prefix sums of ``values``; card values are
    # positive so it is strictly increasing.
    total = int(running[-1])
    if total % target:
        return None
    marks = np.arange(target, total + 1, target)
    cuts = np.searchsorted(running, marks)
    if not np.array_equal(running[cuts], marks):
        return None
    bounds = [0, *(int(cut) + 1 for cut in cuts)]
    return [list(values[lo:hi]) for lo, hi in zip(bounds, bounds[1:])]


def base_position_allowed(index: int, source: CardSource | None) -> bool:
    """Apply the positional rule for a base card drawn from ``source``.

    Without source information the base is the most recently placed card,
    which callers express by only offering the last index. A card taken
    from the opponent's capture pile may never be the bottom card, while a
    hand or table card acting as base must be the bottom card.
    """

    if source is None:
        return True
    if source is CardSource.CAPTURED:
        return index > 0
    return index == 0


def _base_candidates(values: Sequence[int], sources: Sequence[CardSource] | None) -> list[int]:
    if sources is None:
        return [len(values) - 1]
    return [idx for idx in range(len(values)) if base_position_allowed(idx, sources[idx])]


def _simple_bases(values: Sequence[int], sources: Sequence[CardSource] | None) -> list[BuildDetection]:
    total = sum(values)
    found: list[BuildDetection] = []
    for idx in _base_candidates(values, sources):
        base = values[idx]
        if base <= MAX_BUILD_VALUE and base == total - base:
            found.append(BuildDetection(BuildKind.BASE, base, 1, base_index=idx))
    return found


def _segmented_bases(values: Sequence[int], sources: Sequence[CardSource] | None) -> list[BuildDetection]:
    if sources is None:
        candidates = list(range(len(values)))
    else:
        candidates = _base_candidates(values, sources)
    # Larger bases first; the first hit wins in detect_build_type.
    candidates.sort(key=lambda idx: (-values[idx], idx))
    found: list[BuildDetection] = []
    for idx in candidates:
        base = values[idx]
        if base > MAX_BUILD_VALUE:
            continue
        rest = [value for pos, value in enumerate(values) if pos != idx]
        segments = split_segments(rest, base)
        if segments:
            found.append(BuildDetection(BuildKind.BASE_SEGMENTED, base, len(segments) + 1, base_index=idx))
    return found


def segmented_builds(values: Sequence[int]) -> list[BuildDetection]:
    """Return every segmented interpretation ordered from the longest first run down."""

    if len(values) < 2:
        return []
    prefix = np.cumsum(np.asarray(values, dtype=np.int64))
    found: list[BuildDetection] = []
    for end in range(len(values), 1, -1):
        first = int(prefix[end - 1])
        if first > MAX_BUILD_VALUE:
            continue
        if end == len(values):
            segments: list[list[int]] | None = []
        else:
            segments = _split_on_prefix(values[end:], prefix[end:] - prefix[end - 1], first)
        if segments is None:
            continue
        kind = BuildKind.SUM if end == len(values) else BuildKind.SEGMENTED
        found.append(BuildDetection(kind, first, len(segments) + 1))
    return found


def _relabel_same_value(values: Sequence[int], detection: BuildDetection) -> BuildDetection:
    if is_same_value(values) and detection.build_value == values[0]:
        return replace(detection, kind=BuildKind.SAME_VALUE)
    return detection


def detect_build_type(
    values: Sequence[int],
    sources: Sequence[CardSource] | None = None,
) -> BuildDetection | None:
    """Classify ``values`` using the base > sum > segmented precedence.

    ``sources`` switches the base-card search from "last placed card" to the
    source-dependent positional rule. Returns ``None`` when no interpretation
    covers the whole sequence; a single card never forms a build.
    """

    if len(values) < 2:
        return None
    if sources is not None and len(sources) != len(values):
        raise ValueError("sources must align with values")

    bases = _simple_bases(values, sources)
    if bases:
        return _relabel_same_value(values, bases[0])

    total = sum(values)
    if total <= MAX_BUILD_VALUE:
        return BuildDetection(BuildKind.SUM, total, 1)

    complex_bases = _segmented_bases(values, sources)
    if complex_bases:
        return _relabel_same_value(values, complex_bases[0])

    combos = segmented_builds(values)
    if combos:
        return _relabel_same_value(values, combos[0])
    return None


def valid_build_values(
    values: Sequence[int],
    sources: Sequence[CardSource] | None = None,
) -> tuple[int, ...]:
    """Return every build value the sequence strictly supports, ascending."""

    if len(values) < 2:
        return ()
    options: set[int] = set()
    if is_same_value(values):
        options.add(values[0])
    options.update(item.build_value for item in _simple_bases(values, sources))
    total = sum(values)
    if total <= MAX_BUILD_VALUE:
        options.add(total)
    options.update(item.build_value for item in _segmented_bases(values, sources))
    options.update(item.build_value for item in segmented_builds(values))
    return tuple(sorted(value for value in options if 1 <= value <= MAX_BUILD_VALUE))


def _committed(values: Sequence[int], detection: BuildDetection) -> BuildProgress:
    total = sum(values)
    if detection.kind.is_base or total > MAX_BUILD_VALUE:
        display: int | str = detection.build_value
    else:
        display = total
    return BuildProgress(
        build_value=detection.build_value,
        running_sum=0,
        segment_count=1,
        display_value=display,
        is_valid=True,
        is_building=False,
        kind=detection.kind,
    )


def initialize_build_calculator(values: Sequence[int]) -> BuildProgress:
    """Create calculator state for the founding cards of a staging stack."""

    detection = detect_build_type(values)
    if detection is None:
        return BuildProgress(display_value=sum(values))
    return _committed(values, detection)


def update_build_calculator(progress: BuildProgress, values: Sequence[int]) -> BuildProgress:
    """Feed the last card of ``values`` into ``progress`` and return the new state.

    ``values`` holds the whole stack sequence including the new card. An
    invalid progress is terminal and is returned unchanged.
    """

    if not progress.is_valid:
        return progress
    if progress.build_value is None:
        detection = detect_build_type(values)
        if detection is None:
            return replace(progress, display_value=sum(values), is_building=True)
        logger.debug("committed build value %s (%s) for %s", detection.build_value, detection.kind.value, list(values))
        return _committed(values, detection)

    total = sum(values)
    special = total <= MAX_BUILD_VALUE
    build_value = progress.build_value
    running = progress.running_sum + values[-1]

    if running > build_value and not special:
        logger.debug("running sum %s overflowed build value %s", running, build_value)
        return replace(
            progress,
            running_sum=running,
            display_value=INVALID_DISPLAY,
            is_valid=False,
            is_building=False,
        )
    if running == build_value or special:
        if progress.kind is not None and progress.kind.is_base:
            display: int | str = build_value
        else:
            display = total if special else build_value
        return replace(
            progress,
            running_sum=0,
            segment_count=progress.segment_count + 1,
            display_value=display,
            is_building=False,
        )
    return replace(progress, running_sum=running, display_value=running - build_value, is_building=True)


def trace_build(values: Sequence[int]) -> list[BuildProgress]:
    """Replay ``values`` card by card, returning the progress after each card from the second on."""

    if len(values) < 2:
        return []
    progress = initialize_build_calculator(values[:2])
    history = [progress]
    for end in range(3, len(values) + 1):
        progress = update_build_calculator(progress, values[:end])
        history.append(progress)
    return history
