"""
Difficulty classification by track popularity.

Two modes. With explicit difficulty labels, each label maps to a fixed
popularity band and the selected bands are merged into one window. With
no labels, tracks are kept when they fall between the 25th and 75th
popularity percentiles of the candidate set itself.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

from songquiz.enums import Difficulty

MIN_POPULARITY = 0
MAX_POPULARITY = 100

DIFFICULTY_BANDS: Dict[Difficulty, Tuple[int, int]] = {
    Difficulty.EASY: (70, 100),
    Difficulty.MEDIUM: (40, 80),
    Difficulty.HARD: (0, 50),
    Difficulty.EXPERT: (0, 30),
}

HARD_PERCENTILE = 25
EASY_PERCENTILE = 75


@dataclass(frozen=True)
class PopularityWindow:
    """Closed popularity interval [minimum, maximum]."""

    minimum: int = MIN_POPULARITY
    maximum: int = MAX_POPULARITY

    def contains(self, popularity: int) -> bool:
        return self.minimum <= popularity <= self.maximum


FULL_WINDOW = PopularityWindow()


def popularity_window(labels: Iterable[Difficulty]) -> PopularityWindow:
    """
    Merge the bands of the selected labels into one window.

    The result is the envelope [min(lows), max(highs)], not a union of
    intervals: {easy, hard} gives [0, 100] and so admits medium-only
    values too. A single min/max pair is what the recommendations
    endpoint accepts.
    """
    bands = [DIFFICULTY_BANDS[Difficulty(label)] for label in labels]
    if not bands:
        return FULL_WINDOW
    return PopularityWindow(
        minimum=min(low for low, _ in bands),
        maximum=max(high for _, high in bands),
    )


def percentile(sorted_values: Sequence[int], p: float) -> int:
    """
    Nearest-rank percentile of an ascending sequence.

    Index is floor(p / 100 * n), clamped to the last element. An empty
    sequence yields 0.
    """
    if not sorted_values:
        return 0
    index = int((p / 100) * len(sorted_values))
    return sorted_values[min(index, len(sorted_values) - 1)]


def percentile_cuts(popularities: Iterable[int]) -> Tuple[int, int]:
    """Return (hard_cut, easy_cut) for a set of popularity values."""
    ordered = sorted(popularities)
    return (
        percentile(ordered, HARD_PERCENTILE),
        percentile(ordered, EASY_PERCENTILE),
    )


def difficulty_explanation() -> str:
    """Player-facing description of the difficulty labels."""
    lines = ["Difficulty is based on track popularity (0-100):"]
    for label, (low, high) in DIFFICULTY_BANDS.items():
        lines.append(f"  {label.value.title()}: popularity {low}-{high}")
    lines.append(
        "Selecting several levels widens the range to cover all of them. "
        "With no level selected, tracks between the 25th and 75th "
        "popularity percentile of the results are used."
    )
    return "\n".join(lines)
