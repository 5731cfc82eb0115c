"""
Enums for quiz filter values.

Single source of truth for string constants used across schemas,
models, and services.
"""

from enum import StrEnum
from typing import Tuple


class Decade(StrEnum):
    """Release decades a round can be restricted to."""
    SIXTIES = "1960s"
    SEVENTIES = "1970s"
    EIGHTIES = "1980s"
    NINETIES = "1990s"
    TWO_THOUSANDS = "2000s"
    TWENTY_TENS = "2010s"
    TWENTY_TWENTIES = "2020s"

    @property
    def start_year(self) -> int:
        return int(self.value[:4])

    @property
    def year_range(self) -> Tuple[int, int]:
        """Inclusive (first, last) year of the decade."""
        return self.start_year, self.start_year + 9

    def contains(self, year: int) -> bool:
        first, last = self.year_range
        return first <= year <= last

    @property
    def search_term(self) -> str:
        """Spotify search field restricting results to this decade."""
        first, last = self.year_range
        return f"year:{first}-{last}"


class Difficulty(StrEnum):
    """Difficulty labels, mapped to popularity bands."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"
