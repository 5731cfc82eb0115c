from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable

from songquiz.enums import Decade, Difficulty


@dataclass(frozen=True)
class Filters:
    """Per-round constraints supplied by the game client.

    Immutable so one discovery call can never see its filters change
    underneath it.
    """

    genres: FrozenSet[str] = field(default_factory=frozenset)
    decades: FrozenSet[Decade] = field(default_factory=frozenset)
    difficulty: FrozenSet[Difficulty] = field(default_factory=frozenset)
    relax_filters: bool = False

    @classmethod
    def create(
        cls,
        genres: Iterable[str] = (),
        decades: Iterable[str] = (),
        difficulty: Iterable[str] = (),
        relax_filters: bool = False,
    ) -> "Filters":
        """Build filters from plain strings, rejecting unknown enum values."""
        return cls(
            genres=frozenset(g.strip() for g in genres if g and g.strip()),
            decades=frozenset(Decade(d) for d in decades),
            difficulty=frozenset(Difficulty(d) for d in difficulty),
            relax_filters=relax_filters,
        )

    def without_genres(self) -> "Filters":
        return replace(self, genres=frozenset())

    def without_decades(self) -> "Filters":
        return replace(self, decades=frozenset())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "genres": sorted(self.genres),
            "decades": sorted(d.value for d in self.decades),
            "difficulty": sorted(d.value for d in self.difficulty),
            "relax_filters": self.relax_filters,
        }
