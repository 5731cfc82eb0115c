"""
Request validation schemas using Pydantic.

Provides type-safe validation for the quiz API's request bodies.
"""

from typing import Any, List

from pydantic import AliasChoices, BaseModel, Field, field_validator

from songquiz.enums import Decade, Difficulty
from songquiz.models.filters import Filters

MAX_GENRES = 20


class RandomTrackRequest(BaseModel):
    """
    Filters for one round's random track.

    Accepts ``relaxFilters`` as well as ``relax_filters`` so JavaScript
    clients can post their state object unchanged.
    """

    genres: List[str] = Field(default_factory=list, max_length=MAX_GENRES)
    decades: List[Decade] = Field(default_factory=list)
    difficulty: List[Difficulty] = Field(default_factory=list)
    relax_filters: bool = Field(
        default=False,
        validation_alias=AliasChoices("relax_filters", "relaxFilters"),
    )

    class Config:
        extra = "ignore"

    @field_validator("genres")
    @classmethod
    def strip_genres(cls, v: List[str]) -> List[str]:
        """Drop blank entries and surrounding whitespace."""
        cleaned = []
        for genre in v:
            genre = genre.strip()
            if not genre:
                continue
            if len(genre) > 100:
                raise ValueError("Genre names must be at most 100 characters")
            cleaned.append(genre)
        return cleaned

    def to_filters(self) -> Filters:
        return Filters(
            genres=frozenset(self.genres),
            decades=frozenset(self.decades),
            difficulty=frozenset(self.difficulty),
            relax_filters=self.relax_filters,
        )


def parse_random_track_request(data: Any) -> RandomTrackRequest:
    """
    Validate a JSON body into a RandomTrackRequest.

    A missing body means no filters. Any other non-object body is a
    validation error.

    Raises:
        ValidationError: If validation fails.
    """
    if data is None:
        data = {}
    return RandomTrackRequest.model_validate(data)
