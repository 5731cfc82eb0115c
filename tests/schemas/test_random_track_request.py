"""Tests for the random track request schema."""

import pytest
from pydantic import ValidationError

from songquiz.enums import Decade, Difficulty
from songquiz.schemas import RandomTrackRequest, parse_random_track_request


class TestRandomTrackRequest:
    """Tests for RandomTrackRequest validation."""

    def test_empty_body_defaults(self):
        request = parse_random_track_request({})
        assert request.genres == []
        assert request.decades == []
        assert request.difficulty == []
        assert request.relax_filters is False

    def test_none_body(self):
        assert parse_random_track_request(None).genres == []

    @pytest.mark.parametrize("body", [["pop"], "pop", 3, []])
    def test_non_object_body_rejected(self, body):
        with pytest.raises(ValidationError):
            parse_random_track_request(body)

    def test_full_body(self):
        request = RandomTrackRequest(
            genres=["Hip Hop", " pop "],
            decades=["1990s", "2000s"],
            difficulty=["easy"],
            relax_filters=True,
        )
        assert request.genres == ["Hip Hop", "pop"]
        assert request.decades == [Decade.NINETIES, Decade.TWO_THOUSANDS]
        assert request.difficulty == [Difficulty.EASY]
        assert request.relax_filters is True

    def test_camel_case_relax_flag(self):
        assert parse_random_track_request({"relaxFilters": True}).relax_filters is True

    def test_blank_genres_dropped(self):
        assert RandomTrackRequest(genres=["", "  ", "rock"]).genres == ["rock"]

    def test_unknown_decade(self):
        with pytest.raises(ValidationError):
            RandomTrackRequest(decades=["1950s"])

    def test_unknown_difficulty(self):
        with pytest.raises(ValidationError):
            RandomTrackRequest(difficulty=["impossible"])

    def test_too_many_genres(self):
        with pytest.raises(ValidationError):
            RandomTrackRequest(genres=[f"g{i}" for i in range(21)])

    def test_overlong_genre(self):
        with pytest.raises(ValidationError, match="100 characters"):
            RandomTrackRequest(genres=["x" * 101])

    def test_extra_fields_ignored(self):
        request = parse_random_track_request({"genres": ["pop"], "round": 3})
        assert request.genres == ["pop"]

    def test_to_filters(self):
        filters = RandomTrackRequest(
            genres=["pop"], decades=["1990s"], difficulty=["hard"], relaxFilters=True
        ).to_filters()

        assert filters.genres == {"pop"}
        assert filters.decades == {Decade.NINETIES}
        assert filters.difficulty == {Difficulty.HARD}
        assert filters.relax_filters is True
