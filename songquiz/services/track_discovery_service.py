"""
Track Discovery Service.

Finds one random track for a quiz round. The caller's filters are tried
as given and, when relaxation is allowed, through a fixed sequence of
progressively looser variants. Every variant runs through the same
pipeline:

    genre resolve -> query -> decade filter -> genre re-verify
        -> difficulty filter -> preview filter -> random pick

The first variant that leaves at least one eligible track wins.
"""

import logging
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from songquiz.models.filters import Filters
from songquiz.models.track import Track
from songquiz.services.difficulty import (
    percentile_cuts,
    popularity_window,
)
from songquiz.services.genre_catalog import GenreCatalog
from songquiz.spotify.api import SpotifyCatalogAPI
from songquiz.spotify.exceptions import (
    AuthUnavailableError,
    SpotifyAPIError,
    SpotifyTokenExpiredError,
)
from songquiz.spotify.lifecycle import TokenLifecycleManager

logger = logging.getLogger(__name__)

BROAD_QUERY = "track:*"
DEFAULT_VERIFY_BATCH_SIZE = 10


@dataclass(frozen=True)
class FilterVariant:
    """One relaxation step: a label and how it derives its filters."""

    label: str
    transform: Callable[[Filters], Filters]

    def apply(self, filters: Filters) -> Filters:
        return self.transform(filters)


ORIGINAL = FilterVariant("original", lambda f: f)
WITHOUT_GENRES = FilterVariant("without_genres", lambda f: f.without_genres())
WITHOUT_GENRES_AND_DECADES = FilterVariant(
    "without_genres_and_decades",
    lambda f: f.without_genres().without_decades(),
)
DIFFICULTY_ONLY = FilterVariant(
    "difficulty_only",
    lambda f: Filters(difficulty=f.difficulty),
)

RELAXATION_CASCADE = (
    ORIGINAL,
    WITHOUT_GENRES,
    WITHOUT_GENRES_AND_DECADES,
    DIFFICULTY_ONLY,
)


def build_variants(filters: Filters) -> List[FilterVariant]:
    """Variants to try, in order, for one discovery call."""
    if filters.relax_filters:
        return list(RELAXATION_CASCADE)
    return [ORIGINAL]


@dataclass
class SearchAttempt:
    """What one variant tried and how many tracks survived."""

    label: str
    filters: Filters
    source: Optional[str] = None
    candidate_count: int = 0
    eligible_count: int = 0
    skipped_reason: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "label": self.label,
            "filters": self.filters.to_dict(),
            "source": self.source,
            "candidate_count": self.candidate_count,
            "eligible_count": self.eligible_count,
            "skipped_reason": self.skipped_reason,
        }


@dataclass
class NoTracksFound:
    """Every variant came up empty. Not an error."""

    attempted_filters: Filters
    attempts: List[SearchAttempt] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "attempted_filters": self.attempted_filters.to_dict(),
            "attempts": [attempt.to_dict() for attempt in self.attempts],
        }


DiscoveryResult = Union[Track, NoTracksFound]


class TrackDiscoveryService:
    """
    Picks a random playable track matching the round's filters.

    Example:
        service = TrackDiscoveryService(lifecycle, api, catalog)
        result = service.get_random_track(Filters.create(genres=["pop"]))
        if isinstance(result, NoTracksFound):
            ...  # offer to relax the filters
    """

    def __init__(
        self,
        lifecycle: TokenLifecycleManager,
        api: SpotifyCatalogAPI,
        genre_catalog: GenreCatalog,
        verify_batch_size: int = DEFAULT_VERIFY_BATCH_SIZE,
        rng: Optional[random.Random] = None,
    ):
        self._lifecycle = lifecycle
        self._api = api
        self._genres = genre_catalog
        self._batch_size = max(1, verify_batch_size)
        self._rng = rng or random.Random()

    def get_random_track(self, filters: Filters) -> DiscoveryResult:
        """
        Return one random eligible track, or NoTracksFound.

        Raises:
            AuthUnavailableError: If no usable credential can be obtained,
                before or during the search.
        """
        self._lifecycle.ensure_valid_credential()

        attempts: List[SearchAttempt] = []
        try:
            for variant in build_variants(filters):
                attempt = SearchAttempt(
                    label=variant.label, filters=variant.apply(filters)
                )
                attempts.append(attempt)
                track = self._run_attempt(attempt)
                if track is not None:
                    logger.info(
                        "Picked track %s via %s (%d eligible)",
                        track.id, attempt.label, attempt.eligible_count,
                    )
                    return track
        except SpotifyTokenExpiredError as e:
            raise AuthUnavailableError(
                f"Spotify rejected the credential after re-authorization: {e}"
            ) from e

        logger.info(
            "No tracks found after %d attempt(s) for %s",
            len(attempts), filters.to_dict(),
        )
        return NoTracksFound(attempted_filters=filters, attempts=attempts)

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _run_attempt(self, attempt: SearchAttempt) -> Optional[Track]:
        filters = attempt.filters
        requested_genres = sorted(filters.genres)

        if requested_genres:
            seeds = self._genres.resolve_seeds(requested_genres)
            if not seeds:
                attempt.skipped_reason = "no_resolvable_genres"
                logger.debug(
                    "Attempt %s: none of %s resolve to genre seeds",
                    attempt.label, requested_genres,
                )
                return None
            tracks = self._query_recommendations(attempt, seeds)
        else:
            tracks = self._query_search(attempt)

        attempt.candidate_count = len(tracks)
        logger.debug("Attempt %s: %d candidates", attempt.label, len(tracks))

        tracks = self._filter_decades(tracks, filters)
        if requested_genres:
            tracks = self._verify_genres(tracks, requested_genres)
        tracks = self._filter_difficulty(tracks, filters)
        tracks = [track for track in tracks if track.has_preview]

        attempt.eligible_count = len(tracks)
        logger.debug("Attempt %s: %d eligible", attempt.label, len(tracks))
        if not tracks:
            return None
        return self._rng.choice(tracks)

    def _query_recommendations(
        self, attempt: SearchAttempt, seeds: List[str]
    ) -> List[Track]:
        window = popularity_window(attempt.filters.difficulty)
        attempt.source = "recommendations"
        try:
            return self._api.get_recommendations(
                seeds,
                min_popularity=window.minimum,
                max_popularity=window.maximum,
            )
        except SpotifyAPIError as e:
            logger.warning("Recommendations failed for %s: %s", seeds, e)
            return []

    def _query_search(self, attempt: SearchAttempt) -> List[Track]:
        """Broad search, scoped to the requested decades when there are any."""
        decades = sorted(attempt.filters.decades)
        queries = []
        if decades:
            queries.append(" OR ".join(d.search_term for d in decades))
        queries.append(BROAD_QUERY)

        for query in queries:
            attempt.source = f"search:{query}"
            try:
                tracks = self._api.search_tracks(query)
            except SpotifyAPIError as e:
                logger.warning("Search %r failed: %s", query, e)
                continue
            if tracks:
                return tracks
        return []

    @staticmethod
    def _filter_decades(tracks: List[Track], filters: Filters) -> List[Track]:
        if not filters.decades:
            return tracks
        kept = []
        for track in tracks:
            year = track.release_year
            if year is None:
                continue
            if any(decade.contains(year) for decade in filters.decades):
                kept.append(track)
        return kept

    def _verify_genres(
        self, tracks: List[Track], requested_genres: List[str]
    ) -> List[Track]:
        """
        Keep tracks whose actual genres match a requested genre.

        Lookups run concurrently within batches; a failed lookup keeps
        the track.
        """
        if not tracks:
            return tracks

        self._genres.prefetch_artist_genres(tracks)

        def check(track: Track) -> bool:
            try:
                return self._genres.track_matches_genres(track, requested_genres)
            except SpotifyAPIError as e:
                logger.debug("Genre lookup failed for %s, keeping it: %s", track.id, e)
                return True

        kept: List[Track] = []
        with ThreadPoolExecutor(max_workers=self._batch_size) as executor:
            for start in range(0, len(tracks), self._batch_size):
                batch = tracks[start : start + self._batch_size]
                results = list(executor.map(check, batch))
                kept.extend(
                    track for track, matched in zip(batch, results) if matched
                )
        logger.debug("Genre verification kept %d/%d", len(kept), len(tracks))
        return kept

    @staticmethod
    def _filter_difficulty(tracks: List[Track], filters: Filters) -> List[Track]:
        if not tracks:
            return tracks
        if filters.difficulty:
            window = popularity_window(filters.difficulty)
            return [t for t in tracks if window.contains(t.popularity)]

        hard_cut, easy_cut = percentile_cuts(t.popularity for t in tracks)
        logger.debug("Popularity cuts: hard=%d easy=%d", hard_cut, easy_cut)
        return [t for t in tracks if hard_cut <= t.popularity <= easy_cut]
