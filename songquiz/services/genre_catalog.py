"""
Genre Catalog Service.

Resolves the catalog's canonical genre-seed vocabulary, normalizes
user-requested genres against it, and looks up the genres a track
actually carries (via its artists and album) for re-verification.
"""

import logging
import re
import threading
from typing import Iterable, List, Optional, Set

from songquiz.models.track import Track
from songquiz.spotify.api import SpotifyCatalogAPI
from songquiz.spotify.cache import GenreCache, LRUGenreCache
from songquiz.spotify.exceptions import SpotifyAPIError

logger = logging.getLogger(__name__)

POPULAR_GENRES = [
    "pop", "rock", "hip hop", "rap", "country", "jazz", "classical",
    "electronic", "dance", "r&b", "soul", "blues", "folk", "indie",
    "alternative", "metal", "punk", "reggae", "latin", "world", "ambient",
    "house", "techno", "trance",
]

_WHITESPACE = re.compile(r"\s+")

LOCK_STRIPES = 64


def normalize_genre(name: str) -> str:
    """Lowercase and hyphenate: ``"Hip Hop"`` -> ``"hip-hop"``."""
    return _WHITESPACE.sub("-", name.strip().lower())


def genres_match(track_genre: str, requested: str) -> bool:
    """Case-insensitive substring match in either direction."""
    a = track_genre.lower()
    b = requested.lower()
    return a in b or b in a


class GenreCatalog:
    """
    Genre vocabulary and per-track genre lookups.

    The seed vocabulary is fetched once and kept for the process lifetime.
    Artist and album genres are memoized in a GenreCache; each id is
    fetched at most once even when many tracks share it.
    """

    def __init__(
        self,
        api: SpotifyCatalogAPI,
        cache: Optional[GenreCache] = None,
    ):
        self._api = api
        self._cache = cache if cache is not None else LRUGenreCache()
        self._seeds: Optional[List[str]] = None
        self._seeds_lock = threading.Lock()
        # Striped by id hash: concurrent lookups of the same id coalesce.
        self._id_locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))

    # =========================================================================
    # Vocabulary
    # =========================================================================

    def available_genres(self) -> List[str]:
        """
        Return the genre-seed vocabulary.

        A transient failure returns an empty list and is retried on the
        next call; a successful non-empty fetch is cached.
        """
        with self._seeds_lock:
            if self._seeds is not None:
                return list(self._seeds)
            try:
                seeds = self._api.get_available_genre_seeds()
            except SpotifyAPIError as e:
                logger.error("Error fetching available genres: %s", e)
                return []
            if seeds:
                self._seeds = seeds
                logger.info("Loaded %d genre seeds", len(seeds))
            return list(seeds)

    def popular_genres(self) -> List[str]:
        """Available genres that match a mainstream genre name."""
        return [
            genre
            for genre in self.available_genres()
            if any(
                genres_match(genre, normalize_genre(popular))
                for popular in POPULAR_GENRES
            )
        ]

    def resolve_seeds(self, requested: Iterable[str]) -> List[str]:
        """
        Normalize requested genres and keep those in the vocabulary.

        Returns the resolved seeds in sorted order. An empty result means
        the caller has no usable genre constraint, not an error.
        """
        vocabulary = set(self.available_genres())
        resolved = {normalize_genre(g) for g in requested if g and g.strip()}
        seeds = sorted(resolved & vocabulary)
        dropped = resolved - vocabulary
        if dropped:
            logger.debug("Genres not in seed vocabulary: %s", sorted(dropped))
        return seeds

    # =========================================================================
    # Track genres
    # =========================================================================

    def _lock_for(self, key: str) -> threading.Lock:
        return self._id_locks[hash(key) % len(self._id_locks)]

    def artist_genres(self, artist_id: str) -> List[str]:
        """Genres for one artist. Raises SpotifyAPIError on lookup failure."""
        cached = self._cache.get_artist_genres(artist_id)
        if cached is not None:
            return cached
        with self._lock_for(f"artist:{artist_id}"):
            cached = self._cache.get_artist_genres(artist_id)
            if cached is not None:
                return cached
            genres = self._api.get_artist_genres(artist_id)
            self._cache.set_artist_genres(artist_id, genres)
            return genres

    def album_genres(self, album_id: str) -> List[str]:
        """Genres for one album. Raises SpotifyAPIError on lookup failure."""
        cached = self._cache.get_album_genres(album_id)
        if cached is not None:
            return cached
        with self._lock_for(f"album:{album_id}"):
            cached = self._cache.get_album_genres(album_id)
            if cached is not None:
                return cached
            genres = self._api.get_album_genres(album_id)
            self._cache.set_album_genres(album_id, genres)
            return genres

    def prefetch_artist_genres(self, tracks: Iterable[Track]) -> int:
        """
        Warm the artist cache for a batch of tracks with bulk lookups.

        Returns the number of artists fetched. Failures are logged and
        leave the cache untouched so per-artist lookups can still run.
        """
        missing: Set[str] = set()
        for track in tracks:
            for artist_id in track.artist_ids:
                if self._cache.get_artist_genres(artist_id) is None:
                    missing.add(artist_id)
        if not missing:
            return 0
        try:
            fetched = self._api.get_artists_genres(sorted(missing))
        except SpotifyAPIError as e:
            logger.warning("Bulk artist genre lookup failed: %s", e)
            return 0
        for artist_id, genres in fetched.items():
            self._cache.set_artist_genres(artist_id, genres)
        return len(fetched)

    def genres_for_track(self, track: Track) -> List[str]:
        """
        Union of the track's artist genres and album genres, deduplicated.

        Raises:
            SpotifyAPIError: If any lookup fails.
        """
        genres: List[str] = []
        for artist_id in track.artist_ids:
            genres.extend(self.artist_genres(artist_id))
        if track.album.id:
            genres.extend(self.album_genres(track.album.id))
        return list(dict.fromkeys(genres))

    def track_matches_genres(self, track: Track, requested: Iterable[str]) -> bool:
        """
        True if any of the track's genres matches any requested genre.

        Requested genres are compared both as given and normalized, so
        "hip hop" matches a track tagged "hip-hop".

        Raises:
            SpotifyAPIError: If a genre lookup fails.
        """
        wanted = set()
        for genre in requested:
            if genre and genre.strip():
                wanted.add(genre.strip().lower())
                wanted.add(normalize_genre(genre))
        if not wanted:
            return True
        track_genres = self.genres_for_track(track)
        return any(
            genres_match(track_genre, genre)
            for track_genre in track_genres
            for genre in wanted
        )
