"""
Spotify Web API catalog operations.

Handles the read-only catalog endpoints the quiz needs: genre seeds,
recommendations, track search, and artist/album genre lookups. Token
handling is delegated to the HTTP client's token provider.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from songquiz.models.track import Track

from .exceptions import TransientNetworkError
from .http_client import SpotifyHTTPClient

logger = logging.getLogger(__name__)

MAX_SEED_GENRES = 5
RECOMMENDATIONS_LIMIT = 100
SEARCH_LIMIT = 50
ARTISTS_BATCH_SIZE = 50


def _parse_tracks(items: Optional[Iterable[Any]]) -> List[Track]:
    """Convert raw track objects, dropping nulls and malformed entries."""
    tracks = []
    for item in items or []:
        if not isinstance(item, dict) or not item.get("id"):
            continue
        try:
            tracks.append(Track.from_spotify(item))
        except (TypeError, ValueError, AttributeError) as e:
            logger.debug("Skipping malformed track %s: %s", item.get("id"), e)
    return tracks


def _expect_dict(data: Any, endpoint: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TransientNetworkError(
            f"Unexpected response from {endpoint}: {type(data).__name__}"
        )
    return data


class SpotifyCatalogAPI:
    """
    Spotify Web API client for catalog lookups.

    Example:
        http = SpotifyHTTPClient(token_provider, on_unauthorized)
        api = SpotifyCatalogAPI(http)
        tracks = api.get_recommendations(["pop"], 70, 100)
    """

    def __init__(self, http_client: SpotifyHTTPClient):
        self._http = http_client

    # =========================================================================
    # Genres
    # =========================================================================

    def get_available_genre_seeds(self) -> List[str]:
        """Return the genre seed vocabulary accepted by recommendations."""
        endpoint = "/recommendations/available-genre-seeds"
        data = _expect_dict(self._http.get(endpoint), endpoint)
        genres = [g for g in data.get("genres") or [] if isinstance(g, str)]
        logger.debug("Retrieved %d genre seeds", len(genres))
        return genres

    def get_artist_genres(self, artist_id: str) -> List[str]:
        endpoint = f"/artists/{artist_id}"
        data = _expect_dict(self._http.get(endpoint), endpoint)
        return list(data.get("genres") or [])

    def get_artists_genres(self, artist_ids: List[str]) -> Dict[str, List[str]]:
        """
        Look up genres for many artists, 50 ids per request.

        Returns:
            Mapping of artist id to its genre list. Ids Spotify does not
            know are absent from the mapping.
        """
        result: Dict[str, List[str]] = {}
        unique_ids = list(dict.fromkeys(i for i in artist_ids if i))
        for i in range(0, len(unique_ids), ARTISTS_BATCH_SIZE):
            batch = unique_ids[i : i + ARTISTS_BATCH_SIZE]
            data = _expect_dict(
                self._http.get("/artists", params={"ids": ",".join(batch)}),
                "/artists",
            )
            for artist in data.get("artists") or []:
                if artist and artist.get("id"):
                    result[artist["id"]] = list(artist.get("genres") or [])
        return result

    def get_album_genres(self, album_id: str) -> List[str]:
        endpoint = f"/albums/{album_id}"
        data = _expect_dict(self._http.get(endpoint), endpoint)
        return list(data.get("genres") or [])

    # =========================================================================
    # Track discovery
    # =========================================================================

    def get_recommendations(
        self,
        seed_genres: List[str],
        min_popularity: int = 0,
        max_popularity: int = 100,
        limit: int = RECOMMENDATIONS_LIMIT,
    ) -> List[Track]:
        """
        Fetch recommendations seeded by up to five genres.

        Args:
            seed_genres: Genre seeds; only the first five are sent.
            min_popularity: Lower popularity bound (inclusive).
            max_popularity: Upper popularity bound (inclusive).
            limit: Maximum number of tracks.
        """
        params = {
            "seed_genres": ",".join(seed_genres[:MAX_SEED_GENRES]),
            "min_popularity": min_popularity,
            "max_popularity": max_popularity,
            "limit": limit,
        }
        data = _expect_dict(
            self._http.get("/recommendations", params=params), "/recommendations"
        )
        tracks = _parse_tracks(data.get("tracks"))
        logger.debug(
            "Recommendations for %s returned %d tracks",
            params["seed_genres"], len(tracks),
        )
        return tracks

    def search_tracks(self, query: str, limit: int = SEARCH_LIMIT) -> List[Track]:
        """Run a track search and return the first page of results."""
        data = _expect_dict(
            self._http.get(
                "/search", params={"q": query, "type": "track", "limit": limit}
            ),
            "/search",
        )
        tracks = _parse_tracks((data.get("tracks") or {}).get("items"))
        logger.debug("Search %r returned %d tracks", query, len(tracks))
        return tracks
