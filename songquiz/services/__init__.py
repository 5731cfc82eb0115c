"""
Songquiz Services Package

Usage:
    from songquiz.services import GenreCatalog, TrackDiscoveryService, NoTracksFound

Example:
    catalog = GenreCatalog(client.api)
    service = TrackDiscoveryService(client.lifecycle, client.api, catalog)
    result = service.get_random_track(Filters.create(genres=["pop"]))
"""

from songquiz.services.genre_catalog import (
    GenreCatalog,
    POPULAR_GENRES,
    normalize_genre,
)

from songquiz.services.difficulty import (
    DIFFICULTY_BANDS,
    PopularityWindow,
    difficulty_explanation,
    percentile,
    percentile_cuts,
    popularity_window,
)

from songquiz.services.track_discovery_service import (
    TrackDiscoveryService,
    FilterVariant,
    SearchAttempt,
    NoTracksFound,
    RELAXATION_CASCADE,
    build_variants,
)

__all__ = [
    # Genres
    "GenreCatalog",
    "POPULAR_GENRES",
    "normalize_genre",
    # Difficulty
    "DIFFICULTY_BANDS",
    "PopularityWindow",
    "difficulty_explanation",
    "percentile",
    "percentile_cuts",
    "popularity_window",
    # Discovery
    "TrackDiscoveryService",
    "FilterVariant",
    "SearchAttempt",
    "NoTracksFound",
    "RELAXATION_CASCADE",
    "build_variants",
]
