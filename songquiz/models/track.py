import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

OPEN_TRACK_URL = "https://open.spotify.com/track/{}"


@dataclass(frozen=True)
class Artist:
    id: str
    name: str

    @classmethod
    def from_spotify(cls, data: Dict[str, Any]) -> "Artist":
        return cls(id=data.get("id") or "", name=data.get("name") or "")


@dataclass(frozen=True)
class Album:
    id: str
    name: str
    images: Tuple[str, ...] = ()
    release_date: Optional[str] = None

    @classmethod
    def from_spotify(cls, data: Dict[str, Any]) -> "Album":
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            images=tuple(
                image["url"] for image in data.get("images") or [] if image.get("url")
            ),
            release_date=data.get("release_date") or None,
        )

    @property
    def release_year(self) -> Optional[int]:
        """Year from ``release_date`` (which may be YYYY, YYYY-MM or YYYY-MM-DD)."""
        if not self.release_date:
            return None
        try:
            return int(self.release_date[:4])
        except ValueError:
            return None


@dataclass(frozen=True)
class Track:
    """A catalog track, as returned by Spotify. Never mutated."""

    id: str
    name: str
    artists: Tuple[Artist, ...]
    album: Album
    external_url: str
    popularity: int = 0
    preview_url: Optional[str] = None

    _raw: Dict[str, Any] = field(
        default_factory=dict, repr=False, compare=False, hash=False
    )

    def __post_init__(self) -> None:
        if not self.id:
            logger.error("Track ID is required")
            raise ValueError("Track ID is required")

    @classmethod
    def from_spotify(cls, data: Dict[str, Any]) -> "Track":
        """Build a Track from a Spotify track object."""
        popularity = data.get("popularity") or 0
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            artists=tuple(
                Artist.from_spotify(artist) for artist in data.get("artists") or []
            ),
            album=Album.from_spotify(data.get("album") or {}),
            external_url=(data.get("external_urls") or {}).get("spotify")
            or OPEN_TRACK_URL.format(data.get("id")),
            popularity=max(0, min(100, int(popularity))),
            preview_url=data.get("preview_url") or None,
            _raw=data,
        )

    @property
    def release_year(self) -> Optional[int]:
        return self.album.release_year

    @property
    def has_preview(self) -> bool:
        return bool(self.preview_url)

    @property
    def full_track_url(self) -> str:
        """Link to the full track in the Spotify player."""
        return OPEN_TRACK_URL.format(self.id)

    @property
    def artist_ids(self) -> List[str]:
        return [artist.id for artist in self.artists if artist.id]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "artists": [{"id": a.id, "name": a.name} for a in self.artists],
            "album": {
                "id": self.album.id,
                "name": self.album.name,
                "images": list(self.album.images),
                "release_date": self.album.release_date,
            },
            "preview_url": self.preview_url,
            "external_url": self.external_url,
            "full_track_url": self.full_track_url,
            "popularity": self.popularity,
        }
