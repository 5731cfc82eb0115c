from songquiz.models.filters import Filters
from songquiz.models.track import Album, Artist, Track

__all__ = ["Album", "Artist", "Filters", "Track"]
