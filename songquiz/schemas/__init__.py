"""
Pydantic schemas for request validation.
"""

from .requests import (
    RandomTrackRequest,
    parse_random_track_request,
)

__all__ = [
    "RandomTrackRequest",
    "parse_random_track_request",
]
