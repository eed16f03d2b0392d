"""
Enums for jellyframe models.

Defines enumeration types used across the image pipeline for consistent
type safety and validation.
"""

from __future__ import annotations

from enum import Enum


class ContentKind(str, Enum):
    """Kinds of catalog items served by the media server."""

    LIBRARY = "library"
    MOVIE = "movie"
    SERIES = "series"
    SEASON = "season"
    EPISODE = "episode"
    ALBUM = "album"
    ARTIST = "artist"
    SONG = "song"
    OTHER = "other"


class ImageRole(str, Enum):
    """Image roles an item may carry a server-side tag for."""

    PRIMARY = "primary"
    BACKDROP = "backdrop"
    POSTER = "poster"
    THUMB = "thumb"
    SQUARE = "square"
    SERIES_POSTER = "series_poster"


class PresentationContext(str, Enum):
    """Card type being rendered; selects the fallback order."""

    LIBRARY = "library"
    EPISODE = "episode"
    POSTER = "poster"
    BACKDROP = "backdrop"
    SQUARE = "square"


class ErrorKind(str, Enum):
    """Closed set of image fetch failure kinds."""

    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    DECODE = "decode"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class AttemptDisposition(str, Enum):
    """What the load loop does after a failed fetch attempt."""

    ADVANCE = "advance"  # try the next candidate
    RETRY = "retry"  # retry the same URL, then advance
    TERMINAL = "terminal"  # surface the error, stop the chain
    ABORT = "abort"  # stop silently, caller no longer cares
