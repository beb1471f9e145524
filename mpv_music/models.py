"""
Data Models for the MPV-Music Index

Track records persisted in the JSONL index, plus the small result types
passed between the scanner, the index store and the query resolver.
"""

from enum import Enum
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

UNKNOWN = "UNKNOWN"

PLAYLIST_ARTIST = "Playlist"
PLAYLIST_ALBUM = "Playlists"
PLAYLIST_GENRE = "Playlist"

TAG_FIELDS = ("genre", "artist", "album")


class MediaType(str, Enum):
    AUDIO = "audio"
    VIDEO = "video"
    PLAYLIST = "playlist"


# ---------------------------------------------------------------------------
# Track models
# ---------------------------------------------------------------------------

class Track(BaseModel):
    """One cataloged media file. Replaced, never mutated, when the file changes."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Absolute path; unique across the index")
    title: str = Field(..., description="Track title (filename stem if untagged)")
    artist: str = Field(..., description="Artist, may hold ';' or ',' separated values")
    album: str = Field(..., description="Album name")
    genre: str = Field(..., description="Genre, may hold ';' or ',' separated values")
    mtime: int = Field(..., ge=0, description="Last-modified time in epoch seconds at indexing")
    size: int = Field(..., ge=0, description="File size in bytes at indexing")
    media_type: MediaType = Field(..., description="audio, video or playlist")

    def is_unchanged(self, mtime: int, size: int) -> bool:
        return self.mtime == mtime and self.size == size


class TagInfo(BaseModel):
    """Raw tag values read from a media container. Missing fields are ''."""

    title: str = ""
    artist: str = ""
    album: str = ""
    genre: str = ""


# ---------------------------------------------------------------------------
# Index results
# ---------------------------------------------------------------------------

class LoadResult(BaseModel):
    """Outcome of reading the JSONL index."""

    tracks: List[Track] = Field(default_factory=list)
    needs_repair: bool = Field(False, description="True if any line failed to parse")
    corrupt_lines: int = Field(0, ge=0, description="Number of dropped lines")


class ScanStats(BaseModel):
    """Counters collected over one scan."""

    classified: int = 0
    cache_hits: int = 0
    probed: int = 0
    errors: int = 0
    elapsed_seconds: float = 0.0


# ---------------------------------------------------------------------------
# Catalog / search models
# ---------------------------------------------------------------------------

class TagSummary(BaseModel):
    """One distinct genre/artist/album value with its track count."""

    name: str
    count: int = 0
    samples: List[str] = Field(default_factory=list, description="Up to 10 sample titles")


class PlaylistInfo(BaseModel):
    title: str
    path: str
    entry_count: int = 0
    preview: List[str] = Field(default_factory=list)


class SearchResult(BaseModel):
    """One entry of an online search, already formatted for display."""

    title: str
    url: str
    uploader: str = "Unknown Channel"
    duration: str = "LIVE/???"
    view_count: str = "N/A"
    is_playlist: bool = False


class Capabilities(BaseModel):
    """External tools found on PATH at startup."""

    mpv: bool = False
    ytdlp: bool = False


class Candidate(BaseModel):
    """An entry offered to the selection capability."""

    display: str
    value: str
    preview: Optional[str] = None


class SelectionResult(BaseModel):
    chosen: List[str] = Field(default_factory=list)
    aborted: bool = False

    @classmethod
    def abort(cls) -> "SelectionResult":
        return cls(aborted=True)
