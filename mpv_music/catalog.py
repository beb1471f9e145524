"""
Catalog views — the data behind the tag, folder and playlist pickers.

Pure functions over an already-loaded Track list, except
``playlist_entries`` which reads the playlist file itself.
"""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Sequence

from loguru import logger

from .models import MediaType, PlaylistInfo, TAG_FIELDS, TagSummary, Track, UNKNOWN

_MAX_SAMPLES = 10
_PLAYLIST_PREVIEW = 15


def _tag_value(track: Track, field: str) -> str:
    value = getattr(track, field)
    return value if value.strip() else UNKNOWN


def tag_summary(tracks: Iterable[Track], field: str) -> List[TagSummary]:
    """Distinct values of genre/artist/album with counts and sample titles, sorted by name."""
    if field not in TAG_FIELDS:
        raise ValueError(f"Unknown tag field: {field!r}")

    summaries: Dict[str, TagSummary] = {}
    for t in tracks:
        name = _tag_value(t, field)
        entry = summaries.setdefault(name, TagSummary(name=name))
        entry.count += 1
        if len(entry.samples) < _MAX_SAMPLES:
            entry.samples.append(t.title)
    return [summaries[k] for k in sorted(summaries)]


def tracks_with_values(tracks: Iterable[Track], field: str, values: Iterable[str]) -> List[Track]:
    """Tracks whose ``field`` is one of ``values`` (blank fields count as UNKNOWN)."""
    wanted = set(values)
    return [t for t in tracks if _tag_value(t, field) in wanted]


def group_by_directory(tracks: Iterable[Track]) -> Dict[str, List[str]]:
    """Parent directory → file names."""
    groups: Dict[str, List[str]] = defaultdict(list)
    for t in tracks:
        p = Path(t.path)
        groups[str(p.parent)].append(p.name)
    return dict(groups)


def tracks_under(tracks: Iterable[Track], directories: Sequence[str]) -> List[Track]:
    """Tracks whose path starts with one of ``directories``."""
    prefixes = tuple(directories)
    if not prefixes:
        return []
    return [t for t in tracks if t.path.startswith(prefixes)]


def playlist_entries(path: str) -> List[str]:
    """Non-comment, non-blank lines of a playlist file; [] if it cannot be read."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.debug(f"Could not read playlist {path}: {exc}")
        return []
    entries = (line.strip() for line in text.splitlines())
    return [e for e in entries if e and not e.startswith("#")]


def playlists(tracks: Iterable[Track]) -> List[PlaylistInfo]:
    result = []
    for t in tracks:
        if t.media_type is not MediaType.PLAYLIST:
            continue
        entries = playlist_entries(t.path)
        result.append(PlaylistInfo(
            title=t.title,
            path=t.path,
            entry_count=len(entries),
            preview=entries[:_PLAYLIST_PREVIEW],
        ))
    return result


def find_playlists(tracks: Iterable[Track], name: str) -> List[Track]:
    """Playlist tracks whose title contains ``name`` (case-insensitive)."""
    needle = name.lower()
    return [
        t for t in tracks
        if t.media_type is MediaType.PLAYLIST and needle in t.title.lower()
    ]
