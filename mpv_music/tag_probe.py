"""
Tag Probe

Reads title/artist/album/genre from audio and video containers with
mutagen. The "easy" interface is tried first since it normalises ID3, MP4
and Vorbis keys; when a format has no easy wrapper, the raw tag mapping is
read through the well-known frame/atom names instead.

Failures never raise: a corrupt or unsupported file is logged and reported
as ``None``, exactly like an untagged one.
"""

from typing import Any, Optional

from loguru import logger
from mutagen import File as MutagenFile

from .models import TagInfo


# Raw keys per field, tried in order when the easy interface has nothing.
_RAW_KEYS: dict[str, tuple[str, ...]] = {
    "title":  ("TIT2", "\xa9nam", "title", "TITLE", "Title", "WM/Title"),
    "artist": ("TPE1", "\xa9ART", "artist", "ARTIST", "Artist", "Author"),
    "album":  ("TALB", "\xa9alb", "album", "ALBUM", "Album", "WM/AlbumTitle"),
    "genre":  ("TCON", "\xa9gen", "genre", "GENRE", "Genre", "WM/Genre"),
}


def _as_text(value: Any) -> str:
    """Flatten a mutagen tag value (list, frame, atom) into one string."""
    if value is None:
        return ""
    # ID3 frames carry their values in .text
    text = getattr(value, "text", None)
    if text is not None:
        value = text
    if isinstance(value, (list, tuple)):
        parts = [_as_text(v) for v in value]
        return ";".join(p for p in parts if p)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip()
    return str(value).strip()


def _from_easy(tags: Any) -> Optional[TagInfo]:
    if not tags:
        return None
    info = TagInfo(
        title=_as_text(tags.get("title")),
        artist=_as_text(tags.get("artist")),
        album=_as_text(tags.get("album")),
        genre=_as_text(tags.get("genre")),
    )
    if not any((info.title, info.artist, info.album, info.genre)):
        return None
    return info


def _from_raw(tags: Any) -> Optional[TagInfo]:
    if not tags:
        return None
    found: dict[str, str] = {}
    for field, keys in _RAW_KEYS.items():
        for key in keys:
            try:
                value = tags.get(key)
            except (KeyError, ValueError, TypeError):
                value = None
            text = _as_text(value)
            if text:
                found[field] = text
                break
    if not found:
        return None
    return TagInfo(**found)


def probe_tags(path: str) -> Optional[TagInfo]:
    """Return the tags of ``path``, or None if it is unreadable or untagged."""
    try:
        audio = MutagenFile(path, easy=True)
        info = _from_easy(audio.tags) if audio is not None else None
        if info is not None:
            return info
        raw = MutagenFile(path)
        if raw is None:
            logger.debug(f"No tag reader for {path}")
            return None
        return _from_raw(raw.tags)
    except Exception as exc:  # noqa: BLE001
        logger.warning(f"Metadata probe failed for '{path}': {exc}")
        return None
