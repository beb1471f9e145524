"""Extension-based media classification."""

from typing import Iterable, Optional, FrozenSet

from .models import MediaType


def to_extension_set(exts: Iterable[str]) -> FrozenSet[str]:
    return frozenset(e.strip().lower().lstrip(".") for e in exts if e.strip())


def classify_extension(
    ext: str,
    audio_exts: FrozenSet[str],
    video_exts: FrozenSet[str],
    playlist_exts: FrozenSet[str],
    video_enabled: bool,
) -> Optional[MediaType]:
    """Map a file extension to a media type, or None if the file is not media.

    Audio wins over playlist, and video is only considered when enabled.
    """
    ext = ext.lower().lstrip(".")
    if not ext:
        return None
    if ext in audio_exts:
        return MediaType.AUDIO
    if ext in playlist_exts:
        return MediaType.PLAYLIST
    if video_enabled and ext in video_exts:
        return MediaType.VIDEO
    return None


def extension_of(name: str) -> str:
    """Lower-cased extension without the dot ('' for dotfiles and bare names)."""
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return ""
    return ext.lower()
