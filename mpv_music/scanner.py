"""
Scanner — parallel directory walk that turns media files into Tracks.

Each configured root is walked without following symlinks. Every regular
file is classified by extension; unclassified files are dropped before any
further I/O. For the rest, the ``(mtime, size)`` pair read from the walk's
own ``stat`` result is compared to the previous snapshot: unchanged files
reuse their old Track verbatim, everything else is probed with mutagen.

Per-file work only reads immutable inputs (extension sets, the old snapshot
map, the video switch), so files are fanned out to a thread pool and the
Tracks collected in whatever order the workers finish.

Usage:
    scanner = Scanner(config)
    tracks = scanner.scan(old_snapshot={t.path: t for t in previous})
    print(scanner.stats)
"""

from __future__ import annotations

import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Iterator, Mapping, Optional

from loguru import logger

from .classifier import classify_extension, extension_of, to_extension_set
from .config import IndexerConfig
from .models import (
    MediaType,
    PLAYLIST_ALBUM,
    PLAYLIST_ARTIST,
    PLAYLIST_GENRE,
    ScanStats,
    TagInfo,
    Track,
    UNKNOWN,
)
from .tag_probe import probe_tags

ProbeFn = Callable[[str], Optional[TagInfo]]


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

class ScanProgress:
    """Monotonic counter of classified files, safe under concurrent increments."""

    def __init__(self, callback: Optional[Callable[[int], None]] = None) -> None:
        self._count = 0
        self._lock = threading.Lock()
        self._callback = callback

    def increment(self) -> int:
        with self._lock:
            self._count += 1
            count = self._count
        if self._callback is not None:
            self._callback(count)
        return count

    @property
    def count(self) -> int:
        return self._count


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------

def walk_files(root: str) -> Iterator[os.DirEntry]:
    """Yield regular files under ``root`` recursively, never following symlinks.

    Directories that cannot be listed are skipped with a warning, along with
    everything beneath them.
    """
    stack = [root]
    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError as exc:
            logger.warning(f"Skipping unreadable directory {current}: {exc}")
            continue
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    stack.append(entry.path)
                elif entry.is_file(follow_symlinks=False):
                    yield entry
            except OSError as exc:
                logger.debug(f"Skipping {entry.path}: {exc}")


def _file_stem(path: str) -> str:
    return Path(path).stem


def _fill(value: str, fallback: str) -> str:
    return value if value and value.strip() else fallback


def build_track(
    path: str,
    media_type: MediaType,
    mtime: int,
    size: int,
    probe: ProbeFn = probe_tags,
) -> Track:
    """Create a fresh Track, probing tags for audio/video and synthesising playlists."""
    stem = _file_stem(path)
    if media_type is MediaType.PLAYLIST:
        return Track(
            path=path,
            title=stem,
            artist=PLAYLIST_ARTIST,
            album=PLAYLIST_ALBUM,
            genre=PLAYLIST_GENRE,
            mtime=mtime,
            size=size,
            media_type=media_type,
        )

    tags = probe(path) or TagInfo()
    return Track(
        path=path,
        title=_fill(tags.title, stem),
        artist=_fill(tags.artist, UNKNOWN),
        album=_fill(tags.album, UNKNOWN),
        genre=_fill(tags.genre, UNKNOWN),
        mtime=mtime,
        size=size,
        media_type=media_type,
    )


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

class Scanner:
    """Walks the configured roots and builds the Track collection."""

    def __init__(
        self,
        config: IndexerConfig,
        probe: ProbeFn = probe_tags,
        progress: Optional[ScanProgress] = None,
    ) -> None:
        self.config = config
        self._probe = probe
        self._audio = to_extension_set(config.audio_exts)
        self._video = to_extension_set(config.video_exts)
        self._playlist = to_extension_set(config.playlist_exts)
        self.progress = progress or ScanProgress()
        self.stats = ScanStats()
        self._stats_lock = threading.Lock()

    def _bump(self, field: str) -> None:
        with self._stats_lock:
            setattr(self.stats, field, getattr(self.stats, field) + 1)

    def _roots(self, directories: Optional[Iterable[Path]]) -> list[str]:
        dirs = self.config.music_dirs if directories is None else list(directories)
        roots = [os.path.abspath(os.path.expanduser(str(d))) for d in dirs]
        return list(dict.fromkeys(roots))

    def _process(
        self,
        entry: os.DirEntry,
        old_snapshot: Mapping[str, Track],
    ) -> Optional[Track]:
        media_type = classify_extension(
            extension_of(entry.name),
            self._audio,
            self._video,
            self._playlist,
            self.config.video_ok,
        )
        if media_type is None:
            return None

        self.progress.increment()
        self._bump("classified")
        path = entry.path

        try:
            st = entry.stat(follow_symlinks=False)
        except OSError as exc:
            logger.warning(f"Cannot stat {path}: {exc}")
            self._bump("errors")
            return None
        mtime = max(0, int(st.st_mtime))
        size = st.st_size

        old = old_snapshot.get(path)
        if old is not None and old.is_unchanged(mtime, size):
            logger.debug(f"Cache hit (unchanged): {path}")
            self._bump("cache_hits")
            return old

        logger.debug(f"Cache miss/dirty: probing {path}")
        if media_type is not MediaType.PLAYLIST:
            self._bump("probed")
        try:
            return build_track(path, media_type, mtime, size, probe=self._probe)
        except Exception as exc:  # noqa: BLE001
            logger.warning(f"Skipped {path}: {exc}")
            self._bump("errors")
            return None

    def scan(
        self,
        old_snapshot: Optional[Mapping[str, Track]] = None,
        directories: Optional[Iterable[Path]] = None,
    ) -> list[Track]:
        """Walk every root and return the new Track collection (order is arbitrary).

        Args:
            old_snapshot: path → Track from the previous index; empty or None
                          forces every file to be probed.
            directories:  Roots to walk instead of ``config.music_dirs``.
        """
        roots = self._roots(directories)
        if not roots:
            logger.warning("Scan aborted: no music directories configured.")
            return []

        snapshot: Mapping[str, Track] = old_snapshot or {}
        self.stats = ScanStats()
        workers = self.config.effective_workers()
        logger.info(
            f"Starting library scan of {len(roots)} dir(s) with {workers} worker(s); "
            f"{len(snapshot)} cached entries"
        )

        def entries() -> Iterator[os.DirEntry]:
            for root in roots:
                if not os.path.isdir(root):
                    logger.warning(f"Music directory not found, skipping: {root}")
                    continue
                logger.info(f"Walking directory: {root}")
                yield from walk_files(root)

        t0 = time.monotonic()
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scan") as pool:
            results = pool.map(lambda e: self._process(e, snapshot), entries())
            # overlapping roots may yield a file twice; path stays unique
            by_path = {t.path: t for t in results if t is not None}
        tracks = list(by_path.values())

        self.stats.elapsed_seconds = round(time.monotonic() - t0, 3)
        logger.info(
            f"Indexing finished: {len(tracks)} tracks "
            f"({self.stats.cache_hits} cached, {self.stats.probed} probed, "
            f"{self.stats.errors} errors) in {self.stats.elapsed_seconds}s"
        )
        return tracks
