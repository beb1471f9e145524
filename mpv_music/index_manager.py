"""
Index Manager — full vs. incremental scans over the persisted index.

The manager owns the Track snapshot while a scan runs: it loads the previous
index (unless a full rescan is forced), hands it to the Scanner as the
cache-hit map, and returns the new collection. Saving is a separate call so
ad-hoc scans (a single directory for one session) leave the stored index
untouched.

Usage:
    manager = IndexManager(IndexerConfig.from_env())
    tracks = manager.ensure_index()            # startup: load / heal / first scan
    tracks = manager.refresh()                 # incremental scan + save
    session = manager.scan_directory("~/Downloads/album")   # not saved
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from .cache_store import CacheStore
from .config import IndexerConfig
from .errors import IndexStorageError
from .models import LoadResult, ScanStats, Track
from .scanner import ProbeFn, ScanProgress, Scanner
from .tag_probe import probe_tags


class IndexManager:
    """Orchestrates Scanner and CacheStore for one index path."""

    def __init__(
        self,
        config: IndexerConfig,
        store: Optional[CacheStore] = None,
        probe: ProbeFn = probe_tags,
        progress: Optional[ScanProgress] = None,
    ) -> None:
        self.config = config
        self.store = store or CacheStore(config.index_path)
        self._probe = probe
        self._progress = progress
        self.last_stats: Optional[ScanStats] = None
        self.last_load: Optional[LoadResult] = None

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load(self) -> list[Track]:
        """Load the index, rewriting it right away if corrupt lines were dropped.

        The repair is destructive: dropped lines are not kept anywhere.
        """
        result = self.store.load()
        self.last_load = result
        if result.needs_repair:
            logger.info(
                f"Repairing index: purging {result.corrupt_lines} corrupt "
                f"line(s), keeping {len(result.tracks)}"
            )
            self.store.save(result.tracks)
        return result.tracks

    def save(self, tracks: Iterable[Track]) -> int:
        return self.store.save(tracks)

    def _old_snapshot(self, force: bool) -> dict[str, Track]:
        if force:
            logger.info("Forced reindex requested. Ignoring existing cache")
            return {}
        try:
            result = self.store.load()
        except IndexStorageError as exc:
            logger.debug(f"No valid cache ({exc}). Proceeding with clean scan")
            return {}
        logger.info(f"Cache loaded. Found {len(result.tracks)} existing entries")
        return {t.path: t for t in result.tracks}

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def scan(
        self,
        force: bool = False,
        directories: Optional[Iterable[Path]] = None,
    ) -> list[Track]:
        """Scan the music roots, reusing unchanged Tracks unless ``force`` is set.

        Does not save; call ``save()`` (or use ``refresh()``) to persist.
        """
        logger.info(f"Starting library scan. Force reindex: {force}")
        old = self._old_snapshot(force)
        scanner = Scanner(self.config, probe=self._probe, progress=self._progress)
        tracks = scanner.scan(old_snapshot=old, directories=directories)
        self.last_stats = scanner.stats
        return tracks

    def refresh(self, force: bool = False) -> list[Track]:
        """Scan and persist the result."""
        tracks = self.scan(force=force)
        self.save(tracks)
        return tracks

    def scan_directory(self, directory: Path) -> list[Track]:
        """Full scan of one directory for an ad-hoc session. Never persisted."""
        target = Path(directory).expanduser().resolve()
        logger.info(f"Session scan for directory: {target}")
        return self.scan(force=True, directories=[target])

    def ensure_index(self, reindex: bool = False, refresh: bool = False) -> list[Track]:
        """Startup sequence: load the index, then rebuild, heal or fill it as needed.

        * ``reindex``          → full scan + save
        * ``refresh``/repaired → incremental scan + save
        * empty index          → first full scan + save
        """
        tracks = self.load()
        repaired = bool(self.last_load and self.last_load.needs_repair)

        if reindex:
            logger.info("Rebuilding index (full)...")
            return self.refresh(force=True)
        if refresh or repaired:
            if repaired:
                logger.info("Index corruption healed. Syncing...")
            else:
                logger.info("Refreshing index...")
            return self.refresh(force=False)
        if not tracks:
            logger.info("Index empty. First scan...")
            return self.refresh(force=True)
        return tracks

    def __repr__(self) -> str:
        return f"IndexManager(store={self.store!r}, dirs={len(self.config.music_dirs)})"
