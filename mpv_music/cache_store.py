"""
Cache Store — the JSONL track index on disk.

One JSON object per line, one line per Track, UTF-8. Every save rewrites
the whole file: records go to a ``.tmp`` sibling first, which then replaces
the target with ``Path.replace()`` so a crash mid-write never leaves a
half-written index behind.

Loading is line-by-line and tolerant: blank lines are ignored and a line
that does not parse as a Track is counted and dropped. Any drop flags the
result with ``needs_repair`` so the caller can re-save the survivors.

Single-writer: two processes saving to the same path race, and the last
rename wins.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from loguru import logger
from pydantic import ValidationError

from .errors import IndexStorageError
from .models import LoadResult, Track


def serialize_track(track: Track) -> str:
    return json.dumps(track.model_dump(mode="json"), ensure_ascii=False)


def parse_track(line: str) -> Track:
    """Parse one index line. Raises ``ValueError`` on malformed input."""
    return Track.model_validate_json(line)


class CacheStore:
    """Reads and writes the track index at ``path``."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, tracks: Iterable[Track]) -> int:
        """Overwrite the index with ``tracks``. Returns the number of records written.

        Raises:
            IndexStorageError: the data directory or file cannot be written.
        """
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        count = 0
        replaced = False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as fh:
                for track in tracks:
                    fh.write(serialize_track(track) + "\n")
                    count += 1
            tmp.replace(self.path)
            replaced = True
        except OSError as exc:
            raise IndexStorageError(self.path, f"Could not write index ({exc})") from exc
        finally:
            if not replaced and tmp.exists():
                tmp.unlink()

        logger.info(f"Saved index ({count} entries) to {self.path}")
        return count

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> LoadResult:
        """Read every parsable Track. A missing file is an empty, healthy index.

        Raises:
            IndexStorageError: the file exists but cannot be opened or read.
        """
        if not self.path.exists():
            logger.debug(f"No existing index file at {self.path}")
            return LoadResult()

        tracks: list[Track] = []
        corrupt = 0
        try:
            with self.path.open("rb") as fh:
                for line_no, raw in enumerate(fh, start=1):
                    line = raw.decode("utf-8", errors="replace").strip()
                    if not line:
                        continue
                    try:
                        tracks.append(parse_track(raw.decode("utf-8")))
                    except (UnicodeDecodeError, ValidationError) as exc:
                        corrupt += 1
                        logger.warning(
                            f"Corruption detected on line {line_no}: "
                            f"{str(exc).splitlines()[0]}. Marking for repair."
                        )
                        logger.debug(f"Dropped line {line_no}: {line[:200]!r}")
        except OSError as exc:
            raise IndexStorageError(self.path, f"Could not read index ({exc})") from exc

        logger.info(f"Loaded {len(tracks)} tracks from {self.path}")
        return LoadResult(tracks=tracks, needs_repair=corrupt > 0, corrupt_lines=corrupt)

    def __repr__(self) -> str:
        return f"CacheStore(path={self.path})"
