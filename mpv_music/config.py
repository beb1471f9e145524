"""
Indexer Configuration

Holds the music roots, extension sets and scan switches. Defaults match a
fresh install; every setting can be overridden through environment
variables so the CLI and tests never need a config file:

  MPV_MUSIC_DIRS        os.pathsep-separated list of music roots
  MPV_MUSIC_VIDEO_OK    "1"/"true" to index video files
  MPV_MUSIC_SERIAL      "0"/"false" to scan with the full worker pool
  MPV_MUSIC_WORKERS     explicit worker count (ignored in serial mode)
  MPV_MUSIC_AUDIO_EXTS  comma list replacing the audio extensions
  MPV_MUSIC_DATA_DIR    where music_index.jsonl and the log live
"""

import os
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_AUDIO_EXTS: List[str] = [
    "mp3", "flac", "wav", "m4a", "aac", "ogg", "opus", "wma", "alac", "aiff", "amr",
]
DEFAULT_VIDEO_EXTS: List[str] = [
    "mp4", "mkv", "webm", "avi", "mov", "flv", "wmv", "mpeg", "mpg", "3gp", "ts",
    "vob", "m4v",
]
DEFAULT_PLAYLIST_EXTS: List[str] = ["m3u", "m3u8", "pls"]

INDEX_FILENAME = "music_index.jsonl"
LOG_FILENAME = "mpv-music.log"

_TRUTHY = {"1", "true", "yes", "on"}


def _default_data_dir() -> Path:
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "mpv-music"


def _default_music_dirs() -> List[Path]:
    return [Path.home() / "Music"]


def normalise_extensions(exts: List[str]) -> List[str]:
    """Trim, lower-case and drop leading dots; blanks are discarded."""
    cleaned = []
    for ext in exts:
        e = ext.strip().lower().lstrip(".")
        if e and e not in cleaned:
            cleaned.append(e)
    return cleaned


def _env_flag(name: str) -> Optional[bool]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip().lower() in _TRUTHY


class IndexerConfig(BaseModel):
    """Settings consumed by the scanner and the index manager."""

    music_dirs: List[Path] = Field(default_factory=_default_music_dirs)
    video_ok: bool = Field(False, description="Index video files too")
    serial_mode: bool = Field(True, description="Scan with a single worker")
    workers: Optional[int] = Field(None, ge=1, description="Worker count override")
    audio_exts: List[str] = Field(default_factory=lambda: list(DEFAULT_AUDIO_EXTS))
    video_exts: List[str] = Field(default_factory=lambda: list(DEFAULT_VIDEO_EXTS))
    playlist_exts: List[str] = Field(default_factory=lambda: list(DEFAULT_PLAYLIST_EXTS))
    data_dir: Path = Field(default_factory=_default_data_dir)
    enable_file_logging: bool = True

    @field_validator("audio_exts", "video_exts", "playlist_exts")
    @classmethod
    def _clean_exts(cls, v: List[str]) -> List[str]:
        return normalise_extensions(v)

    @property
    def index_path(self) -> Path:
        return self.data_dir / INDEX_FILENAME

    @property
    def log_path(self) -> Path:
        return self.data_dir / LOG_FILENAME

    def effective_workers(self) -> int:
        """1 in serial mode, otherwise the override or every available CPU."""
        if self.serial_mode:
            return 1
        if self.workers:
            return self.workers
        return os.cpu_count() or 1

    @classmethod
    def from_env(cls, **overrides) -> "IndexerConfig":
        """Build a config from defaults, environment variables, then ``overrides``."""
        values: dict = {}

        dirs = os.environ.get("MPV_MUSIC_DIRS")
        if dirs:
            values["music_dirs"] = [Path(d) for d in dirs.split(os.pathsep) if d.strip()]
            logger.debug(f"Music directories from MPV_MUSIC_DIRS: {values['music_dirs']}")

        video_ok = _env_flag("MPV_MUSIC_VIDEO_OK")
        if video_ok is not None:
            values["video_ok"] = video_ok

        serial = _env_flag("MPV_MUSIC_SERIAL")
        if serial is not None:
            values["serial_mode"] = serial

        workers = os.environ.get("MPV_MUSIC_WORKERS")
        if workers:
            try:
                values["workers"] = int(workers)
            except ValueError:
                logger.warning(f"Ignoring MPV_MUSIC_WORKERS={workers!r}: not an integer")

        audio = os.environ.get("MPV_MUSIC_AUDIO_EXTS")
        if audio:
            values["audio_exts"] = audio.split(",")

        data_dir = os.environ.get("MPV_MUSIC_DATA_DIR")
        if data_dir:
            values["data_dir"] = Path(data_dir)

        values.update({k: v for k, v in overrides.items() if v is not None})
        cfg = cls(**values)
        logger.debug(
            f"Config: {len(cfg.music_dirs)} dirs, video_ok={cfg.video_ok}, "
            f"serial={cfg.serial_mode}, data_dir={cfg.data_dir}"
        )
        return cfg
