"""
mpv-music-index — build, refresh and query the local media index.

Usage:
    mpv-music-index                         # load (first run: full scan)
    mpv-music-index --refresh               # incremental rescan + save
    mpv-music-index --force                 # full rescan + save
    mpv-music-index --dir ~/Downloads/x     # one-off scan, index untouched
    mpv-music-index --artist ado            # print matching paths
    mpv-music-index --genre "pop,rock" --title love
    mpv-music-index --list genre            # distinct genres with counts
    mpv-music-index --playlist "road trip"  # entries of matching playlists
    mpv-music-index --search "ado usseewa"  # YouTube search via yt-dlp
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from .catalog import find_playlists, playlist_entries, tag_summary
from .config import IndexerConfig
from .dependencies import check_capabilities
from .errors import IndexStorageError
from .index_manager import IndexManager
from .models import TAG_FIELDS, Track
from .query import Query, QueryResolver, QueryStatus
from .scanner import ScanProgress
from .search import search_youtube
from .selection import PromptSelector

GREEN  = "\033[0;32m"
RED    = "\033[0;31m"
BOLD   = "\033[1m"
NC     = "\033[0m"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_ABORTED = 130


def configure_logging(config: IndexerConfig, debug: bool = False, verbose: bool = False) -> None:
    """stderr sink by verbosity, plus the log file in the data dir when enabled."""
    logger.remove()
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        level = "ERROR"
    logger.add(sys.stderr, level=level, format="[<level>{level}</level>] {message}")

    if config.enable_file_logging:
        try:
            config.data_dir.mkdir(parents=True, exist_ok=True)
            logger.add(
                config.log_path,
                level="DEBUG" if debug else "INFO",
                mode="w",
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning(f"File logging disabled: {exc}")


def _progress_printer(count: int) -> None:
    if count % 100 == 0:
        sys.stderr.write(f"\r  {count} tracks")
        sys.stderr.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mpv-music-index",
        description="Build, refresh and query the local music/video index.",
    )
    parser.add_argument("--force", action="store_true",
                        help="Full rescan, ignoring cached tags")
    parser.add_argument("--refresh", action="store_true",
                        help="Incremental rescan of the music directories")
    parser.add_argument("--dir", type=Path, metavar="PATH",
                        help="Scan only PATH for this run; the saved index is untouched")
    parser.add_argument("--serial", action="store_true",
                        help="Scan with a single worker")
    parser.add_argument("--video-ok", action="store_true",
                        help="Include video files")
    parser.add_argument("-g", "--genre", help="Comma-separated genres")
    parser.add_argument("-a", "--artist", help="Comma-separated artists")
    parser.add_argument("-b", "--album", help="Comma-separated albums")
    parser.add_argument("-t", "--title", help="Title substring")

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--list", choices=TAG_FIELDS, metavar="FIELD",
                      help="List distinct values of genre, artist or album")
    mode.add_argument("--playlist", metavar="NAME",
                      help="Print the entries of playlists whose name contains NAME")
    mode.add_argument("--search", metavar="QUERY",
                      help="Search YouTube with yt-dlp instead of the local index")
    parser.add_argument("--limit", type=int, default=20,
                        help="Maximum number of search results (default: 20)")

    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--debug", action="store_true")
    return parser


def _run_search(query: str, limit: int) -> int:
    results = search_youtube(query, limit=limit)
    if not results:
        print("No results.", file=sys.stderr)
        return EXIT_FAILURE
    for r in results:
        kind = "[playlist] " if r.is_playlist else ""
        print(f"{kind}{r.title}\t{r.uploader}\t{r.duration}\t{r.view_count}\t{r.url}")
    return EXIT_OK


def _run_list(tracks: List[Track], field: str) -> int:
    for entry in tag_summary(tracks, field):
        print(f"{entry.name}\t{entry.count}")
    return EXIT_OK


def _run_playlist(tracks: List[Track], name: str) -> int:
    matches = find_playlists(tracks, name)
    if not matches:
        print("No matching playlist.", file=sys.stderr)
        return EXIT_FAILURE
    for pl in sorted(matches, key=lambda t: t.title.lower()):
        print(f"{BOLD}{pl.title}{NC}", file=sys.stderr)
        for entry in playlist_entries(pl.path):
            print(entry)
    return EXIT_OK


def _run_query(tracks: List[Track], query: Query) -> int:
    resolver = QueryResolver(tracks, selector=PromptSelector(prompt="Which one did you mean? "))
    result = resolver.resolve(query)
    if result.status is QueryStatus.ABORTED:
        return EXIT_ABORTED
    if result.status is QueryStatus.NO_MATCH:
        print("No match.", file=sys.stderr)
        return EXIT_FAILURE
    if result.status is QueryStatus.MULTIPLE:
        print(f"{BOLD}Found {len(result.tracks)} matching tracks.{NC}", file=sys.stderr)
    for path in sorted(result.paths):
        print(path)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.serial:
        overrides["serial_mode"] = True
    if args.video_ok:
        overrides["video_ok"] = True
    config = IndexerConfig.from_env(**overrides)
    configure_logging(config, debug=args.debug, verbose=args.verbose)
    logger.info("Starting mpv-music-index")
    logger.debug(f"CLI args: {args}")

    caps = check_capabilities()
    if args.search is not None:
        if not caps.ytdlp:
            print(f"{RED}ERROR:{NC} yt-dlp is not installed; search is unavailable.",
                  file=sys.stderr)
            return EXIT_FAILURE
        return _run_search(args.search, args.limit)

    manager = IndexManager(config, progress=ScanProgress(_progress_printer))
    try:
        if args.dir is not None:
            tracks = manager.scan_directory(args.dir)
        else:
            tracks = manager.ensure_index(reindex=args.force, refresh=args.refresh)
    except IndexStorageError as exc:
        print(f"{RED}ERROR:{NC} {exc}", file=sys.stderr)
        return EXIT_FAILURE
    sys.stderr.write("\r")

    if not tracks:
        print("No music found.", file=sys.stderr)
        return EXIT_FAILURE

    if args.list is not None:
        return _run_list(tracks, args.list)
    if args.playlist is not None:
        return _run_playlist(tracks, args.playlist)

    query = Query(genre=args.genre, artist=args.artist, album=args.album, title=args.title)
    if query.is_empty():
        stats = manager.last_stats
        print(f"{GREEN}✓{NC} {len(tracks)} tracks indexed")
        if stats is not None:
            print(f"  Cached: {stats.cache_hits}  Probed: {stats.probed}  Errors: {stats.errors}")
        if not caps.mpv:
            print("  mpv not found: playback is unavailable", file=sys.stderr)
        return EXIT_OK

    return _run_query(tracks, query)


if __name__ == "__main__":
    sys.exit(main())
