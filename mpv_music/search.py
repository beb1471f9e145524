"""
Online search via yt-dlp.

yt-dlp does the network work and prints one flat JSON object per result;
this module only launches it and turns that stream into ``SearchResult``
rows for the picker. Channels and entries without a playable URL are
dropped.
"""

from __future__ import annotations

import json
import subprocess
from typing import Any, Iterable, List, Optional
from urllib.parse import quote_plus

from loguru import logger

from .models import SearchResult

_CHANNEL_MARKERS = ("/channel/", "/@", "/c/")


def format_duration(seconds: Optional[float]) -> str:
    """213 → '03:33'; None → 'LIVE/???'"""
    if seconds is None:
        return "LIVE/???"
    m, s = divmod(int(seconds), 60)
    return f"{m:02d}:{s:02d}"


def format_views(count: Optional[int]) -> str:
    """1_200_000 → '1.2M', 3_400 → '3.4K'"""
    if count is None:
        return "N/A"
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def parse_search_results(lines: Iterable[str]) -> List[SearchResult]:
    """Decode yt-dlp ``--dump-json`` output, one object per line."""
    results: List[SearchResult] = []
    channels = bad_urls = 0

    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            v = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(v, dict):
            continue

        title = v.get("title") or "Unknown Title"
        if v.get("_type") == "channel":
            logger.debug(f"Ignored (type=channel): {title}")
            channels += 1
            continue

        url = v.get("url") or v.get("webpage_url") or ""
        if not url:
            bad_urls += 1
            continue
        if any(marker in url for marker in _CHANNEL_MARKERS):
            logger.debug(f"Ignored (url=channel): {title} [{url}]")
            channels += 1
            continue

        views = _number(v.get("view_count"))
        results.append(SearchResult(
            title=title,
            url=url,
            uploader=v.get("uploader") or v.get("channel") or "Unknown Channel",
            duration=format_duration(_number(v.get("duration"))),
            view_count=format_views(int(views) if views is not None else None),
            is_playlist="playlist?list=" in url or v.get("_type") == "playlist",
        ))

    logger.info(
        f"Search finished. Found: {len(results)}, ignored channels: {channels}, "
        f"bad URLs: {bad_urls}"
    )
    return results


def search_youtube(query: str, limit: int = 20) -> List[SearchResult]:
    """Run a flat yt-dlp search. A failing exit status is logged, not raised.

    Raises:
        FileNotFoundError: yt-dlp is not installed.
    """
    logger.info(f"Starting YouTube search for: {query!r} (limit: {limit})")
    search_url = f"https://www.youtube.com/results?search_query={quote_plus(query)}"
    args = [
        "yt-dlp",
        "--flat-playlist",
        "--dump-json",
        f"--playlist-end={limit}",
        "--ignore-errors",
        search_url,
    ]
    logger.debug(f"Exec: {args}")
    proc = subprocess.run(args, capture_output=True, text=True, encoding="utf-8", errors="replace")
    if proc.returncode != 0:
        logger.warning("yt-dlp exited with error status")
        logger.debug(f"yt-dlp stderr: {proc.stderr}")
    return parse_search_results(proc.stdout.splitlines())
