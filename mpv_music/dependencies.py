"""External tool availability, checked once at startup."""

import shutil

from loguru import logger

from .models import Capabilities


def check_capabilities() -> Capabilities:
    """Look for mpv and yt-dlp on PATH. Missing tools are reported, never fatal here."""
    mpv = shutil.which("mpv") is not None
    ytdlp = shutil.which("yt-dlp") is not None

    if mpv:
        logger.info("Dependency 'mpv': found")
    else:
        logger.error("Dependency 'mpv' not found. Playback is unavailable.")
    if ytdlp:
        logger.info("Dependency 'yt-dlp': found")
    else:
        logger.warning("Dependency 'yt-dlp' not found. Search and streaming disabled.")
    return Capabilities(mpv=mpv, ytdlp=ytdlp)
