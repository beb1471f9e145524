"""Tests for decoding yt-dlp search output."""

import json
import subprocess

import pytest

from mpv_music import search
from mpv_music.search import format_duration, format_views, parse_search_results


def line(**fields):
    return json.dumps(fields)


class TestFormatting:
    @pytest.mark.parametrize("seconds,expected", [(213, "03:33"), (59.9, "00:59"), (None, "LIVE/???")])
    def test_duration(self, seconds, expected):
        assert format_duration(seconds) == expected

    @pytest.mark.parametrize("count,expected", [
        (1_200_000, "1.2M"), (3_400, "3.4K"), (999, "999"), (None, "N/A"),
    ])
    def test_views(self, count, expected):
        assert format_views(count) == expected


class TestParseSearchResults:
    def test_video_entry(self):
        results = parse_search_results([line(
            title="Ado - Usseewa", url="https://www.youtube.com/watch?v=Qp3b",
            uploader="Ado", duration=213, view_count=1_200_000,
        )])
        assert len(results) == 1
        r = results[0]
        assert (r.title, r.uploader, r.duration, r.view_count) == (
            "Ado - Usseewa", "Ado", "03:33", "1.2M",
        )
        assert r.is_playlist is False

    def test_channels_dropped(self):
        results = parse_search_results([
            line(_type="channel", title="Ado", url="https://www.youtube.com/channel/x"),
            line(title="Handle", url="https://www.youtube.com/@ado"),
            line(title="Custom", url="https://www.youtube.com/c/ado"),
        ])
        assert results == []

    def test_missing_url_dropped_and_webpage_url_used(self):
        results = parse_search_results([
            line(title="No URL"),
            line(title="Fallback", webpage_url="https://www.youtube.com/watch?v=1"),
        ])
        assert [r.title for r in results] == ["Fallback"]

    def test_playlist_detection(self):
        results = parse_search_results([
            line(title="Mix", url="https://www.youtube.com/playlist?list=PL1"),
            line(_type="playlist", title="Other", url="https://example.com/x"),
        ])
        assert all(r.is_playlist for r in results)

    def test_defaults_and_garbage(self):
        results = parse_search_results([
            "not json", "", "[1, 2]",
            line(url="https://www.youtube.com/watch?v=2", channel="Chan"),
        ])
        assert len(results) == 1
        r = results[0]
        assert (r.title, r.uploader, r.duration, r.view_count) == (
            "Unknown Title", "Chan", "LIVE/???", "N/A",
        )


class TestSearchYoutube:
    def test_runs_ytdlp(self, monkeypatch):
        seen = {}

        def fake_run(args, **kw):
            seen["args"] = args
            out = line(title="Hit", url="https://www.youtube.com/watch?v=3")
            return subprocess.CompletedProcess(args, 1, stdout=out + "\n", stderr="warn")

        monkeypatch.setattr(search.subprocess, "run", fake_run)
        results = search.search_youtube("ado usseewa", limit=5)
        assert [r.title for r in results] == ["Hit"]
        assert seen["args"][0] == "yt-dlp"
        assert "--playlist-end=5" in seen["args"]
        assert seen["args"][-1].endswith("search_query=ado+usseewa")
