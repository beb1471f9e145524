"""Tests for configuration defaults and environment overrides."""

import os
from pathlib import Path

import pytest

from mpv_music.config import IndexerConfig, normalise_extensions

ENV_VARS = [
    "MPV_MUSIC_DIRS", "MPV_MUSIC_VIDEO_OK", "MPV_MUSIC_SERIAL",
    "MPV_MUSIC_WORKERS", "MPV_MUSIC_AUDIO_EXTS", "MPV_MUSIC_DATA_DIR",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_extension_sets(self):
        cfg = IndexerConfig()
        assert "mp3" in cfg.audio_exts
        assert "mkv" in cfg.video_exts
        assert cfg.playlist_exts == ["m3u", "m3u8", "pls"]

    def test_switches(self):
        cfg = IndexerConfig()
        assert cfg.video_ok is False
        assert cfg.serial_mode is True
        assert cfg.effective_workers() == 1

    def test_index_path(self, tmp_path):
        cfg = IndexerConfig(data_dir=tmp_path)
        assert cfg.index_path == tmp_path / "music_index.jsonl"

    def test_parallel_workers(self):
        assert IndexerConfig(serial_mode=False, workers=3).effective_workers() == 3
        assert IndexerConfig(serial_mode=False).effective_workers() >= 1

    def test_extensions_normalised(self):
        assert normalise_extensions([" .MP3", "mp3", "", "Flac"]) == ["mp3", "flac"]
        assert IndexerConfig(audio_exts=[".OGG"]).audio_exts == ["ogg"]


class TestFromEnv:
    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MPV_MUSIC_DIRS", os.pathsep.join(["/a", "/b"]))
        monkeypatch.setenv("MPV_MUSIC_VIDEO_OK", "true")
        monkeypatch.setenv("MPV_MUSIC_SERIAL", "0")
        monkeypatch.setenv("MPV_MUSIC_WORKERS", "6")
        monkeypatch.setenv("MPV_MUSIC_AUDIO_EXTS", "mp3, opus")
        monkeypatch.setenv("MPV_MUSIC_DATA_DIR", str(tmp_path))
        cfg = IndexerConfig.from_env()
        assert cfg.music_dirs == [Path("/a"), Path("/b")]
        assert cfg.video_ok is True
        assert cfg.effective_workers() == 6
        assert cfg.audio_exts == ["mp3", "opus"]
        assert cfg.data_dir == tmp_path

    def test_bad_worker_count_ignored(self, monkeypatch):
        monkeypatch.setenv("MPV_MUSIC_WORKERS", "lots")
        assert IndexerConfig.from_env().workers is None

    def test_explicit_overrides_win(self, monkeypatch):
        monkeypatch.setenv("MPV_MUSIC_VIDEO_OK", "0")
        assert IndexerConfig.from_env(video_ok=True).video_ok is True
