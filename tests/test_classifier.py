"""Tests for extension classification."""

import pytest

from mpv_music.classifier import classify_extension, extension_of, to_extension_set
from mpv_music.models import MediaType


AUDIO = to_extension_set(["mp3", "flac", "ogg"])
VIDEO = to_extension_set(["mp4", "mkv"])
PLAYLIST = to_extension_set(["m3u", "m3u8"])


def classify(name, video=False):
    return classify_extension(extension_of(name), AUDIO, VIDEO, PLAYLIST, video)


class TestClassifyExtension:
    def test_audio(self):
        assert classify("song.mp3") is MediaType.AUDIO

    def test_case_insensitive(self):
        assert classify("Song.MP3") is MediaType.AUDIO

    def test_playlist(self):
        assert classify("mix.M3U8") is MediaType.PLAYLIST

    def test_video_disabled_is_skipped(self):
        assert classify("clip.mp4") is None

    def test_video_enabled(self):
        assert classify("clip.mkv", video=True) is MediaType.VIDEO

    def test_unknown_extension(self):
        assert classify("cover.jpg") is None

    def test_no_extension(self):
        assert classify("README") is None
        assert classify(".mp3") is None

    def test_audio_wins_over_playlist_and_video(self):
        shared = to_extension_set(["ogg"])
        assert classify_extension("ogg", shared, shared, shared, True) is MediaType.AUDIO

    def test_playlist_wins_over_video(self):
        shared = to_extension_set(["ts"])
        assert classify_extension("ts", frozenset(), shared, shared, True) is MediaType.PLAYLIST


class TestExtensionSet:
    @pytest.mark.parametrize("raw", [" MP3", ".mp3", "Mp3 "])
    def test_normalised(self, raw):
        assert to_extension_set([raw]) == frozenset({"mp3"})

    def test_blank_entries_dropped(self):
        assert to_extension_set(["", "  ", "flac"]) == frozenset({"flac"})
