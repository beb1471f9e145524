"""Tests for the JSONL cache store."""

import json

import pytest

from mpv_music.cache_store import CacheStore, parse_track, serialize_track
from mpv_music.errors import IndexStorageError
from mpv_music.models import MediaType, Track


def make_track(n, genre="Pop", media_type=MediaType.AUDIO, title=None):
    return Track(
        path=f"/m/track{n}.mp3",
        title=title or f"Track {n}",
        artist="Artist",
        album="Album",
        genre=genre,
        mtime=1_700_000_000 + n,
        size=1000 + n,
        media_type=media_type,
    )


@pytest.fixture
def store(tmp_path):
    return CacheStore(tmp_path / "data" / "music_index.jsonl")


class TestSerialization:
    def test_round_trip(self):
        t = make_track(1, genre="Pop;Rock", title="Ünïcödé, “quoted”")
        assert parse_track(serialize_track(t)) == t

    def test_playlist_round_trip(self):
        t = make_track(2, media_type=MediaType.PLAYLIST)
        assert parse_track(serialize_track(t)).media_type is MediaType.PLAYLIST

    def test_fields_on_the_wire(self):
        record = json.loads(serialize_track(make_track(3)))
        assert set(record) == {
            "path", "title", "artist", "album", "genre", "mtime", "size", "media_type",
        }
        assert record["media_type"] == "audio"
        assert record["mtime"] == 1_700_000_003

    def test_non_ascii_written_verbatim(self):
        assert "Ünï" in serialize_track(make_track(4, title="Ünï"))


class TestSaveLoad:
    def test_missing_file_is_empty_and_healthy(self, store):
        result = store.load()
        assert result.tracks == []
        assert result.needs_repair is False

    def test_save_then_load_empty(self, store):
        assert store.save([]) == 0
        result = store.load()
        assert result.tracks == []
        assert result.needs_repair is False

    def test_save_then_load(self, store):
        tracks = [make_track(i) for i in range(5)]
        assert store.save(tracks) == 5
        result = store.load()
        assert result.tracks == tracks
        assert result.needs_repair is False

    def test_save_overwrites(self, store):
        store.save([make_track(i) for i in range(5)])
        store.save([make_track(9)])
        assert store.load().tracks == [make_track(9)]

    def test_no_tmp_file_left_behind(self, store):
        store.save([make_track(1)])
        assert [p.name for p in store.path.parent.iterdir()] == ["music_index.jsonl"]

    def test_failed_write_removes_tmp_file(self, store):
        store.save([make_track(1)])

        def tracks():
            yield make_track(2)
            raise RuntimeError("source went away")

        with pytest.raises(RuntimeError):
            store.save(tracks())
        assert [p.name for p in store.path.parent.iterdir()] == ["music_index.jsonl"]
        assert store.load().tracks == [make_track(1)]

    def test_blank_lines_skipped(self, store):
        store.path.parent.mkdir(parents=True)
        lines = ["", serialize_track(make_track(1)), "   ", serialize_track(make_track(2)), ""]
        store.path.write_text("\n".join(lines), encoding="utf-8")
        result = store.load()
        assert len(result.tracks) == 2
        assert result.needs_repair is False


class TestCorruptionRepair:
    def _write_corrupt(self, store):
        good = [make_track(i) for i in range(7)]
        bad = [
            b"this is not json",
            b'{"path": "/m/missing-fields.mp3"}',
            b'{"path": "/m/x.mp3", "title": "x", "artist": "a", "album": "b", '
            b'"genre": "g", "mtime": -5, "size": 1, "media_type": "audio"}',
        ]
        lines = [serialize_track(t).encode("utf-8") for t in good[:3]]
        lines += bad
        lines += [serialize_track(t).encode("utf-8") for t in good[3:]]
        store.path.parent.mkdir(parents=True)
        store.path.write_bytes(b"\n".join(lines) + b"\n")
        return good

    def test_corrupt_lines_dropped_and_flagged(self, store):
        good = self._write_corrupt(store)
        result = store.load()
        assert result.tracks == good
        assert result.needs_repair is True
        assert result.corrupt_lines == 3

    def test_repaired_file_loads_clean(self, store):
        good = self._write_corrupt(store)
        store.save(store.load().tracks)
        result = store.load()
        assert result.tracks == good
        assert result.needs_repair is False

    def test_invalid_utf8_line_is_corrupt(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_bytes(
            serialize_track(make_track(1)).encode("utf-8") + b"\n\xff\xfe{garbage\n"
        )
        result = store.load()
        assert len(result.tracks) == 1
        assert result.corrupt_lines == 1

    def test_unknown_media_type_is_corrupt(self, store):
        record = json.loads(serialize_track(make_track(1)))
        record["media_type"] = "podcast"
        store.path.parent.mkdir(parents=True)
        store.path.write_text(json.dumps(record) + "\n", encoding="utf-8")
        assert store.load().needs_repair is True


class TestStorageErrors:
    def test_unwritable_data_dir(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = CacheStore(blocker / "music_index.jsonl")
        with pytest.raises(IndexStorageError):
            store.save([make_track(1)])

    def test_unreadable_index(self, tmp_path):
        path = tmp_path / "music_index.jsonl"
        path.mkdir()
        with pytest.raises(IndexStorageError):
            CacheStore(path).load()
