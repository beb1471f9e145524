"""Exception types raised by the index layer."""


class MpvMusicError(Exception):
    """Base class for all mpv-music errors."""


class IndexStorageError(MpvMusicError):
    """The index file or its data directory could not be created, read or written."""

    def __init__(self, path, message: str) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")
