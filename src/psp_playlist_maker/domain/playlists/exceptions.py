"""Playlist export exceptions."""


class PlaylistError(Exception):
    """Base exception for playlist operations."""

    pass


class EmptyPlaylistError(PlaylistError):
    """Raised when exporting a playlist with no tracks."""

    def __init__(self, name: str | None = None):
        self.name = name
        super().__init__(
            f"Playlist '{name}' is empty" if name else "Cannot export empty playlist"
        )


class PlaylistWriteError(PlaylistError):
    """Raised when the playlist file cannot be created or written."""

    pass
