"""Playlists domain - in-memory playlists and M3U8 export for the PSP."""

from .exceptions import EmptyPlaylistError, PlaylistError, PlaylistWriteError
from .models import Playlist
from .exporters import (
    DEFAULT_MARKER,
    to_device_path,
    write_m3u8,
    get_playlist_dir,
    export_tracks,
    export_playlist,
)

__all__ = [
    "PlaylistError",
    "EmptyPlaylistError",
    "PlaylistWriteError",
    "Playlist",
    "DEFAULT_MARKER",
    "to_device_path",
    "write_m3u8",
    "get_playlist_dir",
    "export_tracks",
    "export_playlist",
]
