"""PSP Playlist Maker - index a music tree and export PSP playlists."""

__version__ = "0.1.0"
