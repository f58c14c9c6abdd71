"""
Playlist export functionality for PSP Playlist Maker.
Writes minimal M3U8 playlists using the device's absolute path convention.
"""

import os
import tempfile
from pathlib import Path, PurePath
from typing import Optional, Sequence

from loguru import logger

from ...core.config import Config, get_data_dir
from ..library.models import MusicLibrary, Track
from .exceptions import EmptyPlaylistError, PlaylistWriteError
from .models import Playlist

DEFAULT_MARKER = "MUSIC"
M3U_HEADER = "#EXTM3U"


def to_device_path(host_path: str, marker: str = DEFAULT_MARKER) -> str:
    """
    Convert a host file path to the device's absolute path format.

    The path is cut at the first component matching the marker directory
    (case-insensitive) and re-joined with "/". Characters are kept verbatim;
    the device does not expect escaping.

    Example:
        /mnt/psp/MUSIC/Album/song.mp3 -> /MUSIC/Album/song.mp3
        /tmp/song.mp3                 -> /MUSIC/song.mp3

    Args:
        host_path: Absolute path of the track on the host
        marker: Name of the device's music root folder

    Returns:
        Device path starting with "/"
    """
    path = PurePath(host_path)
    components = path.parts
    wanted = marker.casefold()

    for position, component in enumerate(components):
        if component.casefold() == wanted:
            return "/" + "/".join(components[position:])

    # No marker folder in the path: assume the file sits directly under it
    return f"/{marker}/{path.name}"


def _playlist_line(track: Track, marker: str) -> str:
    """Device path for one track, checked to fit on a single UTF-8 line."""
    device_path = to_device_path(track.path, marker)
    if "\n" in device_path or "\r" in device_path:
        raise PlaylistWriteError(f"Track path contains a line break: {track.path!r}")
    try:
        device_path.encode("utf-8")
    except UnicodeEncodeError as e:
        raise PlaylistWriteError(
            f"Track path is not valid UTF-8: {track.path!r}"
        ) from e
    return device_path


def write_m3u8(
    playlist_path: Path, tracks: Sequence[Track], marker: str = DEFAULT_MARKER
) -> int:
    """
    Write tracks to an M3U8 file (UTF-8 M3U) in the given order.

    The file is written to a uniquely named temporary sibling and renamed into
    place, so a failed export never leaves a truncated playlist behind.

    Args:
        playlist_path: Destination file
        tracks: Tracks in playback order
        marker: Device music root folder name

    Returns:
        Number of tracks written

    Raises:
        EmptyPlaylistError: If tracks is empty (no file is touched)
        PlaylistWriteError: If a track path cannot be written as one UTF-8
            line (no file is touched), or the file cannot be written
    """
    if not tracks:
        raise EmptyPlaylistError(Path(playlist_path).stem)

    playlist_path = Path(playlist_path)
    lines = [M3U_HEADER] + [_playlist_line(track, marker) for track in tracks]

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="\n",
            dir=playlist_path.parent,
            prefix=f".{playlist_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            temp_path = Path(f.name)
            f.writelines(f"{line}\n" for line in lines)
        os.replace(temp_path, playlist_path)
    except OSError as e:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                logger.warning(f"Could not remove temporary file {temp_path}")
        raise PlaylistWriteError(f"Cannot write playlist {playlist_path}: {e}") from e

    logger.info(f"Exported {len(tracks)} tracks to: {playlist_path}")
    return len(tracks)


def get_playlist_dir(config: Optional[Config] = None) -> Path:
    """Directory exported playlists are written to by default."""
    if config is not None and config.device.playlist_dir:
        return Path(config.device.playlist_dir)
    return get_data_dir() / "playlists"


def export_tracks(
    name: str,
    tracks: Sequence[Track],
    output_dir: Optional[Path] = None,
    config: Optional[Config] = None,
) -> tuple[Path, int]:
    """
    Export an ordered track selection as <output_dir>/<name>.m3u8.

    Returns:
        Tuple of (output_path, tracks_exported)

    Raises:
        EmptyPlaylistError: If the selection is empty
        PlaylistWriteError: If the output directory or file cannot be written
    """
    if not tracks:
        raise EmptyPlaylistError(name)

    marker = config.device.marker_dir if config is not None else DEFAULT_MARKER
    output_dir = Path(output_dir) if output_dir else get_playlist_dir(config)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PlaylistWriteError(f"Cannot create playlist directory {output_dir}: {e}") from e

    output_path = output_dir / f"{name}.m3u8"
    return output_path, write_m3u8(output_path, tracks, marker=marker)


def export_playlist(
    playlist: Playlist,
    library: MusicLibrary,
    output_dir: Optional[Path] = None,
    config: Optional[Config] = None,
) -> tuple[Path, int]:
    """
    Export a Playlist, resolving its positions against library.

    Returns:
        Tuple of (output_path, tracks_exported)

    Raises:
        EmptyPlaylistError: If the playlist resolves to no tracks
        PlaylistWriteError: If the file cannot be written
    """
    tracks = playlist.resolve(library)
    if not tracks:
        logger.warning(f"Cannot export empty playlist '{playlist.name}'")
        raise EmptyPlaylistError(playlist.name)

    return export_tracks(playlist.name, tracks, output_dir=output_dir, config=config)
