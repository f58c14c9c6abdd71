"""
Music library scanning and search operations.

Handles scanning directories for music files, deriving missing tags from the
folder layout, and querying the resulting library.
"""

import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from loguru import logger

from psp_playlist_maker.core.config import Config
from psp_playlist_maker.core.console import printable

from .metadata import MetadataCache, extract_metadata
from .models import MusicLibrary, Track

DEFAULT_FORMATS = [".mp3", ".flac", ".wav", ".m4a"]


def is_supported_format(local_path: Path, supported_formats: Iterable[str]) -> bool:
    """Check if file format is supported (extension compared case-insensitively)."""
    return local_path.suffix.lower() in {fmt.lower() for fmt in supported_formats}


def iter_audio_files(
    directory: Path, supported_formats: Iterable[str] = DEFAULT_FORMATS
) -> Iterator[Path]:
    """Yield supported audio files under directory, depth first.

    Entries that cannot be read (permission denied, broken symlinks, files that
    vanish mid-walk) are skipped.
    """
    formats = {fmt.lower() for fmt in supported_formats}

    def _on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable entry: {error}")

    for dirpath, dirnames, filenames in os.walk(directory, onerror=_on_error):
        dirnames.sort()
        for filename in sorted(filenames):
            local_path = Path(dirpath) / filename
            if not is_supported_format(local_path, formats):
                continue
            try:
                if not local_path.is_file():
                    continue
            except OSError as e:
                logger.debug(f"Skipping {local_path}: {e}")
                continue
            yield local_path


def fallback_fields(relative_path: Path) -> tuple[str, str, str]:
    """Derive (artist, album, title) from a path relative to the scan root.

    Artist/Album/Song.mp3 -> ("Artist", "Album", "Song.mp3")
    Artist/Song.mp3       -> ("Artist", "", "Song.mp3")
    Song.mp3              -> ("", "", "Song.mp3")

    Deeper layouts keep the first two directories. The extension is kept on
    the title. Bytes that are not valid UTF-8 are shown as U+FFFD.
    """
    parts = [printable(part) for part in relative_path.parts]
    title = parts[-1] if parts else ""
    directories = parts[:-1]

    if len(directories) >= 2:
        return directories[0], directories[1], title
    if len(directories) == 1:
        return directories[0], "", title
    return "", "", title


def build_track(
    local_path: Path, root: Path, cache: Optional[MetadataCache] = None
) -> Track:
    """Create a Track for one file, merging embedded tags with path fallbacks.

    Embedded values win field by field; an empty embedded field falls back to
    the value derived from the folder layout.
    """
    path_str = str(local_path)
    embedded = extract_metadata(path_str, cache)
    title, artist, album = embedded if embedded else ("", "", "")

    try:
        relative_path = local_path.relative_to(root)
    except ValueError:
        relative_path = Path(local_path.name)

    fallback_artist, fallback_album, fallback_title = fallback_fields(relative_path)

    return Track(
        path=path_str,
        artist=artist or fallback_artist,
        album=album or fallback_album,
        title=title or fallback_title,
    )


def scan_directory(
    directory: Path,
    supported_formats: Iterable[str] = DEFAULT_FORMATS,
    max_workers: Optional[int] = None,
    cache: Optional[MetadataCache] = None,
) -> MusicLibrary:
    """Scan a directory for music files and extract metadata in parallel.

    Per-file problems never abort the scan: unreadable entries are skipped and
    unreadable tags fall back to the folder layout.

    Args:
        directory: Root of the music tree
        supported_formats: Allowed extensions (with leading dot)
        max_workers: Worker thread count (None = executor default)
        cache: Metadata cache to share across scans (a new one if omitted)

    Returns:
        MusicLibrary with one Track per supported file
    """
    root = Path(directory).expanduser().absolute()
    if not root.is_dir():
        logger.warning(f"Music directory does not exist or is not a directory: {root}")
        return MusicLibrary()

    if cache is None:
        cache = MetadataCache()

    files = list(iter_audio_files(root, supported_formats))
    logger.info(f"Found {len(files)} music files in {root}")

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        tracks = list(executor.map(lambda p: build_track(p, root, cache), files))

    logger.info(
        f"Scan complete: {len(tracks)} tracks "
        f"(cache hits={cache.hits}, reads={cache.reads})"
    )
    return MusicLibrary(tracks=tracks)


def scan_music_library(
    config: Config, cache: Optional[MetadataCache] = None
) -> MusicLibrary:
    """Scan the configured music directory."""
    return scan_directory(
        Path(config.music.music_dir),
        supported_formats=config.music.supported_formats,
        max_workers=config.music.scan_workers,
        cache=cache,
    )


def get_artists(tracks: Iterable[Track]) -> list[str]:
    """Sorted unique non-empty artist names."""
    return sorted({track.artist for track in tracks if track.artist})


def get_albums_for_artist(
    tracks: Iterable[Track], artist: Optional[str] = None
) -> list[str]:
    """Sorted unique album names, optionally restricted to one artist."""
    return sorted(
        {
            track.album
            for track in tracks
            if track.album and (artist is None or track.artist == artist)
        }
    )


def count_tracks_for_artist(tracks: Iterable[Track], artist: str) -> int:
    return sum(1 for track in tracks if track.artist == artist)


def count_tracks_for_album(
    tracks: Iterable[Track], album: str, artist: Optional[str] = None
) -> int:
    return sum(
        1
        for track in tracks
        if track.album == album and (artist is None or track.artist == artist)
    )


def search_tracks(tracks: Iterable[Track], query: str) -> list[Track]:
    """Search tracks by title, artist, album, or filename."""
    query = query.lower()
    results = []

    for track in tracks:
        filename = os.path.basename(track.path)
        search_fields = [track.title, track.artist, track.album, filename]

        if any(query in field.lower() for field in search_fields):
            results.append(track)

    return results


def get_tracks_by_artist(tracks: Iterable[Track], artist: str) -> list[Track]:
    """Get all tracks by a specific artist (substring, case-insensitive)."""
    artist = artist.lower()
    return [track for track in tracks if artist in track.artist.lower()]


def get_tracks_by_album(tracks: Iterable[Track], album: str) -> list[Track]:
    """Get all tracks from a specific album (substring, case-insensitive)."""
    album = album.lower()
    return [track for track in tracks if album in track.album.lower()]


def get_library_stats(tracks: Iterable[Track]) -> dict[str, Any]:
    """Get statistics about the music library."""
    tracks = list(tracks)
    formats: dict[str, int] = {}
    for track in tracks:
        fmt = Path(track.path).suffix.lower()
        formats[fmt] = formats.get(fmt, 0) + 1

    return {
        "total_tracks": len(tracks),
        "artists": len(get_artists(tracks)),
        "albums": len({(t.artist, t.album) for t in tracks if t.album}),
        "formats": formats,
        "untagged": sum(1 for t in tracks if not t.artist and not t.album),
    }
