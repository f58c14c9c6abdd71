"""Library domain - music file scanning and metadata.

This domain handles:
- Track and library data models
- Embedded metadata and cover extraction from audio files
- Library scanning with folder-layout fallbacks
- Library queries and statistics
"""

# Models
from .models import Track, MusicLibrary

# Metadata extraction
from .metadata import (
    MetadataCache,
    get_file_mtime,
    get_tag_value,
    read_embedded_tags,
    extract_metadata,
    extract_cover,
)

# Library scanning and search
from .scanner import (
    DEFAULT_FORMATS,
    is_supported_format,
    iter_audio_files,
    fallback_fields,
    build_track,
    scan_directory,
    scan_music_library,
    get_artists,
    get_albums_for_artist,
    count_tracks_for_artist,
    count_tracks_for_album,
    search_tracks,
    get_tracks_by_artist,
    get_tracks_by_album,
    get_library_stats,
)

__all__ = [
    # Models
    "Track",
    "MusicLibrary",
    # Metadata
    "MetadataCache",
    "get_file_mtime",
    "get_tag_value",
    "read_embedded_tags",
    "extract_metadata",
    "extract_cover",
    # Scanner
    "DEFAULT_FORMATS",
    "is_supported_format",
    "iter_audio_files",
    "fallback_fields",
    "build_track",
    "scan_directory",
    "scan_music_library",
    "get_artists",
    "get_albums_for_artist",
    "count_tracks_for_artist",
    "count_tracks_for_album",
    "search_tracks",
    "get_tracks_by_artist",
    "get_tracks_by_album",
    "get_library_stats",
]
