"""
Music metadata extraction utilities.

Reads embedded title/artist/album tags and cover art from audio files using
Mutagen. Tag lookups go through a MetadataCache keyed on (path, mtime), so an
unchanged file is only opened once per cache.
"""

import base64
import os
import threading
from typing import Any, Optional

from loguru import logger
from mutagen import File as MutagenFile
from mutagen.flac import Picture

# (title, artist, album); fields may be "" when the tag block lacks them
TagTriple = tuple[str, str, str]
CacheKey = tuple[str, int]

TITLE_TAGS = ["TIT2", "\xa9nam", "TITLE", "title"]
ARTIST_TAGS = ["TPE1", "\xa9ART", "ARTIST", "artist"]
ALBUM_TAGS = ["TALB", "\xa9alb", "ALBUM", "album"]


class MetadataCache:
    """Thread-safe (path, mtime) -> tag triple cache shared by scan workers.

    Values are Optional: None records that the file had no readable tag block,
    which is different from a tag block with empty fields. Entries are never
    evicted; a file whose mtime changes simply produces a new key.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, Optional[TagTriple]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.reads = 0  # number of times a file was actually opened

    def lookup(self, key: CacheKey) -> tuple[bool, Optional[TagTriple]]:
        """Return (found, value) for key, counting the hit or miss."""
        with self._lock:
            if key in self._entries:
                self.hits += 1
                return True, self._entries[key]
            self.misses += 1
            return False, None

    def store(self, key: CacheKey, value: Optional[TagTriple]) -> None:
        with self._lock:
            self._entries[key] = value

    def record_read(self) -> None:
        with self._lock:
            self.reads += 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries


def get_file_mtime(path: str) -> Optional[int]:
    """Last modification time in whole seconds, or None if it cannot be read.

    0 and negative values are valid timestamps (files pinned to the epoch).
    """
    try:
        return int(os.stat(path).st_mtime)
    except OSError:
        return None


def get_tag_value(audio_file: Any, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
        except (KeyError, ValueError):
            # Some formats (like Vorbis) raise ValueError for non-existent keys
            continue
        if not value:
            continue
        # ID3 frames carry a text list
        if hasattr(value, "text"):
            value = value.text
        if isinstance(value, list):
            if not value:
                continue
            value = value[0]
        return str(value)
    return None


def read_embedded_tags(local_path: str) -> Optional[TagTriple]:
    """Read (title, artist, album) straight from the file, bypassing any cache.

    Returns None when the container cannot be probed or carries no tag block.
    Probe errors are logged and treated as "no tags".
    """
    try:
        audio_file = MutagenFile(local_path)
    except Exception as e:
        logger.debug(f"Could not read tags from {local_path}: {e}")
        return None

    if audio_file is None or getattr(audio_file, "tags", None) is None:
        return None

    title = get_tag_value(audio_file, TITLE_TAGS) or ""
    artist = get_tag_value(audio_file, ARTIST_TAGS) or ""
    album = get_tag_value(audio_file, ALBUM_TAGS) or ""
    return title, artist, album


def extract_metadata(
    local_path: str, cache: Optional[MetadataCache] = None
) -> Optional[TagTriple]:
    """Get embedded (title, artist, album) for a file, using cache when given.

    An unchanged file (same path and mtime) is answered from the cache without
    being opened again. Files whose mtime cannot be read are always re-read.

    Args:
        local_path: Path to the audio file
        cache: Optional shared MetadataCache

    Returns:
        Tag triple, or None if the file has no readable tags
    """
    if cache is None:
        return read_embedded_tags(local_path)

    mtime = get_file_mtime(local_path)
    if mtime is None:
        cache.record_read()
        return read_embedded_tags(local_path)

    key = (local_path, mtime)
    found, cached = cache.lookup(key)
    if found:
        return cached

    cache.record_read()
    result = read_embedded_tags(local_path)
    cache.store(key, result)
    return result


def extract_cover(local_path: str) -> Optional[bytes]:
    """Return the first embedded picture's raw bytes, or None.

    Handles FLAC picture blocks, ID3 APIC frames, MP4 covr atoms and Vorbis
    METADATA_BLOCK_PICTURE comments. Never raises for unreadable files.
    """
    try:
        audio_file = MutagenFile(local_path)
    except Exception as e:
        logger.debug(f"Could not read cover art from {local_path}: {e}")
        return None

    if audio_file is None:
        return None

    pictures = getattr(audio_file, "pictures", None)
    if pictures:
        return bytes(pictures[0].data)

    tags = getattr(audio_file, "tags", None)
    if not tags:
        return None

    if hasattr(tags, "getall"):
        apic_frames = tags.getall("APIC")
        if apic_frames:
            return bytes(apic_frames[0].data)

    covers = _safe_get(tags, "covr")
    if covers:
        return bytes(covers[0])

    encoded = _safe_get(tags, "metadata_block_picture")
    if encoded:
        try:
            return bytes(Picture(base64.b64decode(encoded[0])).data)
        except Exception as e:
            logger.debug(f"Invalid embedded picture in {local_path}: {e}")

    return None


def _safe_get(tags: Any, key: str) -> Any:
    try:
        return tags.get(key)
    except (KeyError, ValueError):
        return None

