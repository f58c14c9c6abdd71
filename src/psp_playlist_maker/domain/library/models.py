"""
Music library domain models.

Contains data structures for representing indexed tracks and the library
snapshot produced by a scan.
"""

from dataclasses import dataclass, field
from typing import Iterator, NamedTuple


class Track(NamedTuple):
    """Represents one indexed audio file.

    Missing fields are empty strings, never None, so the fallback merge in the
    scanner and the database round-trip can treat every field the same way.
    """
    path: str  # Absolute host path at scan time (unique within a snapshot)
    artist: str = ""
    album: str = ""
    title: str = ""


@dataclass
class MusicLibrary:
    """An ordered snapshot of tracks produced by one scan.

    A new scan creates a new library; libraries are never merged.
    """

    tracks: list[Track] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self.tracks)

    def __getitem__(self, index: int) -> Track:
        return self.tracks[index]
