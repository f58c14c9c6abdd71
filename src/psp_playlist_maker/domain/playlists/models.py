"""
Playlist domain model.

A playlist is a name plus an ordered list of positions into a MusicLibrary.
It is held in memory by whoever builds it; only its exported M3U8 file is
written to disk.
"""

from dataclasses import dataclass, field

from loguru import logger

from ..library.models import MusicLibrary, Track


@dataclass
class Playlist:
    """Named, ordered selection of library tracks."""

    name: str
    track_indices: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.name = self.name.strip()
        if not self.name:
            raise ValueError("Playlist name cannot be empty")

    def __len__(self) -> int:
        return len(self.track_indices)

    def add_track(self, index: int) -> bool:
        """Append a library position. Returns False if already present."""
        if index in self.track_indices:
            return False
        self.track_indices.append(index)
        logger.debug(f"Added track {index} to '{self.name}'")
        return True

    def remove_track(self, index: int) -> bool:
        """Remove a library position. Returns False if it was not present."""
        if index not in self.track_indices:
            return False
        self.track_indices.remove(index)
        return True

    def move_track(self, old_position: int, new_position: int) -> None:
        """Move the entry at old_position so it ends up at new_position.

        Raises:
            IndexError: If either position is outside the playlist
        """
        size = len(self.track_indices)
        if not (0 <= old_position < size and 0 <= new_position < size):
            raise IndexError(
                f"Cannot move position {old_position} to {new_position} "
                f"in playlist of {size} tracks"
            )
        index = self.track_indices.pop(old_position)
        self.track_indices.insert(new_position, index)

    def resolve(self, library: MusicLibrary) -> list[Track]:
        """Tracks in playlist order. Positions outside the library are skipped."""
        tracks = []
        for index in self.track_indices:
            if 0 <= index < len(library):
                tracks.append(library[index])
            else:
                logger.warning(
                    f"Playlist '{self.name}' references missing track {index}"
                )
        return tracks
