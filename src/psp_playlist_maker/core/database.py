"""
SQLite database operations for PSP Playlist Maker
"""

import re
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from .config import Config, get_data_dir

# "%" is escaped too so unescape_path(escape_path(p)) == p for any path.
# Undecodable filename bytes (surrogate escapes U+DC80..U+DCFF) are stored
# as "%80".."%FF" so the column stays valid UTF-8.
_ESCAPE_TABLE = str.maketrans(
    {
        "%": "%25",
        " ": "%20",
        **{chr(0xDC00 + byte): f"%{byte:02X}" for byte in range(0x80, 0x100)},
    }
)
_UNESCAPE_PATTERN = re.compile(r"%(25|20|[89A-F][0-9A-F])")


class PersistenceError(Exception):
    """Raised when the track index cannot be opened, read or written."""

    pass


def escape_path(path: str) -> str:
    """Encode a host path for storage: "%" -> "%25", " " -> "%20".

    Surrogate-escaped bytes from non-UTF-8 filenames become "%XX".
    """
    return path.translate(_ESCAPE_TABLE)


def unescape_path(stored: str) -> str:
    """Inverse of escape_path."""
    return _UNESCAPE_PATTERN.sub(_unescape_match, stored)


def _unescape_match(match: re.Match) -> str:
    code = int(match.group(1), 16)
    return chr(code) if code < 0x80 else chr(0xDC00 + code)


def get_database_path(config: Optional[Config] = None) -> Path:
    """Get the path to the SQLite database file."""
    if config is not None and config.database.path:
        return Path(config.database.path)
    return get_data_dir() / "music_index.db"


@contextmanager
def get_db_connection(db_path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with proper cleanup.

    Raises:
        PersistenceError: If the database cannot be opened
    """
    db_path = Path(db_path) if db_path else get_database_path()
    try:
        conn = sqlite3.connect(db_path, timeout=30.0)
    except sqlite3.Error as e:
        raise PersistenceError(f"Cannot open database {db_path}: {e}") from e
    conn.row_factory = sqlite3.Row  # Enable dict-like access

    try:
        yield conn
    finally:
        conn.close()


def init_database(db_path: Optional[Path] = None) -> Path:
    """Initialize the database with required tables.

    Only creates the schema when absent; an existing table is left as is.

    Returns:
        Path of the initialized database
    """
    db_path = Path(db_path) if db_path else get_database_path()

    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceError(f"Cannot create database directory: {e}") from e

    with get_db_connection(db_path) as conn:
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS tracks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    path TEXT NOT NULL,
                    artist TEXT,
                    album TEXT,
                    title TEXT
                )
            """)
            conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot initialize schema in {db_path}: {e}") from e

    return db_path


def save_library(
    library,
    db_path: Optional[Path] = None,
    escape_paths: bool = True,
    replace: bool = True,
) -> int:
    """Save every track of a library in one transaction.

    With replace=True (default) the previously stored tracks are deleted in
    the same transaction, so the table always holds exactly one snapshot.
    With replace=False rows are appended to whatever is already stored.

    Args:
        library: MusicLibrary (or any iterable of Track)
        db_path: Database file (default: data dir)
        escape_paths: Encode paths with escape_path before storing (without
            it, filenames that are not valid UTF-8 cannot be saved)
        replace: Clear existing rows before inserting

    Returns:
        Number of rows written

    Raises:
        PersistenceError: If the write fails; nothing is committed in that case
    """
    db_path = init_database(db_path)

    rows = [
        (
            escape_path(track.path) if escape_paths else track.path,
            track.artist,
            track.album,
            track.title,
        )
        for track in library
    ]

    with get_db_connection(db_path) as conn:
        try:
            with conn:
                if replace:
                    conn.execute("DELETE FROM tracks")
                conn.executemany(
                    "INSERT INTO tracks (path, artist, album, title) VALUES (?, ?, ?, ?)",
                    rows,
                )
        except (sqlite3.Error, UnicodeError) as e:
            raise PersistenceError(f"Failed to save library to {db_path}: {e}") from e

    logger.info(
        f"Saved {len(rows)} tracks to {db_path} ({'replaced' if replace else 'appended'})"
    )
    return len(rows)


def load_library(db_path: Optional[Path] = None, escape_paths: bool = True):
    """Load the stored library in insertion order.

    Raises:
        PersistenceError: If the database cannot be read
    """
    # Import here to avoid circular imports
    from ..domain.library.models import MusicLibrary, Track

    db_path = init_database(db_path)

    with get_db_connection(db_path) as conn:
        try:
            cursor = conn.execute(
                "SELECT path, artist, album, title FROM tracks ORDER BY id"
            )
            rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load library from {db_path}: {e}") from e

    tracks = [
        Track(
            path=unescape_path(row["path"]) if escape_paths else row["path"],
            artist=row["artist"] or "",
            album=row["album"] or "",
            title=row["title"] or "",
        )
        for row in rows
    ]
    logger.debug(f"Loaded {len(tracks)} tracks from {db_path}")
    return MusicLibrary(tracks=tracks)


def count_tracks(db_path: Optional[Path] = None) -> int:
    """Number of stored track rows."""
    db_path = init_database(db_path)
    with get_db_connection(db_path) as conn:
        try:
            return conn.execute("SELECT COUNT(*) FROM tracks").fetchone()[0]
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to count tracks in {db_path}: {e}") from e
