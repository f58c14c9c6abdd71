"""
PSP Playlist Maker CLI - Entry point

Scans a music tree into the track index and exports stored tracks as
PSP-compatible M3U8 playlists.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.table import Table

from psp_playlist_maker.core.config import Config, load_config
from psp_playlist_maker.core.console import get_console, printable
from psp_playlist_maker.core.database import (
    PersistenceError,
    get_database_path,
    load_library,
    save_library,
)
from psp_playlist_maker.core.output import log, setup_from_config
from psp_playlist_maker.domain.library.models import Track
from psp_playlist_maker.domain.library.scanner import (
    get_tracks_by_album,
    get_tracks_by_artist,
    scan_directory,
    search_tracks,
)
from psp_playlist_maker.domain.playlists.exceptions import PlaylistError
from psp_playlist_maker.domain.playlists.exporters import export_tracks


def run_scan(config: Config, music_dir: Optional[str] = None) -> int:
    """Scan a music directory and replace the stored index.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    music_dir = music_dir or config.music.music_dir
    log(f"Scanning music directory: {music_dir}")

    library = scan_directory(
        Path(music_dir),
        supported_formats=config.music.supported_formats,
        max_workers=config.music.scan_workers,
    )
    log(f"Indexed {len(library)} tracks.")

    db_path = get_database_path(config)
    try:
        save_library(library, db_path, escape_paths=config.database.escape_paths)
    except PersistenceError as e:
        log(f"Failed to save library: {e}", level="error")
        return 1

    log(f"Library saved to {db_path}.", level="success")
    return 0


def select_tracks(
    tracks: list[Track],
    artist: Optional[str] = None,
    album: Optional[str] = None,
    query: Optional[str] = None,
) -> list[Track]:
    """Apply the --artist/--album/--search filters in that order."""
    if artist:
        tracks = get_tracks_by_artist(tracks, artist)
    if album:
        tracks = get_tracks_by_album(tracks, album)
    if query:
        tracks = search_tracks(tracks, query)
    return tracks


def _load_selection(config: Config, args: argparse.Namespace) -> list[Track]:
    library = load_library(
        get_database_path(config), escape_paths=config.database.escape_paths
    )
    return select_tracks(list(library), args.artist, args.album, args.search)


def run_list(config: Config, args: argparse.Namespace) -> int:
    """Print stored tracks matching the filters."""
    try:
        tracks = _load_selection(config, args)
    except PersistenceError as e:
        log(f"Failed to load library: {e}", level="error")
        return 1

    table = Table(title=f"{len(tracks)} tracks")
    table.add_column("Artist")
    table.add_column("Album")
    table.add_column("Title")
    table.add_column("Path", overflow="fold")
    for track in tracks:
        table.add_row(
            escape(printable(track.artist)),
            escape(printable(track.album)),
            escape(printable(track.title)),
            escape(printable(track.path)),
        )

    get_console().print(table)
    return 0


def run_export(config: Config, args: argparse.Namespace) -> int:
    """Export the stored tracks matching the filters as NAME.m3u8."""
    try:
        tracks = _load_selection(config, args)
    except PersistenceError as e:
        log(f"Failed to load library: {e}", level="error")
        return 1

    try:
        output_path, count = export_tracks(
            args.name,
            tracks,
            output_dir=Path(args.output) if args.output else None,
            config=config,
        )
    except PlaylistError as e:
        log(f"Export failed: {e}", level="error")
        return 1

    log(f"Exported {count} tracks to: {output_path}", level="success")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="psp-playlist-maker",
        description="PSP Playlist Maker - index music and export PSP playlists",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config", help="Path to config.toml (default: auto-detected)"
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    scan_parser = subparsers.add_parser("scan", help="Index music files")
    scan_parser.add_argument(
        "music_dir", nargs="?", help="Music directory (default: music.music_dir)"
    )

    def add_filters(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--artist", help="Only tracks whose artist contains this")
        sub.add_argument("--album", help="Only tracks whose album contains this")
        sub.add_argument("--search", help="Match title, artist, album or filename")

    list_parser = subparsers.add_parser("list", help="Show indexed tracks")
    add_filters(list_parser)

    export_parser = subparsers.add_parser(
        "export", help="Export indexed tracks as an M3U8 playlist"
    )
    export_parser.add_argument("name", help="Playlist name (file is NAME.m3u8)")
    export_parser.add_argument(
        "--output", help="Output directory (default: device.playlist_dir)"
    )
    add_filters(export_parser)

    subparsers.add_parser("help", help="Show this message")

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the psp-playlist-maker command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.subcommand in (None, "help"):
        parser.print_help()
        sys.exit(0)

    config = load_config(Path(args.config) if args.config else None)
    setup_from_config(config.logging)

    if args.subcommand == "scan":
        sys.exit(run_scan(config, args.music_dir))
    elif args.subcommand == "list":
        sys.exit(run_list(config, args))
    elif args.subcommand == "export":
        sys.exit(run_export(config, args))


if __name__ == "__main__":
    main()
