"""End-to-end tests for the psp-playlist-maker command."""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from loguru import logger

from psp_playlist_maker.cli import main, select_tracks
from psp_playlist_maker.core.database import load_library
from psp_playlist_maker.domain.library.models import Track

MUTAGEN_FILE = "psp_playlist_maker.domain.library.metadata.MutagenFile"


@pytest.fixture(autouse=True)
def restore_loguru():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Music tree plus a config.toml pointing everything into tmp_path."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("PSP_MUSIC_DIR", raising=False)
    monkeypatch.delenv("PSP_DATABASE_PATH", raising=False)

    music = tmp_path / "psp" / "MUSIC"
    for relative in [
        "Boards of Canada/Geogaddi/01 Ready Lets Go.mp3",
        "Boards of Canada/Geogaddi/02 Music Is Math.mp3",
        "Aphex Twin/Xtal.flac",
        "cover.jpg",
    ]:
        path = music / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"audio")

    config_path = tmp_path / "config.toml"
    config_path.write_text(
        f"""
[music]
music_dir = "{music.as_posix()}"

[database]
path = "{(tmp_path / 'index.db').as_posix()}"

[device]
playlist_dir = "{(tmp_path / 'playlists').as_posix()}"

[logging]
log_file = "{(tmp_path / 'log' / 'psp.log').as_posix()}"
""",
        encoding="utf-8",
    )
    return tmp_path, config_path


def run(*argv) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    return exc_info.value.code


class TestCli:
    """Test the scan/list/export commands."""

    def test_help(self, capsys):
        assert run("help") == 0
        assert "scan" in capsys.readouterr().out

    def test_scan_saves_library(self, workspace):
        tmp_path, config_path = workspace

        with patch(MUTAGEN_FILE, return_value=None):
            assert run("--config", str(config_path), "scan") == 0

        library = load_library(tmp_path / "index.db")
        assert sorted(t.artist for t in library) == [
            "Aphex Twin",
            "Boards of Canada",
            "Boards of Canada",
        ]
        assert (tmp_path / "log" / "psp.log").exists()

    def test_rescan_replaces_library(self, workspace):
        tmp_path, config_path = workspace

        with patch(MUTAGEN_FILE, return_value=None):
            run("--config", str(config_path), "scan")
            run("--config", str(config_path), "scan")

        assert len(load_library(tmp_path / "index.db")) == 3

    def test_export_selection(self, workspace):
        tmp_path, config_path = workspace

        with patch(MUTAGEN_FILE, return_value=None):
            run("--config", str(config_path), "scan")
        code = run("--config", str(config_path), "export", "Geogaddi", "--album", "geogaddi")

        assert code == 0
        lines = (tmp_path / "playlists" / "Geogaddi.m3u8").read_text(
            encoding="utf-8"
        ).splitlines()
        assert lines == [
            "#EXTM3U",
            "/MUSIC/Boards of Canada/Geogaddi/01 Ready Lets Go.mp3",
            "/MUSIC/Boards of Canada/Geogaddi/02 Music Is Math.mp3",
        ]

    def test_export_empty_selection_fails(self, workspace):
        tmp_path, config_path = workspace

        with patch(MUTAGEN_FILE, return_value=None):
            run("--config", str(config_path), "scan")
        code = run("--config", str(config_path), "export", "None", "--artist", "nobody")

        assert code == 1
        assert not (tmp_path / "playlists" / "None.m3u8").exists()

    def test_list(self, workspace, capsys):
        _, config_path = workspace

        with patch(MUTAGEN_FILE, return_value=None):
            run("--config", str(config_path), "scan")
        capsys.readouterr()

        assert run("--config", str(config_path), "list", "--search", "xtal") == 0
        out = capsys.readouterr().out
        assert "1 tracks" in out
        assert "Geogaddi" not in out

    def test_undecodable_filename_is_indexed_and_listed(self, workspace, capsys):
        tmp_path, config_path = workspace
        raw_file = os.path.join(os.fsencode(tmp_path / "psp" / "MUSIC"), b"bad\xff.mp3")
        try:
            with open(raw_file, "wb") as f:
                f.write(b"audio")
        except OSError:
            pytest.skip("filesystem does not accept non-UTF-8 filenames")

        with patch(MUTAGEN_FILE, return_value=None):
            assert run("--config", str(config_path), "scan") == 0
        assert os.fsdecode(raw_file) in [t.path for t in load_library(tmp_path / "index.db")]
        capsys.readouterr()

        assert run("--config", str(config_path), "list", "--search", "bad") == 0
        assert "bad\ufffd.mp3" in capsys.readouterr().out

        assert run("--config", str(config_path), "export", "Legacy", "--search", "bad") == 1
        assert not (tmp_path / "playlists" / "Legacy.m3u8").exists()

    def test_unwritable_database_fails(self, workspace):
        tmp_path, config_path = workspace
        config_path.write_text(
            config_path.read_text(encoding="utf-8").replace(
                (tmp_path / "index.db").as_posix(), tmp_path.as_posix()
            ),
            encoding="utf-8",
        )

        with patch(MUTAGEN_FILE, return_value=None):
            assert run("--config", str(config_path), "scan") == 1


def test_select_tracks_applies_filters_in_order():
    tracks = [
        Track("/MUSIC/a.mp3", "Alpha", "One", "First"),
        Track("/MUSIC/b.mp3", "Alpha", "Two", "Second"),
        Track("/MUSIC/c.mp3", "Beta", "One", "Third"),
    ]

    assert select_tracks(tracks, artist="alpha", album="one") == [tracks[0]]
    assert select_tracks(tracks, query="third") == [tracks[2]]
    assert select_tracks(tracks) == tracks
