"""
Tests that read real files tagged by mutagen (no MutagenFile patching).

The audio payloads are synthetic: silent MPEG frames for MP3 and a bare
STREAMINFO block for FLAC, which is all mutagen needs to parse the tags.
"""

from pathlib import Path

import pytest
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, ID3, TALB, TIT2, TPE1

from psp_playlist_maker.domain.library.metadata import (
    MetadataCache,
    extract_cover,
    read_embedded_tags,
)
from psp_playlist_maker.domain.library.models import Track
from psp_playlist_maker.domain.library.scanner import scan_directory

# MPEG-1 Layer III, 128 kbit/s, 44.1 kHz, no padding: 417-byte frames
MPEG_FRAME = b"\xff\xfb\x90\x00" + b"\x00" * 413


def write_mp3(path: Path, frames: int = 20) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(MPEG_FRAME * frames)
    return path


def tag_mp3(path: Path, title=None, artist=None, album=None, cover=None) -> None:
    tags = ID3()
    if title:
        tags.add(TIT2(encoding=3, text=[title]))
    if artist:
        tags.add(TPE1(encoding=3, text=[artist]))
    if album:
        tags.add(TALB(encoding=3, text=[album]))
    if cover:
        tags.add(APIC(encoding=3, mime="image/png", type=3, desc="Cover", data=cover))
    tags.save(str(path))


def write_flac(path: Path) -> Path:
    streaminfo = (
        (4096).to_bytes(2, "big") * 2  # min/max block size
        + bytes(6)  # min/max frame size unknown
        # 44.1 kHz, 2 channels, 16 bits per sample, 0 samples
        + ((44100 << 44) | (1 << 41) | (15 << 36)).to_bytes(8, "big")
        + bytes(16)  # MD5 of no audio
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"fLaC" + b"\x80" + len(streaminfo).to_bytes(3, "big") + streaminfo)
    return path


def tag_flac(path: Path, cover=None, **fields) -> None:
    audio = FLAC(str(path))
    audio.add_tags()
    for key, value in fields.items():
        audio[key] = value
    if cover:
        picture = Picture()
        picture.type = 3
        picture.mime = "image/jpeg"
        picture.data = cover
        audio.add_picture(picture)
    audio.save()


class TestReadRealTags:
    """Read tags written by mutagen itself."""

    def test_id3_text_frames(self, tmp_path):
        path = write_mp3(tmp_path / "song.mp3")
        tag_mp3(path, title="T", artist="A")

        assert read_embedded_tags(str(path)) == ("T", "A", "")

    def test_id3_all_fields(self, tmp_path):
        path = write_mp3(tmp_path / "song.mp3")
        tag_mp3(path, title="Roygbiv", artist="Boards of Canada", album="Music Has the Right")

        assert read_embedded_tags(str(path)) == (
            "Roygbiv",
            "Boards of Canada",
            "Music Has the Right",
        )

    def test_untagged_mp3_has_no_tag_block(self, tmp_path):
        path = write_mp3(tmp_path / "plain.mp3")

        assert read_embedded_tags(str(path)) is None

    def test_flac_vorbis_comments(self, tmp_path):
        path = write_flac(tmp_path / "song.flac")
        tag_flac(path, title="Xtal", artist="Aphex Twin", album="SAW 85-92")

        assert read_embedded_tags(str(path)) == ("Xtal", "Aphex Twin", "SAW 85-92")

    def test_flac_non_ascii_values(self, tmp_path):
        path = write_flac(tmp_path / "song.flac")
        tag_flac(path, title="Svefn-g-englar", artist="Sigur Rós", album="Ágætis byrjun")

        assert read_embedded_tags(str(path)) == (
            "Svefn-g-englar",
            "Sigur Rós",
            "Ágætis byrjun",
        )


class TestRealCovers:
    """Extract embedded pictures from real files."""

    def test_flac_picture_block(self, tmp_path):
        path = write_flac(tmp_path / "song.flac")
        tag_flac(path, cover=b"jpeg bytes", title="x")

        assert extract_cover(str(path)) == b"jpeg bytes"

    def test_id3_apic_frame(self, tmp_path):
        path = write_mp3(tmp_path / "song.mp3")
        tag_mp3(path, title="x", cover=b"png bytes")

        assert extract_cover(str(path)) == b"png bytes"

    def test_no_picture(self, tmp_path):
        path = write_mp3(tmp_path / "song.mp3")
        tag_mp3(path, title="x")

        assert extract_cover(str(path)) is None


class TestScanRealFiles:
    """Embedded tags and folder fallbacks merged field by field."""

    @pytest.fixture
    def music_root(self, tmp_path):
        root = tmp_path / "MUSIC"

        partial_id3 = write_mp3(root / "Folder Artist" / "Folder Album" / "01.mp3")
        tag_mp3(partial_id3, title="Tag Title", artist="Tag Artist")

        album_only = write_flac(root / "Dir Artist" / "x.flac")
        tag_flac(album_only, album="Tag Album")

        write_mp3(root / "untagged.mp3")
        return root

    def test_embedded_fields_win_and_gaps_fall_back(self, music_root):
        library = scan_directory(music_root)

        # root files come before subdirectories in a top-down walk
        assert library.tracks == [
            Track(str(music_root / "untagged.mp3"), "", "", "untagged.mp3"),
            Track(str(music_root / "Dir Artist" / "x.flac"), "Dir Artist", "Tag Album", "x.flac"),
            Track(
                str(music_root / "Folder Artist" / "Folder Album" / "01.mp3"),
                "Tag Artist",
                "Folder Album",
                "Tag Title",
            ),
        ]

    def test_rescan_with_shared_cache_reads_each_file_once(self, music_root):
        cache = MetadataCache()

        first = scan_directory(music_root, cache=cache)
        second = scan_directory(music_root, cache=cache)

        assert first.tracks == second.tracks
        assert cache.reads == 3
        assert cache.hits == 3
