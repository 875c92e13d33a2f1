# tests/test_library.py
"""Test the library document model and its persistence"""

import json
import os
import stat

import pytest

from conftest import START_TIME
from itunes_import.core.exceptions import LibraryDocumentError, LibraryWriteError
from itunes_import.core.library import (
    Folder,
    ImportedCount,
    Library,
    Playlist,
    RootFolder,
    Track,
    load_library,
    save_library,
    to_camel,
    to_snake,
    tracklist_from_dict,
    verify_library,
)


def make_track(**overrides):
    values = {
        "size": 4_200_000,
        "duration": 215.5,
        "bitrate": 320000,
        "sample_rate": 44100,
        "file": "Queen - Bohemian Rhapsody.mp3",
        "date_modified": 1_466_000_000_000,
        "date_added": 1_425_000_000_000,
        "name": "Bohemian Rhapsody",
        "artist": "Queen",
        "imported_from": "itunes",
        "date_imported": START_TIME,
    }
    values.update(overrides)
    return Track(**values)


@pytest.fixture
def library():
    track = make_track(
        play_count=3,
        plays=(1_577_990_000_000,),
        plays_imported=(ImportedCount(2, 1_425_000_000_000, 1_577_990_000_000),),
        volume=-20,
        liked=True,
        album_name="A Night at the Opera",
    )
    root = RootFolder(date_created=START_TIME, children=["folder1"])
    return Library(
        tracks={"abcdefghij": track},
        track_lists={
            "root": root,
            "folder1": Folder(name="Rock", children=["plist01"], original_id="F1",
                              imported_from="itunes", date_imported=START_TIME),
            "plist01": Playlist(name="Mix", tracks=["abcdefghij", "abcdefghij"],
                                description="Best of"),
        },
    )


class TestKeyConversion:
    """Test snake_case <-> camelCase"""

    @pytest.mark.parametrize("snake, camel", [
        ("sample_rate", "sampleRate"),
        ("sort_album_artist", "sortAlbumArtist"),
        ("plays_imported", "playsImported"),
        ("name", "name"),
    ])
    def test_round_trip(self, snake, camel):
        assert to_camel(snake) == camel
        assert to_snake(camel) == snake


class TestSerialization:
    """Test to_dict / from_dict"""

    def test_track_keys(self):
        data = make_track(sort_album_name="Night").to_dict()
        assert data["sampleRate"] == 44100
        assert data["sortAlbumName"] == "Night"
        assert data["importedFrom"] == "itunes"
        assert "composer" not in data
        assert "volume" not in data

    def test_imported_counts(self, library):
        data = library.tracks["abcdefghij"].to_dict()
        assert data["plays"] == [1_577_990_000_000]
        assert data["playsImported"] == [
            {"count": 2, "fromDate": 1_425_000_000_000, "toDate": 1_577_990_000_000}
        ]

    def test_library_shape(self, library):
        data = library.to_dict()
        assert data["version"] == 1
        assert data["playTime"] == []
        assert data["trackLists"]["root"]["type"] == "special"
        assert data["trackLists"]["folder1"]["type"] == "folder"
        assert data["trackLists"]["plist01"] == {
            "type": "playlist",
            "name": "Mix",
            "tracks": ["abcdefghij", "abcdefghij"],
            "description": "Best of",
        }

    def test_round_trip(self, library):
        assert Library.from_dict(json.loads(json.dumps(library.to_dict()))) == library

    def test_unknown_field(self):
        data = make_track().to_dict()
        data["lyrics"] = "la la"
        with pytest.raises(LibraryDocumentError, match='Unknown Track field "lyrics"'):
            Track.from_dict(data)

    def test_missing_track_field(self):
        data = make_track().to_dict()
        del data["sampleRate"]
        with pytest.raises(LibraryDocumentError, match="Invalid track entry"):
            Track.from_dict(data)

    def test_unknown_tracklist_type(self):
        with pytest.raises(LibraryDocumentError, match="Unknown tracklist type"):
            tracklist_from_dict({"type": "smart", "name": "x"})


class TestPersistence:
    """Test save_library / load_library"""

    def test_save_and_load(self, temp_dir, library):
        path = temp_dir / "Library.json"
        save_library(library, path)
        assert load_library(path) == library

    def test_json_format(self, temp_dir, library):
        path = temp_dir / "Library.json"
        save_library(library, path)
        text = path.read_text(encoding="utf-8")
        assert text.startswith('{\n  "version": 1,')

    def test_unicode_is_kept(self, temp_dir):
        library = Library(
            tracks={"abcdefghij": make_track(artist="Sigur Rós")},
            track_lists={"root": RootFolder(date_created=START_TIME)},
        )
        path = temp_dir / "Library.json"
        save_library(library, path)
        assert "Sigur Rós" in path.read_text(encoding="utf-8")

    def test_no_temporary_files_left(self, temp_dir, library):
        path = temp_dir / "Library.json"
        save_library(library, path)
        save_library(library, path)
        assert [p.name for p in temp_dir.iterdir()] == ["Library.json"]

    def test_replaces_existing(self, temp_dir, library):
        path = temp_dir / "Library.json"
        path.write_text("old", encoding="utf-8")
        save_library(library, path)
        assert load_library(path) == library

    def test_creates_missing_directory(self, temp_dir, library):
        path = temp_dir / "db" / "nested" / "Library.json"
        save_library(library, path)
        assert load_library(path) == library

    def test_unwritable_destination(self, temp_dir, library):
        """A file where the directory should be is a LibraryWriteError"""
        (temp_dir / "db").write_text("not a directory", encoding="utf-8")
        with pytest.raises(LibraryWriteError):
            save_library(library, temp_dir / "db" / "Library.json")

    def test_file_mode_follows_umask(self, temp_dir, library):
        path = temp_dir / "Library.json"
        old_umask = os.umask(0o022)
        try:
            save_library(library, path)
        finally:
            os.umask(old_umask)
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_load_invalid_json(self, temp_dir):
        path = temp_dir / "Library.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(LibraryDocumentError, match="not valid JSON"):
            load_library(path)

    def test_load_missing_file(self, temp_dir):
        with pytest.raises(LibraryDocumentError, match="Failed to read library"):
            load_library(temp_dir / "Library.json")

    def test_load_wrong_shape(self, temp_dir):
        path = temp_dir / "Library.json"
        path.write_text('{"version": 1}', encoding="utf-8")
        with pytest.raises(LibraryDocumentError, match="Invalid library document"):
            load_library(path)


class TestVerifyLibrary:
    """Test reference checking"""

    def test_valid(self, temp_dir, library):
        (temp_dir / "Queen - Bohemian Rhapsody.mp3").write_bytes(b"x")
        assert verify_library(library, temp_dir) == []

    def test_missing_file(self, temp_dir, library):
        problems = verify_library(library, temp_dir)
        assert problems == [
            "Track abcdefghij: file does not exist: Queen - Bohemian Rhapsody.mp3"
        ]

    def test_dangling_references(self, temp_dir, library):
        (temp_dir / "Queen - Bohemian Rhapsody.mp3").write_bytes(b"x")
        library.track_lists["plist01"].tracks.append("zzzzzzzzzz")
        library.track_lists["root"].children.append("nothere")
        problems = verify_library(library, temp_dir)
        assert "Playlist plist01: unknown track zzzzzzzzzz" in problems
        assert "Folder root: unknown child nothere" in problems
        assert len(problems) == 2

    def test_missing_root(self, temp_dir):
        library = Library(tracks={}, track_lists={})
        assert verify_library(library, temp_dir) == ["Missing root tracklist"]
