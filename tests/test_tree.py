# tests/test_tree.py
"""Test folder/playlist tree reconstruction"""

import pytest

from conftest import START_TIME
from itunes_import.core.exceptions import TrackListError
from itunes_import.core.ids import ID_ALPHABET
from itunes_import.core.library import Folder, Playlist, RootFolder
from itunes_import.importer.tree import build_track_lists


def folder(name, pid, parent=None):
    record = {"Name": name, "Folder": True, "Playlist Persistent ID": pid}
    if parent:
        record["Parent Persistent ID"] = parent
    return record


def playlist(name, pid, parent=None, items=()):
    record = {
        "Name": name,
        "Playlist Persistent ID": pid,
        "Playlist Items": [{"Track ID": item} for item in items],
    }
    if parent:
        record["Parent Persistent ID"] = parent
    return record


def by_name(track_lists):
    return {
        track_list.name: list_id
        for list_id, track_list in track_lists.items()
        if not isinstance(track_list, RootFolder)
    }


class TestBuildTrackLists:
    """Test the folder, link and playlist passes"""

    def test_empty(self):
        track_lists = build_track_lists([], {}, START_TIME)
        assert track_lists == {"root": RootFolder(date_created=START_TIME, children=[])}

    def test_root(self):
        root = build_track_lists([], {}, START_TIME)["root"]
        assert root.to_dict() == {
            "type": "special",
            "id": "root",
            "name": "Root",
            "dateCreated": START_TIME,
            "children": [],
        }

    def test_folder_chain(self):
        """A -> B -> C becomes a single chain under Root"""
        track_lists = build_track_lists(
            [folder("A", "PA"), folder("B", "PB", parent="PA"), folder("C", "PC", parent="PB")],
            {},
            START_TIME,
        )
        ids = by_name(track_lists)

        assert track_lists["root"].children == [ids["A"]]
        assert track_lists[ids["A"]].children == [ids["B"]]
        assert track_lists[ids["B"]].children == [ids["C"]]
        assert track_lists[ids["C"]].children == []

    def test_child_before_parent(self):
        track_lists = build_track_lists(
            [folder("C", "PC", parent="PB"), folder("B", "PB", parent="PA"), folder("A", "PA")],
            {},
            START_TIME,
        )
        ids = by_name(track_lists)
        assert track_lists["root"].children == [ids["A"]]
        assert track_lists[ids["B"]].children == [ids["C"]]

    def test_unknown_parent_attaches_to_root(self):
        track_lists = build_track_lists(
            [playlist("Orphan", "PO", parent="NOT-A-FOLDER"), folder("Lost", "PL", parent="GONE")],
            {},
            START_TIME,
        )
        ids = by_name(track_lists)
        assert sorted(track_lists["root"].children) == sorted([ids["Orphan"], ids["Lost"]])

    def test_playlists_in_folders(self):
        track_lists = build_track_lists(
            [
                playlist("Favs", "P1", parent="F1"),
                folder("Rock", "F1"),
                playlist("Top", "P2"),
            ],
            {},
            START_TIME,
        )
        ids = by_name(track_lists)
        assert track_lists[ids["Rock"]].children == [ids["Favs"]]
        assert track_lists["root"].children == [ids["Rock"], ids["Top"]]
        assert isinstance(track_lists[ids["Favs"]], Playlist)
        assert isinstance(track_lists[ids["Rock"]], Folder)

    def test_playlist_tracks(self):
        """Members map to internal IDs; unknown members are dropped, order and duplicates kept"""
        track_ids = {"1": "trackaaaaa", "2": "trackbbbbb"}
        track_lists = build_track_lists(
            [playlist("Mix", "P1", items=[2, 99, 1, 2])],
            track_ids,
            START_TIME,
        )
        mix = track_lists[by_name(track_lists)["Mix"]]
        assert mix.tracks == ["trackbbbbb", "trackaaaaa", "trackbbbbb"]

    def test_playlist_without_items(self):
        record = {"Name": "Empty", "Playlist Persistent ID": "P1"}
        track_lists = build_track_lists([record], {}, START_TIME)
        assert track_lists[by_name(track_lists)["Empty"]].tracks == []

    def test_common_fields(self):
        record = folder("Rock", "F1")
        record["Description"] = "Loud"
        track_lists = build_track_lists([record], {}, START_TIME)
        rock = track_lists[by_name(track_lists)["Rock"]]
        assert rock.original_id == "F1"
        assert rock.imported_from == "itunes"
        assert rock.date_imported == START_TIME
        assert rock.description == "Loud"

    def test_tracklist_ids(self):
        records = [folder(f"F{i}", f"PF{i}") for i in range(20)]
        records += [playlist(f"P{i}", f"PP{i}") for i in range(20)]
        track_lists = build_track_lists(records, {}, START_TIME)

        assert len(track_lists) == 41
        for list_id in track_lists:
            if list_id != "root":
                assert len(list_id) == 7
                assert set(list_id) <= set(ID_ALPHABET)

    def test_folder_without_id_does_not_adopt_orphans(self):
        """Records without a parent never resolve to a folder missing its own ID"""
        no_id = {"Name": "NoId", "Folder": True}
        track_lists = build_track_lists([no_id, playlist("Top", "P1")], {}, START_TIME)
        ids = by_name(track_lists)
        assert track_lists["root"].children == [ids["NoId"], ids["Top"]]

    def test_parent_cycle(self):
        with pytest.raises(TrackListError, match="parent cycle"):
            build_track_lists(
                [folder("A", "PA", parent="PB"), folder("B", "PB", parent="PA")],
                {},
                START_TIME,
            )

    def test_folder_is_own_parent(self):
        with pytest.raises(TrackListError, match='"Loop" is part of a parent cycle'):
            build_track_lists([folder("Loop", "PL", parent="PL")], {}, START_TIME)

    def test_missing_name(self):
        with pytest.raises(TrackListError, match='"Name"'):
            build_track_lists([{"Folder": True, "Playlist Persistent ID": "F1"}], {}, START_TIME)
