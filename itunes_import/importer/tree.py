"""
Rebuilding the folder/playlist tree from flat iTunes records.

iTunes lists folders and playlists as a flat array where each record
points to its parent through "Parent Persistent ID". A child can appear
before its parent, so the tree is built in passes:

    1. Folder pass   - create every folder, index it by its iTunes ID
    2. Link pass     - attach every folder to its parent (or Root)
    3. Playlist pass - create every playlist, attach it to its folder
                       (or Root) and map its tracks to internal IDs

Example:
    Records: A (folder), B (folder, parent A), P (playlist, parent B)
    Result:  Root -> A -> B -> P

Tracklist IDs are unique among tracklists only; track IDs live in their
own namespace.
"""

from typing import Any

from itunes_import.core.exceptions import TrackListError
from itunes_import.core.ids import TRACKLIST_ID_LENGTH, unique_id
from itunes_import.core.library import Folder, Playlist, RootFolder, TrackList, ROOT_ID
from itunes_import.core.logger import get_logger
from itunes_import.importer.records import normalize_tracklist

logger = get_logger(__name__)


def _attach(
    track_lists: dict[str, TrackList],
    folder_ids: dict[str, str],
    record: dict[str, Any],
    child_id: str
) -> None:
    """Append child_id to the folder the record points to, or to Root."""
    parent_key = record.get("Parent Persistent ID")
    parent_id = folder_ids.get(parent_key) if parent_key else None
    if parent_id is None:
        track_lists[ROOT_ID].children.append(child_id)
        return

    parent = track_lists.get(parent_id)
    if not isinstance(parent, Folder):
        raise TrackListError(
            f"Could not find folder of playlist \"{record.get('Name')}\"",
            details={"parent_id": parent_key}
        )
    parent.children.append(child_id)


def _check_reachable(
    track_lists: dict[str, TrackList],
    created: list[tuple[dict[str, Any], str]]
) -> None:
    """Raise TrackListError if a folder can't be reached from Root (parent cycle)."""
    reachable: set[str] = set()
    pending = [ROOT_ID]
    while pending:
        node = track_lists[pending.pop()]
        for child_id in node.children:
            if child_id not in reachable:
                reachable.add(child_id)
                pending.append(child_id)

    for record, folder_id in created:
        if folder_id not in reachable:
            raise TrackListError(
                f"Folder \"{record.get('Name')}\" is part of a parent cycle",
                details={"original_id": record.get("Playlist Persistent ID")}
            )


def build_track_lists(
    playlists: list[dict[str, Any]],
    track_ids: dict[str, str],
    start_time: int
) -> dict[str, TrackList]:
    """
    Build the tracklist map from user folder and playlist records.

    Args:
        playlists: Visible, non-smart user records in document order
                   (see document.partition_playlists).
        track_ids: Foreign track ID -> internal track ID of every
                   imported track.
        start_time: Start of the import run (ms since epoch).

    Returns:
        Tracklist ID -> RootFolder | Folder | Playlist, including "root".

    Raises:
        TrackListError: If a record has no name, a parent resolves to
                        something that isn't a folder, or folders form
                        a parent cycle.

    Behavior:
        - Folder/playlist with no parent, or a parent that isn't among
          the folder records -> child of Root
        - Playlist members whose track wasn't imported -> left out
        - Member order and duplicates are kept
    """
    track_lists: dict[str, TrackList] = {
        ROOT_ID: RootFolder(date_created=start_time),
    }
    # iTunes "Playlist Persistent ID" -> internal folder ID
    folder_ids: dict[str, str] = {}

    folder_records = [record for record in playlists if record.get("Folder") is True]
    playlist_records = [record for record in playlists if record.get("Folder") is not True]

    created: list[tuple[dict[str, Any], str]] = []
    for record in folder_records:
        folder = Folder(**normalize_tracklist(record, start_time))
        folder_id = unique_id(track_lists, TRACKLIST_ID_LENGTH)
        track_lists[folder_id] = folder
        if folder.original_id:
            folder_ids[folder.original_id] = folder_id
        created.append((record, folder_id))

    for record, folder_id in created:
        _attach(track_lists, folder_ids, record, folder_id)
    _check_reachable(track_lists, created)

    for record in playlist_records:
        playlist = Playlist(**normalize_tracklist(record, start_time))
        playlist_id = unique_id(track_lists, TRACKLIST_ID_LENGTH)
        _attach(track_lists, folder_ids, record, playlist_id)

        for item in record.get("Playlist Items") or []:
            track_id = track_ids.get(str(item.get("Track ID")))
            if track_id is not None:
                playlist.tracks.append(track_id)

        track_lists[playlist_id] = playlist

    logger.debug(
        f"Built {len(folder_records)} folders and {len(playlist_records)} playlists"
    )
    return track_lists
