"""
Reading the iTunes Library.xml export.

iTunes writes its library as an Apple property list. plistlib turns it
into plain dicts and lists, with <date> values as datetime objects.

Relevant Document Shape:
    {
      "Major Version": 1, "Minor Version": 1,
      "Tracks": {"1234": {"Track ID": 1234, "Name": ..., "Location": "file://..."}},
      "Playlists": [
        {"Name": "Music", "Distinguished Kind": 4, "Playlist Items": [{"Track ID": 1234}]},
        {"Name": "Rock", "Folder": true, "Playlist Persistent ID": "A1B2..."},
        {"Name": "Favs", "Parent Persistent ID": "A1B2...", "Playlist Items": [...]}
      ]
    }

Playlist Selection:
    - "Visible": false -> skipped (the hidden "Library" playlist)
    - "Smart Info" present -> skipped (smart and Genius playlists)
    - "Distinguished Kind" 4 -> the "Music" playlist, source of the tracks
    - Any other "Distinguished Kind" except 1 -> skipped (iTunes-generated)
    - Everything else -> a user folder or playlist
"""

import plistlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable
from xml.parsers.expat import ExpatError

from itunes_import.core.exceptions import LibraryDocumentError
from itunes_import.core.logger import get_logger

logger = get_logger(__name__)


EXPECTED_VERSION = "1.1"

USER_DISTINGUISHED_KIND = 1
MUSIC_DISTINGUISHED_KIND = 4


@dataclass(frozen=True)
class LibraryDocument:
    """
    The parts of Library.xml the importer works with.

    Attributes:
        tracks: Foreign track ID (as string) -> raw track record.
        music_items: Foreign track IDs of the "Music" playlist, in order.
                     Only these tracks are imported; 'Tracks' also holds
                     podcasts, videos and the like.
        playlists: Visible, non-smart user folders and playlists, in
                   document order.
        version: "Major Version.Minor Version" of the document.
    """
    tracks: dict[str, dict[str, Any]]
    music_items: list[str]
    playlists: list[dict[str, Any]]
    version: str


def read_plist(path: Path) -> dict[str, Any]:
    """
    Parse a property list file.

    Raises:
        LibraryDocumentError: If the file cannot be read or parsed.
    """
    try:
        with open(path, "rb") as f:
            data = plistlib.load(f)
    except OSError as e:
        raise LibraryDocumentError(
            f"Failed to read iTunes library file: {e}",
            details={"path": str(path), "original_error": str(e)}
        ) from e
    except (plistlib.InvalidFileException, ExpatError, ValueError) as e:
        raise LibraryDocumentError(
            f"Not a valid iTunes library file: {e}",
            details={"path": str(path), "original_error": str(e)}
        ) from e

    if not isinstance(data, dict):
        raise LibraryDocumentError(
            "Not a valid iTunes library file: top level is not a dictionary",
            details={"path": str(path)}
        )
    return data


def check_version(raw: dict[str, Any], warn: Callable[[str], None]) -> str:
    """
    Compare the document version with the one this importer was written for.

    A mismatch is reported through warn(), never raised.

    Returns:
        The version string, e.g. "1.1".
    """
    version = f"{raw.get('Major Version')}.{raw.get('Minor Version')}"
    if version != EXPECTED_VERSION:
        warn(
            f"Library.xml version: Expected {EXPECTED_VERSION}, was {version}. "
            "You might have a too new/old iTunes version"
        )
    return version


def partition_playlists(
    raw_playlists: list[dict[str, Any]]
) -> tuple[dict[str, Any] | None, list[dict[str, Any]]]:
    """
    Split playlist records into the "Music" playlist and user tracklists.

    Args:
        raw_playlists: The 'Playlists' array of the document.

    Returns:
        (music_playlist, user_playlists). music_playlist is None if the
        document has none.

    Raises:
        LibraryDocumentError: If there is more than one "Music" playlist.
    """
    music_playlist = None
    user_playlists = []

    for record in raw_playlists:
        if record.get("Visible") is False:
            continue
        if record.get("Smart Info"):
            continue

        kind = record.get("Distinguished Kind")
        if kind and kind != USER_DISTINGUISHED_KIND:
            if kind == MUSIC_DISTINGUISHED_KIND:
                if music_playlist is not None:
                    raise LibraryDocumentError(
                        'Found two iTunes-generated "Music" playlists'
                    )
                music_playlist = record
            else:
                logger.debug(f"Skipping iTunes-generated playlist \"{record.get('Name')}\"")
            continue

        user_playlists.append(record)

    return music_playlist, user_playlists


def load_library_document(path: Path, warn: Callable[[str], None]) -> LibraryDocument:
    """
    Read Library.xml and select what will be imported.

    Args:
        path: Path to the exported Library.xml.
        warn: Warning sink, receives the version mismatch warning.

    Returns:
        LibraryDocument with the tracks, the Music playlist order and the
        user folders/playlists.

    Raises:
        LibraryDocumentError: If the file is unreadable, has no "Music"
                              playlist, has two, or the Music playlist
                              references a track missing from 'Tracks'.
    """
    raw = read_plist(path)
    version = check_version(raw, warn)

    raw_tracks = raw.get("Tracks") or {}
    raw_playlists = raw.get("Playlists") or []
    if isinstance(raw_playlists, dict):
        raw_playlists = list(raw_playlists.values())

    tracks = {str(key): record for key, record in raw_tracks.items()}

    music_playlist, user_playlists = partition_playlists(raw_playlists)
    if music_playlist is None:
        raise LibraryDocumentError(
            'Could not find the iTunes-generated "Music" playlist',
            details={"path": str(path)}
        )

    music_items = []
    for item in music_playlist.get("Playlist Items") or []:
        foreign_id = str(item["Track ID"])
        if foreign_id not in tracks:
            raise LibraryDocumentError(
                f"Music playlist references unknown track {foreign_id}",
                details={"path": str(path), "track_id": foreign_id}
            )
        music_items.append(foreign_id)

    logger.info(
        f"Library.xml {version}: {len(music_items)} tracks in Music, "
        f"{len(user_playlists)} folders/playlists"
    )

    return LibraryDocument(
        tracks=tracks,
        music_items=music_items,
        playlists=user_playlists,
        version=version,
    )
