"""
Library document model for itunes-import.

This module defines the dataclasses of the library document produced by
an import run, and the functions that persist and read it back.

Document Shape (UTF-8 JSON, 2-space indentation):
    {
      "version": 1,
      "tracks": {"<track id>": {Track}, ...},
      "trackLists": {
        "root": {"type": "special", "id": "root", "name": "Root", ...},
        "<tracklist id>": {"type": "folder", "children": [...], ...},
        "<tracklist id>": {"type": "playlist", "tracks": [...], ...}
      },
      "playTime": []
    }

Design Decisions:
    - Python attributes are snake_case, JSON keys are camelCase
      (sample_rate <-> sampleRate). The conversion is mechanical.
    - Fields that are None are left out of the JSON entirely, so a
      missing recommended field simply has no key.
    - Track is frozen; folders and playlists are mutable because the
      tree builder appends children while linking.
    - save_library() writes to a temporary file in the same directory
      and renames it over the destination.

Usage:
    from itunes_import.core.library import Library, save_library, load_library

    save_library(library, paths.library_json)
    same = load_library(paths.library_json)
    assert same == library
"""

import json
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, ClassVar, Union

from itunes_import.core.exceptions import LibraryDocumentError, LibraryWriteError
from itunes_import.core.logger import get_logger

logger = get_logger(__name__)


LIBRARY_VERSION = 1
ROOT_ID = "root"
ROOT_NAME = "Root"

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_camel(name: str) -> str:
    """Convert a snake_case attribute name to its camelCase JSON key."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_snake(key: str) -> str:
    """Convert a camelCase JSON key to its snake_case attribute name."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _dump_value(value: Any) -> Any:
    if isinstance(value, ImportedCount):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_dump_value(item) for item in value]
    return value


def _dump_fields(obj: Any, skip: tuple[str, ...] = ()) -> dict[str, Any]:
    """Serialize dataclass fields to camelCase keys, leaving out None."""
    data = {}
    for f in fields(obj):
        if f.name in skip:
            continue
        value = getattr(obj, f.name)
        if value is None:
            continue
        data[to_camel(f.name)] = _dump_value(value)
    return data


def _load_kwargs(cls: type, data: dict[str, Any], skip: tuple[str, ...] = ()) -> dict[str, Any]:
    """
    Map camelCase keys back to constructor arguments of `cls`.

    Raises:
        LibraryDocumentError: If the data contains a key the model
                              doesn't know.
    """
    known = {f.name for f in fields(cls)}
    kwargs = {}
    for key, value in data.items():
        if key in skip:
            continue
        name = to_snake(key)
        if name not in known:
            raise LibraryDocumentError(
                f"Unknown {cls.__name__} field \"{key}\"",
                details={"field": key}
            )
        kwargs[name] = value
    return kwargs


@dataclass(frozen=True)
class ImportedCount:
    """
    Summary of plays or skips that iTunes counted but did not itemize.

    Attributes:
        count: Number of events the range stands for.
        from_date: Start of the range (ms since epoch), the track's
                   "Date Added".
        to_date: End of the range (ms since epoch), the last known
                 play/skip date or the import start time.
    """
    count: int
    from_date: int
    to_date: int

    def to_dict(self) -> dict[str, int]:
        return {"count": self.count, "fromDate": self.from_date, "toDate": self.to_date}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImportedCount":
        return cls(count=data["count"], from_date=data["fromDate"], to_date=data["toDate"])


@dataclass(frozen=True)
class Track:
    """
    Immutable representation of an imported track.

    Audio properties (size, duration, bitrate, sample_rate) and the
    managed filename are always present: a track whose file cannot
    provide them is rejected during import instead.

    Attributes:
        size: File size in bytes.
        duration: Duration in seconds.
        bitrate: Bitrate in bits per second, rounded.
        sample_rate: Sample rate in Hz.
        file: Filename relative to the managed tracks directory.
        date_modified: "Date Modified" from iTunes (ms since epoch).
        date_added: "Date Added" from iTunes (ms since epoch).
        imported_from: Always "itunes" for imported tracks.
        original_id: iTunes Persistent ID.
        date_imported: Start time of the import run (ms since epoch).
        plays / skips: Timestamps of individually known events.
        plays_imported / skips_imported: Summarized ranges of the rest.
        volume: Volume adjustment in the range [-100, 100].

    All other attributes mirror the iTunes fields of the same meaning and
    are None when iTunes had no (or a falsy) value.
    """

    size: int
    duration: float
    bitrate: int
    sample_rate: int
    file: str
    date_modified: int
    date_added: int

    name: str | None = None
    imported_from: str | None = None
    original_id: str | None = None
    date_imported: int | None = None
    artist: str | None = None
    composer: str | None = None
    sort_name: str | None = None
    sort_artist: str | None = None
    sort_composer: str | None = None
    genre: str | None = None
    rating: int | None = None
    year: int | None = None
    bpm: int | None = None
    comments: str | None = None
    grouping: str | None = None
    liked: bool | None = None
    disliked: bool | None = None
    disabled: bool | None = None
    compilation: bool | None = None
    album_name: str | None = None
    album_artist: str | None = None
    sort_album_name: str | None = None
    sort_album_artist: str | None = None
    track_num: int | None = None
    track_count: int | None = None
    disc_num: int | None = None
    disc_count: int | None = None
    play_count: int | None = None
    plays: tuple[int, ...] | None = None
    plays_imported: tuple[ImportedCount, ...] | None = None
    skip_count: int | None = None
    skips: tuple[int, ...] | None = None
    skips_imported: tuple[ImportedCount, ...] | None = None
    volume: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON object stored under 'tracks'."""
        return _dump_fields(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        """
        Reconstruct a Track from its JSON object.

        Inverse of to_dict(): lists become tuples again and imported
        ranges become ImportedCount instances.
        """
        kwargs = _load_kwargs(cls, data)
        for name in ("plays", "skips"):
            if kwargs.get(name) is not None:
                kwargs[name] = tuple(kwargs[name])
        for name in ("plays_imported", "skips_imported"):
            if kwargs.get(name) is not None:
                kwargs[name] = tuple(ImportedCount.from_dict(item) for item in kwargs[name])
        try:
            return cls(**kwargs)
        except TypeError as e:
            raise LibraryDocumentError(
                f"Invalid track entry: {e}",
                details={"original_error": str(e)}
            ) from e


@dataclass
class RootFolder:
    """
    The synthetic top of the tracklist tree.

    Every folder or playlist without a resolvable parent is a child of
    the root. It is stored under the fixed ID "root".
    """
    kind: ClassVar[str] = "special"

    date_created: int
    children: list[str] = field(default_factory=list)
    id: str = ROOT_ID
    name: str = ROOT_NAME

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, **_dump_fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RootFolder":
        return cls(**_load_kwargs(cls, data, skip=("type",)))


@dataclass
class Folder:
    """
    A user folder imported from iTunes.

    Attributes:
        name: Folder name (never empty).
        children: Ordered IDs of child folders and playlists.
        imported_from: "itunes".
        original_id: iTunes "Playlist Persistent ID".
        date_imported: Start time of the import run (ms since epoch).
        description / liked / disliked: Optional iTunes values.
    """
    kind: ClassVar[str] = "folder"

    name: str
    children: list[str] = field(default_factory=list)
    imported_from: str | None = None
    original_id: str | None = None
    date_imported: int | None = None
    description: str | None = None
    liked: bool | None = None
    disliked: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, **_dump_fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Folder":
        return cls(**_load_kwargs(cls, data, skip=("type",)))


@dataclass
class Playlist:
    """
    A user playlist imported from iTunes.

    Attributes:
        name: Playlist name (never empty).
        tracks: Ordered internal track IDs. May contain the same ID
                more than once, like iTunes playlists can.

    The remaining attributes are the same as Folder's.
    """
    kind: ClassVar[str] = "playlist"

    name: str
    tracks: list[str] = field(default_factory=list)
    imported_from: str | None = None
    original_id: str | None = None
    date_imported: int | None = None
    description: str | None = None
    liked: bool | None = None
    disliked: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, **_dump_fields(self)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Playlist":
        return cls(**_load_kwargs(cls, data, skip=("type",)))


TrackList = Union[RootFolder, Folder, Playlist]

_TRACKLIST_TYPES: dict[str, type] = {
    RootFolder.kind: RootFolder,
    Folder.kind: Folder,
    Playlist.kind: Playlist,
}


def tracklist_from_dict(data: dict[str, Any]) -> TrackList:
    """
    Reconstruct a tracklist from its JSON object, dispatching on 'type'.

    Raises:
        LibraryDocumentError: If 'type' is missing or unknown.
    """
    cls = _TRACKLIST_TYPES.get(data.get("type"))
    if cls is None:
        raise LibraryDocumentError(
            f"Unknown tracklist type \"{data.get('type')}\"",
            details={"type": data.get("type")}
        )
    return cls.from_dict(data)


@dataclass
class Library:
    """
    The library document created by one import run.

    Attributes:
        tracks: Track ID -> Track.
        track_lists: Tracklist ID -> RootFolder | Folder | Playlist.
        play_time: Listening history, always empty for a fresh import.
        version: Document format version.
    """
    tracks: dict[str, Track]
    track_lists: dict[str, TrackList]
    play_time: list[Any] = field(default_factory=list)
    version: int = LIBRARY_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "tracks": {track_id: track.to_dict() for track_id, track in self.tracks.items()},
            "trackLists": {
                list_id: track_list.to_dict() for list_id, track_list in self.track_lists.items()
            },
            "playTime": list(self.play_time),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Library":
        try:
            return cls(
                tracks={
                    track_id: Track.from_dict(track)
                    for track_id, track in data["tracks"].items()
                },
                track_lists={
                    list_id: tracklist_from_dict(track_list)
                    for list_id, track_list in data["trackLists"].items()
                },
                play_time=list(data.get("playTime", [])),
                version=data["version"],
            )
        except (KeyError, AttributeError) as e:
            raise LibraryDocumentError(
                f"Invalid library document: missing {e}",
                details={"original_error": str(e)}
            ) from e


def save_library(library: Library, path: Path) -> None:
    """
    Serialize the library and write it atomically.

    Args:
        library: The library to save.
        path: Destination of the JSON document.

    Raises:
        LibraryWriteError: If writing or renaming fails. The destination
                           is left untouched in that case.

    Behavior:
        1. Create the destination directory if needed
        2. Serialize to JSON (2-space indentation, UTF-8)
        3. Write to "<name>.tmp" next to the destination
        4. fsync, then rename over the destination
    """
    content = json.dumps(library.to_dict(), indent=2, ensure_ascii=False)
    tmp_path = path.with_suffix(path.suffix + ".tmp")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise LibraryWriteError(
            f"Failed to save library: {e}",
            details={"path": str(path), "original_error": str(e)}
        ) from e

    logger.debug(f"Saved library with {len(library.tracks)} tracks to {path}")


def load_library(path: Path) -> Library:
    """
    Read a library document written by save_library().

    Raises:
        LibraryDocumentError: If the file is missing, not valid JSON,
                              or doesn't match the document shape.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise LibraryDocumentError(
            f"Failed to read library: {e}",
            details={"path": str(path), "original_error": str(e)}
        ) from e
    except json.JSONDecodeError as e:
        raise LibraryDocumentError(
            f"Library is not valid JSON: {e}",
            details={"path": str(path), "line": e.lineno}
        ) from e

    if not isinstance(data, dict):
        raise LibraryDocumentError(
            "Library document must be a JSON object",
            details={"path": str(path)}
        )
    return Library.from_dict(data)


def verify_library(library: Library, tracks_dir: Path) -> list[str]:
    """
    Check a library for dangling references.

    Args:
        library: The library to check.
        tracks_dir: Managed tracks directory the 'file' fields refer to.

    Returns:
        One message per problem found. An empty list means every track
        file exists and every tracklist reference resolves.
    """
    problems: list[str] = []

    for track_id, track in library.tracks.items():
        if not (tracks_dir / track.file).is_file():
            problems.append(f"Track {track_id}: file does not exist: {track.file}")

    if ROOT_ID not in library.track_lists:
        problems.append("Missing root tracklist")

    for list_id, track_list in library.track_lists.items():
        if isinstance(track_list, Playlist):
            for track_id in track_list.tracks:
                if track_id not in library.tracks:
                    problems.append(f"Playlist {list_id}: unknown track {track_id}")
        else:
            for child_id in track_list.children:
                if child_id not in library.track_lists:
                    problems.append(f"Folder {list_id}: unknown child {child_id}")

    return problems
