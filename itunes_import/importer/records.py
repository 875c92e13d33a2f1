"""
Normalization of raw Library.xml records.

normalize_track() maps one raw iTunes track record to the fields of a
Track (without audio properties, which come from the file itself).
normalize_tracklist() does the same for folders and playlists.

Field Mapping (iTunes key -> Track attribute):
    Name              -> name              recommended
    Persistent ID     -> original_id
    Artist            -> artist            recommended
    Composer          -> composer          recommended
    Sort Name         -> sort_name
    Sort Artist       -> sort_artist
    Sort Composer     -> sort_composer
    Genre             -> genre
    Rating            -> rating
    Year              -> year
    BPM               -> bpm
    Date Modified     -> date_modified     required
    Date Added        -> date_added        required
    Comments          -> comments
    Grouping          -> grouping
    Loved             -> liked
    Disliked          -> disliked
    Disabled          -> disabled
    Compilation       -> compilation
    Album             -> album_name
    Album Artist      -> album_artist
    Sort Album        -> sort_album_name
    Sort Album Artist -> sort_album_artist
    Track Number      -> track_num
    Track Count       -> track_count
    Disc Number       -> disc_num
    Disc Count        -> disc_count

Falsy values (missing, "", 0, false) are never imported. A missing
required field aborts the import, a missing recommended field is a
warning. Dates become milliseconds since the epoch.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable
from urllib.parse import urlparse
from urllib.request import url2pathname

from itunes_import.core.exceptions import (
    TrackImportError,
    TrackListError,
    UnsupportedTrackTypeError,
)
from itunes_import.core.library import ImportedCount, to_camel


IMPORTED_FROM = "itunes"
FILE_TRACK_TYPE = "File"

# iTunes stores volume adjustment as roughly -255..255
VOLUME_SCALE = 2.55
VOLUME_LIMIT = 100


class FieldPolicy(Enum):
    """What happens when a field is missing from the record."""
    OPTIONAL = "optional"
    RECOMMENDED = "recommended"
    REQUIRED = "required"


TRACK_FIELDS: tuple[tuple[str, str, FieldPolicy], ...] = (
    ("Name", "name", FieldPolicy.RECOMMENDED),
    ("Persistent ID", "original_id", FieldPolicy.OPTIONAL),
    ("Artist", "artist", FieldPolicy.RECOMMENDED),
    ("Composer", "composer", FieldPolicy.RECOMMENDED),
    ("Sort Name", "sort_name", FieldPolicy.OPTIONAL),
    ("Sort Artist", "sort_artist", FieldPolicy.OPTIONAL),
    ("Sort Composer", "sort_composer", FieldPolicy.OPTIONAL),
    ("Genre", "genre", FieldPolicy.OPTIONAL),
    ("Rating", "rating", FieldPolicy.OPTIONAL),
    ("Year", "year", FieldPolicy.OPTIONAL),
    ("BPM", "bpm", FieldPolicy.OPTIONAL),
    ("Date Modified", "date_modified", FieldPolicy.REQUIRED),
    ("Date Added", "date_added", FieldPolicy.REQUIRED),
    ("Comments", "comments", FieldPolicy.OPTIONAL),
    ("Grouping", "grouping", FieldPolicy.OPTIONAL),
    ("Loved", "liked", FieldPolicy.OPTIONAL),
    ("Disliked", "disliked", FieldPolicy.OPTIONAL),
    ("Disabled", "disabled", FieldPolicy.OPTIONAL),
    ("Compilation", "compilation", FieldPolicy.OPTIONAL),
    ("Album", "album_name", FieldPolicy.OPTIONAL),
    ("Album Artist", "album_artist", FieldPolicy.OPTIONAL),
    ("Sort Album", "sort_album_name", FieldPolicy.OPTIONAL),
    ("Sort Album Artist", "sort_album_artist", FieldPolicy.OPTIONAL),
    ("Track Number", "track_num", FieldPolicy.OPTIONAL),
    ("Track Count", "track_count", FieldPolicy.OPTIONAL),
    ("Disc Number", "disc_num", FieldPolicy.OPTIONAL),
    ("Disc Count", "disc_count", FieldPolicy.OPTIONAL),
)


def to_timestamp(value: datetime) -> int:
    """
    Convert a plist date to milliseconds since the epoch.

    plistlib returns naive datetimes that are in UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def track_label(record: dict[str, Any]) -> str:
    """Return the "[Artist - Name]" prefix used in messages about a track."""
    return f"[{record.get('Artist', '')} - {record.get('Name', '')}]"


def _convert(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_timestamp(value)
    return value


def _import_history(
    record: dict[str, Any],
    count_key: str,
    date_key: str,
    start_time: int
) -> tuple[int, tuple[int, ...] | None, tuple[ImportedCount, ...] | None] | None:
    """
    Split a play or skip count into known events and an imported range.

    iTunes keeps a total count and the date of the last event only. The
    last event becomes a real timestamp, the rest of the count becomes
    a single range from "Date Added" to that last event (or to the import
    start time when iTunes has no date).

    Returns:
        (count, events, imported) or None if the count is below 1.

    Example:
        Play Count 5, Play Date UTC 2020-01-01
        -> (5, (<2020-01-01>,), (ImportedCount(4, <added>, <2020-01-01>),))
    """
    count = record.get(count_key)
    if not count or count < 1:
        return None

    last_date = record.get(date_key)
    events = None
    remaining = count
    if last_date is not None:
        events = (to_timestamp(last_date),)
        remaining -= 1

    imported = None
    if remaining >= 1:
        imported = (
            ImportedCount(
                count=remaining,
                from_date=to_timestamp(record["Date Added"]),
                to_date=start_time if last_date is None else to_timestamp(last_date),
            ),
        )

    return count, events, imported


def _convert_volume(
    record: dict[str, Any],
    label: str,
    warn: Callable[[str], None]
) -> int | None:
    raw = record.get("Volume Adjustment")
    if not raw:
        return None

    volume = round_half_up(raw / VOLUME_SCALE)
    if not volume:
        return None
    if -VOLUME_LIMIT <= volume <= VOLUME_LIMIT:
        return volume

    warn(f"{label} Unable to import Volume Adjustment of value \"{volume}\"")
    return None


def normalize_track(
    record: dict[str, Any],
    warn: Callable[[str], None],
    start_time: int
) -> dict[str, Any]:
    """
    Map a raw iTunes track record to Track attributes.

    Args:
        record: The raw track dict from Library.xml.
        warn: Warning sink for missing recommended fields and bad volume.
        start_time: Start of the import run (ms since epoch).

    Returns:
        Dict of Track attribute -> value. Audio properties and 'file' are
        added by the media step.

    Raises:
        UnsupportedTrackTypeError: If "Track Type" is not "File". The
                                   caller skips the track.
        TrackImportError: If a required field is missing.

    Behavior:
        1. Check the track type
        2. Copy the field table, applying the field policies
        3. Reconcile play and skip history
        4. Convert volume adjustment to -100..100
    """
    label = track_label(record)

    track_type = record.get("Track Type")
    if track_type != FILE_TRACK_TYPE:
        raise UnsupportedTrackTypeError(
            f"{label} Expected track type \"{FILE_TRACK_TYPE}\", was \"{track_type}\"",
            details={"original_id": record.get("Persistent ID"), "track_type": track_type},
            track_label=label
        )

    fields: dict[str, Any] = {
        "imported_from": IMPORTED_FROM,
        "date_imported": start_time,
    }

    for source_key, target, policy in TRACK_FIELDS:
        value = record.get(source_key)
        if value:
            fields[target] = _convert(value)
        elif policy is FieldPolicy.REQUIRED:
            raise TrackImportError(
                f"{label} Track missing required field \"{to_camel(target)}\"",
                details={"original_id": record.get("Persistent ID"), "field": source_key},
                track_label=label
            )
        elif policy is FieldPolicy.RECOMMENDED:
            warn(f"{label} Missing recommended field \"{to_camel(target)}\"")

    plays = _import_history(record, "Play Count", "Play Date UTC", start_time)
    if plays is not None:
        fields["play_count"], fields["plays"], fields["plays_imported"] = plays

    skips = _import_history(record, "Skip Count", "Skip Date", start_time)
    if skips is not None:
        fields["skip_count"], fields["skips"], fields["skips_imported"] = skips

    volume = _convert_volume(record, label, warn)
    if volume is not None:
        fields["volume"] = volume

    return fields


def source_path(record: dict[str, Any]) -> Path:
    """
    Decode the track's "Location" file:// URL to a local path.

    Raises:
        TrackImportError: If Location is missing or not a file URL.

    Example:
        "file:///Users/me/Music/Queen/Bohemian%20Rhapsody.mp3"
        -> Path("/Users/me/Music/Queen/Bohemian Rhapsody.mp3")
    """
    label = track_label(record)
    location = record.get("Location")
    if not location:
        raise TrackImportError(
            f"{label} Missing required field \"Location\"",
            details={"original_id": record.get("Persistent ID")},
            track_label=label
        )

    parsed = urlparse(location)
    if parsed.scheme != "file":
        raise TrackImportError(
            f"{label} Location is not a file URL: {location}",
            details={"location": location},
            track_label=label
        )
    return Path(url2pathname(parsed.path))


def normalize_tracklist(record: dict[str, Any], start_time: int) -> dict[str, Any]:
    """
    Map the fields folders and playlists share.

    Args:
        record: The raw playlist dict from Library.xml.
        start_time: Start of the import run (ms since epoch).

    Returns:
        Dict of Folder/Playlist attribute -> value.

    Raises:
        TrackListError: If the record has no name.
    """
    name = record.get("Name")
    if not name:
        raise TrackListError(
            "Playlist missing required field \"Name\"",
            details={"original_id": record.get("Playlist Persistent ID")}
        )

    fields: dict[str, Any] = {
        "name": name,
        "original_id": record.get("Playlist Persistent ID"),
        "imported_from": IMPORTED_FROM,
        "date_imported": start_time,
    }
    if record.get("Description"):
        fields["description"] = record["Description"]
    if record.get("Loved"):
        fields["liked"] = record["Loved"]
    if record.get("Disliked"):
        fields["disliked"] = record["Disliked"]
    return fields
