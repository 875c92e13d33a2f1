"""
Audio probing, artwork extraction and copying into managed storage.

For every track the source file is probed with mutagen for its audio
properties and embedded pictures. The first picture becomes the track's
artwork if Pillow recognizes it as JPEG or PNG.

Storage Layout:
    library_dir/
    ├── Tracks/
    │   └── Queen - Bohemian Rhapsody.mp3
    └── Artworks/
        └── Queen - Bohemian Rhapsody.mp3.jpg     # {track filename}{ext}

Under dry run everything is read and checked, nothing is written.

Dependencies:
    - mutagen: duration, bitrate, sample rate, APIC / covr pictures
    - Pillow: image format detection
"""

import shutil
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Callable

import mutagen
from mutagen import MutagenError
from mutagen.id3 import ID3
from mutagen.mp4 import MP4Tags
from PIL import Image, UnidentifiedImageError

from itunes_import.core.config import LibraryPaths
from itunes_import.core.exceptions import MediaError
from itunes_import.core.logger import get_logger

logger = get_logger(__name__)


# Pillow format name -> artwork file extension
ARTWORK_EXTENSIONS = {
    "JPEG": ".jpg",
    "PNG": ".png",
}


@dataclass(frozen=True)
class AudioProperties:
    """
    Audio properties of a source file.

    Attributes:
        size: File size in bytes.
        duration: Duration in seconds.
        bitrate: Bitrate in bits per second, rounded.
        sample_rate: Sample rate in Hz.
    """
    size: int
    duration: float
    bitrate: int
    sample_rate: int


@dataclass(frozen=True)
class Artwork:
    data: bytes
    extension: str


def embedded_pictures(tags: Any) -> list[bytes]:
    """
    Return the raw bytes of every picture embedded in the tags.

    Supports ID3 APIC frames (MP3) and the MP4 'covr' atom (M4A).
    Other or missing tags have no pictures.
    """
    if tags is None:
        return []
    if isinstance(tags, ID3):
        return [frame.data for frame in tags.getall("APIC")]
    if isinstance(tags, MP4Tags):
        return [bytes(cover) for cover in tags.get("covr", [])]
    return []


def read_audio(path: Path, track_label: str = "") -> tuple[AudioProperties, list[bytes]]:
    """
    Probe a source file for its audio properties and pictures.

    Args:
        path: The local file referenced by the track's Location.
        track_label: "[Artist - Name]" prefix for error messages.

    Returns:
        (AudioProperties, embedded pictures in tag order).

    Raises:
        MediaError: If the file doesn't exist, mutagen can't read it, or
                    duration, bitrate or sample rate is missing or zero.
    """
    if not path.is_file():
        raise MediaError(
            f"{track_label} File does not exist".lstrip(),
            details={"path": str(path)},
            track_label=track_label
        )

    size = path.stat().st_size

    try:
        audio = mutagen.File(str(path))
    except MutagenError as e:
        raise MediaError(
            f"{track_label} Could not read file: {e}".lstrip(),
            details={"path": str(path), "original_error": str(e)},
            track_label=track_label
        ) from e

    if audio is None:
        raise MediaError(
            f"{track_label} Could not read file: unknown audio format".lstrip(),
            details={"path": str(path)},
            track_label=track_label
        )

    info = audio.info
    values = {}
    for attribute, description in (
        ("length", "duration"),
        ("bitrate", "bitrate"),
        ("sample_rate", "sample rate"),
    ):
        value = getattr(info, attribute, None)
        if not value:
            raise MediaError(
                f"{track_label} Could not read {description} from file. "
                "Probably unusual or badly encoded file".lstrip(),
                details={"path": str(path)},
                track_label=track_label
            )
        values[attribute] = value

    properties = AudioProperties(
        size=size,
        duration=float(values["length"]),
        bitrate=round(values["bitrate"]),
        sample_rate=int(values["sample_rate"]),
    )
    return properties, embedded_pictures(audio.tags)


def image_format(data: bytes) -> str | None:
    """Return Pillow's format name for image bytes ("JPEG", "PNG", ...), or None."""
    try:
        with Image.open(BytesIO(data)) as img:
            return img.format
    except (UnidentifiedImageError, OSError):
        return None


def select_artwork(
    pictures: list[bytes],
    warn: Callable[[str], None],
    track_label: str = ""
) -> Artwork | None:
    """
    Pick the artwork to keep from a track's embedded pictures.

    Args:
        pictures: Embedded pictures in tag order.
        warn: Warning sink.
        track_label: "[Artist - Name]" prefix for warnings.

    Returns:
        The first picture as Artwork, or None if there is no picture or
        it is neither JPEG nor PNG.

    Behavior:
        - Pictures that are not all byte-identical -> warning, first one kept
        - First picture not JPEG/PNG -> warning, no artwork
    """
    if not pictures:
        return None

    for previous, current in zip(pictures, pictures[1:]):
        if previous != current:
            warn(f"{track_label} Found multiple unique artworks. Using the first one")
            break

    data = pictures[0]
    detected = image_format(data)
    extension = ARTWORK_EXTENSIONS.get(detected)
    if extension is None:
        warn(f"{track_label} Skipping unsupported cover format \"{detected or 'unknown'}\"")
        return None

    return Artwork(data=data, extension=extension)


def relocate_media(
    source: Path,
    filename: str,
    artwork: Artwork | None,
    paths: LibraryPaths,
    dry_run: bool,
    track_label: str = ""
) -> None:
    """
    Copy a track and write its artwork into managed storage.

    Args:
        source: The original audio file.
        filename: Resolved filename in the tracks directory.
        artwork: Artwork to write next to it, if any.
        paths: Library destination paths.
        dry_run: Check the destinations but write nothing.
        track_label: "[Artist - Name]" prefix for error messages.

    Raises:
        MediaError: If the track or artwork destination already exists,
                    or copying/writing fails.
    """
    destination = paths.tracks_dir / filename
    artwork_path = None
    if artwork is not None:
        artwork_path = paths.artworks_dir / f"{filename}{artwork.extension}"

    for target in (destination, artwork_path):
        if target is not None and target.exists():
            raise MediaError(
                f"{track_label} File already exists: {target}".lstrip(),
                details={"path": str(target)},
                track_label=track_label
            )

    if dry_run:
        return

    try:
        if artwork_path is not None:
            artwork_path.write_bytes(artwork.data)
        shutil.copy2(source, destination)
    except OSError as e:
        raise MediaError(
            f"{track_label} Failed to copy file: {e}".lstrip(),
            details={"source": str(source), "destination": str(destination)},
            track_label=track_label
        ) from e

    logger.debug(f"Copied {source} -> {destination}")
