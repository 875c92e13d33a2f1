"""Test configuration and fixtures"""

import plistlib
import tempfile
from datetime import datetime, timezone
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace

import pytest
from PIL import Image

from itunes_import.core.config import LibraryPaths


DATE_ADDED = datetime(2015, 3, 1, 12, 0, 0)
DATE_MODIFIED = datetime(2016, 6, 15, 8, 30, 0)
PLAY_DATE = datetime(2020, 1, 2, 18, 45, 0)
SKIP_DATE = datetime(2019, 11, 5, 9, 15, 0)
START_TIME = 1_700_000_000_000


def ms(value: datetime) -> int:
    """Milliseconds since the epoch of a naive UTC datetime"""
    return int(value.replace(tzinfo=timezone.utc).timestamp() * 1000)


def image_bytes(image_format: str) -> bytes:
    output = BytesIO()
    Image.new("RGB", (4, 4), (200, 30, 30)).save(output, format=image_format)
    return output.getvalue()


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def library_paths(temp_dir):
    """Destination paths inside the temporary directory"""
    return LibraryPaths.from_directory(temp_dir / "library")


@pytest.fixture
def jpeg_bytes():
    return image_bytes("JPEG")


@pytest.fixture
def png_bytes():
    return image_bytes("PNG")


@pytest.fixture
def gif_bytes():
    return image_bytes("GIF")


@pytest.fixture
def fake_audio():
    """Factory for objects shaped like mutagen.File() results"""
    def make(length=215.5, bitrate=320000, sample_rate=44100, tags=None):
        return SimpleNamespace(
            info=SimpleNamespace(length=length, bitrate=bitrate, sample_rate=sample_rate),
            tags=tags,
        )
    return make


@pytest.fixture
def source_file(temp_dir):
    """Factory creating a fake audio file in the iTunes media folder"""
    media_dir = temp_dir / "iTunes Media"

    def make(name: str, content: bytes = b"fake audio data") -> Path:
        path = media_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path
    return make


@pytest.fixture
def track_record():
    """Factory for raw Library.xml track records"""
    def make(track_id=1, name="Bohemian Rhapsody", artist="Queen", location=None, **extra):
        record = {
            "Track ID": track_id,
            "Persistent ID": f"PID{track_id:013d}",
            "Track Type": "File",
            "Name": name,
            "Artist": artist,
            "Composer": "Freddie Mercury",
            "Date Added": DATE_ADDED,
            "Date Modified": DATE_MODIFIED,
        }
        if location is not None:
            record["Location"] = location if isinstance(location, str) else location.as_uri()
        record.update(extra)
        return {key: value for key, value in record.items() if value is not None}
    return make


@pytest.fixture
def write_library_xml(temp_dir):
    """Factory writing a Library.xml with a Music playlist over all tracks"""
    def write(tracks, playlists=(), music=True, version=(1, 1)) -> Path:
        document = {
            "Major Version": version[0],
            "Minor Version": version[1],
            "Application Version": "12.9.5.5",
            "Tracks": {str(track["Track ID"]): track for track in tracks},
            "Playlists": [
                {
                    "Name": "Library",
                    "Master": True,
                    "Visible": False,
                    "Playlist Persistent ID": "LIBRARY000000001",
                    "Playlist Items": [{"Track ID": track["Track ID"]} for track in tracks],
                },
            ],
        }
        if music:
            document["Playlists"].append({
                "Name": "Music",
                "Distinguished Kind": 4,
                "Music": True,
                "Playlist Persistent ID": "MUSIC00000000001",
                "Playlist Items": [{"Track ID": track["Track ID"]} for track in tracks],
            })
        document["Playlists"].extend(playlists)

        path = temp_dir / "Library.xml"
        with open(path, "wb") as f:
            plistlib.dump(document, f)
        return path
    return write
