"""
Managed filenames for imported tracks.

Every imported track gets a new filename inside the managed tracks
directory, derived from its artist and title:

    Tracks/
    ├── Queen - Bohemian Rhapsody.mp3
    ├── Queen - Bohemian Rhapsody 1.mp3     # same artist/title, second copy
    └── AC_DC - Back In Black.m4a           # "/" replaced

File Naming:
    - Base: sanitize_filename("{artist} - {title}")
    - Collisions: " 1", " 2", ... appended before the extension
    - Only .mp3 and .m4a are accepted, so no name can end up as a
      reserved name ("..", "CON") or with a trailing dot or space

Usage:
    from itunes_import.importer.filenames import TrackFilenameResolver

    resolver = TrackFilenameResolver(paths.tracks_dir)
    filename = resolver.resolve("Queen", "Bohemian Rhapsody", source_path)
"""

import re
from pathlib import Path

from itunes_import.core.exceptions import FilenameCollisionError, TrackImportError


# Characters that are unsafe in filenames on at least one common filesystem
_UNSAFE_CHARS_PATTERN = re.compile(r'[/?<>\\:*"]')

# "0x" could be read back as the start of an encoded control byte
_HEX_PREFIX = "0x"

# Filenames can be max 255 bytes. 230 leaves room for " 499" and the extension.
MAX_NAME_BYTES = 230

ALLOWED_EXTENSIONS = (".mp3", ".m4a")

MAX_FILENAME_PROBES = 500


def sanitize_filename(name: str) -> str:
    """
    Make a string safe for use as a filename.

    Args:
        name: The string to sanitize, usually "{artist} - {title}".

    Returns:
        The sanitized string, at most MAX_NAME_BYTES bytes of UTF-8.

    Behavior:
        - Replaces / ? < > \\ : * " with underscores
        - Replaces every "0x" with "__"
        - Truncates to 230 bytes without splitting a character

    Sanitizing an already sanitized name returns it unchanged.
    """
    result = _UNSAFE_CHARS_PATTERN.sub("_", name)
    result = result.replace(_HEX_PREFIX, "__")

    encoded = result.encode("utf-8")
    if len(encoded) > MAX_NAME_BYTES:
        result = encoded[:MAX_NAME_BYTES].decode("utf-8", "ignore")

    return result


class TrackFilenameResolver:
    """
    Finds a free filename in the tracks directory for each track.

    A candidate is taken if it exists on disk or was already handed out
    by this resolver. Remembering handed-out names means a dry run, which
    never copies anything, still resolves the second identical
    artist/title to "... 1.mp3" exactly like a real run.

    Attributes:
        tracks_dir: The managed tracks directory.
        claimed: Filenames handed out during this run.
    """

    def __init__(self, tracks_dir: Path) -> None:
        self.tracks_dir = tracks_dir
        self.claimed: set[str] = set()

    def resolve(
        self,
        artist: str | None,
        title: str | None,
        source_path: Path,
        track_label: str = ""
    ) -> str:
        """
        Resolve and claim a filename for a track.

        Args:
            artist: Track artist, may be missing.
            title: Track title, may be missing.
            source_path: Original file, its extension is kept.
            track_label: "[Artist - Name]" prefix for error messages.

        Returns:
            A filename (no directory) not yet used in tracks_dir.

        Raises:
            TrackImportError: If the extension is not .mp3 or .m4a.
            FilenameCollisionError: If all 500 candidates are taken.

        Example:
            resolver.resolve("Queen", "Bohemian Rhapsody", Path("a.mp3"))
            # "Queen - Bohemian Rhapsody.mp3", then "Queen - Bohemian Rhapsody 1.mp3"
        """
        extension = source_path.suffix
        if extension not in ALLOWED_EXTENSIONS:
            raise TrackImportError(
                f"{track_label} Unsupported file extension \"{extension}\"".lstrip(),
                details={"path": str(source_path), "extension": extension},
                track_label=track_label
            )

        base = sanitize_filename(f"{artist or ''} - {title or ''}")

        for probe in range(MAX_FILENAME_PROBES):
            ending = f" {probe}" if probe else ""
            candidate = f"{base}{ending}{extension}"
            if candidate in self.claimed or (self.tracks_dir / candidate).exists():
                continue
            self.claimed.add(candidate)
            return candidate

        raise FilenameCollisionError(
            f"{track_label} Already have {MAX_FILENAME_PROBES} tracks with that artist and title".lstrip(),
            details={"base": base},
            track_label=track_label
        )
