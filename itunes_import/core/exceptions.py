"""
Exception classes for itunes-import.

This module defines all custom exceptions used throughout the importer.
Each exception carries a clear, user-facing message and distinguishes
between the two severities of an import run:

    - Fatal: aborts the whole import. The orchestrator converts it into
      an ImportResult with cancelled=True and err set.
    - Skip-track: only UnsupportedTrackTypeError. The orchestrator turns
      it into a warning and continues with the next track.

Non-fatal problems (missing recommended fields, odd artwork, ...) are
never raised; they are reported through the warn sink.

Exception Hierarchy:
    ImporterError (base)
        ConfigError - Configuration file issues
        LibraryDocumentError - Source Library.xml issues
        TrackImportError - A single track cannot be imported (fatal)
            UnsupportedTrackTypeError - Not a file-based track (skipped)
            FilenameCollisionError - Ran out of filename candidates
            MediaError - Audio file / artwork issues
        TrackListError - Folder or playlist issues
        LibraryWriteError - Saving the new library document failed
"""


class ImporterError(Exception):
    """
    Base exception for all itunes-import errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch every importer error with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., paths, IDs).

    Example:
        try:
            # some operation
        except ImporterError as e:
            logger.error(f"Import failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'path': File path involved in the error
                     - 'original_id': iTunes Persistent ID of the record
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(ImporterError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found and no --library-dir given
        - config.yaml has invalid YAML syntax
        - Required fields missing (library.directory)
        - Invalid field values (e.g., dry_run is not a boolean)

    Example:
        raise ConfigError(
            "'library.directory' must be a non-empty string",
            details={'field': 'library.directory'}
        )
    """
    pass


class LibraryDocumentError(ImporterError):
    """
    Raised when the iTunes Library.xml document cannot be used.

    This is a CRITICAL error - nothing can be imported.

    Common causes:
        - File not found or not readable
        - Not a valid property list
        - No iTunes-generated "Music" playlist, or more than one
        - The Music playlist references a track missing from 'Tracks'

    Example:
        raise LibraryDocumentError(
            'Found two iTunes-generated "Music" playlists',
            details={'path': '/path/to/Library.xml'}
        )
    """
    pass


class TrackImportError(ImporterError):
    """
    Raised when a single track cannot be imported correctly.

    This is a CRITICAL error: importing a track with wrong or missing data
    would silently misrepresent the library, so the whole run stops.

    Attributes:
        track_label: "[Artist - Name]" prefix identifying the track.

    Common causes:
        - Missing required field ("Date Modified", "Date Added", "Location")
        - Unsupported file extension

    Example:
        raise TrackImportError(
            '[Queen - Bohemian Rhapsody] Track missing required field "dateAdded"',
            track_label="[Queen - Bohemian Rhapsody]"
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        track_label: str | None = None
    ) -> None:
        """
        Initialize the track error.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
            track_label: "[Artist - Name]" prefix of the offending track.
        """
        super().__init__(message, details)
        self.track_label = track_label


class UnsupportedTrackTypeError(TrackImportError):
    """
    Raised when a track is not a local file (stream, podcast URL, ...).

    This is the only NON-CRITICAL track error: the orchestrator reports it
    as a warning and leaves the track out of the new library.
    """
    pass


class FilenameCollisionError(TrackImportError):
    """
    Raised when no free filename was found within the probe limit.

    The resolver tries "<artist> - <title>.ext", then "... 1.ext" and so on,
    and gives up after 500 candidates.
    """
    pass


class MediaError(TrackImportError):
    """
    Raised when there's an issue with a track's audio file or artwork.

    Common causes:
        - Source file referenced by Location does not exist
        - mutagen cannot read the file
        - Duration, bitrate or sample rate cannot be determined
        - The destination track or artwork file already exists

    Example:
        raise MediaError(
            "[Queen - Bohemian Rhapsody] File already exists: /lib/Tracks/Queen - Bohemian Rhapsody.mp3",
            details={'path': '/lib/Tracks/Queen - Bohemian Rhapsody.mp3'}
        )
    """
    pass


class TrackListError(ImporterError):
    """
    Raised when a folder or playlist record cannot be rebuilt.

    Common causes:
        - Playlist or folder without a name
        - Parent folder resolved to an ID that was never allocated
    """
    pass


class LibraryWriteError(ImporterError):
    """
    Raised when the new library document cannot be saved.

    The document is written atomically, so this error never leaves a
    half-written file at the library path.

    Common causes:
        - Permission denied
        - Disk full
        - Library directory does not exist
    """
    pass
