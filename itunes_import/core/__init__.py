"""
Core module for itunes-import.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with multiple outputs
    - progress: Rich progress bar used as status/warn sink
    - ids: Random identifiers for tracks and tracklists
    - library: Library document model, atomic save, load and verify

Usage:
    from itunes_import.core import (
        Config, load_config,
        Library, save_library, load_library,
        setup_logging, get_logger,
        ImporterError, ConfigError
    )
"""

from itunes_import.core.config import (
    Config,
    ImportConfig,
    LibraryPaths,
    load_config,
)
from itunes_import.core.exceptions import (
    ConfigError,
    FilenameCollisionError,
    ImporterError,
    LibraryDocumentError,
    LibraryWriteError,
    MediaError,
    TrackImportError,
    TrackListError,
    UnsupportedTrackTypeError,
)
from itunes_import.core.ids import make_id, unique_id
from itunes_import.core.library import (
    Folder,
    ImportedCount,
    Library,
    Playlist,
    RootFolder,
    Track,
    load_library,
    save_library,
    verify_library,
)
from itunes_import.core.logger import (
    get_logger,
    log_import_warning,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "ImportConfig",
    "LibraryPaths",
    "load_config",
    # Exceptions
    "ImporterError",
    "ConfigError",
    "LibraryDocumentError",
    "TrackImportError",
    "UnsupportedTrackTypeError",
    "FilenameCollisionError",
    "MediaError",
    "TrackListError",
    "LibraryWriteError",
    # IDs
    "make_id",
    "unique_id",
    # Library
    "Library",
    "Track",
    "ImportedCount",
    "RootFolder",
    "Folder",
    "Playlist",
    "save_library",
    "load_library",
    "verify_library",
    # Logger
    "setup_logging",
    "get_logger",
    "log_import_warning",
    "shutdown_logging",
]
