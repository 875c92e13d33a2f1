"""
iTunes import pipeline.

Modules:
    document      - Library.xml reading and playlist selection
    filenames     - Managed filenames for imported tracks
    records       - Track and tracklist field normalization
    media         - Audio probing, artwork, copying
    tree          - Folder/playlist tree reconstruction
    orchestrator  - run_import(), the whole run

Usage:
    from itunes_import.importer import run_import, ImportChoice, ImportResult
"""

from itunes_import.importer.document import LibraryDocument, load_library_document
from itunes_import.importer.filenames import TrackFilenameResolver, sanitize_filename
from itunes_import.importer.orchestrator import ImportChoice, ImportResult, run_import
from itunes_import.importer.records import normalize_track, normalize_tracklist
from itunes_import.importer.tree import build_track_lists

__all__ = [
    "LibraryDocument",
    "load_library_document",
    "TrackFilenameResolver",
    "sanitize_filename",
    "normalize_track",
    "normalize_tracklist",
    "build_track_lists",
    "ImportChoice",
    "ImportResult",
    "run_import",
]
