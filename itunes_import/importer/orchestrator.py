"""
The import run: Library.xml in, library document out.

run_import() drives the whole pipeline and never raises. Progress and
warnings go to two callbacks supplied by the caller, so the importer has
no display code of its own and runs headless in tests.

Workflow:
    1. Ask the prompt for the source file and the dry-run flag
    2. Read Library.xml, pick the Music playlist and user tracklists
    3. For every track in Music, in order:
         normalize fields -> probe file -> resolve filename
         -> pick artwork -> copy (unless dry run)
    4. Build folders and playlists
    5. Save the library atomically (unless dry run)

Outcome (ImportResult):
    cancelled=False              the library was written
    cancelled=True, err=None     declined, or dry run
    cancelled=True, err=<exc>    the run failed

Usage:
    from itunes_import.importer import run_import, ImportChoice

    result = run_import(
        paths,
        status=print,
        warn=print,
        prompt=lambda: ImportChoice(Path("Library.xml"), dry_run=True),
    )
"""

import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable

from itunes_import.core.config import LibraryPaths
from itunes_import.core.exceptions import UnsupportedTrackTypeError
from itunes_import.core.ids import unique_id
from itunes_import.core.library import Library, Track, save_library
from itunes_import.core.logger import get_logger, log_import_warning
from itunes_import.importer.document import load_library_document
from itunes_import.importer.filenames import TrackFilenameResolver
from itunes_import.importer.media import read_audio, relocate_media, select_artwork
from itunes_import.importer.records import normalize_track, source_path, track_label
from itunes_import.importer.tree import build_track_lists

logger = get_logger(__name__)


StatusSink = Callable[[str], None]
WarnSink = Callable[[str], None]


@dataclass(frozen=True)
class ImportChoice:
    """
    What the user chose before the import starts.

    Attributes:
        file_path: The exported iTunes Library.xml.
        dry_run: Validate everything but write nothing.
    """
    file_path: Path
    dry_run: bool


@dataclass
class ImportResult:
    """
    Outcome of run_import().

    Attributes:
        cancelled: True unless the library document was written.
        warnings: Every warning emitted during the run, in order.
        err: The exception that stopped the run, if any.
        library: The library built by the run. Set for successful and
                 dry runs, None otherwise.
    """
    cancelled: bool
    warnings: list[str] = field(default_factory=list)
    err: Exception | None = None
    library: Library | None = None


def _now_ms() -> int:
    return int(time.time() * 1000)


class _ImportRun:
    """State of a single import run."""

    def __init__(
        self,
        paths: LibraryPaths,
        status: StatusSink,
        warn: WarnSink,
        dry_run: bool
    ) -> None:
        self.paths = paths
        self.status = status
        self.warn = warn
        self.dry_run = dry_run
        self.start_time = _now_ms()
        self.resolver = TrackFilenameResolver(paths.tracks_dir)
        self.tracks: dict[str, Track] = {}
        # iTunes Track ID -> internal track ID
        self.track_ids: dict[str, str] = {}

    def import_track(self, record: dict) -> Track:
        """
        Turn one raw track record into a Track, copying its file.

        Raises:
            UnsupportedTrackTypeError: Not a file track, to be skipped.
            TrackImportError: Any other per-track failure (fatal).
        """
        label = track_label(record)
        fields = normalize_track(record, self.warn, self.start_time)

        source = source_path(record)
        properties, pictures = read_audio(source, label)
        filename = self.resolver.resolve(
            fields.get("artist"), fields.get("name"), source, label
        )
        artwork = select_artwork(pictures, self.warn, label)
        relocate_media(source, filename, artwork, self.paths, self.dry_run, label)

        return Track(**fields, **asdict(properties), file=filename)

    def run(self, file_path: Path) -> Library:
        self.status("Reading iTunes Library file...")
        document = load_library_document(file_path, self.warn)

        self.status("Parsing tracks...")
        if not self.dry_run:
            self.paths.ensure_directories()

        total = len(document.music_items)
        for index, foreign_id in enumerate(document.music_items, start=1):
            self.status(f"Parsing tracks... ({index}/{total})")
            try:
                track = self.import_track(document.tracks[foreign_id])
            except UnsupportedTrackTypeError as e:
                self.warn(e.message)
                continue

            track_id = unique_id(self.tracks)
            self.tracks[track_id] = track
            self.track_ids[foreign_id] = track_id

        self.status("Parsing folders and playlists...")
        track_lists = build_track_lists(document.playlists, self.track_ids, self.start_time)

        return Library(tracks=self.tracks, track_lists=track_lists)


def run_import(
    paths: LibraryPaths,
    status: StatusSink,
    warn: WarnSink,
    prompt: Callable[[], ImportChoice | None]
) -> ImportResult:
    """
    Import an iTunes library into the managed library.

    Args:
        paths: Destination paths (library, tracks, artworks, document).
        status: Progress sink. Receives "Parsing tracks... (i/total)"
                while tracks are imported.
        warn: Warning sink. Called once per non-fatal problem.
        prompt: Asks the user for an ImportChoice, returns None if the
                user declines.

    Returns:
        ImportResult. Never raises: any exception ends the run with
        cancelled=True and err set, together with the warnings collected
        up to that point.

    Note:
        Files copied before a fatal error stay where they are. Only the
        library document itself is written atomically.
    """
    warnings: list[str] = []

    def collect_warning(message: str) -> None:
        warnings.append(message)
        log_import_warning(logger, message)
        warn(message)

    try:
        choice = prompt()
        if choice is None:
            logger.info("Import declined")
            return ImportResult(cancelled=True, warnings=warnings)

        logger.info(f"Importing {choice.file_path} (dry run: {choice.dry_run})")
        import_run = _ImportRun(paths, status, collect_warning, choice.dry_run)
        library = import_run.run(Path(choice.file_path))

        if choice.dry_run:
            logger.info(
                f"Dry run finished: {len(library.tracks)} tracks, "
                f"{len(library.track_lists) - 1} folders/playlists"
            )
            return ImportResult(cancelled=True, warnings=warnings, library=library)

        status("Saving...")
        save_library(library, paths.library_json)
        logger.info(f"Library written to {paths.library_json}")
        return ImportResult(cancelled=False, warnings=warnings, library=library)

    except Exception as e:
        logger.exception(f"Import failed: {e}")
        return ImportResult(cancelled=True, warnings=warnings, err=e)
