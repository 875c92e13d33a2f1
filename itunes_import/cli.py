"""
Command-line interface for itunes-import.

This module implements the CLI using Click, with rich-click for the
help output. It plays the part of the confirmation dialog: it explains
what the import does, asks for the Library.xml path and the dry-run
choice, then runs the import with a progress bar.

Commands:
    itunes-import --xml <Library.xml>           Dry run (default)
    itunes-import --xml <Library.xml> --no-dry-run
                                                Import and write the library
    itunes-import --verify                      Check an existing library

Options:
    --library-dir <dir>     Library directory (instead of config.yaml)
    --config <file>         Explicit config file
    --yes                   Don't ask for confirmation

Exit Codes:
    0    Library written, dry run finished, or import declined
    1    Import failed, or verification found problems
    2    Configuration error
    130  Interrupted by user
"""

import sys
from pathlib import Path
from typing import Optional

import rich_click as click

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "cli": [
        {
            "name": "Import",
            "options": ["--xml", "--dry-run", "--yes"],
        },
        {
            "name": "Library",
            "options": ["--library-dir", "--config", "--verify"],
        },
        {
            "name": "Info",
            "options": ["--version", "--help"],
        },
    ],
}

from itunes_import import __version__
from itunes_import.core import (
    Config,
    ConfigError,
    ImporterError,
    LibraryPaths,
    get_logger,
    load_config,
    load_library,
    setup_logging,
    shutdown_logging,
    verify_library,
)
from itunes_import.core.progress import ImportProgressBar
from itunes_import.importer import ImportChoice, ImportResult, run_import

logger = get_logger(__name__)


IMPORT_NOTICE = """\
WARNING: This will reset/delete your library!

Select an iTunes "Library.xml" file. To get that file, open iTunes and
click on "File > Library > Export Library..."

All your tracks need to be downloaded for this to work. If you have
tracks from iTunes Store/Apple Music, it might not work.

The following will not be imported:
- Music videos, podcasts, audiobooks, voice memos etc.
- Smart playlists, Genius playlists and Genius Mix playlists
- View options
- Album ratings, album likes and album dislikes
- The following track metadata:
    - Lyrics
    - Equalizer
    - Skip when shuffling
    - Remember playback position
    - Start time
    - Stop time
"""


@click.command()
@click.option(
    "--xml", "xml_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<Library.xml>",
    help="iTunes library export (asked for if omitted)"
)
@click.option(
    "--dry-run/--no-dry-run",
    default=None,
    help="Validate everything without writing (default from config: on)"
)
@click.option(
    "--yes", "assume_yes",
    is_flag=True,
    help="Don't ask for confirmation"
)
@click.option(
    "--library-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<dir>",
    help="Library directory, overrides config.yaml"
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--verify",
    is_flag=True,
    help="Check an existing library instead of importing"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    xml_path: Optional[Path],
    dry_run: Optional[bool],
    assume_yes: bool,
    library_dir: Optional[Path],
    config_path: Optional[Path],
    verify: bool,
    version: bool
) -> None:
    """
    itunes-import: Move an iTunes library into a managed music library.

    Copies every track of the iTunes "Music" playlist into the library's
    Tracks folder, extracts cover art, and rebuilds folders and playlists.

    \b
    BASIC USAGE:
        itunes-import --xml Library.xml --library-dir ~/Music/Ferrum
        itunes-import --xml Library.xml --no-dry-run

    \b
    CHECK A LIBRARY:
        itunes-import --verify --library-dir ~/Music/Ferrum
    """
    if version:
        click.echo(f"itunes-import {__version__}")
        ctx.exit(0)

    try:
        config = load_config(config_path, library_dir)
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(2)

    try:
        setup_logging(Path.cwd())
        logger.info(f"itunes-import {__version__} starting")

        if verify:
            sys.exit(_run_verify(config.library))

        choice = _ask_import_choice(config, xml_path, dry_run, assume_yes)
        if choice is None:
            click.echo("Import cancelled")
            sys.exit(0)

        with ImportProgressBar() as progress:
            result = run_import(
                config.library,
                status=progress.status,
                warn=progress.warn,
                prompt=lambda: choice,
            )

        sys.exit(_report_result(result, config.library))

    except ImporterError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(1)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    finally:
        shutdown_logging()


def _ask_import_choice(
    config: Config,
    xml_path: Optional[Path],
    dry_run: Optional[bool],
    assume_yes: bool
) -> ImportChoice | None:
    """
    Collect the import choice from options, config and the user.

    Args:
        config: Loaded configuration, provides the defaults.
        xml_path: --xml, or None to ask for it.
        dry_run: --dry-run/--no-dry-run, or None to use the config default.
        assume_yes: --yes on the command line.

    Returns:
        ImportChoice, or None if the user declined.

    Behavior:
        - Without --yes (and assume_yes in config): show IMPORT_NOTICE
          and ask for confirmation, then ask about dry run unless given
        - Ask for the Library.xml path if --xml was not given
    """
    assume_yes = assume_yes or config.importer.assume_yes

    if not assume_yes:
        click.echo(IMPORT_NOTICE)
        if not click.confirm("Continue?", default=False):
            return None
        if dry_run is None:
            dry_run = click.confirm("Dry run?", default=config.importer.dry_run)

    if dry_run is None:
        dry_run = config.importer.dry_run

    if xml_path is None:
        xml_path = click.prompt(
            "Path to Library.xml",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
        )

    return ImportChoice(file_path=xml_path, dry_run=dry_run)


def _report_result(result: ImportResult, paths: LibraryPaths) -> int:
    """
    Print the outcome of an import run.

    Returns:
        The process exit code.
    """
    logger.info("=" * 60)
    logger.info("IMPORT SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Warnings:          {len(result.warnings)}")
    if result.library is not None:
        logger.info(f"Tracks:            {len(result.library.tracks)}")
        logger.info(f"Folders/playlists: {len(result.library.track_lists) - 1}")
    logger.info("=" * 60)

    if result.err is not None:
        click.echo(f"Import failed: {result.err}", err=True)
        return 1
    if result.cancelled:
        click.echo("Dry run complete, nothing was written")
        return 0

    click.echo(f"Library written to {paths.library_json}")
    return 0


def _run_verify(paths: LibraryPaths) -> int:
    """
    Check the library document at paths.library_json.

    Returns:
        0 if every reference resolves, 1 otherwise.

    Raises:
        LibraryDocumentError: If the document can't be read.
    """
    library = load_library(paths.library_json)
    problems = verify_library(library, paths.tracks_dir)

    for problem in problems:
        logger.warning(problem)

    if problems:
        click.echo(f"Found {len(problems)} problems in {paths.library_json}", err=True)
        return 1

    click.echo(
        f"Library OK: {len(library.tracks)} tracks, "
        f"{len(library.track_lists) - 1} folders/playlists"
    )
    return 0


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `itunes-import` from the command
    line. It invokes the Click command.
    """
    cli()


if __name__ == "__main__":
    main()
