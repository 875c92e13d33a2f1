"""
itunes-import: Move an iTunes library into a managed music library.

Reads the "Library.xml" that iTunes exports (File > Library > Export
Library...), copies every music file into the library's Tracks folder,
extracts cover art, and writes a new Library.json with tracks, folders
and playlists.

Architecture:
    core/       - Configuration, logging, exceptions, IDs, library model
    importer/   - Library.xml reading, normalization, media, tree, run
    cli.py      - Command-line interface

Usage:
    Command Line:
        itunes-import --xml ~/Desktop/Library.xml --library-dir ~/Music/Ferrum
        itunes-import --xml Library.xml --no-dry-run --yes
        itunes-import --verify --library-dir ~/Music/Ferrum

    Python API:
        from itunes_import.core import LibraryPaths
        from itunes_import.importer import run_import, ImportChoice

        result = run_import(paths, print, print, lambda: ImportChoice(xml, True))
"""

__version__ = "0.1.0"
__author__ = "itunes-import"
