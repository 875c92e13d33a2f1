"""
Configuration management for itunes-import.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - The library directory that receives the imported library
    - Optional overrides for the managed tracks/artworks directories
      and for the library document path
    - Defaults for the import confirmation (dry run, skip the question)

Configuration File Location:
    The config.yaml file is looked up in the current working directory
    unless an explicit path is passed. When it is absent, a library
    directory given on the command line is enough to derive every path.

Example config.yaml:
    library:
      directory: "~/Music/Ferrum"
      tracks_directory: null      # Default: {directory}/Tracks
      artworks_directory: null    # Default: {directory}/Artworks
      library_file: null          # Default: {directory}/Library.json

    import:
      dry_run: true
      assume_yes: false
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from itunes_import.core.exceptions import ConfigError


# Default configuration file name (always in current working directory)
CONFIG_FILENAME = "config.yaml"

TRACKS_DIRNAME = "Tracks"
ARTWORKS_DIRNAME = "Artworks"
LIBRARY_FILENAME = "Library.json"


@dataclass(frozen=True)
class LibraryPaths:
    """
    Destination paths of an import run.

    Attributes:
        library_dir: Root directory of the managed library.
        tracks_dir: Directory that receives the copied audio files.
        artworks_dir: Directory that receives the extracted artwork.
        library_json: Path of the library document written at the end.
    """
    library_dir: Path
    tracks_dir: Path
    artworks_dir: Path
    library_json: Path

    @classmethod
    def from_directory(cls, library_dir: Path) -> "LibraryPaths":
        """
        Derive the default paths from a library directory.

        Example:
            paths = LibraryPaths.from_directory(Path("~/Music/Ferrum"))
            # paths.tracks_dir == ~/Music/Ferrum/Tracks (expanded)
        """
        root = Path(library_dir).expanduser().resolve()
        return cls(
            library_dir=root,
            tracks_dir=root / TRACKS_DIRNAME,
            artworks_dir=root / ARTWORKS_DIRNAME,
            library_json=root / LIBRARY_FILENAME,
        )

    def ensure_directories(self) -> None:
        """
        Create the library, tracks and artworks directories and the
        directory of the library document.

        Only called for real (non-dry) runs, a dry run never touches
        the filesystem.
        """
        for directory in (
            self.library_dir,
            self.tracks_dir,
            self.artworks_dir,
            self.library_json.parent,
        ):
            directory.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class ImportConfig:
    """
    Import behavior configuration.

    Attributes:
        dry_run: Default answer of the "Dry run" question. Default: True,
                 so nothing is written unless the user opts out.
        assume_yes: Skip the confirmation question. Default: False.
    """
    dry_run: bool
    assume_yes: bool


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Attributes:
        library: Destination paths.
        importer: Import behavior settings.

    Example:
        config = load_config()
        print(f"Importing into: {config.library.library_dir}")
    """
    library: LibraryPaths
    importer: ImportConfig


def load_config(
    config_path: Path | None = None,
    library_dir: Path | None = None
) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.
        library_dir: Optional library directory (from --library-dir).
                     Overrides 'library.directory' and allows running
                     without any config file.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is required but not found, has
                     invalid YAML syntax, is missing required fields, or
                     contains invalid values.

    Behavior:
        1. Locate config file (explicit path or CWD/config.yaml)
        2. If it's missing: use library_dir defaults, or fail
        3. Read and parse YAML content
        4. Validate and extract library paths
        5. Validate import settings with defaults
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        if library_dir is not None and not explicit:
            return Config(
                library=LibraryPaths.from_directory(library_dir),
                importer=_parse_import_config(None),
            )
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file is allowed when --library-dir supplies the paths
    if raw_config is None:
        raw_config = {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    library_section = _get_section(raw_config, "library")
    import_section = _get_section(raw_config, "import")

    return Config(
        library=_parse_library_config(library_section, library_dir),
        importer=_parse_import_config(import_section),
    )


def _get_section(raw_config: dict[str, Any], name: str) -> dict[str, Any] | None:
    section = raw_config.get(name)
    if section is not None and not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_path(section: dict[str, Any], key: str) -> Path | None:
    """Read an optional path field, expanding ~ and making it absolute."""
    raw = section.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str) or not raw.strip():
        raise ConfigError(
            f"'library.{key}' must be a non-empty string",
            details={"field": f"library.{key}"}
        )
    return Path(raw.strip()).expanduser().resolve()


def _parse_library_config(
    library_section: dict[str, Any] | None,
    library_dir: Path | None
) -> LibraryPaths:
    """
    Parse and validate the library configuration section.

    Args:
        library_section: The 'library' section from config.yaml, or None.
        library_dir: Directory from the command line, takes precedence.

    Returns:
        LibraryPaths with defaults applied for missing overrides.

    Raises:
        ConfigError: If no library directory is available or a path
                     field is not a non-empty string.
    """
    section = library_section or {}

    if library_dir is None:
        library_dir = _parse_path(section, "directory")
    if library_dir is None:
        raise ConfigError(
            "'library.directory' must be a non-empty string",
            details={"field": "library.directory"}
        )

    defaults = LibraryPaths.from_directory(library_dir)

    return LibraryPaths(
        library_dir=defaults.library_dir,
        tracks_dir=_parse_path(section, "tracks_directory") or defaults.tracks_dir,
        artworks_dir=_parse_path(section, "artworks_directory") or defaults.artworks_dir,
        library_json=_parse_path(section, "library_file") or defaults.library_json,
    )


def _parse_import_config(import_section: dict[str, Any] | None) -> ImportConfig:
    """
    Parse and validate the import configuration section.

    Args:
        import_section: The 'import' section from config.yaml, or None.

    Returns:
        ImportConfig with defaults applied (dry_run=True, assume_yes=False).

    Raises:
        ConfigError: If a flag is present but not a boolean.
    """
    values = {"dry_run": True, "assume_yes": False}

    if import_section is not None:
        for key in values:
            raw = import_section.get(key)
            if raw is None:
                continue
            if not isinstance(raw, bool):
                raise ConfigError(
                    f"'import.{key}' must be true or false",
                    details={"field": f"import.{key}", "value": raw}
                )
            values[key] = raw

    return ImportConfig(**values)
