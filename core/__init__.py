"""Shared core utilities for configuration decoding and archive writing."""

from .archive import (
    ArchiveConsole,
    ArchiveManager,
    DuplicateEntryError,
    FORMAT_SUFFIXES,
    JarWriter,
    Manifest,
    iter_tree,
)
from .config_loader import (
    ConfigLoader,
    FILE_LOADERS,
    collect_config_files,
    find_config_file,
    load_config_file,
    normalize_path_list,
    normalize_string_list,
)

__all__ = [
    "ArchiveConsole",
    "ArchiveManager",
    "DuplicateEntryError",
    "FORMAT_SUFFIXES",
    "JarWriter",
    "Manifest",
    "iter_tree",
    "ConfigLoader",
    "FILE_LOADERS",
    "collect_config_files",
    "find_config_file",
    "load_config_file",
    "normalize_path_list",
    "normalize_string_list",
]
