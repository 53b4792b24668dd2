"""Staleness checks for project archives.

Bloop writes the classes of every compile into a fresh directory under
``<out>/bloop-internal-classes``. The path of the directory used for the
current archive is remembered in a marker file next to the archive, so a new
compile is detected by path alone without hashing any content.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

from core.archive import ArchiveConsole

from .config_loader import ProjectDefinition

INTERNAL_CLASSES_DIR = "bloop-internal-classes"
CLASSES_DIR_PREFIX = "classes-bloop-cli"
MARKER_FILE = ".previous-classes-directory"
ARCHIVE_SUFFIX = "-jvm.jar"


class RebuildReason(Enum):
    NONE = "up to date"
    NEW_COMPILE = "new compiled output"
    RESOURCES_CHANGED = "resources changed"


@dataclass(slots=True)
class CacheDecision:
    archive: Path
    classes_dir: Path | None
    reason: RebuildReason

    @property
    def rebuild(self) -> bool:
        return self.reason is not RebuildReason.NONE


def archive_path(project: ProjectDefinition) -> Path:
    return project.out / f"{project.name}{ARCHIVE_SUFFIX}"


def marker_path(project: ProjectDefinition) -> Path:
    return project.out / MARKER_FILE


def find_compiled_output(project: ProjectDefinition, console: ArchiveConsole | None = None) -> Path | None:
    """Return the compiler's most recent classes directory for ``project``, if any."""

    internal = project.out / INTERNAL_CLASSES_DIR
    if not internal.is_dir():
        return None
    candidates = sorted(
        path for path in internal.iterdir() if path.is_dir() and path.name.startswith(CLASSES_DIR_PREFIX)
    )
    if not candidates:
        return None
    if len(candidates) > 1 and console is not None:
        names = ", ".join(path.name for path in candidates)
        console.debug(f"{project.name}: several compiled output directories found ({names}); using {candidates[0].name}")
    return candidates[0]


def latest_resource_change(resources: Iterable[Path]) -> int | None:
    """Newest modification time (ns) of any regular file below ``resources``."""

    latest: int | None = None
    for root in resources:
        if not root.exists():
            continue
        for path in root.rglob("*"):
            if not path.is_file():
                continue
            mtime = path.lstat().st_mtime_ns
            if latest is None or mtime > latest:
                latest = mtime
    return latest


class BuildCache:
    """Decide whether a project's archive needs rebuilding."""

    def __init__(self, console: ArchiveConsole) -> None:
        self._console = console

    def read_marker(self, project: ProjectDefinition) -> Path | None:
        marker = marker_path(project)
        if not marker.exists():
            return None
        text = marker.read_text(encoding="utf-8").strip()
        return Path(text) if text else None

    def write_marker(self, project: ProjectDefinition, classes_dir: Path) -> None:
        marker_path(project).write_text(str(classes_dir), encoding="utf-8")
        self._console.debug(f"{project.name}: recorded compiled output {classes_dir}")

    def check(self, project: ProjectDefinition) -> CacheDecision:
        archive = archive_path(project)
        classes_dir = find_compiled_output(project, self._console)
        if classes_dir is None:
            self._console.debug(f"{project.name}: no compiled output found, nothing to package")
            return CacheDecision(archive=archive, classes_dir=None, reason=RebuildReason.NONE)

        previous = self.read_marker(project)
        non_empty = any(classes_dir.iterdir())
        if previous != classes_dir and non_empty:
            return CacheDecision(archive=archive, classes_dir=classes_dir, reason=RebuildReason.NEW_COMPILE)

        if archive.exists():
            resource_change = latest_resource_change(project.resources)
            if resource_change is not None and resource_change > archive.stat().st_mtime_ns:
                return CacheDecision(archive=archive, classes_dir=classes_dir, reason=RebuildReason.RESOURCES_CHANGED)

        return CacheDecision(archive=archive, classes_dir=classes_dir, reason=RebuildReason.NONE)


__all__ = [
    "ARCHIVE_SUFFIX",
    "BuildCache",
    "CLASSES_DIR_PREFIX",
    "CacheDecision",
    "INTERNAL_CLASSES_DIR",
    "MARKER_FILE",
    "RebuildReason",
    "archive_path",
    "find_compiled_output",
    "latest_resource_change",
    "marker_path",
]
