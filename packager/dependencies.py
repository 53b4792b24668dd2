"""Transitive runtime-dependency resolution across the Bloop project graph."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Mapping

from .config_loader import ProjectDefinition
from .errors import DependencyCycleError
from .jar import JarBuilder


def distinct(paths: Iterable[Path]) -> List[Path]:
    """Drop repeated paths, keeping the first occurrence of each."""

    seen: set[Path] = set()
    result: List[Path] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        result.append(path)
    return result


class DependencyResolver:
    """Compute the archives a project needs at runtime.

    A classpath directory is another project's output exactly when it appears
    in ``lookup``; unknown directories are dropped and every non-directory
    entry is taken to be an already built archive.
    """

    def __init__(self, builder: JarBuilder, lookup: Mapping[Path, ProjectDefinition]) -> None:
        self._builder = builder
        self._lookup = dict(lookup)

    def resolve(self, project: ProjectDefinition) -> List[Path]:
        return distinct(self._collect(project, []))

    def _collect(self, project: ProjectDefinition, visiting: List[str]) -> List[Path]:
        if project.name in visiting:
            start = visiting.index(project.name)
            raise DependencyCycleError([*visiting[start:], project.name])

        directories: List[Path] = []
        files: List[Path] = []
        for entry in project.classpath:
            (directories if entry.is_dir() else files).append(entry)

        result: List[Path] = []
        archive = self._builder.ensure_archive(project)
        if archive is not None:
            result.append(archive)
        result.extend(files)

        chain = [*visiting, project.name]
        for directory in directories:
            dependency = self._lookup.get(directory)
            if dependency is None:
                continue
            result.extend(self._collect(dependency, chain))
        return result


__all__ = ["DependencyResolver", "distinct"]
