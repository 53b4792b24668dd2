"""Incremental construction of per-project JAR archives."""
from __future__ import annotations

from pathlib import Path

from core.archive import ArchiveConsole, JarWriter, Manifest

from .cache import BuildCache, RebuildReason
from .config_loader import ProjectDefinition


def build_manifest(project: ProjectDefinition) -> Manifest:
    manifest = Manifest()
    manifest.put("Implementation-Title", project.name)
    if project.main_class:
        manifest.put("Main-Class", project.main_class)
    return manifest


class JarBuilder:
    """Build a project's archive from its compiled classes and resources.

    :meth:`ensure_archive` only writes when the :class:`BuildCache` reports the
    archive as stale, so calling it repeatedly within a run is cheap.
    """

    def __init__(self, console: ArchiveConsole, cache: BuildCache | None = None) -> None:
        self._console = console
        self._cache = cache or BuildCache(console)

    def ensure_archive(self, project: ProjectDefinition) -> Path | None:
        decision = self._cache.check(project)
        if decision.rebuild and decision.classes_dir is not None:
            if decision.reason is RebuildReason.NEW_COMPILE:
                self._cache.write_marker(project, decision.classes_dir)
            self._console.debug(f"{project.name}: rebuilding archive ({decision.reason.value})")
            self.build(project, decision.archive, decision.classes_dir)
        return decision.archive if decision.archive.exists() else None

    def build(self, project: ProjectDefinition, target: Path, classes_dir: Path) -> Path:
        if target.exists():
            target.unlink()
            self._console.debug(f"Deleted existing {target}")

        entries = 0
        with JarWriter(target, build_manifest(project)) as writer:
            entries += writer.add_tree(classes_dir)
            for resource_dir in project.resources:
                if resource_dir.exists():
                    entries += writer.add_tree(resource_dir)

        self._console.info(f"Built {target} ({entries} entries)")
        return target


__all__ = ["JarBuilder", "build_manifest"]
