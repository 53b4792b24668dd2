"""Orchestration of the ``jar`` and ``dist`` packaging commands."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List

from core.archive import ArchiveConsole, ArchiveManager, FORMAT_SUFFIXES

from .config_loader import ConfigurationStore, ProjectDefinition
from .dependencies import DependencyResolver
from .distribution import DistributionAssembler
from .jar import JarBuilder
from .programs import DistCommand, JarsCommand, PackageCommand
from .scripts import LauncherScriptWriter


class ArtifactKind(str, Enum):
    JAR = "jar"
    DIST = "dist"
    BUNDLE = "bundle"


@dataclass(slots=True)
class PackageResult:
    project: str
    kind: ArtifactKind
    path: Path


@dataclass(slots=True)
class PackageReport:
    results: List[PackageResult] = field(default_factory=list)

    def add(self, project: str, kind: ArtifactKind, path: Path) -> None:
        self.results.append(PackageResult(project=project, kind=kind, path=path))

    @property
    def paths(self) -> List[Path]:
        return [result.path for result in self.results]


class PackageEngine:
    """Run a :class:`PackageCommand` against a loaded configuration store.

    Projects are processed one at a time; the classes-directory lookup used
    for dependency resolution is built once from the whole store.
    """

    def __init__(
        self,
        *,
        store: ConfigurationStore,
        console: ArchiveConsole,
        script_writer: LauncherScriptWriter | None = None,
    ) -> None:
        self._store = store
        self._console = console
        self._builder = JarBuilder(console)
        self._lookup: Dict[Path, ProjectDefinition] = store.dependency_lookup()
        self._assembler = DistributionAssembler(console, script_writer)
        self._archives = ArchiveManager(console)

    def select(self, command: PackageCommand) -> List[ProjectDefinition]:
        if isinstance(command, DistCommand):
            return [self._require_packageable(command.project)]
        if command.projects:
            return [self._require_packageable(name) for name in command.projects]
        return self._store.packageable_projects()

    def _require_packageable(self, name: str) -> ProjectDefinition:
        project = self._store.get_project(name)
        if not project.is_jvm:
            platform = project.platform_name or "unknown"
            raise ValueError(f"Project '{name}' targets the {platform} platform; only JVM projects can be packaged")
        return project

    def run(self, command: PackageCommand) -> PackageReport:
        if isinstance(command, DistCommand) and command.bundle_format:
            # Fail on a bad format before touching the filesystem.
            ArchiveManager.resolve_format(format_hint=command.bundle_format)

        report = PackageReport()
        for project in self.select(command):
            if isinstance(command, JarsCommand):
                archive = self._builder.ensure_archive(project)
                if archive is not None:
                    report.add(project.name, ArtifactKind.JAR, archive)
                else:
                    self._console.info(f"{project.name}: no archive, project has not been compiled yet")
            else:
                self._run_dist(project, command, report)
        return report

    def _run_dist(self, project: ProjectDefinition, command: DistCommand, report: PackageReport) -> None:
        resolver = DependencyResolver(self._builder, self._lookup)
        archives = resolver.resolve(project)
        self._console.debug(f"{project.name}: {len(archives)} runtime archives")
        dist_dir = self._assembler.assemble(project, command.programs, archives, command.path)
        report.add(project.name, ArtifactKind.DIST, dist_dir)

        if command.bundle_format:
            archive_format = ArchiveManager.resolve_format(format_hint=command.bundle_format)
            target = dist_dir.parent / f"{project.name}{FORMAT_SUFFIXES[archive_format]}"
            bundle = self._archives.create_archive(
                source_dir=dist_dir,
                target_path=target,
                format_hint=archive_format,
                root_name=project.name,
            )
            report.add(project.name, ArtifactKind.BUNDLE, bundle)


__all__ = ["ArtifactKind", "PackageEngine", "PackageReport", "PackageResult"]
