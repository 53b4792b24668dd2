"""Decoding of Bloop project files and packager settings."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

import json

from core.config_loader import (
    collect_config_files,
    find_config_file,
    load_config_file,
    normalize_path_list,
    normalize_string_list,
)

from .errors import ConfigurationError

SETTINGS_STEM = "packager"


@dataclass(slots=True)
class JvmPlatform:
    main_class: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "JvmPlatform":
        raw = data.get("mainClass")
        # Older Bloop versions encode the optional main class as a list.
        if isinstance(raw, list):
            raw = raw[0] if raw else None
        main_class = str(raw).strip() if raw else None
        return cls(main_class=main_class or None)


@dataclass(slots=True)
class ProjectDefinition:
    name: str
    out: Path
    classes_dir: Path
    classpath: List[Path] = field(default_factory=list)
    resources: List[Path] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    platform: JvmPlatform | None = None
    platform_name: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProjectDefinition":
        project_section = data.get("project")
        if not isinstance(project_section, Mapping):
            raise ConfigurationError("'project' section is required in Bloop configuration")

        name = project_section.get("name")
        out = project_section.get("out")
        classes_dir = project_section.get("classesDir")
        if not name or not out or not classes_dir:
            raise ConfigurationError("project.name, project.out and project.classesDir are required")

        platform_section = project_section.get("platform")
        platform: JvmPlatform | None = None
        platform_name: str | None = None
        if isinstance(platform_section, Mapping):
            platform_name = str(platform_section.get("name", "")).lower() or None
            if platform_name == "jvm":
                platform = JvmPlatform.from_mapping(platform_section)

        try:
            classpath = normalize_path_list(project_section.get("classpath"), field_name="project.classpath")
            resources = normalize_path_list(project_section.get("resources"), field_name="project.resources")
            tags = normalize_string_list(project_section.get("tags"), field_name="project.tags")
        except TypeError as exc:
            raise ConfigurationError(f"project '{name}': {exc}") from exc

        return cls(
            name=str(name),
            out=Path(str(out)),
            classes_dir=Path(str(classes_dir)),
            classpath=classpath,
            resources=resources,
            tags=[tag.lower() for tag in tags],
            platform=platform,
            platform_name=platform_name,
        )

    @property
    def is_jvm(self) -> bool:
        return self.platform is not None

    @property
    def is_test(self) -> bool:
        return "test" in self.tags

    @property
    def main_class(self) -> str | None:
        return self.platform.main_class if self.platform else None


@dataclass(slots=True)
class PackagerSettings:
    log_level: str | None = None
    dist_path: Path | None = None
    bundle_format: str | None = None
    programs: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PackagerSettings":
        section = data.get("packager", {}) if isinstance(data, Mapping) else {}
        if not isinstance(section, Mapping):
            raise ConfigurationError("[packager] must be a table")
        dist_path = section.get("dist_path")
        bundle_format = section.get("bundle_format")
        log_level = section.get("log_level")
        try:
            programs = normalize_string_list(section.get("programs"), field_name="packager.programs")
        except TypeError as exc:
            raise ConfigurationError(str(exc)) from exc
        return cls(
            log_level=str(log_level) if log_level else None,
            dist_path=Path(str(dist_path)).expanduser() if dist_path else None,
            bundle_format=str(bundle_format) if bundle_format else None,
            programs=programs,
        )

    @classmethod
    def load(cls, path: Path | None) -> "PackagerSettings":
        if path is None:
            return cls()
        if not path.exists():
            raise ConfigurationError(f"Settings file '{path}' does not exist")
        try:
            return cls.from_mapping(load_config_file(path))
        except (ValueError, TypeError) as exc:
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(f"Could not read settings file '{path}': {exc}") from exc


@dataclass(slots=True)
class ConfigurationStore:
    config_dir: Path
    projects: Dict[str, ProjectDefinition]
    skipped: List[Path] = field(default_factory=list)

    @classmethod
    def from_directory(cls, config_dir: Path) -> "ConfigurationStore":
        if not config_dir.is_dir():
            raise FileNotFoundError(f"{config_dir} does not exist")

        projects: Dict[str, ProjectDefinition] = {}
        skipped: List[Path] = []
        for _, path in sorted(collect_config_files(config_dir, suffixes=[".json"]).items()):
            try:
                data = load_config_file(path)
            except (json.JSONDecodeError, TypeError) as exc:
                raise ConfigurationError(f"Could not decode '{path}': {exc}") from exc
            if "project" not in data:
                skipped.append(path)
                continue
            project = ProjectDefinition.from_mapping(data)
            if project.name in projects:
                raise ConfigurationError(f"Project '{project.name}' is defined more than once (second in '{path.name}')")
            projects[project.name] = project

        return cls(config_dir=config_dir, projects=projects, skipped=skipped)

    def settings_file(self) -> Path | None:
        return find_config_file(self.config_dir, SETTINGS_STEM)

    def list_projects(self) -> Iterable[str]:
        return sorted(self.projects)

    def packageable_projects(self) -> List[ProjectDefinition]:
        return [
            self.projects[name]
            for name in sorted(self.projects)
            if self.projects[name].is_jvm and not self.projects[name].is_test
        ]

    def get_project(self, name: str) -> ProjectDefinition:
        if name not in self.projects:
            available = ", ".join(sorted(self.projects)) or "<none>"
            raise KeyError(f"Project '{name}' not found. Available projects: {available}")
        return self.projects[name]

    def dependency_lookup(self) -> Dict[Path, ProjectDefinition]:
        """Map every JVM project's classes directory to the project that owns it."""

        return {project.classes_dir: project for project in self.projects.values() if project.is_jvm}


__all__ = [
    "ConfigurationStore",
    "JvmPlatform",
    "PackagerSettings",
    "ProjectDefinition",
]
