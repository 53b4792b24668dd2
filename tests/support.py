"""Helpers for laying out fake Bloop workspaces in temporary directories."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping
import json
import shutil

from packager.cache import CLASSES_DIR_PREFIX, INTERNAL_CLASSES_DIR
from packager.config_loader import ProjectDefinition


def project_mapping(
    root: Path,
    name: str,
    *,
    classpath: Iterable[Path] = (),
    resources: Iterable[Path] = (),
    main_class: str | None = None,
    platform: str = "jvm",
    tags: Iterable[str] | None = ("library",),
) -> dict:
    out = root / ".bloop" / name
    platform_section: dict = {"name": platform}
    if main_class:
        platform_section["mainClass"] = main_class
    section: dict = {
        "name": name,
        "directory": str(root / name),
        "out": str(out),
        "classesDir": str(out / "classes"),
        "classpath": [str(path) for path in classpath],
        "resources": [str(path) for path in resources],
        "platform": platform_section,
    }
    if tags is not None:
        section["tags"] = list(tags)
    return {"version": "1.4.0", "project": section}


def make_project(root: Path, name: str, **kwargs) -> ProjectDefinition:
    project = ProjectDefinition.from_mapping(project_mapping(root, name, **kwargs))
    project.out.mkdir(parents=True, exist_ok=True)
    project.classes_dir.mkdir(parents=True, exist_ok=True)
    return project


def write_project_file(config_dir: Path, mapping: Mapping) -> Path:
    config_dir.mkdir(parents=True, exist_ok=True)
    path = config_dir / f"{mapping['project']['name']}.json"
    path.write_text(json.dumps(mapping, indent=2), encoding="utf-8")
    return path


def compile_classes(
    project: ProjectDefinition,
    files: Mapping[str, bytes],
    *,
    run: str = "1",
) -> Path:
    """Pretend the compiler wrote ``files`` into a fresh per-invocation directory."""

    internal = project.out / INTERNAL_CLASSES_DIR
    if internal.exists():
        for previous in list(internal.iterdir()):
            if previous.name.startswith(CLASSES_DIR_PREFIX):
                shutil.rmtree(previous)
    classes = internal / f"{CLASSES_DIR_PREFIX}-{run}"
    classes.mkdir(parents=True)
    for name, data in files.items():
        target = classes / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    return classes

