"""Assembly of distribution directories (``lib/`` + ``bin/``)."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence
import shutil

from core.archive import ArchiveConsole

from .config_loader import ProjectDefinition
from .programs import Program
from .scripts import LauncherScriptWriter


def distribution_root(project: ProjectDefinition, output_root: Path | None) -> Path:
    if output_root is not None:
        return output_root / project.name
    return project.out / "dist"


def _recreate(directory: Path) -> None:
    if directory.exists():
        shutil.rmtree(directory)
    directory.mkdir(parents=True)


class DistributionAssembler:
    """Lay out ``lib/`` and ``bin/`` for one project from its resolved archives."""

    def __init__(self, console: ArchiveConsole, script_writer: LauncherScriptWriter | None = None) -> None:
        self._console = console
        self._script_writer = script_writer or LauncherScriptWriter()

    def assemble(
        self,
        project: ProjectDefinition,
        programs: Sequence[Program],
        archives: Iterable[Path],
        output_root: Path | None = None,
    ) -> Path:
        dist_dir = distribution_root(project, output_root)
        dist_dir.mkdir(parents=True, exist_ok=True)

        lib = dist_dir / "lib"
        _recreate(lib)
        copied: dict[str, Path] = {}
        for source in archives:
            name = source.name
            if name in copied:
                self._console.info(f"{project.name}: skipping {source}, {name} already copied from {copied[name]}")
                continue
            shutil.copy2(source, lib / name)
            copied[name] = source
        self._console.debug(f"{project.name}: copied {len(copied)} archives into {lib}")

        bin_dir = dist_dir / "bin"
        if bin_dir.exists():
            shutil.rmtree(bin_dir)
        if programs:
            bin_dir.mkdir(parents=True)
            scripts = self._script_writer.write_scripts(bin_dir, "", list(programs))
            self._console.debug(f"{project.name}: wrote {len(scripts)} launcher scripts into {bin_dir}")

        self._console.info(f"{project.name}: dist complete at {dist_dir}")
        return dist_dir


__all__ = ["DistributionAssembler", "distribution_root"]
