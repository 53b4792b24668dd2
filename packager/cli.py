"""Command line interface for the packager."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List
import os
import sys

from .config_loader import ConfigurationStore, PackagerSettings
from .console import Console
from .engine import PackageEngine
from .errors import ProgramParseError
from .programs import DistCommand, JarsCommand, parse_programs

CONFIG_DIR_ENV = "BLOOP_PACKAGER_CONFIG_DIR"


def _resolve_config_directory(args: Namespace, workspace: Path) -> Path:
    raw = getattr(args, "config", None) or os.environ.get(CONFIG_DIR_ENV)
    if not raw:
        return workspace / ".bloop"
    path = Path(raw).expanduser()
    return path if path.is_absolute() else workspace / path


def _load_settings(args: Namespace, store: ConfigurationStore, workspace: Path) -> PackagerSettings:
    explicit = getattr(args, "settings", None)
    if explicit:
        path = Path(explicit).expanduser()
        return PackagerSettings.load(path if path.is_absolute() else workspace / path)
    return PackagerSettings.load(store.settings_file())


def _make_console(args: Namespace, settings: PackagerSettings) -> Console:
    if getattr(args, "verbose", False):
        return Console("debug")
    return Console(getattr(args, "log_level", None) or settings.log_level or "error")


def _split_names(values: Iterable[str]) -> List[str]:
    names: List[str] = []
    for value in values:
        if not value:
            continue
        for part in value.split(","):
            part = part.strip()
            if part and part not in names:
                names.append(part)
    return names


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="bloop-packager", description="Package Bloop build output into jars and distributions")
    parser.add_argument(
        "-c",
        "--config",
        metavar="DIR",
        help=f"Directory of Bloop configuration (default: ${CONFIG_DIR_ENV} or $PWD/.bloop)",
    )
    parser.add_argument("--settings", metavar="FILE", help="Packager settings file (default: <config>/packager.*)")
    parser.add_argument("--log-level", choices=sorted(Console.LEVELS), help="Diagnostic output level")
    parser.add_argument("-v", "--verbose", action="store_true", help="Shortcut for --log-level debug")
    subparsers = parser.add_subparsers(dest="command", required=True)

    jar_parser = subparsers.add_parser("jar", help="Package up a jar from compiled classes and resources")
    jar_parser.add_argument(
        "-p",
        "--project",
        dest="projects",
        action="append",
        default=[],
        metavar="NAME",
        help="Project to package (repeat or comma-separate); default all",
    )

    dist_parser = subparsers.add_parser(
        "dist",
        help="Package a project and all of its runtime dependencies into a distribution directory",
    )
    dist_parser.add_argument("-p", "--project", required=True, metavar="NAME", help="Project to distribute")
    dist_parser.add_argument(
        "--program",
        dest="programs",
        action="append",
        default=[],
        metavar="NAME:MAIN_CLASS",
        help="Launcher script to generate (repeatable)",
    )
    dist_parser.add_argument("--path", metavar="DIR", help="Root directory for distributions (default: <project out>/dist)")
    dist_parser.add_argument("--bundle", metavar="FORMAT", help="Also pack the distribution (tar.zst, tar.gz, tar.xz, tar, zip)")

    subparsers.add_parser("list", help="List packageable projects")

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    workspace = Path.cwd()

    config_dir = _resolve_config_directory(args, workspace)
    if not config_dir.is_dir():
        print(f"{config_dir} does not exist", file=sys.stderr)
        return 1

    try:
        store = ConfigurationStore.from_directory(config_dir)
        settings = _load_settings(args, store, workspace)
        console = _make_console(args, settings)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    for skipped in store.skipped:
        console.debug(f"Skipping {skipped.name}: not a project file")

    if args.command == "jar":
        return _handle_jar(args, store, console)
    if args.command == "dist":
        return _handle_dist(args, store, settings, console, workspace)
    if args.command == "list":
        return _handle_list(store)
    raise ValueError(f"Unknown command: {args.command}")


def _handle_jar(args: Namespace, store: ConfigurationStore, console: Console) -> int:
    command = JarsCommand(projects=_split_names(getattr(args, "projects", [])))
    engine = PackageEngine(store=store, console=console)
    try:
        report = engine.run(command)
    except (KeyError, ValueError) as exc:
        message = exc.args[0] if isinstance(exc, KeyError) and exc.args else str(exc)
        print(f"Error: {message}", file=sys.stderr)
        return 2

    for path in report.paths:
        print(path)
    return 0


def _handle_dist(
    args: Namespace,
    store: ConfigurationStore,
    settings: PackagerSettings,
    console: Console,
    workspace: Path,
) -> int:
    raw_programs = list(getattr(args, "programs", []) or []) or list(settings.programs)
    try:
        programs = parse_programs(raw_programs)
    except ProgramParseError as exc:
        print("Error: invalid program definitions:", file=sys.stderr)
        for message in exc.errors:
            print(f"  {message}", file=sys.stderr)
        return 2

    path: Path | None = None
    if getattr(args, "path", None):
        path = Path(args.path).expanduser()
        if not path.is_absolute():
            path = workspace / path
    elif settings.dist_path is not None:
        path = settings.dist_path if settings.dist_path.is_absolute() else workspace / settings.dist_path

    command = DistCommand(
        project=args.project,
        programs=programs,
        path=path,
        bundle_format=getattr(args, "bundle", None) or settings.bundle_format,
    )
    engine = PackageEngine(store=store, console=console)
    try:
        report = engine.run(command)
    except (KeyError, ValueError) as exc:
        message = exc.args[0] if isinstance(exc, KeyError) and exc.args else str(exc)
        print(f"Error: {message}", file=sys.stderr)
        return 2

    for artifact in report.paths:
        print(artifact)
    return 0


def _handle_list(store: ConfigurationStore) -> int:
    rows: List[dict[str, str]] = []
    for name in store.list_projects():
        project = store.projects[name]
        if project.is_jvm and not project.is_test:
            status = "package"
        elif project.is_test:
            status = "skip (test)"
        else:
            status = f"skip ({project.platform_name or 'no platform'})"
        rows.append(
            {
                "Project": project.name,
                "Main Class": project.main_class or "-",
                "Status": status,
                "Output": str(project.out),
            }
        )

    if not rows:
        print("No projects found")
        return 0

    headers = ["Project", "Main Class", "Status", "Output"]
    widths = {header: len(header) for header in headers}
    for row in rows:
        for header in headers:
            widths[header] = max(widths[header], len(row[header]))

    def _format(row: dict[str, str]) -> str:
        return "  ".join(row.get(header, "").ljust(widths[header]) for header in headers).rstrip()

    print(_format({header: header for header in headers}))
    print("  ".join("-" * widths[header] for header in headers))
    for row in rows:
        print(_format(row))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
