"""Reproducible archive writers shared by the packaging commands."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Dict, Iterator, Protocol, runtime_checkable
import gzip
import lzma
import shutil
import struct
import tarfile
import tempfile
import zipfile

import zstandard as zstd

_FORMAT_ALIASES: dict[str, str] = {
    "zst": "zst",
    "tar.zst": "zst",
    "tzst": "zst",
    "gztar": "gztar",
    "gz": "gztar",
    "tar.gz": "gztar",
    "tgz": "gztar",
    "xztar": "xztar",
    "xz": "xztar",
    "tar.xz": "xztar",
    "txz": "xztar",
    "tar": "tar",
    "zip": "zip",
}

FORMAT_SUFFIXES: dict[str, str] = {
    "zst": ".tar.zst",
    "gztar": ".tar.gz",
    "xztar": ".tar.xz",
    "tar": ".tar",
    "zip": ".zip",
}

# The earliest instant a DOS timestamp can hold; the extended timestamp
# field below carries the real value, the Unix epoch.
EPOCH_DATE_TIME = (1980, 1, 1, 0, 0, 0)
_EXTENDED_TIMESTAMP = struct.pack("<HHBlll", 0x5455, 13, 0x07, 0, 0, 0)
_UNIX_SYSTEM = 3
_FILE_MODE = 0o100644
_EXECUTABLE_MODE = 0o100755
_DIR_MODE = 0o040755
_MANIFEST_LINE_LIMIT = 72

MANIFEST_NAME = "META-INF/MANIFEST.MF"


@runtime_checkable
class ArchiveConsole(Protocol):
    """Minimal console interface required by the archive writers."""

    def info(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def debug(self, message: str) -> None:
        ...


class DuplicateEntryError(RuntimeError):
    """Raised when two source trees contribute a file with the same entry name."""


@dataclass(slots=True)
class Manifest:
    """JAR manifest main attributes, rendered in insertion order."""

    attributes: Dict[str, str] = field(default_factory=lambda: {"Manifest-Version": "1.0"})

    def put(self, name: str, value: str) -> None:
        self.attributes[name] = value

    def render(self) -> bytes:
        lines: list[bytes] = []
        for name, value in self.attributes.items():
            lines.extend(_wrap_manifest_line(f"{name}: {value}".encode("utf-8")))
        return b"".join(line + b"\r\n" for line in lines) + b"\r\n"


def _wrap_manifest_line(line: bytes) -> list[bytes]:
    # Manifest lines are limited to 72 bytes; continuations start with a space.
    if len(line) <= _MANIFEST_LINE_LIMIT:
        return [line]
    wrapped = [line[:_MANIFEST_LINE_LIMIT]]
    rest = line[_MANIFEST_LINE_LIMIT:]
    width = _MANIFEST_LINE_LIMIT - 1
    while rest:
        wrapped.append(b" " + rest[:width])
        rest = rest[width:]
    return wrapped


def iter_tree(root: Path) -> Iterator[tuple[Path, str]]:
    """Yield ``(path, relative_name)`` for everything below ``root`` in sorted pre-order.

    The root itself is never yielded. Symlinked directories are reported but
    not descended into.
    """

    def walk(directory: Path, prefix: str) -> Iterator[tuple[Path, str]]:
        for child in sorted(directory.iterdir(), key=lambda item: item.name):
            name = f"{prefix}{child.name}"
            yield child, name
            if child.is_dir() and not child.is_symlink():
                yield from walk(child, f"{name}/")

    yield from walk(root, "")


class JarWriter:
    """Write a deterministic JAR file.

    All entries carry the same pinned timestamps and permissions so that two
    writes of identical trees are byte-identical. The target is opened with
    exclusive creation; an existing file raises :class:`FileExistsError`.
    """

    def __init__(self, target: Path, manifest: Manifest | None = None) -> None:
        self.target = target
        self._manifest = manifest
        self._zip: zipfile.ZipFile | None = None
        self._names: set[str] = set()

    def __enter__(self) -> "JarWriter":
        self._zip = zipfile.ZipFile(self.target, mode="x", compression=zipfile.ZIP_DEFLATED, allowZip64=True)
        if self._manifest is not None:
            self.add_bytes(MANIFEST_NAME, self._manifest.render())
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None

    def add_tree(self, root: Path) -> int:
        """Add every entry under ``root``; return the number of entries written."""

        written = 0
        for path, name in iter_tree(root):
            if path.is_dir():
                if self.add_directory(name):
                    written += 1
            else:
                self.add_file(name, path)
                written += 1
        return written

    def add_directory(self, name: str) -> bool:
        entry = name.rstrip("/") + "/"
        if entry in self._names:
            return False
        info = self._info(entry, _DIR_MODE)
        info.external_attr |= 0x10
        info.compress_type = zipfile.ZIP_STORED
        self._archive().writestr(info, b"")
        return True

    def add_file(self, name: str, source: Path, mode: int = _FILE_MODE) -> None:
        self._claim(name)
        info = self._info(name, mode)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.file_size = source.stat().st_size
        with source.open("rb") as src, self._archive().open(info, mode="w") as dst:
            shutil.copyfileobj(src, dst)

    def add_bytes(self, name: str, data: bytes) -> None:
        self._claim(name)
        info = self._info(name, _FILE_MODE)
        info.compress_type = zipfile.ZIP_DEFLATED
        self._archive().writestr(info, data)

    def _claim(self, name: str) -> None:
        if name in self._names:
            raise DuplicateEntryError(f"duplicate entry '{name}' in {self.target}")
        self._names.add(name)

    def _info(self, name: str, mode: int) -> zipfile.ZipInfo:
        self._names.add(name)
        info = zipfile.ZipInfo(name, date_time=EPOCH_DATE_TIME)
        info.create_system = _UNIX_SYSTEM
        info.external_attr = mode << 16
        info.extra = _EXTENDED_TIMESTAMP
        return info

    def _archive(self) -> zipfile.ZipFile:
        if self._zip is None:
            raise RuntimeError("JarWriter used outside of its context")
        return self._zip


def _reset_tar_info(info: tarfile.TarInfo) -> tarfile.TarInfo:
    info.mtime = 0
    info.uid = 0
    info.gid = 0
    info.uname = ""
    info.gname = ""
    if info.isdir():
        info.mode = 0o755
    elif info.mode & 0o111:
        info.mode = 0o755
    else:
        info.mode = 0o644
    return info


class ArchiveManager:
    """Create reproducible compressed archives from directories."""

    def __init__(self, console: ArchiveConsole) -> None:
        self._console = console

    @staticmethod
    def resolve_format(format_hint: str) -> str:
        normalized = format_hint.strip().lower().lstrip(".")
        if normalized in _FORMAT_ALIASES:
            return _FORMAT_ALIASES[normalized]
        supported = ", ".join(sorted(FORMAT_SUFFIXES[fmt].lstrip(".") for fmt in FORMAT_SUFFIXES))
        raise ValueError(f"Unsupported archive format '{format_hint}' (supported: {supported})")

    def create_archive(
        self,
        *,
        source_dir: Path,
        target_path: Path,
        format_hint: str,
        root_name: str | None = None,
    ) -> Path:
        """Pack ``source_dir`` into ``target_path``.

        Entries are stored below ``root_name`` (defaults to the source directory
        name). An existing target is replaced.
        """

        source = Path(source_dir)
        if not source.is_dir():
            raise FileNotFoundError(f"Archive source directory '{source}' does not exist")

        target = Path(target_path)
        archive_format = self.resolve_format(format_hint)
        prefix = root_name or source.name

        target.parent.mkdir(parents=True, exist_ok=True)
        if target.exists():
            self._console.debug(f"Replacing existing archive {target}")
            target.unlink()

        if archive_format == "zip":
            with JarWriter(target) as writer:
                writer.add_directory(prefix)
                for path, name in iter_tree(source):
                    if path.is_dir():
                        writer.add_directory(f"{prefix}/{name}")
                    else:
                        mode = _EXECUTABLE_MODE if path.stat().st_mode & 0o111 else _FILE_MODE
                        writer.add_file(f"{prefix}/{name}", path, mode)
        else:
            self._make_tar_archive(target, archive_format, source, prefix)

        self._console.info(f"Created {target}")
        return target

    def _make_tar_archive(self, target: Path, archive_format: str, source: Path, prefix: str) -> None:
        with tempfile.NamedTemporaryFile(dir=target.parent, suffix=".tar", delete=False) as handle:
            temp_tar = Path(handle.name)

        try:
            with tarfile.open(temp_tar, mode="w", format=tarfile.PAX_FORMAT) as tar:
                tar.add(source, arcname=prefix, recursive=False, filter=_reset_tar_info)
                for path, name in iter_tree(source):
                    tar.add(path, arcname=f"{prefix}/{name}", recursive=False, filter=_reset_tar_info)

            if archive_format == "tar":
                shutil.move(str(temp_tar), str(target))
                return
            with temp_tar.open("rb") as src, target.open("wb") as dst:
                self._compress(archive_format, src, dst)
        finally:
            temp_tar.unlink(missing_ok=True)

    @staticmethod
    def _compress(archive_format: str, src: IO[bytes], dst: IO[bytes]) -> None:
        if archive_format == "zst":
            compressor = zstd.ZstdCompressor(level=19, write_checksum=True, write_content_size=True)
            compressor.copy_stream(src, dst)
        elif archive_format == "gztar":
            with gzip.GzipFile(filename="", mode="wb", fileobj=dst, compresslevel=9, mtime=0) as out:
                shutil.copyfileobj(src, out)
        elif archive_format == "xztar":
            with lzma.LZMAFile(dst, mode="wb", format=lzma.FORMAT_XZ, check=lzma.CHECK_CRC64, preset=9) as out:
                shutil.copyfileobj(src, out)
        else:
            raise RuntimeError(f"Unsupported archive format '{archive_format}'")


__all__ = [
    "ArchiveConsole",
    "ArchiveManager",
    "DuplicateEntryError",
    "EPOCH_DATE_TIME",
    "FORMAT_SUFFIXES",
    "JarWriter",
    "MANIFEST_NAME",
    "Manifest",
    "iter_tree",
]
