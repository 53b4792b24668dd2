"""Program descriptors and the packaging commands understood by the engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List
import re

from .errors import ProgramParseError

PROGRAM_PATTERN = re.compile(r"^([\w-]+):([\w.-]+)$")


@dataclass(frozen=True, slots=True)
class Program:
    """A launcher name paired with the fully-qualified class it runs."""

    name: str
    main_class: str

    @classmethod
    def parse(cls, value: str) -> "Program":
        match = PROGRAM_PATTERN.match(value.strip())
        if match is None:
            raise ProgramParseError([_describe_invalid(value)])
        return cls(name=match.group(1), main_class=match.group(2))

    def __str__(self) -> str:
        return f"{self.name}:{self.main_class}"


def _describe_invalid(value: str) -> str:
    return f"'{value}' was not a valid program definition, expected to match {PROGRAM_PATTERN.pattern}"


def parse_programs(values: Iterable[str]) -> List[Program]:
    """Parse every descriptor in ``values``, reporting all invalid ones together."""

    programs: List[Program] = []
    errors: List[str] = []
    for raw in values:
        if raw is None:
            continue
        for value in raw.split(",") if "," in raw else [raw]:
            if not value.strip():
                continue
            try:
                programs.append(Program.parse(value))
            except ProgramParseError as exc:
                errors.extend(exc.errors)
    if errors:
        raise ProgramParseError(errors)
    return programs


@dataclass(slots=True)
class JarsCommand:
    """Build archives for the named projects, or for every project when empty."""

    projects: List[str] = field(default_factory=list)


@dataclass(slots=True)
class DistCommand:
    """Build a distribution for exactly one project."""

    project: str
    programs: List[Program] = field(default_factory=list)
    path: Path | None = None
    bundle_format: str | None = None


PackageCommand = JarsCommand | DistCommand


__all__ = [
    "DistCommand",
    "JarsCommand",
    "PROGRAM_PATTERN",
    "PackageCommand",
    "Program",
    "parse_programs",
]
