"""Error types raised by the packaging engine."""
from __future__ import annotations

from typing import Iterable, List

from core.archive import DuplicateEntryError


class ConfigurationError(ValueError):
    """Raised when the Bloop configuration directory cannot be decoded."""


class ProgramParseError(ValueError):
    """Raised once for every invalid program descriptor found in a batch."""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors))


class DependencyCycleError(ValueError):
    """Raised when classpath directories form a cycle between projects."""

    def __init__(self, chain: Iterable[str]):
        self.chain: List[str] = list(chain)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.chain)}")


__all__ = [
    "ConfigurationError",
    "DependencyCycleError",
    "DuplicateEntryError",
    "ProgramParseError",
]
