"""Packaging of Bloop build output into jars and distributions."""
from __future__ import annotations

from .cli import main

__all__ = ["main"]
