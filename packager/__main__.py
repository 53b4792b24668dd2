"""Entry point for ``python -m packager``."""
from __future__ import annotations

import sys

from .cli import main

if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    raise SystemExit(main(sys.argv[1:]))
