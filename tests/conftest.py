"""Pytest configuration for the keyspace audit."""

from __future__ import annotations

import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    """Make the package importable without an editable install."""
    src_root = Path(__file__).resolve().parent.parent / "src"
    if src_root.exists():
        path_str = str(src_root)
        if path_str not in sys.path:
            sys.path.insert(0, path_str)


_ensure_src_on_path()
