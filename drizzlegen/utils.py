# File: drizzlegen/utils.py
"""
drizzlegen - Utility Functions & Helpers
=========================================
Import bookkeeping, TypeScript text helpers, file I/O and timing utilities
used throughout the generation pipeline.

- ``ImportTracker`` replaces process-wide import sets: one tracker is created
  per generation run and threaded through every mapping call.
- File helpers write atomically (temp file + rename).
- No external dependencies beyond the Python standard library.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("drizzlegen.utils")

INDENT: str = "\t"


# ---------------------------------------------------------------------------
# Import bookkeeping
# ---------------------------------------------------------------------------


def _import_sort_key(name: str) -> tuple:
    return (name.lower(), name)


class ImportTracker:
    """
    Records which helper names each import source provides.

    Usage::

        tracker = ImportTracker()
        tracker.add("drizzle-orm/pg-core", "pgTable")
        tracker.add("drizzle-orm", "sql")
        tracker.names("drizzle-orm/pg-core")   # ['pgTable']
    """

    __slots__ = ("_imports",)

    def __init__(self) -> None:
        self._imports: Dict[str, Set[str]] = {}

    def add(self, module: str, *names: str) -> None:
        self._imports.setdefault(module, set()).update(names)

    def names(self, module: str) -> List[str]:
        """Names imported from *module*, sorted case-insensitively."""
        return sorted(self._imports.get(module, set()), key=_import_sort_key)

    def __len__(self) -> int:
        return sum(len(names) for names in self._imports.values())

    def __repr__(self) -> str:
        return f"<ImportTracker {len(self)} name(s) from {len(self._imports)} module(s)>"


def build_import_block(tracker: ImportTracker, modules: Sequence[str]) -> Optional[str]:
    """
    Build the TypeScript import lines for *modules*, in the given order.

    Modules without names are skipped; returns None when nothing is imported.

    Example:
        >>> t = ImportTracker(); t.add("drizzle-orm", "sql", "relations")
        >>> build_import_block(t, ["drizzle-orm"])
        "import { relations, sql } from 'drizzle-orm'"
    """
    lines: List[str] = []
    for module in modules:
        names: List[str] = tracker.names(module)
        if names:
            lines.append(f"import {{ {', '.join(names)} }} from '{module}'")
    return "\n".join(lines) if lines else None


# ---------------------------------------------------------------------------
# TypeScript text helpers
# ---------------------------------------------------------------------------


def ts_literal(value: Any) -> str:
    """Serialise a literal the way ``JSON.stringify`` would."""
    return json.dumps(value, ensure_ascii=False)


def ts_arg(value: Any) -> str:
    """Render a default-function argument the way JS ``String()`` would."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def member_list(owner: str, members: Iterable[str]) -> str:
    """``Post, [a, b]`` → ``[Post.a, Post.b]``."""
    return "[" + ", ".join(f"{owner}.{m}" for m in members) + "]"


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*, creating parent directories.

    When *atomic* is True, writes to a temporary file first then renames,
    this prevents partial writes on crash.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling generation steps.

    Usage:
        with Timer("render schema") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


__all__: List[str] = [
    "INDENT",
    "ImportTracker",
    "build_import_block",
    "ts_literal",
    "ts_arg",
    "member_list",
    "ensure_directory",
    "write_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("drizzlegen.utils loaded: %d public symbols.", len(__all__))
