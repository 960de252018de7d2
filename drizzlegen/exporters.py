# File: drizzlegen/exporters.py
"""
drizzlegen - Schema Exporter (File-System Manager)
====================================================

Responsible for:
    1. Resolving the target path from the configuration.
    2. Creating parent directories as needed.
    3. Writing the schema atomically (write-to-temp then rename).
    4. Reporting size, line count and checksum of what was written.

Path resolution::

    output set?            → use it
    output_env_var set?    → read that environment variable
    otherwise              → default_output ("./drizzle")

    ends with ".ts"        → file path, used as-is
    anything else          → directory, file_name ("schema.ts") appended

The exporter is only ever handed a complete text; a failed generation never
reaches it, so no partial schema is written.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from drizzlegen.models import GeneratorConfig
from drizzlegen.utils import Timer, count_lines, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("drizzlegen.exporters")

_TS_SUFFIX: str = ".ts"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of the exported schema file."""

    path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=True, slots=True)
class ExportResult:
    """
    Final result returned by ``SchemaExporter.export()``.

    ``record`` is None when the write failed; ``errors`` then says why.
    """

    success: bool
    target_path: str
    record: Optional[FileRecord]
    errors: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------


def resolve_output_path(config: GeneratorConfig) -> Path:
    """Return the schema file path *config* points at."""
    raw: Optional[str] = config.output
    if not raw and config.output_env_var:
        raw = os.environ.get(config.output_env_var)
        if raw:
            logger.debug("Output taken from $%s: %s", config.output_env_var, raw)
    if not raw:
        raw = config.default_output

    if raw.endswith(_TS_SUFFIX):
        return Path(raw)
    return Path(raw) / config.file_name


# ---------------------------------------------------------------------------
# SchemaExporter
# ---------------------------------------------------------------------------


class SchemaExporter:
    """
    Writes a rendered schema to the filesystem.

    Usage::

        exporter = SchemaExporter(config)
        result = exporter.export(schema_text)
        print(result.record.sha256)
    """

    def __init__(self, config: GeneratorConfig, *, atomic_writes: bool = True) -> None:
        self._config: GeneratorConfig = config
        self._atomic_writes: bool = atomic_writes
        self._target: Path = resolve_output_path(config)

    @property
    def target_path(self) -> Path:
        return self._target

    def export(self, schema_text: str) -> ExportResult:
        """
        Write *schema_text* (plus a trailing newline) to the target path.

        OS-level failures are recorded on the result, not raised.
        """
        content: str = schema_text if schema_text.endswith("\n") else schema_text + "\n"
        errors: List[str] = []
        record: Optional[FileRecord] = None

        with Timer("export") as timer:
            try:
                size: int = write_file(self._target, content, atomic=self._atomic_writes)
                record = FileRecord(
                    path=str(self._target),
                    size_bytes=size,
                    line_count=count_lines(content),
                    sha256=sha256_hex(content),
                )
            except OSError as exc:
                error_msg: str = f"Failed to write {self._target}: {type(exc).__name__}: {exc}"
                errors.append(error_msg)
                logger.error(error_msg)

        if record is not None:
            logger.info(
                "Wrote schema to %s (%d bytes, %d lines) in %.3fs.",
                record.path,
                record.size_bytes,
                record.line_count,
                timer.elapsed,
            )

        return ExportResult(
            success=not errors,
            target_path=str(self._target),
            record=record,
            errors=tuple(errors),
            elapsed_seconds=timer.elapsed,
        )


__all__: List[str] = [
    "ExportResult",
    "FileRecord",
    "SchemaExporter",
    "resolve_output_path",
]

logger.debug("drizzlegen.exporters loaded.")
