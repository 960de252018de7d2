# File: drizzlegen/generator.py
"""
drizzlegen - Generation Pipeline (Orchestrator)
=================================================

Connects every phase together::

    Options Input → Dialect Resolution → Schema Rendering → File Export

``DrizzleGenerator`` provides both a programmatic API and the backend for the
CLI.

Workflow::

    1. Load the generator options from a JSON/YAML file (or accept an
       in-memory ``GeneratorOptions``).
    2. Resolve the dialect from the configured provider or the first
       datasource.
    3. Render the whole schema text with a fresh dialect template.
    4. Hand the text to ``SchemaExporter`` (skipped on dry runs).
    5. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - Input problems surface as ``FileNotFoundError`` / ``ValueError``.
    - ``GeneratorError`` from rendering propagates unchanged; nothing has been
      written at that point.
    - Export failures are recorded on the report.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from drizzlegen.dialects import get_schema_template
from drizzlegen.exporters import ExportResult, SchemaExporter, resolve_output_path
from drizzlegen.models import GeneratorConfig, GeneratorOptions
from drizzlegen.templates import RenderedSchema, SchemaTemplate
from drizzlegen.utils import Timer, count_lines, sha256_hex

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("drizzlegen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``DrizzleGenerator.generate()``.

    ``schema_text`` always holds the rendered text, written or not.
    """

    success: bool = False
    dialect: str = ""
    output_path: str = ""
    written: bool = False

    # Metrics
    total_tables: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    sha256: str = ""
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    join_models: List[str] = field(default_factory=list)
    dropped_columns: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)

    schema_text: str = ""

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "SUCCESS" if self.success else "FAILED"
        lines.append(f"{'='*60}")
        lines.append("  drizzlegen: Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Dialect:          {self.dialect}")
        lines.append(f"  Output:           {self.output_path}{'' if self.written else ' (not written)'}")
        lines.append(f"  Tables:           {self.total_tables}")
        lines.append(f"  Join models:      {len(self.join_models)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.dropped_columns:
            lines.append(f"{'─'*60}")
            lines.append(f"  Dropped Columns ({len(self.dropped_columns)}):")
            for col in self.dropped_columns:
                lines.append(f"    ⚠ {col}")

        if self.export_errors:
            lines.append(f"{'─'*60}")
            lines.append(f"  Export Errors ({len(self.export_errors)}):")
            for err in self.export_errors:
                lines.append(f"    ✗ {err}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Options loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_options_file(path: Path) -> Dict[str, Any]:
    """
    Load a generator options file (JSON or YAML), dispatching on extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Options file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Options path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s', trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def parse_options(raw: Dict[str, Any], *, schema_text: Optional[str] = None) -> GeneratorOptions:
    """
    Parse a raw dictionary into ``GeneratorOptions``.

    Accepted shapes:
        - a full options document (``dmmf``, ``datasources``, ``datamodel``,
          ``generator``);
        - a bare DMMF document (``datamodel`` mapping), optionally with a
          sibling ``datasources`` list.

    Args:
        raw: Parsed JSON/YAML.
        schema_text: Schema source text; replaces any ``datamodel`` string.

    Raises:
        ValueError: If the document has neither shape or fails validation.
    """
    data: Dict[str, Any]
    if "dmmf" in raw:
        data = dict(raw)
    elif isinstance(raw.get("datamodel"), dict):
        data = {
            "dmmf": {"datamodel": raw["datamodel"]},
            "datasources": raw.get("datasources", []),
        }
    else:
        raise ValueError(
            "Cannot find a DMMF document in input. "
            "Expected top-level key 'dmmf', or a 'datamodel' mapping."
        )

    if schema_text is not None:
        data["datamodel"] = schema_text

    try:
        return GeneratorOptions.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Options validation failed: {exc}") from exc


# ---------------------------------------------------------------------------
# DrizzleGenerator: orchestrator
# ---------------------------------------------------------------------------


class DrizzleGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = DrizzleGenerator()

        # From files
        report = generator.generate_from_file(
            Path("options.json"),
            schema_path=Path("schema.prisma"),
        )

        # From an in-memory document
        text = generator.render(options)

        print(report.summary())

    The generator holds no run state; create once, call many times.
    """

    def render(
        self,
        options: GeneratorOptions,
        config: Optional[GeneratorConfig] = None,
    ) -> str:
        """Return the schema text for *options* without writing anything."""
        return self._render(options, config or GeneratorConfig.from_options(options)).text

    def generate(
        self,
        options: GeneratorOptions,
        config: Optional[GeneratorConfig] = None,
        output: Optional[str] = None,
    ) -> GenerationReport:
        """
        Render the schema and write it to the configured output.

        Args:
            options: Parsed generator options.
            config: Run settings; derived from *options* when omitted.
            output: Overrides the configured output path.

        Raises:
            GeneratorError: If rendering fails.  No file is written then.
        """
        if config is None:
            config = GeneratorConfig.from_options(options, output=output)
        elif output is not None:
            config = config.model_copy(update={"output": output})

        report: GenerationReport = GenerationReport()
        pipeline_start: float = time.perf_counter()

        with Timer("render") as t_render:
            rendered: RenderedSchema = self._render(options, config)

        report.dialect = rendered.dialect.value
        report.total_tables = rendered.table_count
        report.join_models = list(rendered.join_models)
        report.dropped_columns = list(rendered.dropped_columns)
        report.schema_text = rendered.text
        report.total_lines = count_lines(rendered.text)
        report.total_bytes = len(rendered.text.encode("utf-8"))
        report.sha256 = sha256_hex(rendered.text)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Render Schema",
            success=True,
            elapsed_seconds=t_render.elapsed,
            detail=f"{rendered.table_count} tables, {len(rendered.dropped_columns)} dropped column(s)",
        ))

        report.output_path = str(resolve_output_path(config))
        if config.dry_run:
            logger.info("Dry run: schema not written to %s.", report.output_path)
        else:
            self._step_export(rendered.text, config, report)

        return self._finalise_report(report, time.perf_counter() - pipeline_start)

    def generate_from_file(
        self,
        options_path: Path,
        *,
        schema_path: Optional[Path] = None,
        config_overrides: Optional[Dict[str, Any]] = None,
    ) -> GenerationReport:
        """
        Full pipeline: load file(s) → render → export.

        Raises:
            FileNotFoundError: If an input file doesn't exist.
            ValueError: If an input file can't be parsed.
            GeneratorError: If rendering fails.
        """
        raw: Dict[str, Any] = load_options_file(options_path)
        schema_text: Optional[str] = None
        if schema_path is not None:
            if not schema_path.is_file():
                raise FileNotFoundError(f"Schema file not found: {schema_path}")
            schema_text = schema_path.read_text(encoding="utf-8")

        options: GeneratorOptions = parse_options(raw, schema_text=schema_text)
        logger.info(
            "Loaded options from %s: %d model(s), %d enum(s).",
            options_path,
            len(options.models),
            len(options.enums),
        )

        try:
            config = GeneratorConfig.from_options(options, **(config_overrides or {}))
        except ValidationError as exc:
            raise ValueError(f"Config validation failed: {exc}") from exc
        return self.generate(options, config)

    # -----------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------

    @staticmethod
    def _render(options: GeneratorOptions, config: GeneratorConfig) -> RenderedSchema:
        template: SchemaTemplate = get_schema_template(
            config.provider or options.provider,
            strict_types=config.strict_types,
        )
        return template.generate(options.models, options.enums, options.datamodel)

    @staticmethod
    def _step_export(text: str, config: GeneratorConfig, report: GenerationReport) -> None:
        exporter: SchemaExporter = SchemaExporter(config)
        result: ExportResult = exporter.export(text)

        report.written = result.success
        report.export_errors.extend(result.errors)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Export to Filesystem",
            success=result.success,
            elapsed_seconds=result.elapsed_seconds,
            detail=result.target_path,
        ))

    @staticmethod
    def _finalise_report(report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not report.export_errors
        return report


__all__: List[str] = [
    "DrizzleGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "load_options_file",
    "parse_options",
]

logger.debug("drizzlegen.generator loaded.")
