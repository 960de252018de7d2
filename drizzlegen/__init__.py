# File: drizzlegen/__init__.py
"""
drizzlegen: Drizzle ORM Schema Generator
==========================================

Translates a Prisma DMMF document (models, fields, enums, indexes, relations,
defaults) into Drizzle ORM TypeScript schema source for PostgreSQL, MySQL and
SQLite.

Architecture overview::

    ┌──────────────┐     ┌──────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ DrizzleGenerator │────▶│  SchemaTemplate  │
    │   (cli.py)   │     │  (generator.py)  │     │  (templates.py)  │
    └──────────────┘     └────────┬─────────┘     └────────┬─────────┘
                                  │                        │
                     ┌────────────┼──────────┐    ┌────────┼──────────┐
                     ▼            ▼          ▼    ▼        ▼          ▼
               ┌─────────┐ ┌───────────┐ ┌──────────┐ ┌──────────┐ ┌──────────┐
               │ models  │ │ exporters │ │ dialects │ │many_to_  │ │schema_ast│
               │  (.py)  │ │   (.py)   │ │  (.py)   │ │many (.py)│ │  (.py)   │
               └─────────┘ └───────────┘ └──────────┘ └──────────┘ └──────────┘

Usage::

    # As a library
    from drizzlegen import DrizzleGenerator, GeneratorOptions
    options = GeneratorOptions.model_validate(document)
    text = DrizzleGenerator().render(options)

    # From the command line
    python -m drizzlegen -i options.json -o ./drizzle --verbose
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from drizzlegen.errors import (
    GeneratorError,
    SchemaLookupError,
    UnknownCascadeActionError,
    UnknownDialectError,
    UnsupportedFeatureError,
)
from drizzlegen.models import (
    DatamodelEnum,
    Dialect,
    GeneratorConfig,
    GeneratorOptions,
    Model,
)
from drizzlegen.many_to_many import ManyToManyResult, synthesize_join_models
from drizzlegen.templates import RenderedSchema, SchemaTemplate
from drizzlegen.dialects import (
    MySqlSchemaTemplate,
    PgSchemaTemplate,
    SQLiteSchemaTemplate,
    get_schema_template,
    resolve_dialect,
)
from drizzlegen.exporters import ExportResult, SchemaExporter
from drizzlegen.generator import DrizzleGenerator, GenerationReport

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Core orchestrator
    "DrizzleGenerator",
    "GenerationReport",
    # Models
    "DatamodelEnum",
    "Dialect",
    "GeneratorConfig",
    "GeneratorOptions",
    "Model",
    # Errors
    "GeneratorError",
    "SchemaLookupError",
    "UnknownCascadeActionError",
    "UnknownDialectError",
    "UnsupportedFeatureError",
    # Translation engine
    "ManyToManyResult",
    "synthesize_join_models",
    "RenderedSchema",
    "SchemaTemplate",
    "PgSchemaTemplate",
    "MySqlSchemaTemplate",
    "SQLiteSchemaTemplate",
    "get_schema_template",
    "resolve_dialect",
    # Exporters
    "ExportResult",
    "SchemaExporter",
]
