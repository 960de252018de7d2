# File: drizzlegen/dialects.py
"""
drizzlegen - Dialect Templates
================================
Concrete ``SchemaTemplate`` subclasses for PostgreSQL, MySQL and SQLite, and
the provider → template registry.

Each class supplies only what differs between dialects:

    - the Drizzle core module and table factory (``pgTable`` ...)
    - scalar / native / enum column constructors
    - ``now()``, ``autoincrement()``, ``uuid()`` and list defaults
    - which delete actions a foreign key may use
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from drizzlegen.errors import UnknownDialectError, UnsupportedFeatureError
from drizzlegen.escape import quote
from drizzlegen.models import (
    DatamodelEnum,
    Dialect,
    LiteralValue,
    Model,
    NativeType,
    ReferentialAction,
    ScalarField,
)
from drizzlegen.templates import (
    ALL_DELETE_ACTIONS,
    GenerationContext,
    SchemaTemplate,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("drizzlegen.dialects")

# Every dialect but PostgreSQL rejects SET DEFAULT.
_NO_SET_DEFAULT: Dict[str, str] = {
    k: v for k, v in ALL_DELETE_ACTIONS.items() if k != ReferentialAction.SET_DEFAULT.value
}


# ---------------------------------------------------------------------------
# Constructor text helpers
# ---------------------------------------------------------------------------


def _option_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return quote(value)
    return str(value)


def call(constructor: str, column_name: str, *options: Tuple[str, Any]) -> str:
    """
    Build ``constructor('column', { key: value, ... })``.

    Options whose value is None are left out; the object is omitted entirely
    when nothing remains.

    Example:
        >>> call("varchar", "email", ("length", 191))
        "varchar('email', { length: 191 })"
    """
    pairs: List[str] = [f"{k}: {_option_value(v)}" for k, v in options if v is not None]
    if not pairs:
        return f"{constructor}('{column_name}')"
    return f"{constructor}('{column_name}', {{ {', '.join(pairs)} }})"


def _enum_values(enum: DatamodelEnum) -> str:
    return "[" + ", ".join(quote(v) for v in enum.value_names) + "]"


def _sql_literal(value: LiteralValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return "'" + value.replace("'", "''") + "'"
    return str(value)


def _binary_unsupported(label: str, model: Model, fld: ScalarField) -> UnsupportedFeatureError:
    return UnsupportedFeatureError(
        f"Binary (Bytes) columns are not supported for {label}: {model.name}.{fld.name}"
    )


# ---------------------------------------------------------------------------
# PostgreSQL
# ---------------------------------------------------------------------------


class PgSchemaTemplate(SchemaTemplate):
    """``drizzle-orm/pg-core`` output.  Enums become top-level ``pgEnum`` declarations."""

    dialect = Dialect.POSTGRESQL
    label = "PostgreSQL"
    core_module = "drizzle-orm/pg-core"
    table_factory = "pgTable"
    uuid_expression = "gen_random_uuid()"
    supports_scalar_lists = True

    def render_enums(self, ctx: GenerationContext) -> List[str]:
        blocks: List[str] = []
        for enum in ctx.enums:
            if not enum.values:
                logger.debug("Skipping empty enum %s.", enum.name)
                continue
            blocks.append(
                f"export const {enum.name} = {self.use(ctx, 'pgEnum')}"
                f"({quote(enum.type_name)}, {_enum_values(enum)});"
            )
        return blocks

    def map_enum_column(
        self,
        ctx: GenerationContext,
        enum: DatamodelEnum,
        column_name: str,
    ) -> Optional[str]:
        return f"{enum.name}('{column_name}')"

    def map_scalar_type(
        self,
        ctx: GenerationContext,
        model: Model,
        fld: ScalarField,
        column_name: str,
        native: Optional[NativeType],
    ) -> Optional[str]:
        prisma_type: str = fld.type
        autoincrement: bool = fld.default_function == "autoincrement"

        if prisma_type == "Bytes":
            raise _binary_unsupported(self.label, model, fld)

        if native is not None:
            column: Optional[str] = self._map_native(ctx, prisma_type, column_name, native, autoincrement)
            if column is not None:
                return column
            logger.debug(
                "No PostgreSQL mapping for @db.%s on %s.%s; using the default column.",
                native.name,
                model.name,
                fld.name,
            )

        if prisma_type == "BigInt":
            name = "bigserial" if autoincrement else "bigint"
            return call(self.use(ctx, name), column_name, ("mode", "bigint"))
        if prisma_type == "Boolean":
            return call(self.use(ctx, "boolean"), column_name)
        if prisma_type == "DateTime":
            return call(self.use(ctx, "timestamp"), column_name, ("precision", 3))
        if prisma_type == "Decimal":
            return call(self.use(ctx, "decimal"), column_name, ("precision", 65), ("scale", 30))
        if prisma_type == "Float":
            return call(self.use(ctx, "doublePrecision"), column_name)
        if prisma_type == "Json":
            return call(self.use(ctx, "jsonb"), column_name)
        if prisma_type == "Int":
            return call(self.use(ctx, "serial" if autoincrement else "integer"), column_name)
        if prisma_type == "String":
            return call(self.use(ctx, "text"), column_name)
        return None

    def _map_native(
        self,
        ctx: GenerationContext,
        prisma_type: str,
        column_name: str,
        native: NativeType,
        autoincrement: bool,
    ) -> Optional[str]:
        key: str = native.key

        if prisma_type == "DateTime":
            precision: Optional[int] = native.int_arg(0)
            if key in ("timestamp", "timestamptz"):
                return call(
                    self.use(ctx, "timestamp"),
                    column_name,
                    ("precision", 3 if precision is None else precision),
                    ("withTimezone", True if key == "timestamptz" else None),
                )
            if key == "date":
                return call(self.use(ctx, "date"), column_name, ("mode", "date"))
            if key in ("time", "timetz"):
                return call(
                    self.use(ctx, "time"),
                    column_name,
                    ("precision", precision),
                    ("withTimezone", True if key == "timetz" else None),
                )
        elif prisma_type == "String":
            if key in ("varchar", "char"):
                return call(self.use(ctx, key), column_name, ("length", native.int_arg(0)))
            if key in ("text", "uuid"):
                return call(self.use(ctx, key), column_name)
        elif prisma_type == "Int":
            if key in ("smallint", "smallinteger"):
                return call(self.use(ctx, "smallserial" if autoincrement else "smallint"), column_name)
            if key == "integer":
                return call(self.use(ctx, "serial" if autoincrement else "integer"), column_name)
        elif prisma_type == "Float":
            if key == "real":
                return call(self.use(ctx, "real"), column_name)
            if key == "doubleprecision":
                return call(self.use(ctx, "doublePrecision"), column_name)
        elif prisma_type == "Decimal":
            if key == "decimal":
                return call(
                    self.use(ctx, "decimal"),
                    column_name,
                    ("precision", native.int_arg(0)),
                    ("scale", native.int_arg(1)),
                )
        elif prisma_type == "Json":
            if key in ("json", "jsonb"):
                return call(self.use(ctx, key), column_name)
        return None

    def default_now(self, ctx: GenerationContext) -> str:
        return ".defaultNow()"


# ---------------------------------------------------------------------------
# MySQL
# ---------------------------------------------------------------------------


class MySqlSchemaTemplate(SchemaTemplate):
    """``drizzle-orm/mysql-core`` output.  Enums are inlined per column."""

    dialect = Dialect.MYSQL
    label = "MySQL"
    core_module = "drizzle-orm/mysql-core"
    table_factory = "mysqlTable"
    uuid_expression = "(uuid())"
    delete_actions = _NO_SET_DEFAULT
    inline_references = True

    _TEXT_TYPES: Dict[str, str] = {
        "text": "text",
        "tinytext": "tinytext",
        "mediumtext": "mediumtext",
        "longtext": "longtext",
    }
    _INT_TYPES: Dict[str, str] = {
        "tinyint": "tinyint",
        "smallint": "smallint",
        "mediumint": "mediumint",
        "int": "int",
    }

    def map_enum_column(
        self,
        ctx: GenerationContext,
        enum: DatamodelEnum,
        column_name: str,
    ) -> Optional[str]:
        return f"{self.use(ctx, 'mysqlEnum')}('{column_name}', {_enum_values(enum)})"

    def map_scalar_type(
        self,
        ctx: GenerationContext,
        model: Model,
        fld: ScalarField,
        column_name: str,
        native: Optional[NativeType],
    ) -> Optional[str]:
        prisma_type: str = fld.type

        if prisma_type == "Bytes":
            raise _binary_unsupported(self.label, model, fld)

        if native is not None:
            column: Optional[str] = self._map_native(ctx, prisma_type, column_name, native)
            if column is not None:
                return column
            logger.debug(
                "No MySQL mapping for @db.%s on %s.%s; using the default column.",
                native.name,
                model.name,
                fld.name,
            )

        if prisma_type == "BigInt":
            return call(self.use(ctx, "bigint"), column_name, ("mode", "bigint"))
        if prisma_type == "Boolean":
            return call(self.use(ctx, "boolean"), column_name)
        if prisma_type == "DateTime":
            return call(self.use(ctx, "datetime"), column_name, ("fsp", 3))
        if prisma_type == "Decimal":
            return call(self.use(ctx, "decimal"), column_name, ("precision", 65), ("scale", 30))
        if prisma_type == "Float":
            return call(self.use(ctx, "double"), column_name)
        if prisma_type == "Json":
            return call(self.use(ctx, "json"), column_name)
        if prisma_type == "Int":
            return call(self.use(ctx, "int"), column_name)
        if prisma_type == "String":
            return call(self.use(ctx, "varchar"), column_name, ("length", 191))
        return None

    def _map_native(
        self,
        ctx: GenerationContext,
        prisma_type: str,
        column_name: str,
        native: NativeType,
    ) -> Optional[str]:
        key: str = native.key

        if prisma_type == "DateTime":
            if key == "date":
                return call(self.use(ctx, "date"), column_name, ("mode", "date"))
            if key in ("time", "timestamp", "datetime"):
                return call(self.use(ctx, key), column_name, ("fsp", native.int_arg(0)))
        elif prisma_type == "String":
            if key == "varchar":
                length: Optional[int] = native.int_arg(0)
                return call(self.use(ctx, "varchar"), column_name, ("length", length or 191))
            if key == "char":
                return call(self.use(ctx, "char"), column_name, ("length", native.int_arg(0)))
            if key in self._TEXT_TYPES:
                return call(self.use(ctx, self._TEXT_TYPES[key]), column_name)
        elif prisma_type == "Int":
            if key in self._INT_TYPES:
                return call(self.use(ctx, self._INT_TYPES[key]), column_name)
        elif prisma_type == "Float":
            if key in ("float", "double"):
                return call(self.use(ctx, key), column_name)
        elif prisma_type == "Decimal":
            if key == "decimal":
                return call(
                    self.use(ctx, "decimal"),
                    column_name,
                    ("precision", native.int_arg(0)),
                    ("scale", native.int_arg(1)),
                )
        return None

    def default_now(self, ctx: GenerationContext) -> str:
        return self.raw_default(ctx, "CURRENT_TIMESTAMP")

    def default_autoincrement(self, ctx: GenerationContext) -> str:
        return ".autoincrement()"


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------


class SQLiteSchemaTemplate(SchemaTemplate):
    """``drizzle-orm/sqlite-core`` output."""

    dialect = Dialect.SQLITE
    label = "SQLite"
    core_module = "drizzle-orm/sqlite-core"
    table_factory = "sqliteTable"
    uuid_expression = "(lower(hex(randomblob(16))))"
    delete_actions = _NO_SET_DEFAULT
    inline_references = True

    def map_enum_column(
        self,
        ctx: GenerationContext,
        enum: DatamodelEnum,
        column_name: str,
    ) -> Optional[str]:
        return f"{self.use(ctx, 'text')}('{column_name}', {{ enum: {_enum_values(enum)} }})"

    def map_scalar_type(
        self,
        ctx: GenerationContext,
        model: Model,
        fld: ScalarField,
        column_name: str,
        native: Optional[NativeType],
    ) -> Optional[str]:
        prisma_type: str = fld.type

        if prisma_type == "BigInt":
            return call(self.use(ctx, "int"), column_name)
        if prisma_type == "Boolean":
            return call(self.use(ctx, "int"), column_name, ("mode", "boolean"))
        if prisma_type == "Bytes":
            return call(self.use(ctx, "blob"), column_name, ("mode", "buffer"))
        if prisma_type in ("DateTime", "Decimal"):
            return call(self.use(ctx, "numeric"), column_name)
        if prisma_type == "Float":
            return call(self.use(ctx, "real"), column_name)
        if prisma_type == "Json":
            return call(self.use(ctx, "text"), column_name, ("mode", "json"))
        if prisma_type == "Int":
            return call(self.use(ctx, "int"), column_name)
        if prisma_type == "String":
            return call(self.use(ctx, "text"), column_name)
        return None

    def default_now(self, ctx: GenerationContext) -> str:
        return self.raw_default(ctx, "DATE('now')")

    def default_list(self, ctx: GenerationContext, values: List[LiteralValue]) -> str:
        return self.raw_default(ctx, f"ARRAY[{', '.join(_sql_literal(v) for v in values)}]")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

TEMPLATE_REGISTRY: Dict[Dialect, Type[SchemaTemplate]] = {
    Dialect.POSTGRESQL: PgSchemaTemplate,
    Dialect.MYSQL: MySqlSchemaTemplate,
    Dialect.SQLITE: SQLiteSchemaTemplate,
}

_PROVIDER_ALIASES: Dict[str, Dialect] = {
    "postgres": Dialect.POSTGRESQL,
    "postgresql": Dialect.POSTGRESQL,
    "mysql": Dialect.MYSQL,
    "sqlite": Dialect.SQLITE,
}


def resolve_dialect(provider: Optional[str]) -> Dialect:
    """
    Map a datasource provider string to a ``Dialect``.

    Raises:
        UnknownDialectError: If *provider* is missing or not supported.
    """
    if not provider:
        raise UnknownDialectError("Unable to determine database type")
    dialect: Optional[Dialect] = _PROVIDER_ALIASES.get(provider.strip().lower())
    if dialect is None:
        raise UnknownDialectError(
            f"Invalid database type {provider}. Supported: PostgreSQL, MySQL, SQLite"
        )
    return dialect


def get_schema_template(provider: Optional[str], *, strict_types: bool = False) -> SchemaTemplate:
    """Return a fresh template for *provider* (e.g. ``"postgresql"``)."""
    dialect: Dialect = resolve_dialect(provider)
    template_cls: Type[SchemaTemplate] = TEMPLATE_REGISTRY[dialect]
    logger.debug("Provider %r → %s.", provider, template_cls.__name__)
    return template_cls(strict_types=strict_types)


__all__: List[str] = [
    "PgSchemaTemplate",
    "MySqlSchemaTemplate",
    "SQLiteSchemaTemplate",
    "TEMPLATE_REGISTRY",
    "call",
    "get_schema_template",
    "resolve_dialect",
]

logger.debug("drizzlegen.dialects loaded: %d template(s) registered.", len(TEMPLATE_REGISTRY))
