# File: drizzlegen/templates.py
"""
drizzlegen - Schema Template Engine
=====================================
The dialect-independent half of the translation engine.  ``SchemaTemplate``
owns the pipeline every dialect shares::

    synthesize join models
        → per field: type mapping (dialect) + default translation
        → foreign keys, unique indexes, primary keys
        → relation declarations
        → emit imports / enums / tables / relations

Subclasses in ``drizzlegen.dialects`` only supply the leaves: column
constructors, enum handling, the now / autoincrement / UUID defaults and the
set of delete actions the dialect accepts.

**State contract:**
    - All run state (imports used, dropped columns, lookups) lives in a
      ``GenerationContext`` created inside ``generate()``.  A template
      instance can be reused; two runs never share state.
    - String assembly uses ``List[str]`` + ``"\\n".join()``.

**Output contract:**
    - Identical input produces byte-identical output.
    - Blocks are separated by one blank line; empty blocks are omitted.
"""

from __future__ import annotations

import logging
import re
from abc import ABCMeta, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Optional, Sequence

from drizzlegen.errors import (
    SchemaLookupError,
    UnknownCascadeActionError,
    UnsupportedFeatureError,
)
from drizzlegen.escape import escape, quote
from drizzlegen.many_to_many import ManyToManyResult, synthesize_join_models
from drizzlegen.models import (
    DatamodelEnum,
    DefaultSpec,
    Dialect,
    EnumField,
    FieldBase,
    FunctionDefault,
    LiteralValue,
    Model,
    NativeType,
    OwningRelationField,
    ReferentialAction,
    ScalarField,
)
from drizzlegen.schema_ast import PrismaSchemaIndex
from drizzlegen.utils import (
    INDENT,
    ImportTracker,
    build_import_block,
    member_list,
    ts_arg,
    ts_literal,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("drizzlegen.templates")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DRIZZLE_MODULE: str = "drizzle-orm"

_UUID_FUNCTION_RE: re.Pattern[str] = re.compile(r"^uuid(\(\d*\))?$")

_I1: str = INDENT
_I2: str = INDENT * 2

# Delete behaviour → Drizzle action keyword, for dialects that accept all five.
ALL_DELETE_ACTIONS: Dict[str, str] = {
    ReferentialAction.CASCADE.value: "cascade",
    ReferentialAction.SET_NULL.value: "set null",
    ReferentialAction.SET_DEFAULT.value: "set default",
    ReferentialAction.RESTRICT.value: "restrict",
    ReferentialAction.NO_ACTION.value: "no action",
}

_NO_ACTION: str = "no action"


# ---------------------------------------------------------------------------
# Per-run state
# ---------------------------------------------------------------------------


@dataclass
class GenerationContext:
    """Everything one generation run accumulates or looks up."""

    models: List[Model]
    enums: List[DatamodelEnum]
    schema_index: Optional[PrismaSchemaIndex] = None
    strict_types: bool = False
    imports: ImportTracker = field(default_factory=ImportTracker)
    dropped_columns: List[str] = field(default_factory=list)

    def get_enum(self, name: str) -> DatamodelEnum:
        for enum in self.enums:
            if enum.name == name:
                return enum
        raise SchemaLookupError(f"Enum {name} not found in datamodel")


@dataclass(frozen=True)
class RenderedSchema:
    """Result of one ``SchemaTemplate.generate()`` call."""

    text: str
    dialect: Dialect
    table_names: List[str]
    join_models: List[str]
    dropped_columns: List[str]

    @property
    def table_count(self) -> int:
        return len(self.table_names)


def function_call_text(fn: FunctionDefault) -> str:
    """Rebuild ``name(arg, ...)`` for a default function with no dedicated rule."""
    if fn.args:
        return f"{fn.name}({', '.join(ts_arg(a) for a in fn.args)})"
    if fn.name.endswith(")"):
        return fn.name
    return f"{fn.name}()"


# ---------------------------------------------------------------------------
# SchemaTemplate
# ---------------------------------------------------------------------------


class SchemaTemplate(metaclass=ABCMeta):
    """
    Shared Drizzle schema pipeline.  One subclass per dialect.

    Usage::

        template = PgSchemaTemplate()
        text = template.render(models, enums, datamodel=schema_text)
    """

    dialect: ClassVar[Dialect]
    label: ClassVar[str]
    core_module: ClassVar[str]
    table_factory: ClassVar[str]
    uuid_expression: ClassVar[str]

    delete_actions: ClassVar[Dict[str, str]] = ALL_DELETE_ACTIONS
    inline_references: ClassVar[bool] = False
    supports_scalar_lists: ClassVar[bool] = False

    def __init__(self, *, strict_types: bool = False) -> None:
        self._strict_types: bool = strict_types

    # -----------------------------------------------------------------
    # Public entry points
    # -----------------------------------------------------------------

    def render(
        self,
        models: Sequence[Model],
        enums: Sequence[DatamodelEnum],
        datamodel: Optional[str] = None,
    ) -> str:
        """Return the schema source text for *models* / *enums*."""
        return self.generate(models, enums, datamodel).text

    def generate(
        self,
        models: Sequence[Model],
        enums: Sequence[DatamodelEnum],
        datamodel: Optional[str] = None,
    ) -> RenderedSchema:
        """
        Run the full pipeline once, with fresh state.

        Args:
            models: Canonical models (never mutated).
            enums: Canonical enums.
            datamodel: Original schema source text, used for ``@db.*`` lookups.

        Raises:
            GeneratorError: Any translation failure; nothing is returned then.
        """
        synthesized: ManyToManyResult = synthesize_join_models(models)
        ctx = GenerationContext(
            models=synthesized.all_models,
            enums=list(enums),
            schema_index=PrismaSchemaIndex.from_text(datamodel) if datamodel else None,
            strict_types=self._strict_types,
        )
        ctx.imports.add(self.core_module, self.table_factory)

        enum_blocks: List[str] = self.render_enums(ctx)
        tables: List[str] = []
        relations: List[str] = []

        for model in ctx.models:
            tables.append(self.render_table(ctx, model))
            relation_block: Optional[str] = self.render_relations(ctx, model)
            if relation_block is not None:
                relations.append(relation_block)

        text: str = self.emit(ctx, enum_blocks, tables, relations)

        logger.info(
            "Rendered %s schema: %d table(s), %d enum(s), %d relation block(s).",
            self.label,
            len(tables),
            len(enum_blocks),
            len(relations),
        )

        return RenderedSchema(
            text=text,
            dialect=self.dialect,
            table_names=[m.name for m in ctx.models],
            join_models=[m.name for m in synthesized.join_models],
            dropped_columns=list(ctx.dropped_columns),
        )

    # -----------------------------------------------------------------
    # Dialect leaves
    # -----------------------------------------------------------------

    @abstractmethod
    def map_scalar_type(
        self,
        ctx: GenerationContext,
        model: Model,
        fld: ScalarField,
        column_name: str,
        native: Optional[NativeType],
    ) -> Optional[str]:
        """
        Return the column constructor for a scalar field, or None when the
        dialect has no mapping for its type.  *column_name* is already escaped.
        """

    @abstractmethod
    def map_enum_column(
        self,
        ctx: GenerationContext,
        enum: DatamodelEnum,
        column_name: str,
    ) -> Optional[str]:
        """Return the column constructor for an enum field."""

    @abstractmethod
    def default_now(self, ctx: GenerationContext) -> str:
        """Modifier for a ``now()`` default."""

    def default_autoincrement(self, ctx: GenerationContext) -> str:
        """Modifier for an ``autoincrement()`` default.  No-op unless overridden."""
        return ""

    def default_list(self, ctx: GenerationContext, values: List[LiteralValue]) -> str:
        return f".default([{', '.join(ts_literal(v) for v in values)}])"

    def render_enums(self, ctx: GenerationContext) -> List[str]:
        """Top-level enum declarations.  Dialects without them emit none."""
        return []

    # -----------------------------------------------------------------
    # Helpers for subclasses
    # -----------------------------------------------------------------

    def use(self, ctx: GenerationContext, name: str) -> str:
        """Record *name* as imported from the dialect's core module and return it."""
        ctx.imports.add(self.core_module, name)
        return name

    def raw_default(self, ctx: GenerationContext, sql_text: str) -> str:
        """``.default(sql`...`)`` with the text escaped for a template literal."""
        ctx.imports.add(DRIZZLE_MODULE, "sql")
        return f".default(sql`{escape(sql_text, '`')}`)"

    # -----------------------------------------------------------------
    # Columns
    # -----------------------------------------------------------------

    def resolve_native_type(
        self,
        ctx: GenerationContext,
        model: Model,
        fld: ScalarField,
    ) -> Optional[NativeType]:
        if ctx.schema_index is not None and not model.is_join_model:
            native: Optional[NativeType] = ctx.schema_index.native_type(model.name, fld.name)
            if native is not None:
                return native
        return fld.native_type

    def build_columns(self, ctx: GenerationContext, model: Model) -> "OrderedDict[str, str]":
        """Column constructors keyed by field name, in field order."""
        if ctx.schema_index is not None and not model.is_join_model:
            ctx.schema_index.require_model(model.name)

        columns: "OrderedDict[str, str]" = OrderedDict()
        for fld in model.fields:
            if fld.is_relation:
                continue
            if isinstance(fld, EnumField) and not ctx.get_enum(fld.type).values:
                # Empty enums are never declared; the column goes even in strict mode.
                logger.warning(
                    "Dropping column %s.%s: enum %s has no values.", model.name, fld.name, fld.type
                )
                ctx.dropped_columns.append(f"{model.name}.{fld.name}")
                continue
            column: Optional[str] = self.build_column(ctx, model, fld)
            if column is None:
                self._drop_column(ctx, model, fld)
                continue
            columns[fld.name] = column
        return columns

    def build_column(
        self,
        ctx: GenerationContext,
        model: Model,
        fld: FieldBase,
    ) -> Optional[str]:
        column_name: str = escape(fld.column_name)

        constructor: Optional[str]
        if isinstance(fld, EnumField):
            constructor = self.map_enum_column(ctx, ctx.get_enum(fld.type), column_name)
        elif isinstance(fld, ScalarField):
            native: Optional[NativeType] = self.resolve_native_type(ctx, model, fld)
            constructor = self.map_scalar_type(ctx, model, fld, column_name, native)
        else:
            return None

        if constructor is None:
            return None
        return constructor + self.column_modifiers(ctx, fld)

    def column_modifiers(self, ctx: GenerationContext, fld: FieldBase) -> str:
        parts: List[str] = []
        if fld.is_list and self.supports_scalar_lists:
            parts.append(".array()")
        if fld.is_id:
            parts.append(".primaryKey()")
        if fld.is_unique:
            parts.append(".unique()")
        if fld.is_required and not fld.is_id:
            parts.append(".notNull()")

        default: Optional[DefaultSpec] = getattr(fld, "default", None)
        if default is not None:
            parts.append(self.translate_default(ctx, default))
        return "".join(parts)

    def _drop_column(self, ctx: GenerationContext, model: Model, fld: FieldBase) -> None:
        where: str = f"{model.name}.{fld.name}"
        if ctx.strict_types:
            raise UnsupportedFeatureError(
                f"Field {where} of type {fld.type} has no {self.label} column type"
            )
        logger.warning(
            "Dropping column %s: type %s has no %s mapping.",
            where,
            fld.type,
            self.label,
        )
        ctx.dropped_columns.append(where)

    # -----------------------------------------------------------------
    # Defaults
    # -----------------------------------------------------------------

    def translate_default(self, ctx: GenerationContext, default: DefaultSpec) -> str:
        """
        Translate a default spec into a column modifier (possibly empty).

        Rules, in order: list literal, scalar literal, ``now``,
        ``autoincrement``, ``dbgenerated``, ``uuid``, any other function.
        """
        if isinstance(default, list):
            return self.default_list(ctx, default)
        if not isinstance(default, FunctionDefault):
            return f".default({ts_literal(default)})"

        name: str = default.name
        if name == "now":
            return self.default_now(ctx)
        if name == "autoincrement":
            return self.default_autoincrement(ctx)
        if name == "dbgenerated":
            if not default.args:
                logger.debug("dbgenerated() without an expression; no default emitted.")
                return ""
            return self.raw_default(ctx, str(default.args[0]))
        if _UUID_FUNCTION_RE.match(name):
            return self.raw_default(ctx, self.uuid_expression)
        return self.raw_default(ctx, function_call_text(default))

    # -----------------------------------------------------------------
    # Constraints & indexes
    # -----------------------------------------------------------------

    def resolve_delete_action(self, fkey_name: str, on_delete: Optional[str]) -> str:
        raw: str = on_delete or ReferentialAction.CASCADE.value
        action: Optional[str] = self.delete_actions.get(raw)
        if action is not None:
            return action
        if raw in ALL_DELETE_ACTIONS:
            raise UnknownCascadeActionError(
                f"Delete action {raw} on relation {fkey_name} is not supported for {self.label}"
            )
        raise UnknownCascadeActionError(f"Unknown delete action on relation {fkey_name}: {raw}")

    def build_constraints(
        self,
        ctx: GenerationContext,
        model: Model,
        columns: "OrderedDict[str, str]",
    ) -> List[str]:
        """
        Entries of the table's extra-config object.  Single-column foreign
        keys may instead be inlined into *columns* (dialect permitting).
        """
        entries: List[str] = []
        for fld in model.fields:
            if isinstance(fld, OwningRelationField):
                entry: Optional[str] = self.build_foreign_key(ctx, model, fld, columns)
                if entry is not None:
                    entries.append(entry)

        entries.extend(self.build_unique_indexes(ctx, model))

        primary_key: Optional[str] = self.build_primary_key(ctx, model)
        if primary_key is not None:
            entries.append(primary_key)
        return entries

    def build_foreign_key(
        self,
        ctx: GenerationContext,
        model: Model,
        fld: OwningRelationField,
        columns: "OrderedDict[str, str]",
    ) -> Optional[str]:
        fkey_name: str = f"{model.table_name}_{fld.column_name}_fkey"
        action: str = self.resolve_delete_action(fkey_name, fld.relation_on_delete)

        from_fields: List[str] = fld.relation_from_fields
        to_fields: List[str] = fld.relation_to_fields
        if (
            self.inline_references
            and len(from_fields) == 1
            and len(to_fields) == 1
            and from_fields[0] in columns
        ):
            options: List[str] = []
            if action != _NO_ACTION:
                options.append(f"onDelete: '{action}'")
            options.append("onUpdate: 'cascade'")
            columns[from_fields[0]] += (
                f".references(() => {fld.type}.{to_fields[0]}, {{ {', '.join(options)} }})"
            )
            return None

        self.use(ctx, "foreignKey")
        quoted: str = quote(fkey_name)
        lines: List[str] = [
            f"{_I1}{quoted}: foreignKey({{",
            f"{_I2}name: {quoted},",
            f"{_I2}columns: {member_list(model.name, from_fields)},",
            f"{_I2}foreignColumns: {member_list(fld.type, to_fields)}",
            f"{_I1}}})",
        ]
        if action != _NO_ACTION:
            lines.append(f"{_I2}.onDelete('{action}')")
        lines.append(f"{_I2}.onUpdate('cascade')")
        return "\n".join(lines)

    def build_unique_indexes(self, ctx: GenerationContext, model: Model) -> List[str]:
        entries: List[str] = []
        for idx in model.unique_indexes:
            self.use(ctx, "uniqueIndex")
            if idx.name:
                key = sql_name = idx.name
            else:
                sql_name = f"{model.name}_{'_'.join(idx.fields)}_key"
                key = f"{sql_name[:-len('_key')]}_unique_idx"
            on_columns: str = ", ".join(f"{model.name}.{f}" for f in idx.fields)
            entries.append(
                f"{_I1}{quote(key)}: uniqueIndex({quote(sql_name)})\n{_I2}.on({on_columns})"
            )
        return entries

    def build_primary_key(self, ctx: GenerationContext, model: Model) -> Optional[str]:
        pk = model.primary_key
        if pk is None:
            return None
        self.use(ctx, "primaryKey")
        quoted: str = quote(pk.name or f"{model.name}_cpk")
        return "\n".join([
            f"{_I1}{quoted}: primaryKey({{",
            f"{_I2}name: {quoted},",
            f"{_I2}columns: {member_list(model.name, pk.fields)}",
            f"{_I1}}})",
        ])

    # -----------------------------------------------------------------
    # Tables
    # -----------------------------------------------------------------

    def render_table(self, ctx: GenerationContext, model: Model) -> str:
        columns = self.build_columns(ctx, model)
        constraints: List[str] = self.build_constraints(ctx, model, columns)

        column_lines: str = ",\n".join(f"{_I1}{name}: {text}" for name, text in columns.items())
        parts: List[str] = [
            f"export const {model.name} = {self.table_factory}({quote(model.table_name)}, {{\n",
            column_lines,
            "\n}",
        ]
        if constraints:
            constraint_lines: str = ",\n".join(constraints)
            parts.append(f", ({model.name}) => ({{\n{constraint_lines}\n}})")
        parts.append(");")
        return "".join(parts)

    # -----------------------------------------------------------------
    # Relations
    # -----------------------------------------------------------------

    def render_relations(self, ctx: GenerationContext, model: Model) -> Optional[str]:
        relation_fields = model.relation_fields
        if not relation_fields:
            return None
        ctx.imports.add(DRIZZLE_MODULE, "relations")

        combinators = set()
        entries: List[str] = []
        for fld in relation_fields:
            relation_name: str = quote(fld.relation_name)
            if isinstance(fld, OwningRelationField):
                combinators.add("one")
                entries.append("\n".join([
                    f"{_I1}{fld.name}: one({fld.type}, {{",
                    f"{_I2}relationName: {relation_name},",
                    f"{_I2}fields: {member_list(model.name, fld.relation_from_fields)},",
                    f"{_I2}references: {member_list(fld.type, fld.relation_to_fields)}",
                    f"{_I1}}})",
                ]))
            else:
                combinator: str = "many" if fld.is_list else "one"
                combinators.add(combinator)
                entries.append("\n".join([
                    f"{_I1}{fld.name}: {combinator}({fld.type}, {{",
                    f"{_I2}relationName: {relation_name}",
                    f"{_I1}}})",
                ]))

        args: str = ", ".join(sorted(combinators))
        body: str = ",\n".join(entries)
        return (
            f"export const {model.name}Relations = relations({model.name}, "
            f"({{ {args} }}) => ({{\n{body}\n}}));"
        )

    # -----------------------------------------------------------------
    # Emitter
    # -----------------------------------------------------------------

    def emit(
        self,
        ctx: GenerationContext,
        enums: Sequence[str],
        tables: Sequence[str],
        relations: Sequence[str],
    ) -> str:
        imports: Optional[str] = build_import_block(
            ctx.imports, [DRIZZLE_MODULE, self.core_module]
        )
        blocks: List[str] = [b for b in [imports, *enums, *tables, *relations] if b]
        return "\n\n".join(blocks)


__all__: List[str] = [
    "ALL_DELETE_ACTIONS",
    "DRIZZLE_MODULE",
    "GenerationContext",
    "RenderedSchema",
    "SchemaTemplate",
    "function_call_text",
]

logger.debug("drizzlegen.templates loaded.")
