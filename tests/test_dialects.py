"""
tests/test_dialects.py
Unit tests for drizzlegen.dialects (PostgreSQL, MySQL and SQLite templates).

Tests cover:
- Dialect resolution from provider strings
- Scalar type mapping per dialect
- Native type overrides
- Enum handling
- Dialect-specific defaults (now, autoincrement, uuid, lists)
- Inline references vs. foreign key declarations
- Binary column fatality
"""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Optional

import pytest

from conftest import autoincrement_id, model, relation, scalar
from drizzlegen.dialects import (
    MySqlSchemaTemplate,
    PgSchemaTemplate,
    SQLiteSchemaTemplate,
    call,
    get_schema_template,
    resolve_dialect,
)
from drizzlegen.errors import (
    UnknownCascadeActionError,
    UnknownDialectError,
    UnsupportedFeatureError,
)
from drizzlegen.models import DatamodelEnum, Dialect, Model
from drizzlegen.templates import SchemaTemplate


def _render(
    template: SchemaTemplate,
    raw_models: List[Dict[str, Any]],
    raw_enums: Optional[List[Dict[str, Any]]] = None,
    schema_text: Optional[str] = None,
) -> str:
    models = [Model.model_validate(m) for m in raw_models]
    enums = [DatamodelEnum.model_validate(e) for e in raw_enums or []]
    return template.render(models, enums, schema_text)


def _column(template: SchemaTemplate, field: Dict[str, Any]) -> str:
    """Render a one-column table and return that column's line."""
    text = _render(template, [model("T", [field])])
    prefix = f"\t{field['name']}: "
    lines = [line for line in text.splitlines() if line.startswith(prefix)]
    assert len(lines) == 1, text
    return lines[0][len(prefix):].rstrip(",")


# ===========================================================================
# Dialect resolution
# ===========================================================================


class TestResolveDialect:

    @pytest.mark.parametrize(
        "provider, expected",
        [
            ("postgresql", Dialect.POSTGRESQL),
            ("postgres", Dialect.POSTGRESQL),
            ("mysql", Dialect.MYSQL),
            ("sqlite", Dialect.SQLITE),
        ],
    )
    def test_supported_providers(self, provider: str, expected: Dialect) -> None:
        assert resolve_dialect(provider) is expected

    def test_missing_provider(self) -> None:
        with pytest.raises(UnknownDialectError, match="Unable to determine database type"):
            resolve_dialect(None)

    def test_unsupported_provider(self) -> None:
        with pytest.raises(UnknownDialectError, match="Invalid database type mongodb"):
            resolve_dialect("mongodb")

    @pytest.mark.parametrize(
        "provider, cls",
        [("postgresql", PgSchemaTemplate), ("mysql", MySqlSchemaTemplate), ("sqlite", SQLiteSchemaTemplate)],
    )
    def test_template_registry(self, provider: str, cls: type) -> None:
        template = get_schema_template(provider)
        assert type(template) is cls

    def test_fresh_template_each_call(self) -> None:
        assert get_schema_template("sqlite") is not get_schema_template("sqlite")


class TestCallHelper:

    def test_without_options(self) -> None:
        assert call("text", "name") == "text('name')"

    def test_none_options_dropped(self) -> None:
        assert call("time", "at", ("precision", None), ("withTimezone", True)) == (
            "time('at', { withTimezone: true })"
        )

    def test_string_option_quoted(self) -> None:
        assert call("bigint", "n", ("mode", "bigint")) == "bigint('n', { mode: 'bigint' })"


# ===========================================================================
# PostgreSQL
# ===========================================================================


class TestPostgresTypes:

    @pytest.mark.parametrize(
        "type_, expected",
        [
            ("BigInt", "bigint('c', { mode: 'bigint' }).notNull()"),
            ("Boolean", "boolean('c').notNull()"),
            ("DateTime", "timestamp('c', { precision: 3 }).notNull()"),
            ("Decimal", "decimal('c', { precision: 65, scale: 30 }).notNull()"),
            ("Float", "doublePrecision('c').notNull()"),
            ("Json", "jsonb('c').notNull()"),
            ("Int", "integer('c').notNull()"),
            ("String", "text('c').notNull()"),
        ],
    )
    def test_scalar_mapping(self, type_: str, expected: str) -> None:
        assert _column(PgSchemaTemplate(), scalar("c", type_)) == expected

    def test_serial_for_autoincrement(self) -> None:
        assert _column(PgSchemaTemplate(), autoincrement_id()) == "serial('id').primaryKey()"

    def test_bigserial_for_autoincrement(self) -> None:
        assert _column(PgSchemaTemplate(), autoincrement_id("BigInt")) == (
            "bigserial('id', { mode: 'bigint' }).primaryKey()"
        )

    def test_scalar_list(self) -> None:
        assert _column(PgSchemaTemplate(), scalar("tags", "String", is_list=True)) == (
            "text('tags').array().notNull()"
        )

    def test_bytes_fatal(self) -> None:
        with pytest.raises(UnsupportedFeatureError, match="T.data"):
            _render(PgSchemaTemplate(), [model("T", [scalar("data", "Bytes")])])

    def test_physical_column_name(self) -> None:
        field = scalar("createdAt", "DateTime", db_name="created_at")
        assert _column(PgSchemaTemplate(), field) == "timestamp('created_at', { precision: 3 }).notNull()"


class TestPostgresNativeTypes:

    @pytest.mark.parametrize(
        "type_, native, expected",
        [
            ("DateTime", ["Timestamptz", ["6"]], "timestamp('c', { precision: 6, withTimezone: true })"),
            ("DateTime", ["Timestamp", []], "timestamp('c', { precision: 3 })"),
            ("DateTime", ["Date", []], "date('c', { mode: 'date' })"),
            ("DateTime", ["Time", ["2"]], "time('c', { precision: 2 })"),
            ("DateTime", ["Timetz", []], "time('c', { withTimezone: true })"),
            ("String", ["VarChar", ["255"]], "varchar('c', { length: 255 })"),
            ("String", ["Char", ["2"]], "char('c', { length: 2 })"),
            ("String", ["Uuid", []], "uuid('c')"),
            ("Int", ["SmallInt", []], "smallint('c')"),
            ("Float", ["Real", []], "real('c')"),
            ("Decimal", ["Decimal", ["10", "2"]], "decimal('c', { precision: 10, scale: 2 })"),
            ("Json", ["Json", []], "json('c')"),
        ],
    )
    def test_native_override(self, type_: str, native: list, expected: str) -> None:
        field = scalar("c", type_, required=False)
        field["nativeType"] = native
        assert _column(PgSchemaTemplate(), field) == expected

    def test_unsupported_native_falls_back(self) -> None:
        field = scalar("c", "String", required=False)
        field["nativeType"] = ["Citext", []]
        assert _column(PgSchemaTemplate(), field) == "text('c')"

    def test_native_from_schema_text(self) -> None:
        schema_text = "model T {\n  id Int @id\n  code String @db.VarChar(12)\n}\n"
        text = _render(
            PgSchemaTemplate(),
            [model("T", [scalar("id", "Int", is_id=True), scalar("code", "String")])],
            schema_text=schema_text,
        )
        assert "\tcode: varchar('code', { length: 12 }).notNull()" in text
        assert "import { integer, pgTable, varchar } from 'drizzle-orm/pg-core'" in text


class TestPostgresEnums:

    def test_enum_declaration_and_column(self, role_enum: Dict[str, Any]) -> None:
        text = _render(
            PgSchemaTemplate(),
            [model("User", [scalar("role", "Role", kind="enum", default="USER")])],
            [role_enum],
        )
        assert "export const Role = pgEnum('Role', ['USER', 'ADMIN']);" in text
        assert "\trole: Role('role').notNull().default(\"USER\")" in text
        assert "import { pgEnum, pgTable } from 'drizzle-orm/pg-core'" in text

    def test_enum_physical_names(self, role_enum: Dict[str, Any]) -> None:
        role_enum["dbName"] = "user_role"
        role_enum["values"][1]["dbName"] = "administrator"
        text = _render(PgSchemaTemplate(), [model("T", [scalar("id", "Int", is_id=True)])], [role_enum])
        assert "export const Role = pgEnum('user_role', ['USER', 'administrator']);" in text

    def test_empty_enum_skipped(self) -> None:
        empty = {"name": "Nothing", "values": []}
        text = _render(PgSchemaTemplate(), [model("T", [scalar("id", "Int", is_id=True)])], [empty])
        assert "pgEnum" not in text

    @pytest.mark.parametrize("template_cls", [PgSchemaTemplate, MySqlSchemaTemplate, SQLiteSchemaTemplate])
    def test_empty_enum_column_dropped_in_strict_mode(self, template_cls: type) -> None:
        raw = model("U", [scalar("id", "Int", is_id=True), scalar("r", "Nothing", kind="enum")])
        result = template_cls(strict_types=True).generate(
            [Model.model_validate(raw)], [DatamodelEnum.model_validate({"name": "Nothing", "values": []})]
        )
        assert result.dropped_columns == ["U.r"]
        assert "\tr: " not in result.text


class TestPostgresDefaults:

    def test_now(self) -> None:
        field = scalar("at", "DateTime", default={"name": "now", "args": []})
        assert _column(PgSchemaTemplate(), field).endswith(".notNull().defaultNow()")

    def test_uuid(self) -> None:
        field = scalar("id", "String", is_id=True, default={"name": "uuid", "args": [4]})
        text = _render(PgSchemaTemplate(), [model("T", [field])])
        assert "\tid: text('id').primaryKey().default(sql`gen_random_uuid()`)" in text
        assert "import { sql } from 'drizzle-orm'" in text

    def test_list_literal(self) -> None:
        field = scalar("xs", "Int", is_list=True, default=[1, 2])
        assert _column(PgSchemaTemplate(), field) == "integer('xs').array().notNull().default([1, 2])"

    def test_set_default_supported(self) -> None:
        raw = [
            model("A", [autoincrement_id()]),
            model(
                "B",
                [
                    autoincrement_id(),
                    scalar("aId", "Int", default=0),
                    relation("a", "A", "AB", from_fields=["aId"], to_fields=["id"], on_delete="SetDefault"),
                ],
            ),
        ]
        assert ".onDelete('set default')" in _render(PgSchemaTemplate(), raw)


# ===========================================================================
# MySQL
# ===========================================================================


class TestMySqlTypes:

    @pytest.mark.parametrize(
        "type_, expected",
        [
            ("BigInt", "bigint('c', { mode: 'bigint' }).notNull()"),
            ("Boolean", "boolean('c').notNull()"),
            ("DateTime", "datetime('c', { fsp: 3 }).notNull()"),
            ("Decimal", "decimal('c', { precision: 65, scale: 30 }).notNull()"),
            ("Float", "double('c').notNull()"),
            ("Json", "json('c').notNull()"),
            ("Int", "int('c').notNull()"),
            ("String", "varchar('c', { length: 191 }).notNull()"),
        ],
    )
    def test_scalar_mapping(self, type_: str, expected: str) -> None:
        assert _column(MySqlSchemaTemplate(), scalar("c", type_)) == expected

    def test_autoincrement_modifier(self) -> None:
        assert _column(MySqlSchemaTemplate(), autoincrement_id()) == "int('id').primaryKey().autoincrement()"

    def test_lists_not_arrays(self) -> None:
        assert ".array()" not in _column(MySqlSchemaTemplate(), scalar("xs", "Int", is_list=True))

    def test_bytes_fatal(self) -> None:
        with pytest.raises(UnsupportedFeatureError, match="MySQL"):
            _render(MySqlSchemaTemplate(), [model("T", [scalar("data", "Bytes")])])

    @pytest.mark.parametrize(
        "type_, native, expected",
        [
            ("DateTime", ["Date", []], "date('c', { mode: 'date' })"),
            ("DateTime", ["Timestamp", ["0"]], "timestamp('c', { fsp: 0 })"),
            ("String", ["VarChar", ["50"]], "varchar('c', { length: 50 })"),
            ("String", ["LongText", []], "longtext('c')"),
            ("Int", ["TinyInt", []], "tinyint('c')"),
            ("Float", ["Float", []], "float('c')"),
        ],
    )
    def test_native_override(self, type_: str, native: list, expected: str) -> None:
        field = scalar("c", type_, required=False)
        field["nativeType"] = native
        assert _column(MySqlSchemaTemplate(), field) == expected

    def test_enum_inline(self, role_enum: Dict[str, Any]) -> None:
        text = _render(
            MySqlSchemaTemplate(),
            [model("User", [scalar("role", "Role", kind="enum")])],
            [role_enum],
        )
        assert "\trole: mysqlEnum('role', ['USER', 'ADMIN']).notNull()" in text
        assert "export const Role" not in text


class TestMySqlDefaults:

    def test_now_records_sql_import(self) -> None:
        field = scalar("at", "DateTime", default={"name": "now", "args": []})
        text = _render(MySqlSchemaTemplate(), [model("T", [field])])
        assert "\tat: datetime('at', { fsp: 3 }).notNull().default(sql`CURRENT_TIMESTAMP`)" in text
        assert "import { sql } from 'drizzle-orm'" in text

    def test_uuid(self) -> None:
        field = scalar("id", "String", is_id=True, default={"name": "uuid", "args": []})
        assert _column(MySqlSchemaTemplate(), field).endswith(".default(sql`(uuid())`)")

    def test_set_default_rejected(self) -> None:
        raw = [
            model("A", [autoincrement_id()]),
            model(
                "B",
                [
                    autoincrement_id(),
                    scalar("aId", "Int"),
                    relation("a", "A", "AB", from_fields=["aId"], to_fields=["id"], on_delete="SetDefault"),
                ],
            ),
        ]
        with pytest.raises(UnknownCascadeActionError, match="not supported for MySQL"):
            _render(MySqlSchemaTemplate(), raw)


# ===========================================================================
# SQLite
# ===========================================================================


class TestSQLite:

    @pytest.mark.parametrize(
        "type_, expected",
        [
            ("BigInt", "int('c').notNull()"),
            ("Boolean", "int('c', { mode: 'boolean' }).notNull()"),
            ("Bytes", "blob('c', { mode: 'buffer' }).notNull()"),
            ("DateTime", "numeric('c').notNull()"),
            ("Decimal", "numeric('c').notNull()"),
            ("Float", "real('c').notNull()"),
            ("Json", "text('c', { mode: 'json' }).notNull()"),
            ("Int", "int('c').notNull()"),
            ("String", "text('c').notNull()"),
        ],
    )
    def test_scalar_mapping(self, type_: str, expected: str) -> None:
        assert _column(SQLiteSchemaTemplate(), scalar("c", type_)) == expected

    def test_autoincrement_is_noop(self) -> None:
        assert _column(SQLiteSchemaTemplate(), autoincrement_id()) == "int('id').primaryKey()"

    def test_native_types_ignored(self) -> None:
        field = scalar("c", "String", required=False)
        field["nativeType"] = ["VarChar", ["10"]]
        assert _column(SQLiteSchemaTemplate(), field) == "text('c')"

    def test_enum_inline_text(self, role_enum: Dict[str, Any]) -> None:
        text = _render(
            SQLiteSchemaTemplate(),
            [model("User", [scalar("role", "Role", kind="enum", required=False)])],
            [role_enum],
        )
        assert "\trole: text('role', { enum: ['USER', 'ADMIN'] })" in text

    def test_now(self) -> None:
        field = scalar("at", "DateTime", default={"name": "now", "args": []})
        assert _column(SQLiteSchemaTemplate(), field) == "numeric('at').notNull().default(sql`DATE('now')`)"

    def test_uuid(self) -> None:
        field = scalar("id", "String", is_id=True, default={"name": "uuid", "args": []})
        assert _column(SQLiteSchemaTemplate(), field) == (
            "text('id').primaryKey().default(sql`(lower(hex(randomblob(16))))`)"
        )

    def test_list_default_raw_array(self) -> None:
        field = scalar("xs", "String", is_list=True, default=["a", "b'c"])
        assert _column(SQLiteSchemaTemplate(), field) == (
            "text('xs').notNull().default(sql`ARRAY['a', 'b''c']`)"
        )


# ===========================================================================
# References
# ===========================================================================


def _author_post(on_delete: Optional[str] = None) -> List[Dict[str, Any]]:
    return [
        model("User", [autoincrement_id(), relation("posts", "Post", "PostToUser", is_list=True)]),
        model(
            "Post",
            [
                autoincrement_id(),
                scalar("authorId", "Int"),
                relation(
                    "author",
                    "User",
                    "PostToUser",
                    from_fields=["authorId"],
                    to_fields=["id"],
                    on_delete=on_delete,
                ),
            ],
        ),
    ]


class TestReferences:

    @pytest.mark.parametrize("template_cls", [MySqlSchemaTemplate, SQLiteSchemaTemplate])
    def test_single_column_inlined(self, template_cls: type) -> None:
        text = _render(template_cls(), _author_post())
        assert (
            ".references(() => User.id, { onDelete: 'cascade', onUpdate: 'cascade' })" in text
        )
        assert "foreignKey" not in text
        assert "(Post) => ({" not in text

    def test_no_action_omits_on_delete_inline(self) -> None:
        text = _render(SQLiteSchemaTemplate(), _author_post("NoAction"))
        assert ".references(() => User.id, { onUpdate: 'cascade' })" in text

    def test_postgres_declares_foreign_key(self) -> None:
        text = _render(PgSchemaTemplate(), _author_post("SetNull"))
        expected = (
            "}, (Post) => ({\n"
            "\t'Post_author_fkey': foreignKey({\n"
            "\t\tname: 'Post_author_fkey',\n"
            "\t\tcolumns: [Post.authorId],\n"
            "\t\tforeignColumns: [User.id]\n"
            "\t})\n"
            "\t\t.onDelete('set null')\n"
            "\t\t.onUpdate('cascade')\n"
            "}));"
        )
        assert expected in text

    def test_composite_foreign_key_not_inlined(self) -> None:
        raw = [
            model(
                "Account",
                [scalar("provider", "String"), scalar("key", "String")],
                primaryKey={"name": None, "fields": ["provider", "key"]},
            ),
            model(
                "Session",
                [
                    autoincrement_id(),
                    scalar("provider", "String"),
                    scalar("key", "String"),
                    relation(
                        "account",
                        "Account",
                        "AccountToSession",
                        from_fields=["provider", "key"],
                        to_fields=["provider", "key"],
                    ),
                ],
            ),
            model("Extra", [autoincrement_id()]),
        ]
        raw[0]["fields"].append(relation("sessions", "Session", "AccountToSession", is_list=True))
        text = _render(SQLiteSchemaTemplate(), copy.deepcopy(raw))
        assert "\t\tcolumns: [Session.provider, Session.key],\n" in text
        assert "\t\tforeignColumns: [Account.provider, Account.key]\n" in text
        assert "import { foreignKey, int, primaryKey, sqliteTable, text } from 'drizzle-orm/sqlite-core'" in text
