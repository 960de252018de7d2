"""
tests/conftest.py
Shared fixtures for the drizzlegen test suite.

Fixtures return plain DMMF-shaped dictionaries (camelCase keys, exactly as a
generator options document carries them) so each test can tweak a copy and
validate it through the real pydantic models.  No mocking; file I/O happens
inside pytest's tmp_path.
"""

from __future__ import annotations

import copy
import logging
import pathlib
import textwrap
from typing import Any, Dict, List, Optional

import pytest
import yaml


# ---------------------------------------------------------------------------
# DMMF building blocks
# ---------------------------------------------------------------------------


def scalar(
    name: str,
    type_: str,
    *,
    required: bool = True,
    is_id: bool = False,
    unique: bool = False,
    is_list: bool = False,
    default: Any = None,
    db_name: Optional[str] = None,
    kind: str = "scalar",
) -> Dict[str, Any]:
    field: Dict[str, Any] = {
        "name": name,
        "kind": kind,
        "type": type_,
        "isList": is_list,
        "isRequired": required,
        "isUnique": unique,
        "isId": is_id,
        "dbName": db_name,
        "hasDefaultValue": default is not None,
    }
    if default is not None:
        field["default"] = default
    return field


def autoincrement_id(type_: str = "Int") -> Dict[str, Any]:
    return scalar("id", type_, is_id=True, default={"name": "autoincrement", "args": []})


def relation(
    name: str,
    target: str,
    relation_name: str,
    *,
    is_list: bool = False,
    required: bool = True,
    from_fields: Optional[List[str]] = None,
    to_fields: Optional[List[str]] = None,
    on_delete: Optional[str] = None,
) -> Dict[str, Any]:
    field: Dict[str, Any] = {
        "name": name,
        "kind": "object",
        "type": target,
        "isList": is_list,
        "isRequired": required,
        "isUnique": False,
        "isId": False,
        "dbName": None,
        "relationName": relation_name,
        "relationFromFields": from_fields or [],
        "relationToFields": to_fields or [],
    }
    if on_delete is not None:
        field["relationOnDelete"] = on_delete
    return field


def model(name: str, fields: List[Dict[str, Any]], **extra: Any) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": name,
        "dbName": None,
        "fields": fields,
        "primaryKey": None,
        "uniqueIndexes": [],
    }
    data.update(extra)
    return data


def options_document(
    models: List[Dict[str, Any]],
    *,
    enums: Optional[List[Dict[str, Any]]] = None,
    provider: Optional[str] = "postgresql",
    schema_text: Optional[str] = None,
) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "dmmf": {"datamodel": {"models": models, "enums": enums or []}},
        "datasources": [{"name": "db", "provider": provider}] if provider else [],
    }
    if schema_text is not None:
        doc["datamodel"] = schema_text
    return doc


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_drizzlegen_logger():
    """The CLI reconfigures the package logger; undo that after every test."""
    yield
    root = logging.getLogger("drizzlegen")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    root.propagate = True


# ---------------------------------------------------------------------------
# Schema fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def role_enum() -> Dict[str, Any]:
    return {
        "name": "Role",
        "dbName": None,
        "values": [{"name": "USER", "dbName": None}, {"name": "ADMIN", "dbName": None}],
    }


@pytest.fixture()
def user_model() -> Dict[str, Any]:
    """``User { id Int @id @default(autoincrement())  email String @unique }``"""
    return model(
        "User",
        [
            autoincrement_id(),
            scalar("email", "String", unique=True),
        ],
    )


@pytest.fixture()
def post_tag_models() -> List[Dict[str, Any]]:
    """Implicit many-to-many between Post and Tag."""
    return [
        model(
            "Post",
            [
                autoincrement_id(),
                scalar("title", "String"),
                relation("tags", "Tag", "PostToTag", is_list=True),
            ],
        ),
        model(
            "Tag",
            [
                autoincrement_id(),
                scalar("name", "String", unique=True),
                relation("posts", "Post", "PostToTag", is_list=True),
            ],
        ),
    ]


@pytest.fixture()
def blog_models() -> List[Dict[str, Any]]:
    """Users, posts, tags and profiles: 1:n, 1:1 and implicit m:n relations."""
    return [
        model(
            "User",
            [
                autoincrement_id(),
                scalar("email", "String", unique=True),
                scalar("name", "String", required=False),
                scalar("role", "Role", kind="enum", default="USER"),
                relation("posts", "Post", "PostToUser", is_list=True),
                relation("profile", "Profile", "ProfileToUser", required=False),
            ],
        ),
        model(
            "Post",
            [
                autoincrement_id(),
                scalar("title", "String"),
                scalar("published", "Boolean", default=False),
                scalar("authorId", "Int"),
                relation(
                    "author",
                    "User",
                    "PostToUser",
                    from_fields=["authorId"],
                    to_fields=["id"],
                ),
                relation("tags", "Tag", "PostToTag", is_list=True),
                scalar("createdAt", "DateTime", default={"name": "now", "args": []}),
            ],
        ),
        model(
            "Tag",
            [
                autoincrement_id(),
                scalar("name", "String", unique=True),
                relation("posts", "Post", "PostToTag", is_list=True),
            ],
        ),
        model(
            "Profile",
            [
                autoincrement_id(),
                scalar("bio", "String", required=False),
                scalar("userId", "Int", unique=True),
                relation(
                    "user",
                    "User",
                    "ProfileToUser",
                    from_fields=["userId"],
                    to_fields=["id"],
                    on_delete="SetNull",
                ),
            ],
            dbName="profiles",
        ),
    ]


@pytest.fixture()
def blog_options(blog_models: List[Dict[str, Any]], role_enum: Dict[str, Any]) -> Dict[str, Any]:
    return options_document(copy.deepcopy(blog_models), enums=[role_enum])


@pytest.fixture()
def blog_schema_text() -> str:
    """Schema source matching ``blog_models``, with native type annotations."""
    return textwrap.dedent(
        """\
        datasource db {
          provider = "postgresql"
          url      = env("DATABASE_URL")
        }

        enum Role {
          USER
          ADMIN
        }

        model User {
          id      Int      @id @default(autoincrement())
          email   String   @unique @db.VarChar(255)
          name    String?
          role    Role     @default(USER)
          posts   Post[]
          profile Profile?
        }

        model Post {
          id        Int      @id @default(autoincrement())
          title     String   @db.Text // headline
          published Boolean  @default(false)
          authorId  Int
          author    User     @relation(fields: [authorId], references: [id])
          tags      Tag[]
          createdAt DateTime @default(now()) @db.Timestamptz(6)
        }

        model Tag {
          id    Int    @id @default(autoincrement())
          name  String @unique
          posts Post[]
        }

        model Profile {
          id     Int     @id @default(autoincrement())
          bio    String?
          userId Int     @unique
          user   User    @relation(fields: [userId], references: [id], onDelete: SetNull)

          @@map("profiles")
        }
        """
    )


@pytest.fixture()
def blog_json_path(blog_options: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the blog options document to a temporary JSON file."""
    import json

    path = tmp_path / "options.json"
    path.write_text(json.dumps(blog_options, indent=2), encoding="utf-8")
    return path


@pytest.fixture()
def blog_yaml_path(blog_options: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the blog options document to a temporary YAML file."""
    path = tmp_path / "options.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(blog_options, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def blog_schema_path(blog_schema_text: str, tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "schema.prisma"
    path.write_text(blog_schema_text, encoding="utf-8")
    return path
