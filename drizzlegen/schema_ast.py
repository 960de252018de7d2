# File: drizzlegen/schema_ast.py
"""
drizzlegen - Schema Source Index
=================================
A light reader over the original schema source text.  The DMMF does not
always carry native-type annotations, so the generator looks them up by
model / field name in the text itself::

    model Event {
      id      Int      @id @default(autoincrement())
      startAt DateTime @db.Timestamptz(6)
      day     DateTime @db.Date
    }

Only what the translation needs is indexed: model (and view) blocks, their
field names and each field's ``@db.<Name>(<args>)`` attribute.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from drizzlegen.errors import SchemaLookupError
from drizzlegen.models import NativeType

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("drizzlegen.schema_ast")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_BLOCK_START_RE: re.Pattern[str] = re.compile(r"^\s*(model|view)\s+(\w+)\s*\{\s*$")
_BLOCK_END_RE: re.Pattern[str] = re.compile(r"^\s*\}\s*$")
_FIELD_RE: re.Pattern[str] = re.compile(r"^\s*(\w+)\s+([\w.]+(?:\([^)]*\))?(?:\[\])?\??)(.*)$")
_NATIVE_ATTR_RE: re.Pattern[str] = re.compile(r"@db\.(\w+)(?:\(([^)]*)\))?")
_LINE_COMMENT_RE: re.Pattern[str] = re.compile(r"""("(?:[^"\\]|\\.)*")|//.*$""")


def _strip_comment(line: str) -> str:
    """Remove a trailing ``//`` comment, leaving string literals intact."""
    return _LINE_COMMENT_RE.sub(lambda m: m.group(1) or "", line)


def _parse_args(raw: Optional[str]) -> List[str]:
    if not raw or not raw.strip():
        return []
    return [part.strip().strip("\"'") for part in raw.split(",")]


class PrismaSchemaIndex:
    """
    Model → field → native type lookup built once per run.

    Usage::

        index = PrismaSchemaIndex.from_text(schema_text)
        index.require_model("Event")
        index.native_type("Event", "startAt")   # NativeType(name='Timestamptz', args=['6'])
    """

    __slots__ = ("_models",)

    def __init__(self, models: Dict[str, Dict[str, Optional[NativeType]]]) -> None:
        self._models: Dict[str, Dict[str, Optional[NativeType]]] = models

    @classmethod
    def from_text(cls, text: str) -> "PrismaSchemaIndex":
        models: Dict[str, Dict[str, Optional[NativeType]]] = {}
        current: Optional[Dict[str, Optional[NativeType]]] = None

        for raw_line in text.splitlines():
            line: str = _strip_comment(raw_line).rstrip()
            if not line.strip():
                continue

            if current is None:
                start = _BLOCK_START_RE.match(line)
                if start:
                    current = models.setdefault(start.group(2), {})
                continue

            if _BLOCK_END_RE.match(line):
                current = None
                continue

            stripped: str = line.strip()
            if stripped.startswith("@@"):
                continue

            match = _FIELD_RE.match(line)
            if not match:
                continue

            native: Optional[NativeType] = None
            attr = _NATIVE_ATTR_RE.search(match.group(3))
            if attr:
                native = NativeType(name=attr.group(1), args=_parse_args(attr.group(2)))
            current[match.group(1)] = native

        logger.debug(
            "Indexed schema source: %d model(s), %d field(s).",
            len(models),
            sum(len(fields) for fields in models.values()),
        )
        return cls(models)

    @property
    def model_names(self) -> List[str]:
        return list(self._models)

    def has_model(self, model_name: str) -> bool:
        return model_name in self._models

    def require_model(self, model_name: str) -> None:
        if model_name not in self._models:
            raise SchemaLookupError(f"Model {model_name} not found in schema")

    def native_type(self, model_name: str, field_name: str) -> Optional[NativeType]:
        """
        Return the ``@db.*`` annotation of *model_name.field_name*, if any.

        Raises:
            SchemaLookupError: If the model or the field is not in the source.
        """
        self.require_model(model_name)
        fields: Dict[str, Optional[NativeType]] = self._models[model_name]
        if field_name not in fields:
            raise SchemaLookupError(
                f"Field {field_name} of model {model_name} not found in schema"
            )
        return fields[field_name]


__all__: List[str] = ["PrismaSchemaIndex"]
