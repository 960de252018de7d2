# File: drizzlegen/errors.py
"""
drizzlegen - Generator Errors
==============================
Every failure the translation engine can raise derives from
``GeneratorError``.  None of them is caught inside the core: they travel up
to the host (CLI or embedding program), which aborts the run before any file
is written.

Taxonomy::

    GeneratorError
    ├── UnsupportedFeatureError     binary columns, strict-mode type drops
    ├── UnknownDialectError         missing / unsupported datasource provider
    ├── SchemaLookupError           model, field or id field cannot be found
    └── UnknownCascadeActionError   delete action outside the known set
"""

from __future__ import annotations

import logging
from typing import List

logger: logging.Logger = logging.getLogger("drizzlegen.errors")


class GeneratorError(Exception):
    """Base error carrying a human-readable message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __str__(self) -> str:
        return self.message


class UnsupportedFeatureError(GeneratorError):
    """The target dialect cannot express a column the schema declares."""


class UnknownDialectError(GeneratorError):
    """The datasource provider is missing or not one of the supported dialects."""


class SchemaLookupError(GeneratorError):
    """A referenced model or field does not exist in the model list / schema text."""


class UnknownCascadeActionError(GeneratorError):
    """A relation declares a delete action the dialect cannot translate."""


__all__: List[str] = [
    "GeneratorError",
    "UnsupportedFeatureError",
    "UnknownDialectError",
    "SchemaLookupError",
    "UnknownCascadeActionError",
]

logger.debug("drizzlegen.errors loaded.")
