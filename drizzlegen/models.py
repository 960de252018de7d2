# File: drizzlegen/models.py
"""
drizzlegen - Core Data Models
==============================
Pydantic V2 models for the canonical (dialect-agnostic) data model the
generator consumes.  The shapes follow Prisma's DMMF JSON document: keys are
camelCase on the wire (``dbName``, ``isList``, ``relationFromFields``) and
snake_case in Python.  Both spellings are accepted on input.

All input models are frozen.  The many-to-many synthesizer derives new models
with ``model_copy(update=...)`` instead of mutating the canonical ones.

Fields are a tagged variant::

    ScalarField              kind = "scalar" | "unsupported"
    EnumField                kind = "enum"
    OwningRelationField      kind = "object", relationFromFields non-empty
    NonOwningRelationField   kind = "object", no relationFromFields

Only the attributes meaningful to a variant live on it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    Tag,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("drizzlegen.models")

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Dialect(str, Enum):
    """Target SQL dialects."""

    POSTGRESQL = "postgresql"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class ReferentialAction(str, Enum):
    """Delete behaviours a relation may declare in the source schema."""

    CASCADE = "Cascade"
    SET_NULL = "SetNull"
    SET_DEFAULT = "SetDefault"
    RESTRICT = "Restrict"
    NO_ACTION = "NoAction"


# ---------------------------------------------------------------------------
# Shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)


# ---------------------------------------------------------------------------
# Default values
# ---------------------------------------------------------------------------

LiteralValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr]


class FunctionDefault(BaseModel):
    """A default produced by a named function, e.g. ``now()`` or ``uuid(4)``."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Function name.")
    args: List[Any] = Field(default_factory=list, description="Call arguments.")


DefaultSpec = Union[FunctionDefault, List[LiteralValue], LiteralValue]


class NativeType(BaseModel):
    """
    A database-specific column annotation (``@db.VarChar(255)``).

    Accepts the DMMF list form ``["VarChar", ["255"]]`` as well as a mapping.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1)
    args: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _from_dmmf_pair(cls, data: Any) -> Any:
        if isinstance(data, (list, tuple)):
            if not data:
                raise ValueError("Native type list must contain at least a name.")
            args: Any = data[1] if len(data) > 1 else []
            return {"name": data[0], "args": list(args or [])}
        return data

    @field_validator("args", mode="before")
    @classmethod
    def _stringify_args(cls, v: Any) -> List[str]:
        return [str(a) for a in (v or [])]

    @property
    def key(self) -> str:
        """Lower-cased name used for dialect lookups."""
        return self.name.lower()

    def int_arg(self, index: int) -> Optional[int]:
        """Return argument *index* as an int, or None when absent / non-numeric."""
        if index >= len(self.args):
            return None
        raw: str = self.args[index].strip()
        return int(raw) if raw.isdigit() else None


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------


class FieldBase(BaseModel):
    """Attributes shared by every field variant."""

    model_config = _SHARED_CONFIG

    tag: ClassVar[str] = ""

    name: str = Field(..., min_length=1, description="Logical field name.")
    db_name: Optional[str] = Field(default=None, description="Physical column name.")
    type: str = Field(..., min_length=1, description="Scalar type, enum or model name.")
    is_list: bool = False
    is_required: bool = False
    is_unique: bool = False
    is_id: bool = False

    @property
    def column_name(self) -> str:
        return self.db_name or self.name

    @property
    def is_relation(self) -> bool:
        return False


class ScalarField(FieldBase):
    tag: ClassVar[str] = "scalar"

    kind: Literal["scalar", "unsupported"] = "scalar"
    default: Optional[DefaultSpec] = None
    native_type: Optional[NativeType] = None

    @property
    def default_function(self) -> Optional[str]:
        """Name of the default function, when the default is a function call."""
        if isinstance(self.default, FunctionDefault):
            return self.default.name
        return None


class EnumField(FieldBase):
    tag: ClassVar[str] = "enum"

    kind: Literal["enum"] = "enum"
    default: Optional[DefaultSpec] = None


class OwningRelationField(FieldBase):
    """Relation endpoint that holds the foreign key columns."""

    tag: ClassVar[str] = "owning"

    kind: Literal["object"] = "object"
    relation_name: str = Field(..., min_length=1)
    relation_from_fields: List[str] = Field(..., min_length=1)
    relation_to_fields: List[str] = Field(default_factory=list)
    relation_on_delete: Optional[str] = Field(
        default=None,
        description="Raw delete action; validated when the constraint is built.",
    )

    @property
    def is_relation(self) -> bool:
        return True


class NonOwningRelationField(FieldBase):
    """Back side of a relation (list side of 1:n, or either side of implicit m:n)."""

    tag: ClassVar[str] = "non_owning"

    kind: Literal["object"] = "object"
    relation_name: str = Field(..., min_length=1)

    @property
    def is_relation(self) -> bool:
        return True


RelationField = Union[OwningRelationField, NonOwningRelationField]


def _field_tag(value: Any) -> str:
    """Pick the field variant for raw DMMF data or an existing field instance."""
    if isinstance(value, FieldBase):
        return value.tag

    kind: Any = value.get("kind")
    if kind == "object":
        from_fields: Any = value.get("relationFromFields", value.get("relation_from_fields"))
        return "owning" if from_fields else "non_owning"
    if kind == "enum":
        return "enum"
    return "scalar"


AnyField = Annotated[
    Union[
        Annotated[ScalarField, Tag("scalar")],
        Annotated[EnumField, Tag("enum")],
        Annotated[OwningRelationField, Tag("owning")],
        Annotated[NonOwningRelationField, Tag("non_owning")],
    ],
    Discriminator(_field_tag),
]


# ---------------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------------


class PrimaryKey(BaseModel):
    """Explicit (usually composite) primary key."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = None
    fields: List[str] = Field(..., min_length=1)


class UniqueIndex(BaseModel):
    """Compound unique index."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = None
    fields: List[str] = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Models & enums
# ---------------------------------------------------------------------------


class Model(BaseModel):
    """A table in the canonical data model."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Logical model name.")
    db_name: Optional[str] = Field(default=None, description="Physical table name.")
    fields: List[AnyField] = Field(default_factory=list)
    primary_key: Optional[PrimaryKey] = None
    unique_indexes: List[UniqueIndex] = Field(default_factory=list)
    is_join_model: bool = Field(
        default=False,
        description="True for junction tables created by the many-to-many synthesizer.",
    )

    @property
    def table_name(self) -> str:
        return self.db_name or self.name

    @property
    def id_field(self) -> Optional[FieldBase]:
        for fld in self.fields:
            if fld.is_id:
                return fld
        return None

    @property
    def relation_fields(self) -> List[RelationField]:
        return [f for f in self.fields if isinstance(f, (OwningRelationField, NonOwningRelationField))]

    def get_field(self, name: str) -> Optional[FieldBase]:
        for fld in self.fields:
            if fld.name == name:
                return fld
        return None

    def __repr__(self) -> str:
        return f"<Model {self.name} ({len(self.fields)} fields)>"


class EnumValue(BaseModel):
    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1)
    db_name: Optional[str] = None

    @property
    def value(self) -> str:
        return self.db_name or self.name


class DatamodelEnum(BaseModel):
    """A named, ordered set of values."""

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1)
    db_name: Optional[str] = None
    values: List[EnumValue] = Field(default_factory=list)

    @property
    def type_name(self) -> str:
        return self.db_name or self.name

    @property
    def value_names(self) -> List[str]:
        return [v.value for v in self.values]


class Datamodel(BaseModel):
    model_config = _SHARED_CONFIG

    models: List[Model] = Field(default_factory=list)
    enums: List[DatamodelEnum] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_model_names(self) -> "Datamodel":
        names: List[str] = [m.name for m in self.models]
        if len(names) != len(set(names)):
            dupes: List[str] = sorted({n for n in names if names.count(n) > 1})
            raise ValueError(f"Duplicate model names: {dupes}")
        return self


class DMMFDocument(BaseModel):
    model_config = _SHARED_CONFIG

    datamodel: Datamodel


# ---------------------------------------------------------------------------
# Generator options (the document handed to a generator run)
# ---------------------------------------------------------------------------


class Datasource(BaseModel):
    model_config = _SHARED_CONFIG

    name: str = "db"
    provider: Optional[str] = None


class EnvValue(BaseModel):
    """A config value given literally or through an environment variable."""

    model_config = _SHARED_CONFIG

    value: Optional[str] = None
    from_env_var: Optional[str] = None


class GeneratorBlock(BaseModel):
    model_config = _SHARED_CONFIG

    name: str = "drizzle"
    output: Optional[EnvValue] = None


class GeneratorOptions(BaseModel):
    """
    Everything one generation run consumes: the DMMF, the datasources and,
    optionally, the original schema source text (used for ``@db.*`` lookups).
    """

    model_config = _SHARED_CONFIG

    dmmf: DMMFDocument
    datasources: List[Datasource] = Field(default_factory=list)
    datamodel: Optional[str] = Field(
        default=None, description="Original schema source text."
    )
    generator: GeneratorBlock = Field(default_factory=GeneratorBlock)

    @property
    def provider(self) -> Optional[str]:
        return self.datasources[0].provider if self.datasources else None

    @property
    def models(self) -> List[Model]:
        return self.dmmf.datamodel.models

    @property
    def enums(self) -> List[DatamodelEnum]:
        return self.dmmf.datamodel.enums


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------


class GeneratorConfig(BaseModel):
    """
    Settings for one run of the generator.

    Precedence (lowest first): field defaults, the options document's
    ``generator.output`` block, explicit overrides (CLI flags).
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
        use_enum_values=True,
        extra="forbid",
    )

    output: Optional[str] = Field(
        default=None,
        description="Output directory, or a file path ending with '.ts'.",
    )
    output_env_var: Optional[str] = Field(
        default=None,
        description="Environment variable consulted when 'output' is unset.",
    )
    default_output: str = Field(
        default="./drizzle", min_length=1, description="Fallback output directory."
    )
    file_name: str = Field(
        default="schema.ts", min_length=1, description="File name used for directory outputs."
    )
    provider: Optional[str] = Field(
        default=None, description="Overrides the first datasource's provider."
    )
    strict_types: bool = Field(
        default=False,
        description="Fail instead of dropping columns whose type has no mapping.",
    )
    dry_run: bool = Field(default=False, description="Render without writing.")

    @field_validator("file_name")
    @classmethod
    def _ts_file_name(cls, v: str) -> str:
        if not v.endswith(".ts"):
            raise ValueError(f"file_name must end with '.ts', got {v!r}.")
        return v

    @classmethod
    def from_options(
        cls,
        options: GeneratorOptions,
        **overrides: Any,
    ) -> "GeneratorConfig":
        """Build a config from the options document plus non-None overrides."""
        data: Dict[str, Any] = {}
        output: Optional[EnvValue] = options.generator.output
        if output is not None:
            data["output"] = output.value
            data["output_env_var"] = output.from_env_var
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)


__all__: List[str] = [
    "Dialect",
    "ReferentialAction",
    "LiteralValue",
    "FunctionDefault",
    "DefaultSpec",
    "NativeType",
    "FieldBase",
    "ScalarField",
    "EnumField",
    "OwningRelationField",
    "NonOwningRelationField",
    "RelationField",
    "AnyField",
    "PrimaryKey",
    "UniqueIndex",
    "Model",
    "EnumValue",
    "DatamodelEnum",
    "Datamodel",
    "DMMFDocument",
    "Datasource",
    "EnvValue",
    "GeneratorBlock",
    "GeneratorOptions",
    "GeneratorConfig",
]

logger.debug("drizzlegen.models loaded: %d public symbols.", len(__all__))
