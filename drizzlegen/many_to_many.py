# File: drizzlegen/many_to_many.py
"""
drizzlegen - Implicit Many-to-Many Synthesizer
================================================
An implicit many-to-many relation is a pair of list relation fields sharing a
relation name, with no side holding foreign keys::

    model Post { id Int @id  tags  Tag[]  }
    model Tag  { id Int @id  posts Post[] }

The database still needs a junction table.  This module makes it explicit:

    1. Collect candidate fields and group them by relation name.
    2. Sort each pair by referenced model name.  The order fixes the join
       model name (``PostToTag``) and the physical columns ``A`` / ``B``,
       so repeated runs produce identical output.  A further relation
       between the same pair gets ``PostToTag_<relationName>``.
    3. Replace each original field by a list relation to the join model.
    4. Build the join model: two scalar FK fields and two owning relations.

The synthesizer is a pure function: it returns new model lists and never
mutates its input.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Set, Tuple

from drizzlegen.errors import SchemaLookupError
from drizzlegen.models import (
    FieldBase,
    Model,
    NonOwningRelationField,
    OwningRelationField,
    RelationField,
    ScalarField,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("drizzlegen.many_to_many")

_COLUMN_A: str = "A"
_COLUMN_B: str = "B"


@dataclass(frozen=True)
class _Endpoint:
    """A candidate field together with the model declaring it."""

    owner: str
    field: RelationField

    @property
    def target(self) -> str:
        return self.field.type

    @property
    def sort_key(self) -> Tuple[str, str, str]:
        return (self.target, self.owner, self.field.name)


@dataclass(frozen=True)
class ManyToManyResult:
    """Output of ``synthesize_join_models``."""

    models: List[Model] = field(default_factory=list)
    join_models: List[Model] = field(default_factory=list)

    @property
    def all_models(self) -> List[Model]:
        """Rewritten input models followed by the synthesized join models."""
        return [*self.models, *self.join_models]


# ---------------------------------------------------------------------------
# Candidate detection
# ---------------------------------------------------------------------------


def _collect_candidates(models: Sequence[Model]) -> "OrderedDict[str, List[_Endpoint]]":
    """
    Group implicit many-to-many endpoints by relation name.

    A relation name is disqualified as soon as one of its fields is not a
    list or owns foreign keys.
    """
    disqualified: Set[str] = set()
    groups: "OrderedDict[str, List[_Endpoint]]" = OrderedDict()

    for model in models:
        for fld in model.relation_fields:
            if isinstance(fld, OwningRelationField) or not fld.is_list:
                disqualified.add(fld.relation_name)
                continue
            groups.setdefault(fld.relation_name, []).append(_Endpoint(model.name, fld))

    for name in disqualified:
        groups.pop(name, None)
    return groups


def _find_id_field(models: Sequence[Model], model_name: str) -> FieldBase:
    for model in models:
        if model.name == model_name:
            id_field = model.id_field
            if id_field is None:
                raise SchemaLookupError(
                    f"No ID field on model {model_name} referenced by a many-to-many relation"
                )
            return id_field
    raise SchemaLookupError(
        f"Could not find model {model_name} referenced by a many-to-many relation"
    )


# ---------------------------------------------------------------------------
# Join model construction
# ---------------------------------------------------------------------------


def _side_labels(first: str, second: str) -> Tuple[str, str]:
    """Field-name stems for the A and B sides; self-relations get a suffix."""
    if first == second:
        return f"{first}A", f"{second}B"
    return first, second


def _join_fields(
    join_name: str,
    sides: Sequence[Tuple[str, str, str]],
    models: Sequence[Model],
) -> List[FieldBase]:
    """
    Build the four join-model fields.

    *sides* holds ``(label, model_name, column)`` for the A side then the B side.
    """
    fields: List[FieldBase] = []
    for label, model_name, column in sides:
        id_field: FieldBase = _find_id_field(models, model_name)
        fk_name: str = f"{label}Id"
        fields.append(
            ScalarField(
                name=fk_name,
                db_name=column,
                type=id_field.type,
                is_required=True,
            )
        )
        fields.append(
            OwningRelationField(
                name=label,
                type=model_name,
                is_required=True,
                relation_name=f"{label}To{join_name}",
                relation_from_fields=[fk_name],
                relation_to_fields=[id_field.name],
            )
        )
    return fields


def _rewrite_field(fld: RelationField, join_name: str, label: str) -> NonOwningRelationField:
    return NonOwningRelationField(
        name=fld.name,
        db_name=fld.db_name,
        type=join_name,
        is_list=True,
        is_required=fld.is_required,
        relation_name=f"{label}To{join_name}",
    )


def synthesize_join_models(models: Sequence[Model]) -> ManyToManyResult:
    """
    Make every implicit many-to-many relation explicit.

    Args:
        models: Canonical models (left untouched).

    Returns:
        ``ManyToManyResult`` whose ``models`` mirror the input order with the
        many-to-many fields replaced, and whose ``join_models`` are ordered by
        the first appearance of their relation name.

    Raises:
        SchemaLookupError: If a referenced model or its id field is missing.
    """
    groups = _collect_candidates(models)

    # (owner model, field name) → replacement field
    replacements: Dict[Tuple[str, str], NonOwningRelationField] = {}
    join_models: List[Model] = []
    taken: Set[str] = {m.name for m in models}

    for relation_name, endpoints in groups.items():
        if len(endpoints) != 2:
            logger.debug(
                "Relation '%s' has %d list endpoint(s); leaving it untouched.",
                relation_name,
                len(endpoints),
            )
            continue

        first_ep, second_ep = sorted(endpoints, key=lambda ep: ep.sort_key)
        first: str = first_ep.target
        second: str = second_ep.target
        join_name: str = f"{first}To{second}"
        if join_name in taken:
            # A second relation between the same pair: qualify with the relation name.
            join_name = f"{join_name}_{relation_name}"
        taken.add(join_name)
        label_a, label_b = _side_labels(first, second)

        fields: List[FieldBase] = _join_fields(
            join_name,
            [(label_a, first, _COLUMN_A), (label_b, second, _COLUMN_B)],
            models,
        )

        # The endpoint targeting ``first`` lives on the B side and vice versa.
        replacements[(first_ep.owner, first_ep.field.name)] = _rewrite_field(
            first_ep.field, join_name, label_b
        )
        replacements[(second_ep.owner, second_ep.field.name)] = _rewrite_field(
            second_ep.field, join_name, label_a
        )

        join_models.append(
            Model(
                name=join_name,
                db_name=f"_{relation_name}",
                fields=fields,
                is_join_model=True,
            )
        )
        logger.info(
            "Synthesized join model %s for relation '%s'.", join_name, relation_name
        )

    if not replacements:
        return ManyToManyResult(models=list(models), join_models=[])

    rewritten: List[Model] = []
    for model in models:
        new_fields: List[FieldBase] = [
            replacements.get((model.name, fld.name), fld) for fld in model.fields
        ]
        if any(a is not b for a, b in zip(new_fields, model.fields)):
            rewritten.append(model.model_copy(update={"fields": new_fields}))
        else:
            rewritten.append(model)

    return ManyToManyResult(models=rewritten, join_models=join_models)


__all__: List[str] = ["ManyToManyResult", "synthesize_join_models"]
