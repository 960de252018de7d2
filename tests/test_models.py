"""
tests/test_models.py
Unit tests for drizzlegen.models (DMMF parsing and configuration).

Tests cover:
- Field variant selection from raw DMMF dictionaries
- Default spec parsing (literals, lists, function calls)
- Native type list form
- Datamodel invariants
- GeneratorConfig precedence and validation
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest
from pydantic import ValidationError

from conftest import model, options_document, relation, scalar
from drizzlegen.models import (
    DatamodelEnum,
    Datamodel,
    EnumField,
    FunctionDefault,
    GeneratorConfig,
    GeneratorOptions,
    Model,
    NativeType,
    NonOwningRelationField,
    OwningRelationField,
    ScalarField,
)


# ===========================================================================
# Field variants
# ===========================================================================


class TestFieldVariants:

    def test_variants_selected_by_kind(self, blog_models: List[Dict[str, Any]]) -> None:
        user = Model.model_validate(blog_models[0])
        kinds = {f.name: type(f) for f in user.fields}
        assert kinds["id"] is ScalarField
        assert kinds["role"] is EnumField
        assert kinds["posts"] is NonOwningRelationField
        assert kinds["profile"] is NonOwningRelationField

    def test_owning_relation(self, blog_models: List[Dict[str, Any]]) -> None:
        post = Model.model_validate(blog_models[1])
        author = post.get_field("author")
        assert isinstance(author, OwningRelationField)
        assert author.relation_from_fields == ["authorId"]
        assert author.relation_to_fields == ["id"]
        assert author.relation_on_delete is None
        assert author.is_relation

    def test_relation_fields_helper(self, blog_models: List[Dict[str, Any]]) -> None:
        post = Model.model_validate(blog_models[1])
        assert [f.name for f in post.relation_fields] == ["author", "tags"]

    def test_snake_case_accepted(self) -> None:
        fld = ScalarField(name="createdAt", type="DateTime", db_name="created_at", is_required=True)
        assert fld.column_name == "created_at"

    def test_models_are_frozen(self, user_model: Dict[str, Any]) -> None:
        user = Model.model_validate(user_model)
        with pytest.raises(ValidationError):
            user.name = "Account"


# ===========================================================================
# Defaults & native types
# ===========================================================================


class TestDefaults:

    def test_function_default(self) -> None:
        fld = ScalarField.model_validate(scalar("id", "Int", default={"name": "uuid", "args": [4]}))
        assert isinstance(fld.default, FunctionDefault)
        assert fld.default_function == "uuid"
        assert fld.default.args == [4]

    @pytest.mark.parametrize("value", [0, False, "", 1.5, "hello"])
    def test_literal_defaults_kept_verbatim(self, value: Any) -> None:
        fld = ScalarField.model_validate(scalar("x", "String", default=value))
        assert fld.default == value
        assert type(fld.default) is type(value)
        assert fld.default_function is None

    def test_list_default(self) -> None:
        fld = ScalarField.model_validate(scalar("xs", "Int", is_list=True, default=[1, 2]))
        assert fld.default == [1, 2]

    def test_native_type_list_form(self) -> None:
        native = NativeType.model_validate(["VarChar", ["255"]])
        assert native.name == "VarChar"
        assert native.int_arg(0) == 255
        assert native.int_arg(1) is None

    def test_native_type_on_dmmf_field(self) -> None:
        data = scalar("email", "String")
        data["nativeType"] = ["Char", [36]]
        fld = ScalarField.model_validate(data)
        assert fld.native_type is not None
        assert fld.native_type.args == ["36"]


# ===========================================================================
# Datamodel & options
# ===========================================================================


class TestDatamodel:

    def test_duplicate_model_names_rejected(self, user_model: Dict[str, Any]) -> None:
        with pytest.raises(ValidationError, match="Duplicate model names"):
            Datamodel.model_validate({"models": [user_model, user_model], "enums": []})

    def test_enum_names(self, role_enum: Dict[str, Any]) -> None:
        enum = DatamodelEnum.model_validate({**role_enum, "dbName": "user_role"})
        assert enum.type_name == "user_role"
        assert enum.value_names == ["USER", "ADMIN"]

    def test_options_accessors(self, blog_options: Dict[str, Any]) -> None:
        options = GeneratorOptions.model_validate(blog_options)
        assert options.provider == "postgresql"
        assert [m.name for m in options.models] == ["User", "Post", "Tag", "Profile"]
        assert [e.name for e in options.enums] == ["Role"]
        assert options.datamodel is None

    def test_options_without_datasources(self, user_model: Dict[str, Any]) -> None:
        options = GeneratorOptions.model_validate(options_document([user_model], provider=None))
        assert options.provider is None

    def test_unknown_dmmf_keys_ignored(self) -> None:
        data = model("A", [scalar("id", "Int", is_id=True)], documentation="doc", isGenerated=False)
        assert Model.model_validate(data).name == "A"

    def test_owning_relation_requires_relation_name(self) -> None:
        data = relation("user", "User", "", from_fields=["userId"], to_fields=["id"])
        with pytest.raises(ValidationError):
            OwningRelationField.model_validate(data)


class TestGeneratorConfig:

    def test_defaults(self) -> None:
        cfg = GeneratorConfig()
        assert cfg.output is None
        assert cfg.default_output == "./drizzle"
        assert cfg.file_name == "schema.ts"
        assert cfg.strict_types is False

    def test_file_name_must_be_ts(self) -> None:
        with pytest.raises(ValidationError, match=".ts"):
            GeneratorConfig(file_name="schema.js")

    def test_unknown_setting_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GeneratorConfig(package_name="x")

    def test_from_options_reads_generator_output(self, blog_options: Dict[str, Any]) -> None:
        blog_options["generator"] = {"output": {"value": "./src/db", "fromEnvVar": None}}
        options = GeneratorOptions.model_validate(blog_options)
        cfg = GeneratorConfig.from_options(options)
        assert cfg.output == "./src/db"

    def test_overrides_win_and_none_is_ignored(self, blog_options: Dict[str, Any]) -> None:
        blog_options["generator"] = {"output": {"value": "./src/db"}}
        options = GeneratorOptions.model_validate(blog_options)
        cfg = GeneratorConfig.from_options(options, output="./out.ts", provider=None)
        assert cfg.output == "./out.ts"
        assert cfg.provider is None

    def test_generator_block_extra_keys_ignored(self, blog_options: Dict[str, Any]) -> None:
        blog_options["generator"] = {"name": "drizzle", "config": {"flag": "1"}, "output": None}
        options = GeneratorOptions.model_validate(blog_options)
        assert GeneratorConfig.from_options(options).output is None
        assert not hasattr(options.generator, "config")
