"""Tests for core types, column descriptors and the schema registry."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from pawql import (
    ArrayType,
    ColumnDefinition,
    EnumType,
    FilterOperator,
    JsonType,
    PrimitiveKind,
    PrimitiveType,
    SchemaRegistry,
    TableNotFoundError,
    UnsupportedColumnTypeError,
    UuidType,
    array_type,
    boolean,
    date,
    enum_type,
    json,
    number,
    string,
    uuid,
)
from pawql.schema.columns import resolve_column_type, to_column_definition


class TestFilterOperator:
    """Tests for FilterOperator enum."""

    def test_all_operators_exist(self):
        """All supported operators should exist."""
        assert FilterOperator.values() == [
            "=",
            "!=",
            ">",
            "<",
            ">=",
            "<=",
            "LIKE",
            "ILIKE",
            "IN",
            "NOT IN",
            "IS",
            "IS NOT",
        ]

    def test_from_string(self):
        """Can create FilterOperator from string."""
        assert FilterOperator("NOT IN") == FilterOperator.NOT_IN


class TestColumnTypes:
    """Tests for column type descriptors."""

    def test_primitive_kinds(self):
        """Primitive helpers carry their kind."""
        assert PrimitiveKind.values() == ["number", "string", "boolean", "date"]
        assert number.kind == PrimitiveKind.NUMBER
        assert date.kind == PrimitiveKind.DATE

    def test_builtins_resolve(self):
        """Python builtins stand in for primitive descriptors."""
        assert resolve_column_type(int) == number
        assert resolve_column_type(str) == string
        assert resolve_column_type(bool) == boolean
        assert resolve_column_type(datetime) == date

    def test_brands(self):
        """Each descriptor is tagged with its brand."""
        assert json().brand == "json"
        assert uuid.brand == "uuid"
        assert enum_type("a").brand == "enum"
        assert array_type(str).brand == "array"
        assert isinstance(json(), JsonType)
        assert isinstance(uuid, UuidType)

    def test_enum_values(self):
        """Enum keeps its values in order."""
        role = enum_type("admin", "user", "guest")
        assert isinstance(role, EnumType)
        assert role.values == ("admin", "user", "guest")

    def test_enum_requires_values(self):
        """An enum without values is invalid."""
        with pytest.raises(ValidationError):
            enum_type()

    def test_array_item_type(self):
        """Array item types are primitives; builtins are accepted."""
        tags = array_type(str)
        assert isinstance(tags, ArrayType)
        assert tags.item_type == string
        assert ArrayType(item_type=int).item_type == number

    def test_array_of_non_primitive(self):
        """Arrays of JSON or arrays are not supported."""
        with pytest.raises(UnsupportedColumnTypeError):
            array_type(array_type(str))
        with pytest.raises(UnsupportedColumnTypeError):
            array_type(json())

    def test_descriptors_are_frozen(self):
        """Descriptors cannot be changed after construction."""
        role = enum_type("a")
        with pytest.raises(ValidationError):
            role.values = ("b",)

    def test_unsupported_type(self):
        """Unknown types raise with the list of valid ones."""
        with pytest.raises(UnsupportedColumnTypeError) as exc_info:
            resolve_column_type(float, "price")
        assert exc_info.value.column_name == "price"
        assert "number" in exc_info.value.to_dict()["context"]["valid_types"]


class TestColumnDefinition:
    """Tests for ColumnDefinition model."""

    def test_defaults(self):
        """A bare definition is NOT NULL with no key and no default."""
        definition = ColumnDefinition(type=int)
        assert definition.type == PrimitiveType(kind=PrimitiveKind.NUMBER)
        assert definition.nullable is False
        assert definition.primary_key is False
        assert definition.has_default is False

    def test_explicit_none_default(self):
        """default=None counts as a given default."""
        assert ColumnDefinition(type=str, default=None).has_default is True

    def test_enum_default_must_be_allowed(self):
        """Enum defaults must be one of the values."""
        with pytest.raises(ValidationError):
            ColumnDefinition(type=enum_type("a", "b"), default="c")

    def test_from_dict(self):
        """Dicts with a type key become definitions."""
        definition = to_column_definition({"type": uuid, "primary_key": True}, "id")
        assert definition.type == uuid
        assert definition.primary_key is True

    def test_dict_without_type(self):
        """A dict without a type key is rejected."""
        with pytest.raises(UnsupportedColumnTypeError):
            to_column_definition({"nullable": True}, "x")

    def test_passthrough(self):
        """Existing definitions are returned unchanged."""
        definition = ColumnDefinition(type=string, nullable=True)
        assert to_column_definition(definition) is definition


class TestSchemaRegistry:
    """Tests for the schema registry."""

    @pytest.fixture
    def registry(self) -> SchemaRegistry:
        return SchemaRegistry(
            {
                "users": {"id": uuid, "name": str, "age": {"type": int, "nullable": True}},
                "posts": {"id": int, "title": str},
            }
        )

    def test_tables_in_order(self, registry: SchemaRegistry):
        """Tables keep declaration order."""
        assert registry.tables == ["users", "posts"]
        assert list(registry) == ["users", "posts"]
        assert len(registry) == 2

    def test_columns_normalized(self, registry: SchemaRegistry):
        """Every column becomes a ColumnDefinition, in order."""
        columns = registry.get_table("users")
        assert list(columns) == ["id", "name", "age"]
        assert all(isinstance(c, ColumnDefinition) for c in columns.values())
        assert columns["age"].nullable is True

    def test_membership(self, registry: SchemaRegistry):
        """Can check whether a table is declared."""
        assert registry.has_table("users")
        assert "posts" in registry
        assert "comments" not in registry

    def test_unknown_table(self, registry: SchemaRegistry):
        """Unknown tables list the available ones."""
        with pytest.raises(TableNotFoundError) as exc_info:
            registry.get_table("comments")
        assert "Available tables: users, posts" in str(exc_info.value)
        assert exc_info.value.available_tables == ["users", "posts"]

    def test_read_only(self, registry: SchemaRegistry):
        """Tables cannot be modified through the registry."""
        with pytest.raises(TypeError):
            registry.get_table("users")["email"] = ColumnDefinition(type=str)  # type: ignore[index]

    def test_unsupported_column_fails_early(self):
        """Unsupported column types fail when the registry is built."""
        with pytest.raises(UnsupportedColumnTypeError) as exc_info:
            SchemaRegistry({"t": {"price": float}})
        assert exc_info.value.column_name == "price"
