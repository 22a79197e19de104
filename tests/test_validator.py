import pytest

from deferred_tools.abstractions.dto.tools import ToolDefinition
from deferred_tools.exceptions import SchemaValidationError
from deferred_tools.orchestration.catalog import ToolCatalog
from deferred_tools.orchestration.validator import Validator


@pytest.fixture
def validator(catalog):
    return Validator(catalog)


class TestSearchScenario:
    def test_missing_required_query(self, validator):
        result = validator.validate("search", {})
        assert result.valid is False
        assert "query" in result.error

    def test_valid_query(self, validator):
        result = validator.validate("search", {"query": "flutter"})
        assert result.valid is True
        assert result.error is None

    def test_wrong_kind_names_property_and_kinds(self, validator):
        result = validator.validate("search", {"query": 42})
        assert not result.valid
        assert result.error == "Property 'query' expected string, got number"


def test_unknown_tool_is_invalid(validator):
    result = validator.validate("nope", {"x": 1})
    assert not result.valid
    assert "not found" in result.error


def test_non_object_arguments(validator):
    result = validator.validate("search", ["flutter"])
    assert not result.valid
    assert "object" in result.error


def test_required_checked_in_declaration_order(validator):
    result = validator.validate("translate", {})
    assert result.error == "Missing required property 'text'"


def test_required_checked_before_types(validator):
    # 'text' has the wrong kind but 'target' is missing: missing wins
    result = validator.validate("translate", {"text": 1})
    assert result.error == "Missing required property 'target'"


def test_first_type_mismatch_in_declaration_order(validator):
    result = validator.validate("calc", {"b": "two", "a": "one"})
    assert result.error == "Property 'a' expected number, got string"


def test_integer_kind(validator):
    assert validator.validate("search", {"query": "x", "limit": 3}).valid
    bad = validator.validate("search", {"query": "x", "limit": 2.5})
    assert bad.error == "Property 'limit' expected integer, got number"


def test_boolean_is_not_a_number(validator):
    result = validator.validate("calc", {"a": True, "b": 1})
    assert result.error == "Property 'a' expected number, got boolean"


def test_undeclared_property_flagged_when_forbidden(validator):
    result = validator.validate("weather", {"city": "Oslo", "zip": "0150"})
    assert result.error == "Unexpected property 'zip'"


def test_undeclared_property_allowed_by_default(validator):
    assert validator.validate("search", {"query": "x", "lang": "en"}).valid


def test_nested_objects_and_arrays():
    catalog = ToolCatalog([
        ToolDefinition(
            name="book",
            description="Book a trip",
            parameters={
                "type": "object",
                "properties": {
                    "traveler": {
                        "type": "object",
                        "properties": {"name": {"type": "string"}, "age": {"type": "integer"}},
                        "required": ["name"],
                    },
                    "stops": {"type": "array", "items": {"type": "string"}},
                    "note": {"type": ["string", "null"]},
                },
                "required": ["traveler"],
            },
        )
    ])
    validator = Validator(catalog)

    assert validator.validate("book", {"traveler": {"name": "Ana"}, "stops": ["a", "b"], "note": None}).valid
    assert validator.validate("book", {"traveler": {}}).error == "Missing required property 'traveler.name'"
    assert (
        validator.validate("book", {"traveler": {"name": "Ana", "age": "x"}}).error
        == "Property 'traveler.age' expected integer, got string"
    )
    assert (
        validator.validate("book", {"traveler": {"name": "Ana"}, "stops": ["a", 3]}).error
        == "Property 'stops[1]' expected string, got number"
    )
    assert (
        validator.validate("book", {"traveler": {"name": "Ana"}, "note": 5}).error
        == "Property 'note' expected string or null, got number"
    )


def test_validation_is_deterministic(validator):
    args = {"city": 7, "zip": 1}
    results = {validator.validate("weather", args) for _ in range(20)}
    assert len(results) == 1


def test_invalid_result_converts_to_schema_validation_error(validator):
    error = validator.validate("search", {}).to_error()
    assert isinstance(error, SchemaValidationError)
    assert error.tool_name == "search"
    assert "query" in error.reason
    assert validator.validate("search", {"query": "x"}).to_error() is None


def test_validation_follows_catalog_generation(validator, catalog):
    assert validator.validate("search", {"query": "x"}).valid
    catalog.invalidate()
    assert not validator.validate("search", {"query": "x"}).valid


def test_nested_required_without_declared_properties():
    catalog = ToolCatalog([
        ToolDefinition(
            name="query",
            description="Filtered query",
            parameters={
                "type": "object",
                "properties": {"filter": {"type": "object", "required": ["field"]}},
                "required": ["filter"],
            },
        )
    ])
    validator = Validator(catalog)

    result = validator.validate("query", {"filter": {}})

    assert not result.valid
    assert result.error == "Missing required property 'filter.field'"
    assert validator.validate("query", {"filter": {"field": "name", "op": "eq"}}).valid
