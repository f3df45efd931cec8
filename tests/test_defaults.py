from collections import ChainMap
import copy
import logging

from value_schema import UNDEFINED, get_valid_value_or_default, is_valid


def _string_property_schema(**extra) -> dict:
    schema = {
        "type": "object",
        "required": ["test"],
        "properties": {"test": {"type": "string", "default": "default"}},
    }
    schema.update(extra)
    return schema


def check_defaults(schema, inputs):
    for value, expected in inputs:
        original = copy.deepcopy(value)
        actual = get_valid_value_or_default(schema, value)
        assert actual == expected, f"{value!r}: got {actual!r}, expected {expected!r}"
        assert value == original or value is UNDEFINED, "input was modified"


def test_additional_properties_false():
    schema = _string_property_schema(additionalProperties=False)
    check_defaults(
        schema,
        [
            (UNDEFINED, {"test": "default"}),
            (None, {"test": "default"}),
            (0, {"test": "default"}),
            ("", {"test": "default"}),
            ([], {"test": "default"}),
            ({}, {"test": "default"}),
            ({"test": "value"}, {"test": "value"}),
            ({"test2": "value2"}, {"test": "default"}),
            ({"test": "value", "test2": "value2"}, {"test": "value"}),
        ],
    )


def test_additional_properties_true():
    schema = _string_property_schema(additionalProperties=True)
    check_defaults(
        schema,
        [
            ({}, {"test": "default"}),
            ({"test": "value"}, {"test": "value"}),
            ({"test2": "value2"}, {"test": "default", "test2": "value2"}),
            ({"test": "value", "test2": "value2"}, {"test": "value", "test2": "value2"}),
        ],
    )


def test_additional_properties_schema():
    schema = _string_property_schema(additionalProperties={"type": "number", "default": 10})
    check_defaults(
        schema,
        [
            ({}, {"test": "default"}),
            ({"test": "value"}, {"test": "value"}),
            ({"test2": "value2"}, {"test": "default", "test2": 10}),
            ({"test": "value", "test2": "value2"}, {"test": "value", "test2": 10}),
            ({"test2": 2}, {"test": "default", "test2": 2}),
            ({"test": "value", "test2": 2}, {"test": "value", "test2": 2}),
            ({"test": "value", "test2": 2, "test3": None}, {"test": "value", "test2": 2, "test3": 10}),
            (
                {"test": "value", "test2": 2, "test3": UNDEFINED},
                {"test": "value", "test2": 2, "test3": 10},
            ),
        ],
    )

    # Without a default, invalid unknown values are left as they are.
    schema = _string_property_schema(additionalProperties={"type": "number"})
    check_defaults(
        schema,
        [
            ({"test2": 2}, {"test": "default", "test2": 2}),
            ({"test2": "value2"}, {"test": "default", "test2": "value2"}),
            ({"test": "value", "test2": None}, {"test": "value", "test2": None}),
        ],
    )


def test_inherited_properties_are_absent():
    schema = _string_property_schema()
    check_defaults(
        schema,
        [
            ({}, {"test": "default"}),
            ({"test": "value"}, {"test": "value"}),
            (ChainMap({}, {"test": "value"}), {"test": "default"}),
            (ChainMap({"test": "value"}, {"test": "other"}), {"test": "value"}),
        ],
    )

    # Mapping method names are not properties.
    schema = {
        "type": "object",
        "required": ["keys"],
        "properties": {"keys": {"type": "string", "default": "default"}},
    }
    check_defaults(
        schema,
        [
            ({}, {"keys": "default"}),
            ({"keys": "value"}, {"keys": "value"}),
            (ChainMap({}, {"keys": "value"}), {"keys": "default"}),
        ],
    )


def test_enum_default():
    schema = {
        "type": "object",
        "required": ["test"],
        "properties": {
            "test": {"type": "string", "default": "value1", "enum": ["value1", "value2", "value3"]}
        },
    }
    check_defaults(
        schema,
        [
            ({"test": "value1"}, {"test": "value1"}),
            ({"test": "value2"}, {"test": "value2"}),
            ({"test": "value3"}, {"test": "value3"}),
            ({"test": "value4"}, {"test": "value1"}),
        ],
    )


def test_valid_vs_invalid_default():
    schema = {
        "type": "object",
        "required": ["test"],
        "properties": {"test": {"type": "integer", "default": 2, "minimum": 1}},
    }
    check_defaults(schema, [({"test": -1}, {"test": 2})])

    schema = {
        "type": "object",
        "required": ["test"],
        "properties": {"test": {"type": "integer", "default": 1, "minimum": 2}},
    }
    check_defaults(schema, [({"test": -1}, {"test": -1})])

    assert get_valid_value_or_default({"type": "integer", "default": 1, "minimum": 2}, -1) == -1
    assert get_valid_value_or_default({"type": "integer", "default": 2, "minimum": 1}, -1) == 2


def test_invalid_default_keeps_wrong_kind_value():
    schema = {"type": "integer", "default": 1, "minimum": 2}
    assert get_valid_value_or_default(schema, "abc") == "abc"
    assert get_valid_value_or_default(schema, 3) == 3
    assert get_valid_value_or_default(schema, 2.5) == 2.5


def test_absent_values():
    assert get_valid_value_or_default({"type": "string"}) is UNDEFINED
    assert get_valid_value_or_default({"type": "string", "default": "x"}) == "x"
    assert get_valid_value_or_default({"default": None}) is None
    assert get_valid_value_or_default({}, None) is None

    # Properties without a usable default are left out rather than invented.
    schema = {
        "type": "object",
        "properties": {
            "a": {"type": "string"},
            "b": {"type": "integer", "default": 1, "minimum": 2},
            "c": {"type": "integer", "default": 3},
        },
    }
    assert get_valid_value_or_default(schema, {}) == {"c": 3}


def test_required_does_not_force_presence():
    schema = {
        "type": "object",
        "required": ["name"],
        "properties": {"name": {"type": "string"}},
    }
    result = get_valid_value_or_default(schema, {"other": 1})
    assert result == {"other": 1}
    assert not is_valid(result, schema)


def test_invalid_object_is_not_replaced_by_empty_object():
    schema = {"type": "object", "properties": {"count": {"type": "integer"}}}
    assert get_valid_value_or_default(schema, {"count": "x"}) == {"count": "x"}

    schema["default"] = {"count": 0}
    assert get_valid_value_or_default(schema, {"count": "x"}) == {"count": 0}


def test_nested_objects():
    schema = {
        "type": "object",
        "properties": {
            "audio": {
                "type": "object",
                "properties": {
                    "enabled": {"type": "boolean", "default": True},
                    "volume": {"type": "integer", "minimum": 0, "maximum": 100, "default": 100},
                    "sources": {"type": "array", "default": ["jpod101"]},
                },
                "additionalProperties": False,
            },
            "general": {"type": "object", "default": {"language": "ja"}},
        },
    }

    result = get_valid_value_or_default(schema, {})
    assert result == {
        "audio": {"enabled": True, "volume": 100, "sources": ["jpod101"]},
        "general": {"language": "ja"},
    }
    assert result["general"] is not schema["properties"]["general"]["default"]

    value = {"audio": {"enabled": False, "volume": 150, "stale": 1}, "general": "x"}
    result = get_valid_value_or_default(schema, value)
    assert result == {
        "audio": {"enabled": False, "volume": 100, "sources": ["jpod101"]},
        "general": {"language": "ja"},
    }
    assert value == {"audio": {"enabled": False, "volume": 150, "stale": 1}, "general": "x"}
    assert is_valid(result, schema)


def test_arrays_are_not_deep_defaulted():
    schema = {"type": "array", "items": {"type": "integer", "default": 0}}
    value = [1, "x"]
    assert get_valid_value_or_default(schema, value) is value

    schema = {"type": "array", "items": {"type": "integer"}, "default": []}
    assert get_valid_value_or_default(schema, [1, "x"]) == []
    assert get_valid_value_or_default(schema, [1, 2]) == [1, 2]


def test_composite_const_default_is_never_substituted():
    literal = [1, 2]
    schema = {"const": literal, "default": literal}
    value = [1, 2]
    assert get_valid_value_or_default(schema, value) is value
    assert get_valid_value_or_default(schema, literal) is literal


def test_returned_defaults_are_copies():
    schema = {
        "type": "object",
        "properties": {
            "tags": {"type": "array", "default": []},
            "general": {"type": "object", "default": {"sources": ["jpod101"]}},
        },
    }

    first = get_valid_value_or_default(schema, {})
    first["tags"].append("x")
    first["general"]["sources"].append("custom")

    second = get_valid_value_or_default(schema, {})
    assert second == {"tags": [], "general": {"sources": ["jpod101"]}}
    assert schema["properties"]["tags"]["default"] == []
    assert schema["properties"]["general"]["default"] == {"sources": ["jpod101"]}


def test_list_type_object_fallback():
    schema = {
        "type": ["object", "null"],
        "properties": {"name": {"type": "string", "default": "x"}},
    }
    assert get_valid_value_or_default(schema) == {"name": "x"}
    assert get_valid_value_or_default(schema, 5) == {"name": "x"}
    assert get_valid_value_or_default(schema, None) is None

    assert get_valid_value_or_default({"type": "unknown"}) is UNDEFINED


def test_combinator_defaults():
    schema = {"anyOf": [{"type": "string"}, {"type": "null"}], "default": None}
    assert get_valid_value_or_default(schema, 5) is None
    assert get_valid_value_or_default(schema, "a") == "a"

    schema = {"type": "integer", "not": [{"const": 0}], "default": 1}
    assert get_valid_value_or_default(schema, 0) == 1
    assert get_valid_value_or_default(schema, 7) == 7


def test_inputs_are_not_mutated():
    schema = _string_property_schema(additionalProperties=False)
    value = {"test": 5, "test2": "value2"}
    result = get_valid_value_or_default(schema, value)
    assert result == {"test": "default"}
    assert value == {"test": 5, "test2": "value2"}
    assert result is not value
    assert schema == _string_property_schema(additionalProperties=False)


def test_max_depth(caplog):
    schema = {"type": "string", "default": "leaf"}
    for _ in range(100):
        schema = {"type": "object", "properties": {"child": schema}}

    with caplog.at_level(logging.WARNING, logger="value_schema.defaults"):
        result = get_valid_value_or_default(schema, {})
    assert "max_depth" in caplog.text

    # Defaulting stops below the cap; the leaf default is never reached.
    node = result
    levels = 0
    while "child" in node:
        node = node["child"]
        levels += 1
    assert node == {}
    assert levels < 100

    result = get_valid_value_or_default(schema, {}, max_depth=200)
    for _ in range(100):
        result = result["child"]
    assert result == "leaf"
