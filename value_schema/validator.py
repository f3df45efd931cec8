import logging
from collections.abc import Mapping
from typing import Any

from value_schema import primitives
from value_schema.model import SchemaNode

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64

_NUMERIC_CHECKS = (
    ("minimum", primitives.check_minimum, "less than minimum"),
    ("maximum", primitives.check_maximum, "greater than maximum"),
    ("exclusiveMinimum", primitives.check_exclusive_minimum, "not greater than exclusiveMinimum"),
    ("exclusiveMaximum", primitives.check_exclusive_maximum, "not less than exclusiveMaximum"),
    ("multipleOf", primitives.check_multiple_of, "not a multiple of multipleOf"),
)


def format_path(path: tuple) -> str:
    """Render a value path as `$.key[0].other`."""
    parts = ["$"]
    for key in path:
        if isinstance(key, int):
            parts.append(f"[{key}]")
        else:
            parts.append(f".{key}")
    return "".join(parts)


class SchemaValidationError(ValueError):
    """Raised when a value does not conform to a schema.

    Attributes:
    - message (str): What failed.
    - value_path (tuple): Keys and indices leading from the root value to
        the failing value.
    - schema_path (tuple): Keys leading from the root schema to the failing
        schema node.
    - value: The failing value.
    - schema: The schema node it failed against.
    """

    def __init__(
        self,
        message: str,
        value: Any = None,
        schema: Any = None,
        value_path: tuple = (),
        schema_path: tuple = (),
    ) -> None:
        super().__init__(message)
        self.message = message
        self.value = value
        self.schema = schema
        self.value_path = value_path
        self.schema_path = schema_path

    def __str__(self) -> str:
        return f"{format_path(self.value_path)}: {self.message}"


class MaxDepthExceededError(SchemaValidationError):
    """Raised when schema nesting is deeper than the configured max_depth."""


def _check_max_depth(max_depth: int) -> int:
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
        raise ValueError(f"max_depth must be a positive integer, got {max_depth!r}")
    return max_depth


class _Validator:
    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._max_depth = _check_max_depth(max_depth)

    def is_valid(self, value: Any, schema: SchemaNode) -> bool:
        try:
            self.validate(value, schema)
        except SchemaValidationError:
            return False
        return True

    def validate(self, value: Any, schema: SchemaNode) -> None:
        self._validate(value, schema, (), (), 0)

    def _error(self, message: str, value: Any, schema: Any, value_path: tuple, schema_path: tuple):
        return SchemaValidationError(message, value, schema, value_path, schema_path)

    def _is_valid_child(
        self, value: Any, schema: Any, value_path: tuple, schema_path: tuple, depth: int
    ) -> bool:
        try:
            self._validate(value, schema, value_path, schema_path, depth)
        except MaxDepthExceededError:
            raise
        except SchemaValidationError:
            return False
        return True

    def _validate(
        self, value: Any, schema: Any, value_path: tuple, schema_path: tuple, depth: int
    ) -> None:
        """Validate one schema node, raising on the first failure."""
        if depth >= self._max_depth:
            logger.warning(
                "Schema nesting exceeds max_depth=%d at %s", self._max_depth, format_path(value_path)
            )
            raise MaxDepthExceededError(
                "maximum schema depth exceeded", value, schema, value_path, schema_path
            )

        if not isinstance(schema, Mapping):
            return

        self._validate_single(value, schema, value_path, schema_path, depth)
        self._validate_conditional(value, schema, value_path, schema_path, depth)
        self._validate_all_of(value, schema, value_path, schema_path, depth)
        self._validate_any_of(value, schema, value_path, schema_path, depth)
        self._validate_one_of(value, schema, value_path, schema_path, depth)
        self._validate_not(value, schema, value_path, schema_path, depth)

    def _validate_single(
        self, value: Any, schema: Mapping, value_path: tuple, schema_path: tuple, depth: int
    ) -> None:
        kind = primitives.classify(value)

        if "type" in schema and not primitives.type_matches(kind, schema["type"]):
            raise self._error(
                f"value type {kind} does not match {schema['type']!r}",
                value, schema, value_path, schema_path + ("type",),
            )

        if "const" in schema:
            if not primitives.identity_equals(value, schema["const"]):
                raise self._error(
                    "value does not match const", value, schema, value_path, schema_path + ("const",)
                )
        elif isinstance(schema.get("enum"), list):
            if not any(primitives.identity_equals(value, item) for item in schema["enum"]):
                raise self._error(
                    "value is not one of enum", value, schema, value_path, schema_path + ("enum",)
                )

        if kind in ("number", "integer"):
            self._validate_number(value, schema, value_path, schema_path)
        elif kind == "string":
            self._validate_string(value, schema, value_path, schema_path)
        elif kind == "array":
            self._validate_array(value, schema, value_path, schema_path, depth)
        elif kind == "object":
            self._validate_object(value, schema, value_path, schema_path, depth)

    def _validate_number(
        self, value: int | float, schema: Mapping, value_path: tuple, schema_path: tuple
    ) -> None:
        for key, check, message in _NUMERIC_CHECKS:
            if key in schema and not check(value, schema[key]):
                raise self._error(
                    f"number {message} {schema[key]!r}", value, schema, value_path, schema_path + (key,)
                )

    def _validate_string(
        self, value: str, schema: Mapping, value_path: tuple, schema_path: tuple
    ) -> None:
        if "minLength" in schema and not primitives.check_min_length(value, schema["minLength"]):
            raise self._error(
                "string length too short", value, schema, value_path, schema_path + ("minLength",)
            )
        if "maxLength" in schema and not primitives.check_max_length(value, schema["maxLength"]):
            raise self._error(
                "string length too long", value, schema, value_path, schema_path + ("maxLength",)
            )
        if "pattern" in schema and not primitives.check_pattern(
            value, schema["pattern"], schema.get("patternFlags", "")
        ):
            raise self._error(
                "string does not match pattern", value, schema, value_path, schema_path + ("pattern",)
            )

    def _validate_array(
        self, value: list, schema: Mapping, value_path: tuple, schema_path: tuple, depth: int
    ) -> None:
        if "minItems" in schema and not primitives.check_min_count(value, schema["minItems"]):
            raise self._error(
                "array has too few items", value, schema, value_path, schema_path + ("minItems",)
            )
        if "maxItems" in schema and not primitives.check_max_count(value, schema["maxItems"]):
            raise self._error(
                "array has too many items", value, schema, value_path, schema_path + ("maxItems",)
            )

        items = schema.get("items")
        if isinstance(items, Mapping):
            for index, item in enumerate(value):
                self._validate(
                    item, items, value_path + (index,), schema_path + ("items",), depth + 1
                )

        contains = schema.get("contains")
        if isinstance(contains, Mapping):
            if not any(
                self._is_valid_child(
                    item, contains, value_path + (index,), schema_path + ("contains",), depth + 1
                )
                for index, item in enumerate(value)
            ):
                raise self._error(
                    "array does not contain a matching item",
                    value, schema, value_path, schema_path + ("contains",),
                )

    def _validate_object(
        self, value: Mapping, schema: Mapping, value_path: tuple, schema_path: tuple, depth: int
    ) -> None:
        keys = primitives.own_keys(value)

        if "minProperties" in schema and not primitives.check_min_count(keys, schema["minProperties"]):
            raise self._error(
                "object has too few properties", value, schema, value_path, schema_path + ("minProperties",)
            )
        if "maxProperties" in schema and not primitives.check_max_count(keys, schema["maxProperties"]):
            raise self._error(
                "object has too many properties", value, schema, value_path, schema_path + ("maxProperties",)
            )

        required = schema.get("required")
        if isinstance(required, list):
            for name in required:
                if not primitives.has_own(value, name):
                    raise self._error(
                        f"missing required property {name!r}",
                        value, schema, value_path, schema_path + ("required",),
                    )

        properties = schema.get("properties")
        if not isinstance(properties, Mapping):
            properties = {}
        additional = schema.get("additionalProperties", True)

        for key in keys:
            item = primitives.get_own(value, key)
            if key in properties:
                self._validate(
                    item, properties[key], value_path + (key,),
                    schema_path + ("properties", key), depth + 1,
                )
            elif additional is False:
                raise self._error(
                    f"unexpected property {key!r}",
                    value, schema, value_path, schema_path + ("additionalProperties",),
                )
            elif isinstance(additional, Mapping):
                self._validate(
                    item, additional, value_path + (key,),
                    schema_path + ("additionalProperties",), depth + 1,
                )

    def _validate_conditional(
        self, value: Any, schema: Mapping, value_path: tuple, schema_path: tuple, depth: int
    ) -> None:
        condition = schema.get("if")
        if not isinstance(condition, Mapping):
            return

        if self._is_valid_child(value, condition, value_path, schema_path + ("if",), depth + 1):
            branch = "then"
        else:
            branch = "else"

        branch_schema = schema.get(branch)
        if isinstance(branch_schema, Mapping):
            self._validate(value, branch_schema, value_path, schema_path + (branch,), depth + 1)

    def _children(self, schema: Mapping, key: str) -> list:
        children = schema.get(key)
        if not isinstance(children, list):
            return []
        return children

    def _validate_all_of(
        self, value: Any, schema: Mapping, value_path: tuple, schema_path: tuple, depth: int
    ) -> None:
        for index, child in enumerate(self._children(schema, "allOf")):
            self._validate(value, child, value_path, schema_path + ("allOf", index), depth + 1)

    def _validate_any_of(
        self, value: Any, schema: Mapping, value_path: tuple, schema_path: tuple, depth: int
    ) -> None:
        if not isinstance(schema.get("anyOf"), list):
            return
        for index, child in enumerate(schema["anyOf"]):
            if self._is_valid_child(value, child, value_path, schema_path + ("anyOf", index), depth + 1):
                return
        raise self._error("value matches no anyOf schema", value, schema, value_path, schema_path + ("anyOf",))

    def _validate_one_of(
        self, value: Any, schema: Mapping, value_path: tuple, schema_path: tuple, depth: int
    ) -> None:
        if not isinstance(schema.get("oneOf"), list):
            return
        matches = 0
        for index, child in enumerate(schema["oneOf"]):
            if self._is_valid_child(value, child, value_path, schema_path + ("oneOf", index), depth + 1):
                matches += 1
        if matches == 0:
            raise self._error("value matches no oneOf schema", value, schema, value_path, schema_path + ("oneOf",))
        if matches > 1:
            raise self._error(
                f"value matches {matches} oneOf schemas, expected exactly 1",
                value, schema, value_path, schema_path + ("oneOf",),
            )

    def _validate_not(
        self, value: Any, schema: Mapping, value_path: tuple, schema_path: tuple, depth: int
    ) -> None:
        # `not` is a list of schemas, none of which may match.
        for index, child in enumerate(self._children(schema, "not")):
            if self._is_valid_child(value, child, value_path, schema_path + ("not", index), depth + 1):
                raise self._error(
                    f"value matches not[{index}]", value, schema, value_path, schema_path + ("not", index)
                )
