from typing import Any
from value_schema.defaults import _DefaultResolver
from value_schema.model import UNDEFINED, SchemaNode
from value_schema.validator import (
    DEFAULT_MAX_DEPTH,
    MaxDepthExceededError,
    SchemaValidationError,
    _Validator,
)

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "MaxDepthExceededError",
    "SchemaNode",
    "SchemaValidationError",
    "UNDEFINED",
    "get_valid_value_or_default",
    "is_valid",
    "validate",
]


def is_valid(value: Any, schema: SchemaNode, max_depth: int = DEFAULT_MAX_DEPTH) -> bool:
    """
    Check whether a value conforms to a schema.

    Parameters:
    - value (Any): The value to check: None, bool, int, float, str, a list or
        tuple, a mapping, or `UNDEFINED`.
    - schema (SchemaNode): The schema node. Unknown keys and malformed
        constraint values are ignored.
    - max_depth (int): Maximum schema nesting to evaluate. Deeper schemas
        make the value invalid.

    Returns:
    - bool: True if the value conforms. Never raises for odd values or
        schemas.

    Raises:
    - ValueError: If `max_depth` is not a positive integer.
    """

    validator = _Validator(max_depth)
    return validator.is_valid(value, schema)


def validate(value: Any, schema: SchemaNode, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """
    Validate a value against a schema, raising on the first failure.

    Parameters:
    - value (Any): See `is_valid`.
    - schema (SchemaNode): See `is_valid`.
    - max_depth (int): See `is_valid`.

    Raises:
    - SchemaValidationError: If the value does not conform. The error carries
        `value_path` and `schema_path` of the failing location.
    - MaxDepthExceededError: A `SchemaValidationError` raised when the schema
        nests deeper than `max_depth`.
    - ValueError: If `max_depth` is not a positive integer.
    """

    validator = _Validator(max_depth)
    validator.validate(value, schema)


def get_valid_value_or_default(
    schema: SchemaNode,
    value: Any = UNDEFINED,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> Any:
    """Return a copy of `value` with absent or invalid parts replaced by schema defaults.

    Parameters:
    - schema (SchemaNode): The schema node. A node's `default` is only used
        when the default itself is valid against that node.
    - value (Any): The value to normalize. Leave it as `UNDEFINED` to build a
        value from defaults alone.
    - max_depth (int): Maximum schema nesting to descend into. Deeper values
        are returned unchanged.

    Returns:
    - Any: The value if it was valid, a valid default if it was not, or the
        value unchanged when no valid default exists. Mappings are rebuilt as
        new dicts; neither `value` nor `schema` is modified. An absent value
        with no usable default comes back as `UNDEFINED`.

    Raises:
    - ValueError: If `max_depth` is not a positive integer.
    """

    resolver = _DefaultResolver(max_depth)
    return resolver.resolve(schema, value)
