import copy
import logging
from collections.abc import Mapping
from typing import Any

from value_schema import primitives
from value_schema.model import UNDEFINED, SchemaNode
from value_schema.validator import DEFAULT_MAX_DEPTH, _check_max_depth, _Validator

logger = logging.getLogger(__name__)


def _names_object(schema_type: Any) -> bool:
    """Check if a schema `type` names `object`, directly or in a list."""
    if isinstance(schema_type, list):
        return "object" in schema_type
    return schema_type == "object"


class _DefaultResolver:
    """Walks a schema and a value in lock-step, substituting valid defaults.

    Each node takes one of three decisions:
    - KEEP: the (normalized) value validates and is returned.
    - SUBSTITUTE: the value is absent or invalid and a fallback validates.
    - PASSTHROUGH: no fallback validates, so the value is returned as is.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._max_depth = _check_max_depth(max_depth)
        self._validator = _Validator(max_depth)

    def resolve(self, schema: SchemaNode, value: Any = UNDEFINED) -> Any:
        return self._resolve(schema, value, 0)

    def _resolve(self, schema: Any, value: Any, depth: int) -> Any:
        if depth >= self._max_depth:
            logger.warning("Schema nesting exceeds max_depth=%d, value left unchanged", self._max_depth)
            return value

        if not isinstance(schema, Mapping):
            return value

        candidate = value
        usable = self._is_usable(schema, value)
        if usable:
            candidate = self._populate(schema, value, depth)
            if self._validator.is_valid(candidate, schema):
                return candidate

        for fallback in self._fallbacks(schema, usable):
            fallback = self._populate(schema, fallback, depth)
            if self._validator.is_valid(fallback, schema):
                logger.debug("Substituting %r for %r", fallback, value)
                return fallback

        if candidate is not UNDEFINED:
            logger.debug("No valid default for %r, leaving it unchanged", value)
        return candidate

    def _is_usable(self, schema: Mapping, value: Any) -> bool:
        """Check if a value is present and of a kind the schema's type admits."""
        if value is UNDEFINED:
            return False
        if "type" not in schema:
            return True
        return primitives.type_matches(primitives.classify(value), schema["type"])

    def _fallbacks(self, schema: Mapping, usable: bool) -> list:
        """Return the declared default, then an empty object to populate when nothing usable was given."""
        fallbacks = []
        if "default" in schema:
            fallbacks.append(copy.deepcopy(schema["default"]))
        if not usable and _names_object(schema.get("type")):
            fallbacks.append({})
        return fallbacks

    def _populate(self, schema: Mapping, value: Any, depth: int) -> Any:
        """Build the normalized copy of an object value; other values are returned as is."""
        if primitives.classify(value) != "object":
            return value
        if "type" in schema and not primitives.type_matches("object", schema["type"]):
            return value

        properties = schema.get("properties")
        if not isinstance(properties, Mapping):
            properties = {}
        additional = schema.get("additionalProperties", True)

        result = {}
        for name, property_schema in properties.items():
            item = self._resolve(property_schema, primitives.get_own(value, name), depth + 1)
            if item is not UNDEFINED:
                result[name] = item

        for name in primitives.own_keys(value):
            if name in properties:
                continue
            if additional is False:
                continue
            item = primitives.get_own(value, name)
            if isinstance(additional, Mapping):
                item = self._resolve(additional, item, depth + 1)
                if item is UNDEFINED:
                    continue
            result[name] = item

        return result
