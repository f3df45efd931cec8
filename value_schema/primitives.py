import logging
import math
import re
from collections import ChainMap
from collections.abc import Iterable, Mapping
from fractions import Fraction
from typing import Any

from value_schema.model import UNDEFINED, Kind

logger = logging.getLogger(__name__)

_KINDS = ("null", "boolean", "number", "integer", "string", "array", "object")

_NUMERIC_KINDS = ("number", "integer")

_PATTERN_FLAGS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
    "g": 0,
    "d": 0,
    "v": 0,
}


def _is_number(value: Any) -> bool:
    """Check if a value is an int or float, excluding bool."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite(value: int | float) -> bool:
    # ints are always finite; math.isfinite would overflow converting huge ones.
    return not isinstance(value, float) or math.isfinite(value)


def _is_count(value: Any) -> bool:
    """Check if a constraint value is a usable length/count limit."""
    return _is_number(value) and not (isinstance(value, float) and math.isnan(value))


def classify(value: Any) -> Kind | None:
    """Return the kind of a value, or None for UNDEFINED and non-JSON objects."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return "integer"
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return None


def type_matches(kind: Kind | None, schema_type: Any) -> bool:
    """Check a value kind against a schema `type`, which may be a name or a list of names.

    An `integer` satisfies `number`, but a `number` does not satisfy `integer`.
    A `type` that is neither a string nor a list, or names an unknown kind,
    places no restriction.
    """
    if isinstance(schema_type, str):
        if schema_type not in _KINDS:
            return True
        if kind is None:
            return False
        return kind == schema_type or (kind == "integer" and schema_type == "number")
    if isinstance(schema_type, list):
        return any(
            isinstance(item, str) and type_matches(kind, item) for item in schema_type
        )
    return True


def identity_equals(a: Any, b: Any) -> bool:
    """Compare two values the way `const` and `enum` do.

    Primitives are equal when their kinds agree and their values are equal.
    Lists and mappings are only equal to the very same instance, never to a
    structurally identical copy.
    """
    kind_a = classify(a)
    kind_b = classify(b)
    if kind_a in (None, "array", "object") or kind_b in (None, "array", "object"):
        return a is b
    if kind_a in _NUMERIC_KINDS and kind_b in _NUMERIC_KINDS:
        return a == b
    return kind_a == kind_b and a == b


def own_keys(value: Mapping) -> list[str]:
    """Return the keys stored directly on a mapping.

    For a ChainMap only the first map holds own properties; the remaining
    maps play the role of inherited properties.
    """
    if isinstance(value, ChainMap):
        if not value.maps:
            return []
        return own_keys(value.maps[0])
    return list(value.keys())


def has_own(value: Mapping, key: str) -> bool:
    if isinstance(value, ChainMap):
        return bool(value.maps) and has_own(value.maps[0], key)
    return key in value


def get_own(value: Mapping, key: str) -> Any:
    """Return an own property, or UNDEFINED when the key is not own."""
    if not has_own(value, key):
        return UNDEFINED
    if isinstance(value, ChainMap):
        return get_own(value.maps[0], key)
    return value[key]


def check_minimum(value: int | float, minimum: Any) -> bool:
    return not _is_number(minimum) or value >= minimum


def check_maximum(value: int | float, maximum: Any) -> bool:
    return not _is_number(maximum) or value <= maximum


def check_exclusive_minimum(value: int | float, minimum: Any) -> bool:
    return not _is_number(minimum) or value > minimum


def check_exclusive_maximum(value: int | float, maximum: Any) -> bool:
    return not _is_number(maximum) or value < maximum


def check_multiple_of(value: int | float, divisor: Any) -> bool:
    """Check `value % divisor == 0`. A zero or non-finite divisor is never satisfied."""
    if not _is_number(divisor):
        return True
    if divisor == 0 or not _is_finite(divisor) or not _is_finite(value):
        return False
    try:
        return value % divisor == 0
    except OverflowError:
        # A huge int against a float divisor; compare exactly instead.
        return Fraction(value) % Fraction(divisor) == 0


def check_min_length(value: str, min_length: Any) -> bool:
    return not _is_count(min_length) or len(value) >= min_length


def check_max_length(value: str, max_length: Any) -> bool:
    return not _is_count(max_length) or len(value) <= max_length


def check_min_count(items: Iterable, min_count: Any) -> bool:
    return not _is_count(min_count) or len(list(items)) >= min_count


def check_max_count(items: Iterable, max_count: Any) -> bool:
    return not _is_count(max_count) or len(list(items)) <= max_count


def _anchor_to_end(source: str) -> str:
    r"""Rewrite each unescaped `$` outside a character class as `\Z`.

    Without the `m` flag a JavaScript `$` matches only at the end of the
    string, while Python's also matches before a trailing newline.
    """
    parts = []
    escaped = False
    in_class = False
    for char in source:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif in_class:
            in_class = char != "]"
        elif char == "[":
            in_class = True
        elif char == "$":
            parts.append(r"\Z")
            continue
        parts.append(char)
    return "".join(parts)


def compile_pattern(source: Any, flags: Any = "") -> tuple[re.Pattern, bool] | None:
    """Compile a pattern with a JavaScript-style flag string.

    Returns the compiled pattern and whether it is sticky (`y`, anchored at
    the start of the string), or None when the source or flags are invalid.
    Unknown and repeated flags are invalid.
    """
    if flags is None:
        flags = ""
    if not isinstance(source, str) or not isinstance(flags, str):
        logger.debug("Rejected pattern %r with flags %r: not a string", source, flags)
        return None

    re_flags = 0
    sticky = False
    seen: set[str] = set()
    for flag in flags:
        if flag in seen or (flag not in _PATTERN_FLAGS and flag != "y"):
            logger.debug("Rejected pattern flags %r", flags)
            return None
        seen.add(flag)
        if flag == "y":
            sticky = True
        else:
            re_flags |= _PATTERN_FLAGS[flag]

    if "m" not in seen:
        source = _anchor_to_end(source)

    try:
        return re.compile(source, re_flags), sticky
    except (re.error, OverflowError, RecursionError) as e:
        logger.debug("Rejected pattern %r: %s", source, e)
        return None


def check_pattern(value: str, pattern: Any, flags: Any = "") -> bool:
    """Check a string against a pattern. A malformed pattern is never satisfied."""
    compiled = compile_pattern(pattern, flags)
    if compiled is None:
        return False
    regex, sticky = compiled
    if sticky:
        return regex.match(value) is not None
    return regex.search(value) is not None
