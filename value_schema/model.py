from typing import Any, Literal, TypedDict

Kind = Literal["null", "boolean", "number", "integer", "string", "array", "object"]

SchemaType = Kind | list[Kind]


class _Undefined:
    """Marker for "no value": an absent property, or a key holding no value."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED: Any = _Undefined()


class BaseSchema(TypedDict, total=False):
    description: str | None
    type: SchemaType
    default: Any


class ConstraintSchema(BaseSchema, total=False):
    const: Any
    enum: list[Any]


class NumberSchema(BaseSchema, total=False):
    minimum: int | float
    maximum: int | float
    exclusiveMinimum: int | float
    exclusiveMaximum: int | float
    multipleOf: int | float


class StringSchema(BaseSchema, total=False):
    minLength: int
    maxLength: int
    pattern: str
    patternFlags: str


class ArraySchema(BaseSchema, total=False):
    contains: "SchemaNode"
    items: "SchemaNode"
    minItems: int
    maxItems: int


class ObjectSchema(BaseSchema, total=False):
    properties: dict[str, "SchemaNode"]
    required: list[str]
    additionalProperties: "bool | SchemaNode"
    minProperties: int
    maxProperties: int


# `not` and `if`/`else` are keywords, so the combinator keys need the
# functional form.
CombinatorSchema = TypedDict(
    "CombinatorSchema",
    {
        "allOf": list["SchemaNode"],
        "anyOf": list["SchemaNode"],
        "oneOf": list["SchemaNode"],
        "not": list["SchemaNode"],
        "if": "SchemaNode",
        "then": "SchemaNode",
        "else": "SchemaNode",
    },
    total=False,
)


class SchemaNode(
    ConstraintSchema,
    NumberSchema,
    StringSchema,
    ArraySchema,
    ObjectSchema,
    CombinatorSchema,
    total=False,
):
    """A schema node. Every key is optional and unknown keys are ignored."""
