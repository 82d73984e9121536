"""Map OpenAPI type descriptors to generated Python type expressions.

The mapping is intentionally shallow: ``items`` and ``properties`` are never
inspected, so nested structures become ``list[Any]`` or an open
``dict[str, Any]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TypeExpr:
    """A normalized type tag and the annotation emitted for it."""

    tag: str
    annotation: str


ANY = TypeExpr(tag="any", annotation="Any")

_TYPE_EXPRESSIONS: dict[str, TypeExpr] = {
    "string": TypeExpr(tag="string", annotation="str"),
    "number": TypeExpr(tag="number", annotation="float"),
    "integer": TypeExpr(tag="integer", annotation="int"),
    "boolean": TypeExpr(tag="boolean", annotation="bool"),
    "array": TypeExpr(tag="array", annotation="list[Any]"),
    "object": TypeExpr(tag="object", annotation="dict[str, Any]"),
}


def map_type(schema: Any) -> TypeExpr:
    """Return the type expression for a schema descriptor.

    Accepts a schema mapping, a bare type tag or ``None``; anything missing or
    unrecognized maps to ``Any``.
    """
    if isinstance(schema, dict):
        schema = schema.get("type")
    if isinstance(schema, str):
        return _TYPE_EXPRESSIONS.get(schema, ANY)
    return ANY


def normalize_type(schema: Any) -> str:
    """Return the normalized primitive tag for a schema descriptor."""
    return map_type(schema).tag
