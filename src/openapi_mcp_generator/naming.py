"""Naming helpers for tool, module, package and Python identifiers."""

from __future__ import annotations

import keyword
import re
from collections import Counter
from collections.abc import Iterable

from pydantic import BaseModel

_IDENTIFIER_SANITIZE_RE = re.compile(r"[^0-9a-zA-Z_]+")
_MULTIPLE_UNDERSCORES_RE = re.compile(r"_+")
_NON_ALPHANUMERIC_RE = re.compile(r"[^a-zA-Z0-9]")
_WHITESPACE_RE = re.compile(r"\s+")
_PACKAGE_SANITIZE_RE = re.compile(r"[^a-z0-9._-]+")
_CAMEL_BOUNDARY_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_LOWER_UPPER_RE = re.compile(r"([a-z\d])([A-Z])")

DEFAULT_PACKAGE_NAME = "mcp-server"

# Module names that collide with files the emitter writes next to tool modules.
_RESERVED_TOOL_MODULES = {"index", "__init__"}

_BASEMODEL_RESERVED = set(dir(BaseModel))

# Builtins used in generated field annotations; a field with one of these names
# would shadow the builtin for every later annotation in the model body.
_ANNOTATION_BUILTINS = {"str", "int", "float", "bool", "list", "dict"}


def sanitize_identifier(raw: str, *, lowercase: bool = True) -> str:
    """Convert arbitrary text into a valid Python identifier."""
    text = raw.lower() if lowercase else raw
    text = _IDENTIFIER_SANITIZE_RE.sub("_", text)
    text = _MULTIPLE_UNDERSCORES_RE.sub("_", text).strip("_")
    if not text:
        text = "root"
    if text[0].isdigit():
        text = f"x_{text}"
    if keyword.iskeyword(text):
        text = f"{text}_"
    return text


def camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    text = _CAMEL_BOUNDARY_RE.sub(r"\1_\2", name)
    return _LOWER_UPPER_RE.sub(r"\1_\2", text).lower()


def derive_operation_id(method: str, path: str) -> str:
    """Build a stable operation id from HTTP method and path.

    Every non-alphanumeric character of the path is dropped, so
    ``GET /pets/{petId}`` becomes ``getpetspetId``.
    """
    return f"{method.lower()}{_NON_ALPHANUMERIC_RE.sub('', path)}"


def tool_module_name(operation_id: str, used_names: set[str]) -> str:
    """Return a unique importable module name for a tool and record it."""
    if operation_id.isidentifier() and not keyword.iskeyword(operation_id):
        candidate = operation_id
    else:
        candidate = sanitize_identifier(operation_id, lowercase=False)
    if candidate in _RESERVED_TOOL_MODULES:
        candidate = f"{candidate}_tool"
    return _claim(candidate, used_names)


def field_name(source_name: str, used_names: set[str]) -> str:
    """Return a unique pydantic-safe field name for a parameter and record it."""
    candidate = sanitize_identifier(camel_to_snake(source_name))
    if candidate in _BASEMODEL_RESERVED or candidate in _ANNOTATION_BUILTINS:
        candidate = f"{candidate}_field"
    return _claim(candidate, used_names)


def package_name(server_name: str) -> str:
    """Derive a distribution name: lower-cased, whitespace runs become hyphens."""
    text = _WHITESPACE_RE.sub("-", server_name.strip().lower())
    text = _PACKAGE_SANITIZE_RE.sub("", text).strip("-._")
    return text or DEFAULT_PACKAGE_NAME


def module_name(distribution_name: str) -> str:
    """Derive the import package name for a distribution name."""
    return sanitize_identifier(distribution_name)


def duplicate_names(names: Iterable[str]) -> set[str]:
    """Return the set of names that occur more than once."""
    counts = Counter(names)
    return {name for name, count in counts.items() if count > 1}


def _claim(candidate: str, used_names: set[str]) -> str:
    name = candidate
    suffix = 2
    while name in used_names:
        name = f"{candidate}_{suffix}"
        suffix += 1
    used_names.add(name)
    return name
