"""Local ``$ref`` resolution for parameters, request bodies and schemas."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from .json_types import JSONObject


class ResolveError(RuntimeError):
    """Raised when a reference cannot be resolved inside the document."""


class Resolver:
    """Inline local references (``#/...``) found in document nodes."""

    def __init__(self, document: JSONObject) -> None:
        self._document = document
        self._cache: dict[str, Any] = {}

    def resolve(self, node: Any) -> Any:
        """Return a copy of ``node`` with every local reference inlined."""
        return self._resolve(node, stack=())

    def _resolve(self, node: Any, stack: tuple[str, ...]) -> Any:
        if isinstance(node, list):
            return [self._resolve(item, stack) for item in node]
        if not isinstance(node, dict):
            return node

        ref_value = node.get("$ref")
        if isinstance(ref_value, str):
            target = self._lookup(ref_value, stack)
            siblings = {key: value for key, value in node.items() if key != "$ref"}
            if siblings and isinstance(target, dict):
                merged = dict(target)
                merged.update(self._resolve(siblings, stack))
                return merged
            return target

        return {key: self._resolve(value, stack) for key, value in node.items()}

    def _lookup(self, ref: str, stack: tuple[str, ...]) -> Any:
        if ref in stack:
            # Recursive schema; keep the reference instead of expanding forever.
            return {"$ref": ref}
        if ref in self._cache:
            return deepcopy(self._cache[ref])
        if not ref.startswith("#/"):
            raise ResolveError(f"Only local references are supported: {ref}")

        current: Any = self._document
        for token in ref[2:].split("/"):
            token = token.replace("~1", "/").replace("~0", "~")
            if not isinstance(current, dict) or token not in current:
                raise ResolveError(f"Unresolvable reference: {ref}")
            current = current[token]

        resolved = self._resolve(current, (*stack, ref))
        self._cache[ref] = deepcopy(resolved)
        return resolved
