"""Operation extraction from the OpenAPI path table."""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any, Optional

from .json_types import JSONObject
from .model_types import HTTP_METHODS, Operation, Parameter
from .naming import derive_operation_id, duplicate_names, field_name, tool_module_name
from .resolver import ResolveError, Resolver
from .schema_mapper import normalize_type

_PATH_TOKEN_RE = re.compile(r"\{(?P<name>[^{}]+)\}")
_DECLARED_LOCATIONS = ("path", "query", "header")
_JSON_MEDIA_TYPE = "application/json"


class MissingPathsError(RuntimeError):
    """Raised when a document declares no operations to generate tools for."""


def extract_operations(document: JSONObject) -> tuple[list[Operation], list[str]]:
    """Extract operations in document path and method order.

    Args:
        document (JSONObject): Parsed OpenAPI document.

    Returns:
        tuple[list[Operation], list[str]]: Operations and non-fatal warnings.
    """
    raw_paths = document.get("paths")
    if not isinstance(raw_paths, dict) or not raw_paths:
        raise MissingPathsError("No paths found in OpenAPI document")

    extractor = _Extractor(document)
    operations = [
        extractor.build(path=path, method=method, raw=raw, path_item=path_item)
        for path, method, raw, path_item in _iter_raw_operations(raw_paths)
    ]
    if not operations:
        raise MissingPathsError("OpenAPI document paths declare no HTTP operations")

    warnings = extractor.warnings
    conflicting = duplicate_names(operation.operation_id for operation in operations)
    if conflicting:
        warnings.append(
            "Duplicate operationId values detected; tool modules were renamed: "
            + ", ".join(sorted(conflicting))
        )
    return operations, warnings


def _iter_raw_operations(
    raw_paths: dict[str, Any],
) -> Iterator[tuple[str, str, dict[str, Any], dict[str, Any]]]:
    for path, path_item in raw_paths.items():
        if not isinstance(path, str) or not isinstance(path_item, dict):
            continue
        for key, raw_operation in path_item.items():
            if not isinstance(key, str) or key.lower() not in HTTP_METHODS:
                continue
            if isinstance(raw_operation, dict):
                yield path, key.lower(), raw_operation, path_item


class _Extractor:
    """Per-document extraction state: resolver, module names and warnings."""

    def __init__(self, document: JSONObject) -> None:
        self._resolver = Resolver(document)
        self._global_security = document.get("security")
        self._module_names: set[str] = set()
        self.warnings: list[str] = []

    def build(
        self,
        *,
        path: str,
        method: str,
        raw: dict[str, Any],
        path_item: dict[str, Any],
    ) -> Operation:
        declared_id = raw.get("operationId")
        if isinstance(declared_id, str) and declared_id.strip():
            operation_id = declared_id.strip()
        else:
            operation_id = derive_operation_id(method, path)
        label = f"{method.upper()} {path}"

        summary = _text(raw.get("summary")) or label
        description = (
            _text(raw.get("description"))
            or summary
            or f"{method.upper()} request to {path}"
        )

        used_fields: set[str] = set()
        parameters = self._declared_parameters(raw, path_item, label, used_fields)
        self._check_path_tokens(path, parameters, label)

        request_body = self._request_body(raw, label)
        has_body = request_body is not None
        body_required = bool(has_body and request_body.get("required"))
        declared_names = {param.name for param in parameters}
        body_key = "requestBody" if "body" in declared_names else "body"
        body_field_name = field_name(body_key, used_fields) if has_body else "body"
        if request_body is not None:
            parameters.extend(
                self._body_parameters(request_body, declared_names, label, used_fields)
            )

        security, security_declared = self._security(raw)
        return Operation(
            operation_id=operation_id,
            module_name=tool_module_name(operation_id, self._module_names),
            method=method.upper(),
            path=path,
            summary=summary,
            description=description,
            parameters=tuple(parameters),
            has_body=has_body,
            body_required=body_required,
            body_key=body_key,
            body_field_name=body_field_name,
            security=security,
            security_declared=security_declared,
        )

    def _declared_parameters(
        self,
        raw: dict[str, Any],
        path_item: dict[str, Any],
        label: str,
        used_fields: set[str],
    ) -> list[Parameter]:
        merged: dict[tuple[str, str], dict[str, Any]] = {}
        for source in (path_item.get("parameters"), raw.get("parameters")):
            if not isinstance(source, list):
                continue
            for item in source:
                resolved = self._resolve(item, label)
                if resolved is None:
                    continue
                name = resolved.get("name")
                location = resolved.get("in")
                if not isinstance(name, str) or not name or not isinstance(location, str):
                    self.warnings.append(f"{label}: skipped parameter without name or location")
                    continue
                merged[(name, location)] = resolved

        parameters: list[Parameter] = []
        seen: set[str] = set()
        for (name, location), resolved in merged.items():
            if location not in _DECLARED_LOCATIONS:
                self.warnings.append(
                    f"{label}: skipped {location} parameter '{name}' (unsupported location)"
                )
                continue
            if name in seen:
                self.warnings.append(f"{label}: skipped duplicate parameter '{name}'")
                continue
            seen.add(name)
            schema = resolved.get("schema")
            parameters.append(
                Parameter(
                    name=name,
                    location=location,
                    field_name=field_name(name, used_fields),
                    required=bool(resolved.get("required", False)),
                    type=normalize_type(schema if isinstance(schema, dict) else resolved),
                    description=_text(resolved.get("description")),
                )
            )
        return parameters

    def _request_body(self, raw: dict[str, Any], label: str) -> Optional[dict[str, Any]]:
        if "requestBody" not in raw:
            return None
        resolved = self._resolve(raw["requestBody"], label)
        if resolved is None:
            return {}
        content = resolved.get("content")
        if isinstance(content, dict) and content and _json_media(content) is None:
            self.warnings.append(f"{label}: request body has no JSON content; it is sent as JSON")
        return resolved

    def _body_parameters(
        self,
        request_body: dict[str, Any],
        declared_names: set[str],
        label: str,
        used_fields: set[str],
    ) -> list[Parameter]:
        content = request_body.get("content")
        if not isinstance(content, dict):
            return []
        media = _json_media(content)
        if media is None:
            return []
        schema = self._resolve(media.get("schema"), label)
        if schema is None:
            return []
        properties = schema.get("properties")
        if not isinstance(properties, dict):
            return []

        required_raw = schema.get("required")
        required = set(required_raw) if isinstance(required_raw, list) else set()
        parameters: list[Parameter] = []
        for prop_name, prop_schema in properties.items():
            if not isinstance(prop_name, str):
                continue
            if prop_name in declared_names:
                self.warnings.append(
                    f"{label}: body property '{prop_name}' shadows a declared parameter; skipped"
                )
                continue
            prop = prop_schema if isinstance(prop_schema, dict) else {}
            if prop.get("readOnly") is True:
                continue
            parameters.append(
                Parameter(
                    name=prop_name,
                    location="body",
                    field_name=field_name(prop_name, used_fields),
                    required=prop_name in required,
                    type=normalize_type(prop),
                    description=_text(prop.get("description")),
                )
            )
        return parameters

    def _check_path_tokens(self, path: str, parameters: list[Parameter], label: str) -> None:
        tokens = {match.group("name") for match in _PATH_TOKEN_RE.finditer(path)}
        path_names = {param.name for param in parameters if param.location == "path"}
        for name in sorted(path_names - tokens):
            self.warnings.append(
                f"{label}: path parameter '{name}' has no {{{name}}} token; it is not substituted"
            )
        for name in sorted(tokens - path_names):
            self.warnings.append(
                f"{label}: path token {{{name}}} has no declared path parameter"
            )
        for param in parameters:
            if param.location == "path" and not param.required and param.name in tokens:
                self.warnings.append(
                    f"{label}: path parameter '{param.name}' is not required; when omitted "
                    f"the {{{param.name}}} token stays in the URL"
                )

    def _security(self, raw: dict[str, Any]) -> tuple[tuple[tuple[str, ...], ...], bool]:
        value = raw["security"] if "security" in raw else self._global_security
        if not isinstance(value, list):
            return (), False
        requirements = tuple(
            tuple(str(name) for name in requirement)
            for requirement in value
            if isinstance(requirement, dict)
        )
        return requirements, True

    def _resolve(self, node: Any, label: str) -> Optional[dict[str, Any]]:
        if not isinstance(node, dict):
            return None
        try:
            resolved = self._resolver.resolve(node)
        except ResolveError as exc:
            self.warnings.append(f"{label}: {exc}")
            return None
        return resolved if isinstance(resolved, dict) else None


def _json_media(content: dict[str, Any]) -> Optional[dict[str, Any]]:
    media = content.get(_JSON_MEDIA_TYPE)
    if isinstance(media, dict):
        return media
    for media_type, candidate in content.items():
        if isinstance(media_type, str) and "json" in media_type and isinstance(candidate, dict):
            return candidate
    return None


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""
