"""Verification of a generated project against the extracted operations."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any

from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for
from pydantic import BaseModel

from .model_types import Operation
from .module_loading import (
    import_generated_module,
    load_generated_package,
    unique_package_name,
    unload_generated_package,
)


@dataclass(frozen=True)
class VerificationMismatch:
    """One verification mismatch."""

    operation_id: str
    module_name: str
    check: str
    expected: Any
    actual: Any


@dataclass(frozen=True)
class VerificationReport:
    """Result of the verification phase."""

    verified_count: int
    mismatch_count: int
    mismatches: tuple[VerificationMismatch, ...]


def verify_project(*, operations: Iterable[Operation], output_dir: Path) -> VerificationReport:
    """Import every generated tool module and compare it with its operation.

    Each tool must expose the operation id as ``NAME``, and its ``Input`` model
    must produce a valid JSON Schema whose properties and required names match
    the operation's declared parameters plus the request body field.
    """
    operations = list(operations)
    package_name = unique_package_name()
    package = load_generated_package(package_name=package_name, project_dir=output_dir)
    mismatches: list[VerificationMismatch] = []
    try:
        for operation in operations:
            module = import_generated_module(package, f"tools.{operation.module_name}")
            mismatches.extend(_check_tool(operation, module))
    finally:
        unload_generated_package(package_name)

    return VerificationReport(
        verified_count=len(operations),
        mismatch_count=len(mismatches),
        mismatches=tuple(mismatches),
    )


def format_report(report: VerificationReport) -> str:
    """Render report as CLI output text."""
    lines = [
        f"Verified tools: {report.verified_count}",
        f"Mismatches: {report.mismatch_count}",
    ]
    for mismatch in report.mismatches:
        lines.extend(
            [
                f"- {mismatch.operation_id} ({mismatch.module_name}): {mismatch.check}",
                f"  expected: {short_repr(mismatch.expected)}",
                f"  actual: {short_repr(mismatch.actual)}",
            ]
        )
    return "\n".join(lines)


def short_repr(value: Any, *, limit: int = 160) -> str:
    """A short representation for mismatch diagnostics."""
    text = repr(value)
    return text if len(text) <= limit else f"{text[: limit - 3]}..."


def expected_input_names(operation: Operation) -> tuple[list[str], list[str]]:
    """Return the sorted property names and required names a tool input must have."""
    properties = [param.name for param in operation.parameters if param.location != "body"]
    required = [
        param.name
        for param in operation.parameters
        if param.location != "body" and param.required
    ]
    if operation.has_body:
        properties.append(operation.body_key)
        if operation.body_required:
            required.append(operation.body_key)
    return sorted(properties), sorted(required)


def _check_tool(operation: Operation, module: ModuleType) -> list[VerificationMismatch]:
    def mismatch(check: str, expected: Any, actual: Any) -> VerificationMismatch:
        return VerificationMismatch(
            operation_id=operation.operation_id,
            module_name=operation.module_name,
            check=check,
            expected=expected,
            actual=actual,
        )

    found: list[VerificationMismatch] = []
    name = getattr(module, "NAME", None)
    if name != operation.operation_id:
        found.append(mismatch("NAME", operation.operation_id, name))

    model = getattr(module, "Input", None)
    if not isinstance(model, type) or not issubclass(model, BaseModel):
        found.append(mismatch("Input", "pydantic model", model))
        return found

    schema = model.model_json_schema()
    try:
        validator_for(schema).check_schema(schema)
    except SchemaError as exc:
        found.append(mismatch("schema", "valid JSON Schema", exc.message))

    expected_properties, expected_required = expected_input_names(operation)
    actual_properties = sorted(schema.get("properties", {}))
    actual_required = sorted(schema.get("required", []))
    if actual_properties != expected_properties:
        found.append(mismatch("properties", expected_properties, actual_properties))
    if actual_required != expected_required:
        found.append(mismatch("required", expected_required, actual_required))
    return found
