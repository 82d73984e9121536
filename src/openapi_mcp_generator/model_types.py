"""Internal datatypes for extraction, emission and verification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

HTTP_METHODS: tuple[str, ...] = (
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "head",
    "options",
)


@dataclass(frozen=True)
class Parameter:
    """One tool input derived from a declared parameter or a body property."""

    name: str
    location: str
    field_name: str
    required: bool = False
    type: str = "any"
    description: str = ""


@dataclass(frozen=True)
class Operation:
    """Normalized (method, path) unit extracted from an OpenAPI document."""

    operation_id: str
    module_name: str
    method: str
    path: str
    summary: str
    description: str
    parameters: tuple[Parameter, ...]
    has_body: bool = False
    body_required: bool = False
    body_key: str = "body"
    body_field_name: str = "body"
    security: tuple[tuple[str, ...], ...] = ()
    security_declared: bool = False

    @property
    def allows_anonymous(self) -> bool:
        """Whether the operation explicitly opts out of authentication."""
        if not self.security_declared:
            return False
        return not self.security or () in self.security

    def parameters_in(self, location: str) -> tuple[Parameter, ...]:
        """Return parameters declared in one location, in declaration order."""
        return tuple(param for param in self.parameters if param.location == location)


@dataclass(frozen=True)
class AuthInfo:
    """Normalized description of how generated tools authenticate."""

    has_auth: bool = False
    type: str = "none"
    location: Optional[str] = None
    name: Optional[str] = None
    scheme_name: Optional[str] = None
    ignored_schemes: tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerationContext:
    """Complete normalized input to emission."""

    operations: tuple[Operation, ...]
    auth: AuthInfo
    base_url: str
    server_name: str
    server_version: str
    package_name: str
    module_name: str
    auth_env_var: str


@dataclass(frozen=True)
class GenerationResult:
    """Generation output metadata."""

    output_dir: str
    files: tuple[str, ...]
    operation_count: int
    auth_type: str
    warnings: tuple[str, ...]
