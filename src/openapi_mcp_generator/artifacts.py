"""Typed template objects for every emitted artifact.

Each artifact is described by a template name plus a frozen slot dataclass.
Slots hold only plain values, so emitted projects can be compared structurally
before any text is rendered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class ManifestSlots:
    package_name: str
    module_name: str
    version: str
    description: str
    dependencies: tuple[str, ...]


@dataclass(frozen=True)
class PackageSlots:
    docstring: str


@dataclass(frozen=True)
class CredentialFlag:
    """A command-line flag read by the generated entry point."""

    key: str
    flag: str
    accessor: str


@dataclass(frozen=True)
class EntryPointSlots:
    server_name: str
    default_base_url: str
    credential_flags: tuple[CredentialFlag, ...]
    env_credentials: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class ServerSlots:
    server_name: str
    package_name: str
    version: str


@dataclass(frozen=True)
class ResponseSlots:
    pass


@dataclass(frozen=True)
class AuthSlots:
    auth_type: str
    api_key_name: str = ""
    api_key_location: str = ""
    unsupported_scheme: str = ""


@dataclass(frozen=True)
class FieldSlot:
    """One field of a generated tool ``Input`` model."""

    field_name: str
    alias: str
    annotation: str
    required: bool
    description: str


@dataclass(frozen=True)
class RequestValueSlot:
    """A parameter copied into the request URL, query string or headers."""

    name: str
    field_name: str
    value_expr: str
    required: bool


@dataclass(frozen=True)
class ToolSlots:
    docstring: str
    name: str
    title: str
    description: str
    method: str
    path: str
    fields: tuple[FieldSlot, ...]
    path_params: tuple[RequestValueSlot, ...]
    query_params: tuple[RequestValueSlot, ...]
    header_params: tuple[RequestValueSlot, ...]
    has_body: bool
    body_field_name: str
    has_parameters: bool
    requires_auth: bool
    auth_query: bool
    missing_auth_message: str
    builds_query: bool
    stdlib_imports: tuple[str, ...]
    urllib_imports: tuple[str, ...]


@dataclass(frozen=True)
class RegistrySlots:
    modules: tuple[str, ...]


@dataclass(frozen=True)
class ConfigSlots:
    server_name: str
    version: str
    auth_env_var: str


@dataclass(frozen=True)
class ToolSummary:
    name: str
    summary: str


@dataclass(frozen=True)
class ReadmeSlots:
    server_name: str
    package_name: str
    module_name: str
    base_url: str
    auth_type: str
    tools: tuple[ToolSummary, ...]
    run_example: str
    credential_options: tuple[tuple[str, str], ...]
    env_credentials: tuple[tuple[str, str], ...]
    honored_scheme: Optional[str]
    ignored_schemes: tuple[str, ...]


type Slots = Union[
    ManifestSlots,
    PackageSlots,
    EntryPointSlots,
    ServerSlots,
    ResponseSlots,
    AuthSlots,
    ToolSlots,
    RegistrySlots,
    ConfigSlots,
    ReadmeSlots,
]


@dataclass(frozen=True)
class Artifact:
    """One output file before rendering."""

    path: str
    template: str
    slots: Slots
