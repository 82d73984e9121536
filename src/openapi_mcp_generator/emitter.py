"""Code emitter: turn a ``GenerationContext`` into project artifacts.

Emission is a pure function of the context. Every artifact is first built as a
typed template object (see ``artifacts.py``) and only rendered to text in the
final step, so the structure can be inspected without parsing output.
"""

from __future__ import annotations

from typing import Optional

from .artifacts import (
    Artifact,
    AuthSlots,
    ConfigSlots,
    CredentialFlag,
    EntryPointSlots,
    FieldSlot,
    ManifestSlots,
    PackageSlots,
    ReadmeSlots,
    RegistrySlots,
    RequestValueSlot,
    ResponseSlots,
    ServerSlots,
    ToolSlots,
    ToolSummary,
)
from .auth import DEFAULT_API_KEY_LOCATION, DEFAULT_API_KEY_NAME
from .model_types import AuthInfo, GenerationContext, Operation, Parameter
from .rendering import create_environment, render_artifact
from .schema_mapper import map_type

GENERATED_DEPENDENCIES: tuple[str, ...] = (
    "mcp>=1.10,<2",
    "pydantic>=2.7,<3",
    "httpx>=0.27",
)

_AUTH_TEMPLATES = {
    "bearer": "auth_bearer.py.j2",
    "basic": "auth_basic.py.j2",
    "apiKey": "auth_api_key.py.j2",
    "unknown": "auth_token.py.j2",
    "oauth2": "auth_none.py.j2",
    "none": "auth_none.py.j2",
}

_TOKEN_FLAG = CredentialFlag(key="token", flag="--token", accessor="get_access_token")
_API_KEY_FLAG = CredentialFlag(key="api_key", flag="--api-key", accessor="get_api_key")
_USERNAME_FLAG = CredentialFlag(key="username", flag="--username", accessor="get_username")
_PASSWORD_FLAG = CredentialFlag(key="password", flag="--password", accessor="get_password")

_CREDENTIAL_FLAGS: dict[str, tuple[CredentialFlag, ...]] = {
    "bearer": (_TOKEN_FLAG,),
    "unknown": (_TOKEN_FLAG,),
    "apiKey": (_API_KEY_FLAG,),
    "basic": (_USERNAME_FLAG, _PASSWORD_FLAG),
}

_FLAG_HELP = {
    "--token": "access token sent with every request",
    "--api-key": "API key sent with every request",
    "--username": "username for HTTP basic authentication",
    "--password": "password for HTTP basic authentication",
}


def emit(context: GenerationContext) -> list[tuple[str, str]]:
    """Render every artifact of the generated project.

    Args:
        context (GenerationContext): Normalized generation input.

    Returns:
        list[tuple[str, str]]: ``(relative_path, content)`` pairs in a fixed order.
    """
    environment = create_environment()
    return [
        (artifact.path, render_artifact(environment, artifact))
        for artifact in build_artifacts(context)
    ]


def build_artifacts(context: GenerationContext) -> list[Artifact]:
    """Build the typed template objects for every artifact, in emission order."""
    flags = _CREDENTIAL_FLAGS.get(context.auth.type, ())
    env_credentials = _env_credentials(context.auth, context.auth_env_var)

    artifacts = [
        Artifact(
            path="pyproject.toml",
            template="pyproject.toml.j2",
            slots=ManifestSlots(
                package_name=context.package_name,
                module_name=context.module_name,
                version=context.server_version,
                description=context.server_name,
                dependencies=GENERATED_DEPENDENCIES,
            ),
        ),
        _package_marker("src/__init__.py", f"{context.server_name} MCP server."),
        Artifact(
            path="src/index.py",
            template="index.py.j2",
            slots=EntryPointSlots(
                server_name=context.server_name,
                default_base_url=context.base_url,
                credential_flags=flags,
                env_credentials=env_credentials,
            ),
        ),
        Artifact(
            path="src/server.py",
            template="server.py.j2",
            slots=ServerSlots(
                server_name=context.server_name,
                package_name=context.package_name,
                version=context.server_version,
            ),
        ),
        _package_marker("src/utils/__init__.py", "Shared helpers for generated tools."),
        Artifact(
            path="src/utils/response.py",
            template="response.py.j2",
            slots=ResponseSlots(),
        ),
        Artifact(
            path="src/utils/auth.py",
            template=_AUTH_TEMPLATES.get(context.auth.type, "auth_token.py.j2"),
            slots=_auth_slots(context.auth),
        ),
        _package_marker("src/tools/__init__.py", "Generated MCP tools."),
    ]
    artifacts.extend(
        Artifact(
            path=f"src/tools/{operation.module_name}.py",
            template="tool.py.j2",
            slots=build_tool_slots(operation, context.auth, context.auth_env_var),
        )
        for operation in context.operations
    )
    artifacts.extend(
        [
            Artifact(
                path="src/tools/index.py",
                template="tools_index.py.j2",
                slots=RegistrySlots(
                    modules=tuple(operation.module_name for operation in context.operations)
                ),
            ),
            Artifact(
                path="config/default.json",
                template="default.json.j2",
                slots=ConfigSlots(
                    server_name=context.server_name,
                    version=context.server_version,
                    auth_env_var=context.auth_env_var,
                ),
            ),
            Artifact(
                path="README.md",
                template="README.md.j2",
                slots=_readme_slots(context, flags, env_credentials),
            ),
        ]
    )
    return artifacts


def build_tool_slots(operation: Operation, auth: AuthInfo, auth_env_var: str) -> ToolSlots:
    """Build the template object for one tool module.

    Only the operation and the shared auth settings are read, so each tool
    artifact is independent of every other operation.
    """
    declared = [param for param in operation.parameters if param.location != "body"]
    fields = [_field_slot(param) for param in declared]
    if operation.has_body:
        fields.append(
            FieldSlot(
                field_name=operation.body_field_name,
                alias=operation.body_key,
                annotation=(
                    "dict[str, Any]" if operation.body_required else "Optional[dict[str, Any]]"
                ),
                required=operation.body_required,
                description=_body_description(operation.parameters_in("body")),
            )
        )

    path_params = tuple(
        _request_value(param, _path_value(param))
        for param in operation.parameters_in("path")
        if "{" + param.name + "}" in operation.path
    )
    query_params = tuple(
        _request_value(param, _query_value(param)) for param in operation.parameters_in("query")
    )
    header_params = tuple(
        _request_value(param, _header_value(param))
        for param in operation.parameters_in("header")
    )

    requires_auth = auth.has_auth and not operation.allows_anonymous
    auth_query = requires_auth and auth.type == "apiKey" and auth.location == "query"
    builds_query = bool(query_params) or auth_query

    value_exprs = [value.value_expr for value in query_params + header_params]
    stdlib_imports = ("json",) if any("json.dumps" in expr for expr in value_exprs) else ()
    urllib_imports: list[str] = []
    if path_params:
        urllib_imports.append("quote")
    if builds_query:
        urllib_imports.append("urlencode")

    return ToolSlots(
        docstring=f"MCP tool for {operation.method} {operation.path}.",
        name=operation.operation_id,
        title=operation.summary,
        description=operation.description,
        method=operation.method,
        path=operation.path,
        fields=tuple(fields),
        path_params=path_params,
        query_params=query_params,
        header_params=header_params,
        has_body=operation.has_body,
        body_field_name=operation.body_field_name,
        has_parameters=bool(declared),
        requires_auth=requires_auth,
        auth_query=auth_query,
        missing_auth_message=(
            f"{operation.operation_id} failed: {_missing_auth_message(auth, auth_env_var)}"
        ),
        builds_query=builds_query,
        stdlib_imports=stdlib_imports,
        urllib_imports=tuple(urllib_imports),
    )


def _package_marker(path: str, docstring: str) -> Artifact:
    return Artifact(path=path, template="package.py.j2", slots=PackageSlots(docstring=docstring))


def _auth_slots(auth: AuthInfo) -> AuthSlots:
    if auth.type == "apiKey":
        return AuthSlots(
            auth_type=auth.type,
            api_key_name=auth.name or DEFAULT_API_KEY_NAME,
            api_key_location=auth.location or DEFAULT_API_KEY_LOCATION,
        )
    if auth.type == "oauth2":
        return AuthSlots(auth_type=auth.type, unsupported_scheme="oauth2")
    return AuthSlots(auth_type=auth.type)


def _env_credentials(auth: AuthInfo, auth_env_var: str) -> tuple[tuple[str, str], ...]:
    if auth.type in ("bearer", "unknown"):
        return (("token", auth_env_var),)
    if auth.type == "apiKey":
        return (("api_key", auth_env_var),)
    if auth.type == "basic":
        return (
            ("username", f"{auth_env_var}_USERNAME"),
            ("password", f"{auth_env_var}_PASSWORD"),
        )
    return ()


def _missing_auth_message(auth: AuthInfo, auth_env_var: str) -> str:
    if auth.type == "oauth2":
        return (
            "OAuth2 authentication is not supported by this server; "
            "no credentials are available"
        )
    if auth.type == "basic":
        return (
            "No credentials provided (use --username and --password or set "
            f"{auth_env_var}_USERNAME and {auth_env_var}_PASSWORD)"
        )
    if auth.type == "apiKey":
        return f"No API key provided (use --api-key or set {auth_env_var})"
    return f"No authentication token provided (use --token or set {auth_env_var})"


def _field_slot(param: Parameter) -> FieldSlot:
    annotation = map_type(param.type).annotation
    if not param.required and annotation != "Any":
        annotation = f"Optional[{annotation}]"
    return FieldSlot(
        field_name=param.field_name,
        alias=param.name,
        annotation=annotation,
        required=param.required,
        description=param.description,
    )


def _body_description(properties: tuple[Parameter, ...]) -> str:
    text = "Request body, sent as JSON."
    if not properties:
        return text
    listed = ", ".join(
        f"{prop.name} ({prop.type}{', required' if prop.required else ''})"
        for prop in properties
    )
    return f"{text} Properties: {listed}."


def _request_value(param: Parameter, value_expr: str) -> RequestValueSlot:
    return RequestValueSlot(
        name=param.name,
        field_name=param.field_name,
        value_expr=value_expr,
        required=param.required,
    )


def _boolean_text(attribute: str) -> str:
    return f'("true" if {attribute} else "false")'


def _path_value(param: Parameter) -> str:
    attribute = f"params.{param.field_name}"
    if param.type == "boolean":
        return _boolean_text(attribute)
    return f"str({attribute})"


def _query_value(param: Parameter) -> str:
    attribute = f"params.{param.field_name}"
    if param.type == "boolean":
        return _boolean_text(attribute)
    if param.type == "object":
        return f"json.dumps({attribute})"
    return attribute


def _header_value(param: Parameter) -> str:
    attribute = f"params.{param.field_name}"
    if param.type == "boolean":
        return _boolean_text(attribute)
    if param.type == "array":
        return f'",".join(str(item) for item in {attribute})'
    if param.type == "object":
        return f"json.dumps({attribute})"
    return f"str({attribute})"


def _readme_slots(
    context: GenerationContext,
    flags: tuple[CredentialFlag, ...],
    env_credentials: tuple[tuple[str, str], ...],
) -> ReadmeSlots:
    run_parts = ["python", "-m", "src.index"]
    for flag in flags:
        run_parts.extend([flag.flag, f"<{flag.key.replace('_', '-')}>"])
    honored: Optional[str] = None
    if context.auth.has_auth:
        honored = f"{context.auth.scheme_name} ({context.auth.type})"
    return ReadmeSlots(
        server_name=context.server_name,
        package_name=context.package_name,
        module_name=context.module_name,
        base_url=context.base_url,
        auth_type=context.auth.type,
        tools=tuple(
            ToolSummary(name=operation.operation_id, summary=operation.summary)
            for operation in context.operations
        ),
        run_example=" ".join(run_parts),
        credential_options=tuple((flag.flag, _FLAG_HELP[flag.flag]) for flag in flags),
        env_credentials=env_credentials,
        honored_scheme=honored,
        ignored_schemes=context.auth.ignored_schemes,
    )
