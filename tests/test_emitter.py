"""Unit tests for artifact emission."""

from __future__ import annotations

import ast
import json
import tomllib
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest

from openapi_mcp_generator.artifacts import ToolSlots
from openapi_mcp_generator.config import build_config
from openapi_mcp_generator.emitter import build_artifacts, build_tool_slots, emit
from openapi_mcp_generator.generator import build_context
from openapi_mcp_generator.loader import load_document
from openapi_mcp_generator.model_types import AuthInfo, GenerationContext
from .fixture_helpers import fixture_path as named_fixture
from .fixture_helpers import iter_fixture_paths, parametrize_fixtures


def _context(name: str, **options: Any) -> GenerationContext:
    context, _ = build_context(load_document(named_fixture(name)), build_config(**options))
    return context


def _files(context: GenerationContext) -> dict[str, str]:
    return dict(emit(context))


def _function_names(source: str) -> set[str]:
    tree = ast.parse(source)
    return {node.name for node in tree.body if isinstance(node, ast.FunctionDef)}


def _constant(source: str, name: str) -> Any:
    for node in ast.parse(source).body:
        if isinstance(node, ast.Assign):
            targets = node.targets
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            targets = [node.target]
        else:
            continue
        if any(isinstance(target, ast.Name) and target.id == name for target in targets):
            return ast.literal_eval(node.value)
    raise AssertionError(f"{name} not assigned")


def test_widgets_project_layout() -> None:
    """Every artifact is emitted once, in a fixed order."""
    paths = [path for path, _ in emit(_context("widgets.yaml"))]
    assert paths == [
        "pyproject.toml",
        "src/__init__.py",
        "src/index.py",
        "src/server.py",
        "src/utils/__init__.py",
        "src/utils/response.py",
        "src/utils/auth.py",
        "src/tools/__init__.py",
        "src/tools/listWidgets.py",
        "src/tools/createWidget.py",
        "src/tools/getWidget.py",
        "src/tools/deletewidgetswidgetId.py",
        "src/tools/healthCheck.py",
        "src/tools/index.py",
        "config/default.json",
        "README.md",
    ]


def test_emission_is_deterministic() -> None:
    """Emitting the same context twice yields identical output."""
    context = _context("widgets.yaml")
    assert emit(context) == emit(context)


@parametrize_fixtures()
def test_emitted_sources_are_valid(fixture_path: Path) -> None:
    """Python sources parse, the manifest is TOML and the config is JSON."""
    context, _ = build_context(load_document(fixture_path), build_config())
    for path, content in emit(context):
        assert content.endswith("\n"), path
        assert not content.endswith("\n\n"), path
        if path.endswith(".py"):
            ast.parse(content, filename=path)
        elif path.endswith(".toml"):
            tomllib.loads(content)
        elif path.endswith(".json"):
            json.loads(content)


def test_manifest_declares_runtime_and_start_command() -> None:
    """The manifest names the package, its dependencies and the console script."""
    files = _files(_context("widgets.yaml", server_name="Widget Tools"))
    manifest = tomllib.loads(files["pyproject.toml"])
    project = manifest["project"]
    assert project["name"] == "widget-tools"
    assert project["version"] == "1.0.0"
    assert project["description"] == "Widget Tools"
    dependency_names = {dep.split(">")[0].split("=")[0].split("<")[0] for dep in project["dependencies"]}
    assert dependency_names == {"mcp", "pydantic", "httpx"}
    assert project["scripts"] == {"widget-tools": "widget_tools.index:main"}
    assert manifest["tool"]["setuptools"]["package-dir"] == {"widget_tools": "src"}


def test_config_records_server_and_auth_variable() -> None:
    """The default configuration is two-space indented JSON."""
    files = _files(_context("widgets.yaml", server_name="Widget Tools", auth_env_var="WIDGET_TOKEN"))
    text = files["config/default.json"]
    assert json.loads(text) == {
        "server": {"name": "Widget Tools", "version": "1.0.0"},
        "auth": {"envVar": "WIDGET_TOKEN"},
    }
    assert text.startswith('{\n  "server"')


@pytest.mark.parametrize(
    ("fixture", "template", "accessors"),
    [
        ("widgets.yaml", "auth_bearer.py.j2", {"get_access_token"}),
        ("petstore.json", "auth_api_key.py.j2", {"get_api_key"}),
        ("api_key_query.yaml", "auth_api_key.py.j2", {"get_api_key"}),
        ("basic_auth.yaml", "auth_basic.py.j2", {"get_username", "get_password"}),
        ("no_auth.yaml", "auth_none.py.j2", set()),
    ],
)
def test_auth_body_and_credential_accessors_follow_auth_type(
    fixture: str, template: str, accessors: set[str]
) -> None:
    """Each auth type selects one auth body and only the accessors it needs."""
    context = _context(fixture)
    artifacts = {artifact.path: artifact for artifact in build_artifacts(context)}
    assert artifacts["src/utils/auth.py"].template == template

    entry_point = _files(context)["src/index.py"]
    credential_accessors = {
        "get_access_token",
        "get_api_key",
        "get_username",
        "get_password",
    }
    functions = _function_names(entry_point)
    assert functions & credential_accessors == accessors
    assert {"get_base_url", "build_credentials", "main"} <= functions


@pytest.mark.parametrize(
    ("auth", "template"),
    [
        (AuthInfo(has_auth=True, type="unknown", scheme_name="x"), "auth_token.py.j2"),
        (AuthInfo(has_auth=True, type="oauth2", scheme_name="x"), "auth_none.py.j2"),
    ],
)
def test_unsupported_schemes_use_fallback_bodies(auth: AuthInfo, template: str) -> None:
    """Unknown schemes send a raw token; OAuth2 gets the credential-free body."""
    context = replace(_context("widgets.yaml"), auth=auth)
    artifacts = {artifact.path: artifact for artifact in build_artifacts(context)}
    assert artifacts["src/utils/auth.py"].template == template


def test_environment_fallback_uses_configured_variable() -> None:
    """Basic credentials read ``<VAR>_USERNAME`` and ``<VAR>_PASSWORD``."""
    files = _files(_context("basic_auth.yaml", auth_env_var="REPORTS"))
    assert _constant(files["src/index.py"], "ENV_CREDENTIALS") == {
        "username": "REPORTS_USERNAME",
        "password": "REPORTS_PASSWORD",
    }


def test_default_base_url_is_embedded() -> None:
    """The first server URL becomes the entry point default."""
    files = _files(_context("widgets.yaml"))
    assert _constant(files["src/index.py"], "DEFAULT_BASE_URL") == "https://eu.widgets.example.com/v1"


def test_tool_slots_describe_request_construction() -> None:
    """Tool slots carry path substitutions, query and header parameters and the body."""
    context = _context("widgets.yaml")
    list_widgets, create_widget, get_widget, _, health = (
        build_tool_slots(operation, context.auth, context.auth_env_var)
        for operation in context.operations
    )
    assert [param.name for param in list_widgets.query_params] == ["limit", "tag", "includeArchived"]
    assert list_widgets.urllib_imports == ("urlencode",)
    assert list_widgets.requires_auth is True

    assert create_widget.has_body is True
    assert [field.alias for field in create_widget.fields] == ["body"]
    assert create_widget.fields[0].required is True
    assert "name (string, required)" in create_widget.fields[0].description

    assert [param.name for param in get_widget.path_params] == ["widgetId"]
    assert [param.name for param in get_widget.header_params] == ["X-Request-Id"]
    assert get_widget.urllib_imports == ("quote",)

    assert health.requires_auth is False


def test_tool_artifacts_are_independent_of_other_operations() -> None:
    """Removing sibling operations does not change a tool's rendered module."""
    context = _context("widgets.yaml")
    alone = replace(context, operations=(context.operations[2],))
    full_files = _files(context)
    alone_files = _files(alone)
    assert alone_files["src/tools/getWidget.py"] == full_files["src/tools/getWidget.py"]
    assert "listWidgets" not in alone_files["src/tools/index.py"]


def test_registry_lists_tools_in_operation_order() -> None:
    """The registry imports every tool module and exports TOOLS in order."""
    source = _files(_context("widgets.yaml"))["src/tools/index.py"]
    tree = ast.parse(source)
    imported = [
        alias.name
        for node in tree.body
        if isinstance(node, ast.ImportFrom)
        for alias in node.names
    ]
    assert imported == [
        "listWidgets",
        "createWidget",
        "getWidget",
        "deletewidgetswidgetId",
        "healthCheck",
    ]


def test_untrusted_text_is_embedded_as_literals() -> None:
    """Quotes, backslashes and newlines in document text cannot break generated code."""
    context = _context("no_auth.yaml", server_name='Evil "Server" \\ name')
    operation = replace(
        context.operations[0],
        summary='Say """hi""" \\ it\'s',
        description="line one\nline two \\n {braces}",
    )
    context = replace(context, operations=(operation,))
    files = _files(context)
    tool = files["src/tools/createNote.py"]
    assert _constant(tool, "TITLE") == 'Say """hi""" \\ it\'s'
    assert _constant(tool, "DESCRIPTION") == "line one\nline two \\n {braces}"
    manifest = tomllib.loads(files["pyproject.toml"])
    assert manifest["project"]["description"] == 'Evil "Server" \\ name'
    ast.parse(files["src/index.py"])
    ast.parse(files["src/server.py"])


def test_readme_lists_tools_credentials_and_ignored_schemes() -> None:
    """The README documents tools, credential flags and truncated schemes."""
    readme = _files(_context("basic_auth.yaml", auth_env_var="REPORTS"))["README.md"]
    assert "- **getReport**: Fetch a yearly report" in readme
    assert "`--username`" in readme
    assert "`REPORTS_PASSWORD`" in readme
    assert "- tokenAuth" in readme


def test_every_fixture_emits_one_tool_per_operation() -> None:
    """Tool module count equals operation count for every fixture."""
    for path in iter_fixture_paths():
        context, _ = build_context(load_document(path), build_config())
        tool_paths = [
            artifact.path
            for artifact in build_artifacts(context)
            if isinstance(artifact.slots, ToolSlots)
        ]
        assert len(tool_paths) == len(context.operations), path.name
