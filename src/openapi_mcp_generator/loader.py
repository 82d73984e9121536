"""OpenAPI document loading."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import yaml

from .json_types import JSONObject, OpenAPIDocument

DEFAULT_BASE_URL = "http://localhost:8000"

_SERVER_VARIABLE_RE = re.compile(r"\{(?P<name>[^{}]+)\}")

type _Parser = tuple[str, Callable[[str], Any]]


class SpecLoadError(RuntimeError):
    """Raised when a source OpenAPI document cannot be loaded."""


def load_document(path: Path) -> OpenAPIDocument:
    """Load an OpenAPI document from JSON or YAML text.

    The parser is chosen by file extension (``.json`` is parsed as JSON, anything
    else as YAML). When the chosen parser fails the other one is tried before
    giving up.

    Args:
        path (Path): Path to the OpenAPI document.

    Returns:
        OpenAPIDocument: Parsed document mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SpecLoadError(f"Failed to read OpenAPI file {path}: {exc}") from exc

    (primary_name, primary), (fallback_name, fallback) = _parser_order(path)
    try:
        payload = primary(text)
    except (ValueError, yaml.YAMLError) as primary_exc:
        try:
            payload = fallback(text)
        except (ValueError, yaml.YAMLError) as fallback_exc:
            raise SpecLoadError(
                f"Failed to parse {path} as {primary_name} ({primary_exc}) "
                f"or {fallback_name} ({fallback_exc})"
            ) from primary_exc

    if not isinstance(payload, dict):
        raise SpecLoadError(
            f"OpenAPI document must deserialize to a mapping, got {type(payload)!r}"
        )
    return payload


def get_base_url(document: JSONObject) -> tuple[str, list[str]]:
    """Return the first declared server URL and any ignored server URLs.

    Server variables are replaced by their declared defaults. When no server is
    declared, ``DEFAULT_BASE_URL`` is returned.
    """
    raw_servers = document.get("servers")
    if not isinstance(raw_servers, list):
        return DEFAULT_BASE_URL, []

    urls: list[str] = []
    for server in raw_servers:
        if not isinstance(server, dict):
            continue
        url = server.get("url")
        if not isinstance(url, str) or not url.strip():
            continue
        urls.append(_expand_server_variables(url.strip(), server.get("variables")))

    if not urls:
        return DEFAULT_BASE_URL, []
    return urls[0], urls[1:]


def _parser_order(path: Path) -> tuple[_Parser, _Parser]:
    if path.suffix.lower() == ".json":
        return ("JSON", json.loads), ("YAML", yaml.safe_load)
    return ("YAML", yaml.safe_load), ("JSON", json.loads)


def _expand_server_variables(url: str, variables: Any) -> str:
    if not isinstance(variables, dict):
        return url

    def _replace(match: re.Match[str]) -> str:
        variable = variables.get(match.group("name"))
        if isinstance(variable, dict) and variable.get("default") is not None:
            return str(variable["default"])
        return match.group(0)

    return _SERVER_VARIABLE_RE.sub(_replace, url)
