"""Security scheme classification.

Only the first declared security scheme is honored; the names of all other
schemes are kept on ``AuthInfo.ignored_schemes`` so they can be reported.
"""

from __future__ import annotations

from typing import Any

from .json_types import JSONObject
from .model_types import AuthInfo

DEFAULT_API_KEY_NAME = "X-API-Key"
DEFAULT_API_KEY_LOCATION = "header"

_API_KEY_LOCATIONS = {"header", "query", "cookie"}


def resolve_auth(document: JSONObject) -> AuthInfo:
    """Classify the document's first security scheme. Never raises."""
    components = document.get("components")
    if not isinstance(components, dict):
        return AuthInfo()
    schemes = components.get("securitySchemes")
    if not isinstance(schemes, dict) or not schemes:
        return AuthInfo()

    names = [str(name) for name in schemes]
    first_name = names[0]
    scheme = schemes[first_name]
    ignored = tuple(names[1:])
    auth_type = _classify(scheme) if isinstance(scheme, dict) else "unknown"
    if auth_type != "apiKey":
        return AuthInfo(
            has_auth=True,
            type=auth_type,
            scheme_name=first_name,
            ignored_schemes=ignored,
        )

    return AuthInfo(
        has_auth=True,
        type="apiKey",
        location=_api_key_location(scheme.get("in")),
        name=_api_key_name(scheme.get("name")),
        scheme_name=first_name,
        ignored_schemes=ignored,
    )


def _classify(scheme: JSONObject) -> str:
    scheme_type = scheme.get("type")
    if scheme_type == "http":
        http_scheme = scheme.get("scheme")
        if isinstance(http_scheme, str):
            lowered = http_scheme.lower()
            if lowered in ("bearer", "basic"):
                return lowered
        return "unknown"
    if scheme_type == "apiKey":
        return "apiKey"
    if scheme_type == "oauth2":
        return "oauth2"
    return "unknown"


def _api_key_location(value: Any) -> str:
    if isinstance(value, str) and value in _API_KEY_LOCATIONS:
        return value
    return DEFAULT_API_KEY_LOCATION


def _api_key_name(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_API_KEY_NAME
