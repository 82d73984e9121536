"""Render typed template objects to text with jinja2."""

from __future__ import annotations

import json
from typing import Any

from jinja2 import Environment, PackageLoader, StrictUndefined

from .artifacts import Artifact


def _json_literal(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _pretty_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def create_environment() -> Environment:
    """Create the jinja2 environment used for every artifact.

    Filters:
        pyrepr: Python literal for a string or other plain value.
        json: single-line JSON literal, also valid as a TOML basic string.
        pretty_json: two-space indented JSON document.
    """
    environment = Environment(
        loader=PackageLoader("openapi_mcp_generator", "templates"),
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    environment.filters["pyrepr"] = repr
    environment.filters["json"] = _json_literal
    environment.filters["pretty_json"] = _pretty_json
    return environment


def render_artifact(environment: Environment, artifact: Artifact) -> str:
    """Render one artifact; the result always ends with exactly one newline."""
    template = environment.get_template(artifact.template)
    text = template.render(slots=artifact.slots)
    return text.rstrip("\n") + "\n"
