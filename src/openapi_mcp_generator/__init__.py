"""OpenAPI to MCP server generator package."""

from __future__ import annotations

from .cli import main
from .generator import GenerationRun, run_generation

__all__ = ["GenerationRun", "main", "run_generation"]
