"""Generator options."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

DEFAULT_SERVER_NAME = "Generated MCP Server"
DEFAULT_AUTH_ENV_VAR = "API_TOKEN"
SERVER_VERSION = "1.0.0"


class ConfigError(RuntimeError):
    """Raised when generator options are invalid."""


class GeneratorConfig(BaseModel):
    """Options recognized by the generator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    server_name: str = Field(default=DEFAULT_SERVER_NAME, min_length=1)
    auth_env_var: str = Field(
        default=DEFAULT_AUTH_ENV_VAR,
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
    )


def build_config(
    *,
    server_name: Optional[str] = None,
    auth_env_var: Optional[str] = None,
) -> GeneratorConfig:
    """Build a validated config, falling back to defaults for unset options."""
    values: dict[str, str] = {}
    if server_name is not None:
        values["server_name"] = server_name.strip()
    if auth_env_var is not None:
        values["auth_env_var"] = auth_env_var.strip()
    try:
        return GeneratorConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid generator options: {exc}") from exc
