"""High-level generator orchestration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from .auth import resolve_auth
from .config import SERVER_VERSION, ConfigError, GeneratorConfig, build_config
from .emitter import emit
from .json_types import JSONObject
from .loader import SpecLoadError, get_base_url, load_document
from .model_types import AuthInfo, GenerationContext, GenerationResult
from .naming import module_name, package_name
from .operations import MissingPathsError, extract_operations
from .verify import VerificationReport, verify_project
from .writer import WriteError, write_artifacts

__all__ = [
    "ConfigError",
    "GenerationRun",
    "MissingPathsError",
    "SpecLoadError",
    "WriteError",
    "build_context",
    "run_generation",
]


@dataclass(frozen=True)
class GenerationRun:
    """Generation result with optional verification report."""

    result: GenerationResult
    verification_report: Optional[VerificationReport]


def run_generation(
    *,
    input_path: Path,
    output_dir: Path,
    config: Optional[GeneratorConfig] = None,
    verify: bool = False,
) -> GenerationRun:
    """Generate an MCP server project from an OpenAPI document.

    Every artifact is rendered in memory before the first file is written, so
    a document that fails to load or yields no operations leaves the output
    directory untouched.

    Args:
        input_path (Path): Path to the input OpenAPI document.
        output_dir (Path): Directory where the project is written.
        config (Optional[GeneratorConfig]): Generator options; defaults apply when omitted.
        verify (bool): Whether to import and check the generated tools afterwards.

    Returns:
        GenerationRun: Generation metadata and optional verification report.
    """
    if config is None:
        config = build_config()
    document = load_document(input_path)
    context, warnings = build_context(document, config)
    artifacts = emit(context)
    write_artifacts(output_dir, artifacts)

    result = GenerationResult(
        output_dir=str(output_dir),
        files=tuple(relative_path for relative_path, _ in artifacts),
        operation_count=len(context.operations),
        auth_type=context.auth.type,
        warnings=tuple(warnings),
    )
    if not verify:
        return GenerationRun(result=result, verification_report=None)

    report = verify_project(operations=context.operations, output_dir=output_dir)
    return GenerationRun(result=result, verification_report=report)


def build_context(
    document: JSONObject,
    config: GeneratorConfig,
) -> tuple[GenerationContext, list[str]]:
    """Assemble the generation context and collect non-fatal warnings.

    Args:
        document (JSONObject): Parsed OpenAPI document.
        config (GeneratorConfig): Generator options.

    Returns:
        tuple[GenerationContext, list[str]]: Context and warnings.
    """
    operations, warnings = extract_operations(document)
    auth = resolve_auth(document)
    base_url, ignored_servers = get_base_url(document)
    warnings.extend(_auth_warnings(auth))
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        warnings.append(
            f"Server URL '{base_url}' is not absolute; pass --base-url to the generated "
            "server or requests will fail"
        )
    if ignored_servers:
        warnings.append(
            f"Only the first server URL ({base_url}) is used; ignored: "
            + ", ".join(ignored_servers)
        )

    distribution = package_name(config.server_name)
    context = GenerationContext(
        operations=tuple(operations),
        auth=auth,
        base_url=base_url,
        server_name=config.server_name,
        server_version=SERVER_VERSION,
        package_name=distribution,
        module_name=module_name(distribution),
        auth_env_var=config.auth_env_var,
    )
    return context, warnings


def _auth_warnings(auth: AuthInfo) -> list[str]:
    warnings: list[str] = []
    if auth.ignored_schemes:
        warnings.append(
            f"Only the first security scheme ('{auth.scheme_name}') is used; ignored: "
            + ", ".join(auth.ignored_schemes)
        )
    if auth.type == "oauth2":
        warnings.append(
            "OAuth2 security is not supported; tools that require authentication "
            "will return an error"
        )
    elif auth.type == "unknown":
        warnings.append(
            f"Security scheme '{auth.scheme_name}' is not recognized; the token is "
            "sent as a raw Authorization header"
        )
    return warnings
