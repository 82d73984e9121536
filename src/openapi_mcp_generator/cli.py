"""Command line interface for OpenAPI to MCP server generation."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from .config import ConfigError, build_config
from .generator import MissingPathsError, SpecLoadError, WriteError, run_generation
from .verify import format_report


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="openapi-mcp-generate",
        description="Generate an MCP tool server project from an OpenAPI document",
    )
    parser.add_argument("--spec", required=True, help="Path to an OpenAPI YAML or JSON file")
    parser.add_argument("--output", required=True, help="Output directory for the generated project")
    parser.add_argument("--server-name", help="Display name of the generated server")
    parser.add_argument(
        "--auth-env-var",
        help="Environment variable the generated server reads credentials from",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Import the generated tools and check them against the document",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    spec_path = Path(args.spec)
    output_path = Path(args.output)
    if not spec_path.is_file():
        parser.error(f"OpenAPI file not found: {spec_path}")

    print(f"Generating MCP server from {spec_path}")
    try:
        config = build_config(server_name=args.server_name, auth_env_var=args.auth_env_var)
        run = run_generation(
            input_path=spec_path,
            output_dir=output_path,
            config=config,
            verify=bool(args.verify),
        )
    except (SpecLoadError, MissingPathsError, WriteError, ConfigError) as exc:
        parser.error(str(exc))
        return 2

    result = run.result
    print(f"Found {result.operation_count} operations")
    print(f"Authentication: {result.auth_type}")
    for warning in result.warnings:
        print(f"Warning: {warning}")
    print(f"Wrote {len(result.files)} files to {result.output_dir}")
    print("To run the server:")
    print(f"  cd {result.output_dir}")
    print("  pip install -e .")
    print("  python -m src.index")

    if run.verification_report is not None:
        print(format_report(run.verification_report))
        if run.verification_report.mismatch_count > 0:
            return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
