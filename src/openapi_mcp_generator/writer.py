"""Filesystem writer for emitted project artifacts."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class WriteError(RuntimeError):
    """Raised when output files cannot be written."""


def write_artifacts(output_dir: Path, artifacts: Iterable[tuple[str, str]]) -> list[Path]:
    """Write rendered artifacts below ``output_dir``.

    Parent directories are created as needed and existing files are
    overwritten, so writing the same artifacts twice is harmless.

    Args:
        output_dir (Path): Root directory of the generated project.
        artifacts (Iterable[tuple[str, str]]): ``(relative_path, content)`` pairs.

    Returns:
        list[Path]: Written file paths, in artifact order.
    """
    written: list[Path] = []
    for relative_path, content in artifacts:
        path = output_dir / relative_path
        _ensure_directory(path.parent)
        _write_file(path, content)
        written.append(path)
    return written


def _ensure_directory(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteError(f"Failed to create directory {path}: {exc}") from exc


def _write_file(path: Path, content: str) -> None:
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise WriteError(f"Failed to write file {path}: {exc}") from exc
