"""Helpers for importing a generated project from disk."""

from __future__ import annotations

import importlib
import importlib.util
import itertools
import sys
from pathlib import Path
from types import ModuleType

_COUNTER = itertools.count(1)


def unique_package_name(prefix: str = "generated_mcp") -> str:
    """Return an import name no other loaded generated package uses."""
    return f"{prefix}_{next(_COUNTER)}"


def load_generated_package(*, package_name: str, project_dir: Path) -> ModuleType:
    """Import the ``src`` package of a generated project under ``package_name``.

    The package is registered in ``sys.modules`` so its relative imports
    (``from ..utils.auth import Auth``) resolve against the generated files.

    Args:
        package_name (str): Import name to register the package under.
        project_dir (Path): Root directory of the generated project.

    Returns:
        ModuleType: The imported package.
    """
    source_dir = project_dir / "src"
    spec = importlib.util.spec_from_file_location(
        package_name,
        source_dir / "__init__.py",
        submodule_search_locations=[str(source_dir)],
    )
    if spec is None or spec.loader is None:
        raise RuntimeError(f"Unable to import generated package from: {source_dir}")

    package = importlib.util.module_from_spec(spec)
    sys.modules[package_name] = package
    try:
        spec.loader.exec_module(package)
    except Exception:
        sys.modules.pop(package_name, None)
        raise
    return package


def import_generated_module(package: ModuleType, relative_name: str) -> ModuleType:
    """Import a submodule such as ``tools.getWidget`` from a loaded package."""
    return importlib.import_module(f"{package.__name__}.{relative_name}")


def unload_generated_package(package_name: str) -> None:
    """Drop a generated package and all of its submodules from ``sys.modules``."""
    prefix = f"{package_name}."
    for name in [name for name in sys.modules if name == package_name or name.startswith(prefix)]:
        del sys.modules[name]
