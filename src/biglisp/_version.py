"""Version lookup for the biglisp distribution."""

import tomllib
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version
from pathlib import Path

DISTRIBUTION = "biglisp"

# src/biglisp/_version.py -> repository root
_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _source_tree_version() -> str | None:
    """Version declared in the checkout's pyproject.toml, if this is one."""
    if not _PYPROJECT.is_file():
        return None
    with _PYPROJECT.open("rb") as f:
        project = tomllib.load(f).get("project", {})
    if project.get("name") != DISTRIBUTION:
        return None
    return project.get("version")


def get_version() -> str:
    """Installed distribution version, else the checkout's, else 0.0.0."""
    try:
        return _metadata_version(DISTRIBUTION)
    except PackageNotFoundError:
        return _source_tree_version() or "0.0.0"
