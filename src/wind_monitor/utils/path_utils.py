"""Project path resolution helpers."""

from pathlib import Path
from typing import Iterable
import sys


_DEFAULT_MARKERS = ("pyproject.toml", "setup.cfg", ".git")


def get_project_root(markers: Iterable[str] = _DEFAULT_MARKERS) -> Path:
    """Return the project root directory.

    - When frozen (PyInstaller etc.) the executable's parent is used.
    - Otherwise walk upwards looking for pyproject.toml/.git, falling back to the
      current working directory when installed without a checkout.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent

    current = Path(__file__).resolve().parent

    for directory in [current, *current.parents]:
        if any((directory / marker).exists() for marker in markers):
            return directory

    return Path.cwd()


def resolve_path(value: str | Path, root: Path | None = None) -> Path:
    """Resolve ``value`` against the project root unless it is already absolute."""
    path = Path(value).expanduser()
    if path.is_absolute():
        return path
    return (root or get_project_root()) / path
