"""Long division and long multiplication practice core."""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .models import ConfigurationError, Difficulty, Problem, ProblemKind
from .service import TutorService

__all__ = [
    "ConfigurationError",
    "Difficulty",
    "Problem",
    "ProblemKind",
    "TutorService",
    "__version__",
]

_VERSION_LINE = re.compile(r'^version\s*=\s*"([^"]+)"\s*$')


def _version_from_pyproject() -> str | None:
    """Read [project].version from a checkout's pyproject.toml when running from source."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.exists():
            continue
        section = ""
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped.startswith("[") and stripped.endswith("]"):
                section = stripped
            elif section == "[project]" and (match := _VERSION_LINE.match(stripped)):
                return match.group(1)
    return None


def _resolve_version() -> str:
    found = _version_from_pyproject()
    if found is not None:
        return found
    try:
        return version("longmath")
    except PackageNotFoundError:
        return "0+unknown"


__version__ = _resolve_version()
