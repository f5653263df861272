from pathlib import Path

import longmath


def _project_version() -> str:
    pyproject = Path(__file__).resolve().parents[1] / "pyproject.toml"
    section = ""
    for line in pyproject.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped.startswith("[") and stripped.endswith("]"):
            section = stripped
        elif section == "[project]" and stripped.startswith('version = "'):
            return stripped.split('"', 2)[1]
    raise AssertionError("Could not find [project].version in pyproject.toml")


def test_package_version_matches_pyproject() -> None:
    assert longmath.__version__ == _project_version()


def test_public_api_exports() -> None:
    assert set(longmath.__all__) >= {"TutorService", "ConfigurationError", "Difficulty", "ProblemKind", "Problem"}
