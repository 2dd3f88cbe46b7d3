"""Test packaging metadata and installation extras."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _load_pyproject() -> dict[str, Any]:
    pyproject_path = PROJECT_ROOT / "pyproject.toml"
    raw = pyproject_path.read_text(encoding="utf-8")
    if sys.version_info >= (3, 11):
        import tomllib

        return tomllib.loads(raw)

    import tomli

    return tomli.loads(raw)


def _names(items: list[str]) -> set[str]:
    out = set()
    for item in items:
        name = str(item).strip().lower()
        for sep in ("[", ">", "<", "=", "~", "!", " "):
            name = name.split(sep, 1)[0]
        out.add(name)
    return out


def test_pyproject_declares_test_extras() -> None:
    """Ensure `pyproject.toml` declares pytest under `[project.optional-dependencies].test`."""
    data = _load_pyproject()
    test_deps = data.get("project", {}).get("optional-dependencies", {}).get("test", [])
    assert {"pytest", "anyio", "httpx"} <= _names(test_deps)


def test_pyproject_declares_runtime_stack() -> None:
    project = _load_pyproject().get("project", {})
    assert {"fastapi", "pydantic", "loguru", "pyyaml", "rich"} <= _names(project.get("dependencies", []))
    assert "uvicorn" in _names(project.get("optional-dependencies", {}).get("server", []))
    assert project.get("scripts", {}).get("shiptivity") == "shiptivity.cli:main"
