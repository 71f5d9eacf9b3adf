"""Project context extraction from manifest files."""

from __future__ import annotations

import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Any

from riskrank.models import ProjectContext

logger = logging.getLogger("riskrank.context")

# dependency name → framework label
NODE_FRAMEWORKS = {
    "react": "React",
    "next": "Next.js",
    "express": "Express",
    "vue": "Vue",
    "angular": "Angular",
}

PYTHON_FRAMEWORKS = {
    "django": "Django",
    "flask": "Flask",
    "fastapi": "FastAPI",
}

_REQ_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)\s*(?:\[[^\]]*\])?\s*(.*)$")


def _read_json(path: Path) -> dict[str, Any] | None:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read %s: %s", path.name, e)
        return None
    return data if isinstance(data, dict) else None


def _split_requirement(req: str) -> tuple[str, str] | None:
    """``flask>=2.0 ; python_version>'3'`` → ``("flask", ">=2.0")``."""
    req = req.split("#", 1)[0].split(";", 1)[0].strip()
    if not req or req.startswith("-"):
        return None
    match = _REQ_NAME_RE.match(req)
    if not match:
        return None
    name = match.group(1).lower()
    return name, match.group(2).strip() or "*"


def _python_dependencies(root: Path) -> tuple[str | None, str | None, dict[str, str]]:
    name: str | None = None
    version: str | None = None
    deps: dict[str, str] = {}

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Could not read pyproject.toml: %s", e)
            data = {}
        project = data.get("project") or {}
        name = project.get("name")
        version = project.get("version")
        for req in project.get("dependencies") or []:
            parsed = _split_requirement(req)
            if parsed:
                deps[parsed[0]] = parsed[1]

    requirements = root / "requirements.txt"
    if requirements.is_file():
        try:
            lines = requirements.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            logger.warning("Could not read requirements.txt: %s", e)
            lines = []
        for line in lines:
            parsed = _split_requirement(line)
            if parsed:
                deps.setdefault(parsed[0], parsed[1])

    return name, version, deps


def extract_project_context(target_dir: str | Path) -> ProjectContext:
    """Read name, dependencies and frameworks from the project's manifests.

    Missing manifests are fine: the result simply stays sparse.
    """
    root = Path(target_dir).expanduser().resolve()

    name: str | None = None
    version: str | None = None
    dependencies: dict[str, str] = {}
    dev_dependencies: dict[str, str] = {}
    frameworks: list[str] = []

    # Node
    pkg = _read_json(root / "package.json")
    if pkg:
        name = pkg.get("name") or None
        version = pkg.get("version") or None
        dependencies.update(pkg.get("dependencies") or {})
        dev_dependencies.update(pkg.get("devDependencies") or {})
        all_deps = {**dependencies, **dev_dependencies}
        for dep, label in NODE_FRAMEWORKS.items():
            if dep in all_deps:
                frameworks.append(label)

    # Python
    py_name, py_version, py_deps = _python_dependencies(root)
    name = name or py_name
    version = version or py_version
    for dep, constraint in py_deps.items():
        dependencies.setdefault(dep, constraint)
    for dep, label in PYTHON_FRAMEWORKS.items():
        if dep in py_deps:
            frameworks.append(label)

    logger.debug("Context for %s: name=%s frameworks=%s", root, name, frameworks)
    return ProjectContext(
        name=name,
        version=version,
        frameworks=frameworks,
        dependencies=dependencies,
        dev_dependencies=dev_dependencies,
    )
