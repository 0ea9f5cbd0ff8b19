"""Project manifests: essence, tags, stack and the CONTEXT.md deep-dive.

A project may carry a ``.toad.yaml``::

    essence: Query engine for the ecosystem oracle
    tags: [core, "#backend"]
    stack: [python, click]

Fields the manifest leaves out are inferred: essence from the first prose
line of ``README.md``, stack from well-known build files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from toad.exit_codes import InvalidRecord

log = logging.getLogger(__name__)

MANIFEST_NAMES = (".toad.yaml", ".toad.yml")
README_NAMES = ("README.md", "README.rst", "README.txt", "README")
CONTEXT_FILE = "CONTEXT.md"

_ESSENCE_MAX = 200

# Checked in order; the detected stack keeps this order.
_STACK_MARKERS: tuple[tuple[str, str], ...] = (
    ("Cargo.toml", "rust"),
    ("go.mod", "go"),
    ("pyproject.toml", "python"),
    ("setup.py", "python"),
    ("requirements.txt", "python"),
    ("package.json", "node"),
    ("tsconfig.json", "typescript"),
    ("pom.xml", "java"),
    ("build.gradle", "java"),
    ("Gemfile", "ruby"),
    ("composer.json", "php"),
    ("CMakeLists.txt", "cmake"),
    ("Dockerfile", "docker"),
)


def _find_manifest(project_dir: Path) -> Path | None:
    for name in MANIFEST_NAMES:
        path = project_dir / name
        if path.is_file():
            return path
    return None


def _load_manifest(project_dir: Path, name: str) -> dict:
    path = _find_manifest(project_dir)
    if path is None:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise InvalidRecord(f"Project '{name}': unreadable manifest {path.name}: {exc}", name=name) from None
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRecord(f"Project '{name}': manifest {path.name} must be a mapping", name=name)
    return data


def _as_list(value, key: str, name: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, (str, int, float)) for v in value):
        return [str(v) for v in value]
    raise InvalidRecord(f"Project '{name}': manifest field '{key}' must be a string or a list", name=name)


def readme_essence(project_dir: Path) -> str:
    """First prose line of the README (headings, badges and fences skipped)."""
    for fname in README_NAMES:
        path = project_dir / fname
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue
        in_fence = False
        for line in text.splitlines():
            stripped = line.strip()
            if stripped.startswith("```"):
                in_fence = not in_fence
                continue
            if in_fence or not stripped:
                continue
            if stripped.startswith(("#", "[!", "![", "<", "=", "-" * 3)):
                continue
            if len(stripped) > _ESSENCE_MAX:
                return stripped[: _ESSENCE_MAX - 3] + "..."
            return stripped
    return ""


def detect_stack(project_dir: Path) -> list[str]:
    stack = []
    for marker, tech in _STACK_MARKERS:
        if (project_dir / marker).exists() and tech not in stack:
            stack.append(tech)
    return stack


def read_manifest(project_dir: Path, name: str | None = None) -> dict:
    """Return ``{"essence", "tags", "stack"}`` for *project_dir*.

    Raises :class:`InvalidRecord` when the manifest exists but is malformed.
    """
    project_dir = Path(project_dir)
    name = name or project_dir.name
    data = _load_manifest(project_dir, name)

    essence = data.get("essence")
    if essence is not None and not isinstance(essence, str):
        raise InvalidRecord(f"Project '{name}': manifest field 'essence' must be a string", name=name)
    tags = _as_list(data.get("tags"), "tags", name)
    stack = _as_list(data.get("stack"), "stack", name)

    return {
        "essence": essence if essence else readme_essence(project_dir),
        "tags": tags,
        "stack": stack if stack else detect_stack(project_dir),
    }


def load_context(name: str, project_dir: Path | None, shadows_dir: Path | None) -> str | None:
    """Read the CONTEXT.md deep-dive for one project, if any.

    The shadow copy (``<shadows_dir>/<name>/CONTEXT.md``) takes precedence
    over one inside the project itself.  OSError propagates.
    """
    candidates = []
    if shadows_dir is not None:
        candidates.append(Path(shadows_dir) / name / CONTEXT_FILE)
    if project_dir is not None:
        candidates.append(Path(project_dir) / CONTEXT_FILE)
    for path in candidates:
        if path.is_file():
            log.debug("loading context for %s from %s", name, path)
            return path.read_text(encoding="utf-8", errors="replace")
    return None
