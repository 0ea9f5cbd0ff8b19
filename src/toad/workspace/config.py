"""Workspace configuration: discovery, loading, validation."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

WORKSPACE_CONFIG_NAME = ".toad-workspace.json"
HOME_ENV_VAR = "TOAD_HOME"

DEFAULT_PROJECTS_DIR = "."
DEFAULT_SHADOWS_DIR = ".toad/shadows"
DEFAULT_ECOSYSTEM_TOKENS = 2000


@dataclass(frozen=True)
class WorkspaceConfig:
    root: Path
    name: str
    projects_dir: Path
    shadows_dir: Path
    ignore: frozenset[str] = field(default_factory=frozenset)
    ecosystem_tokens: int = DEFAULT_ECOSYSTEM_TOKENS


def find_workspace_root(start: str = ".") -> Path | None:
    """Locate the workspace root.

    ``$TOAD_HOME`` wins when set.  Otherwise walk up from *start* looking
    for a .toad-workspace.json file.  Returns the directory, or None.
    """
    home = os.environ.get(HOME_ENV_VAR, "").strip()
    if home:
        path = Path(home).expanduser().resolve()
        return path if path.is_dir() else None
    current = Path(start).resolve()
    while True:
        if (current / WORKSPACE_CONFIG_NAME).exists():
            return current
        if current == current.parent:
            return None
        current = current.parent


def load_workspace_config(root: Path) -> WorkspaceConfig:
    """Read and validate .toad-workspace.json from *root*.

    A missing file yields the defaults (a workspace whose projects are the
    subdirectories of *root*).  Raises ValueError on structural problems
    and json.JSONDecodeError on malformed JSON.
    """
    root = Path(root)
    config_path = root / WORKSPACE_CONFIG_NAME
    cfg: dict[str, Any] = {}
    if config_path.exists():
        text = config_path.read_text(encoding="utf-8")
        cfg = json.loads(text)
        _validate_config(cfg)

    return WorkspaceConfig(
        root=root,
        name=cfg.get("workspace") or root.name,
        projects_dir=(root / cfg.get("projects_dir", DEFAULT_PROJECTS_DIR)).resolve(),
        shadows_dir=(root / cfg.get("shadows_dir", DEFAULT_SHADOWS_DIR)).resolve(),
        ignore=frozenset(cfg.get("ignore", [])),
        ecosystem_tokens=cfg.get("ecosystem_tokens", DEFAULT_ECOSYSTEM_TOKENS),
    )


def _validate_config(cfg: dict[str, Any]) -> None:
    """Raise ValueError if the config is structurally invalid."""
    if not isinstance(cfg, dict):
        raise ValueError("Workspace config must be a JSON object")
    for key in ("workspace", "projects_dir", "shadows_dir"):
        if key in cfg and not isinstance(cfg[key], str):
            raise ValueError(f"'{key}' must be a string")
    ignore = cfg.get("ignore", [])
    if not isinstance(ignore, list) or not all(isinstance(i, str) for i in ignore):
        raise ValueError("'ignore' must be a list of directory names")
    tokens = cfg.get("ecosystem_tokens", DEFAULT_ECOSYSTEM_TOKENS)
    if isinstance(tokens, bool) or not isinstance(tokens, int) or tokens < 0:
        raise ValueError("'ecosystem_tokens' must be a non-negative integer")
