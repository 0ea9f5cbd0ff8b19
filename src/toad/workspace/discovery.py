"""Workspace discovery: turn project directories into a snapshot."""

from __future__ import annotations

import logging
from pathlib import Path

from toad.exit_codes import DiscoveryError, InvalidRecord
from toad.model.records import ProjectRecord, Snapshot
from toad.workspace.config import WorkspaceConfig, find_workspace_root, load_workspace_config
from toad.workspace.manifest import load_context, read_manifest
from toad.workspace.ops import collect_ops

log = logging.getLogger(__name__)


def iter_project_dirs(config: WorkspaceConfig) -> list[Path]:
    """Immediate, non-hidden subdirectories of the projects dir, by name."""
    projects_dir = config.projects_dir
    if not projects_dir.is_dir():
        raise DiscoveryError(f"Projects directory not found: {projects_dir}")
    dirs = []
    for child in sorted(projects_dir.iterdir(), key=lambda p: p.name):
        if not child.is_dir() or child.name.startswith("."):
            continue
        if child.name in config.ignore:
            continue
        if child.resolve() == config.shadows_dir:
            continue
        dirs.append(child)
    return dirs


def build_record(project_dir: Path) -> ProjectRecord:
    """Build one record from the manifest and ops collaborators.

    Raises :class:`InvalidRecord` when either side produces bad data.
    """
    name = project_dir.name
    facts = read_manifest(project_dir, name)
    try:
        facts.update(collect_ops(project_dir))
    except OSError as exc:
        raise InvalidRecord(f"Project '{name}': cannot read project directory: {exc}", name=name) from None
    return ProjectRecord(name=name, path=project_dir, **facts)


class WorkspaceDiscovery:
    """Discovery collaborator backed by a directory of projects.

    Each call to :meth:`get_snapshot` rescans the disk; nothing is cached
    between queries.
    """

    def __init__(self, config: WorkspaceConfig):
        self.config = config

    @classmethod
    def from_environment(cls, start: str = ".") -> "WorkspaceDiscovery":
        """Resolve the workspace from ``$TOAD_HOME`` or the working directory."""
        root = find_workspace_root(start)
        if root is None:
            raise DiscoveryError()
        try:
            config = load_workspace_config(root)
        except (OSError, ValueError) as exc:
            # json.JSONDecodeError is a ValueError
            raise DiscoveryError(f"Invalid workspace config in {root}: {exc}") from None
        return cls(config)

    @property
    def ecosystem_tokens(self) -> int:
        return self.config.ecosystem_tokens

    def get_snapshot(self) -> Snapshot:
        records = []
        diagnostics = []
        for project_dir in iter_project_dirs(self.config):
            try:
                records.append(build_record(project_dir))
            except InvalidRecord as exc:
                log.warning("skipping project %s: %s", project_dir.name, exc.message)
                diagnostics.append(exc.message)
        log.info("discovered %d projects (%d rejected) in %s", len(records), len(diagnostics), self.config.projects_dir)
        return Snapshot(records=tuple(records), diagnostics=tuple(diagnostics))

    def load_context(self, record: ProjectRecord) -> str | None:
        project_dir = record.path or (self.config.projects_dir / record.name)
        return load_context(record.name, project_dir, self.config.shadows_dir)


class EnvironmentDiscovery:
    """Discovery that re-resolves the workspace from the environment per call.

    Used by the CLI and the MCP server so that a missing workspace surfaces
    as an upstream failure of the request instead of a startup crash.
    """

    def __init__(self, start: str = "."):
        self.start = start

    def resolve(self) -> WorkspaceDiscovery:
        return WorkspaceDiscovery.from_environment(self.start)

    def get_snapshot(self) -> Snapshot:
        return self.resolve().get_snapshot()

    def load_context(self, record: ProjectRecord) -> str | None:
        return self.resolve().load_context(record)

    @property
    def ecosystem_tokens(self) -> int | None:
        try:
            return self.resolve().config.ecosystem_tokens
        except DiscoveryError:
            return None
