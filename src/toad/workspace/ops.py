"""VCS state, last activity and disk usage for a project directory."""

from __future__ import annotations

import logging
import os
import stat
import subprocess
from datetime import datetime, timezone
from pathlib import Path

from toad.model.records import VcsStatus

log = logging.getLogger(__name__)


def _run_git(cmd: list[str], *, cwd: Path, timeout: int = 30) -> subprocess.CompletedProcess | None:
    """Run a git command, returning *None* on failure."""
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding="utf-8",
            errors="replace",
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        log.warning("git command failed: %s", exc)
        return None

    if result.returncode != 0:
        log.debug("git %s returned %d: %s", cmd[1], result.returncode, result.stderr.strip())
        return None

    return result


def has_repo(project_dir: Path) -> bool:
    return (Path(project_dir) / ".git").exists()


def vcs_status(project_dir: Path) -> VcsStatus:
    """Classify the working tree from ``git status --porcelain``.

    No ``.git`` entry -> no-repo; git unavailable or failing -> unknown;
    no output -> clean; only untracked (``??``) lines -> untracked;
    anything else -> dirty.
    """
    project_dir = Path(project_dir)
    if not has_repo(project_dir):
        return VcsStatus.NO_REPO
    result = _run_git(["git", "status", "--porcelain"], cwd=project_dir)
    if result is None:
        return VcsStatus.UNKNOWN
    lines = [line for line in result.stdout.splitlines() if line.strip()]
    if not lines:
        return VcsStatus.CLEAN
    if all(line.startswith("??") for line in lines):
        return VcsStatus.UNTRACKED
    return VcsStatus.DIRTY


def last_commit_time(project_dir: Path) -> datetime | None:
    result = _run_git(["git", "log", "-1", "--format=%ct"], cwd=project_dir)
    if result is None:
        return None
    out = result.stdout.strip()
    if not out:
        return None
    try:
        return datetime.fromtimestamp(int(out), tz=timezone.utc)
    except ValueError:
        return None


def _walk_files(project_dir: Path, skip_git: bool):
    for dirpath, dirnames, filenames in os.walk(project_dir, followlinks=False):
        if skip_git and ".git" in dirnames:
            dirnames.remove(".git")
        for fname in filenames:
            path = os.path.join(dirpath, fname)
            try:
                st = os.lstat(path)
            except OSError:
                continue
            yield st


def newest_mtime(project_dir: Path) -> datetime | None:
    """Most recent mtime of any file outside ``.git``, or None if empty."""
    newest = None
    for st in _walk_files(project_dir, skip_git=True):
        if newest is None or st.st_mtime > newest:
            newest = st.st_mtime
    if newest is None:
        return None
    return datetime.fromtimestamp(newest, tz=timezone.utc)


def last_activity(project_dir: Path) -> datetime | None:
    """Last commit time, falling back to the newest file mtime."""
    project_dir = Path(project_dir)
    if has_repo(project_dir):
        ts = last_commit_time(project_dir)
        if ts is not None:
            return ts
    return newest_mtime(project_dir)


def disk_usage(project_dir: Path) -> int:
    """Total bytes of regular files under *project_dir* (``.git`` included).

    Symlinks are neither followed nor counted.
    """
    return sum(st.st_size for st in _walk_files(Path(project_dir), skip_git=False) if stat.S_ISREG(st.st_mode))


def collect_ops(project_dir: Path) -> dict:
    """Everything the ops side contributes to a project record."""
    return {
        "vcs_status": vcs_status(project_dir),
        "last_activity": last_activity(project_dir),
        "size_bytes": disk_usage(project_dir),
    }
