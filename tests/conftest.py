"""Shared test fixtures and helpers for toad tests.

Provides:
- Record helpers: make_record(), NOW (fixed reference time), days_ago()
- FakeDiscovery: in-memory snapshot provider for dispatcher tests
- Git helpers: git_init(), git_commit()
- Workspace fixture: a TOAD_HOME workspace with real project directories
- CliRunner fixtures: cli_runner, invoke_cli()
- JSON validation helpers: parse_json_output(), assert_json_envelope()
"""

from __future__ import annotations

import json
import subprocess
from datetime import datetime, timedelta, timezone

import pytest
from click.testing import CliRunner

# ===========================================================================
# Record helpers
# ===========================================================================

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_record(name, **kwargs):
    """Build a ProjectRecord with sensible defaults."""
    from toad.model.records import ProjectRecord

    kwargs.setdefault("essence", "")
    kwargs.setdefault("vcs_status", "clean")
    kwargs.setdefault("last_activity", days_ago(1))
    kwargs.setdefault("size_bytes", 100)
    return ProjectRecord(name=name, **kwargs)


class FakeDiscovery:
    """In-memory discovery collaborator.

    *records* may be ProjectRecords or raw mappings; *contexts* maps
    project names to CONTEXT.md text; *error* is raised by get_snapshot().
    """

    def __init__(self, records=(), contexts=None, error=None, ecosystem_tokens=None):
        self.records = list(records)
        self.contexts = contexts or {}
        self.error = error
        self.ecosystem_tokens = ecosystem_tokens
        self.snapshot_calls = 0
        self.context_calls = []

    def get_snapshot(self):
        self.snapshot_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.records)

    def load_context(self, record):
        self.context_calls.append(record.name)
        return self.contexts.get(record.name)


@pytest.fixture
def ab_records():
    """The two-project snapshot: A (100 bytes, #core), B (300 bytes, #tool)."""
    return [
        make_record("A", tags=["core"], size_bytes=100),
        make_record("B", tags=["tool"], size_bytes=300),
    ]


@pytest.fixture
def dispatcher_for():
    """Factory: dispatcher over the given records with the clock fixed at NOW."""
    from toad.dispatch import QueryDispatcher

    def _make(records=(), **kwargs):
        discovery = FakeDiscovery(records, **kwargs)
        return QueryDispatcher(discovery, clock=lambda: NOW)

    return _make


# ===========================================================================
# Git helpers
# ===========================================================================


def git_init(path):
    """Initialize a git repo, add all files, and commit."""
    subprocess.run(["git", "init"], cwd=path, capture_output=True)
    subprocess.run(["git", "config", "user.email", "t@t.com"], cwd=path, capture_output=True)
    subprocess.run(["git", "config", "user.name", "Test"], cwd=path, capture_output=True)
    subprocess.run(["git", "add", "."], cwd=path, capture_output=True)
    subprocess.run(["git", "commit", "-m", "init"], cwd=path, capture_output=True)


def git_commit(path, msg="update"):
    """Stage all and commit."""
    subprocess.run(["git", "add", "."], cwd=path, capture_output=True)
    subprocess.run(["git", "commit", "-m", msg], cwd=path, capture_output=True)


# ===========================================================================
# Workspace fixture
# ===========================================================================


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """A workspace with four projects, exported through TOAD_HOME.

    - alpha:  git repo, clean, python, manifest with tags core/backend
    - beta:   git repo with an uncommitted edit (dirty), node
    - gamma:  plain directory, no repo, README essence only
    - broken: malformed manifest, rejected at discovery
    """
    root = tmp_path / "ws"
    root.mkdir()
    (root / ".toad-workspace.json").write_text(
        json.dumps({"workspace": "test-eco", "ecosystem_tokens": 500})
    )

    alpha = root / "alpha"
    alpha.mkdir()
    (alpha / ".toad.yaml").write_text(
        "essence: Query engine for the ecosystem\n"
        "tags: [core, '#Backend']\n"
        "stack: [python, click]\n"
    )
    (alpha / "pyproject.toml").write_text("[project]\nname = 'alpha'\n")
    (alpha / "CONTEXT.md").write_text("# alpha\n\nDeep dive into alpha.\n")
    git_init(alpha)

    beta = root / "beta"
    beta.mkdir()
    (beta / "package.json").write_text('{"name": "beta"}\n')
    (beta / "README.md").write_text("# beta\n\nWeb frontend for the dashboard.\n")
    git_init(beta)
    (beta / "package.json").write_text('{"name": "beta", "version": "2"}\n')

    gamma = root / "gamma"
    gamma.mkdir()
    (gamma / "README.md").write_text("# gamma\n\nScratch notes and experiments.\n")
    (gamma / "notes.txt").write_text("x" * 1000)

    broken = root / "broken"
    broken.mkdir()
    (broken / ".toad.yaml").write_text("tags: [unclosed\n")

    monkeypatch.setenv("TOAD_HOME", str(root))
    return root


# ===========================================================================
# CliRunner helpers
# ===========================================================================


@pytest.fixture
def cli_runner():
    """Provide a Click CliRunner for in-process CLI testing."""
    return CliRunner()


def invoke_cli(runner, args, json_mode=False):
    """Invoke the toad CLI via CliRunner.

    Args:
        runner: CliRunner instance
        args: list of CLI arguments (e.g. ["list"])
        json_mode: if True, prepend --json flag
    Returns:
        click.testing.Result
    """
    from toad.cli import cli

    full_args = []
    if json_mode:
        full_args.append("--json")
    full_args.extend(args)
    return runner.invoke(cli, full_args, catch_exceptions=False)


# ===========================================================================
# JSON validation helpers
# ===========================================================================


def parse_json_output(result, command=None):
    """Parse JSON from a CliRunner result.

    Args:
        result: click.testing.Result from invoke_cli
        command: optional command name for better error messages
    Returns:
        Parsed dict from JSON output
    Raises:
        AssertionError with context on parse failure
    """
    assert result.exit_code == 0, f"Command {command or '?'} failed (exit {result.exit_code}):\n{result.output}"
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        pytest.fail(f"Invalid JSON from {command or '?'}: {e}\nOutput was:\n{result.output[:500]}")


def assert_json_envelope(data, command=None):
    """Validate that a parsed JSON dict follows the toad envelope contract.

    Checks required top-level keys: schema, command, version, summary.
    Checks summary contains a verdict string and a diagnostics list.
    """
    assert isinstance(data, dict), f"Expected dict, got {type(data)}"
    for key in ("schema", "command", "version", "summary"):
        assert key in data, f"Missing '{key}' key in envelope"
    if command:
        assert data["command"] == command, f"Expected command={command}, got {data['command']}"
    summary = data["summary"]
    assert isinstance(summary, dict), f"summary should be dict, got {type(summary)}"
    assert isinstance(summary.get("verdict"), str)
    assert isinstance(summary.get("diagnostics"), list)
