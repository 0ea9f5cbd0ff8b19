"""Standardized exit codes and error kinds for toad.

Exit code scheme:

    0  SUCCESS        -- query answered (an empty result is still a success)
    1  GENERAL_ERROR  -- unexpected failure or a malformed project record
    2  USAGE_ERROR    -- unknown tool, invalid arguments (Click default)
    3  NOT_FOUND      -- the named project is not in the workspace
    4  UPSTREAM       -- discovery or a collaborator could not produce data

Every error kind carries a machine-readable ``code`` (used by the MCP
server in structured error payloads) and a human-readable message.
"""

from __future__ import annotations

import click

# ---------------------------------------------------------------------------
# Exit code constants
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_ERROR: int = 1
EXIT_USAGE: int = 2
EXIT_NOT_FOUND: int = 3
EXIT_UPSTREAM: int = 4

# ---------------------------------------------------------------------------
# Human-readable descriptions (useful for --help, diagnostics, MCP hints)
# ---------------------------------------------------------------------------

DESCRIPTIONS: dict[int, str] = {
    EXIT_SUCCESS: "success",
    EXIT_ERROR: "unexpected error or malformed project record",
    EXIT_USAGE: "invalid usage (unknown tool or bad arguments)",
    EXIT_NOT_FOUND: "project not found in the workspace",
    EXIT_UPSTREAM: "workspace data unavailable -- check TOAD_HOME",
}

# ---------------------------------------------------------------------------
# Custom exceptions (caught by CLI error handler)
# ---------------------------------------------------------------------------


class ToadError(click.ClickException):
    """Base class for toad-specific errors with exit codes."""

    code = "TOAD_ERROR"
    hint = "check the error message for details."

    def __init__(self, message: str, exit_code: int = EXIT_ERROR):
        super().__init__(message)
        self.exit_code = exit_code

    def format_message(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        return {"error": self.message, "error_code": self.code, "hint": self.hint}


class InvalidRecord(ToadError):
    """Raised when a collaborator hands in a malformed project record."""

    code = "INVALID_RECORD"
    hint = "fix the project's manifest or metadata."

    def __init__(self, message: str, name: str | None = None):
        super().__init__(message, EXIT_ERROR)
        self.name = name


class UnknownTool(ToadError):
    code = "UNKNOWN_TOOL"
    hint = "call one of the registered tools."

    def __init__(self, tool: str):
        super().__init__(f"Unknown tool: {tool!r}", EXIT_USAGE)
        self.tool = tool


class InvalidArguments(ToadError):
    """Raised when tool arguments do not match the tool's expected shape."""

    code = "INVALID_ARGUMENTS"
    hint = "check the tool's argument names and types."

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid argument '{field}': {reason}", EXIT_USAGE)
        self.field = field

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["field"] = self.field
        return out


class NotFound(ToadError):
    code = "NOT_FOUND"
    hint = "use list_projects or search_projects to find the exact name."

    def __init__(self, name: str):
        super().__init__(f"Project '{name}' not found", EXIT_NOT_FOUND)
        self.name = name


class UpstreamUnavailable(ToadError):
    """Raised when discovery or a collaborator fails to produce data."""

    code = "UPSTREAM_UNAVAILABLE"
    hint = "ensure the workspace exists (set TOAD_HOME or add .toad-workspace.json)."

    def __init__(self, message: str):
        super().__init__(message, EXIT_UPSTREAM)


class DiscoveryError(ToadError):
    """Raised by the discovery collaborator when no snapshot can be built."""

    code = "DISCOVERY_ERROR"
    hint = UpstreamUnavailable.hint

    def __init__(self, message: str = "Workspace not found. Set TOAD_HOME or add .toad-workspace.json."):
        super().__init__(message, EXIT_UPSTREAM)

