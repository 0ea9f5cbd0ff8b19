"""MCP (Model Context Protocol) server for toad.

Exposes the ecosystem oracle as structured, read-only MCP tools so that AI
coding agents can list, search and inspect the projects of a workspace.

Usage:
    toad mcp                    # stdio (for Claude Code, Cursor, etc.)
    toad mcp --transport sse    # SSE on localhost:8000
    toad mcp --transport streamable-http  # Streamable HTTP on localhost:8000
"""

from __future__ import annotations

import asyncio
import json
import logging

import click

try:
    from fastmcp import FastMCP
except ImportError:
    FastMCP = None

from toad.dispatch import QueryDispatcher
from toad.workspace.discovery import EnvironmentDiscovery

log = logging.getLogger(__name__)

_TOOL_PREFIX = "toad_"

# ---------------------------------------------------------------------------
# Server instance
# ---------------------------------------------------------------------------

if FastMCP is not None:
    mcp = FastMCP(
        "toad",
        instructions=(
            "Toad is an ecosystem context oracle. "
            "It answers questions about the projects of a local workspace: "
            "metadata, semantic search, activity and VCS health, disk bloat. "
            "Every tool is read-only and idempotent."
        ),
    )
else:
    mcp = None


_REGISTERED_TOOLS: list[str] = []


def _tool_title(name: str) -> str:
    """Convert toad tool name to a human title."""
    short = name.removeprefix(_TOOL_PREFIX).replace("_", " ")
    return short.title()


def _tool_annotations(name: str) -> dict:
    """Build MCP tool annotations with capability hints."""
    return {
        "title": _tool_title(name),
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }


def _tool(name: str, description: str = ""):
    """Register an MCP tool; the undecorated function is returned.

    Registration falls back to a plain ``mcp.tool(name=..., description=...)``
    for FastMCP versions without ``annotations``/``title`` support.
    """
    def decorator(fn):
        if mcp is None:
            return fn
        _REGISTERED_TOOLS.append(name)
        kwargs: dict = {"name": name, "title": _tool_title(name)}
        if description:
            kwargs["description"] = description
        kwargs["annotations"] = _tool_annotations(name)

        legacy = dict(kwargs)
        for key in ("annotations", "title"):
            legacy.pop(key, None)

        last_error: Exception | None = None
        for attempt in (kwargs, legacy):
            try:
                mcp.tool(**attempt)(fn)
                return fn
            except TypeError as exc:
                last_error = exc
        raise last_error
    return decorator


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_dispatcher: QueryDispatcher | None = None


def _get_dispatcher() -> QueryDispatcher:
    """Process-wide dispatcher; it holds no per-query state."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = QueryDispatcher(EnvironmentDiscovery())
    return _dispatcher


def _call(tool: str, **arguments) -> dict:
    """Dispatch *tool* and return the result or a structured error dict."""
    args = {k: v for k, v in arguments.items() if v is not None}
    outcome = _get_dispatcher().dispatch(tool, args)
    if not outcome.ok:
        log.debug("%s -> %s", tool, outcome.error.code)
    return outcome.to_dict()


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@_tool(name="toad_list_projects",
       description="List projects in the ecosystem, optionally filtered by name substring, "
                   "tag(s), stack item(s), activity tier or VCS status. All filters combine with AND.")
def list_projects(name: str | None = None,
                  tag: str | list[str] | None = None,
                  stack: str | list[str] | None = None,
                  activity_tier: str | None = None,
                  vcs_status: str | None = None) -> dict:
    """List projects matching every given filter.

    Parameters
    ----------
    name:
        Case-insensitive substring of the project name.
    tag:
        One tag or a list; a project matches when it has any of them.
    stack:
        One technology or a list; any-of match against the project stack.
    activity_tier:
        active, maturing, dormant, stale or unknown.
    vcs_status:
        clean, dirty, untracked, no-repo or unknown.
    """
    return _call("list_projects", name=name, tag=tag, stack=stack,
                 activity_tier=activity_tier, vcs_status=vcs_status)


@_tool(name="toad_get_project_detail",
       description="Get the full record of one project by exact name, including its CONTEXT.md deep-dive.")
def get_project_detail(name: str) -> dict:
    return _call("get_project_detail", name=name)


@_tool(name="toad_search_projects",
       description="Semantic search across project names, essences, tags and stacks. "
                   "Results are ranked by weighted match score.")
def search_projects(query: str, tag: str | list[str] | None = None) -> dict:
    """Rank projects against a free-text *query*.

    An empty query returns no results.  *tag* narrows candidates first.
    """
    return _call("search_projects", query=query, tag=tag)


@_tool(name="toad_get_ecosystem_summary",
       description="Ecosystem overview: project counts by tag, stack, activity tier and VCS status, "
                   "plus a markdown overview capped at token_limit tokens.")
def get_ecosystem_summary(token_limit: int | None = None) -> dict:
    return _call("get_ecosystem_summary", token_limit=token_limit)


@_tool(name="toad_get_ecosystem_status",
       description="Per-project VCS status, activity tier and staleness flag.")
def get_ecosystem_status(name: str | None = None, tag: str | list[str] | None = None) -> dict:
    return _call("get_ecosystem_status", name=name, tag=tag)


@_tool(name="toad_get_project_stats",
       description="Disk usage per project with a bloat index relative to the workspace mean size.")
def get_project_stats(name: str | None = None, tag: str | list[str] | None = None) -> dict:
    return _call("get_project_stats", name=name, tag=tag)


# ---------------------------------------------------------------------------
# CLI command
# ---------------------------------------------------------------------------


@click.command()
@click.option('--transport', type=click.Choice(['stdio', 'sse', 'streamable-http']), default='stdio',
              help='transport protocol (default: stdio)')
@click.option('--host', default='127.0.0.1', help='host for network transports')
@click.option('--port', type=int, default=8000, help='port for network transports')
@click.option('--list-tools', is_flag=True, help='list registered tools and exit')
@click.option('--list-tools-json', is_flag=True,
              help='list registered tools with metadata as JSON and exit')
def mcp_cmd(transport, host, port, list_tools, list_tools_json):
    """Start the toad MCP server.

    \b
    usage:
      toad mcp                    # stdio (for Claude Code, Cursor, etc.)
      toad mcp --transport sse    # SSE on localhost:8000
      toad mcp --list-tools       # show registered tools

    \b
    environment:
      TOAD_HOME=/path/to/workspace   # workspace root (else .toad-workspace.json lookup)

    \b
    integration:
      claude mcp add toad -- toad mcp
    """
    if mcp is None:
        click.echo(
            "error: fastmcp is required for the MCP server.\n"
            "install it with:  pip install fastmcp",
            err=True,
        )
        raise SystemExit(1)

    if list_tools_json:
        async def _collect_tools():
            return await mcp.list_tools()

        tools = asyncio.run(_collect_tools())
        payload_tools = []
        for tool in sorted(tools, key=lambda t: t.name):
            ann = tool.annotations.model_dump(exclude_none=True) if tool.annotations else {}
            payload_tools.append({
                "name": tool.name,
                "description": tool.description,
                "annotations": ann,
            })
        payload = {
            "server": "toad",
            "tool_count": len(payload_tools),
            "tools": payload_tools,
        }
        click.echo(json.dumps(payload, indent=2, sort_keys=True))
        return

    if list_tools:
        click.echo(f"{len(_REGISTERED_TOOLS)} tools registered:\n")
        for t in sorted(_REGISTERED_TOOLS):
            click.echo(f"  {t}")
        return

    if transport == "stdio":
        mcp.run()
    elif transport == "sse":
        mcp.run(transport="sse", host=host, port=port)
    else:
        try:
            mcp.run(transport="streamable-http", host=host, port=port)
        except TypeError:
            # Older FastMCP versions may use "http" alias.
            mcp.run(transport="http", host=host, port=port)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    if mcp is None:
        raise SystemExit(
            "fastmcp is required for the MCP server.\n"
            "Install it with:  pip install fastmcp"
        )
    mcp.run()
