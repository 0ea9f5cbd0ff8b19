"""Shared plumbing for CLI commands: dispatch a tool and print its result."""

from __future__ import annotations

import click

from toad.dispatch import QueryDispatcher
from toad.output.formatter import compact_json_envelope, format_table, format_table_compact, to_json
from toad.workspace.discovery import EnvironmentDiscovery


def run_tool(tool: str, arguments: dict) -> dict:
    """Dispatch *tool* against the current workspace.

    A failed request raises its :class:`~toad.exit_codes.ToadError`, which
    Click reports on stderr with the error's exit code.
    """
    args = {k: v for k, v in arguments.items() if v is not None and v != ()}
    outcome = QueryDispatcher(EnvironmentDiscovery()).dispatch(tool, args)
    if not outcome.ok:
        raise outcome.error
    return outcome.result


def json_mode(ctx) -> bool:
    return bool(ctx.obj.get("json")) if ctx.obj else False


def emit_json(ctx, result: dict) -> None:
    if ctx.obj and ctx.obj.get("compact"):
        result = compact_json_envelope(result)
    click.echo(to_json(result))


def table(ctx, headers: list[str], rows: list[list[str]]) -> str:
    if ctx.obj and ctx.obj.get("compact"):
        return format_table_compact(headers, rows)
    return format_table(headers, rows)


def echo_diagnostics(result: dict) -> None:
    for diag in result.get("summary", {}).get("diagnostics", []):
        click.echo(f"WARNING: {diag}", err=True)
