"""Disk usage per project and the relative bloat index."""

from __future__ import annotations

import click

from toad.commands.resolve import echo_diagnostics, emit_json, json_mode, run_tool, table
from toad.output.formatter import format_size


@click.command()
@click.option("--name", default=None, help="Case-insensitive name substring")
@click.option("--tag", "tags", multiple=True, help="Tag filter (repeatable, any-of)")
@click.option("-n", "count", default=0, type=int, help="Show the N largest (0 = all)")
@click.pass_context
def stats(ctx, name, tags, count):
    """Show project disk usage, largest relative to the workspace mean first."""
    result = run_tool("get_project_stats", {"name": name, "tag": list(tags) or None})
    if json_mode(ctx):
        emit_json(ctx, result)
        return

    echo_diagnostics(result)
    click.echo(f"VERDICT: {result['summary']['verdict']}")
    entries = result["entries"]
    if count > 0:
        entries = entries[:count]
    if not entries:
        return
    rows = [
        [e["name"], format_size(e["size_bytes"]), f"{e['relative_index']:.2f}x"]
        for e in entries
    ]
    click.echo("")
    click.echo(table(ctx, ["Name", "Size", "Bloat"], rows))
