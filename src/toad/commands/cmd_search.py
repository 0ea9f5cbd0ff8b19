"""Rank projects against a free-text query."""

from __future__ import annotations

import click

from toad.commands.resolve import echo_diagnostics, emit_json, json_mode, run_tool


@click.command()
@click.argument("query")
@click.option("--tag", "tags", multiple=True, help="Only search projects with any of these tags")
@click.option("-n", "count", default=0, type=int, help="Show at most N results (0 = all)")
@click.pass_context
def search(ctx, query, tags, count):
    """Search projects by name, essence, tags and stack."""
    result = run_tool("search_projects", {"query": query, "tag": list(tags) or None})
    if json_mode(ctx):
        emit_json(ctx, result)
        return

    echo_diagnostics(result)
    click.echo(f"VERDICT: {result['summary']['verdict']}")
    hits = result["results"]
    if count > 0:
        hits = hits[:count]
    if not hits:
        click.echo("  (no matches)")
        return
    click.echo("")
    for h in hits:
        click.echo(f"  {h['score']:6.2f}  {h['name']}  [{', '.join(h['matched_fields'])}]")
