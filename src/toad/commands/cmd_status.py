"""Per-project VCS status, activity tier and staleness."""

from __future__ import annotations

import click

from toad.commands.resolve import echo_diagnostics, emit_json, json_mode, run_tool, table


@click.command()
@click.option("--name", default=None, help="Case-insensitive name substring")
@click.option("--tag", "tags", multiple=True, help="Tag filter (repeatable, any-of)")
@click.option("--stale-only", is_flag=True, help="Only show stale projects")
@click.pass_context
def status(ctx, name, tags, stale_only):
    """Show ecosystem health status."""
    result = run_tool("get_ecosystem_status", {"name": name, "tag": list(tags) or None})
    if json_mode(ctx):
        emit_json(ctx, result)
        return

    echo_diagnostics(result)
    click.echo(f"VERDICT: {result['summary']['verdict']}")
    projects = result["projects"]
    if stale_only:
        projects = [p for p in projects if p["is_stale"]]
    if not projects:
        return
    rows = [
        [p["name"], p["vcs_status"], p["activity"], "yes" if p["is_stale"] else "", p["last_activity"] or "-"]
        for p in projects
    ]
    click.echo("")
    click.echo(table(ctx, ["Name", "VCS", "Activity", "Stale", "Last activity"], rows))
