"""List projects, optionally filtered by name, tag, stack, tier or VCS status."""

from __future__ import annotations

import click

from toad.commands.resolve import echo_diagnostics, emit_json, json_mode, run_tool, table
from toad.output.formatter import format_size, truncate_text


@click.command("list")
@click.option("--name", default=None, help="Case-insensitive name substring")
@click.option("--tag", "tags", multiple=True, help="Tag filter (repeatable, any-of)")
@click.option("--stack", "stacks", multiple=True, help="Stack filter (repeatable, any-of)")
@click.option("--activity", "activity_tier", default=None,
              type=click.Choice(["active", "maturing", "dormant", "stale", "unknown"], case_sensitive=False),
              help="Activity tier")
@click.option("--vcs", "vcs_status", default=None,
              type=click.Choice(["clean", "dirty", "untracked", "no-repo", "unknown"], case_sensitive=False),
              help="VCS status")
@click.pass_context
def list_cmd(ctx, name, tags, stacks, activity_tier, vcs_status):
    """List projects in the ecosystem."""
    result = run_tool(
        "list_projects",
        {
            "name": name,
            "tag": list(tags) or None,
            "stack": list(stacks) or None,
            "activity_tier": activity_tier,
            "vcs_status": vcs_status,
        },
    )
    if json_mode(ctx):
        emit_json(ctx, result)
        return

    echo_diagnostics(result)
    click.echo(f"VERDICT: {result['summary']['verdict']}")
    projects = result["projects"]
    if not projects:
        return
    rows = [
        [
            p["name"],
            p["activity"],
            p["vcs_status"],
            format_size(p["size_bytes"]),
            ",".join(p["stack"]),
            truncate_text(p["essence"], 50),
        ]
        for p in projects
    ]
    click.echo("")
    click.echo(table(ctx, ["Name", "Activity", "VCS", "Size", "Stack", "Essence"], rows))
