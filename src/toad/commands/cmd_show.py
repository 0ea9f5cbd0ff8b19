"""Show one project's full record and its CONTEXT.md deep-dive."""

from __future__ import annotations

import click

from toad.commands.resolve import echo_diagnostics, emit_json, json_mode, run_tool
from toad.output.formatter import format_size


@click.command()
@click.argument("name")
@click.option("--no-context", is_flag=True, help="Omit the CONTEXT.md text")
@click.pass_context
def show(ctx, name, no_context):
    """Show the full record of project NAME."""
    result = run_tool("get_project_detail", {"name": name})
    if json_mode(ctx):
        emit_json(ctx, result)
        return

    echo_diagnostics(result)
    p = result["project"]
    click.echo(f"=== {p['name']} ===")
    if p["essence"]:
        click.echo(p["essence"])
    click.echo("")
    click.echo(f"  activity:       {p['activity']}{'  (stale)' if p['is_stale'] else ''}")
    click.echo(f"  vcs:            {p['vcs_status']}")
    click.echo(f"  last activity:  {p['last_activity'] or '-'}")
    click.echo(f"  size:           {format_size(p['size_bytes'])}")
    click.echo(f"  stack:          {', '.join(p['stack']) or '-'}")
    click.echo(f"  tags:           {' '.join('#' + t for t in p['tags']) or '-'}")
    if p["context_detail"] and not no_context:
        click.echo("")
        click.echo(p["context_detail"].rstrip())
