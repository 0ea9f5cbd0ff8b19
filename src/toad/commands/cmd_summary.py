"""Ecosystem overview: counts by tag, stack and activity tier."""

from __future__ import annotations

import click

from toad.commands.resolve import echo_diagnostics, emit_json, json_mode, run_tool


@click.command()
@click.option("--tokens", "token_limit", default=None, type=click.IntRange(min=0),
              help="Cap the rendered overview at N tokens (0 = unlimited)")
@click.pass_context
def summary(ctx, token_limit):
    """Summarize the ecosystem."""
    result = run_tool("get_ecosystem_summary", {"token_limit": token_limit})
    if json_mode(ctx):
        emit_json(ctx, result)
        return

    echo_diagnostics(result)
    eco = result["ecosystem"]
    click.echo(f"VERDICT: {result['summary']['verdict']}")
    click.echo("")
    click.echo("Tiers:  " + "  ".join(f"{k}={v}" for k, v in eco["by_tier"].items()))
    click.echo("VCS:    " + "  ".join(f"{k}={v}" for k, v in eco["by_vcs_status"].items()))
    if eco["by_stack"]:
        click.echo("Stacks: " + "  ".join(f"{k}={v}" for k, v in eco["by_stack"].items()))
    if eco["by_tag"]:
        click.echo("Tags:   " + "  ".join(f"#{k}={v}" for k, v in eco["by_tag"].items()))
    click.echo("")
    click.echo(result["overview"].rstrip())
