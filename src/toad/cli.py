"""Click CLI entry point with lazy-loaded subcommands."""

import logging
import os
import sys

# Fix Unicode output on Windows consoles (cp1253, cp1252, etc.)
if sys.platform == "win32" and not os.environ.get("PYTHONIOENCODING"):
    sys.stdout.reconfigure(encoding="utf-8", errors="replace")
    sys.stderr.reconfigure(encoding="utf-8", errors="replace")

import click

from toad.exit_codes import DESCRIPTIONS

# Lazy-loading command group: imports command modules only when invoked.
# Keeps `toad --help` from importing fastmcp.
_COMMANDS = {
    "list":    ("toad.commands.cmd_list",    "list_cmd"),
    "show":    ("toad.commands.cmd_show",    "show"),
    "search":  ("toad.commands.cmd_search",  "search"),
    "summary": ("toad.commands.cmd_summary", "summary"),
    "status":  ("toad.commands.cmd_status",  "status"),
    "stats":   ("toad.commands.cmd_stats",   "stats"),
    "mcp":     ("toad.mcp_server",           "mcp_cmd"),
}

# Command categories for organized --help display
_CATEGORIES = {
    "Projects": ["list", "show", "search"],
    "Ecosystem Health": ["summary", "status", "stats"],
    "Integration": ["mcp"],
}


class LazyGroup(click.Group):
    """A Click group that lazy-loads command modules on first access."""

    def list_commands(self, ctx):
        return sorted(_COMMANDS.keys())

    def get_command(self, ctx, cmd_name):
        if cmd_name not in _COMMANDS:
            return None
        module_path, attr_name = _COMMANDS[cmd_name]
        import importlib
        mod = importlib.import_module(module_path)
        return getattr(mod, attr_name)

    def format_help(self, ctx, formatter):
        """Categorized help display instead of flat alphabetical list."""
        self.format_usage(ctx, formatter)
        formatter.write("\n")
        if self.help:
            formatter.write(self.help + "\n\n")

        for cat_name, cmds in _CATEGORIES.items():
            formatter.write(f"  {cat_name}:\n")
            for cmd_name in cmds:
                cmd = self.get_command(ctx, cmd_name)
                if cmd is None:
                    continue
                help_text = cmd.get_short_help_str(limit=60)
                formatter.write(f"    {cmd_name:12s} {help_text}\n")
            formatter.write("\n")

        formatter.write("  Exit codes:\n")
        for code, text in DESCRIPTIONS.items():
            formatter.write(f"    {code}  {text}\n")
        formatter.write("\n")
        formatter.write("  Run `toad <command> --help` for details on any command.\n")


@click.group(cls=LazyGroup)
@click.version_option(package_name="toad-oracle")
@click.option('--json', 'json_mode', is_flag=True, help='Output in JSON format')
@click.option('--compact', is_flag=True, help='Compact output: TSV tables, minimal JSON envelope')
@click.option('-v', '--verbose', count=True, help='Log to stderr (-v info, -vv debug)')
@click.pass_context
def cli(ctx, json_mode, compact, verbose):
    """Toad: ecosystem context oracle."""
    ctx.ensure_object(dict)
    ctx.obj['json'] = json_mode
    ctx.obj['compact'] = compact
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )
