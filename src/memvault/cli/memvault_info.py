"""CLI command: show vault metadata (startup banner)."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from ..core.config import load_config
from ..core.errors import ConfigError
from ..core.money import from_wei
from ..storage.vault import Vault
from .cli_common import CONTEXT_SETTINGS, CLIContext, ExitCode, run_command

__all__ = ["cli", "main", "render_banner"]


def render_banner(info: dict) -> str:
    """Format vault metadata as a startup banner."""
    lines = [
        "=" * 60,
        f"  {info['name']} ({info['symbol']})",
        "=" * 60,
        f"  Genesis:        {info['genesis']}",
        f"  Entry fee:      {from_wei(info['entry_fee'])} ether ({info['entry_fee']} wei)",
        f"  Min funding:    {from_wei(info['min_funding'])} ether",
        f"  Max length:     {info['max_content_length']} characters",
        f"  Capacity:       {info['capacity']} entries",
        f"  Milestones:     {', '.join(str(t) for t in info['milestone_thresholds'])}",
        f"  Seed:           {info['seed']}",
    ]
    return "\n".join(lines)


@click.command(context_settings=CONTEXT_SETTINGS, help="Show vault metadata and limits")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to memvault.yaml")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
def cli(config_path: Path | None, json_output: bool) -> int:
    ctx = CLIContext(json_output=json_output)
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        ctx.output(None, status="error", error=str(exc))
        return ExitCode.CONFIG_ERROR

    info = Vault(config.min_funding, config).info()
    if json_output:
        ctx.output(info)
    else:
        click.echo(render_banner(info))
    return ExitCode.SUCCESS


def main(args: list[str] | None = None) -> int:
    if args is None:
        args = sys.argv[1:]

    return run_command(cli, args)


if __name__ == "__main__":
    sys.exit(main())
