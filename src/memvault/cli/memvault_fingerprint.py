"""CLI command: compute an entry fingerprint."""

from __future__ import annotations

import sys

import click

from ..core.fingerprint import generate_fingerprint
from .cli_common import CONTEXT_SETTINGS, ExitCode, run_command

__all__ = ["cli", "main"]


@click.command(context_settings=CONTEXT_SETTINGS, help="Print the fingerprint of CONTENT TIMESTAMP CREATOR")
@click.argument("content")
@click.argument("timestamp", type=int)
@click.argument("creator")
def cli(content: str, timestamp: int, creator: str) -> int:
    click.echo(generate_fingerprint(content, timestamp, creator))
    return ExitCode.SUCCESS


def main(args: list[str] | None = None) -> int:
    if args is None:
        args = sys.argv[1:]

    return run_command(cli, args)


if __name__ == "__main__":
    sys.exit(main())
