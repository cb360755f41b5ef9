"""Common CLI utilities: JSON output, stable exit codes, amount parsing."""

from __future__ import annotations

import json
from enum import IntEnum
from typing import Any

import click

from ..core.money import as_wei, to_wei

__all__ = [
    "CONTEXT_SETTINGS",
    "CLIContext",
    "ExitCode",
    "parse_amount",
    "run_command",
]

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class ExitCode(IntEnum):
    """Stable exit codes for CLI commands."""

    SUCCESS = 0
    INVALID_INPUT = 2  # Bad input file, rejected submission, bad amount
    CONFIG_ERROR = 6
    UNKNOWN_ERROR = 7


def parse_amount(value: Any) -> int:
    """Parse an amount in wei.

    Accepts ints, digit strings, and strings ending in ``ether``
    (e.g., ``"0.00042 ether"``).
    """
    if isinstance(value, str) and value.strip().lower().endswith("ether"):
        return to_wei(value.strip()[: -len("ether")].strip())
    return as_wei(value)


class CLIContext:
    """Output helper switching between human-readable and JSON output."""

    def __init__(self, json_output: bool = False, verbose: bool = False) -> None:
        self.json_output = json_output
        self.verbose = verbose

    def output(self, data: Any, status: str = "success", error: str | None = None) -> None:
        """Output result in appropriate format.

        Args:
            data: Result data
            status: Status ("success", "error")
            error: Error message if status is error
        """
        if self.json_output:
            result: dict[str, Any] = {"status": status}
            if error:
                result["error"] = error
            else:
                result["data"] = data
            click.echo(json.dumps(result, ensure_ascii=False, indent=2))
            return

        if status == "error":
            click.echo(f"❌ {error}", err=True)
        elif isinstance(data, dict):
            for key, value in data.items():
                click.echo(f"{key}: {value}")
        elif isinstance(data, list):
            for item in data:
                click.echo(f"  - {item}")
        else:
            click.echo(data)

    def note(self, message: str) -> None:
        """Human-only progress line, suppressed in JSON mode."""
        if not self.json_output:
            click.echo(message)


def run_command(command: click.Command, args: list[str]) -> int:
    """Invoke a click command and return its exit code instead of exiting."""
    try:
        result = command.main(args=list(args), standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except SystemExit as exc:
        return int(exc.code) if exc.code is not None else 0
    return int(result) if result is not None else 0
