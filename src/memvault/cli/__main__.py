"""Main CLI entry point for memvault."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from ..core.config import load_raw_config
from ..core.errors import ConfigError
from ..observability.loguru_config import configure_loguru, get_logger
from .cli_common import CONTEXT_SETTINGS, run_command
from .memvault_fingerprint import cli as fingerprint_cli
from .memvault_info import cli as info_cli
from .memvault_replay import cli as replay_cli

EPILOG = """
Examples:
  memvault info                         # Show vault banner and limits
  memvault replay memories.yaml         # Replay submissions and print stats
  memvault replay memories.yaml --json  # Same, machine-readable
  memvault fingerprint "gm" 1738281600 0xabc
""".strip()


LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


@click.group(
    context_settings=CONTEXT_SETTINGS,
    epilog=EPILOG,
    help="In-memory memory vault: fees, dedup, milestones",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level (overrides MEMVAULT_LOG_LEVEL and logging.level)",
)
def cli(log_level: str | None) -> None:
    config_error: ConfigError | None = None
    try:
        logging_config = load_raw_config().get("logging") or {}
        if not isinstance(logging_config, dict):
            raise ConfigError("'logging' section must be a mapping")
    except ConfigError as exc:
        # subcommands report vault config errors with their own exit code
        config_error = exc
        logging_config = {}

    level = str(log_level or logging_config.get("level") or "WARNING").upper()
    if level not in LOG_LEVELS:
        config_error = ConfigError(f"unknown log level {level!r}")
        level = "WARNING"

    log_dir = logging_config.get("dir")
    configure_loguru(level=level, log_dir=Path(log_dir) if log_dir else None)

    if config_error is not None:
        get_logger("cli").warning("Logging config ignored: {error}", error=str(config_error))


cli.add_command(info_cli, name="info")
cli.add_command(replay_cli, name="replay")
cli.add_command(fingerprint_cli, name="fingerprint")


def main(args: list[str] | None = None) -> int:
    if args is None:
        args = sys.argv[1:]

    return run_command(cli, args)


if __name__ == "__main__":
    sys.exit(main())
