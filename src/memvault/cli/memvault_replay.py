"""CLI command: replay a file of submissions into a fresh vault and report stats.

Input is YAML (or JSON) holding either a list of records or a mapping with
``funding`` and ``entries`` keys. Each record has ``creator`` and
``content`` and optionally ``payment`` (wei, or ``"<n> ether"``) and
``timestamp`` (epoch seconds).
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import click
import yaml

from ..core.config import load_config
from ..core.errors import ConfigError, VaultError
from ..core.events import EntryCreated, MilestoneReached
from ..core.money import from_wei
from ..core.time import FixedClock, as_epoch_seconds, epoch_seconds
from ..observability.loguru_config import timing_context
from ..storage.vault import Vault
from .cli_common import CONTEXT_SETTINGS, CLIContext, ExitCode, parse_amount, run_command

__all__ = ["cli", "load_submissions", "main", "replay"]


def load_submissions(path: Path) -> tuple[Any, list[dict[str, Any]]]:
    """Read a submissions file.

    Returns
    -------
    tuple
        (funding or None, list of records)

    Raises
    ------
    VaultError
        If the file is unreadable or malformed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise VaultError(f"Failed to read {path}: {exc}") from exc

    funding = None
    if isinstance(data, dict):
        funding = data.get("funding")
        data = data.get("entries", [])

    if data is None:
        data = []
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise VaultError(f"{path} must contain a list of entry records")

    return funding, data


def replay(
    vault: Vault,
    records: list[dict[str, Any]],
    clock: FixedClock,
) -> list[dict[str, Any]]:
    """Submit records in order; rejected records are collected, not raised.

    Returns
    -------
    list[dict]
        One result per record: ``{"index", "status", ...}``
    """
    results: list[dict[str, Any]] = []
    for index, record in enumerate(records):
        try:
            clock.set(as_epoch_seconds(record["timestamp"]) if "timestamp" in record else epoch_seconds())
            payment = parse_amount(record.get("payment", vault.config.entry_fee))
            entry = vault.submit(str(record.get("creator") or ""), record.get("content") or "", payment)
        except VaultError as exc:
            results.append(
                {"index": index, "status": "rejected", "error": type(exc).__name__, "reason": str(exc)}
            )
        else:
            results.append({"index": index, "status": "accepted", "sequence_id": entry.sequence_id})
    return results


@click.command(context_settings=CONTEXT_SETTINGS, help="Replay submissions from a YAML/JSON file")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Path to memvault.yaml")
@click.option("--funding", type=str, default=None, help="Initial funding (wei or '<n> ether')")
@click.option("--strict", is_flag=True, help="Exit with an error if any record is rejected")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
@click.option("--verbose", "-v", is_flag=True, help="Print every accepted entry")
def cli(
    file: Path,
    config_path: Path | None,
    funding: str | None,
    strict: bool,
    json_output: bool,
    verbose: bool,
) -> int:
    ctx = CLIContext(json_output=json_output, verbose=verbose)

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        ctx.output(None, status="error", error=str(exc))
        return ExitCode.CONFIG_ERROR

    try:
        file_funding, records = load_submissions(file)
        raw_funding = funding if funding is not None else file_funding
        initial_funding = parse_amount(raw_funding) if raw_funding is not None else config.min_funding

        clock = FixedClock(epoch_seconds())
        vault = Vault(initial_funding, config, clock=clock)
    except VaultError as exc:
        ctx.output(None, status="error", error=str(exc))
        return ExitCode.INVALID_INPUT

    milestones: list[dict[str, int]] = []

    def on_milestone(event: MilestoneReached) -> None:
        milestones.append({"threshold": event.threshold, "timestamp": event.timestamp})
        ctx.note(f"🏆 Milestone reached: {event.threshold} memories")

    def on_entry(event: EntryCreated) -> None:
        if ctx.verbose:
            ctx.note(f"✅ #{event.sequence_id} {event.creator}: {event.content}")

    vault.on_milestone_reached(on_milestone)
    vault.on_entry_created(on_entry)

    with timing_context("replay", component="cli", records=len(records)) as timing:
        results = replay(vault, records, clock)
        timing["accepted"] = sum(1 for r in results if r["status"] == "accepted")

    rejected = [r for r in results if r["status"] == "rejected"]
    stats = vault.stats().to_dict()

    if json_output:
        ctx.output({"stats": stats, "milestones": milestones, "rejected": rejected})
    else:
        for item in rejected:
            click.echo(f"⚠️  Record {item['index']} rejected ({item['error']}): {item['reason']}")
        click.echo(f"\n📊 {vault.config.name} stats")
        click.echo(f"  Memories:        {stats['count']}")
        click.echo(f"  Unique creators: {stats['unique_creators']}")
        click.echo(f"  Total value:     {from_wei(stats['total_value'])} ether")
        click.echo(f"  Remaining:       {stats['remaining_capacity']}")
        click.echo(
            "  Milestones:      "
            + ", ".join(
                f"{t}={'yes' if reached else 'no'}"
                for t, reached in zip(vault.config.milestone_thresholds, vault.stats().milestones)
            )
        )

    if strict and rejected:
        return ExitCode.INVALID_INPUT
    return ExitCode.SUCCESS


def main(args: list[str] | None = None) -> int:
    if args is None:
        args = sys.argv[1:]

    return run_command(cli, args)


if __name__ == "__main__":
    sys.exit(main())
