"""Loguru configuration for the memory vault.

This module provides centralized loguru configuration with:
- Console output with component names
- Optional structured JSON log files
- Context manager for timing operations
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "COMPONENTS",
    "configure_loguru",
    "get_logger",
    "timing_context",
]

COMPONENTS = ("vault", "events", "cli")


def configure_loguru(
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    rotation: str = "100 MB",
    retention: str = "10 days",
    enable_console: bool = True,
) -> None:
    """Configure loguru sinks.

    Parameters
    ----------
    log_dir
        Directory for JSON log files (no files are written when None)
    level
        Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    rotation
        Log rotation policy (e.g., "100 MB", "1 day")
    retention
        Log retention policy (e.g., "10 days", "1 week")
    enable_console
        Enable stderr output

    Example
    -------
    >>> from memvault.observability.loguru_config import configure_loguru
    >>> configure_loguru(level="DEBUG")
    """
    # Remove default handler
    logger.remove()
    logger.configure(extra={"component": "memvault"})

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "memvault.jsonl",
            format="{message}",
            level=level,
            rotation=rotation,
            retention=retention,
            serialize=True,
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

        for component in COMPONENTS:
            logger.add(
                log_dir / f"{component}.jsonl",
                format="{message}",
                level=level,
                rotation=rotation,
                retention=retention,
                serialize=True,
                enqueue=True,
                filter=lambda record, comp=component: record["extra"].get("component") == comp,
            )

    logger.bind(component="memvault").debug(
        "Loguru configured", log_dir=str(log_dir) if log_dir else None, level=level
    )


def get_logger(component: str = "memvault") -> Any:
    """Get logger instance bound to specific component.

    Parameters
    ----------
    component
        Component name (vault, events, cli)

    Returns
    -------
    Logger
        Loguru logger bound to component
    """
    return logger.bind(component=component)


@contextmanager
def timing_context(
    operation: str,
    *,
    component: str = "memvault",
    **metadata: Any,
) -> Generator[dict[str, Any], None, None]:
    """Context manager for timing operations.

    Parameters
    ----------
    operation
        Name of the operation being timed
    component
        Component name for filtering logs
    **metadata
        Additional metadata to log

    Yields
    ------
    dict
        Context dictionary that can be updated with additional data

    Example
    -------
    >>> with timing_context("replay", component="cli") as ctx:
    ...     ctx["submitted"] = 10
    """
    start_ns = time.perf_counter_ns()
    context: dict[str, Any] = dict(metadata)

    bound = logger.bind(component=component, timing=True, operation=operation)
    bound.debug(f"START: {operation}", phase="start", **metadata)

    try:
        yield context
    finally:
        duration_ns = time.perf_counter_ns() - start_ns
        bound.debug(
            f"END: {operation}",
            phase="end",
            duration_ms=duration_ns / 1_000_000,
            **context,
        )
