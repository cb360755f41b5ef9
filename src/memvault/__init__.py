"""memvault - in-memory memory-entry ledger with fees, dedup and milestones."""

from __future__ import annotations

from .core.config import VaultConfig, load_config
from .core.errors import (
    CapacityExceededError,
    ConfigError,
    DuplicateEntryError,
    InvalidInputError,
    NotFoundError,
    VaultError,
)
from .storage.vault import Entry, Vault, VaultStats

__all__ = [
    "CapacityExceededError",
    "ConfigError",
    "DuplicateEntryError",
    "Entry",
    "InvalidInputError",
    "NotFoundError",
    "Vault",
    "VaultConfig",
    "VaultError",
    "VaultStats",
    "load_config",
]

__version__ = "0.1.0"
