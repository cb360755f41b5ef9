"""Error hierarchy for vault operations."""

from __future__ import annotations

__all__ = [
    "CapacityExceededError",
    "ConfigError",
    "DuplicateEntryError",
    "InvalidInputError",
    "NotFoundError",
    "VaultError",
]


class VaultError(Exception):
    """Base exception for Vault operations."""

    pass


class InvalidInputError(VaultError):
    """Raised when arguments fail validation (content, payment, funding, counts)."""

    pass


class CapacityExceededError(VaultError):
    """Raised when the vault already holds its maximum number of entries."""

    pass


class DuplicateEntryError(VaultError):
    """Raised when an entry's fingerprint was already recorded."""

    def __init__(self, fingerprint: str) -> None:
        super().__init__(f"Duplicate entry: {fingerprint}")
        self.fingerprint = fingerprint


class NotFoundError(VaultError):
    """Raised when an entry id or index lookup misses."""

    pass


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass
