"""Storage layer: the in-memory vault."""

from .vault import Entry, Vault, VaultStats

__all__ = ["Entry", "Vault", "VaultStats"]
