"""Vault configuration.

Supports:
- Immutable ``VaultConfig`` passed to the Vault at construction
- User overrides from memvault.yaml (``vault:`` section)
- Environment variable overrides (MEMVAULT_*)
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "VaultConfig",
    "load_config",
    "load_raw_config",
]

DEFAULT_CONFIG_FILE = "memvault.yaml"

# env var -> (section, key)
ENV_MAPPINGS: dict[str, tuple[str, str]] = {
    "MEMVAULT_NAME": ("vault", "name"),
    "MEMVAULT_SYMBOL": ("vault", "symbol"),
    "MEMVAULT_MAX_CONTENT_LENGTH": ("vault", "max_content_length"),
    "MEMVAULT_ENTRY_FEE": ("vault", "entry_fee"),
    "MEMVAULT_MIN_FUNDING": ("vault", "min_funding"),
    "MEMVAULT_CAPACITY": ("vault", "capacity"),
    "MEMVAULT_MILESTONES": ("vault", "milestone_thresholds"),
    "MEMVAULT_LOG_LEVEL": ("logging", "level"),
    "MEMVAULT_LOG_DIR": ("logging", "dir"),
}


@dataclass(frozen=True)
class VaultConfig:
    """Immutable settings for a Vault.

    Attributes
    ----------
    name : str
        Display name of the vault
    symbol : str
        Short ticker-style symbol
    seed : str
        Opaque vault seed, informational only
    genesis_timestamp : int
        Epoch seconds the vault considers its genesis
    max_content_length : int
        Maximum entry length in UTF-16 code units
    entry_fee : int
        Minimum payment per entry, in wei (0.00042 ether)
    min_funding : int
        Minimum initial funding, in wei (0.01 ether)
    capacity : int
        Maximum number of entries
    milestone_thresholds : tuple[int, ...]
        Entry counts that trigger one-shot milestone notifications
    """

    name: str = "Base Onchain Memory Vault #8472"
    symbol: str = "BOMV8472"
    seed: str = "8f3a7b2c9d4e1f6a5b8c7d2e9f4a1b6c8d3e7f2a9b4c1d6e8f3a7b2c9d4e1f6a"
    genesis_timestamp: int = 1738281600
    max_content_length: int = 280
    entry_fee: int = 420_000_000_000_000
    min_funding: int = 10**16
    capacity: int = 10_000
    milestone_thresholds: tuple[int, ...] = field(default=(100, 1000, 5000))

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("name must not be empty")

        for attr in ("max_content_length", "capacity"):
            value = getattr(self, attr)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigError(f"{attr} must be a positive integer, got {value!r}")

        for attr in ("entry_fee", "min_funding", "genesis_timestamp"):
            value = getattr(self, attr)
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ConfigError(f"{attr} must be a non-negative integer, got {value!r}")

        thresholds = tuple(self.milestone_thresholds)
        if any(not isinstance(t, int) or isinstance(t, bool) or t <= 0 for t in thresholds):
            raise ConfigError(f"milestone_thresholds must be positive integers, got {thresholds!r}")
        if list(thresholds) != sorted(set(thresholds)):
            raise ConfigError(f"milestone_thresholds must be strictly ascending, got {thresholds!r}")
        # Lists from YAML are normalized so the config stays hashable
        object.__setattr__(self, "milestone_thresholds", thresholds)

    @classmethod
    def from_mapping(cls, data: dict[str, Any] | None) -> VaultConfig:
        """Build config from a plain mapping, ignoring unknown keys.

        Parameters
        ----------
        data
            Mapping of field names to values (e.g., the ``vault:`` YAML section)

        Raises
        ------
        ConfigError
            If a value cannot be converted or fails validation
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}

        for key, value in (data or {}).items():
            if key not in known:
                continue
            kwargs[key] = _coerce_field(key, value)

        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> VaultConfig:
        """Return a copy with some fields replaced (handy in tests)."""
        return replace(self, **overrides)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["milestone_thresholds"] = list(self.milestone_thresholds)
        return data


def _coerce_field(key: str, value: Any) -> Any:
    """Convert YAML/env values to the field's type."""
    if key in ("name", "symbol", "seed"):
        return str(value)

    if key == "milestone_thresholds":
        if isinstance(value, str):
            value = [part for part in value.replace(" ", "").split(",") if part]
        if not isinstance(value, (list, tuple)):
            raise ConfigError(f"milestone_thresholds must be a list, got {value!r}")
        return tuple(_to_int(key, item) for item in value)

    return _to_int(key, value)


def _to_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).replace("_", "").strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load YAML file.

    Raises
    ------
    ConfigError
        If the file cannot be parsed or is not a mapping
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to load config from {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _apply_env_overrides(config: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Apply MEMVAULT_* environment variable overrides.

    Example: MEMVAULT_ENTRY_FEE overrides config["vault"]["entry_fee"]
    """
    environ = os.environ if environ is None else environ
    result = config.copy()

    for env_var, (section, key) in ENV_MAPPINGS.items():
        value = environ.get(env_var)
        if value is None:
            continue
        section_data = dict(result.get(section) or {})
        section_data[key] = value
        result[section] = section_data

    return result


def load_raw_config(
    config_path: str | Path | None = None,
    *,
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Load the merged configuration dictionary.

    Configuration priority (highest to lowest):
    1. Environment variables (MEMVAULT_*)
    2. User config file (memvault.yaml)
    3. ``VaultConfig`` defaults

    An explicitly given config path must exist; the default file is optional.
    """
    defaults: dict[str, Any] = {
        "vault": VaultConfig().to_dict(),
        "logging": {"level": "WARNING", "dir": None},
    }

    if config_path is None:
        path = Path(DEFAULT_CONFIG_FILE)
        user_config = _load_yaml_file(path) if path.exists() else {}
    else:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        user_config = _load_yaml_file(path)

    merged = _deep_merge(defaults, user_config)
    return _apply_env_overrides(merged, environ)


def load_config(
    config_path: str | Path | None = None,
    *,
    environ: dict[str, str] | None = None,
) -> VaultConfig:
    """Load a ``VaultConfig`` from file and environment.

    Example:
        >>> config = load_config()
        >>> config.capacity
        10000
    """
    raw = load_raw_config(config_path, environ=environ)
    vault_section = raw.get("vault") or {}
    if not isinstance(vault_section, dict):
        raise ConfigError("'vault' section must be a mapping")
    return VaultConfig.from_mapping(vault_section)
