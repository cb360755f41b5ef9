"""Shared pytest configuration for the test suite."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from memvault.core.config import VaultConfig  # noqa: E402
from memvault.core.time import StepClock  # noqa: E402
from memvault.storage.vault import Vault  # noqa: E402

GENESIS = 1_738_281_600
FEE = VaultConfig().entry_fee
MIN_FUNDING = VaultConfig().min_funding


@pytest.fixture
def clock() -> StepClock:
    """Clock that advances one second per reading."""
    return StepClock(GENESIS)


@pytest.fixture
def vault(clock: StepClock) -> Vault:
    return Vault(MIN_FUNDING, clock=clock)
