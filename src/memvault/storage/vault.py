"""In-memory memory vault with fee-charged, deduplicated admission.

SINGLE WRITER PATTERN:
======================
All vault state (entries, creator indices, fingerprints, counters and
milestones) is owned by one ``Vault`` and guarded by one re-entrant lock:
- ``submit`` is a single critical section: validation, duplicate check,
  index and counter updates, milestone evaluation and notification
- readers take the same lock and return copies or frozen snapshots
- entries are append-only and immutable

Listeners run inline under the lock, so they observe a consistent vault and
may call read operations on it. A listener must not call ``submit``: the
re-entrant call is refused with ``VaultError`` so every listener of one
admission runs before the next admission starts.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

from ..core.config import VaultConfig
from ..core.errors import (
    CapacityExceededError,
    DuplicateEntryError,
    InvalidInputError,
    NotFoundError,
    VaultError,
)
from ..core.events import (
    ENTRY_CREATED,
    MILESTONE_REACHED,
    EntryCreated,
    EventChannel,
    MilestoneReached,
    Subscription,
    VaultObserver,
)
from ..core.fingerprint import fingerprint_matches, generate_fingerprint
from ..core.milestones import MilestoneTracker
from ..core.money import as_wei, from_wei
from ..core.time import Clock, epoch_seconds, format_epoch_iso8601
from ..observability.loguru_config import get_logger

__all__ = [
    "Entry",
    "Vault",
    "VaultStats",
    "content_length",
]

logger = get_logger("vault")


def content_length(content: str) -> int:
    """Length of content in UTF-16 code units.

    Characters outside the Basic Multilingual Plane (most emoji) count as two.

    Example
    -------
    >>> content_length("gm")
    2
    >>> content_length("\\U0001F600")
    2
    """
    return len(content.encode("utf-16-le")) // 2


@dataclass(frozen=True)
class Entry:
    """Recorded memory entry."""

    creator: str
    content: str
    timestamp: int
    sequence_id: int
    fingerprint: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return (
            f"Memory{{id={self.sequence_id}, creator={self.creator}, content='{self.content}', "
            f"timestamp={self.timestamp}, hash={self.fingerprint}}}"
        )


@dataclass(frozen=True)
class VaultStats:
    """Point-in-time snapshot of vault statistics."""

    count: int
    unique_creators: int
    total_value: int
    remaining_capacity: int
    milestones: tuple[bool, ...]

    def _milestone(self, index: int) -> bool:
        return self.milestones[index] if index < len(self.milestones) else False

    @property
    def milestone1(self) -> bool:
        return self._milestone(0)

    @property
    def milestone2(self) -> bool:
        return self._milestone(1)

    @property
    def milestone3(self) -> bool:
        return self._milestone(2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "unique_creators": self.unique_creators,
            "total_value": self.total_value,
            "total_value_ether": str(from_wei(self.total_value)),
            "remaining_capacity": self.remaining_capacity,
            "milestone1": self.milestone1,
            "milestone2": self.milestone2,
            "milestone3": self.milestone3,
        }


class Vault:
    """Append-only ledger of memory entries.

    Example:
        >>> vault = Vault(10**16)
        >>> entry = vault.submit("0xabc", "gm", 420_000_000_000_000)
        >>> entry.sequence_id
        0
        >>> vault.stats().count
        1
    """

    def __init__(
        self,
        initial_funding: int,
        config: VaultConfig | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the vault.

        Parameters
        ----------
        initial_funding
            Funding in wei, counted into total value; at least ``config.min_funding``
        config
            Vault configuration (defaults to ``VaultConfig()``)
        clock
            Callable returning epoch seconds (defaults to wall clock)

        Raises
        ------
        InvalidInputError
            If initial funding is below the minimum
        """
        self.config = config or VaultConfig()
        self._clock: Clock = clock or epoch_seconds

        funding = as_wei(initial_funding, field_name="initial funding")
        if funding < self.config.min_funding:
            raise InvalidInputError(
                f"insufficient initial funding: {funding} < {self.config.min_funding}"
            )

        self._lock = threading.RLock()

        self._entries: list[Entry] = []
        self._creator_entries: dict[str, list[int]] = {}
        self._fingerprints: set[str] = set()
        self._creator_counts: dict[str, int] = {}

        self._total_entries = 0
        self._total_creators = 0
        self._total_value = funding
        self._unique_creators: list[str] = []
        self._known_creators: set[str] = set()

        self._milestones = MilestoneTracker(self.config.milestone_thresholds)
        self._publishing = False

        self.entry_created: EventChannel[EntryCreated] = EventChannel(ENTRY_CREATED)
        self.milestone_reached: EventChannel[MilestoneReached] = EventChannel(MILESTONE_REACHED)

        logger.info(
            "Vault initialized: {name}",
            name=self.config.name,
            symbol=self.config.symbol,
            initial_funding=funding,
            capacity=self.config.capacity,
        )

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def submit(self, creator: str, content: str, payment: int) -> Entry:
        """Admit a new entry.

        Checks run in order and the first failure wins: empty content,
        content too long, insufficient payment, capacity, duplicate.
        A rejected submission leaves the vault unchanged.

        Parameters
        ----------
        creator
            Opaque, non-empty creator identifier
        content
            Entry text, 1..max_content_length UTF-16 code units
        payment
            Payment in wei, at least ``config.entry_fee``

        Returns
        -------
        Entry
            The stored entry

        Raises
        ------
        InvalidInputError
            Empty creator, empty or oversized content, insufficient payment
        CapacityExceededError
            Vault is full
        DuplicateEntryError
            Same content, timestamp and creator already recorded
        VaultError
            Called from a listener while an admission is being published
        """
        with self._lock:
            if self._publishing:
                raise VaultError("submit cannot be called from a vault listener")

            try:
                amount = self._validate_submission(creator, content, payment)

                timestamp = int(self._clock())
                fingerprint = generate_fingerprint(content, timestamp, creator)
                if fingerprint in self._fingerprints:
                    raise DuplicateEntryError(fingerprint)
            except (InvalidInputError, CapacityExceededError, DuplicateEntryError) as exc:
                logger.warning(
                    "Entry rejected: {reason}",
                    reason=str(exc),
                    error_type=type(exc).__name__,
                    creator=creator,
                )
                raise

            entry = self._record(creator, content, timestamp, fingerprint, amount)

            self._publishing = True
            try:
                for milestone in self._milestones.evaluate(self._total_entries, now=timestamp):
                    logger.info(
                        "Milestone reached: {threshold} entries",
                        threshold=milestone.threshold,
                        reached_at=milestone.reached_at,
                    )
                    self.milestone_reached.publish(
                        MilestoneReached(threshold=milestone.threshold, timestamp=timestamp)
                    )

                self.entry_created.publish(
                    EntryCreated(
                        creator=entry.creator,
                        sequence_id=entry.sequence_id,
                        content=entry.content,
                        timestamp=entry.timestamp,
                        fingerprint=entry.fingerprint,
                    )
                )
            finally:
                self._publishing = False

            return entry

    def _validate_submission(self, creator: Any, content: Any, payment: Any) -> int:
        if not isinstance(creator, str) or not creator:
            raise InvalidInputError("empty creator")
        if not isinstance(content, str):
            raise InvalidInputError(f"content must be text, got {type(content).__name__}")
        if not content:
            raise InvalidInputError("empty content")
        if content_length(content) > self.config.max_content_length:
            raise InvalidInputError("content too long")

        amount = as_wei(payment, field_name="payment")
        if amount < self.config.entry_fee:
            raise InvalidInputError("insufficient payment")

        if self._total_entries >= self.config.capacity:
            raise CapacityExceededError(f"vault is full ({self.config.capacity} entries)")

        return amount

    def _record(self, creator: str, content: str, timestamp: int, fingerprint: str, amount: int) -> Entry:
        """Apply all state changes for an admitted entry. Caller holds the lock."""
        entry = Entry(
            creator=creator,
            content=content,
            timestamp=timestamp,
            sequence_id=self._total_entries,
            fingerprint=fingerprint,
        )

        self._entries.append(entry)
        self._creator_entries.setdefault(creator, []).append(entry.sequence_id)
        self._fingerprints.add(fingerprint)

        if creator not in self._known_creators:
            self._known_creators.add(creator)
            self._unique_creators.append(creator)
            self._total_creators += 1

        self._creator_counts[creator] = self._creator_counts.get(creator, 0) + 1
        self._total_entries += 1
        self._total_value += amount

        logger.debug(
            "Entry recorded: #{sequence_id}",
            sequence_id=entry.sequence_id,
            creator=creator,
            fingerprint=fingerprint,
        )
        return entry

    def add_funds(self, amount: int) -> int:
        """Add funds to the total value collected.

        Returns
        -------
        int
            New total value in wei

        Raises
        ------
        InvalidInputError
            If amount is negative or not a whole number of wei
        """
        value = as_wei(amount)
        if value < 0:
            raise InvalidInputError(f"amount must not be negative, got {value}")

        with self._lock:
            self._total_value += value
            total = self._total_value

        logger.info("Funds added: {amount} wei", amount=value, total_value=total)
        return total

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_entry_created(self, listener: Callable[[EntryCreated], Any]) -> Subscription[EntryCreated]:
        """Register a listener for admitted entries."""
        return self.entry_created.subscribe(listener)

    def on_milestone_reached(self, listener: Callable[[MilestoneReached], Any]) -> Subscription[MilestoneReached]:
        """Register a listener for milestone transitions."""
        return self.milestone_reached.subscribe(listener)

    def add_observer(self, observer: VaultObserver) -> None:
        """Register an observer on both channels."""
        self.entry_created.subscribe(observer.on_entry_created)
        self.milestone_reached.subscribe(observer.on_milestone_reached)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, sequence_id: int) -> Entry:
        """Get entry by sequence id.

        Raises
        ------
        NotFoundError
            If sequence_id is outside [0, count)
        """
        with self._lock:
            if isinstance(sequence_id, bool) or not isinstance(sequence_id, int):
                raise NotFoundError(f"Invalid entry id: {sequence_id!r}")
            if not 0 <= sequence_id < self._total_entries:
                raise NotFoundError(f"Entry not found: {sequence_id}")
            return self._entries[sequence_id]

    def entries_by_creator(self, creator: str) -> list[int]:
        """Sequence ids authored by creator, in creation order (empty if unknown)."""
        with self._lock:
            return list(self._creator_entries.get(creator, ()))

    def creator_count(self, creator: str) -> int:
        with self._lock:
            return self._creator_counts.get(creator, 0)

    def unique_creators(self) -> list[str]:
        """Creators in first-seen order."""
        with self._lock:
            return list(self._unique_creators)

    def recent(self, n: int) -> list[Entry]:
        """Last ``min(n, count)`` entries in creation order.

        Raises
        ------
        InvalidInputError
            If n is not a positive integer
        """
        if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
            raise InvalidInputError(f"count must be positive, got {n!r}")

        with self._lock:
            start = max(0, self._total_entries - n)
            return self._entries[start:]

    def find_by_fingerprint(self, fingerprint: str) -> int | None:
        """Sequence id of the first entry with this fingerprint, or None."""
        with self._lock:
            for entry in self._entries:
                if entry.fingerprint == fingerprint:
                    return entry.sequence_id
            return None

    def has_fingerprint(self, fingerprint: str) -> bool:
        with self._lock:
            return fingerprint in self._fingerprints

    def verify(self, sequence_id: int) -> bool:
        """Recompute an entry's fingerprint and compare with the stored one.

        Raises
        ------
        NotFoundError
            If sequence_id is outside [0, count)
        """
        entry = self.get(sequence_id)
        return fingerprint_matches(entry.fingerprint, entry.content, entry.timestamp, entry.creator)

    def milestone_reached_at(self, threshold: int) -> int | None:
        """Epoch seconds when threshold was reached, None if not yet.

        Raises
        ------
        NotFoundError
            If threshold is not a configured milestone
        """
        with self._lock:
            try:
                return self._milestones.reached_at(threshold)
            except KeyError:
                raise NotFoundError(f"Unknown milestone: {threshold}") from None

    def stats(self) -> VaultStats:
        with self._lock:
            return VaultStats(
                count=self._total_entries,
                unique_creators=self._total_creators,
                total_value=self._total_value,
                remaining_capacity=self.config.capacity - self._total_entries,
                milestones=self._milestones.flags(),
            )

    def info(self) -> dict[str, Any]:
        """Vault metadata and limits."""
        config = self.config
        return {
            "name": config.name,
            "symbol": config.symbol,
            "seed": config.seed,
            "genesis_timestamp": config.genesis_timestamp,
            "genesis": format_epoch_iso8601(config.genesis_timestamp),
            "max_content_length": config.max_content_length,
            "entry_fee": config.entry_fee,
            "entry_fee_ether": str(from_wei(config.entry_fee)),
            "min_funding": config.min_funding,
            "capacity": config.capacity,
            "milestone_thresholds": list(config.milestone_thresholds),
        }

    def __len__(self) -> int:
        with self._lock:
            return self._total_entries
