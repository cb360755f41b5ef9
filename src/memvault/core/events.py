"""Synchronous listener channels for vault notifications.

Each channel keeps a registration-ordered list of listeners and delivers
events inline, in order. A failing listener is logged and counted; it does
not stop delivery to the remaining listeners or undo the admission that
triggered it.
"""

from __future__ import annotations

import threading
import traceback
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, Protocol, TypeVar

from ..observability.loguru_config import get_logger

__all__ = [
    "ENTRY_CREATED",
    "MILESTONE_REACHED",
    "DeliveryResult",
    "EntryCreated",
    "EventChannel",
    "MilestoneReached",
    "Subscription",
    "VaultObserver",
]

ENTRY_CREATED = "entry.created"
MILESTONE_REACHED = "milestone.reached"

E = TypeVar("E")

logger = get_logger("events")


@dataclass(frozen=True)
class EntryCreated:
    """Payload emitted after an entry is admitted."""

    creator: str
    sequence_id: int
    content: str
    timestamp: int
    fingerprint: str


@dataclass(frozen=True)
class MilestoneReached:
    """Payload emitted when an entry-count threshold is first reached."""

    threshold: int
    timestamp: int


class VaultObserver(Protocol):
    """Observer interface covering both vault channels."""

    def on_entry_created(self, event: EntryCreated) -> Any: ...

    def on_milestone_reached(self, event: MilestoneReached) -> Any: ...


@dataclass
class Subscription(Generic[E]):
    """Registered listener."""

    subscription_id: str
    listener: Callable[[E], Any]


@dataclass
class DeliveryResult:
    """Outcome of publishing one event."""

    delivered: int = 0
    failed: int = 0
    errors: list[Exception] = field(default_factory=list)


class EventChannel(Generic[E]):
    """Append-only, ordered, synchronous listener registry.

    Example:
        >>> channel = EventChannel("entry.created")
        >>> seen = []
        >>> _ = channel.subscribe(seen.append)
        >>> channel.publish("hello").delivered
        1
        >>> seen
        ['hello']
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscriptions: list[Subscription[E]] = []
        self._lock = threading.Lock()
        self._stats = {"published": 0, "delivered": 0, "failed": 0}

    def subscribe(self, listener: Callable[[E], Any]) -> Subscription[E]:
        """Register a listener at the end of the delivery order.

        Raises
        ------
        TypeError
            If listener is not callable
        """
        if not callable(listener):
            raise TypeError(f"Listener for {self.name} must be callable, got {listener!r}")

        subscription = Subscription(subscription_id=str(uuid.uuid4()), listener=listener)
        with self._lock:
            self._subscriptions.append(subscription)

        logger.debug(
            "Subscription created for {channel}",
            channel=self.name,
            subscription_id=subscription.subscription_id,
        )
        return subscription

    def publish(self, event: E) -> DeliveryResult:
        """Deliver event to every listener in registration order."""
        with self._lock:
            subscriptions = list(self._subscriptions)
            self._stats["published"] += 1

        result = DeliveryResult()
        for subscription in subscriptions:
            try:
                subscription.listener(event)
            except Exception as exc:
                result.failed += 1
                result.errors.append(exc)
                logger.error(
                    "Listener failed on {channel}: {error}",
                    channel=self.name,
                    error=repr(exc),
                    subscription_id=subscription.subscription_id,
                    traceback=traceback.format_exc(),
                )
            else:
                result.delivered += 1

        with self._lock:
            self._stats["delivered"] += result.delivered
            self._stats["failed"] += result.failed

        return result

    def get_stats(self) -> dict[str, int]:
        """Delivery counters: published, delivered, failed."""
        with self._lock:
            return dict(self._stats)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)
