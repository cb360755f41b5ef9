"""One-shot milestone tracking on entry count.

Each milestone moves UNREACHED -> REACHED exactly once. The tracker is not
thread-safe on its own; the vault calls it inside its critical section.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "Milestone",
    "MilestoneState",
    "MilestoneTracker",
]


class MilestoneState(str, Enum):
    """Milestone states."""

    UNREACHED = "unreached"
    REACHED = "reached"


@dataclass
class Milestone:
    """Threshold with its state and the time it was reached."""

    threshold: int
    state: MilestoneState = MilestoneState.UNREACHED
    reached_at: int | None = None

    @property
    def reached(self) -> bool:
        return self.state is MilestoneState.REACHED


class MilestoneTracker:
    """Tracks milestones in ascending threshold order.

    Example:
        >>> tracker = MilestoneTracker((2, 4))
        >>> tracker.evaluate(1, now=10)
        []
        >>> [m.threshold for m in tracker.evaluate(2, now=11)]
        [2]
        >>> tracker.evaluate(3, now=12)
        []
    """

    def __init__(self, thresholds: tuple[int, ...]) -> None:
        self._milestones = [Milestone(threshold=t) for t in sorted(thresholds)]

    def evaluate(self, count: int, *, now: int) -> list[Milestone]:
        """Transition every unreached milestone whose threshold count has met.

        Returns
        -------
        list[Milestone]
            Milestones that transitioned in this call, ascending
        """
        transitioned: list[Milestone] = []
        for milestone in self._milestones:
            if milestone.reached or count < milestone.threshold:
                continue
            milestone.state = MilestoneState.REACHED
            milestone.reached_at = now
            transitioned.append(milestone)
        return transitioned

    def flags(self) -> tuple[bool, ...]:
        return tuple(m.reached for m in self._milestones)

    def reached_at(self, threshold: int) -> int | None:
        """Time the given threshold was reached, None if unreached.

        Raises
        ------
        KeyError
            If threshold is not configured
        """
        for milestone in self._milestones:
            if milestone.threshold == threshold:
                return milestone.reached_at
        raise KeyError(threshold)

    @property
    def thresholds(self) -> tuple[int, ...]:
        return tuple(m.threshold for m in self._milestones)
