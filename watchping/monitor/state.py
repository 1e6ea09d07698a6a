"""Edge-triggered state tracking across probe cycles."""

from typing import Iterable, Optional

from watchping.monitor.models import DeadSet, StateVerdict


def evaluate(current: Iterable[str], previous: Iterable[str]) -> StateVerdict:
    """Compare this cycle's dead hosts with the previous cycle's.

    Order does not matter. A non-empty set that differs from the previous one
    is a change to down, even if some hosts also recovered.

    Args:
        current: Dead hosts in this cycle.
        previous: Dead hosts in the previous cycle.

    Returns:
        The verdict for this cycle.
    """
    current_set = frozenset(current)
    previous_set = frozenset(previous)

    if current_set == previous_set:
        return StateVerdict.UNCHANGED
    if current_set:
        return StateVerdict.CHANGED_TO_DOWN
    return StateVerdict.CHANGED_TO_ALL_UP


class StateTracker:
    """Owns the dead set carried from one cycle to the next.

    The previous set starts empty, so a first cycle with everything up is
    silent while a first cycle with any host down alerts immediately.
    """

    def __init__(self, initial: Optional[Iterable[str]] = None):
        self._previous: DeadSet = frozenset(initial or ())

    @property
    def previous(self) -> DeadSet:
        return self._previous

    def evaluate(self, current: Iterable[str]) -> StateVerdict:
        """Verdict for ``current`` against the stored set, without committing."""
        return evaluate(current, self._previous)

    def commit(self, current: Iterable[str]) -> None:
        """Replace the stored set, whatever the verdict was."""
        self._previous = frozenset(current)
