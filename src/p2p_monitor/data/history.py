"""Bounded, time-ordered history of accepted samples.

Single writer (the sampling scheduler), any number of readers. Readers
always get copies, never the live deque.
"""

from collections import deque
from collections.abc import Iterable

from p2p_monitor.models import Sample

DEFAULT_CAPACITY = 5000


class HistoryStore:
    """Append-only FIFO of the most recent samples.

    Appending past capacity drops the oldest sample in the same step,
    so len(store) never exceeds capacity.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._samples: deque[Sample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._samples)

    def append(self, sample: Sample) -> None:
        """Append a sample, evicting the oldest one when full."""
        self._samples.append(sample)

    def seed(self, samples: Iterable[Sample]) -> None:
        """Replace the contents with persisted samples (keeps the newest capacity)."""
        self._samples = deque(samples, maxlen=self._capacity)

    def samples(self) -> list[Sample]:
        """Return a copy of every retained sample, oldest first."""
        return list(self._samples)

    def history(self, last_n: int | None = None) -> list[Sample]:
        """Return the last_n most recent samples, oldest first.

        None returns everything; zero or negative returns an empty list.
        """
        if last_n is None:
            return list(self._samples)
        if last_n <= 0:
            return []
        if last_n >= len(self._samples):
            return list(self._samples)
        return list(self._samples)[-last_n:]

    def latest(self) -> Sample | None:
        """Return the most recent sample, or None when empty."""
        return self._samples[-1] if self._samples else None
