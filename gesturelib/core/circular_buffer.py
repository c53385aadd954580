"""Fixed-capacity circular buffer of sample vectors."""

from __future__ import annotations
from typing import Optional
import numpy as np


class CircularBuffer:
    """Holds the ``capacity`` most recent vectors in arrival order.

    Storage is a single ``(capacity, dims)`` array plus a write index, so
    pushing never reallocates. Once full, each push overwrites the oldest row.
    """

    def __init__(self, capacity: int, dims: int, fill_value: float = 0.0):
        if capacity <= 0 or dims <= 0:
            raise ValueError(f"capacity and dims must be > 0, got {capacity}, {dims}")
        self._capacity = capacity
        self._dims = dims
        self._data = np.full((capacity, dims), fill_value, dtype=np.float64)
        self._write_idx = 0
        self._num_pushed = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def dims(self) -> int:
        return self._dims

    @property
    def is_full(self) -> bool:
        return self._num_pushed >= self._capacity

    def __len__(self) -> int:
        """Number of real (pushed) entries currently held."""
        return min(self._num_pushed, self._capacity)

    def push(self, x: np.ndarray) -> None:
        self._data[self._write_idx] = x
        self._write_idx = (self._write_idx + 1) % self._capacity
        self._num_pushed += 1

    def fill(self, value: float = 0.0) -> None:
        """Overwrite every slot with ``value`` and forget push history."""
        self._data.fill(value)
        self._write_idx = 0
        self._num_pushed = 0

    def to_array(self) -> np.ndarray:
        """All ``capacity`` rows, oldest first (a copy)."""
        return np.roll(self._data, -self._write_idx, axis=0)

    def latest(self, n: Optional[int] = None) -> np.ndarray:
        """The ``n`` most recently pushed rows, oldest first."""
        n = len(self) if n is None else min(n, len(self))
        if n == 0:
            return np.zeros((0, self._dims))
        return self.to_array()[-n:]

    def flatten(self) -> np.ndarray:
        return self.to_array().reshape(-1)

    def copy(self) -> "CircularBuffer":
        other = CircularBuffer(self._capacity, self._dims)
        other._data = self._data.copy()
        other._write_idx = self._write_idx
        other._num_pushed = self._num_pushed
        return other

    def __repr__(self) -> str:
        return f"CircularBuffer(capacity={self._capacity}, dims={self._dims}, size={len(self)})"
