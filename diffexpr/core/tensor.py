# diffexpr/core/tensor.py
from __future__ import annotations

import itertools
import threading
from contextlib import contextmanager
from typing import Iterator, NewType, Optional, Sequence, Union

import numpy as np

from ..exceptions import ShapeMismatchError

GradId = NewType("GradId", int)

_grad_counter = itertools.count(1)
_grad_counter_lock = threading.Lock()


def new_grad_id() -> GradId:
    """Mint a fresh gradient identity (monotonically increasing, never reused)."""
    with _grad_counter_lock:
        return GradId(next(_grad_counter))


def as_values(values: Union[Sequence[float], np.ndarray, float]) -> np.ndarray:
    """Coerce user input to a fresh, flat float64 buffer."""
    arr = np.array(values, dtype=np.float64, copy=True)
    if arr.ndim != 1:
        arr = arr.reshape(-1)
    return arr


class ChangeMarker:
    """
    Flag recording that a tensor's buffer was replaced since it was last observed.
    Set by `update()` and by `recompute()`; cleared once a recompute pass is done.
    """
    __slots__ = ("_changed",)

    def __init__(self, changed: bool = False):
        self._changed = changed

    def mark_changed(self) -> None:
        self._changed = True

    def is_changed(self) -> bool:
        return self._changed

    def clear(self) -> None:
        self._changed = False

    def __repr__(self):
        return f"ChangeMarker(changed={self._changed})"


class RWLock:
    """
    Multi-reader / single-writer lock. Writers wait for active readers to drain,
    and new readers wait while a writer is pending.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def reading(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def writing(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


class Tensor:
    """
    Shared, fixed-length float64 buffer underlying a Parameter or an Operation.

    Attributes
    ----------
    values : np.ndarray
        Read-only snapshot of the buffer.
    grad_id : Optional[GradId]
        Gradient identity; present iff this tensor participates in differentiation.
        It doubles as the key of the tensor's accumulation bucket in a GradStore.
    change_marker : ChangeMarker
        Set whenever the buffer is replaced.

    Identity is the object itself: every Expression holding the same Tensor sees
    the same values. Reads and writes go through a per-tensor RWLock.
    """
    __slots__ = ("_values", "_grad_id", "_change_marker", "_lock", "__weakref__")

    def __init__(self, values, grad_id: Optional[GradId] = None):
        self._values = as_values(values)
        self._grad_id = grad_id
        self._change_marker = ChangeMarker()
        self._lock = RWLock()

    def __repr__(self):
        gid = f"grad_id={self._grad_id}" if self._grad_id is not None else "no-grad"
        return f"Tensor({self.to_numpy()!r}, {gid})"

    def __len__(self) -> int:
        return self._values.shape[0]

    @property
    def grad_id(self) -> Optional[GradId]:
        return self._grad_id

    @property
    def with_grad(self) -> bool:
        return self._grad_id is not None

    @property
    def change_marker(self) -> ChangeMarker:
        return self._change_marker

    @property
    def values(self) -> np.ndarray:
        """Read-only snapshot of the current values (same as `to_numpy()`)."""
        return self.to_numpy()

    @contextmanager
    def read(self) -> Iterator[np.ndarray]:
        """Yield the current buffer under the read lock. Callers must not mutate it."""
        with self._lock.reading():
            yield self._values

    @contextmanager
    def write(self) -> Iterator[np.ndarray]:
        """Yield the current buffer under the write lock for in-place edits."""
        with self._lock.writing():
            yield self._values

    def to_numpy(self) -> np.ndarray:
        """Read-only snapshot of the current values."""
        with self.read() as values:
            out = values.copy()
        out.setflags(write=False)
        return out

    def tolist(self):
        with self.read() as values:
            return values.tolist()

    def _replace(self, values: np.ndarray) -> None:
        # Writer span: the buffer object is swapped, never edited in place, so a
        # reader that already holds the old array keeps a consistent view.
        with self._lock.writing():
            if values.shape[0] != self._values.shape[0]:
                raise ShapeMismatchError(
                    "tensor length is fixed",
                    lengths=(self._values.shape[0], values.shape[0]),
                )
            self._values = values

    def update(self, values) -> None:
        """Replace the contents (same length) and flag the change."""
        self._replace(as_values(values))
        self._change_marker.mark_changed()

    def mark_changed(self) -> None:
        self._change_marker.mark_changed()

    def is_changed(self) -> bool:
        return self._change_marker.is_changed()
