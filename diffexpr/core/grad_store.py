# diffexpr/core/grad_store.py
from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from ..exceptions import ShapeMismatchError
from .tensor import GradId, Tensor

if TYPE_CHECKING:
    from .expression import Expression


class GradStore:
    """
    Gradient accumulation buckets keyed by gradient identity.

    Each bucket is a float64 array the length of the tensor it belongs to,
    zero-initialised on first use. Backward rules add into a bucket, so a
    tensor used at several sites collects the sum of all contributions.

    `buffer()` hands out the bucket itself for in-place adds and is meant for
    the single reverse pass that owns the store; `accumulate()` is the
    thread-safe way to add from outside.
    """

    def __init__(self):
        self._buffers: Dict[GradId, np.ndarray] = {}
        self._lock = threading.Lock()

    def buffer(self, grad_id: GradId, n: int) -> np.ndarray:
        """Bucket for grad_id, created as zeros(n) if absent."""
        with self._lock:
            buf = self._buffers.get(grad_id)
            if buf is None:
                buf = np.zeros(n, dtype=np.float64)
                self._buffers[grad_id] = buf
            elif buf.shape[0] != n:
                raise ShapeMismatchError(
                    f"gradient bucket {grad_id} has a different length",
                    lengths=(buf.shape[0], n),
                )
            return buf

    def accumulate(self, grad_id: GradId, contribution) -> None:
        """
        Add `contribution` (array or scalar) into the bucket of grad_id. The add
        runs under the store lock, so concurrent accumulations are serialized.
        """
        contribution = np.asarray(contribution, dtype=np.float64)
        with self._lock:
            buf = self._buffers.get(grad_id)
            if buf is None:
                n = contribution.shape[0] if contribution.ndim else 1
                buf = np.zeros(n, dtype=np.float64)
                self._buffers[grad_id] = buf
            elif contribution.ndim and contribution.shape[0] != buf.shape[0]:
                raise ShapeMismatchError(
                    f"gradient bucket {grad_id} has a different length",
                    lengths=(buf.shape[0], contribution.shape[0]),
                )
            buf += contribution

    def get(self, key: Union[Tensor, "Expression", GradId, int]) -> Optional[np.ndarray]:
        """
        Read-only view of the accumulated gradient for a tensor, an expression or a
        raw gradient identity. None when the key never received a contribution.
        """
        gid = _grad_id_of(key)
        if gid is None:
            return None
        with self._lock:
            buf = self._buffers.get(gid)
        if buf is None:
            return None
        view = buf.view()
        view.setflags(write=False)
        return view

    def clear(self) -> None:
        with self._lock:
            self._buffers.clear()

    def items(self) -> List[Tuple[GradId, np.ndarray]]:
        """Snapshot of (grad_id, bucket) pairs."""
        with self._lock:
            return list(self._buffers.items())

    def __contains__(self, key) -> bool:
        gid = _grad_id_of(key)
        if gid is None:
            return False
        with self._lock:
            return gid in self._buffers

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffers)

    def __iter__(self) -> Iterator[GradId]:
        with self._lock:
            return iter(list(self._buffers))

    def __repr__(self):
        return f"GradStore({len(self._buffers)} buckets)"


def _grad_id_of(key) -> Optional[GradId]:
    if isinstance(key, (int, np.integer)) and not isinstance(key, bool):
        return GradId(int(key))
    if isinstance(key, Tensor):
        return key.grad_id
    tensor = getattr(key, "tensor", None)
    if isinstance(tensor, Tensor):
        return tensor.grad_id
    return None
