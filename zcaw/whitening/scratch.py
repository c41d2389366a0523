"""Per-thread scratch buffers for in-place matrix-vector products."""

from __future__ import annotations

import threading

import torch
from torch import Tensor

from zcaw.constants import DEFAULT_DEVICE, DEFAULT_DTYPE


class ScratchBufferPool:
    """One lazily created [dim] buffer per thread.

    Each thread sees only its own buffer, allocated on its first ``get()`` and
    reused (never resized) for the thread's lifetime. Contents between calls
    are undefined. The lock only guards the allocation counter.
    """

    def __init__(
        self,
        dim: int,
        dtype: torch.dtype = DEFAULT_DTYPE,
        device: torch.device = DEFAULT_DEVICE,
    ) -> None:
        if dim < 1:
            raise ValueError(f"Buffer dimension must be >= 1, got {dim}")
        self.dim = dim
        self.dtype = dtype
        self.device = device

        self._local = threading.local()
        self._lock = threading.Lock()
        self._allocated = 0

    def get(self) -> Tensor:
        """Return the calling thread's buffer [dim], creating it on first use."""
        buffer = getattr(self._local, "buffer", None)
        if buffer is None:
            buffer = torch.empty(self.dim, dtype=self.dtype, device=self.device)
            self._local.buffer = buffer
            with self._lock:
                self._allocated += 1
        return buffer

    @property
    def allocated(self) -> int:
        """Number of buffers created so far (one per thread that called ``get``)."""
        return self._allocated
