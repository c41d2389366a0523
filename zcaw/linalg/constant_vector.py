"""Constant-value vector: every index maps to the same value, in O(1) space."""

from __future__ import annotations

from collections.abc import Iterator

import torch

from zcaw.constants import DEFAULT_DTYPE
from zcaw.errors import UnsupportedOperation


class ConstantVector:
    """Immutable-valued vector where every index holds the same constant.

    Individual elements cannot be assigned. The whole vector is reconfigured
    instead, through :meth:`set_constant` and :meth:`set_length`.

    Useful wherever per-index values are accepted but a single value is the
    common case, e.g. one regularization value for every spectral direction:
    the scalar case becomes a call into the per-index code path without a
    separate branch.
    """

    __slots__ = ("_constant", "_length")

    def __init__(self, constant: float, length: int) -> None:
        self._constant = float(constant)
        self._length = self._check_length(length)

    @staticmethod
    def _check_length(length: int) -> int:
        length = int(length)
        if length < 1:
            raise ValueError(f"Vector length must be a positive integer, got {length}")
        return length

    @property
    def constant(self) -> float:
        return self._constant

    @property
    def length(self) -> int:
        return self._length

    def set_constant(self, constant: float) -> None:
        """Set the value held at every index."""
        self._constant = float(constant)

    def set_length(self, length: int) -> None:
        """Set the vector length. Must be >= 1."""
        self._length = self._check_length(length)

    def get(self, index: int) -> float:
        if not -self._length <= index < self._length:
            raise IndexError(f"index {index} out of range for length {self._length}")
        return self._constant

    def set(self, index: int, value: float) -> None:
        raise UnsupportedOperation("ConstantVector does not support element mutation")

    def is_sparse(self) -> bool:
        """Always False: values are not stored in index-skipping form."""
        return False

    def clone(self) -> ConstantVector:
        return ConstantVector(self._constant, self._length)

    def to_tensor(
        self,
        dtype: torch.dtype = DEFAULT_DTYPE,
        device: torch.device | str | None = None,
    ) -> torch.Tensor:
        """Materialize as a dense tensor [length]."""
        return torch.full((self._length,), self._constant, dtype=dtype, device=device)

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index: int) -> float:
        if not isinstance(index, int):
            raise TypeError(f"ConstantVector indices must be integers, not {type(index).__name__}")
        return self.get(index)

    def __setitem__(self, index: int, value: float) -> None:
        self.set(index, value)

    def __iter__(self) -> Iterator[float]:
        for _ in range(self._length):
            yield self._constant

    def __copy__(self) -> ConstantVector:
        return self.clone()

    def __deepcopy__(self, memo: dict) -> ConstantVector:
        return self.clone()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConstantVector):
            return NotImplemented
        return self._constant == other._constant and self._length == other._length

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"ConstantVector(constant={self._constant!r}, length={self._length})"
