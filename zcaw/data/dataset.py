"""Records with a numeric and a categorical part, and datasets of them."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import torch
from torch import Tensor

from zcaw.constants import COVARIANCE_CHUNK, DEFAULT_DTYPE
from zcaw.whitening.covariance import OnlineCovariance


@dataclass(frozen=True, eq=False)
class Record:
    """One data point: dense numeric features [d] plus categorical codes.

    The record is frozen so the numeric tensor cannot be swapped out, but its
    contents may be rewritten in place by a transform. Categorical codes are
    never touched by numeric transforms.
    """

    numeric: Tensor
    categorical: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.numeric, Tensor) or self.numeric.ndim != 1:
            raise ValueError("Record.numeric must be a 1-D tensor")
        object.__setattr__(self, "categorical", tuple(int(c) for c in self.categorical))


@runtime_checkable
class Dataset(Protocol):
    """What a whitening fit needs from a dataset."""

    @property
    def num_numeric_features(self) -> int: ...

    def __len__(self) -> int: ...

    def __iter__(self) -> Iterator[Record]: ...

    def covariance(self) -> Tensor: ...


class NumericDataset:
    """In-memory list of records sharing one numeric dimensionality."""

    def __init__(self, records: Sequence[Record]) -> None:
        if len(records) == 0:
            raise ValueError("Dataset must contain at least one record")
        d = records[0].numeric.shape[0]
        if d < 1:
            raise ValueError("Records must have at least one numeric feature")
        for i, record in enumerate(records):
            if record.numeric.shape[0] != d:
                raise ValueError(
                    f"Record {i} has {record.numeric.shape[0]} numeric features, expected {d}"
                )
        self._records = list(records)
        self._d = d

    @classmethod
    def from_tensor(
        cls,
        X: Tensor,
        categorical: Sequence[Sequence[int]] | None = None,
        dtype: torch.dtype = DEFAULT_DTYPE,
    ) -> NumericDataset:
        """Build records from the rows of X [n, d]. Each row is copied."""
        if X.ndim != 2:
            raise ValueError(f"Expected a [n, d] tensor, got shape {tuple(X.shape)}")
        if categorical is not None and len(categorical) != X.shape[0]:
            raise ValueError(
                f"Got {len(categorical)} categorical rows for {X.shape[0]} numeric rows"
            )
        X = X.to(dtype=dtype)
        records = [
            Record(
                numeric=X[i].clone(),
                categorical=tuple(categorical[i]) if categorical is not None else (),
            )
            for i in range(X.shape[0])
        ]
        return cls(records)

    @property
    def num_numeric_features(self) -> int:
        return self._d

    def numeric_matrix(self) -> Tensor:
        """Stack numeric parts into a new [n, d] tensor."""
        return torch.stack([r.numeric for r in self._records])

    def covariance(self) -> Tensor:
        """Sample covariance [d, d] of the numeric features."""
        acc = OnlineCovariance(self._d, dtype=self._records[0].numeric.dtype)
        for start in range(0, len(self._records), COVARIANCE_CHUNK):
            chunk = self._records[start : start + COVARIANCE_CHUNK]
            acc.update(torch.stack([r.numeric for r in chunk]))
        return acc.get_covariance()

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]
