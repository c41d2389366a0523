"""Frozen whitening transform applied in place to record feature vectors."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import torch
from torch import Tensor

from zcaw.linalg.spectral import SpectralBasis, SpectralDecomposition, svd_decomposition
from zcaw.whitening.builder import FittedModel, WhiteningModelBuilder
from zcaw.whitening.matrix import MatrixBuilder, zca_matrix
from zcaw.whitening.regularization import AUTO, Regularization
from zcaw.whitening.scratch import ScratchBufferPool

if TYPE_CHECKING:
    from zcaw.data.dataset import Dataset, Record


class WhiteningTransform:
    """Frozen whitening transform: x → W x.

    The matrix is computed once at fit time and only read afterwards, so a
    single instance can be shared by any number of threads. In-place
    application goes through a per-thread scratch buffer:

        buf ← 0;  buf ← buf + W x;  x ← buf

    which never writes into x while W x is still being read from it.
    Only the numeric part of a record is touched.
    """

    def __init__(self, model: FittedModel) -> None:
        self._model = model
        self._matrix = model.matrix
        self._scratch = ScratchBufferPool(
            model.dim, dtype=model.matrix.dtype, device=model.matrix.device
        )

    @classmethod
    def fit(
        cls,
        dataset: Dataset,
        regularization: Regularization | float | None = AUTO,
        matrix_builder: MatrixBuilder = zca_matrix,
        decomposition: SpectralDecomposition = svd_decomposition,
        verbose: bool = True,
    ) -> WhiteningTransform:
        """Fit on a dataset (ZCA by default)."""
        builder = WhiteningModelBuilder(
            matrix_builder=matrix_builder, decomposition=decomposition, verbose=verbose
        )
        return cls(builder.fit(dataset, regularization))

    # ------------------------------------------------------------------
    # In-place application
    # ------------------------------------------------------------------

    def affects_categorical(self) -> bool:
        """Whether categorical fields may be remapped. Never: numeric only."""
        return False

    def apply(self, record: Record, scratch: Tensor | None = None) -> None:
        """Whiten ``record.numeric`` in place; categorical codes are untouched.

        Args:
            record: Record whose numeric part has length ``dim``.
            scratch: Optional caller-owned buffer [dim]. Defaults to the
                calling thread's pooled buffer.
        """
        self.apply_vector(record.numeric, scratch)

    def apply_vector(self, x: Tensor, scratch: Tensor | None = None) -> Tensor:
        """Whiten a feature vector [dim] in place and return it.

        The product is computed in the matrix dtype/device; ``copy_`` casts
        the result back into ``x``.
        """
        self._check_shape(x, "Feature vector")
        if scratch is None:
            target = self._scratch.get()
        else:
            self._check_shape(scratch, "Scratch buffer")
            if scratch.dtype != self._matrix.dtype or scratch.device != self._matrix.device:
                raise ValueError(
                    f"Scratch buffer is {scratch.dtype} on {scratch.device}, transform expects "
                    f"{self._matrix.dtype} on {self._matrix.device}"
                )
            # Checked before anything is written so a rejected call leaves x intact
            if _overlaps(scratch, x):
                raise ValueError("Scratch buffer must not share memory with the feature vector")
            target = scratch

        target.zero_()
        target.addmv_(self._matrix, x.to(self._matrix))
        x.copy_(target)
        return x

    def _check_shape(self, x: Tensor, what: str) -> None:
        d = self.dim
        if x.ndim != 1 or x.shape[0] != d:
            raise ValueError(f"{what} must have shape ({d},), got {tuple(x.shape)}")

    # ------------------------------------------------------------------
    # Out-of-place helpers
    # ------------------------------------------------------------------

    def transform(self, X: Tensor) -> Tensor:
        """Whiten: X → X W^T, for [B, d] or [d] input. Returns a new tensor."""
        return X @ self._matrix.T

    def inverse(self, X_tilde: Tensor) -> Tensor:
        """Unwhiten: solve W x = x̃ for [B, d] or [d] input."""
        if X_tilde.ndim == 1:
            return torch.linalg.solve(self._matrix, X_tilde)
        return torch.linalg.solve(self._matrix, X_tilde.T).T

    def mahalanobis_sq(self, diff: Tensor) -> Tensor:
        """‖W · diff‖² per row: squared distance under the regularized precision."""
        return (self.transform(diff) ** 2).sum(dim=-1)

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def matrix(self) -> Tensor:
        """Whitening matrix [d, d]. Shared; do not modify."""
        return self._matrix

    @property
    def dim(self) -> int:
        return self._model.dim

    @property
    def regularization(self) -> float:
        return self._model.regularization

    @property
    def basis(self) -> SpectralBasis:
        return self._model.basis

    @property
    def model(self) -> FittedModel:
        return self._model

    @property
    def scratch_pool(self) -> ScratchBufferPool:
        return self._scratch

    # ------------------------------------------------------------------
    # Checkpointing
    # ------------------------------------------------------------------

    def state_dict(self) -> dict:
        """Serialize transform state for checkpointing."""
        return {
            "U": self._model.basis.U,
            "s": self._model.basis.s,
            "regularization": self._model.regularization,
            "matrix": self._matrix,
            "d": self.dim,
        }

    @classmethod
    def from_state_dict(cls, d: dict) -> WhiteningTransform:
        """Reconstruct a transform from a checkpoint state dict (matrix is not recomputed)."""
        matrix = d["matrix"]
        if tuple(matrix.shape) != (d["d"], d["d"]):
            raise ValueError(f"Checkpoint matrix has shape {tuple(matrix.shape)}, expected d={d['d']}")
        model = FittedModel(
            basis=SpectralBasis(U=d["U"], s=d["s"]),
            regularization=float(d["regularization"]),
            matrix=matrix,
        )
        return cls(model)

    def save(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        torch.save(self.state_dict(), path)

    @classmethod
    def load(cls, path: str | Path) -> WhiteningTransform:
        return cls.from_state_dict(torch.load(path, weights_only=True))


def _byte_span(t: Tensor) -> tuple[int, int]:
    """Half-open byte range [start, end) of ``t`` within its storage."""
    size = t.element_size()
    start = t.storage_offset() * size
    extent = sum((n - 1) * st for n, st in zip(t.shape, t.stride())) + 1
    return start, start + extent * size


def _overlaps(a: Tensor, b: Tensor) -> bool:
    if a.device != b.device:
        return False
    if a.untyped_storage().data_ptr() != b.untyped_storage().data_ptr():
        return False
    a_start, a_end = _byte_span(a)
    b_start, b_end = _byte_span(b)
    return a_start < b_end and b_start < a_end
