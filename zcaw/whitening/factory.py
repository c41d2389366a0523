"""Factory producing independently fitted whitening transforms per dataset."""

from __future__ import annotations

from typing import TYPE_CHECKING

from zcaw.linalg.spectral import DECOMPOSITIONS, SpectralDecomposition, svd_decomposition
from zcaw.runtime import resolve_device, resolve_dtype
from zcaw.whitening.builder import WhiteningModelBuilder
from zcaw.whitening.matrix import MATRIX_BUILDERS, MatrixBuilder, zca_matrix
from zcaw.whitening.regularization import AUTO, Regularization, coerce_regularization
from zcaw.whitening.transform import WhiteningTransform

if TYPE_CHECKING:
    from zcaw.config import WhiteningConfig
    from zcaw.data.dataset import Dataset


class TransformFactory:
    """Builds a fresh :class:`WhiteningTransform` for each dataset.

    With ``Fixed(r)`` every dataset is whitened with the same r. With
    ``AUTO`` (the default) r is derived per dataset from the conditioning of
    its covariance.

    Strategies come either from ``matrix_builder`` and ``decomposition``
    (ZCA and SVD by default) or from a ready-made ``builder``; not both.
    """

    def __init__(
        self,
        regularization: Regularization | float | None = AUTO,
        matrix_builder: MatrixBuilder | None = None,
        decomposition: SpectralDecomposition | None = None,
        builder: WhiteningModelBuilder | None = None,
    ) -> None:
        self.regularization = coerce_regularization(regularization)
        if builder is not None:
            if matrix_builder is not None or decomposition is not None:
                raise ValueError(
                    "Pass either a builder or matrix_builder/decomposition, not both; "
                    "the builder already carries its strategies"
                )
            self.builder = builder
        else:
            self.builder = WhiteningModelBuilder(
                matrix_builder=matrix_builder or zca_matrix,
                decomposition=decomposition or svd_decomposition,
            )

    @classmethod
    def from_config(cls, config: WhiteningConfig, verbose: bool = True) -> TransformFactory:
        builder = WhiteningModelBuilder(
            matrix_builder=MATRIX_BUILDERS[config.method],
            decomposition=DECOMPOSITIONS[config.decomposition],
            dtype=resolve_dtype(config.dtype),
            device=resolve_device(config.device),
            verbose=verbose,
        )
        return cls(regularization=config.regularization, builder=builder)

    def build(self, dataset: Dataset) -> WhiteningTransform:
        return WhiteningTransform(self.builder.fit(dataset, self.regularization))
