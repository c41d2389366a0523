"""zcaw: ZCA whitening of numeric features with thread-safe in-place application.

Covariance → spectral basis (U, s) → W = U (Λ + rI)^{-1/2} U^T, applied to
each record's numeric vector through per-thread scratch buffers.
"""

from zcaw.config import WhiteningConfig
from zcaw.data import Dataset, NumericDataset, Record
from zcaw.errors import NumericalDomainError, UnsupportedOperation
from zcaw.linalg import ConstantVector, SpectralBasis, eigh_decomposition, svd_decomposition
from zcaw.whitening import (
    AUTO,
    AutoFromConditioning,
    FittedModel,
    Fixed,
    TransformFactory,
    WhiteningModelBuilder,
    WhiteningTransform,
    pca_matrix,
    zca_matrix,
)

__all__ = [
    "AUTO",
    "AutoFromConditioning",
    "ConstantVector",
    "Dataset",
    "FittedModel",
    "Fixed",
    "NumericDataset",
    "NumericalDomainError",
    "Record",
    "SpectralBasis",
    "TransformFactory",
    "UnsupportedOperation",
    "WhiteningConfig",
    "WhiteningModelBuilder",
    "WhiteningTransform",
    "eigh_decomposition",
    "pca_matrix",
    "svd_decomposition",
    "zca_matrix",
]
