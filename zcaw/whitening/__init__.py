"""ZCA whitening: full-rank decorrelating transforms applied in place."""

from zcaw.whitening.builder import FittedModel, WhiteningModelBuilder
from zcaw.whitening.covariance import OnlineCovariance
from zcaw.whitening.factory import TransformFactory
from zcaw.whitening.matrix import MATRIX_BUILDERS, MatrixBuilder, pca_matrix, zca_matrix
from zcaw.whitening.regularization import (
    AUTO,
    AutoFromConditioning,
    Fixed,
    Regularization,
    coerce_regularization,
    resolve_regularization,
)
from zcaw.whitening.scratch import ScratchBufferPool
from zcaw.whitening.transform import WhiteningTransform

__all__ = [
    "AUTO",
    "AutoFromConditioning",
    "FittedModel",
    "Fixed",
    "MATRIX_BUILDERS",
    "MatrixBuilder",
    "OnlineCovariance",
    "Regularization",
    "ScratchBufferPool",
    "TransformFactory",
    "WhiteningModelBuilder",
    "WhiteningTransform",
    "coerce_regularization",
    "pca_matrix",
    "resolve_regularization",
    "zca_matrix",
]
