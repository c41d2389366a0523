"""Vector utilities and spectral decomposition."""

from zcaw.linalg.constant_vector import ConstantVector
from zcaw.linalg.spectral import (
    DECOMPOSITIONS,
    SpectralBasis,
    SpectralDecomposition,
    eigh_decomposition,
    svd_decomposition,
)

__all__ = [
    "ConstantVector",
    "DECOMPOSITIONS",
    "SpectralBasis",
    "SpectralDecomposition",
    "eigh_decomposition",
    "svd_decomposition",
]
