"""Regularization choice: a fixed scalar or one derived from spectrum conditioning."""

from __future__ import annotations

import math
from dataclasses import dataclass

from zcaw.errors import NumericalDomainError
from zcaw.linalg.spectral import SpectralBasis


@dataclass(frozen=True)
class Fixed:
    """The same regularization for every dataset."""

    value: float

    def __post_init__(self) -> None:
        value = float(self.value)
        if not math.isfinite(value) or value <= 0.0:
            raise ValueError(f"Regularization must be finite and > 0, got {self.value}")
        object.__setattr__(self, "value", value)


@dataclass(frozen=True)
class AutoFromConditioning:
    """r = log(κ), κ = s_max / s_min of the covariance spectrum.

    Larger for worse-conditioned covariances; 0 for a perfectly conditioned one.
    """


Regularization = Fixed | AutoFromConditioning

AUTO = AutoFromConditioning()


def coerce_regularization(value: Regularization | float | None) -> Regularization:
    """Accept ``None`` for AUTO and a bare number for ``Fixed(number)``."""
    if value is None:
        return AUTO
    if isinstance(value, (Fixed, AutoFromConditioning)):
        return value
    return Fixed(value)


def resolve_regularization(regularization: Regularization, basis: SpectralBasis) -> float:
    """Turn a regularization choice into the scalar added to each spectral weight."""
    if isinstance(regularization, Fixed):
        return regularization.value

    kappa = basis.condition_number()
    if not math.isfinite(kappa):
        raise NumericalDomainError(
            "Covariance is singular (smallest spectral weight is 0), so log(condition number) "
            "is undefined; pass a fixed regularization instead"
        )
    return math.log(kappa)
