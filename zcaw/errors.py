"""Exceptions raised by the whitening subsystem.

Invalid arguments (bad lengths, shapes, regularization values) raise the
builtin ValueError.
"""


class UnsupportedOperation(TypeError):
    """Raised when a vector representation cannot honour element mutation."""


class NumericalDomainError(ArithmeticError):
    """Raised when a whitening matrix would require sqrt/division of a non-positive value.

    Signals a configuration problem (regularization too small, or a degenerate
    dataset). It is never converted into NaN/Inf output.
    """
