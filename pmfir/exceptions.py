"""Exceptions raised by the Parks-McClellan design core."""


class FilterDesignError(Exception):
    """Base exception for filter design errors."""

    pass


class ValidationError(FilterDesignError, ValueError):
    """Raised when a filter description is malformed.

    This occurs when:
    - No bands are given, or bands/desired/weights differ in length
    - A band edge lies outside [0, 0.5] or a band has f1 <= f0
    - Bands overlap, touch or are not sorted by frequency
    - A weight is not strictly positive, or a value is not finite
    - The filter length leaves no approximating function
    """

    pass


class NumericalError(FilterDesignError, ArithmeticError):
    """Raised when the exchange iteration hits a numerical dead end.

    This occurs when:
    - The rho denominator vanishes
    - Two interpolation abscissas coincide
    - The error curve has fewer than r+1 candidate extrema
    - The grid holds fewer than r+1 points
    """

    def __init__(self, reason, iteration=None):
        self.reason = reason
        self.iteration = iteration
        super().__init__(reason)

    def __str__(self):
        if self.iteration is None:
            return self.reason
        return f"{self.reason} (iteration {self.iteration})"


class ResourceError(FilterDesignError, MemoryError):
    """Raised when the grid or extremal arrays cannot be allocated."""

    pass


class DesignStateError(FilterDesignError, RuntimeError):
    """Raised when the designer is driven from a state that does not allow it."""

    pass
