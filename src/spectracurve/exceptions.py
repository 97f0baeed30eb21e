"""Common exceptions for spectracurve."""


class SpectraCurveError(Exception):
    """Base exception for all spectracurve errors."""

    pass


class InvalidInputError(SpectraCurveError):
    """Input buffer or point sequence violates a precondition."""

    pass


class InsufficientPointsError(InvalidInputError):
    """Fewer than two points were given to an interpolator."""

    pass


class UnsupportedWindowError(SpectraCurveError):
    """Requested window function is not implemented."""

    pass


class ConfigurationError(SpectraCurveError):
    """Configuration value out of range."""

    pass
