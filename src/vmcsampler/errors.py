from __future__ import annotations


class InvalidConfigurationError(ValueError):
    """A configuration holds values outside the Hilbert space's local domain."""


class PreconditionViolationError(RuntimeError):
    """An operation was invoked before the sampler was ready for it."""


class DimensionMismatchError(ValueError):
    """Array shapes of samples, values or gradients do not line up."""
