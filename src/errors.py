class DegenerateInputError(ValueError):
    """Numeric input with no meaningful result (singular matrix, bad frustum, ...)."""


class StateInvariantViolation(AssertionError):
    """Mutable state reached a value its setters never produce."""
