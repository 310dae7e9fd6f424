"""State management errors."""


class StateError(Exception):
    """Base exception for history persistence under a collection root."""


class MissingStateError(StateError):
    """Raised when a root has no recorded history yet."""
