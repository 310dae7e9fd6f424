"""Errors raised while turning planner output into filesystem changes."""


class OrganizationError(Exception):
    """Base exception for plan parsing and execution."""


class ParseError(OrganizationError):
    """Raised when planner output cannot be turned into a plan.

    Attributes:
        raw: The response text that failed to parse.
    """

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class ExecutionError(OrganizationError):
    """Raised when a filesystem mutation for a single action fails."""
