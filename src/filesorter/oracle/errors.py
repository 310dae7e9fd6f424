"""Errors surfaced by planning oracles."""


class OracleError(Exception):
    """Raised when the planning oracle fails to produce a response."""


class ContextOverflowError(OracleError):
    """Raised when the conversation no longer fits the model's context window."""
