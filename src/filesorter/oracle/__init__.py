"""Planning oracle access: backends, prompts, and the session-keeping gateway."""

from .backends import DSPyOracle, HeuristicOracle, Oracle, build_oracle
from .errors import ContextOverflowError, OracleError
from .gateway import OracleGateway
from .session import OracleSession, TranscriptEntry

__all__ = [
    "Oracle",
    "DSPyOracle",
    "HeuristicOracle",
    "build_oracle",
    "OracleError",
    "ContextOverflowError",
    "OracleGateway",
    "OracleSession",
    "TranscriptEntry",
]
