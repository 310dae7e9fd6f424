"""filesorter: converge a directory tree toward an organization suggested by a language model."""

from importlib import metadata as _metadata

from filesorter.oracle import OracleGateway
from filesorter.organization import ConvergenceController, OrganizationPlan, PlanAction
from filesorter.state import AuditLog

__all__ = [
    "AuditLog",
    "ConvergenceController",
    "OracleGateway",
    "OrganizationPlan",
    "PlanAction",
    "__version__",
]


def __getattr__(name: str):
    if name == "__version__":
        try:
            return _metadata.version("filesorter")
        except _metadata.PackageNotFoundError:
            return "0.0.0"
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
