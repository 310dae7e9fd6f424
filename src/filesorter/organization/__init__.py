"""Plan model, parsing, execution, and the convergence loop."""

from .controller import ConvergenceController
from .errors import ExecutionError, OrganizationError, ParseError
from .executor import PlanExecutor
from .models import ActionKind, ExecutionReport, OrganizationPlan, PlanAction, RequestContext
from .parser import HeuristicPlanParser, PlanParser, StrictPlanParser

__all__ = [
    "ActionKind",
    "ConvergenceController",
    "ExecutionError",
    "ExecutionReport",
    "HeuristicPlanParser",
    "OrganizationError",
    "OrganizationPlan",
    "ParseError",
    "PlanAction",
    "PlanExecutor",
    "PlanParser",
    "RequestContext",
    "StrictPlanParser",
]
