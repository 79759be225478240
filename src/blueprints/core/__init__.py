"""Add-on dependency orchestration and readiness gating."""

from blueprints.core.context import ContextStore, UnitContext
from blueprints.core.events import EventEmitter, UnitProgressEvent
from blueprints.core.graph import ExecutionPlan, resolve
from blueprints.core.orchestrator import Orchestrator, RunState
from blueprints.core.readiness import ObjectRef, ReadinessGate, ReadinessSpec, StatusReader
from blueprints.core.units import (
    DeploymentUnit,
    OutcomeStatus,
    RunResult,
    RunStatus,
    UnitOutcome,
)

__all__ = [
    "ContextStore",
    "DeploymentUnit",
    "EventEmitter",
    "ExecutionPlan",
    "ObjectRef",
    "Orchestrator",
    "OutcomeStatus",
    "ReadinessGate",
    "ReadinessSpec",
    "RunResult",
    "RunState",
    "RunStatus",
    "StatusReader",
    "UnitContext",
    "UnitOutcome",
    "UnitProgressEvent",
    "resolve",
]
