"""Deployment units and run outcome types."""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from blueprints.utils.validation import validate_unit_id

if TYPE_CHECKING:
    from blueprints.core.context import UnitContext
    from blueprints.core.graph import ExecutionPlan
    from blueprints.core.readiness import ReadinessSpec
    from blueprints.utils.errors import GraphError

ActionResult = Mapping[str, Any] | None
# Takes a UnitContext; may return an awaitable resolving to the ActionResult
Action = Callable[..., ActionResult | Awaitable[ActionResult]]


@dataclass(frozen=True)
class DeploymentUnit:
    """A single idempotent installation step.

    Attributes:
        id: Unique id of the unit within one run
        action: Callable taking a UnitContext and returning the mapping to
            publish (or None). May be a coroutine function.
        depends_on: Ids of units that must succeed first
        readiness: Optional gate to pass before dependents may start
        description: Human readable summary for logs and reports
    """

    id: str
    action: Action
    depends_on: tuple[str, ...] = ()
    readiness: "ReadinessSpec | None" = None
    description: str = ""

    def __post_init__(self) -> None:
        validate_unit_id(self.id)
        # Accept any iterable, keep declaration order, drop repeats
        deps = tuple(dict.fromkeys(self.depends_on))
        for dep in deps:
            validate_unit_id(dep)
        object.__setattr__(self, "depends_on", deps)


class OutcomeStatus(str, Enum):
    """Terminal state of a single unit."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class UnitOutcome:
    """Result of one unit in a run."""

    unit_id: str
    status: OutcomeStatus
    reason: str | None = None
    due_to: str | None = None
    root_cause: str | None = None
    duration: float = 0.0
    ready_value: Any = None

    @classmethod
    def succeeded(cls, unit_id: str, duration: float = 0.0, ready_value: Any = None) -> "UnitOutcome":
        return cls(unit_id, OutcomeStatus.SUCCEEDED, duration=duration, ready_value=ready_value)

    @classmethod
    def failed(cls, unit_id: str, reason: str, duration: float = 0.0) -> "UnitOutcome":
        return cls(unit_id, OutcomeStatus.FAILED, reason=reason, duration=duration)

    @classmethod
    def skipped(cls, unit_id: str, due_to: str, root_cause: str) -> "UnitOutcome":
        return cls(unit_id, OutcomeStatus.SKIPPED, due_to=due_to, root_cause=root_cause)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCEEDED

    def describe(self) -> str:
        """One-line explanation of the outcome."""
        if self.status is OutcomeStatus.FAILED:
            return f"failed: {self.reason}"
        if self.status is OutcomeStatus.SKIPPED:
            if self.root_cause and self.root_cause != self.due_to:
                return f"skipped: '{self.due_to}' did not succeed (root cause '{self.root_cause}')"
            return f"skipped: '{self.due_to}' did not succeed"
        return "succeeded"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "unit": self.unit_id,
            "status": self.status.value,
            "success": self.ok,
            "duration": round(self.duration, 3),
        }
        if self.reason is not None:
            data["error"] = self.reason
        if self.due_to is not None:
            data["due_to"] = self.due_to
            data["root_cause"] = self.root_cause
        return data


class RunStatus(str, Enum):
    """Overall status of an orchestration run."""

    SUCCESS = "success"
    PARTIAL_FAILURE = "partial_failure"
    ABORTED = "aborted"


@dataclass
class RunResult:
    """Terminal report of an orchestration run.

    ``outcomes`` holds every declared unit in plan order unless the run was
    aborted during planning, in which case it is empty and ``error`` holds
    the graph error.
    """

    status: RunStatus
    outcomes: dict[str, UnitOutcome] = field(default_factory=dict)
    plan: "ExecutionPlan | None" = None
    error: "GraphError | None" = None
    context: dict[str, dict[str, Any]] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return self.status is RunStatus.SUCCESS

    def _with_status(self, status: OutcomeStatus) -> list[str]:
        return [uid for uid, outcome in self.outcomes.items() if outcome.status is status]

    @property
    def succeeded(self) -> list[str]:
        return self._with_status(OutcomeStatus.SUCCEEDED)

    @property
    def failed(self) -> list[str]:
        return self._with_status(OutcomeStatus.FAILED)

    @property
    def skipped(self) -> list[str]:
        return self._with_status(OutcomeStatus.SKIPPED)

    def summary(self) -> str:
        """Short human readable summary."""
        if self.status is RunStatus.ABORTED:
            return f"Run aborted before any unit ran: {self.error}"
        message = f"Units: {len(self.succeeded)}/{len(self.outcomes)} succeeded"
        if self.failed:
            message += f", {len(self.failed)} failed: {', '.join(self.failed)}"
        if self.skipped:
            message += f", {len(self.skipped)} skipped"
        return message

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "success": self.success,
            "outcomes": {uid: outcome.to_dict() for uid, outcome in self.outcomes.items()},
            "error": str(self.error) if self.error else None,
            "message": self.summary(),
        }
