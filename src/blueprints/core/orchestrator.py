"""Orchestrator: runs deployment units in dependency order.

The orchestrator resolves an execution plan, invokes each unit's action,
publishes the context it returns, runs its readiness gate and records a
terminal outcome for every unit. Failures never stop unrelated branches;
they are recorded and turn every transitive dependent into a skip.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from enum import Enum

from blueprints.core.context import ContextStore, UnitContext
from blueprints.core.events import EventEmitter, UnitProgressEvent
from blueprints.core.graph import ExecutionPlan, resolve
from blueprints.core.readiness import ReadinessGate
from blueprints.core.units import DeploymentUnit, RunResult, RunStatus, UnitOutcome
from blueprints.utils.errors import (
    ActionError,
    DuplicateUnitError,
    GraphError,
    OrchestrationError,
    ReadinessError,
)

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    """Lifecycle of an orchestrator run."""

    PENDING = "pending"
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETED = "completed"
    ABORTED = "aborted"


class Orchestrator:
    """Drives one deployment run over a set of registered units."""

    def __init__(
        self,
        units: Iterable[DeploymentUnit] = (),
        gate: ReadinessGate | None = None,
        store: ContextStore | None = None,
        parallel: bool = False,
        emitter: EventEmitter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize orchestrator.

        Args:
            units: Units to register, in registration order
            gate: Readiness gate used for units that declare a ReadinessSpec
            store: Context store for this run (a fresh one by default)
            parallel: Run the units of each plan batch concurrently
            emitter: Receives unit progress events
            clock: Clock used for unit durations
        """
        self.gate = gate
        self.store = store if store is not None else ContextStore()
        self.parallel = parallel
        self.emitter = emitter or EventEmitter()
        self.state = RunState.PENDING
        self.plan: ExecutionPlan | None = None
        self._clock = clock
        self._units: dict[str, DeploymentUnit] = {}
        for unit in units:
            self.register(unit)

    @property
    def units(self) -> list[DeploymentUnit]:
        return list(self._units.values())

    def register(self, unit: DeploymentUnit) -> None:
        """Register a unit for the next run.

        Raises:
            DuplicateUnitError: If a unit with the same id is registered
            OrchestrationError: If the run has already started
        """
        if self.state is not RunState.PENDING:
            raise OrchestrationError("Cannot register units after the run has started")
        if unit.id in self._units:
            raise DuplicateUnitError(unit.id)
        self._units[unit.id] = unit

    async def run(self) -> RunResult:
        """Execute every registered unit once.

        Returns:
            RunResult with an outcome for every unit, or an aborted result
            carrying the graph error when no valid plan exists

        Raises:
            OrchestrationError: If called more than once
        """
        if self.state is not RunState.PENDING:
            raise OrchestrationError(f"Orchestrator already used (state: {self.state.value})")

        self.state = RunState.PLANNING
        try:
            self.plan = resolve(self._units.values())
        except GraphError as e:
            self.state = RunState.ABORTED
            logger.error(f"Planning failed, nothing was applied: {e}")
            return RunResult(status=RunStatus.ABORTED, error=e)

        self.state = RunState.EXECUTING
        logger.info(
            f"Executing {len(self.plan)} unit(s) in {len(self.plan.batches)} batch(es): "
            f"{', '.join(self.plan.order)}"
        )

        outcomes: dict[str, UnitOutcome] = {}
        for batch in self.plan.batches:
            if self.parallel and len(batch) > 1:
                results = await asyncio.gather(
                    *(self._run_unit(self._units[uid], outcomes) for uid in batch)
                )
                for outcome in results:
                    outcomes[outcome.unit_id] = outcome
            else:
                for uid in batch:
                    outcomes[uid] = await self._run_unit(self._units[uid], outcomes)

        self.state = RunState.COMPLETED
        status = (
            RunStatus.SUCCESS
            if all(outcome.ok for outcome in outcomes.values())
            else RunStatus.PARTIAL_FAILURE
        )
        result = RunResult(
            status=status,
            outcomes=outcomes,
            plan=self.plan,
            context=self.store.snapshot(),
        )
        if result.success:
            logger.info(result.summary())
        else:
            logger.warning(result.summary())
        return result

    async def _run_unit(
        self, unit: DeploymentUnit, outcomes: Mapping[str, UnitOutcome]
    ) -> UnitOutcome:
        blocker = next((dep for dep in unit.depends_on if not outcomes[dep].ok), None)
        if blocker is not None:
            root_cause = outcomes[blocker].root_cause or blocker
            logger.warning(f"[{unit.id}] Skipping: dependency '{blocker}' did not succeed")
            self.emitter.emit(
                UnitProgressEvent(unit.id, "skipped", f"Skipped because '{blocker}' did not succeed")
            )
            return UnitOutcome.skipped(unit.id, due_to=blocker, root_cause=root_cause)

        event = UnitProgressEvent(unit.id, "starting", unit.description or f"Running {unit.id}")
        self.emitter.emit(event)
        logger.info(f"[{unit.id}] Starting")
        started = self._clock()

        try:
            await self._invoke(unit)
        except Exception as e:
            return self._fail(unit, event, str(e) or type(e).__name__, started)

        ready_value = None
        if unit.readiness is not None:
            self._update(event, "waiting", f"Waiting for {unit.readiness.target}")
            if self.gate is None:
                return self._fail(unit, event, "No readiness gate configured", started)
            try:
                ready_value = await self.gate.wait(unit.readiness)
            except ReadinessError as e:
                return self._fail(unit, event, f"Readiness check failed: {e}", started)
            except Exception as e:
                return self._fail(unit, event, f"Readiness check error: {e}", started)

        duration = self._clock() - started
        self._update(event, "complete", "Ready", duration)
        logger.info(f"[{unit.id}] Succeeded in {duration:.1f}s")
        return UnitOutcome.succeeded(unit.id, duration=duration, ready_value=ready_value)

    async def _invoke(self, unit: DeploymentUnit) -> None:
        """Run the unit's action and publish what it returns."""
        result = unit.action(UnitContext(unit.id, self.store, self._predecessors(unit)))
        if inspect.isawaitable(result):
            result = await result
        if result is None:
            return
        if not isinstance(result, Mapping):
            raise ActionError(
                f"Action returned {type(result).__name__}, expected a mapping or None"
            )
        self.store.publish(unit.id, result)

    def _predecessors(self, unit: DeploymentUnit) -> tuple[str, ...]:
        """Ids of the direct and transitive dependencies of a unit."""
        seen: dict[str, None] = {}
        stack = list(unit.depends_on)
        while stack:
            uid = stack.pop()
            if uid not in seen:
                seen[uid] = None
                stack.extend(self._units[uid].depends_on)
        return tuple(seen)

    def _fail(
        self, unit: DeploymentUnit, event: UnitProgressEvent, reason: str, started: float
    ) -> UnitOutcome:
        duration = self._clock() - started
        logger.error(f"[{unit.id}] Failed: {reason}")
        self._update(event, "error", reason, duration)
        return UnitOutcome.failed(unit.id, reason, duration=duration)

    def _update(
        self,
        event: UnitProgressEvent,
        status: str,
        message: str,
        duration: float | None = None,
    ) -> None:
        update = UnitProgressEvent(event.unit_id, status, message, duration)
        update.event_id = event.event_id
        self.emitter.emit(update)
