"""Readiness gate: poll an external object until its status matches.

Many cluster resources are applied immediately but reconciled later (a
CRD becomes Established, a Crossplane Provider becomes Healthy). A
:class:`ReadinessSpec` attached to a unit describes what "ready" means,
and the :class:`ReadinessGate` waits for it with a bounded timeout.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol

from blueprints.utils.errors import (
    PollError,
    ReadinessTimeoutError,
    StatusNotFoundError,
    StatusReadError,
)
from blueprints.utils.validation import validate_duration

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_TIMEOUT = 300.0
DEFAULT_MAX_POLL_ERRORS = 3


@dataclass(frozen=True)
class ObjectRef:
    """Locator of a cluster object.

    Attributes:
        resource: kubectl resource name, e.g. ``customresourcedefinitions``
            or ``providers.pkg.crossplane.io``
        name: Object name
        namespace: Namespace for namespaced objects
    """

    resource: str
    name: str
    namespace: str | None = None

    def __str__(self) -> str:
        if self.namespace:
            return f"{self.resource}/{self.name} (namespace {self.namespace})"
        return f"{self.resource}/{self.name}"


def condition_path(condition_type: str) -> str:
    """Status path of a Kubernetes condition's ``status`` field."""
    return f'$.status.conditions[?(@.type=="{condition_type}")].status'


@dataclass(frozen=True)
class ReadinessSpec:
    """Declares when a unit's external side effect counts as ready.

    Attributes:
        target: Object to poll
        status_path: Path expression into the object's status document
        expected: Value to compare with, or a predicate on the value
        poll_interval: Seconds between polls
        timeout: Seconds before giving up
    """

    target: ObjectRef
    status_path: str
    expected: Any
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        object.__setattr__(self, "poll_interval", validate_duration("poll_interval", self.poll_interval))
        object.__setattr__(self, "timeout", validate_duration("timeout", self.timeout))

    @classmethod
    def for_condition(
        cls,
        target: ObjectRef,
        condition_type: str,
        status: str = "True",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> "ReadinessSpec":
        """Wait for a standard Kubernetes status condition."""
        return cls(
            target=target,
            status_path=condition_path(condition_type),
            expected=status,
            poll_interval=poll_interval,
            timeout=timeout,
        )

    def is_satisfied(self, value: Any) -> bool:
        if callable(self.expected):
            return bool(self.expected(value))
        return value == self.expected


class StatusReader(Protocol):
    """Reads a value from an external object's status."""

    async def read_status(self, target: ObjectRef, status_path: str) -> Any:
        """Return the value at ``status_path``.

        Raises:
            StatusNotFoundError: If the object or path does not exist yet
            StatusReadError: If the status could not be fetched
        """
        ...


class ReadinessGate:
    """Polls a status reader until a readiness spec holds or its deadline passes."""

    def __init__(
        self,
        reader: StatusReader,
        max_poll_errors: int = DEFAULT_MAX_POLL_ERRORS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initialize the gate.

        Args:
            reader: Source of status values
            max_poll_errors: Consecutive transport failures tolerated before
                giving up with PollError
            clock: Monotonic clock in seconds
            sleep: Coroutine used to wait between polls
        """
        if max_poll_errors < 0:
            raise ValueError("max_poll_errors cannot be negative")
        self.reader = reader
        self.max_poll_errors = max_poll_errors
        self._clock = clock
        self._sleep = sleep

    async def wait(self, spec: ReadinessSpec) -> Any:
        """Block until ``spec`` is satisfied.

        Returns:
            The status value that satisfied ``spec``

        Raises:
            ReadinessTimeoutError: If the deadline passes first
            PollError: If reads fail more than max_poll_errors times in a row
        """
        target = str(spec.target)
        started = self._clock()
        polls = 0
        errors = 0
        last_value: Any = None

        logger.info(f"Waiting for {target} ({spec.status_path}), timeout {spec.timeout:g}s")

        while True:
            remaining = spec.timeout - (self._clock() - started)
            if remaining <= 0:
                raise ReadinessTimeoutError(target, spec.timeout, last_value)

            polls += 1
            try:
                value = await asyncio.wait_for(
                    self.reader.read_status(spec.target, spec.status_path),
                    timeout=remaining,
                )
            except StatusNotFoundError as e:
                errors = 0
                logger.debug(f"Poll {polls}: {target} not found yet ({e})")
            except StatusReadError as e:
                errors += 1
                logger.warning(f"Poll {polls}: failed to read {target}: {e}")
                if errors > self.max_poll_errors:
                    raise PollError(
                        f"Giving up on {target} after {errors} consecutive read failures: {e}"
                    ) from e
            except TimeoutError as e:
                raise ReadinessTimeoutError(target, spec.timeout, last_value) from e
            else:
                errors = 0
                last_value = value
                if spec.is_satisfied(value):
                    elapsed = self._clock() - started
                    logger.info(f"{target} is ready after {polls} poll(s), {elapsed:.1f}s")
                    return value
                logger.debug(f"Poll {polls}: {target} status is {value!r}")

            remaining = spec.timeout - (self._clock() - started)
            if remaining <= 0:
                raise ReadinessTimeoutError(target, spec.timeout, last_value)

            await self._sleep(min(spec.poll_interval, remaining))
