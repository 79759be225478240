"""Custom exception classes for cluster blueprints."""


class BlueprintsError(Exception):
    """Base exception for cluster blueprints errors."""

    pass


class ConfigurationError(BlueprintsError):
    """Raised when configuration is invalid or missing."""

    pass


class GraphError(BlueprintsError):
    """Raised when the declared units cannot be ordered.

    Graph errors are detected before any unit runs, so nothing has been
    applied to the cluster when one is raised.
    """

    pass


class UnknownDependencyError(GraphError):
    """Raised when a unit depends on an id that was never registered."""

    def __init__(self, unit_id: str, missing_id: str):
        self.unit_id = unit_id
        self.missing_id = missing_id
        super().__init__(f"Unit '{unit_id}' depends on unknown unit '{missing_id}'")


class CyclicDependencyError(GraphError):
    """Raised when the dependency graph contains a cycle."""

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        path = " -> ".join(self.cycle + self.cycle[:1])
        super().__init__(f"Cyclic dependency detected: {path}")


class DuplicateUnitError(GraphError):
    """Raised when two units are registered under the same id."""

    def __init__(self, unit_id: str):
        self.unit_id = unit_id
        super().__init__(f"Unit '{unit_id}' is already registered")


class ContextError(BlueprintsError):
    """Base class for context store violations."""

    pass


class AlreadyPublishedError(ContextError):
    """Raised when a unit publishes context twice in one run."""

    def __init__(self, unit_id: str):
        self.unit_id = unit_id
        super().__init__(f"Context for '{unit_id}' has already been published")


class ContextNotFoundError(ContextError, KeyError):
    """Raised when required context has not been published."""

    def __init__(self, unit_id: str, key: str | None = None):
        self.unit_id = unit_id
        self.key = key
        if key is None:
            message = f"No context published by '{unit_id}'"
        else:
            message = f"Context published by '{unit_id}' has no key '{key}'"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0])


class ReadinessError(BlueprintsError):
    """Base class for readiness gate failures."""

    pass


class ReadinessTimeoutError(ReadinessError):
    """Raised when a readiness gate does not observe the expected status in time."""

    def __init__(self, target: str, timeout: float, last_value: object = None):
        self.target = target
        self.timeout = timeout
        self.last_value = last_value
        super().__init__(
            f"Timed out after {timeout:g}s waiting for {target} (last status: {last_value!r})"
        )


class PollError(ReadinessError):
    """Raised when polling keeps failing at the transport level."""

    pass


class StatusNotFoundError(BlueprintsError):
    """Raised by a status reader when the object or status path does not exist yet."""

    pass


class StatusReadError(BlueprintsError):
    """Raised by a status reader when the status could not be fetched."""

    pass


class ActionError(BlueprintsError):
    """Raised by a unit action to report an installation failure."""

    pass


class OrchestrationError(BlueprintsError):
    """Raised when the orchestrator is used incorrectly."""

    pass


class CommandTimeoutError(BlueprintsError):
    """Raised when an external command exceeds its timeout."""

    pass


class KubectlCommandError(BlueprintsError):
    """Raised when a kubectl command fails."""

    pass


class InvalidManifestError(BlueprintsError):
    """Raised when a manifest is not a valid Kubernetes object."""

    pass


class HelmCommandError(BlueprintsError):
    """Raised when a helm command fails."""

    pass
