"""Cluster add-on provisioning with dependency ordering and readiness gates.

Add-ons declare deployment units with dependencies; the orchestrator runs
them in a resolved order, passes published context from producers to
consumers and waits for asynchronously reconciled objects to become ready.
"""

from importlib.metadata import PackageNotFoundError, version

from blueprints.config import BlueprintsConfig
from blueprints.core import (
    ContextStore,
    DeploymentUnit,
    ObjectRef,
    Orchestrator,
    ReadinessGate,
    ReadinessSpec,
    RunResult,
    resolve,
)

# Read version from package metadata with fallback
try:
    __version__ = version("cluster-blueprints")
except PackageNotFoundError:
    # Fallback for development/testing environments
    __version__ = "0.1.0"

__all__ = [
    "BlueprintsConfig",
    "ContextStore",
    "DeploymentUnit",
    "ObjectRef",
    "Orchestrator",
    "ReadinessGate",
    "ReadinessSpec",
    "RunResult",
    "__version__",
    "resolve",
]
