"""Base addon class for all cluster add-ons."""

import copy
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from blueprints.cluster.helm import ChartInstaller
from blueprints.cluster.iam import RoleProvisioner
from blueprints.cluster.kubectl import Manifest, ManifestApplier
from blueprints.config import BlueprintsConfig
from blueprints.core.context import UnitContext
from blueprints.core.readiness import ObjectRef, ReadinessSpec
from blueprints.core.units import DeploymentUnit

logger = logging.getLogger(__name__)

ManifestBuilder = Callable[[UnitContext], Sequence[Manifest]]


@dataclass
class AddonEnvironment:
    """Collaborators an add-on's units act through."""

    cluster_name: str
    applier: ManifestApplier
    installer: ChartInstaller
    roles: RoleProvisioner
    config: BlueprintsConfig


def merge_values(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge two value trees; ``override`` wins on conflicts."""
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = merge_values(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class BaseAddon(ABC):
    """Abstract base class for cluster add-ons.

    An add-on contributes one or more deployment units. Unit ids are
    namespaced with the add-on name (``<addon>/<step>``) so several
    add-ons can be combined in one run.

    Attributes:
        requires: Names of add-ons that must be fully installed first
    """

    requires: tuple[str, ...] = ()

    def __init__(self, config: dict[str, Any] | None = None):
        """Initialize addon.

        Args:
            config: Optional configuration dict for the addon
        """
        self.config = config or {}
        self.addon_name = self.__class__.__name__.replace("Addon", "").lower()

    def log_info(self, message: str) -> None:
        """Log info message with addon prefix."""
        logger.info(f"[{self.addon_name}] {message}")

    def log_warn(self, message: str) -> None:
        """Log warning message with addon prefix."""
        logger.warning(f"[{self.addon_name}] {message}")

    def log_error(self, message: str) -> None:
        """Log error message with addon prefix."""
        logger.error(f"[{self.addon_name}] {message}")

    def unit_id(self, step: str) -> str:
        """Return the id of one of this add-on's steps."""
        return f"{self.addon_name}/{step}"

    def readiness(
        self, env: AddonEnvironment, target: ObjectRef, condition: str, status: str = "True"
    ) -> ReadinessSpec:
        """Readiness spec on a status condition, using configured poll settings."""
        return ReadinessSpec.for_condition(
            target,
            condition,
            status,
            poll_interval=self.config.get("poll_interval", env.config.poll_interval),
            timeout=self.config.get("readiness_timeout", env.config.readiness_timeout),
        )

    def manifest_unit(
        self,
        env: AddonEnvironment,
        step: str,
        build: ManifestBuilder,
        depends_on: Iterable[str] = (),
        overwrite: bool = False,
        readiness: ReadinessSpec | None = None,
        description: str = "",
    ) -> DeploymentUnit:
        """Build a unit that renders manifests and applies them.

        Args:
            env: Add-on environment
            step: Step name, turned into the unit id
            build: Returns the manifests to apply; may read published context
            depends_on: Unit ids that must succeed first
            overwrite: Apply with overwrite semantics
            readiness: Optional gate after applying
            description: Summary for progress reporting
        """

        async def action(ctx: UnitContext) -> None:
            manifests = build(ctx)
            applied = await env.applier.apply(manifests, overwrite=overwrite)
            self.log_info(f"{step}: applied {len(applied) or len(manifests)} object(s)")

        return DeploymentUnit(
            id=self.unit_id(step),
            action=action,
            depends_on=tuple(depends_on),
            readiness=readiness,
            description=description or f"Apply {self.addon_name} {step}",
        )

    @abstractmethod
    def build_units(self, env: AddonEnvironment) -> list[DeploymentUnit]:
        """Return this add-on's deployment units.

        Units may depend on each other and on units of the add-ons listed
        in ``requires``; the manager links the latter.
        """
        pass
