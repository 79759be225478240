"""Addon manager for orchestrating addon installations."""

import logging
from typing import Any

from blueprints.addons.aws_provider import CrossplaneAwsProviderAddon
from blueprints.addons.base import AddonEnvironment, BaseAddon
from blueprints.addons.crossplane import UpboundCrossplaneAddon
from blueprints.core.events import EventEmitter
from blueprints.core.orchestrator import Orchestrator
from blueprints.core.readiness import ReadinessGate, StatusReader
from blueprints.core.units import DeploymentUnit, RunResult

logger = logging.getLogger(__name__)


def link_required_addons(
    addon: BaseAddon,
    units: list[DeploymentUnit],
    built: dict[str, list[DeploymentUnit]],
) -> list[DeploymentUnit]:
    """Make an add-on's entry units wait for the add-ons it requires.

    Entry units (no dependency inside their own add-on) gain a dependency
    on every terminal unit (no dependents inside its add-on) of each
    required add-on. A required add-on that is not part of the run is
    referenced by a ``<name>/all`` placeholder id, which the resolver
    reports as an unknown dependency.
    """
    if not addon.requires:
        return units

    required: list[str] = []
    for name in addon.requires:
        if name not in built:
            required.append(f"{name}/all")
            continue
        depended_on = {dep for unit in built[name] for dep in unit.depends_on}
        required.extend(unit.id for unit in built[name] if unit.id not in depended_on)

    own_ids = {unit.id for unit in units}
    linked = []
    for unit in units:
        if any(dep in own_ids for dep in unit.depends_on):
            linked.append(unit)
            continue
        linked.append(
            DeploymentUnit(
                id=unit.id,
                action=unit.action,
                depends_on=unit.depends_on + tuple(required),
                readiness=unit.readiness,
                description=unit.description,
            )
        )
    return linked


class AddonManager:
    """Manages installation of cluster add-ons."""

    def __init__(
        self,
        env: AddonEnvironment,
        status_reader: StatusReader,
        emitter: EventEmitter | None = None,
    ):
        """Initialize addon manager.

        Args:
            env: Collaborators the add-ons act through
            status_reader: Source of object status for readiness gates
            emitter: Optional receiver of unit progress events
        """
        self.env = env
        self.status_reader = status_reader
        self.emitter = emitter
        self._addon_registry: dict[str, type[BaseAddon]] = {}
        self._register_addons()

    @property
    def cluster_name(self) -> str:
        return self.env.cluster_name

    def _register_addons(self) -> None:
        """Register available addons."""
        self._addon_registry = {
            "uxp": UpboundCrossplaneAddon,
            "crossplane": UpboundCrossplaneAddon,
            "upbound-crossplane": UpboundCrossplaneAddon,
            "crossplane-aws-provider": CrossplaneAwsProviderAddon,
            "aws-provider": CrossplaneAwsProviderAddon,
        }

    def _validate_addon_name(self, name: str) -> str:
        """Validate and normalize addon name.

        Raises:
            ValueError: If addon name is invalid
        """
        name_lower = name.lower().strip()
        if name_lower not in self._addon_registry:
            available = ", ".join(sorted(set(self._addon_registry.keys())))
            raise ValueError(f"Unknown addon: '{name}'. Available addons: {available}")
        return name_lower

    def _get_addon_instance(self, name: str, config: dict[str, Any] | None = None) -> BaseAddon:
        addon_class = self._addon_registry[name]
        return addon_class(config)

    def build_orchestrator(self, addons: list[BaseAddon]) -> Orchestrator:
        """Register the units of every add-on, linking add-on level requirements."""
        built = {addon.addon_name: addon.build_units(self.env) for addon in addons}
        linked = {
            addon.addon_name: link_required_addons(addon, built[addon.addon_name], built)
            for addon in addons
        }

        config = self.env.config
        gate = ReadinessGate(self.status_reader, max_poll_errors=config.max_poll_errors)
        orchestrator = Orchestrator(gate=gate, parallel=config.parallel, emitter=self.emitter)
        for units in linked.values():
            for unit in units:
                orchestrator.register(unit)
        return orchestrator

    async def install_addons(
        self, addon_names: list[str], configs: dict[str, dict[str, Any]] | None = None
    ) -> dict[str, Any]:
        """Install multiple addons.

        Args:
            addon_names: Add-on names, in registration order
            configs: Optional dict of addon-specific configurations

        Returns:
            Dict with installation results:
            - success: bool (True if every unit succeeded)
            - status: overall run status
            - results: dict of unit id (or invalid addon name) -> result
            - failed: list of failed unit ids and invalid addon names
            - skipped: list of skipped unit ids
            - message: summary message
        """
        if not addon_names:
            return {
                "success": True,
                "status": "success",
                "results": {},
                "failed": [],
                "skipped": [],
                "message": "No addons specified",
            }

        configs = configs or {}
        results: dict[str, Any] = {}
        failed: list[str] = []

        # Deduplicate and normalize addon names; aliases collapse to one class
        selected: list[str] = []
        seen: set[type[BaseAddon]] = set()
        for name in addon_names:
            try:
                normalized = self._validate_addon_name(name)
            except ValueError as e:
                logger.warning(str(e))
                failed.append(name)
                results[name] = {
                    "success": False,
                    "error": str(e),
                    "message": f"Invalid addon name: {name}",
                }
                continue
            addon_class = self._addon_registry[normalized]
            if addon_class in seen:
                continue
            seen.add(addon_class)
            selected.append(normalized)

        if not selected:
            return {
                "success": False,
                "status": "aborted",
                "results": results,
                "failed": failed,
                "skipped": [],
                "message": f"No valid addons to install, {len(failed)} invalid: {', '.join(failed)}",
            }

        logger.info(
            f"Installing {len(selected)} addon(s) for cluster '{self.cluster_name}': "
            f"{', '.join(selected)}"
        )

        try:
            addons = [self._get_addon_instance(name, configs.get(name)) for name in selected]
            orchestrator = self.build_orchestrator(addons)
        except ValueError as e:
            logger.error(f"Invalid addon configuration: {e}")
            return {
                "success": False,
                "status": "aborted",
                "results": results,
                "failed": failed + selected,
                "skipped": [],
                "message": f"Invalid addon configuration: {e}",
            }

        run = await orchestrator.run()
        return self._report(run, results, failed)

    def _report(self, run: RunResult, results: dict[str, Any], failed: list[str]) -> dict[str, Any]:
        for unit_id, outcome in run.outcomes.items():
            results[unit_id] = outcome.to_dict()

        failed = failed + run.failed
        message = run.summary()
        invalid = [name for name in failed if name not in run.outcomes]
        if invalid:
            message += f"; invalid addons: {', '.join(invalid)}"

        return {
            "success": run.success and not invalid,
            "status": run.status.value,
            "results": results,
            "failed": failed,
            "skipped": run.skipped,
            "message": message,
            "run": run,
        }
