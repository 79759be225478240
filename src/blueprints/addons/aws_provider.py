"""Crossplane AWS provider addon."""

from typing import Any

from blueprints.addons.base import AddonEnvironment, BaseAddon
from blueprints.addons.crossplane import (
    controller_config_manifest,
    provider_config_manifest,
    provider_manifest,
    provider_ref,
)
from blueprints.addons.provider_mappings import PROVIDER_MAPPINGS, CrossplaneProvider
from blueprints.core.units import DeploymentUnit


class CrossplaneAwsProviderAddon(BaseAddon):
    """Crossplane AWS provider addon.

    Installs the EKS family provider on top of an existing Crossplane
    installation, reusing the IAM role published by the ``uxp`` add-on.
    """

    requires = ("uxp",)

    ROLE_UNIT = "uxp/service-account"
    CONTROLLER_CONFIG = "aws-config"
    PROVIDER_CONFIG = "default"

    def __init__(self, config: dict[str, Any] | None = None):
        """Initialize AWS provider addon.

        Args:
            config: Optional configuration:
                - provider: Provider name (default: eks)
                - role_unit: Unit that publishes the role ARN (default: uxp/service-account)
        """
        super().__init__(config)
        self.addon_name = "crossplane-aws-provider"
        provider = CrossplaneProvider(self.config.get("provider", CrossplaneProvider.EKS.value))
        self.mapping = PROVIDER_MAPPINGS[provider]
        self.role_unit = self.config.get("role_unit", self.ROLE_UNIT)

    def build_units(self, env: AddonEnvironment) -> list[DeploymentUnit]:
        step = f"provider-{self.mapping.provider}"
        return [
            self.manifest_unit(
                env,
                "controller-config",
                lambda ctx: [
                    controller_config_manifest(
                        self.CONTROLLER_CONFIG, ctx.require(self.role_unit, "arn")
                    )
                ],
                description=f"Apply ControllerConfig {self.CONTROLLER_CONFIG}",
            ),
            self.manifest_unit(
                env,
                step,
                lambda ctx: [provider_manifest(self.mapping, self.CONTROLLER_CONFIG)],
                depends_on=(self.unit_id("controller-config"),),
                overwrite=True,
                readiness=self.readiness(env, provider_ref(self.mapping), "Healthy"),
                description=f"Install Crossplane provider {self.mapping.provider_name}",
            ),
            self.manifest_unit(
                env,
                "provider-config",
                lambda ctx: [provider_config_manifest(self.PROVIDER_CONFIG)],
                depends_on=(self.unit_id(step),),
                overwrite=True,
                description=f"Apply ProviderConfig {self.PROVIDER_CONFIG}",
            ),
        ]
