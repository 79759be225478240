"""Upbound Universal Crossplane addon."""

from pathlib import Path
from typing import Any

from blueprints.addons.base import AddonEnvironment, BaseAddon, merge_values
from blueprints.addons.provider_mappings import (
    PROVIDER_MAPPINGS,
    CrossplaneProvider,
    ProviderMapping,
    parse_providers,
)
from blueprints.cluster.helm import ChartSpec
from blueprints.cluster.manifests import (
    namespace_manifest,
    render_template,
    service_account_manifest,
)
from blueprints.core.context import UnitContext
from blueprints.core.readiness import ObjectRef
from blueprints.core.units import DeploymentUnit

PROVIDER_TEMPLATE = Path(__file__).parent / "templates" / "provider.yaml"

CONTROLLER_CONFIG_CRD = ObjectRef("customresourcedefinitions", "controllerconfigs.pkg.crossplane.io")
PROVIDER_CONFIG_CRD = ObjectRef("customresourcedefinitions", "providerconfigs.aws.upbound.io")


def controller_config_manifest(name: str, role_arn: str) -> dict[str, Any]:
    """ControllerConfig that runs provider pods with the IRSA role."""
    return {
        "apiVersion": "pkg.crossplane.io/v1alpha1",
        "kind": "ControllerConfig",
        "metadata": {
            "name": name,
            "annotations": {"eks.amazonaws.com/role-arn": role_arn},
        },
        "spec": {},
    }


def provider_config_manifest(name: str = "default") -> dict[str, Any]:
    """AWS ProviderConfig authenticating through IRSA."""
    return {
        "apiVersion": "aws.upbound.io/v1beta1",
        "kind": "ProviderConfig",
        "metadata": {"name": name},
        "spec": {"credentials": {"source": "IRSA"}},
    }


def provider_manifest(mapping: ProviderMapping, controller_config: str) -> dict[str, Any]:
    """Provider package manifest rendered from the bundled template."""
    return render_template(
        PROVIDER_TEMPLATE,
        {
            "provider-name": mapping.provider_name,
            "package": mapping.package,
            "controller-config": controller_config,
        },
    )


def provider_ref(mapping: ProviderMapping) -> ObjectRef:
    return ObjectRef("providers.pkg.crossplane.io", mapping.provider_name)


class UpboundCrossplaneAddon(BaseAddon):
    """Upbound Universal Crossplane addon.

    Installs the universal-crossplane chart together with the AWS family
    providers selected in the configuration. Provider pods authenticate
    with an IAM role bound to the ``provider-aws`` service account; the
    role ARN is published by the ``service-account`` step for other
    add-ons to use.
    """

    DEFAULT_CHART_VERSION = "1.14.6-up.1"
    DEFAULT_NAMESPACE = "upbound-system"
    HELM_REPO_URL = "https://charts.upbound.io/stable"
    HELM_CHART = "universal-crossplane"
    RELEASE_NAME = "blueprints-addon-uxp"
    SERVICE_ACCOUNT = "provider-aws"
    CONTROLLER_CONFIG = "aws-config"
    PROVIDER_CONFIG = "default"
    DEFAULT_VALUES: dict[str, Any] = {
        "provider": {"packages": ["xpkg.upbound.io/crossplane-contrib/provider-aws:v0.39.0"]}
    }
    DEFAULT_PROVIDERS = [CrossplaneProvider.EKS.value]

    def __init__(self, config: dict[str, Any] | None = None):
        """Initialize Crossplane addon.

        Args:
            config: Optional configuration:
                - chart_version: Helm chart version (default: 1.14.6-up.1)
                - namespace: Kubernetes namespace (default: upbound-system)
                - create_namespace: Apply the namespace (default: True)
                - providers: Provider names (default: ["eks"])
                - managed_policy_name: Policy attached instead of each provider's default
                - inline_policy_statements: Statements used instead of each provider's default
                - values: Additional Helm values, deep-merged over the defaults
        """
        super().__init__(config)
        self.addon_name = "uxp"
        self.chart_version = self.config.get("chart_version", self.DEFAULT_CHART_VERSION)
        self.namespace = self.config.get("namespace", self.DEFAULT_NAMESPACE)
        self.create_namespace = self.config.get("create_namespace", True)
        self.providers = parse_providers(self.config.get("providers", self.DEFAULT_PROVIDERS))
        self.managed_policy_name = self.config.get("managed_policy_name")
        self.inline_policy_statements = self.config.get("inline_policy_statements")
        self.values = merge_values(self.DEFAULT_VALUES, self.config.get("values", {}))

    @property
    def role_unit(self) -> str:
        """Id of the unit that publishes the provider role ARN."""
        return self.unit_id("service-account")

    def policies(self) -> tuple[list[str], list[dict[str, Any]]]:
        """Managed policy names and inline statements for the provider role."""
        managed: list[str] = []
        inline: list[dict[str, Any]] = []
        for provider in self.providers:
            mapping = PROVIDER_MAPPINGS[provider]
            policy = self.managed_policy_name or mapping.managed_policy_name
            if policy and policy not in managed:
                managed.append(policy)
            statements = self.inline_policy_statements
            if statements is None:
                statements = mapping.inline_policy_statements
            for statement in statements:
                if statement not in inline:
                    inline.append(dict(statement))
        return managed, inline

    def build_units(self, env: AddonEnvironment) -> list[DeploymentUnit]:
        units: list[DeploymentUnit] = []

        sa_deps: list[str] = []
        if self.create_namespace:
            units.append(
                self.manifest_unit(
                    env,
                    "namespace",
                    lambda ctx: [namespace_manifest(self.namespace)],
                    description=f"Create namespace {self.namespace}",
                )
            )
            sa_deps.append(self.unit_id("namespace"))
        else:
            self.log_warn(f"Namespace creation disabled, {self.namespace} must already exist")

        async def create_service_account(ctx: UnitContext) -> dict[str, Any]:
            managed, inline = self.policies()
            try:
                role_arn = await env.roles.ensure_service_account_role(
                    self.SERVICE_ACCOUNT, self.namespace, managed, inline
                )
            except Exception as e:
                self.log_error(f"Failed to provision IAM role for {self.SERVICE_ACCOUNT}: {e}")
                raise
            await env.applier.apply(
                [service_account_manifest(self.SERVICE_ACCOUNT, self.namespace, role_arn)]
            )
            self.log_info(f"Provider role: {role_arn}")
            return {
                "arn": role_arn,
                "service_account": self.SERVICE_ACCOUNT,
                "namespace": self.namespace,
            }

        units.append(
            DeploymentUnit(
                id=self.role_unit,
                action=create_service_account,
                depends_on=tuple(sa_deps),
                description=f"Create service account {self.SERVICE_ACCOUNT} with IAM role",
            )
        )

        async def install_chart(ctx: UnitContext) -> dict[str, Any]:
            spec = ChartSpec(
                release=self.RELEASE_NAME,
                chart=self.HELM_CHART,
                namespace=self.namespace,
                repository=self.HELM_REPO_URL,
                version=self.chart_version,
                values=self.values,
            )
            try:
                return await env.installer.install(spec)
            except Exception as e:
                self.log_error(f"Failed to install {spec.chart_ref} {spec.version}: {e}")
                raise

        units.append(
            DeploymentUnit(
                id=self.unit_id("chart"),
                action=install_chart,
                depends_on=(self.role_unit,),
                readiness=self.readiness(env, CONTROLLER_CONFIG_CRD, "Established"),
                description=f"Install {self.HELM_CHART} {self.chart_version}",
            )
        )

        units.append(
            self.manifest_unit(
                env,
                "controller-config",
                lambda ctx: [
                    controller_config_manifest(
                        self.CONTROLLER_CONFIG, ctx.require(self.role_unit, "arn")
                    )
                ],
                depends_on=(self.unit_id("chart"),),
                description=f"Apply ControllerConfig {self.CONTROLLER_CONFIG}",
            )
        )

        provider_units: list[str] = []
        for provider in self.providers:
            mapping = PROVIDER_MAPPINGS[provider]
            step = f"provider-{mapping.provider}"
            units.append(
                self.manifest_unit(
                    env,
                    step,
                    lambda ctx, mapping=mapping: [provider_manifest(mapping, self.CONTROLLER_CONFIG)],
                    depends_on=(self.unit_id("chart"), self.unit_id("controller-config")),
                    overwrite=True,
                    readiness=self.readiness(env, provider_ref(mapping), "Healthy"),
                    description=f"Install Crossplane provider {mapping.provider_name}",
                )
            )
            provider_units.append(self.unit_id(step))

        units.append(
            DeploymentUnit(
                id=self.unit_id("provider-config-crd"),
                action=lambda ctx: None,
                depends_on=tuple(provider_units),
                readiness=self.readiness(env, PROVIDER_CONFIG_CRD, "Established"),
                description="Wait for the ProviderConfig CRD",
            )
        )

        units.append(
            self.manifest_unit(
                env,
                "provider-config",
                lambda ctx: [provider_config_manifest(self.PROVIDER_CONFIG)],
                depends_on=(self.unit_id("provider-config-crd"),),
                description=f"Apply ProviderConfig {self.PROVIDER_CONFIG}",
            )
        )

        return units
