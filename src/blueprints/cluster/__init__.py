"""Cluster-facing collaborators: kubectl, helm and IAM roles."""

from blueprints.cluster.helm import ChartInstaller, ChartSpec, HelmClient
from blueprints.cluster.iam import PreProvisionedRoleProvisioner, RoleProvisioner
from blueprints.cluster.kubectl import KubectlClient, KubectlStatusReader, ManifestApplier

__all__ = [
    "ChartInstaller",
    "ChartSpec",
    "HelmClient",
    "KubectlClient",
    "KubectlStatusReader",
    "ManifestApplier",
    "PreProvisionedRoleProvisioner",
    "RoleProvisioner",
]
