"""Helm-backed chart installer."""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import yaml

from blueprints.utils.async_subprocess import CommandResult, run_command
from blueprints.utils.errors import CommandTimeoutError, HelmCommandError

logger = logging.getLogger(__name__)


@dataclass
class ChartSpec:
    """A Helm release to install or upgrade."""

    release: str
    chart: str
    namespace: str
    repository: str | None = None
    version: str | None = None
    values: dict[str, Any] = field(default_factory=dict)
    create_namespace: bool = True
    wait: bool = False

    @property
    def repo_name(self) -> str:
        return self.release

    @property
    def chart_ref(self) -> str:
        """Chart reference as passed to helm, prefixed with the repo alias."""
        if self.repository and "/" not in self.chart:
            return f"{self.repo_name}/{self.chart}"
        return self.chart


class ChartInstaller(Protocol):
    """Installs or upgrades a packaged chart."""

    async def install(self, spec: ChartSpec) -> dict[str, Any]:
        """Install the chart and return details of the release."""
        ...


class HelmClient:
    """Installs charts with the helm CLI."""

    def __init__(self, kubeconfig_path: Path, timeout: float = 300):
        """Initialize helm client.

        Args:
            kubeconfig_path: Path to the cluster's kubeconfig file
            timeout: Timeout in seconds for install/upgrade calls
        """
        self.kubeconfig_path = kubeconfig_path
        self.timeout = timeout

    async def _run_helm(
        self, args: list[str], check: bool = True, timeout: float = 120
    ) -> CommandResult:
        """Run helm command with kubeconfig.

        Raises:
            HelmCommandError: If the command fails and check=True, times out,
                or helm is not installed
        """
        cmd = ["helm"] + args
        env = os.environ.copy()
        env["KUBECONFIG"] = str(self.kubeconfig_path)

        try:
            result = await run_command(cmd, env=env, timeout=timeout)
        except CommandTimeoutError as e:
            raise HelmCommandError(f"Helm command timed out after {timeout} seconds") from e
        except FileNotFoundError as e:
            raise HelmCommandError(
                "helm CLI not found. Please install helm: https://helm.sh/docs/intro/install/"
            ) from e

        if check and not result.ok:
            raise HelmCommandError(f"Helm command failed: {result.output}")
        return result

    async def add_repo(self, name: str, url: str) -> None:
        """Add or update a Helm repository."""
        logger.info(f"Adding Helm repository: {name}")
        await self._run_helm(["repo", "add", name, url, "--force-update"])
        await self._run_helm(["repo", "update", name], check=False)

    async def install(self, spec: ChartSpec) -> dict[str, Any]:
        """Install or upgrade a chart.

        Returns:
            Dict with release, namespace, chart and version

        Raises:
            HelmCommandError: If helm fails
        """
        if spec.repository:
            await self.add_repo(spec.repo_name, spec.repository)

        args = [
            "upgrade",
            "--install",
            spec.release,
            spec.chart_ref,
            "--namespace",
            spec.namespace,
        ]
        if spec.create_namespace:
            args.append("--create-namespace")
        if spec.version:
            args.extend(["--version", spec.version])
        if spec.wait:
            args.extend(["--wait", "--timeout", f"{int(self.timeout)}s"])

        values_file = None
        try:
            if spec.values:
                with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
                    yaml.safe_dump(spec.values, f, sort_keys=False)
                    values_file = f.name
                args.extend(["--values", values_file])

            logger.info(f"Installing Helm chart: {spec.chart_ref} ({spec.version or 'latest'})")
            await self._run_helm(args, timeout=self.timeout)
        finally:
            if values_file:
                Path(values_file).unlink(missing_ok=True)

        return {
            "release": spec.release,
            "namespace": spec.namespace,
            "chart": spec.chart,
            "version": spec.version,
        }
