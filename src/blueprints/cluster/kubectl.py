"""Kubectl-backed manifest applier and status reader."""

import json
import logging
import os
import tempfile
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Protocol

import yaml

from blueprints.cluster.status_path import StatusPathNotFound, extract
from blueprints.core.readiness import ObjectRef
from blueprints.utils.async_subprocess import CommandResult, run_command
from blueprints.utils.errors import (
    CommandTimeoutError,
    InvalidManifestError,
    KubectlCommandError,
    StatusNotFoundError,
    StatusReadError,
)

logger = logging.getLogger(__name__)

Manifest = Mapping[str, Any]

FIELD_MANAGER = "cluster-blueprints"


class ManifestApplier(Protocol):
    """Creates or updates declarative objects in the cluster."""

    async def apply(self, manifests: Sequence[Manifest], overwrite: bool = False) -> list[str]:
        """Apply objects; re-applying the same objects is a no-op."""
        ...


def validate_manifest(manifest: Manifest) -> None:
    """Check the fields every Kubernetes object needs.

    Raises:
        InvalidManifestError: If apiVersion, kind or metadata.name is missing
    """
    if not isinstance(manifest, Mapping):
        raise InvalidManifestError(f"Manifest must be a mapping, got {type(manifest).__name__}")
    for field in ("apiVersion", "kind"):
        if not manifest.get(field):
            raise InvalidManifestError(f"Manifest is missing '{field}'")
    metadata = manifest.get("metadata") or {}
    if not isinstance(metadata, Mapping) or not metadata.get("name"):
        raise InvalidManifestError(f"{manifest['kind']} manifest is missing metadata.name")


class KubectlClient:
    """Runs kubectl against a single cluster."""

    def __init__(self, kubeconfig_path: Path, timeout: float = 60):
        """Initialize kubectl client.

        Args:
            kubeconfig_path: Path to the cluster's kubeconfig file
            timeout: Timeout in seconds for each kubectl call
        """
        self.kubeconfig_path = kubeconfig_path
        self.timeout = timeout

    async def _run_kubectl(self, args: list[str]) -> CommandResult:
        """Run kubectl with this client's kubeconfig.

        Raises:
            KubectlCommandError: If kubectl is missing or times out
        """
        cmd = ["kubectl", "--kubeconfig", str(self.kubeconfig_path)] + args
        try:
            return await run_command(cmd, env=os.environ.copy(), timeout=self.timeout)
        except CommandTimeoutError as e:
            raise KubectlCommandError(
                f"kubectl command timed out after {self.timeout} seconds"
            ) from e
        except FileNotFoundError as e:
            raise KubectlCommandError(
                "kubectl CLI not found. Please install kubectl: "
                "https://kubernetes.io/docs/tasks/tools/install-kubectl/"
            ) from e

    async def apply(self, manifests: Sequence[Manifest], overwrite: bool = False) -> list[str]:
        """Create or update objects.

        Args:
            manifests: Kubernetes objects to apply
            overwrite: Take ownership of fields managed by other appliers
                (server-side apply with --force-conflicts)

        Returns:
            Lines reported by kubectl, one per applied object

        Raises:
            InvalidManifestError: If a manifest is malformed
            KubectlCommandError: If kubectl fails
        """
        if not manifests:
            return []
        for manifest in manifests:
            validate_manifest(manifest)

        content = yaml.safe_dump_all([dict(m) for m in manifests], sort_keys=False)

        temp_file = None
        try:
            with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
                f.write(content)
                temp_file = f.name

            args = ["apply", "-f", temp_file]
            if overwrite:
                args.extend(["--server-side", "--force-conflicts", f"--field-manager={FIELD_MANAGER}"])
            result = await self._run_kubectl(args)
        finally:
            if temp_file:
                Path(temp_file).unlink(missing_ok=True)

        if not result.ok:
            raise KubectlCommandError(f"Failed to apply manifest: {result.output}")

        applied = [line.strip() for line in result.stdout.splitlines() if line.strip()]
        logger.info(f"Applied {len(applied)} object(s): {', '.join(applied)}")
        return applied

    async def get(self, resource: str, name: str, namespace: str | None = None) -> dict | None:
        """Fetch one object as JSON.

        Returns:
            The object, or None when kubectl reports NotFound

        Raises:
            KubectlCommandError: If kubectl fails for another reason
        """
        args = ["get", resource, name, "-o", "json"]
        if namespace:
            args.extend(["-n", namespace])

        result = await self._run_kubectl(args)
        if not result.ok:
            if "NotFound" in result.stderr or "the server doesn't have a resource type" in result.stderr:
                return None
            raise KubectlCommandError(f"Failed to get {resource}/{name}: {result.output}")

        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise KubectlCommandError(f"Failed to parse kubectl output as JSON: {e}") from e


class KubectlStatusReader:
    """StatusReader that reads object status through kubectl."""

    def __init__(self, client: KubectlClient):
        self.client = client

    async def read_status(self, target: ObjectRef, status_path: str) -> Any:
        try:
            document = await self.client.get(target.resource, target.name, target.namespace)
        except KubectlCommandError as e:
            raise StatusReadError(str(e)) from e

        if document is None:
            raise StatusNotFoundError(f"{target} does not exist")
        try:
            return extract(document, status_path)
        except StatusPathNotFound as e:
            raise StatusNotFoundError(str(e)) from e
