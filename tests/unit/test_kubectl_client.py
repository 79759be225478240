"""Unit tests for the kubectl client and status reader."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import yaml

from blueprints.cluster.kubectl import (
    FIELD_MANAGER,
    KubectlClient,
    KubectlStatusReader,
    validate_manifest,
)
from blueprints.cluster.manifests import namespace_manifest, service_account_manifest
from blueprints.core.readiness import ObjectRef, condition_path
from blueprints.utils.async_subprocess import CommandResult
from blueprints.utils.errors import (
    CommandTimeoutError,
    InvalidManifestError,
    KubectlCommandError,
    StatusNotFoundError,
    StatusReadError,
)

KUBECONFIG = Path("/tmp/test-cluster/kubeconfig")


def result(returncode=0, stdout="", stderr=""):
    return CommandResult(args=["kubectl"], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def client():
    return KubectlClient(KUBECONFIG, timeout=30)


class TestValidateManifest:
    """Tests for manifest validation."""

    def test_valid(self):
        validate_manifest(namespace_manifest("upbound-system"))

    @pytest.mark.parametrize(
        "manifest,message",
        [
            ({"kind": "Namespace", "metadata": {"name": "a"}}, "apiVersion"),
            ({"apiVersion": "v1", "metadata": {"name": "a"}}, "kind"),
            ({"apiVersion": "v1", "kind": "Namespace", "metadata": {}}, "metadata.name"),
            (["not", "a", "mapping"], "mapping"),
        ],
    )
    def test_invalid(self, manifest, message):
        with pytest.raises(InvalidManifestError, match=message):
            validate_manifest(manifest)


class TestKubectlClient:
    """Tests for KubectlClient."""

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command")
    async def test_apply(self, mock_run, client):
        """Test manifests are written to a multi-document file and applied."""
        written = {}

        async def capture(cmd, env=None, timeout=None):
            path = Path(cmd[cmd.index("-f") + 1])
            written["docs"] = list(yaml.safe_load_all(path.read_text()))
            written["path"] = path
            return result(stdout="namespace/upbound-system created\nserviceaccount/provider-aws created\n")

        mock_run.side_effect = capture
        manifests = [
            namespace_manifest("upbound-system"),
            service_account_manifest("provider-aws", "upbound-system", "arn:role"),
        ]

        applied = await client.apply(manifests)

        assert applied == ["namespace/upbound-system created", "serviceaccount/provider-aws created"]
        assert written["docs"] == manifests
        assert not written["path"].exists()

        cmd = mock_run.call_args[0][0]
        assert cmd[:3] == ["kubectl", "--kubeconfig", str(KUBECONFIG)]
        assert cmd[3:5] == ["apply", "-f"]
        assert "--server-side" not in cmd
        assert mock_run.call_args.kwargs["timeout"] == 30

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_apply_overwrite(self, mock_run, client):
        mock_run.return_value = result(stdout="provider.pkg.crossplane.io/provider-aws-eks serverside-applied")

        await client.apply([namespace_manifest("ns")], overwrite=True)

        cmd = mock_run.call_args[0][0]
        assert "--server-side" in cmd
        assert "--force-conflicts" in cmd
        assert f"--field-manager={FIELD_MANAGER}" in cmd

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_apply_nothing(self, mock_run, client):
        assert await client.apply([]) == []
        mock_run.assert_not_called()

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_apply_invalid_manifest(self, mock_run, client):
        with pytest.raises(InvalidManifestError):
            await client.apply([{"apiVersion": "v1", "kind": "Namespace"}])
        mock_run.assert_not_called()

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_apply_failure(self, mock_run, client):
        mock_run.return_value = result(1, stderr="error: unable to recognize")

        with pytest.raises(KubectlCommandError, match="Failed to apply manifest: error: unable to recognize"):
            await client.apply([namespace_manifest("ns")])

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_kubectl_not_installed(self, mock_run, client):
        mock_run.side_effect = FileNotFoundError()

        with pytest.raises(KubectlCommandError, match="kubectl CLI not found"):
            await client.get("namespaces", "default")

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_timeout(self, mock_run, client):
        mock_run.side_effect = CommandTimeoutError("kubectl timed out")

        with pytest.raises(KubectlCommandError, match="timed out after 30 seconds"):
            await client.get("namespaces", "default")

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_get(self, mock_run, client):
        mock_run.return_value = result(stdout=json.dumps({"kind": "ServiceAccount"}))

        document = await client.get("serviceaccounts", "provider-aws", "upbound-system")

        assert document == {"kind": "ServiceAccount"}
        cmd = mock_run.call_args[0][0]
        assert cmd[3:] == ["get", "serviceaccounts", "provider-aws", "-o", "json", "-n", "upbound-system"]

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_get_not_found(self, mock_run, client):
        mock_run.return_value = result(
            1, stderr='Error from server (NotFound): customresourcedefinitions "x" not found'
        )

        assert await client.get("customresourcedefinitions", "x") is None

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_get_failure(self, mock_run, client):
        mock_run.return_value = result(1, stderr="Unable to connect to the server")

        with pytest.raises(KubectlCommandError, match="Unable to connect"):
            await client.get("namespaces", "default")

    @pytest.mark.asyncio
    @patch("blueprints.cluster.kubectl.run_command", new_callable=AsyncMock)
    async def test_get_invalid_json(self, mock_run, client):
        mock_run.return_value = result(stdout="not json")

        with pytest.raises(KubectlCommandError, match="parse kubectl output"):
            await client.get("namespaces", "default")


class TestKubectlStatusReader:
    """Tests for KubectlStatusReader."""

    TARGET = ObjectRef("customresourcedefinitions", "providerconfigs.aws.upbound.io")

    @pytest.mark.asyncio
    async def test_read_status(self):
        client = KubectlClient(KUBECONFIG)
        client.get = AsyncMock(
            return_value={"status": {"conditions": [{"type": "Established", "status": "True"}]}}
        )
        reader = KubectlStatusReader(client)

        value = await reader.read_status(self.TARGET, condition_path("Established"))

        assert value == "True"
        client.get.assert_awaited_once_with(
            "customresourcedefinitions", "providerconfigs.aws.upbound.io", None
        )

    @pytest.mark.asyncio
    async def test_missing_object(self):
        client = KubectlClient(KUBECONFIG)
        client.get = AsyncMock(return_value=None)

        with pytest.raises(StatusNotFoundError, match="does not exist"):
            await KubectlStatusReader(client).read_status(self.TARGET, condition_path("Established"))

    @pytest.mark.asyncio
    async def test_missing_condition(self):
        client = KubectlClient(KUBECONFIG)
        client.get = AsyncMock(return_value={"status": {}})

        with pytest.raises(StatusNotFoundError):
            await KubectlStatusReader(client).read_status(self.TARGET, condition_path("Established"))

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        client = KubectlClient(KUBECONFIG)
        client.get = AsyncMock(side_effect=KubectlCommandError("connection refused"))

        with pytest.raises(StatusReadError, match="connection refused"):
            await KubectlStatusReader(client).read_status(self.TARGET, condition_path("Established"))
