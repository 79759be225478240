"""IAM role provisioning for service accounts."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from blueprints.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

PolicyStatement = Mapping[str, Any]


class RoleProvisioner(Protocol):
    """Creates or looks up the IAM role bound to a Kubernetes service account."""

    async def ensure_service_account_role(
        self,
        service_account: str,
        namespace: str,
        managed_policies: Sequence[str],
        inline_statements: Sequence[PolicyStatement] = (),
    ) -> str:
        """Return the ARN of a role carrying the requested policies."""
        ...


@dataclass
class RoleRequest:
    """Policies requested for one service account role."""

    role_arn: str
    managed_policies: list[str]
    inline_statements: list[dict[str, Any]] = field(default_factory=list)


class PreProvisionedRoleProvisioner:
    """Resolves roles that were created outside this tool.

    Role ARNs follow ``arn:aws:iam::<account>:role/<prefix><namespace>-<service_account>``
    unless an explicit ARN is configured for the service account. The
    requested policies are recorded so that callers can report what the
    role is expected to carry.
    """

    def __init__(
        self,
        account_id: str | None,
        role_prefix: str = "",
        overrides: Mapping[str, str] | None = None,
    ):
        """Initialize provisioner.

        Args:
            account_id: AWS account id that owns the roles
            role_prefix: Prefix of role names, e.g. the cluster name plus '-'
            overrides: Explicit role ARNs keyed by '<namespace>/<service_account>'
        """
        self.account_id = account_id
        self.role_prefix = role_prefix
        self.overrides = dict(overrides or {})
        self.requests: dict[str, RoleRequest] = {}

    def role_arn(self, service_account: str, namespace: str) -> str:
        """Return the ARN of the role for a service account.

        Raises:
            ConfigurationError: If no override exists and no account id is set
        """
        key = f"{namespace}/{service_account}"
        if key in self.overrides:
            return self.overrides[key]
        if not self.account_id:
            raise ConfigurationError(
                f"No role configured for service account '{key}'. "
                "Set AWS_ACCOUNT_ID or provide an explicit role ARN."
            )
        return f"arn:aws:iam::{self.account_id}:role/{self.role_prefix}{namespace}-{service_account}"

    async def ensure_service_account_role(
        self,
        service_account: str,
        namespace: str,
        managed_policies: Sequence[str],
        inline_statements: Sequence[PolicyStatement] = (),
    ) -> str:
        arn = self.role_arn(service_account, namespace)
        self.requests[f"{namespace}/{service_account}"] = RoleRequest(
            role_arn=arn,
            managed_policies=list(managed_policies),
            inline_statements=[dict(s) for s in inline_statements],
        )
        logger.info(
            f"Using role {arn} for service account '{namespace}/{service_account}' "
            f"(policies: {', '.join(managed_policies) or 'none'})"
        )
        return arn
