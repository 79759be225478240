"""Crossplane AWS provider lookup table.

Maps each supported AWS service to its Upbound provider package version
and the IAM policies its controller needs.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CrossplaneProvider(str, Enum):
    """AWS services supported by the Crossplane add-on."""

    DYNAMODB = "dynamodb"
    EKS = "eks"
    S3 = "s3"


@dataclass(frozen=True)
class ProviderMapping:
    """Package and IAM details of one provider."""

    provider: str
    version: str
    managed_policy_name: str | None = None
    inline_policy_statements: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    @property
    def package(self) -> str:
        return f"xpkg.upbound.io/upbound/provider-aws-{self.provider}:{self.version}"

    @property
    def provider_name(self) -> str:
        return f"provider-aws-{self.provider}"


PROVIDER_MAPPINGS: dict[CrossplaneProvider, ProviderMapping] = {
    CrossplaneProvider.S3: ProviderMapping(
        provider="s3",
        version="v1.1.0",
        managed_policy_name="AmazonS3FullAccess",
    ),
    CrossplaneProvider.DYNAMODB: ProviderMapping(
        provider="dynamodb",
        version="v1.1.0",
        managed_policy_name="AmazonDynamoDBFullAccess",
    ),
    CrossplaneProvider.EKS: ProviderMapping(
        provider="eks",
        version="v1.1.0",
        managed_policy_name="AdministratorAccess",
        inline_policy_statements=(
            {
                "Effect": "Allow",
                "Action": ["eks:*", "iam:GetRole", "iam:PassRole"],
                "Resource": "*",
            },
        ),
    ),
}


def parse_providers(names: list[str]) -> list[CrossplaneProvider]:
    """Convert provider names to enum members, keeping order and dropping repeats.

    Raises:
        ValueError: If a name is not a supported provider
    """
    providers: list[CrossplaneProvider] = []
    for name in names:
        try:
            provider = CrossplaneProvider(str(name).lower().strip())
        except ValueError:
            available = ", ".join(p.value for p in CrossplaneProvider)
            raise ValueError(f"Unknown Crossplane provider: '{name}'. Available: {available}") from None
        if provider not in providers:
            providers.append(provider)
    return providers
