"""Cluster add-ons built on the orchestration core.

Each add-on contributes deployment units; the AddonManager combines the
units of the requested add-ons into a single orchestrated run.
"""

from blueprints.addons.aws_provider import CrossplaneAwsProviderAddon
from blueprints.addons.base import AddonEnvironment, BaseAddon
from blueprints.addons.crossplane import UpboundCrossplaneAddon
from blueprints.addons.manager import AddonManager

__all__ = [
    "AddonEnvironment",
    "AddonManager",
    "BaseAddon",
    "CrossplaneAwsProviderAddon",
    "UpboundCrossplaneAddon",
]
