"""Configuration management for cluster blueprints.

This module handles configuration loading from environment variables and .env files.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from blueprints.utils.errors import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from e


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'") from e


@dataclass
class BlueprintsConfig:
    """Cluster blueprints configuration.

    Field values are defaults; environment variables override them.
    """

    data_dir: str = "./data"
    kubeconfig: str | None = None
    log_level: str = "info"

    # Readiness gates
    poll_interval: float = 5.0
    readiness_timeout: float = 300.0
    max_poll_errors: int = 3

    # Orchestration
    parallel: bool = False

    # External CLIs
    helm_timeout: float = 300.0
    kubectl_timeout: float = 60.0

    # IAM
    aws_account_id: str | None = None

    def __post_init__(self):
        """Load configuration from environment variables after initialization."""
        load_dotenv()

        self.data_dir = os.getenv("BLUEPRINTS_DATA_DIR", self.data_dir)
        self.kubeconfig = os.getenv("BLUEPRINTS_KUBECONFIG", self.kubeconfig)
        self.log_level = os.getenv("LOG_LEVEL", self.log_level).lower()

        self.poll_interval = _env_float("BLUEPRINTS_POLL_INTERVAL", self.poll_interval)
        self.readiness_timeout = _env_float("BLUEPRINTS_READINESS_TIMEOUT", self.readiness_timeout)
        self.max_poll_errors = _env_int("BLUEPRINTS_MAX_POLL_ERRORS", self.max_poll_errors)

        parallel = os.getenv("BLUEPRINTS_PARALLEL")
        if parallel is not None:
            self.parallel = parallel.strip().lower() in _TRUE_VALUES

        self.helm_timeout = _env_float("BLUEPRINTS_HELM_TIMEOUT", self.helm_timeout)
        self.kubectl_timeout = _env_float("BLUEPRINTS_KUBECTL_TIMEOUT", self.kubectl_timeout)

        self.aws_account_id = os.getenv("AWS_ACCOUNT_ID", self.aws_account_id)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If a value is out of range
        """
        for name in ("poll_interval", "readiness_timeout", "helm_timeout", "kubectl_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        if self.poll_interval > self.readiness_timeout:
            raise ConfigurationError("poll_interval cannot be longer than readiness_timeout")
        if self.max_poll_errors < 0:
            raise ConfigurationError("max_poll_errors cannot be negative")
        if self.log_level not in ("debug", "info", "warning", "error", "critical"):
            raise ConfigurationError(
                f"Invalid log level: {self.log_level}. "
                "Must be one of: debug, info, warning, error, critical"
            )

    def get_cluster_data_dir(self, cluster_name: str) -> Path:
        """Get data directory path for a specific cluster."""
        return Path(self.data_dir) / cluster_name

    def get_kubeconfig_path(self, cluster_name: str) -> Path:
        """Get kubeconfig file path for a specific cluster.

        An explicit kubeconfig setting wins over the per-cluster default.
        """
        if self.kubeconfig:
            return Path(self.kubeconfig)
        return self.get_cluster_data_dir(cluster_name) / "kubeconfig"
