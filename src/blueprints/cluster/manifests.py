"""Manifest builders and YAML template loading."""

import re
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

_TOKEN = re.compile(r"\{\{\s*([A-Za-z0-9_\-]+)\s*\}\}")

# Lock for thread-safe template caching
_template_lock = threading.Lock()
_template_cache: dict[Path, str] = {}


def namespace_manifest(name: str, labels: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Build a Namespace object."""
    metadata: dict[str, Any] = {"name": name}
    if labels:
        metadata["labels"] = dict(labels)
    return {"apiVersion": "v1", "kind": "Namespace", "metadata": metadata}


def service_account_manifest(name: str, namespace: str, role_arn: str | None = None) -> dict[str, Any]:
    """Build a ServiceAccount, annotated for IAM roles for service accounts when role_arn is set."""
    metadata: dict[str, Any] = {"name": name, "namespace": namespace}
    if role_arn:
        metadata["annotations"] = {"eks.amazonaws.com/role-arn": role_arn}
    return {"apiVersion": "v1", "kind": "ServiceAccount", "metadata": metadata}


def _read_template(path: Path) -> str:
    """Read a template file once and cache its content.

    Raises:
        FileNotFoundError: If the template does not exist
    """
    cached = _template_cache.get(path)
    if cached is not None:
        return cached
    with _template_lock:
        # Double-check after acquiring lock
        if path not in _template_cache:
            if not path.exists():
                raise FileNotFoundError(f"Template not found: {path}")
            _template_cache[path] = path.read_text()
        return _template_cache[path]


def render_template(path: Path, tokens: Mapping[str, Any]) -> dict[str, Any]:
    """Load a YAML template and substitute ``{{token}}`` placeholders.

    Args:
        path: Template file
        tokens: Replacement values by token name

    Returns:
        Parsed manifest

    Raises:
        FileNotFoundError: If the template does not exist
        ValueError: If a token has no value or the result is not a YAML mapping
    """
    content = _read_template(path)

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in tokens:
            raise ValueError(f"No value for template token '{name}' in {path.name}")
        return str(tokens[name])

    rendered = _TOKEN.sub(_substitute, content)
    try:
        manifest = yaml.safe_load(rendered)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in template {path}: {e}") from e
    if not isinstance(manifest, dict):
        raise ValueError(f"Template {path} must contain a single YAML mapping")
    return manifest
