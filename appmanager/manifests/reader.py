"""Recover an app's settings from its existing manifest."""
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import ValidationError

from appmanager.core.logger import get_logger
from appmanager.models.app import AppSpec, Environment, ResourceSpec

logger = get_logger(__name__)


class ManifestError(Exception):
    """Raised when an existing manifest cannot be parsed."""


def _documents(text: str) -> List[Dict[str, Any]]:
    try:
        return [doc for doc in yaml.safe_load_all(text) if isinstance(doc, dict)]
    except yaml.YAMLError as exc:
        raise ManifestError(f"Failed to parse manifest YAML: {exc}") from exc


def _first_container(deployment: Dict[str, Any]) -> Dict[str, Any]:
    spec = deployment.get('spec') or {}
    pod_spec = (spec.get('template') or {}).get('spec') or {}
    containers = pod_spec.get('containers') or []
    if containers and isinstance(containers[0], dict):
        return containers[0]
    return {}


def _quantity(section: Dict[str, Any], key: str, default: str) -> str:
    value = (section or {}).get(key)
    return str(value) if value not in (None, "") else default


def parse_manifest(app_name: str, text: str) -> AppSpec:
    """Build an ``AppSpec`` from manifest text.

    Fields that are missing from the Deployment keep their defaults.

    Raises:
        ManifestError: On invalid YAML or a manifest without a Deployment
    """
    docs = _documents(text)
    deployment = next((d for d in docs if d.get('kind') == 'Deployment'), None)
    if deployment is None:
        raise ManifestError(f"No Deployment found in manifest for {app_name}")

    values: Dict[str, Any] = {"name": app_name}

    namespace = (deployment.get('metadata') or {}).get('namespace')
    env = Environment.from_input(str(namespace)) if namespace else None
    if env is not None:
        values["environment"] = env

    replicas = (deployment.get('spec') or {}).get('replicas')
    if isinstance(replicas, int) and replicas >= 1:
        values["replicas"] = replicas

    container = _first_container(deployment)
    ports = container.get('ports') or []
    if ports and isinstance(ports[0], dict) and isinstance(ports[0].get('containerPort'), int):
        values["container_port"] = ports[0]['containerPort']

    resources = container.get('resources') or {}
    requests = resources.get('requests') or {}
    limits = resources.get('limits') or {}
    defaults = ResourceSpec()
    values["resources"] = ResourceSpec(
        memory_request=_quantity(requests, 'memory', defaults.memory_request),
        memory_limit=_quantity(limits, 'memory', defaults.memory_limit),
        cpu_request=_quantity(requests, 'cpu', defaults.cpu_request),
        cpu_limit=_quantity(limits, 'cpu', defaults.cpu_limit),
    )

    try:
        return AppSpec(**values)
    except ValidationError as exc:
        raise ManifestError(f"Manifest for {app_name} has invalid values: {exc}") from exc


def read_manifest(app_name: str, path: Path) -> AppSpec:
    """Read and parse the manifest at ``path``."""
    logger.debug(f"Reading manifest {path}")
    try:
        text = Path(path).read_text()
    except OSError as exc:
        raise ManifestError(f"Cannot read manifest {path}: {exc}") from exc
    return parse_manifest(app_name, text)
