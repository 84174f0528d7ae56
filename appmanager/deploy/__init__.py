"""Release tagging and deployment workflow helpers."""
from appmanager.deploy.runner import DeployError, DeployRunner
from appmanager.deploy.versioning import (
    DEFAULT_VERSION,
    VersionError,
    increment_patch,
    k8s_tag,
    latest_version,
    normalize_version,
    workflow_tag,
)

__all__ = [
    'DEFAULT_VERSION',
    'DeployError',
    'DeployRunner',
    'VersionError',
    'increment_patch',
    'k8s_tag',
    'latest_version',
    'normalize_version',
    'workflow_tag',
]
