"""Release version discovery from k8s repository tags.

Tags on the manifest repository look like ``v1.4.2-myapp-prod``; the workflow
itself is dispatched with ``v1.4.2-prod``.
"""
import re
from typing import Iterable, Optional, Tuple

DEFAULT_VERSION = "1.0.0"

VERSION_PREFIX = re.compile(r'^(\d+)\.(\d+)\.(\d+)')


class VersionError(ValueError):
    """Raised for version strings that do not start with X.Y.Z."""


def parse_version(version: str) -> Tuple[int, int, int]:
    match = VERSION_PREFIX.match(version)
    if not match:
        raise VersionError(
            f"Invalid version format '{version}'. Expected format: X.Y.Z (e.g., 1.0.0)"
        )
    return int(match.group(1)), int(match.group(2)), int(match.group(3))


def latest_version(tag_refs: Iterable[str], app_name: str, suffix: str) -> Optional[str]:
    """Highest ``X.Y.Z`` among ``refs/tags/vX.Y.Z-{app}-{suffix}`` refs."""
    pattern = re.compile(
        rf'^refs/tags/v(\d+)\.(\d+)\.(\d+)-{re.escape(app_name)}-{re.escape(suffix)}$'
    )
    versions = []
    for ref in tag_refs:
        match = pattern.match(ref.strip())
        if match:
            versions.append(tuple(int(part) for part in match.groups()))
    if not versions:
        return None
    return ".".join(str(part) for part in max(versions))


def increment_patch(version: str) -> str:
    major, minor, patch = parse_version(version)
    return f"{major}.{minor}.{patch + 1}"


def normalize_version(value: str) -> str:
    """Drop a leading ``v`` and check the ``X.Y.Z`` prefix."""
    version = value.strip()
    if version.startswith("v"):
        version = version[1:]
    parse_version(version)
    return version


def workflow_tag(version: str, suffix: str) -> str:
    return f"v{version}-{suffix}"


def k8s_tag(version: str, app_name: str, suffix: str) -> str:
    return f"v{version}-{app_name}-{suffix}"
