"""app-manager runtime configuration and settings."""
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# Config file search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./app-manager.yml",
    str(Path.home() / ".config" / "app-manager" / "app-manager.yml"),
]

ENV_PREFIX = "APP_MANAGER_"


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded."""


@dataclass
class AppManagerConfig:
    """Runtime configuration for app-manager operations.

    Attributes:
        github_org: Organisation owning the k8s and source repositories
        k8s_repo_name: Manifest repository for production apps
        staging_repo_name: Manifest repository used for staging deployments
        apps_dir: Directory inside the manifest repository holding one folder per app
        ingress_file: Shared tunnel ingress file, relative to the manifest repository
        ecr_registry: Container registry prefix used for app images
        work_dir: Directory the manifest repository is cloned into
        deploy_workflow: Workflow file triggered by the deploy script
        deploy_repo_name: Repository that ships the deploy script
        deploy_script: Deploy script path inside the deploy repository
        source_repo_suffix: Suffix appended to the app name for its source repository
    """

    github_org: str = "winit-testabc"
    k8s_repo_name: str = "k8s-production"
    staging_repo_name: str = "k8s-staging"
    apps_dir: str = "apps"
    ingress_file: str = "apps/tunnel-ingress/tunnel-ingress.yaml"
    ecr_registry: str = "418295680544.dkr.ecr.us-east-1.amazonaws.com/winitxyz"
    work_dir: str = "."
    deploy_workflow: str = "deploy-from-tag.yml"
    deploy_repo_name: str = "WinIT-DO"
    deploy_script: str = "scripts/deploy-app.sh"
    source_repo_suffix: str = "-main"
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def k8s_repo(self) -> str:
        """Full name of the production manifest repository."""
        return f"{self.github_org}/{self.k8s_repo_name}"

    @property
    def k8s_checkout(self) -> Path:
        """Local checkout directory of the manifest repository."""
        return Path(self.work_dir) / self.k8s_repo_name

    def k8s_repo_for(self, environment: str) -> str:
        """Manifest repository that tracks deployments for an environment."""
        if environment == "staging":
            return f"{self.github_org}/{self.staging_repo_name}"
        return self.k8s_repo

    def source_repo(self, app_name: str) -> str:
        """Full name of an app's source repository."""
        return f"{self.github_org}/{app_name}{self.source_repo_suffix}"

    @classmethod
    def field_names(cls) -> List[str]:
        return [f.name for f in fields(cls) if f.name != "extra"]

    @classmethod
    def from_env(cls, base: Optional["AppManagerConfig"] = None) -> "AppManagerConfig":
        """Create config from environment variables.

        Every field can be overridden with ``APP_MANAGER_<FIELD>``, for example
        ``APP_MANAGER_GITHUB_ORG`` or ``APP_MANAGER_ECR_REGISTRY``.

        Args:
            base: Config to start from (defaults to built-in values)

        Returns:
            AppManagerConfig instance with values from environment or base
        """
        base = base or cls()
        overrides = {}
        for name in cls.field_names():
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if value:
                overrides[name] = value
        return replace(base, **overrides)

    @classmethod
    def from_file(cls, path: Path) -> "AppManagerConfig":
        """Load config from a YAML mapping.

        Unknown keys are kept in ``extra`` so newer config files still load.

        Raises:
            ConfigError: On unreadable files or invalid YAML
        """
        try:
            raw = yaml.safe_load(Path(path).read_text()) or {}
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse config YAML {path}: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        known = set(cls.field_names())
        values = {k.replace("-", "_"): v for k, v in raw.items()}
        kwargs = {k: str(v) for k, v in values.items() if k in known and v is not None}
        extra = {k: v for k, v in values.items() if k not in known}
        return cls(extra=extra, **kwargs)


def find_config(config_path: Optional[str] = None) -> Optional[Path]:
    """Locate the active config file, if any."""
    if config_path:
        return Path(config_path)

    if env_config := os.environ.get("APP_MANAGER_CONFIG"):
        return Path(env_config)

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return Path(path)

    return None


def load_config(config_path: Optional[str] = None) -> AppManagerConfig:
    """Build config from defaults, config file and environment (in that order)."""
    path = find_config(config_path)
    if path is not None:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        base = AppManagerConfig.from_file(path)
    else:
        base = AppManagerConfig()
    return AppManagerConfig.from_env(base)


# Global config instance (can be overridden)
_config: Optional[AppManagerConfig] = None


def get_config() -> AppManagerConfig:
    """Get the global app-manager configuration.

    Returns:
        AppManagerConfig instance (loads from file and environment if not set)
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[AppManagerConfig]):
    """Set the global app-manager configuration.

    Args:
        config: AppManagerConfig instance to use globally (None resets)
    """
    global _config
    _config = config
