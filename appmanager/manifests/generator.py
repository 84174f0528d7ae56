"""Deployment/Service manifest and README generation."""
from pathlib import Path
from typing import List, Optional

from appmanager.core.config import AppManagerConfig, get_config
from appmanager.core.logger import get_logger
from appmanager.models.app import HEALTH_PATH, AppSpec
from appmanager.models.ingress import IngressRoute
from appmanager.scaffold.templates import TemplateEngine

logger = get_logger(__name__)


class ManifestGenerator:
    """Renders an app's single-file manifest and its README."""

    def __init__(
        self,
        config: Optional[AppManagerConfig] = None,
        engine: Optional[TemplateEngine] = None,
    ):
        self.config = config or get_config()
        self.engine = engine or TemplateEngine()

    def render_manifest(self, app: AppSpec) -> str:
        """Render the Deployment and Service documents for ``app``."""
        return self.engine.render_template(
            "manifest.yaml",
            {
                "app": app,
                "image": app.image(self.config.ecr_registry),
                "health_path": HEALTH_PATH,
            },
        )

    def render_readme(self, app: AppSpec, routes: Optional[List[IngressRoute]] = None) -> str:
        """Render the README placed next to the manifest."""
        return self.engine.render_template(
            "app_readme.md",
            {
                "app": app,
                "routes": routes or [],
                "deploy_repo": self.config.deploy_repo_name,
                "deploy_script": self.config.deploy_script,
                "source_repo": self.config.source_repo(app.name),
            },
        )

    def write_manifest(self, app: AppSpec, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render_manifest(app))
        logger.info(f"Wrote manifest {path}")
        return path

    def write_readme(self, app: AppSpec, path: Path, routes: Optional[List[IngressRoute]] = None) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render_readme(app, routes))
        logger.info(f"Wrote README {path}")
        return path
