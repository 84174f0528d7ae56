"""Deploy script generation for app source repositories."""

from pathlib import Path
from typing import Optional

from appmanager.core.logger import get_logger
from appmanager.scaffold.templates import TemplateEngine

logger = get_logger(__name__)


class DeploymentScriptGenerator:
    """Generates the per-app ``{app}-deploy.sh`` wrapper."""

    def __init__(self, engine: Optional[TemplateEngine] = None):
        self.engine = engine or TemplateEngine()

    @staticmethod
    def script_name(app_name: str) -> str:
        return f"{app_name}-deploy.sh"

    def generate_deploy_script(self, app_name: str, source_repo: Optional[str] = None) -> str:
        """Generate the deploy script body."""
        return self.engine.render_template(
            "deploy.sh",
            {"app_name": app_name, "source_repo": source_repo or ""},
        )

    def write_deploy_script(
        self,
        app_name: str,
        output_dir: Path,
        source_repo: Optional[str] = None,
    ) -> Path:
        """Write an executable deploy script into ``output_dir``."""
        output_dir.mkdir(parents=True, exist_ok=True)
        script_path = output_dir / self.script_name(app_name)
        script_path.write_text(self.generate_deploy_script(app_name, source_repo))
        script_path.chmod(0o755)
        logger.info(f"Wrote deploy script {script_path}")
        return script_path
