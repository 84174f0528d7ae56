"""Creation of an app's source-code repository on GitHub."""
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from appmanager.core.config import AppManagerConfig, get_config
from appmanager.core.logger import get_logger
from appmanager.scaffold.deploy import DeploymentScriptGenerator
from appmanager.scaffold.templates import TemplateEngine
from appmanager.services.git_manager import GitError, GitManager
from appmanager.services.github_cli import GitHubCLI

logger = get_logger(__name__)


class SourceRepoCreator:
    """Creates ``{org}/{app}-main`` and seeds it with starter files."""

    def __init__(
        self,
        config: Optional[AppManagerConfig] = None,
        gh: Optional[GitHubCLI] = None,
        engine: Optional[TemplateEngine] = None,
    ):
        self.config = config or get_config()
        self.gh = gh or GitHubCLI()
        self.engine = engine or TemplateEngine()
        self.deploy_scripts = DeploymentScriptGenerator(self.engine)

    def repo_name(self, app_name: str) -> str:
        return self.config.source_repo(app_name)

    def exists(self, app_name: str) -> bool:
        return self.gh.repo_exists(self.repo_name(app_name))

    def create(self, app_name: str) -> str:
        """Create the private repository on GitHub.

        Raises:
            GitHubCLIError: If gh refuses to create it
        """
        repo = self.repo_name(app_name)
        self.gh.create_repo(repo, private=True, description=f"Source code for {app_name}")
        return repo

    def write_starter_files(self, app_name: str, target: Path) -> None:
        """README, .gitignore and the deploy script."""
        (target / "README.md").write_text(self.engine.render_template(
            "source_readme.md",
            {"app_name": app_name, "k8s_repo_name": self.config.k8s_repo_name},
        ))
        (target / ".gitignore").write_text(self.engine.render_template("gitignore", {}))
        self.deploy_scripts.write_deploy_script(app_name, target, self.repo_name(app_name))

    def initialize(self, app_name: str) -> str:
        """Push an initial commit to the freshly created repository.

        Returns:
            Repository URL

        Raises:
            GitError: If any git step fails
        """
        repo = self.repo_name(app_name)
        url = f"https://github.com/{repo}.git"
        temp_dir = Path(tempfile.mkdtemp(prefix=f"{app_name}-"))
        try:
            git = GitManager(temp_dir)
            git.init("main")
            git.ensure_identity()
            self.write_starter_files(app_name, temp_dir)
            if not git.add("README.md", ".gitignore", DeploymentScriptGenerator.script_name(app_name)):
                raise GitError("Nothing to add to the initial commit")
            if not git.commit(f"Initial commit: {app_name}"):
                raise GitError("Initial commit was empty")
            git.add_remote(url)
            git.push_upstream("origin", "main")
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

        logger.info(f"Initialized {repo}")
        return f"https://github.com/{repo}"
