"""State of one app configuration session.

Holds the app being edited and the files it touches, without any prompting,
so the interactive menu and the scripted commands share the same edits.
"""
from dataclasses import dataclass
from typing import List, Optional

from appmanager.core.logger import get_logger
from appmanager.manifests.generator import ManifestGenerator
from appmanager.manifests.ingress import IngressError, IngressFile
from appmanager.manifests.reader import read_manifest
from appmanager.models.app import AppSpec, Environment
from appmanager.models.ingress import IngressRoute
from appmanager.services.k8s_repo import CommitOutcome, K8sRepository

logger = get_logger(__name__)


@dataclass
class SetupSession:
    """An app opened for editing inside the manifest checkout."""

    repo: K8sRepository
    generator: ManifestGenerator
    app: AppSpec
    exists: bool
    changes_made: bool = False

    @classmethod
    def open(
        cls,
        repo: K8sRepository,
        app_name: str,
        generator: Optional[ManifestGenerator] = None,
    ) -> "SetupSession":
        """Load an existing app from its manifest, or start a new one.

        Raises:
            ManifestError: If an existing manifest cannot be parsed
        """
        generator = generator or ManifestGenerator(repo.config)
        if repo.app_exists(app_name):
            app = read_manifest(app_name, repo.manifest_path(app_name))
            return cls(repo=repo, generator=generator, app=app, exists=True)
        return cls(repo=repo, generator=generator, app=AppSpec(name=app_name), exists=False)

    @property
    def name(self) -> str:
        return self.app.name

    def update(self, **changes) -> AppSpec:
        """Replace app fields, re-validating the result."""
        self.app = AppSpec(**{**self.app.model_dump(), **changes})
        return self.app

    def load_ingress(self) -> IngressFile:
        return IngressFile.load(self.repo.ingress_path)

    def routes(self) -> List[IngressRoute]:
        """This app's routes; empty when the ingress file is missing."""
        if not self.repo.ingress_path.exists():
            return []
        return self.load_ingress().list_routes(self.name)

    def has_host(self, host: str) -> bool:
        if not self.repo.ingress_path.exists():
            return False
        return self.load_ingress().has_host(host)

    def save_manifest(self) -> None:
        self.generator.write_manifest(self.app, self.repo.manifest_path(self.name))
        self.changes_made = True

    def save_readme(self) -> None:
        self.generator.write_readme(self.app, self.repo.readme_path(self.name), self.routes())
        self.changes_made = True

    def add_route(self, host: str, port: int, environment: Optional[Environment] = None) -> IngressRoute:
        """Route ``host`` to this app in its environment's ingress section.

        Raises:
            IngressError: On a missing ingress file or a duplicate host
        """
        ingress = self.load_ingress()
        route = ingress.add_route(self.name, host, port, environment or self.app.environment)
        ingress.save()
        self.changes_made = True
        return route

    def remove_route(self, host: str) -> IngressRoute:
        """Remove one of this app's routes.

        Raises:
            IngressError: If the host is not routed to this app
        """
        ingress = self.load_ingress()
        if host not in [route.host for route in ingress.list_routes(self.name)]:
            raise IngressError(f"No ingress route for {host} on {self.name}")
        route = ingress.remove_route(host)
        ingress.save()
        self.changes_made = True
        return route

    def commit(self) -> CommitOutcome:
        outcome = self.repo.commit_app_changes(self.name, existed=self.exists)
        logger.info(f"Commit for {self.name}: {outcome.value}")
        return outcome
