"""Tests for SetupSession edits inside the manifest checkout."""
import pytest

from appmanager.core.session import SetupSession
from appmanager.manifests.ingress import IngressError
from appmanager.models import Environment, IngressRoute
from appmanager.services.k8s_repo import K8sRepository


@pytest.fixture
def repo(k8s_checkout, config):
    return K8sRepository(config)


class TestSetupSession:
    """Test opening, editing and saving an app."""

    def test_open_new_app(self, repo):
        session = SetupSession.open(repo, "web")
        assert not session.exists
        assert session.app.replicas == 1
        assert not session.changes_made

    def test_save_and_reopen(self, repo):
        session = SetupSession.open(repo, "web")
        session.update(environment=Environment.STAGING, replicas=2, container_port=80)
        session.save_manifest()
        assert session.changes_made

        reopened = SetupSession.open(repo, "web")
        assert reopened.exists
        assert reopened.app == session.app

    def test_update_validates(self, repo):
        session = SetupSession.open(repo, "web")
        with pytest.raises(ValueError):
            session.update(replicas=0)

    def test_add_route_uses_app_environment(self, repo):
        session = SetupSession.open(repo, "web")
        session.update(environment=Environment.STAGING)
        session.add_route("web.winit.dev", 8080)

        assert session.routes() == [IngressRoute(host="web.winit.dev", service="web", port=8080)]
        assert "# Staging Namespace Routes" in repo.ingress_path.read_text()
        assert session.changes_made

    def test_readme_lists_routes(self, repo):
        session = SetupSession.open(repo, "api")
        session.save_readme()
        assert "- https://api.winit.dev" in repo.readme_path("api").read_text()

    def test_remove_other_apps_route(self, repo):
        session = SetupSession.open(repo, "web")
        with pytest.raises(IngressError, match="No ingress route for argocd.winit.dev on web"):
            session.remove_route("argocd.winit.dev")
        assert not session.changes_made

    def test_remove_route(self, repo):
        session = SetupSession.open(repo, "api")
        session.remove_route("api.winit.dev")
        assert session.routes() == []
        assert not session.has_host("api.winit.dev")

    def test_routes_without_ingress_file(self, repo):
        repo.ingress_path.unlink()
        session = SetupSession.open(repo, "web")
        assert session.routes() == []
        assert not session.has_host("web.winit.dev")
