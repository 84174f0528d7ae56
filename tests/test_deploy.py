"""Tests for release versioning and the deploy runner."""
from pathlib import Path
from types import SimpleNamespace

import pytest

from appmanager.deploy import (
    DEFAULT_VERSION,
    DeployRunner,
    VersionError,
    increment_patch,
    k8s_tag,
    latest_version,
    normalize_version,
    workflow_tag,
)
from appmanager.deploy.runner import extract_run_id
from appmanager.models import Environment
from appmanager.services.github_cli import GitHubCLIError


class FakeGH:
    """Stand-in for GitHubCLI recording tag calls."""

    def __init__(self, refs=None, fail_list=False, fail_create=False, fail_update=False):
        self.refs = refs or []
        self.fail_list = fail_list
        self.fail_create = fail_create
        self.fail_update = fail_update
        self.calls = []

    def list_tag_refs(self, repo):
        self.calls.append(("list", repo))
        if self.fail_list:
            raise GitHubCLIError("boom")
        return self.refs

    def branch_sha(self, repo, branch="main"):
        return "abc123"

    def create_tag(self, repo, tag, sha):
        self.calls.append(("create", repo, tag, sha))
        if self.fail_create:
            raise GitHubCLIError("exists")

    def update_tag(self, repo, tag, sha):
        self.calls.append(("update", repo, tag, sha))
        if self.fail_update:
            raise GitHubCLIError("denied")

    def watch_run(self, repo, run_id):
        self.calls.append(("watch", repo, run_id))
        return 0


class TestVersioning:
    """Test version parsing and tag naming."""

    def test_latest_version_is_numeric_max(self):
        refs = [
            "refs/tags/v1.9.3-api-prod",
            "refs/tags/v1.10.0-api-prod",
            "refs/tags/v1.2.0-api-prod",
        ]
        assert latest_version(refs, "api", "prod") == "1.10.0"

    def test_latest_version_filters_app_and_suffix(self):
        refs = [
            "refs/tags/v3.0.0-api-v2-prod",
            "refs/tags/v2.0.0-api-staging",
            "refs/tags/v1.0.0-prod",
            "refs/tags/v1.1.0-api-prod",
        ]
        assert latest_version(refs, "api", "prod") == "1.1.0"

    def test_latest_version_none(self):
        assert latest_version([], "api", "prod") is None

    def test_increment_patch(self):
        assert increment_patch("1.2.9") == "1.2.10"

    @pytest.mark.parametrize("value,expected", [
        ("1.2.3", "1.2.3"),
        ("v1.2.3", "1.2.3"),
        (" 2.0.0 ", "2.0.0"),
        ("1.2.3-rc1", "1.2.3-rc1"),
    ])
    def test_normalize_version(self, value, expected):
        assert normalize_version(value) == expected

    @pytest.mark.parametrize("value", ["1.2", "latest", "v", ""])
    def test_normalize_version_rejects(self, value):
        with pytest.raises(VersionError, match="Expected format: X.Y.Z"):
            normalize_version(value)

    def test_tags(self):
        assert workflow_tag("1.2.3", "prod") == "v1.2.3-prod"
        assert k8s_tag("1.2.3", "api", "staging") == "v1.2.3-api-staging"


class TestExtractRunId:
    """Test run id detection in deploy script output."""

    def test_actions_url(self):
        output = "Triggered: https://github.com/org/k8s/actions/runs/987654\nDone"
        assert extract_run_id(output) == "987654"

    def test_fallback(self):
        assert extract_run_id("see runs/42 for details") == "42"

    def test_missing(self):
        assert extract_run_id("workflow started") is None


class TestDeployRunner:
    """Test DeployRunner against a fake gh client."""

    def test_latest_version_uses_environment_repo(self, config):
        gh = FakeGH(refs=["refs/tags/v1.4.0-web-staging"])
        runner = DeployRunner(config, gh)

        assert runner.latest_version("web", Environment.STAGING) == "1.4.0"
        assert gh.calls == [("list", "winit-testabc/k8s-staging")]

    def test_latest_version_defaults(self, config):
        assert DeployRunner(config, FakeGH()).latest_version("web", Environment.PRODUCTION) == DEFAULT_VERSION
        assert DeployRunner(config, FakeGH(fail_list=True)).latest_version(
            "web", Environment.PRODUCTION) == DEFAULT_VERSION

    def test_tag_release_created(self, config):
        gh = FakeGH()
        assert DeployRunner(config, gh).tag_release(Environment.PRODUCTION, "v1.0.1-web-prod") == "created"
        assert gh.calls == [("create", "winit-testabc/k8s-production", "v1.0.1-web-prod", "abc123")]

    def test_tag_release_falls_back_to_update(self, config):
        gh = FakeGH(fail_create=True)
        assert DeployRunner(config, gh).tag_release(Environment.PRODUCTION, "v1.0.1-web-prod") == "updated"
        assert gh.calls[-1][0] == "update"

    def test_tag_release_gives_up(self, config):
        gh = FakeGH(fail_create=True, fail_update=True)
        assert DeployRunner(config, gh).tag_release(Environment.PRODUCTION, "v1.0.1-web-prod") is None

    def test_run_url(self, config):
        runner = DeployRunner(config, FakeGH())
        assert runner.run_url(Environment.PRODUCTION, "7") == \
            "https://github.com/winit-testabc/k8s-production/actions/runs/7"

    def test_find_deploy_script_next_to_repo(self, config, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path / "home"))
        source = tmp_path / "work" / "web-main"
        source.mkdir(parents=True)
        script = tmp_path / "work" / "WinIT-DO" / "scripts" / "deploy-app.sh"
        script.parent.mkdir(parents=True)
        script.write_text("#!/bin/bash\n")

        found = DeployRunner(config, FakeGH()).find_deploy_script(source)
        assert found.resolve() == script.resolve()

    def test_find_deploy_script_missing(self, config, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path / "home"))
        source = tmp_path / "work" / "web-main"
        source.mkdir(parents=True)
        assert DeployRunner(config, FakeGH()).find_deploy_script(source) is None

    def test_run_deploy_script_answers_yes(self, config, tmp_path, monkeypatch):
        seen = {}

        def fake_run(cmd, **kwargs):
            seen["cmd"] = cmd
            seen.update(kwargs)
            return SimpleNamespace(returncode=0, stdout="actions/runs/55\n")

        monkeypatch.setattr("appmanager.deploy.runner.subprocess.run", fake_run)
        script = tmp_path / "deploy-app.sh"

        code, output = DeployRunner(config, FakeGH()).run_deploy_script(
            script, "web", "v1.0.1-prod", "winit-testabc/web-main"
        )

        assert code == 0
        assert output == "actions/runs/55\n"
        assert seen["cmd"] == ["bash", str(script), "web", "v1.0.1-prod", "winit-testabc/web-main"]
        assert seen["input"] == "y\n"
