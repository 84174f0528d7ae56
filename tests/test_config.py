"""Tests for configuration loading."""
from pathlib import Path

import pytest

from appmanager.core import config as config_module
from appmanager.core.config import (
    AppManagerConfig,
    ConfigError,
    find_config,
    get_config,
    load_config,
    set_config,
)


class TestAppManagerConfig:
    """Test defaults and derived names."""

    def test_defaults(self):
        cfg = AppManagerConfig()
        assert cfg.k8s_repo == "winit-testabc/k8s-production"
        assert cfg.k8s_checkout == Path(".") / "k8s-production"
        assert cfg.source_repo("web") == "winit-testabc/web-main"

    def test_repo_per_environment(self):
        cfg = AppManagerConfig(github_org="acme")
        assert cfg.k8s_repo_for("production") == "acme/k8s-production"
        assert cfg.k8s_repo_for("staging") == "acme/k8s-staging"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("APP_MANAGER_GITHUB_ORG", "acme")
        monkeypatch.setenv("APP_MANAGER_K8S_REPO_NAME", "manifests")
        cfg = AppManagerConfig.from_env()
        assert cfg.k8s_repo == "acme/manifests"

    def test_from_file(self, tmp_path):
        path = tmp_path / "app-manager.yml"
        path.write_text("github-org: acme\necr_registry: registry.local/acme\nslack: '#deploys'\n")

        cfg = AppManagerConfig.from_file(path)

        assert cfg.github_org == "acme"
        assert cfg.ecr_registry == "registry.local/acme"
        assert cfg.extra == {"slack": "#deploys"}

    def test_from_file_invalid_yaml(self, tmp_path):
        path = tmp_path / "app-manager.yml"
        path.write_text("github_org: [acme\n")
        with pytest.raises(ConfigError, match="Failed to parse"):
            AppManagerConfig.from_file(path)

    def test_from_file_requires_mapping(self, tmp_path):
        path = tmp_path / "app-manager.yml"
        path.write_text("- acme\n")
        with pytest.raises(ConfigError, match="mapping"):
            AppManagerConfig.from_file(path)


class TestLoadConfig:
    """Test config discovery and precedence."""

    def test_explicit_path(self):
        assert find_config("/custom/app-manager.yml") == Path("/custom/app-manager.yml")

    def test_env_variable(self, monkeypatch):
        monkeypatch.setenv("APP_MANAGER_CONFIG", "/env/app-manager.yml")
        assert find_config() == Path("/env/app-manager.yml")

    def test_search_paths(self, tmp_path, monkeypatch):
        path = tmp_path / "app-manager.yml"
        path.write_text("github_org: acme\n")
        monkeypatch.setattr(config_module, "CONFIG_PATHS", [str(tmp_path / "missing.yml"), str(path)])
        assert find_config() == path

    def test_nothing_found(self):
        assert find_config() is None

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Config file not found"):
            load_config(str(tmp_path / "nope.yml"))

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "app-manager.yml"
        path.write_text("github_org: from-file\nk8s_repo_name: manifests\n")
        monkeypatch.setenv("APP_MANAGER_GITHUB_ORG", "from-env")

        cfg = load_config(str(path))

        assert cfg.github_org == "from-env"
        assert cfg.k8s_repo_name == "manifests"

    def test_global_config(self, tmp_path):
        cfg = get_config()
        assert cfg.work_dir == str(tmp_path)
        assert get_config() is cfg

        custom = AppManagerConfig(github_org="acme")
        set_config(custom)
        assert get_config() is custom
