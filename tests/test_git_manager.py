"""Tests for local git operations."""
import subprocess
from types import SimpleNamespace

import pytest

from appmanager.services.git_manager import GitError, GitManager, run_git


class FakeGit:
    """subprocess.run replacement; ``failures`` maps argument prefixes to stderr."""

    def __init__(self, outputs=None, failures=None):
        self.outputs = outputs or {}
        self.failures = failures or {}
        self.calls = []

    def __call__(self, args, cwd=None, capture_output=False, text=False, check=False):
        self.calls.append(args[1:])
        for prefix, stderr in self.failures.items():
            if tuple(args[1:1 + len(prefix)]) == prefix:
                raise subprocess.CalledProcessError(1, args, output="", stderr=stderr)
        stdout = ""
        for prefix, out in self.outputs.items():
            if tuple(args[1:1 + len(prefix)]) == prefix:
                stdout = out
        return SimpleNamespace(returncode=0, stdout=stdout, stderr="")


@pytest.fixture
def fake_git(monkeypatch):
    def install(outputs=None, failures=None):
        fake = FakeGit(outputs, failures)
        monkeypatch.setattr("appmanager.services.git_manager.subprocess.run", fake)
        return fake
    return install


class TestRunGit:
    """Test the subprocess wrapper."""

    def test_success(self, fake_git):
        fake_git(outputs={("status",): " M file\n"})
        assert run_git(["status"]) == (True, "M file", "")

    def test_failure(self, fake_git):
        fake_git(failures={("push",): "rejected\n"})
        assert run_git(["push"]) == (False, "", "rejected")

    def test_failure_message_from_stdout(self, monkeypatch):
        def fake_run(args, **kwargs):
            raise subprocess.CalledProcessError(1, args, output="nothing added to commit\n", stderr="")

        monkeypatch.setattr("appmanager.services.git_manager.subprocess.run", fake_run)
        assert run_git(["commit", "-m", "msg"]) == (False, "nothing added to commit", "nothing added to commit")

    def test_git_missing(self, monkeypatch):
        def fake_run(*args, **kwargs):
            raise FileNotFoundError("git")

        monkeypatch.setattr("appmanager.services.git_manager.subprocess.run", fake_run)
        ok, _, stderr = run_git(["status"])
        assert not ok
        assert "Git not found" in stderr


class TestGitManager:
    """Test GitManager operations."""

    def test_pull_falls_back_to_master(self, fake_git, tmp_path):
        fake = fake_git(failures={("pull", "origin", "main"): "no such ref"})
        assert GitManager(tmp_path).pull() == "master"
        assert fake.calls == [["pull", "origin", "main"], ["pull", "origin", "master"]]

    def test_push_fails_everywhere(self, fake_git, tmp_path):
        fake_git(failures={("push",): "rejected"})
        assert GitManager(tmp_path).push() is None

    def test_status_porcelain(self, fake_git, tmp_path):
        fake_git(outputs={("status", "--porcelain"): " M app.py\n?? new.txt\n"})
        assert GitManager(tmp_path).status_porcelain() == ["M app.py", "?? new.txt"]

    def test_has_changes_clean(self, fake_git, tmp_path):
        fake_git()
        assert not GitManager(tmp_path).has_changes()

    def test_has_changes_unstaged(self, fake_git, tmp_path):
        fake_git(failures={("diff", "--quiet"): ""})
        assert GitManager(tmp_path).has_changes()

    def test_has_changes_untracked(self, fake_git, tmp_path):
        fake_git(outputs={("ls-files",): "apps/web/web.yaml\n"})
        assert GitManager(tmp_path).has_changes()

    def test_add_skips_missing_paths(self, fake_git, tmp_path):
        fake_git(failures={("add", "apps/gone"): "pathspec did not match"})
        manager = GitManager(tmp_path)
        assert manager.add("apps/gone", "apps/web")
        assert not manager.add("apps/gone")

    def test_commit(self, fake_git, tmp_path):
        fake = fake_git()
        assert GitManager(tmp_path).commit("Configure web app")
        assert fake.calls == [["commit", "-m", "Configure web app"]]

    def test_commit_nothing_to_commit(self, monkeypatch, tmp_path):
        def fake_run(args, **kwargs):
            raise subprocess.CalledProcessError(
                1, args, output="nothing to commit, working tree clean", stderr=""
            )

        monkeypatch.setattr("appmanager.services.git_manager.subprocess.run", fake_run)
        assert GitManager(tmp_path).commit("msg") is False

    def test_commit_with_only_untracked_files(self, monkeypatch, tmp_path):
        def fake_run(args, **kwargs):
            raise subprocess.CalledProcessError(
                1, args,
                output="Untracked files:\n\tstray.txt\n\nnothing added to commit but untracked files present",
                stderr="",
            )

        monkeypatch.setattr("appmanager.services.git_manager.subprocess.run", fake_run)
        assert GitManager(tmp_path).commit("msg") is False

    def test_commit_error(self, fake_git, tmp_path):
        fake_git(failures={("commit",): "Please tell me who you are"})
        with pytest.raises(GitError, match="who you are"):
            GitManager(tmp_path).commit("msg")

    def test_ensure_identity_sets_missing_values(self, monkeypatch, tmp_path):
        calls = []

        def fake_run(args, **kwargs):
            calls.append(args[1:])
            if args[1:] == ["config", "user.email"]:
                raise subprocess.CalledProcessError(1, args, output="", stderr="")
            return SimpleNamespace(returncode=0, stdout="Someone", stderr="")

        monkeypatch.setattr("appmanager.services.git_manager.subprocess.run", fake_run)
        GitManager(tmp_path).ensure_identity()
        assert ["config", "user.email", "actions@github.com"] in calls
        assert not any(call[:2] == ["config", "user.name"] and len(call) == 3 for call in calls)

    def test_init_creates_directory(self, fake_git, tmp_path):
        fake = fake_git()
        target = tmp_path / "new-repo"
        GitManager(target).init("main")
        assert target.is_dir()
        assert fake.calls == [["init", "-b", "main"]]
