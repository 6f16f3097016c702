from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str | None = None) -> None:
    path = repo / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message or f"Add {name}")


ESLINT_CONFIG = """\
export default [
  {
    ignores: [
      'node_modules/**',
      'dist/**',
    ],
  },
];
"""


@pytest.fixture(autouse=True)
def isolated_git_env(monkeypatch, tmp_path):
    """Keep the user's git config and identity out of the tests."""
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", str(tmp_path / "gitconfig"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    for var in ("FORKFLOW_UPSTREAM_URL", "FORKFLOW_UPSTREAM_BRANCH", "FORKFLOW_BRANCH_PREFIX",
                "FORKFLOW_BACKUP_BRANCH", "FORKFLOW_PR_HELPER"):
        monkeypatch.delenv(var, raising=False)


def init_repo(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    git(path, "config", "commit.gpgsign", "false")
    return path


@pytest.fixture
def upstream_repo(tmp_path):
    """Upstream repository with a README and a lint config."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    repo = init_repo(tmp_path / "upstream")
    commit_file(repo, "README.md", "# Upstream\n")
    commit_file(repo, "eslint.config.js", ESLINT_CONFIG)
    return repo


@pytest.fixture
def fork_repo(tmp_path, upstream_repo):
    """Clone of upstream_repo, standing in for the contributor's fork."""
    fork = tmp_path / "fork"
    git(tmp_path, "clone", "-q", str(upstream_repo), str(fork))
    git(fork, "config", "commit.gpgsign", "false")
    return fork
