from __future__ import annotations

import pytest

from forkflow.config import WorkflowConfig
from forkflow.errors import ConfigError


def test_config_defaults_without_file(tmp_path):
    config = WorkflowConfig.load(tmp_path, environ={})

    assert config.upstream.url == "https://github.com/google-gemini/gemini-cli"
    assert config.upstream.ref == "upstream/main"
    assert config.branches.prefix == "nubebuster"
    assert config.branches.types == ["fix", "feat", "refactor", "chore", "docs"]
    assert config.backup.branch == "nubebuster/local/workflow"
    assert config.backup.manifest == ".gitignore_local"
    assert config.backup.prefs == ".workflow-backup-prefs"
    assert config.lint.file == "eslint.config.js"
    assert config.helper_path() is None


def test_config_load_sections(tmp_path):
    (tmp_path / "forkflow.yml").write_text(
        """
upstream:
  url: https://github.com/acme/widget
  branch: develop
branches:
  prefix: alice
  types: [fix, feat]
backup:
  branch: alice/local/stash
  skip_by_default: ["*.tmp"]
lint:
  enabled: false
pr:
  helper: ~/bin/gh-pr.bash
        """.strip()
    )

    config = WorkflowConfig.load(tmp_path, environ={})

    assert config.upstream.url == "https://github.com/acme/widget"
    assert config.upstream.ref == "upstream/develop"
    assert config.branches.prefix == "alice"
    assert config.branches.types == ["fix", "feat"]
    assert config.backup.branch == "alice/local/stash"
    assert config.backup.manifest == ".gitignore_local"
    assert config.backup.skip_by_default == ["*.tmp"]
    assert config.lint.enabled is False
    assert config.helper_path().name == "gh-pr.bash"
    assert not str(config.helper_path()).startswith("~")


def test_config_empty_sections_keep_defaults(tmp_path):
    (tmp_path / "forkflow.yml").write_text("pr:\nbranches:\n")

    config = WorkflowConfig.load(tmp_path, environ={})

    assert config.branches.prefix == "nubebuster"
    assert config.pr.helper is None


def test_config_env_overrides_file(tmp_path):
    (tmp_path / "forkflow.yml").write_text("branches:\n  prefix: alice\n")

    config = WorkflowConfig.load(tmp_path, environ={
        "FORKFLOW_BRANCH_PREFIX": "bob",
        "FORKFLOW_UPSTREAM_BRANCH": "trunk",
    })

    assert config.branches.prefix == "bob"
    assert config.upstream.branch == "trunk"


def test_config_reads_process_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("FORKFLOW_BACKUP_BRANCH", "me/private")

    config = WorkflowConfig.load(tmp_path)

    assert config.backup.branch == "me/private"


def test_config_invalid_yaml(tmp_path):
    (tmp_path / "forkflow.yml").write_text("upstream: [unclosed")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        WorkflowConfig.load(tmp_path, environ={})


def test_config_rejects_wrong_types(tmp_path):
    (tmp_path / "forkflow.yml").write_text("upstream: just-a-string\n")

    with pytest.raises(ConfigError, match="'upstream' must be a mapping"):
        WorkflowConfig.load(tmp_path, environ={})

    (tmp_path / "forkflow.yml").write_text("branches:\n  types: fix\n")

    with pytest.raises(ConfigError, match="'types' must be a list"):
        WorkflowConfig.load(tmp_path, environ={})
