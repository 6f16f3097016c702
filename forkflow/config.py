"""
Configuration management for Forkflow.

Loads and validates forkflow.yml from the repository root. Every setting has a
default, so the file is optional. Environment variables (FORKFLOW_*) override
the file, and a .env file is honoured by the CLI before config is read.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError


CONFIG_FILENAME = "forkflow.yml"

DEFAULT_BRANCH_TYPES = ["fix", "feat", "refactor", "chore", "docs"]

# Manifest entries left unselected on the first backup (before prefs exist)
DEFAULT_SKIP_PATTERNS = ["*.jsonl", "*.log", "compacted.md", ".history"]

ENV_OVERRIDES = {
    "FORKFLOW_UPSTREAM_URL": ("upstream", "url"),
    "FORKFLOW_UPSTREAM_BRANCH": ("upstream", "branch"),
    "FORKFLOW_BRANCH_PREFIX": ("branches", "prefix"),
    "FORKFLOW_BACKUP_BRANCH": ("backup", "branch"),
    "FORKFLOW_PR_HELPER": ("pr", "helper"),
}


@dataclass
class UpstreamConfig:
    """The repository this fork tracks."""
    url: str = "https://github.com/google-gemini/gemini-cli"
    branch: str = "main"
    remote: str = "upstream"

    @property
    def ref(self) -> str:
        return f"{self.remote}/{self.branch}"


@dataclass
class BranchConfig:
    """Branch naming convention: <prefix>/<type>/<name>."""
    prefix: str = "nubebuster"
    types: list[str] = field(default_factory=lambda: list(DEFAULT_BRANCH_TYPES))


@dataclass
class BackupConfig:
    """Local-only files and the branch that stores them."""
    branch: str = "nubebuster/local/workflow"
    manifest: str = ".gitignore_local"
    prefs: str = ".workflow-backup-prefs"
    skip_by_default: list[str] = field(default_factory=lambda: list(DEFAULT_SKIP_PATTERNS))


@dataclass
class LintPatchConfig:
    """Ignore entry re-applied to the lint config after every upstream reset."""
    enabled: bool = True
    file: str = "eslint.config.js"
    entry: str = ".history/**"
    anchor: str = "dist/**"


@dataclass
class PRConfig:
    """PR operations. An empty helper means the built-in gh backend."""
    helper: str | None = None


@dataclass
class WorkflowConfig:
    """Complete Forkflow configuration."""
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    branches: BranchConfig = field(default_factory=BranchConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    lint: LintPatchConfig = field(default_factory=LintPatchConfig)
    pr: PRConfig = field(default_factory=PRConfig)

    def helper_path(self) -> Path | None:
        """Resolve the PR helper script path, expanding ~."""
        if not self.pr.helper:
            return None
        return Path(self.pr.helper).expanduser()

    @classmethod
    def load(cls, repo_root: Path, environ: dict[str, str] | None = None) -> "WorkflowConfig":
        """Load configuration from repo root directory, then apply env overrides."""
        config = cls()

        config_path = repo_root / CONFIG_FILENAME
        if config_path.exists():
            try:
                with open(config_path) as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"{config_path} must contain a mapping")
            config = cls._parse(data)

        config._apply_env(os.environ if environ is None else environ)
        return config

    @classmethod
    def _parse(cls, data: dict[str, Any]) -> "WorkflowConfig":
        config = cls()

        upstream_data = _section(data, "upstream")
        config.upstream = UpstreamConfig(
            url=str(upstream_data.get("url", config.upstream.url)),
            branch=str(upstream_data.get("branch", config.upstream.branch)),
            remote=str(upstream_data.get("remote", config.upstream.remote)),
        )

        branch_data = _section(data, "branches")
        config.branches = BranchConfig(
            prefix=str(branch_data.get("prefix", config.branches.prefix)),
            types=_str_list(branch_data, "types", DEFAULT_BRANCH_TYPES),
        )

        backup_data = _section(data, "backup")
        config.backup = BackupConfig(
            branch=str(backup_data.get("branch", config.backup.branch)),
            manifest=str(backup_data.get("manifest", config.backup.manifest)),
            prefs=str(backup_data.get("prefs", config.backup.prefs)),
            skip_by_default=_str_list(backup_data, "skip_by_default", DEFAULT_SKIP_PATTERNS),
        )

        lint_data = _section(data, "lint")
        config.lint = LintPatchConfig(
            enabled=bool(lint_data.get("enabled", True)),
            file=str(lint_data.get("file", config.lint.file)),
            entry=str(lint_data.get("entry", config.lint.entry)),
            anchor=str(lint_data.get("anchor", config.lint.anchor)),
        )

        pr_data = _section(data, "pr")
        helper = pr_data.get("helper")
        config.pr = PRConfig(helper=str(helper) if helper else None)

        return config

    def _apply_env(self, environ: Any) -> None:
        for var, (section, attr) in ENV_OVERRIDES.items():
            value = environ.get(var)
            if value:
                setattr(getattr(self, section), attr, value)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _str_list(data: dict[str, Any], key: str, default: list[str]) -> list[str]:
    value = data.get(key)
    if value is None:
        return list(default)
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list")
    return [str(v) for v in value]
