"""
Workflow commands: upstream sync, branch switching/creation and the
backup/restore of local-only files.

Commands print progress through forkflow.console and raise WorkflowError
subclasses on failure. Multi-step mutations (merge, backup) run compensating
actions before re-raising, so an interrupted run leaves the user on their
original branch with their changes popped back.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from . import console
from .branches import full_branch_name, parse_branch_arg, validate_type
from .config import WorkflowConfig
from .errors import BackupError, GitError, WorkflowError
from .git import Git, TreeEntry
from .hooks import install_push_protection, is_installed, HOOK_NAME
from .lint_patch import PatchResult, inject_ignore
from .local_files import (
    default_selection,
    entry_covers,
    existing_entries,
    expand_entry,
    missing_entries,
    read_manifest,
    save_prefs,
)
from .prompts import Prompter, has_cmd, require_cmd


logger = logging.getLogger(__name__)

MERGE_STASH_MESSAGE = "forkflow: auto-stash before merge"
BACKUP_STASH_MESSAGE = "forkflow: stash before backup"


@dataclass
class UpstreamStatus:
    configured: bool
    ref: str
    up_to_date: bool = False
    fetched: bool = True
    behind: int | None = None
    ahead: int | None = None


@dataclass
class StatusReport:
    """Snapshot rendered by `forkflow status`."""
    branch: str
    upstream: UpstreamStatus
    local_files: list[tuple[str, bool]] = field(default_factory=list)
    backup_branch: str = ""
    backup_count: int | None = None
    push_protected: bool = False

    @property
    def has_backup(self) -> bool:
        return self.backup_count is not None


class Workflow:
    """Fork-maintenance commands bound to one repository."""

    def __init__(self, config: WorkflowConfig, git: Git, prompter: Prompter | None = None):
        self.config = config
        self.git = git
        self.prompter = prompter or Prompter()

    @property
    def repo_root(self) -> Path:
        return self.git.repo_root

    @property
    def prefs_path(self) -> Path:
        return self.repo_root / self.config.backup.prefs

    def manifest(self) -> list[str]:
        return read_manifest(self.repo_root, self.config.backup.manifest)

    # Lint config patching

    def patch_lint(self) -> PatchResult | None:
        lint = self.config.lint
        if not lint.enabled:
            return None

        result = inject_ignore(self.repo_root / lint.file, lint.entry, lint.anchor)
        if result is PatchResult.INJECTED:
            console.info(f"Injected {lint.entry} into {lint.file}")
        elif result is PatchResult.ALREADY_PRESENT:
            console.info(f"{lint.file} already has {lint.entry} ignore")
        elif result is PatchResult.FILE_MISSING:
            console.warn(f"{lint.file} not found, skipping injection")
        else:
            console.warn(
                f"Could not find {lint.anchor} in {lint.file}, manual injection may be needed"
            )
        return result

    def _hide_lint_changes(self, hidden: bool) -> None:
        """Toggle skip-worktree on the lint file so the patch stays out of `git status`."""
        lint = self.config.lint
        if lint.enabled and self.git.is_tracked(lint.file):
            if not self.git.set_skip_worktree(lint.file, hidden):
                logger.warning("Could not update skip-worktree on %s", lint.file)

    # merge

    def merge(self) -> None:
        """Hard-reset the current branch to upstream, keeping tracked changes."""
        console.header("Merging with upstream")
        upstream = self.config.upstream
        lint = self.config.lint

        if self.git.remote_url(upstream.remote) is None:
            console.info(f"Adding {upstream.remote} remote: {upstream.url}")
            self.git.add_remote(upstream.remote, upstream.url)

        # The lint file is re-patched from upstream, keep it out of the stash
        if lint.enabled and lint.file in self.git.modified_files():
            console.info(f"Resetting {lint.file} (will be re-patched from upstream)")
            self.git.run("checkout", "--", lint.file)

        stashed = False
        if self.git.has_changes():
            console.info("Stashing tracked changes...")
            self.git.stash_push(MERGE_STASH_MESSAGE)
            stashed = True

        try:
            console.info(f"Fetching from {upstream.remote}...")
            if self.git.is_shallow():
                console.info("Unshallowing repository...")
                self.git.run("fetch", "--unshallow", upstream.remote, upstream.branch)
            else:
                self.git.run("fetch", upstream.remote, upstream.branch)

            self._hide_lint_changes(False)

            console.info(f"Resetting to {upstream.ref}...")
            self.git.run("reset", "--hard", upstream.ref)

            self.patch_lint()
            self._hide_lint_changes(True)
        except BaseException:
            if stashed:
                self._pop_stash()
            raise

        if stashed:
            self._pop_stash()

        console.info("Successfully synced with upstream!")
        console.echo()
        self.git.status_short()

    def _pop_stash(self) -> None:
        console.info("Restoring stashed changes...")
        if not self.git.stash_pop():
            console.warn("Stash pop had conflicts - resolve manually")

    # checkout

    def checkout(self, branch: str | None = None) -> str | None:
        """Switch branch, choosing with fzf when none is given."""
        console.header("Switch Branch")

        if not branch:
            require_cmd("fzf")
            options = [b for b in self.git.branches() if b != self.config.backup.branch]
            branch = self.prompter.fuzzy_select(options, prompt="Select branch: ")
            if not branch:
                console.info("No branch selected")
                return None

        console.info(f"Switching to branch: {branch}")
        self.git.run("checkout", branch)

        self.ensure_local_files()
        return branch

    # create

    def create(self, arg: str | None = None) -> str | None:
        """Create <prefix>/<type>/<name> from a freshly synced upstream."""
        console.header("Create Branch")
        require_cmd("gum")
        branches = self.config.branches

        branch_type, name = parse_branch_arg(arg)

        if not branch_type:
            branch_type = self.prompter.choose("Select branch type:", branches.types)
            if not branch_type:
                console.info("No type selected")
                return None

        validate_type(branch_type, branches.types)

        if not name:
            name = self.prompter.input("Branch name (e.g., fix-typo-in-readme)")
            if not name:
                console.info("No name provided")
                return None

        full_branch = full_branch_name(branches.prefix, branch_type, name)
        if self.git.branch_exists(full_branch):
            raise WorkflowError(f"Branch already exists: {full_branch}")

        console.info(f"Creating branch: {full_branch}")
        console.info("Merging upstream first...")
        self.merge()

        self.git.run("checkout", "-b", full_branch)
        console.info(f"Created and switched to: {full_branch}")

        self.ensure_local_files()
        return full_branch

    # backup

    def backup(self) -> bool:
        """Commit selected local files to the local-only branch.

        Returns True when the backup ran to completion, False when the user
        cancelled or there was nothing to back up.
        """
        console.header("Backup Local Files")
        require_cmd("gum")
        backup = self.config.backup

        candidates = existing_entries(self.repo_root, self.manifest())
        if not candidates:
            console.warn(f"No local files found to backup (check {backup.manifest})")
            return False

        preselected = default_selection(candidates, self.prefs_path, backup.skip_by_default)
        selected = self.prompter.choose_many(
            "Select files to backup (space to toggle, enter to confirm):",
            candidates,
            selected=preselected,
        )
        if not selected:
            console.info("No files selected, backup cancelled")
            return False

        save_prefs(self.prefs_path, selected)
        console.info(f"Preferences saved to {backup.prefs}")

        files = list(selected)
        if backup.prefs not in files and self.prefs_path.exists():
            files.append(backup.prefs)

        console.info(f"Will backup: {' '.join(files)}")
        if not self.prompter.confirm(f"Proceed with backup to {backup.branch}?"):
            console.info("Backup cancelled")
            return False

        # Every local file is set aside, not only the selected ones: branch
        # switches below would otherwise clobber files the backup branch tracks.
        saved = list(dict.fromkeys(candidates + files))
        original = self.git.current_branch() or self.git.head_sha()
        if not original:
            raise BackupError("Cannot back up before the first commit")

        temp_dir = Path(tempfile.mkdtemp(prefix="forkflow-backup-"))
        _copy_paths(self.repo_root, temp_dir, saved)
        console.info("Files saved to temp directory")

        self._reset_lint_file()

        stashed = False
        try:
            if self.git.has_changes():
                self.git.stash_push(BACKUP_STASH_MESSAGE)
                stashed = True

            _remove_paths(self.repo_root, saved)
            self._switch_to_backup_branch()

            _copy_paths(temp_dir, self.repo_root, files)
            self.git.run("add", "-f", "--", *files)
            if self.git.has_staged_changes():
                stamp = datetime.now().strftime("%Y-%m-%d-%H%M%S")
                self.git.run("commit", "-m", f"Backup local workflow files {stamp}")
                console.info("Committed backup")
            else:
                console.info("No changes to commit (files unchanged)")

            self.git.run("checkout", original)
        except BaseException:
            self._rollback_backup(original, temp_dir, saved, stashed)
            raise

        _copy_paths(temp_dir, self.repo_root, saved)
        shutil.rmtree(temp_dir, ignore_errors=True)

        if stashed:
            if not self.git.stash_pop():
                console.warn("Stash pop had conflicts")

        self.patch_lint()
        self._hide_lint_changes(True)

        # No upstream means no accidental `git push` of the backup branch
        self.git.run("branch", "--unset-upstream", backup.branch, check=False)

        install_push_protection(self.git.hooks_dir, backup.branch)
        console.info("Pre-push hook installed to block pushing backup branch")

        console.info("Backup complete!")
        console.warn("Note: Backup branch is LOCAL ONLY (never pushed) to protect private data")
        return True

    def _reset_lint_file(self) -> None:
        """Drop local lint edits; the file is re-patched after the backup."""
        lint = self.config.lint
        if not lint.enabled or not self.git.is_tracked(lint.file):
            return
        self._hide_lint_changes(False)
        upstream = self.config.upstream
        if self.git.rev_parse(upstream.ref):
            self.git.run("checkout", upstream.ref, "--", lint.file, check=False)
        else:
            self.git.run("checkout", "--", lint.file, check=False)

    def _switch_to_backup_branch(self) -> None:
        branch = self.config.backup.branch
        if self.git.branch_exists(branch):
            self.git.run("checkout", branch)
        elif self.git.remote_branch_exists("origin", branch):
            self.git.run("fetch", "origin", branch)
            self.git.run("checkout", "-B", branch, f"origin/{branch}")
        else:
            # switch --orphan starts from an empty tree and index
            self.git.run("switch", "--orphan", branch)

    def _rollback_backup(self, original: str, temp_dir: Path, saved: list[str], stashed: bool) -> None:
        console.warn("Backup failed, restoring previous state...")

        # Force only when the failure happened after leaving the original branch
        if (self.git.current_branch() or self.git.head_sha()) != original:
            try:
                self.git.run("checkout", "-f", original)
            except GitError as e:
                console.warn(f"Could not switch back to {original}: {e}")

        try:
            _copy_paths(temp_dir, self.repo_root, saved)
        except OSError as e:
            console.warn(f"Could not restore local files ({e}); copies kept in {temp_dir}")
        else:
            shutil.rmtree(temp_dir, ignore_errors=True)

        if stashed and not self.git.stash_pop():
            console.warn("Stash pop had conflicts - resolve manually")

        try:
            self.patch_lint()
        except OSError as e:
            console.warn(f"Could not patch {self.config.lint.file}: {e}")
        self._hide_lint_changes(True)

    # restore

    def restore(self) -> list[str]:
        """Write manifest entries from the local-only branch into the work tree."""
        console.header("Restore Local Files")
        branch = self.config.backup.branch

        if not self.git.branch_exists(branch):
            raise BackupError(
                f"Backup branch {branch} not found locally\n"
                "Run 'forkflow backup' first to create it"
            )

        console.info(f"Restoring from: {branch} (local)")

        tree = [e for e in self.git.ls_tree(branch) if e.type == "blob"]
        restored: list[str] = []
        for entry in self.manifest():
            matched = [t for t in tree if entry_covers(entry, t.path)]
            if not matched:
                console.warn(f"File not in backup: {entry}")
                continue

            for item in matched:
                self._write_blob(branch, item)
                restored.append(item.path)

            if len(matched) == 1 and matched[0].path == entry:
                console.info(f"Restored: {entry}")
            else:
                console.info(f"Restored: {entry} ({len(matched)} files)")

        console.info("Restore complete!")
        return restored

    def _write_blob(self, branch: str, item: TreeEntry) -> None:
        target = self.repo_root / item.path
        target.parent.mkdir(parents=True, exist_ok=True)
        data = self.git.show_file(branch, item.path)
        # Never write through an existing link
        if target.is_symlink() or (item.symlink and target.exists()):
            target.unlink()
        if item.symlink:
            os.symlink(os.fsdecode(data), target)
            return
        target.write_bytes(data)
        if item.executable:
            target.chmod(target.stat().st_mode | 0o111)

    def ensure_local_files(self) -> bool:
        """Offer a restore when manifest entries are missing from the work tree."""
        missing = missing_entries(self.repo_root, self.manifest())
        if not missing:
            return True

        console.warn(f"Missing local files: {' '.join(missing)}")
        branch = self.config.backup.branch

        if self.git.branch_exists(branch) and has_cmd("gum"):
            if self.prompter.confirm(f"Restore from backup branch ({branch})?"):
                self.restore()
                return True

        console.warn("Some local files are missing. Run 'forkflow restore' when ready.")
        return False

    # status

    def collect_status(self) -> StatusReport:
        upstream = self.config.upstream
        backup = self.config.backup

        up = UpstreamStatus(configured=self.git.remote_url(upstream.remote) is not None, ref=upstream.ref)
        if up.configured:
            upstream_sha = self.git.rev_parse(upstream.ref)
            if upstream_sha is None:
                up.fetched = False
            elif upstream_sha == self.git.head_sha():
                up.up_to_date = True
            else:
                up.behind = self.git.rev_list_count(f"HEAD..{upstream.ref}")
                up.ahead = self.git.rev_list_count(f"{upstream.ref}..HEAD")

        report = StatusReport(
            branch=self.git.current_branch() or "(detached HEAD)",
            upstream=up,
            backup_branch=backup.branch,
        )

        for entry in self.manifest():
            report.local_files.append((entry, bool(expand_entry(self.repo_root, entry))))

        if self.git.branch_exists(backup.branch):
            report.backup_count = self.git.rev_list_count(backup.branch)
        report.push_protected = is_installed(self.git.hooks_dir / HOOK_NAME)
        return report

    def status(self) -> StatusReport:
        console.header("Workflow Status")
        report = self.collect_status()
        backup = self.config.backup

        console.label("Current Branch:", report.branch)
        console.echo()

        console.label("Upstream Sync:")
        up = report.upstream
        if not up.configured:
            console.echo(console.colored("  Upstream remote not configured", "yellow"))
        elif not up.fetched:
            console.echo(console.colored(f"  {up.ref} not fetched yet (run merge)", "yellow"))
        elif up.up_to_date:
            console.echo(console.colored(f"  Up to date with {up.ref}", "green"))
        else:
            behind = "?" if up.behind is None else up.behind
            line = f"  {behind} commits behind {up.ref}"
            if up.ahead:
                line += f", {up.ahead} ahead"
            console.echo(console.colored(line, "yellow"))
        console.echo()

        console.label(f"Local Files (from {backup.manifest}):")
        for entry, present in report.local_files:
            console.echo("  " + (console.ok(entry) if present else console.missing(f"{entry} (missing)")))
        console.echo()

        console.label("Backup Branch (local only):")
        if report.has_backup:
            console.echo("  " + console.ok(f"{report.backup_branch} ({report.backup_count} backups)"))
            if not report.push_protected:
                console.echo(console.colored("  Pre-push protection not installed (run backup)", "yellow"))
        else:
            console.echo("  " + console.missing(f"{report.backup_branch} (not created yet)", color="yellow"))
        console.echo()

        console.label("Git Status:")
        self.git.status_short()
        return report


def _copy_paths(src_root: Path, dst_root: Path, paths: list[str]) -> None:
    """Copy files/dirs between roots, keeping their relative paths."""
    for rel in paths:
        src = src_root / rel
        dst = dst_root / rel
        if src.is_dir() and not src.is_symlink():
            shutil.copytree(src, dst, symlinks=True, dirs_exist_ok=True)
        elif src.exists() or src.is_symlink():
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst, follow_symlinks=False)


def _remove_paths(root: Path, paths: list[str]) -> None:
    for rel in paths:
        target = root / rel
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
