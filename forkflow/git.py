"""
Thin wrapper around the git command line.

Every call goes through Git.run so commands are logged at DEBUG level and
failures surface as GitError with git's stderr attached.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import GitError, NotARepositoryError


logger = logging.getLogger(__name__)


@dataclass
class TreeEntry:
    """One line of `git ls-tree -r` output."""
    mode: str
    type: str
    sha: str
    path: str

    @property
    def executable(self) -> bool:
        return self.mode == "100755"

    @property
    def symlink(self) -> bool:
        return self.mode == "120000"


def find_repo_root(cwd: Path | None = None) -> Path:
    """Return the top-level directory of the enclosing work tree."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        raise NotARepositoryError() from e
    return Path(result.stdout.strip())


class Git:
    """Runs git commands inside one repository."""

    def __init__(self, repo_root: Path):
        self.repo_root = Path(repo_root)

    def run(
        self,
        *args: str,
        check: bool = True,
        capture: bool = True,
        binary: bool = False,
    ) -> subprocess.CompletedProcess:
        """Run `git <args>` in the repository.

        With capture=False output goes straight to the terminal, which is what
        commands shown to the user (status, stash pop) want.
        """
        cmd = ["git", *args]
        logger.debug("Running: %s", " ".join(cmd))
        result = subprocess.run(
            cmd,
            cwd=self.repo_root,
            capture_output=capture,
            text=not binary,
        )
        if check and result.returncode != 0:
            stderr = result.stderr or ""
            if isinstance(stderr, bytes):
                stderr = stderr.decode(errors="replace")
            message = f"git {' '.join(args)} failed (exit {result.returncode})"
            if stderr.strip():
                message += f": {stderr.strip()}"
            raise GitError(message, returncode=result.returncode, stderr=stderr)
        return result

    def output(self, *args: str) -> str:
        return self.run(*args).stdout.strip()

    def succeeds(self, *args: str) -> bool:
        return self.run(*args, check=False).returncode == 0

    # Refs and branches

    def current_branch(self) -> str:
        """Current branch name, empty when HEAD is detached."""
        return self.output("branch", "--show-current")

    def head_sha(self) -> str | None:
        result = self.run("rev-parse", "HEAD", check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def rev_parse(self, ref: str) -> str | None:
        result = self.run("rev-parse", "--verify", "--quiet", ref, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def branch_exists(self, branch: str) -> bool:
        return self.succeeds("show-ref", "--verify", "--quiet", f"refs/heads/{branch}")

    def remote_branch_exists(self, remote: str, branch: str) -> bool:
        return self.succeeds("show-ref", "--verify", "--quiet", f"refs/remotes/{remote}/{branch}")

    def branches(self) -> list[str]:
        out = self.output("branch", "--format=%(refname:short)")
        return [line for line in out.splitlines() if line]

    def rev_list_count(self, spec: str) -> int | None:
        result = self.run("rev-list", "--count", spec, check=False)
        if result.returncode != 0:
            return None
        return int(result.stdout.strip())

    # Remotes

    def remote_url(self, name: str) -> str | None:
        result = self.run("remote", "get-url", name, check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def add_remote(self, name: str, url: str) -> None:
        self.run("remote", "add", name, url)

    def is_shallow(self) -> bool:
        result = self.run("rev-parse", "--is-shallow-repository", check=False)
        return result.stdout.strip() == "true"

    # Working tree

    def has_changes(self) -> bool:
        """True when tracked files differ from the index or HEAD."""
        unstaged = self.run("diff", "--quiet", check=False).returncode != 0
        staged = self.run("diff", "--cached", "--quiet", check=False).returncode != 0
        return unstaged or staged

    def has_staged_changes(self) -> bool:
        return self.run("diff", "--cached", "--quiet", check=False).returncode != 0

    def modified_files(self) -> list[str]:
        out = self.output("diff", "--name-only")
        return [line for line in out.splitlines() if line]

    def is_tracked(self, path: str) -> bool:
        return self.succeeds("ls-files", "--error-unmatch", "--", path)

    def stash_push(self, message: str) -> None:
        self.run("stash", "push", "-m", message)

    def stash_pop(self) -> bool:
        """Pop the latest stash. Returns False when git reported conflicts."""
        return self.run("stash", "pop", check=False, capture=False).returncode == 0

    def set_skip_worktree(self, path: str, enabled: bool) -> bool:
        flag = "--skip-worktree" if enabled else "--no-skip-worktree"
        return self.succeeds("update-index", flag, path)

    def status_short(self) -> None:
        self.run("status", "--short", capture=False)

    # Objects

    def show_file(self, rev: str, path: str) -> bytes:
        return self.run("show", f"{rev}:{path}", binary=True).stdout

    def ls_tree(self, rev: str, path: str | None = None) -> list[TreeEntry]:
        args = ["ls-tree", "-r", "-z", rev]
        if path:
            args += ["--", path]
        out = self.run(*args).stdout
        entries = []
        for record in out.split("\0"):
            if not record:
                continue
            meta, _, name = record.partition("\t")
            mode, obj_type, sha = meta.split()
            entries.append(TreeEntry(mode=mode, type=obj_type, sha=sha, path=name))
        return entries

    def git_path(self, name: str) -> Path:
        """Absolute path of `name` inside the git directory (hooks, info/exclude)."""
        path = Path(self.output("rev-parse", "--git-path", name))
        if not path.is_absolute():
            path = self.repo_root / path
        return path

    @property
    def hooks_dir(self) -> Path:
        return self.git_path("hooks")
