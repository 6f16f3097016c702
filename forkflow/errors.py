"""
Exceptions raised by forkflow operations.

Every error the CLI reports to the user derives from WorkflowError so the
command layer can turn it into a single message and a non-zero exit.
"""

from __future__ import annotations


class WorkflowError(Exception):
    """Base exception for workflow operations."""


class ConfigError(WorkflowError):
    """Configuration file could not be parsed."""


class GitError(WorkflowError):
    """A git command failed."""
    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class NotARepositoryError(GitError):
    """Current directory is not inside a git work tree."""
    def __init__(self):
        super().__init__("Not in a git repository")


class MissingCommandError(WorkflowError):
    """A required external command is not installed."""
    def __init__(self, command: str):
        super().__init__(f"Required command not found: {command}")
        self.command = command


class InvalidBranchTypeError(WorkflowError):
    """Branch type is not one of the configured types."""
    def __init__(self, branch_type: str, valid_types: list[str]):
        super().__init__(
            f"Invalid branch type: {branch_type}\n"
            f"Valid types: {' '.join(valid_types)}"
        )
        self.branch_type = branch_type
        self.valid_types = valid_types


class BackupError(WorkflowError):
    """Backup or restore could not complete."""


class PRHelperError(WorkflowError):
    """PR operation could not run."""
