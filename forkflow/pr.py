"""
Pull request operations for the current branch.

Two backends share one set of operation names:
- GhBackend talks to GitHub through the gh CLI and formats review comments.
- HelperScriptBackend hands the operation to an external helper script
  (configured with pr.helper), called as `<script> <operation> [args...]`.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
import textwrap
from pathlib import Path
from typing import Any

import click

from .config import WorkflowConfig
from .errors import PRHelperError
from .prompts import require_cmd


logger = logging.getLogger(__name__)

OPERATIONS = (
    "view",
    "comments",
    "comment",
    "reply-review",
    "inline-comments",
    "reply-inline",
    "respond",
)

# (operation, menu label)
MENU_ITEMS = [
    ("view", "View PR details"),
    ("comments", "Show comments/reviews"),
    ("comment", "Post comment"),
    ("reply-review", "Reply to review"),
    ("inline-comments", "Show inline comments"),
    ("reply-inline", "Reply to inline comment"),
    ("respond", "Respond guide"),
]


def format_inline_comments(comments: list[dict[str, Any]]) -> str:
    """Render review comments as threads: each root comment followed by its replies."""
    if not comments:
        return "No inline comments."

    by_id = {c["id"]: c for c in comments}
    replies: dict[int, list[dict[str, Any]]] = {}
    roots = []
    for c in comments:
        parent = c.get("in_reply_to_id")
        if parent and parent in by_id:
            replies.setdefault(parent, []).append(c)
        else:
            roots.append(c)

    blocks = []
    for root in roots:
        lines = [_comment_heading(root, with_location=True)]
        lines.append(textwrap.indent(_body(root), "    "))
        for reply in replies.get(root["id"], []):
            lines.append("  ↳ " + _comment_heading(reply, with_location=False))
            lines.append(textwrap.indent(_body(reply), "      "))
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def _comment_heading(comment: dict[str, Any], with_location: bool) -> str:
    author = (comment.get("user") or {}).get("login", "unknown")
    heading = f"[{comment['id']}]"
    if with_location:
        line = comment.get("line") or comment.get("original_line")
        location = comment.get("path", "")
        if line:
            location += f":{line}"
        if location:
            heading += f" {location}"
    return f"{heading}  @{author}"


def _body(comment: dict[str, Any]) -> str:
    return (comment.get("body") or "").strip() or "(empty)"


RESPOND_GUIDE = """\
To respond to review feedback:
  1. Address the comment in code and push.
  2. Reply inline:     forkflow pr reply-inline <comment-id> "<reply>"
  3. Reply to review:  forkflow pr reply-review "<summary of changes>"
  4. General comment:  forkflow pr comment "<message>"
"""


class GhBackend:
    """PR operations through the gh CLI, for the PR of the current branch."""

    def __init__(self, repo_root: Path):
        self.repo_root = repo_root

    def _gh(self, *args: str, capture: bool = True) -> str:
        require_cmd("gh")
        cmd = ["gh", *args]
        logger.debug("Running: %s", " ".join(cmd))
        result = subprocess.run(cmd, cwd=self.repo_root, capture_output=capture, text=True)
        if result.returncode != 0:
            message = f"gh {' '.join(args[:2])} failed"
            if capture and result.stderr.strip():
                message += f": {result.stderr.strip()}"
            raise PRHelperError(message)
        return result.stdout if capture else ""

    def check(self) -> None:
        require_cmd("gh")

    def pr_number(self) -> int:
        out = self._gh("pr", "view", "--json", "number", "-q", ".number")
        return int(out.strip())

    def fetch_inline_comments(self) -> list[dict[str, Any]]:
        number = self.pr_number()
        # --paginate prints one array per page, .[] flattens them to one object per line
        out = self._gh(
            "api", "--paginate", "--jq", ".[]",
            f"repos/{{owner}}/{{repo}}/pulls/{number}/comments?per_page=100",
        )
        return [json.loads(line) for line in out.splitlines() if line.strip()]

    def run(self, operation: str, *args: str) -> None:
        if operation == "view":
            self._gh("pr", "view", capture=False)
        elif operation == "comments":
            self._gh("pr", "view", "--comments", capture=False)
        elif operation == "comment":
            body, = args
            self._gh("pr", "comment", "--body", body, capture=False)
        elif operation == "reply-review":
            body, = args
            self._gh("pr", "review", "--comment", "--body", body, capture=False)
        elif operation == "inline-comments":
            click.echo(format_inline_comments(self.fetch_inline_comments()))
        elif operation == "reply-inline":
            comment_id, body = args
            number = self.pr_number()
            self._gh(
                "api", "-X", "POST",
                f"repos/{{owner}}/{{repo}}/pulls/{number}/comments/{comment_id}/replies",
                "-f", f"body={body}",
            )
            click.echo(f"Replied to comment {comment_id}")
        elif operation == "respond":
            click.echo(format_inline_comments(self.fetch_inline_comments()))
            click.echo()
            click.echo(RESPOND_GUIDE)
        else:
            raise PRHelperError(f"Unknown PR operation: {operation}")


class HelperScriptBackend:
    """Delegates every operation to an external helper script."""

    def __init__(self, script: Path, repo_root: Path):
        self.script = script
        self.repo_root = repo_root

    def check(self) -> None:
        if not (self.script.is_file() and os.access(self.script, os.X_OK)):
            raise PRHelperError(f"PR helper not found at {self.script}")

    def run(self, operation: str, *args: str) -> None:
        self.check()
        cmd = [str(self.script), operation, *args]
        logger.debug("Running: %s", " ".join(cmd))
        result = subprocess.run(cmd, cwd=self.repo_root)
        if result.returncode != 0:
            raise PRHelperError(f"{self.script.name} {operation} failed (exit {result.returncode})")


def get_backend(config: WorkflowConfig, repo_root: Path) -> GhBackend | HelperScriptBackend:
    helper = config.helper_path()
    if helper is not None:
        return HelperScriptBackend(helper, repo_root)
    return GhBackend(repo_root)
