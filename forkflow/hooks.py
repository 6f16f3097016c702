"""
Pre-push protection for the local-only backup branch.

The block is appended to an existing pre-push hook or written as a new one.
A marker comment makes installation idempotent.
"""

from __future__ import annotations

import logging
import stat
from pathlib import Path


logger = logging.getLogger(__name__)

HOOK_NAME = "pre-push"
MARKER = "# forkflow: block backup branch push"

_BLOCK = """\
{marker}
BLOCKED_BRANCH="{branch}"
while read -r local_ref local_sha remote_ref remote_sha; do
    if [[ "$local_ref" == "refs/heads/$BLOCKED_BRANCH" ]]; then
        echo "ERROR: Pushing '$BLOCKED_BRANCH' is blocked (contains private data)" >&2
        exit 1
    fi
done
"""


def render_block(branch: str) -> str:
    return _BLOCK.format(marker=MARKER, branch=branch)


def is_installed(hook_file: Path) -> bool:
    return hook_file.exists() and MARKER in hook_file.read_text()


def install_push_protection(hooks_dir: Path, branch: str) -> bool:
    """Install the pre-push block. Returns False when it was already there."""
    hook_file = hooks_dir / HOOK_NAME

    if is_installed(hook_file):
        return False

    block = render_block(branch)
    if hook_file.exists():
        content = hook_file.read_text()
        if not content.endswith("\n"):
            content += "\n"
        hook_file.write_text(content + "\n" + block)
        logger.debug("Appended push protection to %s", hook_file)
    else:
        hooks_dir.mkdir(parents=True, exist_ok=True)
        hook_file.write_text("#!/usr/bin/env bash\n" + block)
        mode = hook_file.stat().st_mode
        hook_file.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.debug("Created %s", hook_file)
    return True
