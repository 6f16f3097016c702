"""
Keep a local ignore entry in the upstream lint config.

Upstream resets overwrite eslint.config.js, so after every reset the entry
(e.g. '.history/**') is inserted again right after the anchor entry of the
ignores array, in the anchor's quote style and indentation.
"""

from __future__ import annotations

import enum
import logging
import re
from pathlib import Path


logger = logging.getLogger(__name__)


class PatchResult(enum.Enum):
    INJECTED = "injected"
    ALREADY_PRESENT = "already_present"
    FILE_MISSING = "file_missing"
    ANCHOR_MISSING = "anchor_missing"


def _quoted(value: str) -> str:
    return "[\"']" + re.escape(value) + "[\"']"


def inject_ignore(path: Path, entry: str, anchor: str) -> PatchResult:
    """Insert `entry` after the line holding the quoted `anchor`."""
    if not path.exists():
        return PatchResult.FILE_MISSING

    text = path.read_text()
    if re.search(_quoted(entry), text):
        return PatchResult.ALREADY_PRESENT

    lines = text.splitlines(keepends=True)
    anchor_re = re.compile(r"^(\s*)(['\"])" + re.escape(anchor) + r"\2")
    for i, line in enumerate(lines):
        match = anchor_re.match(line)
        if not match:
            continue
        indent, quote = match.group(1), match.group(2)
        if not line.endswith("\n"):
            lines[i] = line + "\n"
        lines.insert(i + 1, f"{indent}{quote}{entry}{quote},\n")
        path.write_text("".join(lines))
        logger.debug("Injected %s into %s after %s", entry, path, anchor)
        return PatchResult.INJECTED

    return PatchResult.ANCHOR_MISSING
