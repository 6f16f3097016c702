"""
Branch naming convention: <prefix>/<type>/<name>.
"""

from __future__ import annotations

import re

from .errors import InvalidBranchTypeError, WorkflowError


_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9-]")


def parse_branch_arg(arg: str | None) -> tuple[str | None, str | None]:
    """Split a `type/name` argument. A bare `name` has no type."""
    if not arg:
        return None, None
    if "/" in arg:
        branch_type, _, name = arg.partition("/")
        return branch_type or None, name or None
    return None, arg


def sanitize_name(name: str) -> str:
    """Lowercase, spaces to dashes, drop anything outside [a-z0-9-]."""
    return _INVALID_NAME_CHARS.sub("", name.lower().replace(" ", "-"))


def validate_type(branch_type: str, valid_types: list[str]) -> None:
    if branch_type not in valid_types:
        raise InvalidBranchTypeError(branch_type, valid_types)


def full_branch_name(prefix: str, branch_type: str, name: str) -> str:
    clean = sanitize_name(name)
    if not clean:
        raise WorkflowError(f"Branch name '{name}' has no usable characters")
    parts = [p for p in (prefix, branch_type, clean) if p]
    return "/".join(parts)
