"""
Local-only files: the manifest (.gitignore_local) and backup preferences.

The manifest lists files and glob patterns that live in the work tree but are
never committed to shared branches. Blank lines and # comments are ignored.
"""

from __future__ import annotations

import fnmatch
import logging
from pathlib import Path, PurePosixPath
from typing import Iterable


logger = logging.getLogger(__name__)

GLOB_CHARS = set("*?[")


def is_pattern(entry: str) -> bool:
    return any(c in entry for c in GLOB_CHARS)


def read_manifest(repo_root: Path, name: str) -> list[str]:
    """Read non-empty, non-comment lines from the manifest."""
    path = repo_root / name
    if not path.exists():
        logger.debug("No manifest at %s", path)
        return []

    entries = []
    for line in path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        entries.append(stripped.rstrip("/"))
    return entries


def expand_entry(repo_root: Path, entry: str) -> list[str]:
    """Existing paths (relative to repo_root) matched by one manifest entry."""
    if is_pattern(entry):
        return sorted(
            str(p.relative_to(repo_root))
            for p in repo_root.glob(entry)
            if ".git" not in p.relative_to(repo_root).parts
        )
    if (repo_root / entry).exists():
        return [entry]
    return []


def entry_covers(entry: str, path: str) -> bool:
    """Whether `path` (a file in a backup tree) belongs to a manifest entry.

    Globs match component by component like `Path.glob`, so `*` never
    crosses `/`. Files below a matched directory belong to the entry too.
    """
    if path == entry or path.startswith(entry + "/"):
        return True
    if not is_pattern(entry):
        return False
    return _match_parts(PurePosixPath(path).parts, PurePosixPath(entry).parts)


def _match_parts(parts: tuple[str, ...], pattern: tuple[str, ...]) -> bool:
    if not pattern:
        return True
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        return any(_match_parts(parts[i:], rest) for i in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0], head) and _match_parts(parts[1:], rest)


def existing_entries(repo_root: Path, entries: Iterable[str]) -> list[str]:
    """Every existing path matched by the manifest, in manifest order."""
    found: list[str] = []
    for entry in entries:
        for path in expand_entry(repo_root, entry):
            if path not in found:
                found.append(path)
    return found


def missing_entries(repo_root: Path, entries: Iterable[str]) -> list[str]:
    """Manifest entries that match nothing in the work tree."""
    return [e for e in entries if not expand_entry(repo_root, e)]


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    name = Path(path).name
    return any(fnmatch.fnmatch(path, p) or fnmatch.fnmatch(name, p) for p in patterns)


def read_prefs(prefs_path: Path) -> list[str] | None:
    """Previously selected files, or None when no prefs were saved yet."""
    if not prefs_path.exists():
        return None
    return [line.strip() for line in prefs_path.read_text().splitlines() if line.strip()]


def default_selection(
    candidates: list[str],
    prefs_path: Path,
    skip_patterns: Iterable[str],
) -> list[str]:
    """Files pre-selected in the backup prompt.

    Saved prefs win. Without prefs every candidate is selected except the
    ones matching `skip_patterns` (data and temp files).
    """
    prefs = read_prefs(prefs_path)
    if prefs is not None:
        return prefs
    skip = list(skip_patterns)
    return [c for c in candidates if not matches_any(c, skip)]


def save_prefs(prefs_path: Path, selected: Iterable[str]) -> None:
    """Rewrite the prefs file with one selected file per line."""
    prefs_path.write_text("".join(f"{s}\n" for s in selected))
