from __future__ import annotations

from forkflow.local_files import (
    default_selection,
    entry_covers,
    existing_entries,
    expand_entry,
    missing_entries,
    read_manifest,
    read_prefs,
    save_prefs,
)


def test_read_manifest_skips_comments_and_blanks(tmp_path):
    (tmp_path / ".gitignore_local").write_text(
        "# local files\n\nnotes.md\n   \n.history/\n  # indented comment\n*.log\n"
    )

    assert read_manifest(tmp_path, ".gitignore_local") == ["notes.md", ".history", "*.log"]


def test_read_manifest_missing_file(tmp_path):
    assert read_manifest(tmp_path, ".gitignore_local") == []


def test_existing_and_missing_entries(tmp_path):
    (tmp_path / "notes.md").write_text("x")
    (tmp_path / "a.log").write_text("x")
    (tmp_path / "b.log").write_text("x")
    entries = ["notes.md", "*.log", "gone.md", "*.jsonl"]

    assert existing_entries(tmp_path, entries) == ["notes.md", "a.log", "b.log"]
    assert missing_entries(tmp_path, entries) == ["gone.md", "*.jsonl"]


def test_existing_entries_deduplicates(tmp_path):
    (tmp_path / "a.log").write_text("x")

    assert existing_entries(tmp_path, ["a.log", "*.log"]) == ["a.log"]


def test_entry_covers_plain_paths_and_directories():
    assert entry_covers("notes.md", "notes.md")
    assert entry_covers(".history", ".history/a.txt")
    assert not entry_covers(".history", ".history-old/a.txt")
    assert not entry_covers("notes.md", "docs/notes.md")


def test_entry_covers_globs_stop_at_slash():
    assert entry_covers("*.log", "debug.log")
    assert not entry_covers("*.log", ".history/x.log")
    assert entry_covers("notes/*.md", "notes/a.md")
    assert not entry_covers("notes/*.md", "notes/sub/a.md")
    assert entry_covers("notes/**/*.md", "notes/sub/deep/a.md")
    assert entry_covers("notes/**/*.md", "notes/a.md")


def test_entry_covers_agrees_with_work_tree_expansion(tmp_path):
    (tmp_path / "debug.log").write_text("x")
    (tmp_path / "cache").mkdir()
    (tmp_path / "cache" / "x.log").write_text("x")
    (tmp_path / "build-1").mkdir()
    (tmp_path / "build-1" / "out.txt").write_text("x")
    files = ["debug.log", "cache/x.log", "build-1/out.txt"]

    for entry in ("*.log", "build-*"):
        expanded = expand_entry(tmp_path, entry)
        covered = [f for f in files if entry_covers(entry, f)]
        assert covered == [f for f in files if any(f == e or f.startswith(e + "/") for e in expanded)]


def test_default_selection_skips_data_files_without_prefs(tmp_path):
    candidates = ["notes.md", "session.jsonl", "debug.log", "compacted.md", ".history", "GEMINI.md"]

    selected = default_selection(
        candidates,
        tmp_path / ".workflow-backup-prefs",
        ["*.jsonl", "*.log", "compacted.md", ".history"],
    )

    assert selected == ["notes.md", "GEMINI.md"]


def test_default_selection_prefers_saved_prefs(tmp_path):
    prefs = tmp_path / ".workflow-backup-prefs"
    save_prefs(prefs, ["debug.log", ".history"])

    assert default_selection(["notes.md", "debug.log"], prefs, ["*.log"]) == ["debug.log", ".history"]


def test_save_prefs_rewrites_file(tmp_path):
    prefs = tmp_path / ".workflow-backup-prefs"
    save_prefs(prefs, ["a", "b", "c"])
    save_prefs(prefs, ["b"])

    assert prefs.read_text() == "b\n"
    assert read_prefs(prefs) == ["b"]
    assert read_prefs(tmp_path / "missing") is None
