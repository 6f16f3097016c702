from __future__ import annotations

from forkflow.lint_patch import PatchResult, inject_ignore


SINGLE_QUOTED = """\
export default [
  {
    ignores: [
      'node_modules/*',
      'dist/**',
    ],
  },
];
"""


def test_inject_after_anchor_single_quotes(tmp_path):
    path = tmp_path / "eslint.config.js"
    path.write_text(SINGLE_QUOTED)

    assert inject_ignore(path, ".history/**", "dist/**") is PatchResult.INJECTED

    lines = path.read_text().splitlines()
    anchor = lines.index("      'dist/**',")
    assert lines[anchor + 1] == "      '.history/**',"


def test_inject_matches_double_quotes(tmp_path):
    path = tmp_path / "eslint.config.js"
    path.write_text(SINGLE_QUOTED.replace("'", '"'))

    inject_ignore(path, ".history/**", "dist/**")

    assert '    ".history/**",' in path.read_text()


def test_inject_is_idempotent(tmp_path):
    path = tmp_path / "eslint.config.js"
    path.write_text(SINGLE_QUOTED)
    inject_ignore(path, ".history/**", "dist/**")
    patched = path.read_text()

    assert inject_ignore(path, ".history/**", "dist/**") is PatchResult.ALREADY_PRESENT
    assert path.read_text() == patched


def test_inject_recognizes_other_quote_style_as_present(tmp_path):
    path = tmp_path / "eslint.config.js"
    path.write_text(SINGLE_QUOTED.replace("'dist/**',", "'dist/**',\n      \".history/**\","))

    assert inject_ignore(path, ".history/**", "dist/**") is PatchResult.ALREADY_PRESENT


def test_inject_missing_file_or_anchor(tmp_path):
    path = tmp_path / "eslint.config.js"
    assert inject_ignore(path, ".history/**", "dist/**") is PatchResult.FILE_MISSING

    path.write_text("export default [];\n")
    assert inject_ignore(path, ".history/**", "dist/**") is PatchResult.ANCHOR_MISSING
    assert path.read_text() == "export default [];\n"
