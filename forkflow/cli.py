"""
Forkflow CLI - Fork-maintenance workflow around git and the gh CLI.

Commands:
    (none)    - Interactive menu
    merge     - Sync with upstream
    checkout  - Switch branch (interactive if no branch given)
    create    - Create branch with naming convention
    backup    - Backup local files to the local-only branch
    restore   - Restore local files from the local-only branch
    status    - Show current workflow status
    pr        - PR operations (menu, or one operation per subcommand)
    init      - Write a sample forkflow.yml and local-files manifest
"""

from __future__ import annotations

import functools
import logging
import sys

import click
from dotenv import load_dotenv

from . import __version__, console
from .config import CONFIG_FILENAME, WorkflowConfig
from .errors import NotARepositoryError, WorkflowError
from .git import Git, find_repo_root
from .menu import run_main_menu, run_pr_menu
from .pr import get_backend
from .workflow import Workflow


logger = logging.getLogger(__name__)

SAMPLE_CONFIG = """\
# Forkflow Configuration
# Every key is optional; the values below are the defaults.

# Repository this fork tracks
upstream:
  url: https://github.com/google-gemini/gemini-cli
  branch: main
  remote: upstream

# Branch naming convention: <prefix>/<type>/<name>
branches:
  prefix: nubebuster
  types: [fix, feat, refactor, chore, docs]

# Local-only files (listed in the manifest) are backed up to this branch,
# which is never pushed
backup:
  branch: nubebuster/local/workflow
  manifest: .gitignore_local
  prefs: .workflow-backup-prefs
  skip_by_default: ["*.jsonl", "*.log", compacted.md, .history]

# Ignore entry re-applied to the lint config after every upstream reset
lint:
  enabled: true
  file: eslint.config.js
  entry: .history/**
  anchor: dist/**

# PR operations use the gh CLI unless a helper script is configured
pr:
  # helper: ~/Scripts/gh-pr.bash
"""

SAMPLE_MANIFEST = """\
# Local-only files: never committed to shared branches,
# backed up with `forkflow backup`. One path or glob per line.
{config}
{manifest}
{prefs}
"""

EXCLUDE_MARKER = "# forkflow local files"

EPILOG = """\
Branch naming convention: <prefix>/<type>/<name>

\b
Examples:
  forkflow create feat/new-feature
  forkflow create fix/typo
  forkflow checkout
  forkflow merge
"""


def _load_env() -> None:
    # .env from current directory, then repo root
    load_dotenv()
    try:
        load_dotenv(find_repo_root() / ".env")
    except NotARepositoryError:
        logger.debug("Not in a git repository, skipping repo .env")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def handle_errors(func):
    """Report WorkflowError as [ERROR] lines and exit with status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except WorkflowError as e:
            for line in str(e).splitlines():
                console.error(line)
            sys.exit(1)
    return wrapper


def load_workflow() -> Workflow:
    repo_root = find_repo_root()
    config = WorkflowConfig.load(repo_root)
    return Workflow(config, Git(repo_root))


class WorkflowGroup(click.Group):
    """Group that reports unknown commands with usage and exit status 1."""

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError:
            console.error(f"Unknown command: {args[0]}")
            click.echo(ctx.get_help())
            ctx.exit(1)


@click.group(cls=WorkflowGroup, invoke_without_command=True, epilog=EPILOG)
@click.option("-v", "--verbose", is_flag=True, help="Log every git/gh call")
@click.version_option(version=__version__)
@click.pass_context
@handle_errors
def main(ctx: click.Context, verbose: bool):
    """Forkflow - Fork-maintenance workflow around git and the gh CLI."""
    configure_logging(verbose)
    _load_env()
    if ctx.invoked_subcommand is None:
        workflow = load_workflow()
        run_main_menu(workflow, get_backend(workflow.config, workflow.repo_root))


@main.command()
@handle_errors
def merge():
    """Sync with upstream (hard reset, tracked changes stashed and restored)."""
    load_workflow().merge()


@main.command()
@click.argument("branch", required=False)
@handle_errors
def checkout(branch: str | None):
    """Switch branch (interactive if no branch given)."""
    load_workflow().checkout(branch)


@main.command()
@click.argument("spec", metavar="[TYPE/NAME]", required=False)
@handle_errors
def create(spec: str | None):
    """Create branch with naming convention.

    Missing type or name is prompted for. The new branch starts from a
    freshly merged upstream.
    """
    load_workflow().create(spec)


@main.command()
@handle_errors
def backup():
    """Backup local files to the local-only branch."""
    load_workflow().backup()


@main.command()
@handle_errors
def restore():
    """Restore local files from the local-only branch."""
    load_workflow().restore()


@main.command()
@handle_errors
def status():
    """Show current workflow status."""
    load_workflow().status()


@main.command("help")
@click.pass_context
def help_(ctx: click.Context):
    """Show this help."""
    click.echo(ctx.parent.get_help())


@main.command()
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
@handle_errors
def init(force: bool):
    """Write a sample forkflow.yml and local-files manifest."""
    repo_root = find_repo_root()
    git = Git(repo_root)
    click.echo(f"Initializing Forkflow in: {repo_root}")

    config_path = repo_root / CONFIG_FILENAME
    if not config_path.exists() or force:
        config_path.write_text(SAMPLE_CONFIG)
        click.echo(f"  Created: {config_path}")
    else:
        click.echo(f"  Skipped: {config_path} (already exists)")

    config = WorkflowConfig.load(repo_root)
    manifest_path = repo_root / config.backup.manifest
    if not manifest_path.exists():
        manifest_path.write_text(SAMPLE_MANIFEST.format(
            config=CONFIG_FILENAME,
            manifest=config.backup.manifest,
            prefs=config.backup.prefs,
        ))
        click.echo(f"  Created: {manifest_path}")
    else:
        click.echo(f"  Skipped: {manifest_path} (already exists)")

    # Keep forkflow's own files out of `git status` without touching .gitignore
    exclude_path = git.git_path("info/exclude")
    content = exclude_path.read_text() if exclude_path.exists() else ""
    if EXCLUDE_MARKER not in content:
        entries = [CONFIG_FILENAME, config.backup.manifest, config.backup.prefs]
        block = "\n".join([EXCLUDE_MARKER, *entries]) + "\n"
        if content and not content.endswith("\n"):
            content += "\n"
        exclude_path.parent.mkdir(parents=True, exist_ok=True)
        exclude_path.write_text(content + block)
        click.echo(f"  Updated: {exclude_path}")

    click.echo("\nForkflow initialized! Next steps:")
    click.echo(f"  1. Edit {CONFIG_FILENAME} to point at your upstream")
    click.echo(f"  2. List your local-only files in {config.backup.manifest}")
    click.echo("  3. Run: forkflow backup")


@main.group(invoke_without_command=True)
@click.pass_context
@handle_errors
def pr(ctx: click.Context):
    """PR operations for the current branch (menu if no operation given)."""
    if ctx.invoked_subcommand is None:
        workflow = load_workflow()
        run_pr_menu(get_backend(workflow.config, workflow.repo_root), workflow.prompter)


def _run_pr(operation: str, *args: str) -> None:
    workflow = load_workflow()
    get_backend(workflow.config, workflow.repo_root).run(operation, *args)


@pr.command("view")
@handle_errors
def pr_view():
    """View PR details."""
    _run_pr("view")


@pr.command("comments")
@handle_errors
def pr_comments():
    """Show comments and reviews."""
    _run_pr("comments")


@pr.command("comment")
@click.argument("body")
@handle_errors
def pr_comment(body: str):
    """Post a comment."""
    _run_pr("comment", body)


@pr.command("reply-review")
@click.argument("body")
@handle_errors
def pr_reply_review(body: str):
    """Reply to the review with a review comment."""
    _run_pr("reply-review", body)


@pr.command("inline-comments")
@handle_errors
def pr_inline_comments():
    """Show inline review comments with their IDs."""
    _run_pr("inline-comments")


@pr.command("reply-inline")
@click.argument("comment_id")
@click.argument("body")
@handle_errors
def pr_reply_inline(comment_id: str, body: str):
    """Reply to an inline review comment."""
    _run_pr("reply-inline", comment_id, body)


@pr.command("respond")
@handle_errors
def pr_respond():
    """Show inline comments and how to respond to them."""
    _run_pr("respond")


if __name__ == "__main__":
    main()
