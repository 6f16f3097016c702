"""
Interactive gum menus: the main action loop and the PR sub-menu.
"""

from __future__ import annotations

import logging
from typing import Callable

import click

from . import console
from .errors import WorkflowError
from .pr import MENU_ITEMS, GhBackend, HelperScriptBackend
from .prompts import Prompter, require_cmd
from .workflow import Workflow


logger = logging.getLogger(__name__)

MENU_TITLE = "Fork Workflow Tool"
EXIT = "Exit"
BACK = "Back to main menu"


def _collect_pr_args(operation: str, backend, prompter: Prompter) -> list[str] | None:
    """Ask for the arguments an operation needs. None means the user backed out."""
    if operation == "comment":
        body = prompter.input("Enter comment...", width=80)
        return [body] if body else None
    if operation == "reply-review":
        body = prompter.input("Enter reply...", width=80)
        return [body] if body else None
    if operation == "reply-inline":
        # Show the threads first so the comment ID can be copied
        backend.run("respond")
        click.echo()
        comment_id = prompter.input("Enter comment ID...")
        if not comment_id:
            return None
        body = prompter.input("Enter reply...", width=80)
        return [comment_id, body] if body else None
    return []


def run_pr_menu(backend: GhBackend | HelperScriptBackend, prompter: Prompter) -> None:
    require_cmd("gum")
    backend.check()
    operations = {label: op for op, label in MENU_ITEMS}

    while True:
        console.header("PR Operations")
        choice = prompter.choose("Select PR operation:", [*operations, BACK])
        if not choice or choice == BACK:
            return

        operation = operations[choice]
        args = _collect_pr_args(operation, backend, prompter)
        if args is not None:
            backend.run(operation, *args)

        click.echo()
        if not prompter.confirm("Back to PR menu?"):
            return


def main_menu_actions(
    workflow: Workflow,
    backend: GhBackend | HelperScriptBackend,
) -> dict[str, Callable[[], object]]:
    return {
        "Merge upstream": workflow.merge,
        "Switch branch": workflow.checkout,
        "Create branch": workflow.create,
        "Backup local files": workflow.backup,
        "Restore local files": workflow.restore,
        "Status": workflow.status,
        "PR Operations": lambda: run_pr_menu(backend, workflow.prompter),
    }


def run_main_menu(workflow: Workflow, backend: GhBackend | HelperScriptBackend) -> None:
    """Loop over the main menu until Exit. Failed actions are reported, not fatal."""
    require_cmd("gum")
    prompter = workflow.prompter
    actions = main_menu_actions(workflow, backend)

    while True:
        console.header(MENU_TITLE)
        choice = prompter.choose("Select action:", [*actions, EXIT])
        if not choice or choice == EXIT:
            console.info("Goodbye!")
            return

        try:
            actions[choice]()
        except WorkflowError as e:
            for line in str(e).splitlines():
                console.error(line)

        click.echo()
        click.pause("Press Enter to continue...")
