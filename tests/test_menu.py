from __future__ import annotations

from unittest.mock import Mock, call

import pytest

from forkflow.errors import BackupError
from forkflow.menu import run_main_menu, run_pr_menu
from forkflow.prompts import Prompter


@pytest.fixture(autouse=True)
def gum_available(monkeypatch):
    monkeypatch.setattr("forkflow.menu.require_cmd", lambda name: None)


def make_workflow(choices):
    workflow = Mock()
    workflow.prompter = Mock(spec=Prompter)
    workflow.prompter.choose.side_effect = choices
    return workflow


def test_main_menu_runs_action_then_exits(capsys):
    workflow = make_workflow(["Status", "Exit"])

    run_main_menu(workflow, Mock())

    workflow.status.assert_called_once_with()
    workflow.merge.assert_not_called()
    assert "Goodbye!" in capsys.readouterr().out


def test_main_menu_cancel_exits():
    workflow = make_workflow([None])

    run_main_menu(workflow, Mock())

    assert workflow.prompter.choose.call_count == 1


def test_main_menu_reports_errors_and_continues(capsys):
    workflow = make_workflow(["Restore local files", "Merge upstream", "Exit"])
    workflow.restore.side_effect = BackupError("Backup branch missing\nRun backup first")

    run_main_menu(workflow, Mock())

    workflow.merge.assert_called_once_with()
    err = capsys.readouterr().err
    assert "[ERROR] Backup branch missing" in err
    assert "[ERROR] Run backup first" in err


def test_pr_menu_posts_comment():
    prompter = Mock(spec=Prompter)
    prompter.choose.return_value = "Post comment"
    prompter.input.return_value = "Looks good"
    prompter.confirm.return_value = False
    backend = Mock()

    run_pr_menu(backend, prompter)

    backend.check.assert_called_once_with()
    backend.run.assert_called_once_with("comment", "Looks good")


def test_pr_menu_reply_inline_shows_threads_first():
    prompter = Mock(spec=Prompter)
    prompter.choose.return_value = "Reply to inline comment"
    prompter.input.side_effect = ["101", "Fixed"]
    prompter.confirm.return_value = False
    backend = Mock()

    run_pr_menu(backend, prompter)

    assert backend.run.call_args_list == [call("respond"), call("reply-inline", "101", "Fixed")]


def test_pr_menu_skips_empty_body_and_loops():
    prompter = Mock(spec=Prompter)
    prompter.choose.side_effect = ["Reply to review", "View PR details", "Back to main menu"]
    prompter.input.return_value = None
    prompter.confirm.return_value = True
    backend = Mock()

    run_pr_menu(backend, prompter)

    backend.run.assert_called_once_with("view")
