import click
import pytest
from unittest.mock import patch

from aic.editor import MessageEditor, resolve_editor
from aic.errors import EditorError


def which_only(*available):
    return lambda program: f"/usr/bin/{program}" if program in available else None


@patch("aic.editor.shutil.which")
def test_editor_env_var_wins(mock_which):
    mock_which.side_effect = which_only("code", "vim")

    assert resolve_editor({"EDITOR": "code --wait"}) == "code --wait"


@patch("aic.editor.shutil.which")
def test_missing_editor_falls_back_to_vim(mock_which):
    mock_which.side_effect = which_only("vim", "nano")

    assert resolve_editor({"EDITOR": "does-not-exist"}) == "vim"


@patch("aic.editor.shutil.which")
def test_fallback_order(mock_which):
    mock_which.side_effect = which_only("vi", "nano")
    assert resolve_editor({}) == "vi"

    mock_which.side_effect = which_only("nano")
    assert resolve_editor({}) == "nano"


@patch("aic.editor.shutil.which", return_value=None)
def test_nothing_installed_still_returns_nano(mock_which):
    assert resolve_editor({}) == "nano"


@patch("aic.editor.click.edit")
def test_edit_returns_edited_text(mock_edit):
    mock_edit.return_value = "fix: better message\n"

    result = MessageEditor(editor="vim").edit("fix: message")

    assert result == "fix: better message\n"
    mock_edit.assert_called_once_with(
        text="fix: message", editor="vim", require_save=False, extension=".txt"
    )


@patch("aic.editor.click.edit", return_value=None)
def test_edit_unchanged_returns_original(mock_edit):
    assert MessageEditor(editor="vim").edit("fix: message") == "fix: message"


@patch("aic.editor.click.edit")
def test_editor_failure(mock_edit):
    mock_edit.side_effect = click.ClickException("vim: Editing failed")

    with pytest.raises(EditorError, match="vim"):
        MessageEditor(editor="vim").edit("fix: message")
