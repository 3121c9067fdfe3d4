import logging
import os
import shlex
import shutil

import click

from aic.constants import FALLBACK_EDITORS
from aic.errors import EditorError

logger = logging.getLogger(__name__)


def _is_available(command: str) -> bool:
    try:
        program = shlex.split(command)[0]
    except (ValueError, IndexError):
        return False
    return shutil.which(program) is not None


def resolve_editor(environ=None) -> str:
    """
    Picks the editor command: $EDITOR when it can be found on PATH,
    then vim, vi and nano in that order.
    """
    environ = os.environ if environ is None else environ
    preferred = environ.get("EDITOR", "").strip()
    if preferred and _is_available(preferred):
        return preferred
    if preferred:
        logger.warning(f"EDITOR '{preferred}' not found on PATH, falling back")

    for candidate in FALLBACK_EDITORS:
        if shutil.which(candidate):
            return candidate
    return FALLBACK_EDITORS[-1]


class MessageEditor:
    """Opens the commit message in an external editor and returns the result."""

    def __init__(self, editor: str | None = None):
        self.editor = editor

    def edit(self, text: str) -> str:
        editor = self.editor or resolve_editor()
        logger.info(f"Opening editor '{editor}'")
        try:
            edited = click.edit(
                text=text, editor=editor, require_save=False, extension=".txt"
            )
        except click.ClickException as e:
            raise EditorError(
                f"Failed to open editor ({editor}): {e.format_message()}"
            ) from e
        return text if edited is None else edited
