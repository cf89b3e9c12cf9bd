import logging
import os
import shlex
import subprocess
import tempfile
from pathlib import Path

from fccli.exceptions import FcCliError

logger = logging.getLogger(__name__)

DEFAULT_EDITOR = 'vi'


class EditorError(FcCliError):
    pass


def get_editor(editor: str = None) -> list[str]:
    """Command line for the text editor: `editor` if given, else `$VISUAL`,
    else `$EDITOR`, else `vi`."""
    command = editor or os.environ.get('VISUAL') or os.environ.get('EDITOR') or DEFAULT_EDITOR
    return shlex.split(command)


def edit_text(text: str, editor: str = None, suffix: str = '.ttl') -> str:
    """Open `text` in a text editor, wait for the editor to exit, and return the
    edited text. Raises `EditorError` if the editor cannot be run or exits with
    a non-zero status."""
    fd, tmp_path = tempfile.mkstemp(suffix=suffix, prefix='fccli-')
    try:
        with os.fdopen(fd, 'w') as fh:
            fh.write(text)
        command = [*get_editor(editor), tmp_path]
        logger.debug(f'Running editor: {shlex.join(command)}')
        try:
            proc = subprocess.run(command)
        except OSError as e:
            raise EditorError(f'Unable to run editor {command[0]}: {e}') from e
        if proc.returncode != 0:
            raise EditorError(f'Editor {command[0]} exited with status {proc.returncode}')
        return Path(tmp_path).read_text()
    finally:
        os.unlink(tmp_path)
