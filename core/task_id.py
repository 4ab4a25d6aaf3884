"""Task id extraction from a PDF's location.

Converted PDFs live at ``<root>/<TASKID>/result/<name>.pdf``, so the task
id is the name of the file's grandparent directory.
"""

import ntpath
import posixpath
import re
from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath
from typing import Optional, Union

_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:$")
_WINDOWS_PATH_PATTERN = re.compile(r"^[A-Za-z]:|\\")
_INVALID_NAMES = {"", ".", "..", "/", "\\"}


def _to_pure_path(file_path: str) -> PurePath:
    """Normalize using Windows rules when the string looks like a Windows path."""
    if _WINDOWS_PATH_PATTERN.search(file_path):
        return PureWindowsPath(ntpath.normpath(file_path))
    return PurePosixPath(posixpath.normpath(file_path))


def is_valid_task_id(task_id: Optional[str]) -> bool:
    """Reject blanks, relative markers, root separators and bare drive letters."""
    if task_id is None:
        return False
    trimmed = task_id.strip()
    if trimmed in _INVALID_NAMES:
        return False
    return not _DRIVE_PATTERN.match(trimmed)


def extract_task_id(file_path: Union[str, Path, None]) -> Optional[str]:
    """Return the grandparent directory name of file_path, or None.

    >>> extract_task_id("/data/U261EA21XXXXXX/result/hello.pdf")
    'U261EA21XXXXXX'
    >>> extract_task_id("/hello.pdf") is None
    True
    """
    if file_path is None:
        return None
    text = str(file_path)
    if not text.strip():
        return None

    path = _to_pure_path(text)
    if len(path.parents) < 2:
        return None

    candidate = path.parents[1].name
    return candidate if is_valid_task_id(candidate) else None
