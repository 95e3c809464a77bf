from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

from ..domain.errors import InternalError, InvalidError, NotFoundError, UnavailableError


LOG = logging.getLogger(__name__)

BINARY_SNIFF_BYTES = 8000


def is_binary(content: bytes) -> bool:
    """Git's heuristic: a NUL byte in the first 8000 bytes. Empty is text."""
    if not content:
        return False
    return b"\x00" in content[:BINARY_SNIFF_BYTES]


def ensure_gitignore_entry(repo_path: Path, entry: str) -> bool:
    """
    Append `entry` to the repository's `.gitignore` unless already listed.

    Returns True when the file was changed.
    """
    if not entry.strip():
        raise InvalidError("directory name cannot be empty")

    gitignore = repo_path / ".gitignore"
    try:
        existing = gitignore.read_text(encoding="utf-8").splitlines() if gitignore.exists() else []
    except OSError as exc:
        raise InternalError("failed to read .gitignore content") from exc

    if any(line.strip() == entry for line in existing):
        return False

    lines: List[str] = list(existing)
    if lines and lines[-1] != "":
        lines.append("")
    lines.append(entry)

    try:
        gitignore.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as exc:
        raise InternalError("failed to write to .gitignore file") from exc
    LOG.info("Added %s to %s", entry, gitignore)
    return True


def _default_open_command(path: Path) -> List[str]:
    if sys.platform == "darwin":
        return ["open", str(path)]
    if sys.platform.startswith("win"):
        return ["cmd", "/c", "start", str(path)]
    if sys.platform.startswith("linux"):
        return ["xdg-open", str(path)]
    raise UnavailableError(f"Unsupported operating system: {sys.platform}")


def open_in_editor(path: Path, editor: Optional[str] = None) -> None:
    """
    Open `path` in `editor`, or with the platform's default handler.
    """
    if not path.exists():
        raise NotFoundError(f"File {path} not found")

    if editor:
        editor_path = shutil.which(editor)
        if editor_path is None:
            raise UnavailableError(f"{editor} is not installed in the system")
        command = [editor_path, str(path)]
    else:
        command = _default_open_command(path)

    try:
        subprocess.run(command, check=True)
    except FileNotFoundError as exc:
        raise UnavailableError(f"{command[0]} is not installed in the system") from exc
    except subprocess.CalledProcessError as exc:
        raise InternalError(f"Failed to open file {path} with {command[0]}") from exc
