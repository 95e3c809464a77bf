from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Sequence

from ...domain.errors import InternalError, UnavailableError
from ...domain.models import GitInfo


LOG = logging.getLogger(__name__)


class GitClient:
    """
    Thin wrapper over the `git` binary for repository metadata and diffs.
    """

    def __init__(self, repo_path: Path) -> None:
        self.repo_path = repo_path

    def _run(self, args: Sequence[str]) -> str:
        command = ["git", *args]
        LOG.debug("Running %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                cwd=self.repo_path,
            )
        except FileNotFoundError as exc:
            raise UnavailableError("git is not installed in the system") from exc
        return result.stdout.strip()

    def is_repo(self) -> bool:
        try:
            self._run(["rev-parse", "--is-inside-work-tree"])
        except subprocess.CalledProcessError:
            return False
        return True

    def current_commit_short(self) -> str:
        try:
            return self._run(["rev-parse", "--short", "HEAD"])
        except subprocess.CalledProcessError as exc:
            raise InternalError(f"Failed to get short commit hash: {exc.stderr}") from exc

    def current_branch(self) -> str:
        try:
            return self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        except subprocess.CalledProcessError as exc:
            raise InternalError(f"Failed to get current branch: {exc.stderr}") from exc

    def info(self) -> GitInfo:
        if not self.is_repo():
            return GitInfo(is_repo=False)
        return GitInfo(
            is_repo=True,
            current_commit=self.current_commit_short(),
            current_branch=self.current_branch(),
        )

    def diff_files(self, base: str, target: str = "") -> List[str]:
        """
        List paths added, deleted, or modified between two refs.

        An empty `target` diffs `base` against the working tree.
        """
        revision = f"{base}..{target}" if target else base
        try:
            output = self._run(["diff", "--name-only", "--diff-filter=ADM", revision])
        except subprocess.CalledProcessError as exc:
            raise InternalError(f"Failed to get git diff: {exc.stderr}") from exc
        return [line for line in output.splitlines() if line.strip()]
