from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Optional

from ...config.settings import RunnerSettings
from ...domain.errors import InternalError, UnavailableError
from ...domain.models import GitInfo, Scope
from ..git.client import GitClient
from .matcher import PathMatcher


LOG = logging.getLogger(__name__)


class ScopeBuilder:
    """
    Populates a scope either from the whole working tree or from a git diff.

    Both strategies assemble the complete tree in memory before returning;
    nothing is written to disk here, so an interrupted scan never leaves a
    half-built scope file behind.
    """

    def __init__(
        self,
        root: Path,
        git: GitClient,
        settings: RunnerSettings,
        allowed_extensions: Optional[Iterable[str]] = None,
    ) -> None:
        self.root = root
        self.git = git
        self.settings = settings
        self.matcher = PathMatcher.for_root(root, settings.ignore_patterns, allowed_extensions)

    def _require_repo(self) -> GitInfo:
        info = self.git.info()
        if not info.is_repo:
            raise UnavailableError(f"{self.root} is not inside a git repository")
        return info

    def full_scan(self, scope_name: str) -> Scope:
        info = self._require_repo()
        scope = Scope(name=scope_name, base_commit=info.current_commit, target_commit=info.current_commit)

        def _on_error(exc: OSError) -> None:
            raise InternalError(f"Error accessing path {exc.filename}") from exc

        for dirpath, dirnames, filenames in os.walk(self.root, onerror=_on_error):
            current = Path(dirpath)

            # Pruning in place stops os.walk from descending.
            kept = []
            for dirname in sorted(dirnames):
                if self.matcher.should_ignore(current / dirname, is_dir=True):
                    LOG.debug("Pruning %s", current / dirname)
                    continue
                kept.append(dirname)
            dirnames[:] = kept

            for filename in sorted(filenames):
                candidate = current / filename
                if self.matcher.should_ignore(candidate, is_dir=False):
                    continue
                scope.add(self._relative(candidate), is_file=True)

        LOG.info("Full scan of %s selected %d files", self.root, len(scope.tree))
        return scope

    def diff_scan(self, scope_name: str, base: str, target: str = "") -> Scope:
        """
        Build a scope from the files added, modified, or deleted between `base`
        and `target` (the working tree when `target` is empty).

        Deleted files stay in the scope; readers skip them when they are gone.
        """
        info = self._require_repo()
        changed = self.git.diff_files(base, target)

        scope = Scope(
            name=scope_name,
            base_commit=base,
            target_commit=target or info.current_commit,
        )
        for entry in changed:
            entry = entry.strip().replace("\\", "/")
            if not entry:
                continue
            if self.matcher.should_ignore(self.root / entry):
                continue
            scope.add(entry, is_file=True)

        LOG.info("Diff scan %s..%s selected %d files", base, target or "worktree", len(scope.tree))
        return scope

    def _relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()
