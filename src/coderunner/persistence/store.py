from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import Any, List, Protocol

from ..domain.errors import InternalError, InvalidError, NotFoundError, UnavailableError
from ..domain.models import CommitContext, GitInfo, Scope, validate_scope_name


LOG = logging.getLogger(__name__)

CONTEXT_NAME = "context"
EXTENSION = "json"


class CommitInfoProvider(Protocol):
    def info(self) -> GitInfo:  # pragma: no cover
        ...


class ScopeStore:
    """
    Commit-keyed persistence for scopes and the selected-scope pointer.

    Files live in `{root}/{short_commit}.{name}.json`; the pointer is
    `{root}/{short_commit}.context.json`. Keying on the commit keeps scopes
    from different checkouts apart.
    """

    def __init__(self, root: Path, git: CommitInfoProvider) -> None:
        self._lock = Lock()
        self.root = root
        self.git = git

    def ensure_root(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InternalError(f"failed to create directory {self.root}") from exc

    def current_commit(self) -> str:
        info = self.git.info()
        if not info.is_repo or not info.current_commit:
            raise UnavailableError("Not inside a git repository; scopes are keyed by commit")
        return info.current_commit

    # --- Paths ------------------------------------------------------------
    def commit_file_path(self, file_name: str) -> Path:
        return self.root / f"{self.current_commit()}.{file_name}.{EXTENSION}"

    def scope_path(self, name: str) -> Path:
        return self.commit_file_path(validate_scope_name(name))

    def context_path(self) -> Path:
        return self.commit_file_path(CONTEXT_NAME)

    # --- Raw JSON helpers -------------------------------------------------
    def _write_json(self, path: Path, payload: Any) -> None:
        """Write through a sibling temp file so a crash never truncates `path`."""
        self.ensure_root()
        data = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(data)
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, path)
            except OSError as exc:
                Path(tmp_name).unlink(missing_ok=True)
                raise InternalError(f"Error writing {path.name}") from exc

    def _read_json(self, path: Path, missing_message: str) -> Any:
        if not path.exists():
            raise NotFoundError(missing_message)
        try:
            with self._lock:
                text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InternalError(f"Error reading {path.name}") from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise InvalidError(f"Failed to parse {path.name}") from exc

    # --- Scopes -----------------------------------------------------------
    def save_scope(self, scope: Scope) -> Path:
        path = self.scope_path(scope.name)
        self._write_json(path, scope.to_dict())
        LOG.debug("Saved scope %s to %s", scope.name, path)
        return path

    def load_scope(self, name: str) -> Scope:
        path = self.scope_path(name)
        raw = self._read_json(path, f"Scope {name} doesn't exist")
        scope = Scope.from_dict(raw)
        if not scope.name:
            scope.name = name
        return scope

    def list_scopes(self) -> List[str]:
        if not self.root.exists():
            raise NotFoundError("No scopes found")
        prefix = f"{self.current_commit()}."
        suffix = f".{EXTENSION}"
        names: List[str] = []
        for entry in self.root.iterdir():
            file_name = entry.name
            if not entry.is_file() or not file_name.startswith(prefix) or not file_name.endswith(suffix):
                continue
            name = file_name[len(prefix):-len(suffix)]
            if name.strip() and name != CONTEXT_NAME:
                names.append(name)
        return sorted(names)

    def delete_scope(self, name: str) -> Path:
        """
        Remove a scope file. If it was the selected scope the pointer is
        cleared as well, so later lookups report that nothing is selected.
        """
        path = self.scope_path(name)
        if not path.exists():
            raise NotFoundError(f"File {path} not found")
        try:
            path.unlink()
        except OSError as exc:
            raise InternalError(f"Failed to delete {path}") from exc

        context_path = self.context_path()
        if context_path.exists():
            try:
                context = self.load_context()
            except InvalidError:
                context = None
            if context is None or context.selected_scope == name:
                context_path.unlink(missing_ok=True)
                LOG.info("Cleared selection pointer for deleted scope %s", name)
        return path

    def copy_scope(self, source: str, target: str) -> Path:
        target_path = self.scope_path(target)
        if target_path.exists():
            raise InvalidError(f"Target scope '{target}' already exists")
        scope = self.load_scope(source)
        scope.name = validate_scope_name(target)
        return self.save_scope(scope)

    # --- Selection pointer ------------------------------------------------
    def save_context(self, context: CommitContext) -> Path:
        path = self.context_path()
        self._write_json(path, context.to_dict())
        return path

    def load_context(self) -> CommitContext:
        raw = self._read_json(
            self.context_path(),
            "No commit context, create a new scope or select an existing one",
        )
        return CommitContext.from_dict(raw)

    def select_scope(self, name: str) -> CommitContext:
        self.load_scope(name)
        context = CommitContext(selected_scope=validate_scope_name(name))
        self.save_context(context)
        return context

    def load_selected_scope(self) -> Scope:
        context = self.load_context()
        return self.load_scope(context.selected_scope)
