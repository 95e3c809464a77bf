from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..config.settings import RunnerSettings, get_settings
from ..domain.errors import InternalError, UnavailableError
from ..domain.models import RunReport, Scope, validate_scope_name
from ..persistence.store import ScopeStore
from ..services.files import ensure_gitignore_entry, is_binary, open_in_editor
from ..services.git.client import GitClient
from ..services.llm.base import LLMClientProtocol
from ..services.llm.factory import create_llm_client
from ..services.llm.invoker import RateLimitedInvoker, ResponseCallback
from ..services.scanning.builder import ScopeBuilder


LOG = logging.getLogger(__name__)

ClientFactory = Callable[[str, RunnerSettings], LLMClientProtocol]


class ScopeOrchestrator:
    """
    Coordinates scope commands: build, persist, select, inspect, and run.

    Each call builds fresh builder/invoker instances so no state leaks
    between the build phase and the prompt phase.
    """

    def __init__(
        self,
        settings: Optional[RunnerSettings] = None,
        repo_path: Path = Path("."),
        git: Optional[GitClient] = None,
        client_factory: ClientFactory = create_llm_client,
    ) -> None:
        self.settings = settings or get_settings()
        self.repo_path = repo_path
        self.git = git or GitClient(repo_path)
        storage_dir = self.settings.storage_dir
        if not storage_dir.is_absolute():
            storage_dir = repo_path / storage_dir
        self.store = ScopeStore(storage_dir, self.git)
        self.client_factory = client_factory

    # ------------------------------------------------------------------ Setup
    def initialize(self) -> None:
        """Make sure the storage directory exists and is git-ignored."""
        if not self.git.info().is_repo:
            raise UnavailableError("coderunner must be run inside a git repository")
        ensure_gitignore_entry(self.repo_path, self.settings.storage_dir.as_posix())
        self.store.ensure_root()

    # ------------------------------------------------------------------ Scopes
    def create_scope(
        self,
        name: str,
        base: Optional[str] = None,
        target: str = "",
        extensions: Iterable[str] = (),
    ) -> Tuple[Scope, Path]:
        name = validate_scope_name(name)
        builder = ScopeBuilder(self.repo_path, self.git, self.settings, allowed_extensions=extensions)
        if base:
            scope = builder.diff_scan(name, base, target)
        else:
            scope = builder.full_scan(name)

        path = self.store.save_scope(scope)
        self.store.select_scope(scope.name)
        LOG.info("Created scope %s with %d files", scope.name, len(scope.tree))
        return scope, path

    def list_scopes(self) -> List[str]:
        return self.store.list_scopes()

    def selected_scope_name(self) -> str:
        return self.store.load_context().selected_scope

    def select_scope(self, name: str) -> None:
        self.store.select_scope(name)

    def copy_selected_scope(self, target: str) -> Path:
        return self.store.copy_scope(self.selected_scope_name(), target)

    def delete_scope(self, name: str) -> Path:
        return self.store.delete_scope(name)

    def edit_selected_scope(self, editor: Optional[str] = None) -> Path:
        path = self.store.scope_path(self.selected_scope_name())
        open_in_editor(path, editor)
        return path

    def load_scope(self, name: Optional[str] = None) -> Scope:
        if name:
            return self.store.load_scope(name)
        return self.store.load_selected_scope()

    def render_scope(self, name: Optional[str] = None) -> List[str]:
        scope = self.load_scope(name)
        return [scope.header(), *scope.tree.render()]

    def files_content(self, name: Optional[str] = None) -> Dict[str, str]:
        """
        Read every included text file. Missing files are skipped, matching the
        prompt pipeline, since diff-built scopes can list deleted paths.
        """
        scope = self.load_scope(name)
        contents: Dict[str, str] = {}
        for rel_path in scope.file_paths():
            try:
                data = (self.repo_path / rel_path).read_bytes()
            except FileNotFoundError:
                LOG.info("Skipping %s: file no longer exists", rel_path)
                continue
            except OSError as exc:
                raise InternalError(f"Failed to read file: {rel_path}") from exc
            if is_binary(data):
                continue
            contents[rel_path] = data.decode("utf-8", errors="replace")
        return contents

    # ------------------------------------------------------------------ LLM
    def run_prompt(
        self,
        prompt: str,
        callback: ResponseCallback,
        scope_name: Optional[str] = None,
        model: Optional[str] = None,
    ) -> RunReport:
        scope = self.load_scope(scope_name)
        client = self.client_factory(model or self.settings.default_model, self.settings)
        invoker = RateLimitedInvoker(client, self.settings)
        try:
            return invoker.run(scope.tree, prompt, callback, root=self.repo_path)
        finally:
            close = getattr(client, "close", None)
            if callable(close):
                close()

    def save_response_callback(self) -> ResponseCallback:
        """Callback writing each response next to its file as `<path>.llm.md`."""

        def _save(rel_path: str, response: str) -> None:
            output = self.repo_path / f"{rel_path}.llm.md"
            output.write_text(response, encoding="utf-8")
            LOG.info("Response written to %s", output)

        return _save
