from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import InvalidError
from .tree import ScopeTree


RESERVED_SCOPE_NAMES = frozenset({"context", "selected"})


def validate_scope_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidError("Scope name cannot be empty")
    if cleaned in RESERVED_SCOPE_NAMES:
        raise InvalidError(f"Scope name '{cleaned}' is reserved")
    if "/" in cleaned or "\\" in cleaned:
        raise InvalidError(f"Scope name '{cleaned}' cannot contain path separators")
    return cleaned


@dataclass
class GitInfo:
    is_repo: bool
    current_commit: str = ""
    current_branch: str = ""


@dataclass
class Scope:
    """
    A named selection of repository files.

    Identity is (commit, name): the same name under two commits refers to two
    independent scope files. `base_commit`/`target_commit` only record where a
    diff-built scope came from.
    """

    name: str
    base_commit: str = ""
    target_commit: str = ""
    tree: ScopeTree = field(default_factory=ScopeTree)

    def add(self, path: str, is_file: bool = True) -> None:
        self.tree.insert(path, is_file)

    def file_paths(self) -> List[str]:
        return self.tree.collect_included_paths()

    def header(self) -> str:
        text = f"Scope (Base: {self.base_commit}"
        if self.target_commit:
            text += f", Target: {self.target_commit}"
        return text + ")"

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "baseCommit": self.base_commit}
        if self.target_commit:
            payload["targetCommit"] = self.target_commit
        payload["files"] = self.tree.to_dict()
        return payload

    @classmethod
    def from_dict(cls, raw: Any) -> "Scope":
        if not isinstance(raw, dict):
            raise InvalidError("Scope file must contain a JSON object")
        return cls(
            name=str(raw.get("name") or ""),
            base_commit=str(raw.get("baseCommit") or ""),
            target_commit=str(raw.get("targetCommit") or ""),
            tree=ScopeTree.from_dict(raw.get("files", {})),
        )


@dataclass
class CommitContext:
    """Per-commit pointer to the scope commands use when none is given."""

    selected_scope: str

    def to_dict(self) -> Dict[str, Any]:
        return {"selectedScope": self.selected_scope}

    @classmethod
    def from_dict(cls, raw: Any) -> "CommitContext":
        if not isinstance(raw, dict) or not isinstance(raw.get("selectedScope"), str):
            raise InvalidError("Commit context file is malformed")
        return cls(selected_scope=raw["selectedScope"])


@dataclass
class RunReport:
    processed: List[str] = field(default_factory=list)
    skipped_binary: List[str] = field(default_factory=list)
    skipped_missing: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.processed) + len(self.skipped_binary) + len(self.skipped_missing)
