from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


LOG = logging.getLogger(__name__)

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


@dataclass
class FileMarker:
    """Leaf of a scope tree. Only `included=True` puts the file in scope."""

    included: bool = True


@dataclass
class DirectoryNode:
    children: Dict[str, "ScopeNode"] = field(default_factory=dict)


ScopeNode = Union[DirectoryNode, FileMarker]


def node_from_raw(raw: Any) -> Optional[ScopeNode]:
    """
    Decode the persisted form of a node.

    Booleans become markers and objects become directories. Anything else
    (numbers, strings, null, lists) is hand-edit damage and is dropped.
    """
    if isinstance(raw, bool):
        return FileMarker(included=raw)
    if isinstance(raw, dict):
        directory = DirectoryNode()
        for key, value in raw.items():
            child = node_from_raw(value)
            if child is None:
                LOG.debug("Skipping unexpected scope entry %r (%s)", key, type(value).__name__)
                continue
            directory.children[str(key)] = child
        return directory
    return None


def node_to_raw(node: ScopeNode) -> Union[bool, Dict[str, Any]]:
    if isinstance(node, FileMarker):
        return node.included
    return {key: node_to_raw(child) for key, child in node.children.items()}


def has_included_descendant(node: ScopeNode) -> bool:
    if isinstance(node, FileMarker):
        return node.included
    return any(has_included_descendant(child) for child in node.children.values())


def _basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


class ScopeTree:
    """
    Hierarchical set of repository paths keyed by path segment.

    Directories are created on demand while inserting files, so every
    ancestor of an inserted file exists as a `DirectoryNode`.
    """

    def __init__(self, root: Optional[DirectoryNode] = None) -> None:
        self.root = root or DirectoryNode()

    def insert(self, path: str, is_file: bool) -> None:
        parts = [part for part in path.replace("\\", "/").split("/") if part and part != "."]
        if not parts:
            return

        node = self.root
        for part in parts[:-1]:
            child = node.children.get(part)
            if child is None:
                child = DirectoryNode()
                node.children[part] = child
            if not isinstance(child, DirectoryNode):
                LOG.debug("Cannot insert %s: %s is a file in this scope", path, part)
                return
            node = child

        last = parts[-1]
        if is_file:
            node.children[last] = FileMarker(included=True)
        elif last not in node.children:
            node.children[last] = DirectoryNode()

    def collect_included_paths(self) -> List[str]:
        paths: List[str] = []
        self._collect(self.root, "", paths)
        return paths

    def _collect(self, node: ScopeNode, current: str, paths: List[str]) -> None:
        if isinstance(node, FileMarker):
            if node.included and current:
                paths.append(current)
            return
        if not isinstance(node, DirectoryNode):
            return
        for key in sorted(node.children):
            child_path = f"{current}/{key}" if current else key
            self._collect(node.children[key], child_path, paths)

    def has_included_descendant(self, node: Optional[ScopeNode] = None) -> bool:
        return has_included_descendant(self.root if node is None else node)

    def render(self) -> List[str]:
        """
        Render the in-scope part of the tree as ASCII lines.

        Directories without any included file are hidden, keys are sorted, and
        the synthetic root prints no label of its own.
        """
        lines: List[str] = []
        self._render(self.root, prefix="", path="", lead="", lines=lines)
        return lines

    def _render(self, node: ScopeNode, prefix: str, path: str, lead: str, lines: List[str]) -> None:
        if isinstance(node, FileMarker):
            if node.included:
                lines.append(lead + _basename(path))
            return

        keys = sorted(key for key, child in node.children.items() if has_included_descendant(child))
        if path and keys:
            lines.append(lead + _basename(path))

        for index, key in enumerate(keys):
            is_last = index == len(keys) - 1
            if path:
                child_path = f"{path}/{key}"
                child_lead = prefix + (LAST_BRANCH if is_last else BRANCH)
                child_prefix = prefix + (SPACE if is_last else PIPE)
            else:
                child_path, child_lead, child_prefix = key, "", prefix
            self._render(node.children[key], child_prefix, child_path, child_lead, lines)

    # --- Serialization ----------------------------------------------------
    def to_dict(self) -> Dict[str, Any]:
        return node_to_raw(self.root)  # type: ignore[return-value]

    @classmethod
    def from_dict(cls, raw: Any) -> "ScopeTree":
        node = node_from_raw(raw)
        if not isinstance(node, DirectoryNode):
            LOG.debug("Scope files entry is not an object; starting from an empty tree")
            node = DirectoryNode()
        return cls(node)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScopeTree):
            return NotImplemented
        return self.root == other.root

    def __len__(self) -> int:
        return len(self.collect_included_paths())
