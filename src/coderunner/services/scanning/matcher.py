from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Union


LOG = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def normalize_extension(ext: str) -> str:
    ext = ext.strip()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def file_extension(name: str) -> str:
    """Everything from the last dot of the basename on; `.bashrc` is its own extension."""
    idx = name.rfind(".")
    return name[idx:] if idx >= 0 else ""


def load_ignore_rules(ignore_file: Path) -> List[str]:
    """
    Read rules from a `.gitignore`-style file.

    Blank lines and `#` comments are dropped. A trailing comment is only
    removed when the `#` follows whitespace, so rules like `.#*` survive.
    """
    if not ignore_file.exists():
        return []

    rules: List[str] = []
    with ignore_file.open("r", encoding="utf-8", errors="ignore") as handle:
        for raw in handle:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            for marker in (" #", "\t#"):
                idx = line.find(marker)
                if idx >= 0:
                    line = line[:idx].strip()
                    break
            if line:
                rules.append(line)
    return rules


class PathMatcher:
    """
    Decides whether a path is left out of a scope.

    Rules are checked in order and the first match wins; there is no `!`
    negation, so nothing can pull a path back in once a rule matched it.
    """

    def __init__(
        self,
        root: PathLike,
        rules: Sequence[str] = (),
        allowed_extensions: Optional[Iterable[str]] = None,
    ) -> None:
        self.root = Path(root)
        self.rules: tuple[str, ...] = tuple(rule for rule in rules if rule)
        self.allowed_extensions: Set[str] = {
            normalize_extension(ext) for ext in (allowed_extensions or ()) if ext.strip()
        }

    @classmethod
    def for_root(
        cls,
        root: PathLike,
        default_rules: Sequence[str],
        allowed_extensions: Optional[Iterable[str]] = None,
        ignore_file: str = ".gitignore",
    ) -> "PathMatcher":
        root_path = Path(root)
        extra = load_ignore_rules(root_path / ignore_file)
        if extra:
            LOG.debug("Loaded %d ignore rules from %s", len(extra), root_path / ignore_file)
        return cls(root_path, list(default_rules) + extra, allowed_extensions)

    def add_allowed_extension(self, ext: str) -> None:
        self.allowed_extensions.add(normalize_extension(ext))

    def remove_allowed_extension(self, ext: str) -> None:
        self.allowed_extensions.discard(normalize_extension(ext))

    def should_ignore(self, path: PathLike, is_dir: Optional[bool] = None) -> bool:
        full = Path(path)
        if not full.is_absolute() and not self._is_under_root(full):
            full = self.root / full
        base = full.name

        if base in self.rules:
            return True

        try:
            rel_path = full.relative_to(self.root).as_posix()
        except ValueError:
            return False

        if is_dir is None:
            # Paths missing on disk (deleted in a diff) are judged as files.
            is_dir = full.is_dir()

        if not is_dir and self.allowed_extensions:
            if file_extension(base) not in self.allowed_extensions:
                return True

        return any(self._rule_matches(rule, rel_path, base) for rule in self.rules)

    def _is_under_root(self, path: Path) -> bool:
        if self.root == Path("."):
            return False
        try:
            path.relative_to(self.root)
        except ValueError:
            return False
        return True

    @staticmethod
    def _rule_matches(rule: str, rel_path: str, base: str) -> bool:
        if rule.startswith("*/"):
            rule = rule[2:]

        if rule.endswith("/*"):
            directory = rule[:-1]
            return rel_path.startswith(directory)

        if rule.startswith("./"):
            rule = rule[2:]
        if not rule:
            return False

        if rule == rel_path:
            return True

        if rule.startswith("*."):
            ext = rule[1:]
            return rel_path.endswith(ext) or base.endswith(ext)

        if rule.endswith("/"):
            return rel_path == rule[:-1] or rel_path.startswith(rule)

        if "*" in rule:
            remaining = rel_path
            for fragment in rule.split("*"):
                if not fragment:
                    continue
                idx = remaining.find(fragment)
                if idx == -1:
                    break
                remaining = remaining[idx + len(fragment):]
            else:
                return True

        return rel_path.startswith(rule)
