from __future__ import annotations

import subprocess
from typing import Dict, List, Optional

from coderunner.domain.models import GitInfo
from coderunner.services.llm.base import LLMClientError, RateLimitedError


class DummyRepo:
    """
    Minimal git repo stub.

    Tests can inject predictable stdout responses so we avoid calling the real git binary.
    """

    def __init__(self) -> None:
        self.is_repo = True
        self.branch = "main"
        self.commit = "abc1234"
        self.diff_output = ""
        self.commands: List[str] = []

    def set_commit(self, sha: str) -> None:
        self.commit = sha

    # Invoked via monkeypatched subprocess.run in tests.
    def run(self, args: List[str], **kwargs: object):
        cmd = " ".join(args)
        self.commands.append(cmd)
        if cmd.endswith("rev-parse --is-inside-work-tree"):
            if not self.is_repo:
                raise subprocess.CalledProcessError(128, args, stderr="not a git repository")
            return _CompletedProcess("true")
        if cmd.endswith("rev-parse --short HEAD"):
            return _CompletedProcess(self.commit)
        if cmd.endswith("rev-parse --abbrev-ref HEAD"):
            return _CompletedProcess(self.branch)
        if cmd.startswith("git diff --name-only --diff-filter=ADM"):
            return _CompletedProcess(self.diff_output)

        raise AssertionError(f"Unexpected command {cmd}")


class _CompletedProcess:
    def __init__(self, stdout: str) -> None:
        self.stdout = stdout
        self.stderr = ""


class StubGit:
    """In-memory stand-in for `GitClient`."""

    def __init__(self, commit: str = "abc1234", diff: Optional[List[str]] = None, is_repo: bool = True) -> None:
        self.commit = commit
        self.diff = diff or []
        self.is_repo = is_repo
        self.diff_calls: List[tuple] = []

    def info(self) -> GitInfo:
        if not self.is_repo:
            return GitInfo(is_repo=False)
        return GitInfo(is_repo=True, current_commit=self.commit, current_branch="main")

    def diff_files(self, base: str, target: str = "") -> List[str]:
        self.diff_calls.append((base, target))
        return list(self.diff)


class StubLLMClient:
    """
    Records prompts and replies from a scripted queue.

    Queue entries that are exceptions are raised instead of returned.
    """

    def __init__(self, replies: Optional[List[object]] = None, default: str = "ok") -> None:
        self.replies = list(replies or [])
        self.default = default
        self.prompts: List[str] = []
        self.closed = 0

    def prompt(self, text: str) -> str:
        self.prompts.append(text)
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return str(reply)
        return self.default

    def close(self) -> None:
        self.closed += 1


def throttled(times: int) -> List[object]:
    return [RateLimitedError("429 Too Many Requests") for _ in range(times)]


def failing() -> List[object]:
    return [LLMClientError("500 Internal Server Error")]


class FakeClock:
    """Manual clock; `sleep` advances time instead of blocking."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def write_tree(root, files: Dict[str, object]) -> None:
    """Create files under `root`; bytes values are written verbatim."""
    for rel_path, content in files.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(str(content), encoding="utf-8")
