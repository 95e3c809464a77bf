from __future__ import annotations

from pathlib import Path

import pytest

from coderunner.config.settings import RunnerSettings
from coderunner.domain.errors import UnavailableError
from coderunner.services.scanning.builder import ScopeBuilder

from mocks import StubGit, write_tree


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    write_tree(
        root,
        {
            ".gitignore": "build/\n*.log\n",
            "main.go": "package main\n",
            "README.md": "# readme\n",
            "pkg/util.go": "package pkg\n",
            "pkg/util_test.go": "package pkg\n",
            "web/app.ts": "export {}\n",
            "node_modules/left-pad/index.js": "module.exports = 1\n",
            "build/out.o": b"\x00\x01",
            "debug.log": "noise\n",
            ".git/HEAD": "ref: refs/heads/main\n",
            ".coderunner/abc1234.old.json": "{}",
        },
    )
    return root


def test_full_scan_prunes_ignored_directories(repo: Path) -> None:
    builder = ScopeBuilder(repo, StubGit(), RunnerSettings())

    scope = builder.full_scan("all")

    assert scope.name == "all"
    assert scope.base_commit == "abc1234"
    # ".gitignore" falls under the ".git" prefix rule.
    assert scope.file_paths() == [
        "README.md",
        "main.go",
        "pkg/util.go",
        "pkg/util_test.go",
        "web/app.ts",
    ]
    assert "node_modules" not in scope.tree.root.children
    assert "build" not in scope.tree.root.children


def test_full_scan_honours_extension_allow_list(repo: Path) -> None:
    builder = ScopeBuilder(repo, StubGit(), RunnerSettings(), allowed_extensions=[".go"])

    scope = builder.full_scan("go-only")

    assert scope.file_paths() == ["main.go", "pkg/util.go", "pkg/util_test.go"]
    assert scope.tree.render() == ["main.go", "pkg", "├── util.go", "└── util_test.go"]


def test_full_scan_requires_git_repository(repo: Path) -> None:
    builder = ScopeBuilder(repo, StubGit(is_repo=False), RunnerSettings())

    with pytest.raises(UnavailableError):
        builder.full_scan("all")


def test_diff_scan_inserts_changed_files(repo: Path) -> None:
    git = StubGit(diff=["pkg\\util.go", "", "  web/app.ts  ", "debug.log", "removed/gone.go"])
    builder = ScopeBuilder(repo, git, RunnerSettings())

    scope = builder.diff_scan("changes", "main")

    assert git.diff_calls == [("main", "")]
    assert scope.base_commit == "main"
    assert scope.target_commit == "abc1234"
    # Deleted files stay in scope; the pipeline skips them later.
    assert scope.file_paths() == ["pkg/util.go", "removed/gone.go", "web/app.ts"]


def test_diff_scan_applies_extension_filter_to_deleted_files(repo: Path) -> None:
    git = StubGit(diff=["removed/gone.go", "removed/gone.py"])
    builder = ScopeBuilder(repo, git, RunnerSettings(), allowed_extensions=["py"])

    scope = builder.diff_scan("changes", "v1.0", "v1.1")

    assert git.diff_calls == [("v1.0", "v1.1")]
    assert scope.target_commit == "v1.1"
    assert scope.file_paths() == ["removed/gone.py"]
