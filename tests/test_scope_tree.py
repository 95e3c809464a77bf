from __future__ import annotations

import random

import pytest

from coderunner.domain.tree import DirectoryNode, FileMarker, ScopeTree


def test_insert_creates_ancestor_directories() -> None:
    tree = ScopeTree()
    tree.insert("src/pkg/main.go", is_file=True)

    src = tree.root.children["src"]
    assert isinstance(src, DirectoryNode)
    pkg = src.children["pkg"]
    assert isinstance(pkg, DirectoryNode)
    assert pkg.children["main.go"] == FileMarker(included=True)


def test_insert_is_idempotent() -> None:
    tree = ScopeTree()
    tree.insert("a/b.txt", is_file=True)
    tree.insert("a/b.txt", is_file=True)
    tree.insert("a", is_file=False)

    assert tree.to_dict() == {"a": {"b.txt": True}}


def test_insert_directory_only_creates_empty_directory() -> None:
    tree = ScopeTree()
    tree.insert("empty/dir", is_file=False)

    assert tree.to_dict() == {"empty": {"dir": {}}}
    assert tree.collect_included_paths() == []
    assert tree.render() == []


def test_collect_included_paths_skips_false_markers_and_sorts() -> None:
    tree = ScopeTree.from_dict({"src": {"b.go": True, "a.go": True, "c.go": False}, "README.md": True})

    assert tree.collect_included_paths() == ["README.md", "src/a.go", "src/b.go"]


def test_from_dict_drops_unexpected_shapes() -> None:
    tree = ScopeTree.from_dict({"a.go": True, "weird": 3, "also": None, "list": [1], "dir": {"x": "yes", "y": True}})

    assert tree.collect_included_paths() == ["a.go", "dir/y"]


def test_from_dict_with_non_object_yields_empty_tree() -> None:
    assert ScopeTree.from_dict(True).collect_included_paths() == []
    assert ScopeTree.from_dict(None).to_dict() == {}


def test_has_included_descendant() -> None:
    tree = ScopeTree.from_dict({"a": {"b": {"c": False}}, "d": {"e": {"f": True}}})

    assert not tree.has_included_descendant(tree.root.children["a"])
    assert tree.has_included_descendant(tree.root.children["d"])
    assert tree.has_included_descendant()


def test_render_hides_directories_without_included_files() -> None:
    tree = ScopeTree.from_dict({"a": {"b": False}})

    assert tree.render() == []
    assert tree.collect_included_paths() == []


def test_render_single_nested_file() -> None:
    tree = ScopeTree.from_dict({"a": {"b": True}})

    assert tree.render() == ["a", "└── b"]


def test_render_uses_connectors_and_continuations() -> None:
    tree = ScopeTree()
    for path in ["src/app/main.go", "src/app/util.go", "src/lib/io.go", "src/z.go", "go.mod"]:
        tree.insert(path, is_file=True)
    tree.root.children["src"].children["skipped.go"] = FileMarker(included=False)  # type: ignore[union-attr]

    assert tree.render() == [
        "go.mod",
        "src",
        "├── app",
        "│   ├── main.go",
        "│   └── util.go",
        "├── lib",
        "│   └── io.go",
        "└── z.go",
    ]


def test_round_trip_preserves_markers() -> None:
    raw = {"src": {"a.go": True, "b.go": False, "empty": {}}}

    assert ScopeTree.from_dict(ScopeTree.from_dict(raw).to_dict()).to_dict() == raw


@pytest.mark.parametrize("seed", range(30))
def test_round_trip_after_random_inserts(seed: int) -> None:
    rng = random.Random(seed)
    tree = ScopeTree()
    for _ in range(rng.randint(1, 30)):
        parts = [rng.choice(["src", "lib", "x", "main.go", "README.md"]) for _ in range(rng.randint(1, 4))]
        tree.insert("/".join(parts), is_file=rng.random() < 0.7)

    copy = ScopeTree.from_dict(tree.to_dict())

    assert copy == tree
    assert copy.collect_included_paths() == tree.collect_included_paths()
    assert copy.render() == tree.render()
