"""Unit tests for tree assembly and aggregation."""

from pathlib import Path

from contextscan.core.cancellation import CancellationToken
from contextscan.core.models import CacheEntry, FileNode
from contextscan.core.types import CandidatePath
from contextscan.services.tree_builder import build_tree, finalize_node, iter_nodes


def _assert_aggregated(node: FileNode) -> None:
    if not node.is_directory:
        return
    for child in node.children:
        _assert_aggregated(child)
    assert node.line_count == sum(c.line_count for c in node.children)
    assert node.token_count == sum(c.token_count for c in node.children)
    assert node.size_bytes == sum(c.size_bytes for c in node.children)


def _dir(path: Path) -> CandidatePath:
    return CandidatePath(path, True)


def _file(path: Path) -> CandidatePath:
    return CandidatePath(path, False)


ROOT = Path("/work/project")


def _sample():
    candidates = [
        _dir(ROOT),
        _file(ROOT / "b.txt"),
        _dir(ROOT / "src"),
        _file(ROOT / "src" / "Zeta.py"),
        _file(ROOT / "src" / "alpha.py"),
        _dir(ROOT / "Assets"),
        _file(ROOT / "A.md"),
    ]
    cache_map = {
        str(ROOT / "b.txt"): CacheEntry("100", 10, 1, 2),
        str(ROOT / "src" / "Zeta.py"): CacheEntry("100", 30, 3, 6),
        str(ROOT / "src" / "alpha.py"): CacheEntry("100", 50, 5, 10),
        str(ROOT / "A.md"): CacheEntry("100", 7, 1, 1),
    }
    return candidates, cache_map


def test_aggregation_invariant_holds_for_every_directory():
    candidates, cache_map = _sample()
    tree = build_tree(ROOT, candidates, cache_map)

    _assert_aggregated(tree)
    assert tree.line_count == 10
    assert tree.token_count == 19
    assert tree.size_bytes == 97


def test_root_node_uses_directory_basename():
    tree = build_tree(ROOT, [_dir(ROOT)], {})
    assert tree.name == "project"
    assert tree.path == str(ROOT)
    assert tree.is_directory
    assert tree.children == []


def test_children_sorted_files_first_then_case_insensitive_name():
    candidates, cache_map = _sample()
    tree = build_tree(ROOT, candidates, cache_map)

    assert [c.name for c in tree.children] == ["A.md", "b.txt", "Assets", "src"]
    src = tree.children[-1]
    assert [c.name for c in src.children] == ["alpha.py", "Zeta.py"]


def test_every_candidate_appears_exactly_once():
    candidates, cache_map = _sample()
    tree = build_tree(ROOT, candidates + candidates, cache_map)

    paths = [node.path for node in iter_nodes(tree)]
    assert len(paths) == len(set(paths))
    assert set(paths) == {c.key for c in candidates}


def test_uncached_file_gets_zero_stats():
    tree = build_tree(ROOT, [_dir(ROOT), _file(ROOT / "new.txt")], {})
    [leaf] = tree.children
    assert (leaf.line_count, leaf.token_count, leaf.size_bytes) == (0, 0, 0)


def test_leaf_carries_cached_last_modified():
    candidates, cache_map = _sample()
    tree = build_tree(ROOT, candidates, cache_map)
    leaf = next(n for n in iter_nodes(tree) if n.name == "b.txt")
    assert leaf.last_modified == "100"


def test_orphaned_subtree_is_dropped():
    candidates = [
        _dir(ROOT),
        _file(ROOT / "keep.txt"),
        # Parent "logs" is not a candidate
        _file(ROOT / "logs" / "keep.log"),
    ]
    tree = build_tree(ROOT, candidates, {})
    assert [c.name for c in tree.children] == ["keep.txt"]


def test_paths_outside_root_are_skipped():
    tree = build_tree(ROOT, [_dir(ROOT), _file(Path("/elsewhere/x.txt"))], {})
    assert tree.children == []


def test_cancellation_stops_insertion_but_still_finalizes():
    token = CancellationToken()
    token.cancel()
    candidates, cache_map = _sample()

    tree = build_tree(ROOT, candidates, cache_map, token)

    assert tree.children == []
    assert tree.line_count == 0


def test_finalize_recomputes_totals_from_scratch():
    child = FileNode(path="/r/a", name="a", is_directory=False, line_count=2, size_bytes=5)
    root = FileNode(
        path="/r", name="r", is_directory=True, line_count=999, size_bytes=999, children=[child]
    )

    finalize_node(root)

    assert root.line_count == 2
    assert root.size_bytes == 5


def test_to_dict_shape():
    candidates, cache_map = _sample()
    data = build_tree(ROOT, candidates, cache_map).to_dict()

    assert set(data) == {
        "path",
        "name",
        "is_dir",
        "lines",
        "tokens",
        "size",
        "last_modified",
        "children",
    }
    assert data["is_dir"] is True
    assert data["children"][0]["name"] == "A.md"
