"""Hierarchical tree assembly with bottom-up stat aggregation."""

from collections.abc import Iterator
from pathlib import Path

from loguru import logger

from contextscan.core.cancellation import CancellationToken
from contextscan.core.models import CacheEntry, FileNode
from contextscan.core.types import CandidatePath


def _sort_key(node: FileNode) -> tuple[bool, str, str]:
    # Files before directories, then case-insensitive name
    return (node.is_directory, node.name.lower(), node.name)


def finalize_node(node: FileNode) -> None:
    """Sort children and recompute a directory's totals, post-order.

    The totals are recomputed from scratch on every call, so the aggregation
    invariant holds for the whole subtree afterwards.
    """
    if not node.is_directory:
        return

    for child in node.children:
        finalize_node(child)

    node.children.sort(key=_sort_key)
    node.line_count = sum(child.line_count for child in node.children)
    node.token_count = sum(child.token_count for child in node.children)
    node.size_bytes = sum(child.size_bytes for child in node.children)


def iter_nodes(node: FileNode) -> Iterator[FileNode]:
    """Depth-first pre-order walk over a tree."""
    yield node
    for child in node.children:
        yield from iter_nodes(child)


def _make_leaf(candidate: CandidatePath, cache_map: dict[str, CacheEntry]) -> FileNode:
    path_key = candidate.key
    name = candidate.path.name or path_key
    if candidate.is_directory:
        return FileNode(path=path_key, name=name, is_directory=True)
    return FileNode.from_cache_entry(path_key, name, cache_map.get(path_key))


def build_tree(
    root: Path,
    candidates: list[CandidatePath],
    cache_map: dict[str, CacheEntry],
    cancel_token: CancellationToken | None = None,
) -> FileNode:
    """Assemble candidates into a sorted, aggregated tree rooted at ``root``.

    Nodes live in an arena keyed by path while the tree is built. A node is
    attached only when its parent directory was itself attached; when an
    intermediate directory is missing from the candidates (e.g. it was
    ignored while a descendant was not), that node and everything under it
    are dropped.

    Args:
        root: Scan root
        candidates: Final candidate list
        cache_map: Stats for files; files without an entry get zeros
        cancel_token: Optional token; insertion stops once it is cancelled

    Returns:
        The finalized root node
    """
    root_key = str(root)
    root_node = FileNode(path=root_key, name=root.name or root_key, is_directory=True)

    # Arena of attached directories, keyed by path
    directories: dict[Path, FileNode] = {root: root_node}
    attached: set[str] = {root_key}
    dropped = 0

    for candidate in sorted(candidates, key=lambda c: c.path):
        if cancel_token is not None and cancel_token.is_cancelled:
            logger.warning("Cancellation detected during tree insertion")
            break

        path = candidate.path
        if path == root or candidate.key in attached:
            continue
        try:
            path.relative_to(root)
        except ValueError:
            continue

        parent = directories.get(path.parent)
        if parent is None:
            dropped += 1
            continue

        node = _make_leaf(candidate, cache_map)
        parent.children.append(node)
        attached.add(candidate.key)
        if node.is_directory:
            directories[path] = node

    if dropped:
        logger.debug(f"Dropped {dropped} nodes whose parent directory was not scanned")

    finalize_node(root_node)
    return root_node
