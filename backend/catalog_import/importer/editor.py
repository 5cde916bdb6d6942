"""Pure editing operations over the import forest.

Each operation takes a forest and returns a forest; the input is never
mutated. When an operation changes nothing, the input forest itself is
returned.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterator

from catalog_import.importer.types import Forest, ImportNode, TreeStats

NodeTransform = Callable[[ImportNode], ImportNode]


def iter_nodes(forest: Forest) -> Iterator[ImportNode]:
    """Depth-first, pre-order traversal in sibling order."""
    for node in forest:
        yield node
        yield from iter_nodes(node.children)


def find_node(forest: Forest, node_id: str) -> ImportNode | None:
    for node in iter_nodes(forest):
        if node.id == node_id:
            return node
    return None


def count_nodes(forest: Forest) -> int:
    return sum(1 for _ in iter_nodes(forest))


def subtree_size(forest: Forest, node_id: str) -> int:
    node = find_node(forest, node_id)
    if node is None:
        return 0
    return 1 + count_nodes(node.children)


def selected_node(forest: Forest) -> ImportNode | None:
    return next((node for node in iter_nodes(forest) if node.selected), None)


def forest_stats(forest: Forest) -> TreeStats:
    stats = TreeStats()
    for node in iter_nodes(forest):
        if node.level == "stage":
            stats.stages += 1
        elif node.level == "courseType":
            stats.types += 1
        elif node.level == "lecon":
            stats.lecons += 1
        elif node.level == "heading":
            stats.headings += 1
        else:
            stats.files += 1
    return stats


def _update(forest: Forest, node_id: str, transform: NodeTransform) -> Forest:
    changed = False
    result: list[ImportNode] = []
    for node in forest:
        if node.id == node_id:
            updated = transform(node)
        else:
            children = _update(node.children, node_id, transform)
            updated = node if children is node.children else replace(node, children=children)
        changed = changed or updated is not node
        result.append(updated)
    return tuple(result) if changed else forest


def _map_all(forest: Forest, transform: NodeTransform) -> Forest:
    changed = False
    result: list[ImportNode] = []
    for node in forest:
        children = _map_all(node.children, transform)
        updated = transform(node if children is node.children else replace(node, children=children))
        changed = changed or updated is not node
        result.append(updated)
    return tuple(result) if changed else forest


def toggle_expand(forest: Forest, node_id: str) -> Forest:
    def _toggle(node: ImportNode) -> ImportNode:
        if node.is_file:
            return node
        return replace(node, expanded=not node.expanded)

    return _update(forest, node_id, _toggle)


def rename(forest: Forest, node_id: str, new_name: str) -> Forest:
    """Rename a node; blank names leave the forest untouched."""
    name = (new_name or "").strip()
    if not name:
        return forest

    def _rename(node: ImportNode) -> ImportNode:
        return node if node.name == name else replace(node, name=name)

    return _update(forest, node_id, _rename)


def delete(forest: Forest, node_id: str) -> Forest:
    """Remove a node and its whole subtree."""
    changed = False
    result: list[ImportNode] = []
    for node in forest:
        if node.id == node_id:
            changed = True
            continue
        children = delete(node.children, node_id)
        if children is not node.children:
            changed = True
            node = replace(node, children=children)
        result.append(node)
    return tuple(result) if changed else forest


def select(forest: Forest, node_id: str) -> Forest:
    """Mark exactly ``node_id`` as selected across the whole forest."""
    if find_node(forest, node_id) is None:
        return forest

    def _select(node: ImportNode) -> ImportNode:
        wanted = node.id == node_id
        return node if node.selected == wanted else replace(node, selected=wanted)

    return _map_all(forest, _select)


def _set_expanded(forest: Forest, expanded: bool) -> Forest:
    def _apply(node: ImportNode) -> ImportNode:
        if node.is_file or node.expanded == expanded:
            return node
        return replace(node, expanded=expanded)

    return _map_all(forest, _apply)


def expand_all(forest: Forest) -> Forest:
    return _set_expanded(forest, True)


def collapse_all(forest: Forest) -> Forest:
    return _set_expanded(forest, False)


__all__ = [
    "iter_nodes",
    "find_node",
    "count_nodes",
    "subtree_size",
    "selected_node",
    "forest_stats",
    "toggle_expand",
    "rename",
    "delete",
    "select",
    "expand_all",
    "collapse_all",
]
