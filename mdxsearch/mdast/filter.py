from __future__ import annotations

from typing import Callable

from .nodes import Node


Predicate = Callable[[Node], bool]


def filter_tree(tree: Node, predicate: Predicate) -> Node | None:
    """Return a copy of `tree` without the nodes matching `predicate`.

    A removed node takes its whole subtree with it; children are never
    promoted. A parent that had children and loses all of them is removed
    too. Returns None when nothing is left of the root.
    """
    kept = _filter_node(tree, predicate)
    if kept is None or not kept.children:
        return None
    return kept


def _filter_node(node: Node, predicate: Predicate) -> Node | None:
    if predicate(node):
        return None

    children: list[Node] = []
    for child in node.children:
        kept = _filter_node(child, predicate)
        if kept is not None:
            children.append(kept)

    if node.children and not children:
        return None

    return Node(kind=node.kind, children=children, value=node.value, attrs=dict(node.attrs))
