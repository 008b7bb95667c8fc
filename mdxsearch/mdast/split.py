from __future__ import annotations

from typing import Callable

from .nodes import Node, root


def split_tree_by(tree: Node, predicate: Callable[[Node], bool]) -> list[Node]:
    """Split a tree's top-level children into consecutive root trees.

    Each node matching `predicate` starts a new tree; every other node is
    appended to the last tree. Content before the first match forms a
    leading tree of its own. Only top-level children are inspected.
    """
    trees: list[Node] = []
    for node in tree.children:
        last = trees[-1] if trees else None
        if last is None or predicate(node):
            trees.append(root([node.clone()]))
            continue
        last.children.append(node.clone())
    return trees
