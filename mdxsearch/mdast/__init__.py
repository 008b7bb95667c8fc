"""Structural tree for Markdown with embedded components: parse, filter, split, serialize."""
from .filter import filter_tree
from .nodes import COMPONENT_KINDS, Node, NodeKind, is_component, is_heading, root, to_plain_text, u
from .parser import parse
from .serializer import to_markdown
from .split import split_tree_by

__all__ = [
    "COMPONENT_KINDS",
    "Node",
    "NodeKind",
    "filter_tree",
    "is_component",
    "is_heading",
    "parse",
    "root",
    "split_tree_by",
    "to_markdown",
    "to_plain_text",
    "u",
]
