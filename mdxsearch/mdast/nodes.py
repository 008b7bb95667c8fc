from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class NodeKind(str, Enum):
    ROOT = "root"

    # block prose
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE = "code"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    LIST_ITEM = "list_item"
    THEMATIC_BREAK = "thematic_break"
    HTML = "html"

    # inline prose
    TEXT = "text"
    EMPHASIS = "emphasis"
    STRONG = "strong"
    INLINE_CODE = "inline_code"
    BREAK = "break"
    LINK = "link"
    IMAGE = "image"

    # components
    MDXJS_ESM = "mdxjs_esm"
    MDX_JSX_FLOW_ELEMENT = "mdx_jsx_flow_element"
    MDX_JSX_TEXT_ELEMENT = "mdx_jsx_text_element"
    MDX_FLOW_EXPRESSION = "mdx_flow_expression"
    MDX_TEXT_EXPRESSION = "mdx_text_expression"


COMPONENT_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.MDXJS_ESM,
        NodeKind.MDX_JSX_FLOW_ELEMENT,
        NodeKind.MDX_JSX_TEXT_ELEMENT,
        NodeKind.MDX_FLOW_EXPRESSION,
        NodeKind.MDX_TEXT_EXPRESSION,
    }
)

# Kinds that hold children; the rest are leaves carrying `value`.
PARENT_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.ROOT,
        NodeKind.HEADING,
        NodeKind.PARAGRAPH,
        NodeKind.BLOCKQUOTE,
        NodeKind.LIST,
        NodeKind.LIST_ITEM,
        NodeKind.EMPHASIS,
        NodeKind.STRONG,
        NodeKind.LINK,
        NodeKind.MDX_JSX_FLOW_ELEMENT,
        NodeKind.MDX_JSX_TEXT_ELEMENT,
    }
)


@dataclass
class Node:
    """A single node of the structural tree.

    Ownership is strictly tree-shaped: a node appears in exactly one parent's
    `children` list. Use `clone()` rather than re-parenting a node into a
    second tree.
    """

    kind: NodeKind
    children: list["Node"] = field(default_factory=list)
    value: str | None = None
    attrs: dict[str, Any] = field(default_factory=dict)

    @property
    def is_parent(self) -> bool:
        return self.kind in PARENT_KINDS

    def clone(self) -> "Node":
        return Node(
            kind=self.kind,
            children=[c.clone() for c in self.children],
            value=self.value,
            attrs=dict(self.attrs),
        )

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.walk()


def u(kind: NodeKind, children: list[Node] | str | None = None, **attrs: Any) -> Node:
    """Small builder: `u(kind, [..])` for parents, `u(kind, "text")` for leaves."""
    if isinstance(children, str):
        return Node(kind=kind, value=children, attrs=attrs)
    return Node(kind=kind, children=list(children or []), attrs=attrs)


def root(children: list[Node] | None = None) -> Node:
    return u(NodeKind.ROOT, children or [])


def is_component(node: Node) -> bool:
    return node.kind in COMPONENT_KINDS


def is_heading(node: Node) -> bool:
    return node.kind is NodeKind.HEADING


def to_plain_text(node: Node) -> str:
    """Concatenate the literal text under a node (headings, link labels...)."""
    if node.kind in {NodeKind.TEXT, NodeKind.INLINE_CODE, NodeKind.CODE}:
        return node.value or ""
    if node.kind is NodeKind.IMAGE:
        return str(node.attrs.get("alt") or "")
    if node.kind is NodeKind.BREAK:
        return "\n"
    return "".join(to_plain_text(c) for c in node.children)
