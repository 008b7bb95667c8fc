from __future__ import annotations

import re

from .nodes import COMPONENT_KINDS, Node, NodeKind, u


_INLINE_ESCAPE_RE = re.compile(r"([\\`*\[<{])")
_UNDERSCORE_RE = re.compile(r"(?<![0-9A-Za-z])_|_(?![0-9A-Za-z])")
_LINE_START_RE = re.compile(r"^(#{1,6}(?=[ \t]|$)|>|[-+](?=[ \t]|$)|\d{1,9}(?=[.)](?:[ \t]|$))|~~~)", re.MULTILINE)
_SETEXT_LIKE_RE = re.compile(r"^([=-]+[ \t]*)$", re.MULTILINE)
_BACKTICKS_RE = re.compile(r"`+")
_LINE_EDGE_WS_RE = re.compile(r"[ \t]*\n[ \t]*")
_ESM_START_RE = re.compile(r"^(import|export)(?=[ \t{*])")
_ENTITY_LIKE_RE = re.compile(r"&(?=#[0-9]{1,7};|#[xX][0-9a-fA-F]{1,6};|[A-Za-z][A-Za-z0-9]{1,31};)")


def to_markdown(tree: Node) -> str:
    """Render a prose tree back to canonical Markdown (no trailing newline)."""
    if tree.kind is NodeKind.ROOT:
        return _blocks(tree.children, "\n\n")
    if _is_block(tree):
        return _block(tree)
    return _inline(tree)


def _is_block(node: Node) -> bool:
    return node.kind in {
        NodeKind.HEADING,
        NodeKind.PARAGRAPH,
        NodeKind.CODE,
        NodeKind.BLOCKQUOTE,
        NodeKind.LIST,
        NodeKind.LIST_ITEM,
        NodeKind.THEMATIC_BREAK,
    }


def _blocks(nodes: list[Node], sep: str) -> str:
    return sep.join(s for s in (_block(n) for n in nodes) if s)


def _block(node: Node) -> str:
    kind = node.kind
    if kind in COMPONENT_KINDS:
        raise TypeError(f"cannot serialize component node: {kind.value}")

    if kind is NodeKind.HEADING:
        depth = int(node.attrs.get("depth", 1))
        content = _phrasing(_tidy_phrasing(node.children)).replace("\n", " ")
        return "#" * depth + (f" {content}" if content else "")

    if kind is NodeKind.PARAGRAPH:
        text = _escape_line_starts(_phrasing(_tidy_phrasing(node.children)))
        # A paragraph opening with import/export would read back as ESM.
        return _ESM_START_RE.sub(lambda m: f"&#x{ord(m.group(1)[0]):x};{m.group(1)[1:]}", text)

    if kind is NodeKind.CODE:
        value = node.value or ""
        longest = max((len(m.group(0)) for m in _BACKTICKS_RE.finditer(value)), default=0)
        fence = "`" * max(3, longest + 1)
        info = " ".join(p for p in (node.attrs.get("lang"), node.attrs.get("meta")) if p)
        return f"{fence}{info}\n{value}\n{fence}" if value else f"{fence}{info}\n{fence}"

    if kind is NodeKind.BLOCKQUOTE:
        inner = _blocks(node.children, "\n\n")
        return "\n".join(f"> {ln}" if ln else ">" for ln in inner.split("\n"))

    if kind is NodeKind.LIST:
        return _list(node)

    if kind is NodeKind.LIST_ITEM:
        return _list_item(node, "*", spread=bool(node.attrs.get("spread")))

    if kind is NodeKind.THEMATIC_BREAK:
        return "***"

    if kind is NodeKind.HTML:
        return node.value or ""

    # Phrasing content at block level (e.g. a hand-built tree).
    return _inline(node)


def _list(node: Node) -> str:
    ordered = bool(node.attrs.get("ordered"))
    start = node.attrs.get("start")
    first = start if isinstance(start, int) else 1
    spread = bool(node.attrs.get("spread"))

    items: list[str] = []
    for idx, item in enumerate(node.children):
        marker = f"{first + idx}." if ordered else "*"
        items.append(_list_item(item, marker, spread=spread or bool(item.attrs.get("spread"))))
    return ("\n\n" if spread else "\n").join(items)


def _list_item(node: Node, marker: str, *, spread: bool) -> str:
    content = _blocks(node.children, "\n\n" if spread else "\n")
    if not content:
        return marker
    pad = " " * (len(marker) + 1)
    lines = content.split("\n")
    out = [f"{marker} {lines[0]}"]
    out.extend(f"{pad}{ln}" if ln else "" for ln in lines[1:])
    return "\n".join(out)


def _phrasing(nodes: list[Node]) -> str:
    return "".join(_inline(n) for n in nodes)


def _tidy_phrasing(nodes: list[Node]) -> list[Node]:
    """Copy of `nodes` without the whitespace a parser would not keep.

    Removing components leaves spaces at paragraph edges, around line
    endings and around hard breaks. Written out as-is they would read back
    as indented code, a hard break or a different text value. Emphasis
    emptied this way is dropped.
    """
    out: list[Node] = []
    for node in nodes:
        if node.kind in (NodeKind.EMPHASIS, NodeKind.STRONG):
            inner = _tidy_phrasing(node.children)
            if not inner:
                continue
            node = Node(kind=node.kind, children=inner, attrs=dict(node.attrs))
        elif node.kind is NodeKind.TEXT:
            if out and out[-1].kind is NodeKind.TEXT:
                out[-1].value = (out[-1].value or "") + (node.value or "")
                continue
            node = u(NodeKind.TEXT, node.value or "")
        out.append(node)

    last = len(out) - 1
    for idx, node in enumerate(out):
        if node.kind is not NodeKind.TEXT:
            continue
        value = _LINE_EDGE_WS_RE.sub("\n", node.value or "")
        if idx == 0 or out[idx - 1].kind is NodeKind.BREAK:
            value = value.lstrip(" \t\n")
        if idx == last or out[idx + 1].kind is NodeKind.BREAK:
            value = value.rstrip(" \t\n")
        node.value = value

    out = [n for n in out if not (n.kind is NodeKind.TEXT and not n.value)]
    while out and out[0].kind is NodeKind.BREAK:
        out.pop(0)
    while out and out[-1].kind is NodeKind.BREAK:
        out.pop()
    return out


def _inline(node: Node) -> str:
    kind = node.kind
    if kind in COMPONENT_KINDS:
        raise TypeError(f"cannot serialize component node: {kind.value}")

    if kind is NodeKind.TEXT:
        return _escape_text(node.value or "")
    if kind is NodeKind.EMPHASIS:
        return f"*{_phrasing(node.children)}*"
    if kind is NodeKind.STRONG:
        return f"**{_phrasing(node.children)}**"
    if kind is NodeKind.INLINE_CODE:
        return _inline_code(node.value or "")
    if kind is NodeKind.BREAK:
        return "\\\n"
    if kind is NodeKind.HTML:
        return node.value or ""
    if kind is NodeKind.LINK:
        url = str(node.attrs.get("url") or "")
        if node.attrs.get("autolink"):
            return f"<{url.removeprefix('mailto:')}>" if url.startswith("mailto:") else f"<{url}>"
        return f"[{_phrasing(node.children)}]({_destination(url, node.attrs.get('title'))})"
    if kind is NodeKind.IMAGE:
        alt = _escape_text(str(node.attrs.get("alt") or ""))
        return f"![{alt}]({_destination(str(node.attrs.get('url') or ''), node.attrs.get('title'))})"

    return _block(node)


def _inline_code(value: str) -> str:
    longest = max((len(m.group(0)) for m in _BACKTICKS_RE.finditer(value)), default=0)
    ticks = "`" * (longest + 1)
    pad = ""
    if value.startswith("`") or value.endswith("`") or (
        value.startswith(" ") and value.endswith(" ") and value.strip(" ")
    ):
        pad = " "
    return f"{ticks}{pad}{value}{pad}{ticks}"


def _destination(url: str, title: object) -> str:
    dest = f"<{url}>" if (not url or re.search(r"[\s()<>]", url)) else url
    if title:
        escaped = str(title).replace("\\", "\\\\").replace('"', '\\"')
        return f'{dest} "{escaped}"'
    return dest


def _escape_text(value: str) -> str:
    value = _INLINE_ESCAPE_RE.sub(r"\\\1", value)
    value = _ENTITY_LIKE_RE.sub(r"\\&", value)
    return _UNDERSCORE_RE.sub(r"\\_", value)


def _escape_line_starts(text: str) -> str:
    text = _SETEXT_LIKE_RE.sub(r"\\\1", text)
    return _LINE_START_RE.sub(_escape_line_start, text)


def _escape_line_start(m: re.Match[str]) -> str:
    token = m.group(1)
    if token[0].isdigit():
        # "1. item" -> "1\. item" happens on the delimiter, which follows the digits.
        return token + "\\"
    return "\\" + token
