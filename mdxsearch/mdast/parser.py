from __future__ import annotations

import re
import textwrap
from dataclasses import dataclass

from .inline import parse_inline
from .jsx import scan_expression, scan_jsx_tag, scan_tag_line
from .nodes import Node, NodeKind, root, u


_ATX_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_ATX_CLOSING_RE = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
_SETEXT_RE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
_THEMATIC_RE = re.compile(r"^ {0,3}(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$")
_FENCE_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
_BLOCKQUOTE_RE = re.compile(r"^ {0,3}>")
_LIST_ITEM_RE = re.compile(r"^( {0,3})(?:([-+*])|(\d{1,9})([.)]))(?=[ \t]|$)")
_ESM_RE = re.compile(r"^(?:import|export)[ \t{*]")
_COMMENT_OPEN = "<!--"


def parse(text: str) -> Node:
    """Parse Markdown with embedded component syntax into a `root` node.

    Total over any input: malformed markup degrades to paragraphs/text
    rather than raising.
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").expandtabs(4).split("\n")
    return root(_BlockParser(lines, top_level=True).parse())


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _is_blank(line: str) -> bool:
    return not line.strip()


@dataclass
class _ListMarker:
    indent: int
    bullet: str | None
    start: int | None
    delimiter: str | None
    content_indent: int
    first_line: str

    @property
    def ordered(self) -> bool:
        return self.bullet is None

    def same_list(self, other: "_ListMarker") -> bool:
        if self.ordered != other.ordered:
            return False
        if self.ordered:
            return self.delimiter == other.delimiter
        return self.bullet == other.bullet


def _match_list_item(line: str) -> _ListMarker | None:
    m = _LIST_ITEM_RE.match(line)
    if m is None:
        return None
    marker_end = m.end()
    rest = line[marker_end:]
    spaces = len(rest) - len(rest.lstrip(" "))
    if not rest.strip():
        content_indent = marker_end + 1
        first = ""
    elif spaces > 4:
        content_indent = marker_end + 1
        first = line[content_indent:]
    else:
        content_indent = marker_end + spaces
        first = line[content_indent:]
    return _ListMarker(
        indent=len(m.group(1)),
        bullet=m.group(2),
        start=int(m.group(3)) if m.group(3) is not None else None,
        delimiter=m.group(4),
        content_indent=content_indent,
        first_line=first,
    )


def _fence_closes(line: str, fence: str) -> bool:
    stripped = line.strip()
    return (
        _indent(line) < 4
        and len(stripped) >= len(fence)
        and stripped == fence[0] * len(stripped)
    )


class _BlockParser:
    def __init__(self, lines: list[str], *, top_level: bool = False) -> None:
        self.lines = list(lines)
        self.top_level = top_level

    def parse(self) -> list[Node]:
        out: list[Node] = []
        i = 0
        while i < len(self.lines):
            line = self.lines[i]
            if _is_blank(line):
                i += 1
                continue
            node, i = self._block(i)
            if node is not None:
                out.append(node)
        return out

    def _block(self, i: int) -> tuple[Node | None, int]:
        line = self.lines[i]
        ind = _indent(line)

        if ind >= 4:
            return self._indented_code(i)

        if self.top_level and ind == 0 and _ESM_RE.match(line):
            return self._esm(i)

        m = _FENCE_RE.match(line)
        if m and not (m.group(2)[0] == "`" and "`" in m.group(3)):
            return self._fenced_code(i, m)

        m = _ATX_RE.match(line)
        if m:
            content = _ATX_CLOSING_RE.sub("", m.group(2) or "").strip()
            return u(NodeKind.HEADING, parse_inline(content), depth=len(m.group(1))), i + 1

        if _THEMATIC_RE.match(line):
            return u(NodeKind.THEMATIC_BREAK), i + 1

        if _BLOCKQUOTE_RE.match(line):
            return self._blockquote(i)

        marker = _match_list_item(line)
        if marker is not None:
            return self._list(i, marker)

        stripped = line.strip()
        if stripped.startswith(_COMMENT_OPEN):
            return self._html_comment(i)

        if stripped.startswith("<"):
            found = self._jsx_flow(i)
            if found is not None:
                return found

        if stripped.startswith("{"):
            found = self._flow_expression(i)
            if found is not None:
                return found

        return self._paragraph(i)

    # -- leaf blocks -------------------------------------------------------

    def _indented_code(self, i: int) -> tuple[Node, int]:
        body: list[str] = []
        j = i
        while j < len(self.lines):
            line = self.lines[j]
            if _is_blank(line):
                body.append(line[4:] if len(line) > 4 else "")
            elif _indent(line) >= 4:
                body.append(line[4:])
            else:
                break
            j += 1
        while body and _is_blank(body[-1]):
            body.pop()
        return u(NodeKind.CODE, "\n".join(body), lang=None, meta=None), j

    def _fenced_code(self, i: int, m: re.Match[str]) -> tuple[Node, int]:
        fence_indent = len(m.group(1))
        fence = m.group(2)
        info = m.group(3).strip()
        lang, _, meta = info.partition(" ")

        body: list[str] = []
        j = i + 1
        while j < len(self.lines):
            line = self.lines[j]
            if _fence_closes(line, fence):
                j += 1
                break
            strip = min(fence_indent, _indent(line))
            body.append(line[strip:])
            j += 1
        return u(NodeKind.CODE, "\n".join(body), lang=lang or None, meta=meta.strip() or None), j

    def _esm(self, i: int) -> tuple[Node, int]:
        j = i
        while j < len(self.lines) and not _is_blank(self.lines[j]):
            j += 1
        return u(NodeKind.MDXJS_ESM, "\n".join(self.lines[i:j])), j

    def _html_comment(self, i: int) -> tuple[Node, int]:
        j = i
        while j < len(self.lines):
            if "-->" in self.lines[j]:
                j += 1
                break
            j += 1
        return u(NodeKind.HTML, "\n".join(self.lines[i:j]).strip()), j

    def _paragraph(self, i: int) -> tuple[Node, int]:
        para = [self.lines[i].lstrip()]
        j = i + 1
        while j < len(self.lines):
            line = self.lines[j]
            if _is_blank(line):
                break
            setext = _SETEXT_RE.match(line)
            if setext:
                depth = 1 if setext.group(1)[0] == "=" else 2
                content = "\n".join(para).strip()
                return u(NodeKind.HEADING, parse_inline(content), depth=depth), j + 1
            if self._interrupts_paragraph(line):
                break
            para.append(line.lstrip())
            j += 1
        return u(NodeKind.PARAGRAPH, parse_inline("\n".join(para).rstrip())), j

    def _interrupts_paragraph(self, line: str) -> bool:
        if _indent(line) >= 4:
            return False
        if _ATX_RE.match(line) or _THEMATIC_RE.match(line) or _BLOCKQUOTE_RE.match(line):
            return True
        m = _FENCE_RE.match(line)
        if m and not (m.group(2)[0] == "`" and "`" in m.group(3)):
            return True
        marker = _match_list_item(line)
        if marker is not None and marker.first_line.strip():
            return marker.ordered is False or marker.start == 1
        stripped = line.strip()
        if stripped.startswith(_COMMENT_OPEN):
            return True
        return stripped.startswith("<") and scan_tag_line(stripped) is not None

    # -- containers --------------------------------------------------------

    def _blockquote(self, i: int) -> tuple[Node, int]:
        inner: list[str] = []
        j = i
        while j < len(self.lines):
            line = self.lines[j]
            if _BLOCKQUOTE_RE.match(line):
                rest = line.lstrip()[1:]
                inner.append(rest[1:] if rest.startswith(" ") else rest)
                j += 1
                continue
            if _is_blank(line):
                break
            if inner and not _is_blank(inner[-1]) and not self._interrupts_paragraph(line):
                inner.append(line)
                j += 1
                continue
            break
        return u(NodeKind.BLOCKQUOTE, _BlockParser(inner).parse()), j

    def _list(self, i: int, first: _ListMarker) -> tuple[Node, int]:
        items: list[Node] = []
        spread = False
        marker: _ListMarker | None = first
        j = i

        while marker is not None:
            item_lines = [marker.first_line]
            j += 1
            while j < len(self.lines):
                line = self.lines[j]
                if _is_blank(line):
                    item_lines.append("")
                elif _indent(line) >= marker.content_indent:
                    item_lines.append(line[marker.content_indent :])
                elif _match_list_item(line) is not None:
                    break
                elif item_lines[-1].strip() and not self._interrupts_paragraph(line):
                    item_lines.append(line.lstrip())
                else:
                    break
                j += 1

            trailing_blank = False
            while item_lines and _is_blank(item_lines[-1]):
                item_lines.pop()
                trailing_blank = True

            children = _BlockParser(item_lines).parse()
            item_spread = len(children) > 1 and any(_is_blank(ln) for ln in item_lines)
            items.append(u(NodeKind.LIST_ITEM, children, spread=item_spread, checked=None))
            spread = spread or item_spread

            nxt = _match_list_item(self.lines[j]) if j < len(self.lines) else None
            if nxt is not None and nxt.same_list(first) and not _THEMATIC_RE.match(self.lines[j]):
                spread = spread or trailing_blank
                marker = nxt
            else:
                marker = None

        return (
            u(
                NodeKind.LIST,
                items,
                ordered=first.ordered,
                start=first.start,
                spread=spread,
            ),
            j,
        )

    # -- component syntax --------------------------------------------------

    def _jsx_flow(self, i: int) -> tuple[Node, int] | None:
        line = self.lines[i]
        tags = scan_tag_line(line)
        if tags is None and scan_jsx_tag(line, _indent(line)) is None:
            # A tag whose attributes continue on the following lines.
            j = i + 1
            while j < len(self.lines) and not _is_blank(self.lines[j]):
                joined = " ".join(ln.strip() for ln in self.lines[i : j + 1])
                if scan_jsx_tag(joined, 0) is not None:
                    tags = scan_tag_line(joined)
                    if tags is not None:
                        self.lines[i : j + 1] = [joined]
                        line = joined
                    break
                j += 1
        if tags is None:
            return None

        tag = tags[0]
        attrs = {"name": tag.name or None, "attributes": tag.attributes}
        rest = line[tag.end :]

        if tag.closing or tag.self_closing:
            if tag.closing:
                attrs["closing"] = True
            return u(NodeKind.MDX_JSX_FLOW_ELEMENT, [], **attrs), self._push_back(i, rest)

        j = self._push_back(i, rest)
        body: list[str] = []
        depth = 1
        fence: str | None = None
        while j < len(self.lines):
            ln = self.lines[j]
            if fence is not None:
                if _fence_closes(ln, fence):
                    fence = None
                body.append(ln)
                j += 1
                continue
            fm = _FENCE_RE.match(ln)
            if fm:
                fence = fm.group(2)
                body.append(ln)
                j += 1
                continue

            for t in scan_tag_line(ln) or []:
                if t.name != tag.name or t.self_closing:
                    continue
                depth += -1 if t.closing else 1
                if depth == 0:
                    before = ln[: t.start]
                    if before.strip():
                        body.append(before)
                    children = _BlockParser(_dedent(body)).parse()
                    return u(NodeKind.MDX_JSX_FLOW_ELEMENT, children, **attrs), self._push_back(j, ln[t.end :])

            body.append(ln)
            j += 1

        children = _BlockParser(_dedent(body)).parse()
        return u(NodeKind.MDX_JSX_FLOW_ELEMENT, children, **attrs), j

    def _flow_expression(self, i: int) -> tuple[Node, int] | None:
        j = i
        while j < len(self.lines) and not _is_blank(self.lines[j]):
            j += 1
        chunk = "\n".join(self.lines[i:j])
        start = chunk.index("{")
        end = scan_expression(chunk, start)
        if end == -1:
            return None
        line_end = chunk.find("\n", end)
        if line_end == -1:
            line_end = len(chunk)
        if chunk[end:line_end].strip():
            return None
        consumed = chunk.count("\n", 0, end) + 1
        return u(NodeKind.MDX_FLOW_EXPRESSION, chunk[start + 1 : end - 1]), i + consumed

    def _push_back(self, i: int, rest: str) -> int:
        """Re-queue the unparsed tail of line `i`; returns the next index."""
        if rest.strip():
            self.lines[i] = rest
            return i
        return i + 1


def _dedent(lines: list[str]) -> list[str]:
    return textwrap.dedent("\n".join(lines)).split("\n") if lines else []
