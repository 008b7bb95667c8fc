from __future__ import annotations

import html
import html.entities
import re
import unicodedata
from dataclasses import dataclass

from .jsx import find_closing_tag, scan_expression, scan_jsx_tag
from .nodes import Node, NodeKind, to_plain_text, u


_ASCII_PUNCT = set("!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~")

_AUTOLINK_RE = re.compile(r"<([A-Za-z][A-Za-z0-9+.\-]{1,31}:[^\s<>]*)>")
_EMAIL_AUTOLINK_RE = re.compile(r"<([A-Za-z0-9.!#$%&'*+/=?^_`{|}~\-]+@[A-Za-z0-9](?:[A-Za-z0-9\-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9\-]*[A-Za-z0-9])?)*)>")
_COMMENT_RE = re.compile(r"<!--(?:.|\n)*?-->")
_ENTITY_RE = re.compile(r"&(?:#[0-9]{1,7}|#[xX][0-9a-fA-F]{1,6}|[A-Za-z][A-Za-z0-9]{1,31});")


@dataclass
class _Delim:
    char: str
    length: int
    orig: int
    can_open: bool
    can_close: bool


def _is_space(ch: str) -> bool:
    return ch.isspace()


def _is_punct(ch: str) -> bool:
    return ch in _ASCII_PUNCT or unicodedata.category(ch).startswith("P")


def parse_inline(text: str) -> list[Node]:
    """Parse phrasing content (the text of a paragraph or heading)."""
    return _InlineParser(text).parse()


class _InlineParser:
    def __init__(self, text: str) -> None:
        self.s = text
        self.items: list[Node | _Delim] = []
        self.buf: list[str] = []

    def parse(self) -> list[Node]:
        s = self.s
        n = len(s)
        i = 0
        while i < n:
            ch = s[i]

            if ch == "\\":
                nxt = s[i + 1] if i + 1 < n else ""
                if nxt == "\n":
                    self._flush()
                    self.items.append(u(NodeKind.BREAK))
                    i = self._skip_line_indent(i + 2)
                    continue
                if nxt and nxt in _ASCII_PUNCT:
                    self.buf.append(nxt)
                    i += 2
                    continue
                self.buf.append(ch)
                i += 1
                continue

            if ch == "`":
                i = self._code_span(i)
                continue

            if ch == "!" and s.startswith("[", i + 1):
                end = self._link(i + 1, image=True)
                if end is not None:
                    i = end
                    continue
                self.buf.append(ch)
                i += 1
                continue

            if ch == "[":
                end = self._link(i, image=False)
                if end is not None:
                    i = end
                    continue
                self.buf.append(ch)
                i += 1
                continue

            if ch == "<":
                i = self._angle(i)
                continue

            if ch == "{":
                end = scan_expression(s, i)
                if end == -1:
                    self.buf.append(ch)
                    i += 1
                    continue
                self._flush()
                self.items.append(u(NodeKind.MDX_TEXT_EXPRESSION, s[i + 1 : end - 1]))
                i = end
                continue

            if ch in "*_":
                i = self._delimiter_run(i)
                continue

            if ch == "&":
                m = _ENTITY_RE.match(s, i)
                decoded = _decode_reference(m.group(0)) if m else None
                if m and decoded is not None:
                    self.buf.append(decoded)
                    i = m.end()
                    continue
                self.buf.append(ch)
                i += 1
                continue

            if ch == "\n":
                text = "".join(self.buf)
                stripped = text.rstrip(" ")
                self.buf = [stripped]
                if len(text) - len(stripped) >= 2:
                    self._flush()
                    self.items.append(u(NodeKind.BREAK))
                else:
                    self.buf.append("\n")
                i = self._skip_line_indent(i + 1)
                continue

            self.buf.append(ch)
            i += 1

        self._flush()
        _process_emphasis(self.items, 0)
        return _finalize(self.items)

    def _flush(self) -> None:
        if not self.buf:
            return
        text = "".join(self.buf)
        self.buf = []
        if text:
            self.items.append(u(NodeKind.TEXT, text))

    def _skip_line_indent(self, i: int) -> int:
        while i < len(self.s) and self.s[i] in " \t":
            i += 1
        return i

    def _code_span(self, i: int) -> int:
        s = self.s
        run = 0
        while i + run < len(s) and s[i + run] == "`":
            run += 1
        j = i + run
        while True:
            j = s.find("`", j)
            if j == -1:
                self.buf.append("`" * run)
                return i + run
            k = j
            while k < len(s) and s[k] == "`":
                k += 1
            if k - j == run:
                break
            j = k

        content = s[i + run : j].replace("\n", " ")
        if len(content) >= 2 and content[0] == " " and content[-1] == " " and content.strip(" "):
            content = content[1:-1]
        self._flush()
        self.items.append(u(NodeKind.INLINE_CODE, content))
        return j + run

    def _link(self, start: int, *, image: bool) -> int | None:
        s = self.s
        close = _find_label_end(s, start)
        if close is None or not s.startswith("(", close + 1):
            return None
        parsed = _parse_destination(s, close + 2)
        if parsed is None:
            return None
        url, title, end = parsed

        label = s[start + 1 : close]
        children = parse_inline(label)
        self._flush()
        if image:
            alt = "".join(to_plain_text(c) for c in children)
            self.items.append(u(NodeKind.IMAGE, url=url, title=title, alt=alt))
        else:
            self.items.append(u(NodeKind.LINK, children, url=url, title=title))
        return end

    def _angle(self, i: int) -> int:
        s = self.s
        m = _AUTOLINK_RE.match(s, i)
        if m:
            self._flush()
            url = m.group(1)
            self.items.append(u(NodeKind.LINK, [u(NodeKind.TEXT, url)], url=url, title=None, autolink=True))
            return m.end()
        m = _EMAIL_AUTOLINK_RE.match(s, i)
        if m:
            self._flush()
            addr = m.group(1)
            self.items.append(
                u(NodeKind.LINK, [u(NodeKind.TEXT, addr)], url=f"mailto:{addr}", title=None, autolink=True)
            )
            return m.end()
        m = _COMMENT_RE.match(s, i)
        if m:
            self._flush()
            self.items.append(u(NodeKind.HTML, m.group(0)))
            return m.end()

        tag = scan_jsx_tag(s, i)
        if tag is None:
            self.buf.append("<")
            return i + 1

        self._flush()
        attrs = {"name": tag.name or None, "attributes": tag.attributes}
        if tag.closing or tag.self_closing:
            if tag.closing:
                attrs["closing"] = True
            self.items.append(u(NodeKind.MDX_JSX_TEXT_ELEMENT, [], **attrs))
            return tag.end

        closing = find_closing_tag(s, tag)
        if closing is None:
            # Unclosed: the element swallows the rest of the phrasing content.
            inner, end = s[tag.end :], len(s)
        else:
            inner, end = s[tag.end : closing.start], closing.end
        self.items.append(u(NodeKind.MDX_JSX_TEXT_ELEMENT, parse_inline(inner), **attrs))
        return end

    def _delimiter_run(self, i: int) -> int:
        s = self.s
        ch = s[i]
        run = 0
        while i + run < len(s) and s[i + run] == ch:
            run += 1

        before = s[i - 1] if i > 0 else " "
        after = s[i + run] if i + run < len(s) else " "

        left = not _is_space(after) and (not _is_punct(after) or _is_space(before) or _is_punct(before))
        right = not _is_space(before) and (not _is_punct(before) or _is_space(after) or _is_punct(after))

        if ch == "*":
            can_open, can_close = left, right
        else:
            can_open = left and (not right or _is_punct(before))
            can_close = right and (not left or _is_punct(after))

        self._flush()
        self.items.append(_Delim(char=ch, length=run, orig=run, can_open=can_open, can_close=can_close))
        return i + run


def _find_label_end(s: str, start: int) -> int | None:
    depth = 0
    i = start
    while i < len(s):
        ch = s[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "`":
            run = 0
            while i + run < len(s) and s[i + run] == "`":
                run += 1
            end = s.find("`" * run, i + run)
            i = (end + run) if end != -1 else (i + run)
            continue
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return None


def _parse_destination(s: str, i: int) -> tuple[str, str | None, int] | None:
    n = len(s)
    while i < n and s[i] in " \t\n":
        i += 1

    if i < n and s[i] == "<":
        end = s.find(">", i + 1)
        if end == -1 or "\n" in s[i + 1 : end]:
            return None
        url = s[i + 1 : end]
        i = end + 1
    else:
        start = i
        depth = 0
        while i < n:
            ch = s[i]
            if ch == "\\" and i + 1 < n:
                i += 2
                continue
            if ch.isspace():
                break
            if ch == "(":
                depth += 1
            elif ch == ")":
                if depth == 0:
                    break
                depth -= 1
            i += 1
        url = _unescape(s[start:i])

    title: str | None = None
    j = i
    while j < n and s[j] in " \t\n":
        j += 1
    if j < n and j > i and s[j] in "\"'(":
        closer = ")" if s[j] == "(" else s[j]
        k = j + 1
        while k < n and s[k] != closer:
            k += 2 if s[k] == "\\" else 1
        if k >= n:
            return None
        title = _unescape(s[j + 1 : k])
        j = k + 1
        while j < n and s[j] in " \t\n":
            j += 1

    if j >= n or s[j] != ")":
        return None
    return url, title, j + 1


def _unescape(value: str) -> str:
    return re.sub(r"\\([!-/:-@\[-`{-~])", r"\1", value)


def _decode_reference(ref: str) -> str | None:
    if ref[1] == "#":
        return html.unescape(ref)
    return html.entities.html5.get(ref[1:])


def _process_emphasis(items: list[Node | _Delim], bottom: int) -> None:
    i = bottom
    while i < len(items):
        closer = items[i]
        if not (isinstance(closer, _Delim) and closer.can_close and closer.length > 0):
            i += 1
            continue

        opener_idx = None
        j = i - 1
        while j >= bottom:
            op = items[j]
            if isinstance(op, _Delim) and op.char == closer.char and op.can_open and op.length > 0:
                odd_match = (op.can_close or closer.can_open) and (op.orig + closer.orig) % 3 == 0
                if odd_match and not (op.orig % 3 == 0 and closer.orig % 3 == 0):
                    j -= 1
                    continue
                opener_idx = j
                break
            j -= 1

        if opener_idx is None:
            i += 1
            continue

        op = items[opener_idx]
        assert isinstance(op, _Delim)
        use = 2 if op.length >= 2 and closer.length >= 2 else 1
        kind = NodeKind.STRONG if use == 2 else NodeKind.EMPHASIS
        inner = _finalize(items[opener_idx + 1 : i])
        op.length -= use
        closer.length -= use
        items[opener_idx + 1 : i] = [u(kind, inner)]
        i = opener_idx + 2


def _finalize(items: list[Node | _Delim]) -> list[Node]:
    out: list[Node] = []
    for item in items:
        if isinstance(item, _Delim):
            if item.length <= 0:
                continue
            item = u(NodeKind.TEXT, item.char * item.length)
        if item.kind is NodeKind.TEXT and out and out[-1].kind is NodeKind.TEXT:
            out[-1].value = (out[-1].value or "") + (item.value or "")
            continue
        out.append(item)
    return out
