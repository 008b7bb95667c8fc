"""Lexical helpers for the embedded component syntax (JSX tags, `{}` expressions)."""
from __future__ import annotations

import re
from dataclasses import dataclass


_NAME_RE = re.compile(r"[A-Za-z_$][\w$.:\-]*")


@dataclass(frozen=True)
class JsxTag:
    name: str  # "" for fragments
    attributes: str
    closing: bool
    self_closing: bool
    start: int
    end: int


def scan_jsx_tag(s: str, pos: int) -> JsxTag | None:
    """Scan a JSX tag starting at `s[pos] == "<"`; None if it is not one."""
    if pos >= len(s) or s[pos] != "<":
        return None
    i = pos + 1
    closing = False
    if s.startswith("/", i):
        closing = True
        i += 1

    name = ""
    m = _NAME_RE.match(s, i)
    if m:
        name = m.group(0)
        i = m.end()
    elif not s.startswith(">", i):
        return None

    attrs_start = i
    depth = 0
    quote: str | None = None
    while i < len(s):
        ch = s[i]
        if quote is not None:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(0, depth - 1)
        elif depth == 0 and ch == "<":
            return None
        elif depth == 0 and ch == ">":
            break
        i += 1
    else:
        return None

    if name and attrs_start < i and not (s[attrs_start].isspace() or s[attrs_start] in "/{"):
        return None

    raw = s[attrs_start:i].strip()
    self_closing = raw.endswith("/")
    if self_closing:
        raw = raw[:-1].rstrip()
    return JsxTag(
        name=name,
        attributes=raw,
        closing=closing,
        self_closing=self_closing and not closing,
        start=pos,
        end=i + 1,
    )


def scan_tag_line(line: str) -> list[JsxTag] | None:
    """Return the tags of a line made only of JSX tags and whitespace."""
    tags: list[JsxTag] = []
    i = 0
    n = len(line)
    while True:
        while i < n and line[i].isspace():
            i += 1
        if i >= n:
            break
        tag = scan_jsx_tag(line, i)
        if tag is None:
            return None
        tags.append(tag)
        i = tag.end
    return tags or None


def find_closing_tag(s: str, opening: JsxTag) -> JsxTag | None:
    """Find the tag closing `opening` in `s`, honouring nested same-name tags."""
    depth = 1
    i = opening.end
    while True:
        i = s.find("<", i)
        if i == -1:
            return None
        tag = scan_jsx_tag(s, i)
        if tag is None:
            i += 1
            continue
        if tag.name == opening.name and not tag.self_closing:
            depth += -1 if tag.closing else 1
            if depth == 0:
                return tag
        i = tag.end


def scan_expression(s: str, pos: int) -> int:
    """Return the index just past the `}` balancing `s[pos] == "{"`, or -1."""
    depth = 0
    quote: str | None = None
    i = pos
    while i < len(s):
        ch = s[i]
        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif s.startswith("/*", i):
            end = s.find("*/", i + 2)
            if end == -1:
                return -1
            i = end + 2
            continue
        elif ch in "\"'`":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return -1
