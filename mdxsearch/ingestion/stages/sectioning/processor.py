from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass, field

from ....mdast import filter_tree, is_component, is_heading, parse, split_tree_by, to_markdown


@dataclass(frozen=True)
class ProcessedMdx:
    checksum: str
    sections: list[str] = field(default_factory=list)


def compute_checksum(content: str) -> str:
    """SHA-256 of the UTF-8 bytes, base64 encoded (always 44 characters)."""
    digest = hashlib.sha256(content.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def process_mdx_for_search(content: str) -> ProcessedMdx:
    """Checksum the raw document, strip components and split it into
    heading-led sections rendered back to Markdown.

    A document with nothing left once components are removed yields no
    sections at all, and a section that renders to blank text is dropped.
    """
    checksum = compute_checksum(content)

    md_tree = filter_tree(parse(content), is_component)
    if md_tree is None:
        return ProcessedMdx(checksum=checksum, sections=[])

    section_trees = split_tree_by(md_tree, is_heading)
    return ProcessedMdx(checksum=checksum, sections=[s for s in (to_markdown(t) for t in section_trees) if s])
