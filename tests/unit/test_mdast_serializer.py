from __future__ import annotations

import pytest

from mdxsearch.mdast import NodeKind, filter_tree, is_component, parse, root, to_markdown, u


def _roundtrip(text: str) -> str:
    return to_markdown(parse(text))


def test_blocks_joined_by_blank_line_without_trailing_newline() -> None:
    assert _roundtrip("# Title\nHello\n") == "# Title\n\nHello"


def test_emphasis_strong_and_code() -> None:
    assert _roundtrip("Some _em_ and __strong__ and `code`") == "Some *em* and **strong** and `code`"


def test_bullets_and_ordered_lists() -> None:
    assert _roundtrip("- a\n- b") == "* a\n* b"
    assert _roundtrip("3. c\n4. d") == "3. c\n4. d"


def test_thematic_break_and_fence() -> None:
    assert _roundtrip("---\n\n~~~py\nx = 1\n~~~") == "***\n\n```py\nx = 1\n```"


def test_fence_longer_than_inner_backticks() -> None:
    code = u(NodeKind.CODE, "```\nnested\n```", lang=None, meta=None)
    assert to_markdown(root([code])) == "````\n```\nnested\n```\n````"


def test_blockquote_prefixes_every_line() -> None:
    assert _roundtrip("> one\n>\n> two") == "> one\n>\n> two"


def test_hard_break_uses_backslash() -> None:
    assert _roundtrip("a  \nb") == "a\\\nb"


def test_links_and_images() -> None:
    assert _roundtrip('[x](https://a.b "T")') == '[x](https://a.b "T")'
    assert _roundtrip("![alt](/img.png)") == "![alt](/img.png)"
    assert _roundtrip("See <https://a.b>") == "See <https://a.b>"


def test_text_is_escaped() -> None:
    para = u(NodeKind.PARAGRAPH, [u(NodeKind.TEXT, "1 * 2 <b> [x] {y} snake_case _lead")])
    assert to_markdown(root([para])) == "1 \\* 2 \\<b> \\[x] \\{y} snake_case \\_lead"


def test_line_starts_are_escaped() -> None:
    para = u(NodeKind.PARAGRAPH, [u(NodeKind.TEXT, "# not heading\n- not list\n1. not ordered")])
    assert to_markdown(root([para])) == "\\# not heading\n\\- not list\n1\\. not ordered"


def test_heading_depth() -> None:
    assert to_markdown(root([u(NodeKind.HEADING, [u(NodeKind.TEXT, "Deep")], depth=4)])) == "#### Deep"


def test_component_nodes_are_rejected() -> None:
    with pytest.raises(TypeError):
        to_markdown(root([u(NodeKind.MDX_FLOW_EXPRESSION, "x")]))
    with pytest.raises(TypeError):
        to_markdown(root([u(NodeKind.PARAGRAPH, [u(NodeKind.MDX_TEXT_EXPRESSION, "x")])]))


def test_empty_root() -> None:
    assert to_markdown(root([])) == ""


def _para(*children):
    return root([u(NodeKind.PARAGRAPH, list(children))])


def test_paragraph_edge_whitespace_is_trimmed() -> None:
    assert to_markdown(_para(u(NodeKind.TEXT, "    Click the button "))) == "Click the button"
    assert to_markdown(_para(u(NodeKind.TEXT, "one  \n   two"))) == "one\ntwo"


def test_whitespace_around_hard_breaks_is_trimmed() -> None:
    para = _para(u(NodeKind.TEXT, "a  "), u(NodeKind.BREAK), u(NodeKind.TEXT, "  b"))
    assert to_markdown(para) == "a\\\nb"
    assert to_markdown(_para(u(NodeKind.BREAK), u(NodeKind.TEXT, "x"), u(NodeKind.BREAK))) == "x"


def test_emphasis_edges_are_trimmed_and_empty_emphasis_dropped() -> None:
    para = _para(
        u(NodeKind.TEXT, "Read "),
        u(NodeKind.EMPHASIS, [u(NodeKind.TEXT, " first ")]),
        u(NodeKind.STRONG, [u(NodeKind.TEXT, "  ")]),
        u(NodeKind.TEXT, " now"),
    )
    assert to_markdown(para) == "Read *first* now"


def test_heading_content_is_trimmed() -> None:
    heading = u(NodeKind.HEADING, [u(NodeKind.TEXT, "Title ")], depth=2)
    assert to_markdown(root([heading])) == "## Title"


def test_paragraph_starting_with_import_or_export_is_encoded() -> None:
    assert to_markdown(_para(u(NodeKind.TEXT, "import x from y"))) == "&#x69;mport x from y"
    assert to_markdown(_para(u(NodeKind.TEXT, "export {a}"))) == "&#x65;xport \\{a}"
    assert to_markdown(_para(u(NodeKind.TEXT, "important note"))) == "important note"
    (para,) = parse("&#x69;mport x from y").children
    assert para.kind is NodeKind.PARAGRAPH
    assert para.children[0].value == "import x from y"


def test_blank_paragraphs_are_skipped() -> None:
    tree = root(
        [
            u(NodeKind.PARAGRAPH, [u(NodeKind.TEXT, "a")]),
            u(NodeKind.PARAGRAPH, [u(NodeKind.TEXT, "  ")]),
            u(NodeKind.PARAGRAPH, [u(NodeKind.TEXT, "b")]),
        ]
    )
    assert to_markdown(tree) == "a\n\nb"


def test_character_references_are_decoded_and_reescaped() -> None:
    assert _roundtrip("AT&amp;T &copy; &#x2A;") == "AT&T © \\*"
    assert _roundtrip("&bogus; stays") == "\\&bogus; stays"
    assert to_markdown(_para(u(NodeKind.TEXT, "literal &amp; text"))) == "literal \\&amp; text"


@pytest.mark.parametrize(
    "text",
    [
        "Title\n===\n\n+ item *one*\n+ item two\n\n> quote",
        "<Icon />    Click the button to continue.",
        "Press the key <Kbd>Ctrl</Kbd>",
        "<A/>import x from y",
        "Use the\n<Kbd>Tab</Kbd>   key to move.",
        "lead  <X />\nnext",
        "Read *<Kbd>Esc</Kbd> first* now",
        "AT&amp;T &#38;amp; &copy;",
    ],
)
def test_output_is_stable_when_reparsed(text: str) -> None:
    tree = filter_tree(parse(text), is_component)
    assert tree is not None
    once = to_markdown(tree)
    assert _roundtrip(once) == once
