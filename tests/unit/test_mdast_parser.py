from __future__ import annotations

from mdxsearch.mdast import NodeKind, parse, to_plain_text


def _kinds(text: str) -> list[NodeKind]:
    return [n.kind for n in parse(text).children]


def test_parse_headings_and_paragraphs() -> None:
    tree = parse("# Title\n\nHello *world*\n\n### Deep ##")

    assert tree.kind is NodeKind.ROOT
    h1, para, h3 = tree.children
    assert h1.kind is NodeKind.HEADING and h1.attrs["depth"] == 1
    assert to_plain_text(h1) == "Title"
    assert para.kind is NodeKind.PARAGRAPH
    assert [c.kind for c in para.children] == [NodeKind.TEXT, NodeKind.EMPHASIS]
    assert h3.attrs["depth"] == 3
    assert to_plain_text(h3) == "Deep"


def test_parse_setext_heading() -> None:
    tree = parse("Title\n=====\n\nSub\n---")
    assert [(n.kind, n.attrs.get("depth")) for n in tree.children] == [
        (NodeKind.HEADING, 1),
        (NodeKind.HEADING, 2),
    ]


def test_heading_interrupts_paragraph() -> None:
    assert _kinds("Intro text\n# First") == [NodeKind.PARAGRAPH, NodeKind.HEADING]


def test_fenced_code_keeps_body_verbatim() -> None:
    tree = parse("```js title=x\n# not a heading\n<Tag />\n```")
    (code,) = tree.children
    assert code.kind is NodeKind.CODE
    assert code.attrs["lang"] == "js"
    assert code.attrs["meta"] == "title=x"
    assert code.value == "# not a heading\n<Tag />"


def test_unclosed_fence_runs_to_end() -> None:
    (code,) = parse("~~~\na\nb").children
    assert code.value == "a\nb"


def test_lists_and_blockquote() -> None:
    tree = parse("* one\n* two\n\n1. first\n2. second\n\n> quoted\ncontinued")
    bullets, ordered, quote = tree.children

    assert bullets.kind is NodeKind.LIST and bullets.attrs["ordered"] is False
    assert len(bullets.children) == 2
    assert ordered.attrs["ordered"] is True and ordered.attrs["start"] == 1
    assert [to_plain_text(i) for i in ordered.children] == ["first", "second"]
    assert quote.kind is NodeKind.BLOCKQUOTE
    assert to_plain_text(quote) == "quoted\ncontinued"


def test_esm_only_at_top_level_start_of_line() -> None:
    tree = parse("import A from './a'\nexport const b = 1\n\nimportant words")
    assert [n.kind for n in tree.children] == [NodeKind.MDXJS_ESM, NodeKind.PARAGRAPH]
    assert tree.children[0].value == "import A from './a'\nexport const b = 1"


def test_jsx_flow_element_with_body() -> None:
    tree = parse('<Note type="info">\n\n# Inside\n\nBody text.\n\n</Note>\n\nAfter')
    note, after = tree.children

    assert note.kind is NodeKind.MDX_JSX_FLOW_ELEMENT
    assert note.attrs["name"] == "Note"
    assert note.attrs["attributes"] == 'type="info"'
    assert [c.kind for c in note.children] == [NodeKind.HEADING, NodeKind.PARAGRAPH]
    assert after.kind is NodeKind.PARAGRAPH


def test_jsx_flow_element_nested_same_name() -> None:
    tree = parse("<Box>\n<Box>\ninner\n</Box>\n</Box>\ntail")
    outer = tree.children[0]
    assert outer.kind is NodeKind.MDX_JSX_FLOW_ELEMENT
    assert outer.children[0].kind is NodeKind.MDX_JSX_FLOW_ELEMENT
    assert to_plain_text(tree.children[-1]) == "tail"


def test_self_closing_and_multiline_tag() -> None:
    tree = parse('<Chart\n  data={[1, 2]}\n/>\n\ntext')
    chart, para = tree.children
    assert chart.kind is NodeKind.MDX_JSX_FLOW_ELEMENT
    assert chart.attrs["name"] == "Chart"
    assert chart.children == []
    assert para.kind is NodeKind.PARAGRAPH


def test_flow_expression() -> None:
    tree = parse("{/* a comment */}\n\n{props.items.map(i => i)}")
    assert _kinds("{/* a comment */}\n\n{props.items.map(i => i)}") == [
        NodeKind.MDX_FLOW_EXPRESSION,
        NodeKind.MDX_FLOW_EXPRESSION,
    ]
    assert tree.children[1].value == "props.items.map(i => i)"


def test_unbalanced_expression_degrades_to_text() -> None:
    (para,) = parse("{oops").children
    assert para.kind is NodeKind.PARAGRAPH
    assert to_plain_text(para) == "{oops"


def test_inline_components() -> None:
    (para,) = parse("Press <Kbd>Ctrl</Kbd> and {count} keys").children
    kinds = [c.kind for c in para.children]
    assert NodeKind.MDX_JSX_TEXT_ELEMENT in kinds
    assert NodeKind.MDX_TEXT_EXPRESSION in kinds


def test_inline_links_code_and_breaks() -> None:
    (para,) = parse('See [docs](https://x.dev "Docs") and `code`  \nnext\\\nlast').children
    kinds = [c.kind for c in para.children]
    assert kinds.count(NodeKind.BREAK) == 2
    link = next(c for c in para.children if c.kind is NodeKind.LINK)
    assert link.attrs["url"] == "https://x.dev"
    assert link.attrs["title"] == "Docs"
    assert any(c.kind is NodeKind.INLINE_CODE and c.value == "code" for c in para.children)


def test_less_than_in_prose_is_text() -> None:
    (para,) = parse("a < b and 3<4").children
    assert [c.kind for c in para.children] == [NodeKind.TEXT]
    assert para.children[0].value == "a < b and 3<4"


def test_parse_empty_input() -> None:
    assert parse("").children == []
    assert parse("\n\n  \n").children == []


def test_crlf_normalized() -> None:
    assert _kinds("# A\r\n\r\ntext\r\n") == [NodeKind.HEADING, NodeKind.PARAGRAPH]
