from __future__ import annotations

from mdpdf.document import create_surface
from mdpdf.inline import Span, SpanStyle, render_inline, tokenize_inline
from mdpdf.surface import RenderContext
from mdpdf.theme import merge_theme


def make_ctx() -> RenderContext:
    pdf = create_surface()
    pdf.add_page()
    ctx = RenderContext(pdf, merge_theme(None))
    ctx.use_body()
    return ctx


def test_mixed_formatting_in_source_order():
    spans = tokenize_inline("This is **bold** and _italic_ and `code`.")
    assert spans == [
        Span("This is "),
        Span("bold", SpanStyle.BOLD),
        Span(" and "),
        Span("italic", SpanStyle.ITALIC),
        Span(" and "),
        Span("code", SpanStyle.CODE),
        Span("."),
    ]


def test_url_line_splits_into_plain_and_link():
    spans = tokenize_inline("Visit https://example.com/docs now")
    assert [s.style for s in spans] == [SpanStyle.PLAIN, SpanStyle.LINK, SpanStyle.PLAIN]
    assert spans[1].text == "https://example.com/docs"
    assert spans[1].url == "https://example.com/docs"


def test_url_line_ignores_delimiters():
    spans = tokenize_inline("**see** https://example.com")
    assert spans[0] == Span("**see** ")
    assert spans[1].style is SpanStyle.LINK


def test_code_wins_over_bold():
    assert tokenize_inline("`a **b**`") == [Span("a **b**", SpanStyle.CODE)]


def test_plain_and_empty_text():
    assert tokenize_inline("") == []
    assert tokenize_inline("just words") == [Span("just words")]


def test_double_underscore_is_bold():
    spans = tokenize_inline("a __b__ c")
    assert spans == [Span("a "), Span("b", SpanStyle.BOLD), Span(" c")]


def test_plain_paragraph_is_one_atomic_draw():
    ctx = make_ctx()
    y0 = ctx.y
    lines = render_inline(ctx, "one plain line", ctx.base_left, ctx.content_width)
    assert lines == ["one plain line"]
    assert ctx.y > y0
    assert not ctx.chain_open


def test_styled_paragraph_closes_its_chain():
    ctx = make_ctx()
    y0 = ctx.y
    lines = render_inline(ctx, "a **b** c and https://example.com", ctx.base_left, ctx.content_width)
    assert lines == []
    assert not ctx.chain_open
    assert ctx.y > y0
    assert ctx.pdf.l_margin == ctx.base_left
    assert ctx.pdf.r_margin == ctx.base_right
