from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .surface import RenderContext
from .text import BOLD_RE, CODE_RE, ITALIC_RE, URL_RE, coerce_text

_DELIMITER_RE = re.compile(r"\*\*|__|_[^_]+_|`[^`]+`")

# Inline code first, then bold, then italic; a later pass never reaches into
# a region an earlier pass already claimed.
_PASSES = (
    ("code", CODE_RE),
    ("bold", BOLD_RE),
    ("italic", ITALIC_RE),
)


class SpanStyle(str, Enum):
    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"
    CODE = "code"
    LINK = "link"


@dataclass(frozen=True)
class Span:
    text: str
    style: SpanStyle = SpanStyle.PLAIN
    url: str | None = None


def _split_urls(text: str) -> list[Span]:
    spans: list[Span] = []
    last = 0
    for match in URL_RE.finditer(text):
        if match.start() > last:
            spans.append(Span(text[last : match.start()]))
        url = match.group(0)
        spans.append(Span(url, SpanStyle.LINK, url))
        last = match.end()
    if last < len(text):
        spans.append(Span(text[last:]))
    return spans


def _split_delimiters(text: str) -> list[Span]:
    masked = text
    found: list[tuple[int, int, Span]] = []
    for style, pattern in _PASSES:
        for match in pattern.finditer(masked):
            content = next(g for g in match.groups() if g is not None)
            found.append((match.start(), match.end(), Span(content, SpanStyle(style))))
        masked = pattern.sub(lambda m: "\x00" * len(m.group(0)), masked)
    found.sort(key=lambda item: item[0])

    spans: list[Span] = []
    pos = 0
    for start, end, span in found:
        if start > pos:
            spans.append(Span(text[pos:start]))
        spans.append(span)
        pos = end
    if pos < len(text):
        spans.append(Span(text[pos:]))
    return spans


def tokenize_inline(text: str) -> list[Span]:
    """Split one logical line into styled spans, in source order.

    Lines with URLs only split into plain and link spans. Otherwise inline
    code, bold and italic are recognised in that order of precedence; nested
    formatting is not attempted.
    """
    if not text:
        return []
    if URL_RE.search(text):
        return _split_urls(text)
    if not _DELIMITER_RE.search(text):
        return [Span(text)]
    return _split_delimiters(text)


def render_spans(ctx: RenderContext, spans: list[Span], x: float, width: float) -> list[str]:
    """Draw spans as one visual line; returns wrapped lines for single-draw output."""
    if not spans:
        return []
    theme = ctx.theme
    if len(spans) == 1 and spans[0].style is SpanStyle.PLAIN:
        ctx.use_body()
        return ctx.draw_block(spans[0].text, x, width)

    fonts = {
        SpanStyle.PLAIN: (theme.fonts.body, theme.font_size.body),
        SpanStyle.BOLD: (theme.fonts.bold, theme.font_size.body),
        SpanStyle.ITALIC: (theme.fonts.italic, theme.font_size.body),
        SpanStyle.CODE: (theme.fonts.code, theme.font_size.code),
        SpanStyle.LINK: (theme.fonts.body, theme.font_size.body),
    }
    ctx.use_body()
    with ctx.chain(x, width) as chain:
        for span in spans:
            font, size = fonts[span.style]
            if span.style is SpanStyle.LINK:
                chain.write(
                    span.text,
                    font=font,
                    size=size,
                    color=theme.colors.link,
                    underline=True,
                    link=span.url,
                )
            else:
                chain.write(span.text, font=font, size=size, color=theme.colors.text)
    ctx.use_body()
    return []


def render_inline(ctx: RenderContext, text: object, x: float, width: float) -> list[str]:
    content = coerce_text(text, kind="paragraph")
    return render_spans(ctx, tokenize_inline(content), x, width)
