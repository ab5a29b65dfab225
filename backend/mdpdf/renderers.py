from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .inline import render_inline
from .surface import RenderContext
from .text import coerce_text, has_url, split_long_tokens, strip_inline_markers
from .theme import Theme, hex_to_rgb

BULLET = "•"
HEADING_EXTRA_GAP = {1: 1.0, 2: 0.5, 3: 0.0}
CODE_TAB_SIZE = 4


@dataclass(frozen=True)
class FlowSpacing:
    """Blank space left below each block kind, in line-height units."""

    heading1: float = 0.3
    heading2: float = 0.25
    heading3: float = 0.2
    paragraph: float = 0.2
    list: float = 0.2
    list_with_url: float = 0.4
    blockquote: float = 0.2
    code_block: float = 0.3
    empty_line: float = 0.2
    toc_item: float = 0.15
    horizontal_rule: float = 0.5

    @classmethod
    def from_theme(cls, theme: Theme) -> FlowSpacing:
        s = theme.spacing
        return cls(
            heading1=s.heading1 * 0.3 or 0.3,
            heading2=s.heading2 * 0.3 or 0.25,
            heading3=s.heading3 * 0.3 or 0.2,
            paragraph=s.paragraph * 0.7 or 0.2,
            list=s.list * 0.5 or 0.2,
            blockquote=s.blockquote * 0.5 or 0.2,
            code_block=s.code_block * 0.5 or 0.3,
        )

    def heading(self, level: int) -> float:
        return {1: self.heading1, 2: self.heading2}.get(level, self.heading3)


def render_heading(ctx: RenderContext, text: object, level: int, x: float, width: float, spacing: float) -> list[str]:
    level = min(3, max(1, int(level)))
    theme = ctx.theme
    content = strip_inline_markers(coerce_text(text, kind=f"heading{level}")).strip()
    size = {1: theme.font_size.h1, 2: theme.font_size.h2, 3: theme.font_size.h3}[level]
    ctx.use_font(theme.fonts.heading, size)
    ctx.use_color(theme.colors.heading)
    lines = ctx.draw_block(split_long_tokens(content), x, width, extra_gap=HEADING_EXTRA_GAP[level])
    ctx.move_down(spacing)
    ctx.use_color(theme.colors.text)
    return lines


def _render_item(ctx: RenderContext, marker: str, content: str, x: float, width: float, spacing: float) -> list[str]:
    # Marker and content are one string in one draw.
    ctx.use_body()
    line = f"{marker} {strip_inline_markers(content)}".strip()
    lines = ctx.draw_block(line, x, width)
    ctx.move_down(spacing)
    return lines


def render_bullet_item(ctx: RenderContext, content: object, x: float, width: float, spacing: FlowSpacing) -> list[str]:
    text = coerce_text(content, kind="bullet item")
    gap = spacing.list_with_url if has_url(text) else spacing.list
    return _render_item(ctx, BULLET, text, x, width, gap)


def render_numbered_item(
    ctx: RenderContext,
    content: object,
    ordinal: int | str,
    x: float,
    width: float,
    spacing: FlowSpacing,
) -> list[str]:
    text = coerce_text(content, kind="numbered item")
    number = str(ordinal).strip().rstrip(".") or "1"
    gap = spacing.list_with_url if has_url(text) else spacing.list
    return _render_item(ctx, f"{number}.", text, x, width, gap)


def render_toc_item(
    ctx: RenderContext,
    content: object,
    prefix: str,
    x: float,
    width: float,
    spacing: float,
) -> list[str]:
    text = coerce_text(content, kind="table of contents item")
    return _render_item(ctx, str(prefix or "").strip(), text, x, width, spacing)


def render_blockquote(ctx: RenderContext, content: object, x: float, width: float, spacing: float) -> list[str]:
    theme = ctx.theme
    text = coerce_text(content, kind="blockquote")
    ctx.use_font(theme.fonts.italic, theme.font_size.body)
    ctx.use_color(theme.colors.blockquote)
    lines = ctx.draw_block(strip_inline_markers(text), x, width)
    ctx.use_color(theme.colors.text)
    ctx.move_down(spacing)
    return lines


def render_code_block(
    ctx: RenderContext,
    content: Sequence[str] | str,
    x: float,
    width: float,
    spacing: float,
    *,
    background: bool = True,
) -> list[str]:
    """Draw fenced code in the monospace font, keeping its line breaks.

    Wrapping beyond the explicit newlines is left to the surface.
    """
    theme = ctx.theme
    if isinstance(content, str):
        raw_lines = content.split("\n")
    elif isinstance(content, Sequence):
        raw_lines = [coerce_text(line, kind="code line") for line in content]
    else:
        raw_lines = coerce_text(content, kind="code block").split("\n")
    text = "\n".join(line.expandtabs(CODE_TAB_SIZE) for line in raw_lines)

    ctx.use_font(theme.fonts.code, theme.font_size.code)
    ctx.use_color(theme.colors.text)
    if background:
        ctx.pdf.set_fill_color(*hex_to_rgb(theme.colors.code_background, default=(244, 244, 244)))
    lines = ctx.draw_block(text, x, width, fill=background) if raw_lines else []
    ctx.use_body()
    ctx.move_down(spacing)
    return lines


def render_horizontal_rule(ctx: RenderContext, x: float, width: float, spacing: float) -> list[str]:
    y = ctx.y
    ctx.pdf.line(x, y, x + width, y)
    ctx.use_body()
    ctx.move_down(spacing)
    return []


def render_paragraph(ctx: RenderContext, content: object, x: float, width: float, spacing: float) -> list[str]:
    """Flow one paragraph line through the inline formatter.

    Returns the wrapped lines when the line had no inline styling and went
    out as a single draw; styled lines flow as a chain and return nothing.
    """
    ctx.use_body()
    lines = render_inline(ctx, content, x, width)
    ctx.move_down(spacing)
    return lines
