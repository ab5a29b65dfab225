from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from fpdf import FPDF

from .classifier import Block, BlockKind, TocTracker, iter_blocks
from .debug import log_page_break, log_position, visualize_margins
from .logging_utils import get_logger
from .pages import draw_footer
from .renderers import (
    FlowSpacing,
    render_blockquote,
    render_bullet_item,
    render_code_block,
    render_heading,
    render_horizontal_rule,
    render_numbered_item,
    render_paragraph,
    render_toc_item,
)
from .surface import RenderContext

log = get_logger(__name__)

LIST_INDENT = 10.0
TOC_INDENT = 5.0
BLOCKQUOTE_INDENT = 20.0
CODE_INDENT = 10.0
MARKER_SAFETY = 5.0
NESTED_LIST_STEP = 15.0
MIN_BLOCK_WIDTH = 36.0
HEADING_KEEP_SPACE = 50.0


def _ordinal_label(block: Block) -> str:
    # Source digits as written, e.g. "0." or "07.".
    if block.prefix:
        return block.prefix
    return str(block.ordinal if block.ordinal is not None else 1)


@dataclass(frozen=True)
class Geometry:
    x: float
    width: float


class FlowController:
    """Classify markdown lines and dispatch them to the block renderers.

    Owns the page-number bookkeeping: a hook on the surface's page header
    fires for every new page, explicit or triggered by overflow, and draws the
    footer without disturbing the flow.
    """

    def __init__(
        self,
        ctx: RenderContext,
        *,
        footer_text: str = "",
        debug: bool = False,
        on_block: Callable[[Block, list[str]], None] | None = None,
    ) -> None:
        self.ctx = ctx
        self.spacing = FlowSpacing.from_theme(ctx.theme)
        self.toc = TocTracker()
        self.footer_text = footer_text
        self.debug = debug
        self.on_block = on_block
        self._hooked = False
        self._saved_header: Callable[[], None] | None = None

    def geometry(self, block: Block) -> Geometry:
        ctx = self.ctx
        left = ctx.base_left
        width = ctx.content_width
        nested = block.depth * NESTED_LIST_STEP
        kind = block.kind
        if kind in (BlockKind.BULLET_ITEM, BlockKind.NUMBERED_ITEM):
            indent = LIST_INDENT + nested
            return self._clamp(left + indent, width - indent - MARKER_SAFETY)
        if kind is BlockKind.TOC_ITEM:
            indent = TOC_INDENT + nested
            return self._clamp(left + indent, width - indent - MARKER_SAFETY)
        if kind is BlockKind.BLOCKQUOTE:
            return self._clamp(left + BLOCKQUOTE_INDENT, width - BLOCKQUOTE_INDENT)
        if kind is BlockKind.CODE_BLOCK:
            return self._clamp(left + CODE_INDENT, width - CODE_INDENT * 2)
        return Geometry(left, width)

    def _clamp(self, x: float, width: float) -> Geometry:
        if width >= MIN_BLOCK_WIDTH:
            return Geometry(x, width)
        right = self.ctx.base_left + self.ctx.content_width
        width = min(MIN_BLOCK_WIDTH, self.ctx.content_width)
        return Geometry(min(x, right - width), width)

    def start(self) -> None:
        """Decorate the current page and hook page creation on the surface."""
        ctx = self.ctx
        if ctx.pdf.page == 0:
            ctx.pdf.add_page()
        if self.debug:
            visualize_margins(ctx, fill_background=True)
        draw_footer(ctx, ctx.page_number, self.footer_text)
        self._install_page_hook()
        ctx.use_body()
        ctx.realign()
        log_position(ctx, "Start of markdown rendering")

    def _install_page_hook(self) -> None:
        if self._hooked:
            return
        pdf = self.ctx.pdf
        self._saved_header = vars(pdf).get("header")
        previous_header = pdf.header
        controller = self

        def header(surface: FPDF) -> None:
            previous_header()
            controller.on_page_added()

        pdf.header = header.__get__(pdf, type(pdf))
        self._hooked = True

    def stop(self) -> None:
        """Detach the page hook so later pages on the surface are left alone."""
        if not self._hooked:
            return
        pdf = self.ctx.pdf
        if self._saved_header is None:
            vars(pdf).pop("header", None)
        else:
            pdf.header = self._saved_header
        self._saved_header = None
        self._hooked = False

    def on_page_added(self) -> None:
        ctx = self.ctx
        ctx.page_number += 1
        log_page_break(ctx)
        if self.debug:
            visualize_margins(ctx, fill_background=True)
        draw_footer(ctx, ctx.page_number, self.footer_text)

    def ensure_space(self, needed: float) -> bool:
        ctx = self.ctx
        if ctx.space_remaining() >= needed or ctx.y <= ctx.pdf.t_margin + 1:
            return False
        log.debug("Starting a new page at y=%.1f to keep %.1fpt together", ctx.y, needed)
        ctx.close_chain()
        ctx.pdf.add_page()
        return True

    def render(self, lines: Sequence[str]) -> None:
        ctx = self.ctx
        last = len(lines) - 1
        for index, block in iter_blocks(lines, self.toc):
            drawn = self.render_block(block)
            if self.on_block is not None:
                self.on_block(block, drawn)
            if index < last:
                ctx.realign()
        ctx.close_chain()
        log_position(ctx, "End of markdown rendering")

    def render_block(self, block: Block) -> list[str]:
        ctx = self.ctx
        spacing = self.spacing
        kind = block.kind
        if kind is BlockKind.SKIP:
            if not block.text:
                ctx.move_down(spacing.empty_line)
            return []
        if kind is BlockKind.HEADING and block.level <= 2:
            self.ensure_space(HEADING_KEEP_SPACE)

        geo = self.geometry(block)
        if kind is BlockKind.HEADING:
            return render_heading(ctx, block.text, block.level, geo.x, geo.width, spacing.heading(block.level))
        if kind is BlockKind.TOC_ITEM:
            return render_toc_item(ctx, block.text, block.prefix, geo.x, geo.width, spacing.toc_item)
        if kind is BlockKind.BULLET_ITEM:
            return render_bullet_item(ctx, block.text, geo.x, geo.width, spacing)
        if kind is BlockKind.NUMBERED_ITEM:
            return render_numbered_item(ctx, block.text, _ordinal_label(block), geo.x, geo.width, spacing)
        if kind is BlockKind.BLOCKQUOTE:
            return render_blockquote(ctx, block.text, geo.x, geo.width, spacing.blockquote)
        if kind is BlockKind.HORIZONTAL_RULE:
            return render_horizontal_rule(ctx, geo.x, geo.width, spacing.horizontal_rule)
        if kind is BlockKind.CODE_BLOCK:
            return render_code_block(ctx, block.lines, geo.x, geo.width, spacing.code_block)
        return render_paragraph(ctx, block.text, geo.x, geo.width, spacing.paragraph)
