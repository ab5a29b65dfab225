from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from fpdf import FPDF

from .classifier import Block
from .config import CORE_FONTS_ENCODING, DEBUG_LAYOUT, PAGE_FORMAT
from .flow import FlowController
from .logging_utils import get_logger
from .pages import apply_document_info, render_cover_page
from .surface import RenderContext
from .theme import Theme, merge_theme

log = get_logger(__name__)

__all__ = ["RenderInputError", "create_surface", "render_cover_page", "render_markdown_document"]


class RenderInputError(ValueError):
    pass


def create_surface(
    theme: Theme | Mapping[str, Any] | None = None,
    *,
    page_format: str = PAGE_FORMAT,
) -> FPDF:
    """Build a points-based surface with the theme's margins and auto page breaks."""
    merged = merge_theme(theme)
    margins = merged.margins
    pdf = FPDF(orientation="P", unit="pt", format=page_format)
    pdf.core_fonts_encoding = CORE_FONTS_ENCODING
    pdf.set_margins(left=margins.left, top=margins.top, right=margins.right)
    pdf.set_auto_page_break(auto=True, margin=margins.bottom)
    return pdf


def render_markdown_document(
    pdf: FPDF,
    markdown: str,
    theme: Theme | Mapping[str, Any] | None = None,
    *,
    footer_text: str = "",
    metadata: Mapping[str, Any] | None = None,
    debug: bool | None = None,
    on_block: Callable[[Block, list[str]], None] | None = None,
) -> int:
    """Flow ``markdown`` onto ``pdf`` starting at the current page.

    Returns the number of content pages drawn. The caller owns the surface and
    is responsible for ``pdf.output()``. A cover page, if wanted, is drawn
    first with :func:`render_cover_page`.
    """
    if pdf is None:
        raise RenderInputError("a drawing surface is required")
    if not isinstance(markdown, str) or not markdown.strip():
        raise RenderInputError("markdown must be a non-empty string")

    merged = merge_theme(theme)
    if metadata is not None or not getattr(pdf, "title", None):
        apply_document_info(pdf, metadata)

    ctx = RenderContext(pdf, merged)
    controller = FlowController(
        ctx,
        footer_text=str(footer_text or ""),
        debug=DEBUG_LAYOUT if debug is None else bool(debug),
        on_block=on_block,
    )
    lines = markdown.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    controller.start()
    try:
        controller.render(lines)
    finally:
        controller.stop()
    log.info("Rendered %d lines onto %d content pages", len(lines), ctx.page_number)
    return ctx.page_number
