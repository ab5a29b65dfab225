from __future__ import annotations

from .logging_utils import get_logger
from .surface import RenderContext
from .theme import hex_to_rgb

log = get_logger(__name__)

OVERLAY_FILL = "#3b82f6"
OVERLAY_OPACITY = 0.08
RULER_COLOR = "#aaaaaa"
RULER_LABEL_COLOR = "#999999"


def visualize_margins(
    ctx: RenderContext,
    *,
    fill_background: bool = False,
    border_color: str = "#cccccc",
    ruler_step: float = 100.0,
) -> None:
    """Overlay the content area and horizontal rulers on the current page.

    Purely visual: the cursor, font and colors are the same afterwards.
    """
    pdf = ctx.pdf
    x = ctx.base_left
    y = float(pdf.t_margin)
    width = ctx.content_width
    height = ctx.page_bottom - y
    saved_x, saved_y = pdf.get_x(), pdf.get_y()

    with pdf.local_context():
        if fill_background:
            with pdf.local_context(fill_opacity=OVERLAY_OPACITY):
                pdf.set_fill_color(*hex_to_rgb(OVERLAY_FILL))
                pdf.rect(x, y, width, height, style="F")
        pdf.set_draw_color(*hex_to_rgb(border_color))
        pdf.set_line_width(0.5)
        pdf.rect(x, y, width, height)

        pdf.set_draw_color(*hex_to_rgb(RULER_COLOR))
        pdf.set_line_width(0.2)
        pdf.set_font("Helvetica", "", 8)
        pdf.set_text_color(*hex_to_rgb(RULER_LABEL_COLOR))
        ruler = y + ruler_step
        while ruler < ctx.page_bottom:
            pdf.line(x, ruler, x + width, ruler)
            pdf.text(x + 5, ruler - 2, f"y: {ruler:g}")
            ruler += ruler_step

    pdf.set_xy(saved_x, saved_y)
    log.debug(
        "Page %d dimensions: %.1fx%.1f, content area x=%.1f y=%.1f w=%.1f h=%.1f",
        ctx.page_number,
        pdf.w,
        pdf.h,
        x,
        y,
        width,
        height,
    )


def log_position(ctx: RenderContext, label: str = "") -> None:
    log.debug("%s position - y: %.1f, space remaining: %.1fpt", label, ctx.y, ctx.space_remaining())


def log_page_break(ctx: RenderContext) -> None:
    log.debug("Page %d added (surface page %d)", ctx.page_number, ctx.pdf.page)
