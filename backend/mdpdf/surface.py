from __future__ import annotations

import contextlib
from collections.abc import Iterator

from fpdf import FPDF
from fpdf.enums import MethodReturnValue, XPos, YPos

from .text import sanitize_pdf_text
from .theme import Theme, hex_to_rgb, resolve_font

# Core-font line box relative to the font size; the theme line gap is added on top.
LINE_HEIGHT_FACTOR = 1.15


class RenderContext:
    """Single owner of the drawing surface for one render call.

    Wraps the fpdf surface together with the merged theme. ``y`` is always read
    from the live surface cursor so nothing caches a position across a page
    break. Renderers only receive explicit x offsets and widths.
    """

    def __init__(self, pdf: FPDF, theme: Theme) -> None:
        self.pdf = pdf
        self.theme = theme
        self.base_left = float(pdf.l_margin)
        self.base_right = float(pdf.r_margin)
        self.page_number = 1
        self.chain_open = False

    @property
    def x(self) -> float:
        return float(self.pdf.get_x())

    @property
    def y(self) -> float:
        return float(self.pdf.get_y())

    @property
    def content_width(self) -> float:
        return float(self.pdf.w) - self.base_left - self.base_right

    @property
    def page_bottom(self) -> float:
        return float(self.pdf.h) - float(self.pdf.b_margin)

    def space_remaining(self) -> float:
        return self.page_bottom - self.y

    def use_font(self, identifier: str, size: float, *, underline: bool = False) -> None:
        family, style = resolve_font(identifier, registered=getattr(self.pdf, "fonts", {}))
        if underline:
            style += "U"
        self.pdf.set_font(family, style, size)

    def use_color(self, color: str) -> None:
        self.pdf.set_text_color(*hex_to_rgb(color))

    def use_body(self) -> None:
        self.use_font(self.theme.fonts.body, self.theme.font_size.body)
        self.use_color(self.theme.colors.text)

    def line_height(self, extra_gap: float = 0.0) -> float:
        return float(self.pdf.font_size) * LINE_HEIGHT_FACTOR + self.theme.spacing.line_gap + extra_gap

    def safe(self, text: str) -> str:
        if getattr(self.pdf, "is_ttf_font", False):
            return text
        return sanitize_pdf_text(text, encoding=getattr(self.pdf, "core_fonts_encoding", "latin-1"))

    def string_width(self, text: str) -> float:
        return float(self.pdf.get_string_width(self.safe(text)))

    def move_down(self, lines: float) -> None:
        """Advance the cursor by ``lines`` line heights of the current font."""
        if lines <= 0:
            return
        self.pdf.ln(lines * self.line_height())

    def draw_block(
        self,
        text: str,
        x: float,
        width: float,
        *,
        align: str = "L",
        fill: bool = False,
        extra_gap: float = 0.0,
    ) -> list[str]:
        """Draw ``text`` as one atomic wrapped block at the live cursor.

        Returns the wrapped lines as laid out by the surface.
        """
        self.close_chain()
        if not text:
            return []
        self.pdf.set_x(x)
        lines = self.pdf.multi_cell(
            width,
            self.line_height(extra_gap),
            self.safe(text),
            align=align,
            fill=fill,
            new_x=XPos.LMARGIN,
            new_y=YPos.NEXT,
            output=MethodReturnValue.LINES,
        )
        return [self._decoded(line) for line in lines or []]

    def _decoded(self, line: str) -> str:
        # Newer fpdf2 hands core-font lines back in the surface encoding.
        if getattr(self.pdf, "is_ttf_font", False):
            return line
        encoding = getattr(self.pdf, "core_fonts_encoding", None) or "latin-1"
        try:
            return line.encode("latin-1").decode(encoding)
        except (UnicodeError, LookupError):
            return line

    @contextlib.contextmanager
    def text_region(self, x: float, width: float) -> Iterator[None]:
        prev_left = self.pdf.l_margin
        prev_right = self.pdf.r_margin
        self.pdf.set_left_margin(x)
        self.pdf.set_right_margin(max(0.0, float(self.pdf.w) - x - width))
        try:
            yield
        finally:
            self.pdf.set_left_margin(prev_left)
            self.pdf.set_right_margin(prev_right)

    @contextlib.contextmanager
    def chain(self, x: float, width: float) -> Iterator[TextChain]:
        """Open a continued text chain anchored at ``(x, live y)``.

        Only the anchor carries coordinates; every write inside the chain
        continues from the surface's flow position. The chain is always
        closed on exit.
        """
        self.close_chain()
        line_height = self.line_height()
        with self.text_region(x, width):
            self.pdf.set_xy(x, self.y)
            self.chain_open = True
            try:
                yield TextChain(self, line_height)
            finally:
                self.close_chain(line_height)

    def close_chain(self, line_height: float | None = None) -> None:
        if not self.chain_open:
            return
        self.pdf.ln(line_height if line_height is not None else self.line_height())
        self.chain_open = False

    def realign(self) -> None:
        self.close_chain()
        self.pdf.set_left_margin(self.base_left)
        self.pdf.set_right_margin(self.base_right)
        self.pdf.set_x(self.base_left)


class TextChain:
    def __init__(self, ctx: RenderContext, line_height: float) -> None:
        self.ctx = ctx
        self.line_height = line_height

    def write(
        self,
        text: str,
        *,
        font: str,
        size: float,
        color: str,
        underline: bool = False,
        link: str | None = None,
    ) -> None:
        if not text:
            return
        ctx = self.ctx
        ctx.use_font(font, size, underline=underline)
        ctx.use_color(color)
        ctx.pdf.write(self.line_height, ctx.safe(text), link=link or "")
