from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

from fpdf import FPDF
from PIL import Image

from .config import CREATOR
from .debug import log_position
from .logging_utils import get_logger
from .surface import RenderContext
from .text import split_long_tokens
from .theme import Theme, merge_theme

log = get_logger(__name__)

DEFAULT_TITLE = "Generated Document"
DEFAULT_SUBJECT = "Markdown Rendered PDF"
COVER_TITLE_Y = 100.0
COVER_TITLE_GAP = 40.0
COVER_AUTHOR_GAP = 20.0
COVER_IMAGE_GAP = 30.0
COVER_IMAGE_MAX_WIDTH = 0.6
FOOTER_OFFSET = 12.0
_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


def _meta_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v).strip() for v in value if str(v).strip())
    return str(value).strip()


def parse_metadata_date(value: Any, *, now: datetime | None = None) -> datetime:
    """Parse the metadata ``date``; anything unparsable falls back to ``now``."""
    fallback = now or datetime.now(timezone.utc)
    if value is None or value == "":
        return fallback
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    raw = _meta_text(value)
    candidate = re.sub(r"Z$", "+00:00", raw)
    try:
        parsed = datetime.fromisoformat(candidate)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(raw, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    log.warning("Invalid metadata date %r; using current time", raw)
    return fallback


def format_cover_date(when: datetime) -> str:
    return f"{when:%B} {when.day}, {when:%Y}"


def apply_document_info(
    pdf: FPDF,
    metadata: Mapping[str, Any] | None = None,
    *,
    title: str | None = None,
    author: str | None = None,
    created: datetime | None = None,
) -> datetime:
    meta = dict(metadata or {})
    created = created or parse_metadata_date(meta.get("date"))
    pdf.set_title(title or _meta_text(meta.get("title")) or DEFAULT_TITLE)
    pdf.set_author(author if author is not None else _meta_text(meta.get("author")))
    pdf.set_subject(_meta_text(meta.get("description")) or DEFAULT_SUBJECT)
    pdf.set_keywords(_meta_text(meta.get("keywords")))
    pdf.set_creator(CREATOR)
    pdf.set_creation_date(created)
    return created


def draw_footer(ctx: RenderContext, page_number: int, footer_text: str = "") -> None:
    """Draw the centered page footer without moving the cursor or changing fonts."""
    pdf = ctx.pdf
    theme = ctx.theme
    label = f"Page {page_number}"
    if footer_text:
        label = f"{footer_text} | {label}"
    saved_x, saved_y = pdf.get_x(), pdf.get_y()
    with pdf.local_context():
        ctx.use_font(theme.fonts.body, theme.font_size.footer)
        ctx.use_color(theme.colors.footer)
        width = ctx.string_width(label)
        x = (float(pdf.w) - width) / 2
        baseline = ctx.page_bottom + FOOTER_OFFSET + theme.font_size.footer
        pdf.text(x, baseline, ctx.safe(label))
    pdf.set_xy(saved_x, saved_y)


def _draw_centered(ctx: RenderContext, text: str, y: float) -> float:
    pdf = ctx.pdf
    text = split_long_tokens(text)
    width = min(ctx.string_width(text) + 2 * float(pdf.c_margin) + 1, ctx.content_width)
    x = (float(pdf.w) - width) / 2
    pdf.set_y(y)
    ctx.draw_block(text, x, width, align="C")
    return ctx.y


def _draw_cover_image(ctx: RenderContext, source: str, top: float) -> None:
    path = Path(source).expanduser()
    if not path.is_file():
        log.warning("Cover image not found: %s", path)
        return
    try:
        with Image.open(path) as img:
            width_px, height_px = img.size
            dpi = img.info.get("dpi")
    except Exception:
        log.warning("Cover image could not be read: %s", path, exc_info=True)
        return
    if width_px <= 0 or height_px <= 0:
        return
    dpi_value = 96.0
    if isinstance(dpi, (tuple, list)) and dpi and dpi[0]:
        dpi_value = float(dpi[0])
    natural_width = width_px / dpi_value * 72.0
    width = min(natural_width, ctx.content_width * COVER_IMAGE_MAX_WIDTH)
    height = width * height_px / width_px
    room = ctx.page_bottom - top
    if height > room > 0:
        width *= room / height
        height = room
    try:
        ctx.pdf.image(str(path), x=(float(ctx.pdf.w) - width) / 2, y=top, w=width, h=height)
    except Exception:
        log.warning("Cover image could not be drawn: %s", path, exc_info=True)


def render_cover_page(
    pdf: FPDF,
    metadata: Mapping[str, Any] | None,
    theme: Theme | Mapping[str, Any] | None = None,
    *,
    now: datetime | None = None,
) -> None:
    """Draw the cover page (title, author, date) and start a fresh content page.

    Also fills in the document info dictionary. A missing or invalid date
    shows ``now`` (today by default) instead of failing.
    """
    merged = merge_theme(theme)
    ctx = RenderContext(pdf, merged)
    meta = dict(metadata or {})
    title = _meta_text(meta.get("title")) or DEFAULT_TITLE
    author = _meta_text(meta.get("author"))
    created = parse_metadata_date(meta.get("date"), now=now)
    apply_document_info(pdf, meta, title=title, author=author, created=created)

    if pdf.page == 0:
        pdf.add_page()
    ctx.realign()

    fonts = merged.fonts
    sizes = merged.font_size
    ctx.use_font(fonts.heading, sizes.h1 + 4)
    ctx.use_color(merged.colors.heading)
    y = _draw_centered(ctx, title, COVER_TITLE_Y) + COVER_TITLE_GAP

    if author:
        ctx.use_font(fonts.italic, max(1.0, sizes.h3 - 2))
        ctx.use_color(merged.colors.text)
        y = _draw_centered(ctx, f"By: {author}", y) + COVER_AUTHOR_GAP

    ctx.use_font(fonts.body, sizes.body)
    ctx.use_color(merged.colors.text)
    y = _draw_centered(ctx, format_cover_date(created), y)

    image = _meta_text(meta.get("image"))
    if image:
        _draw_cover_image(ctx, image, y + COVER_IMAGE_GAP)

    ctx.use_body()
    ctx.realign()
    log_position(ctx, "Before adding page after cover")
    pdf.add_page()
    ctx.realign()
    log_position(ctx, "After cover page, start of content page")
