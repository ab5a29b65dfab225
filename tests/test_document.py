from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest
from PIL import Image

from mdpdf import RenderInputError, create_surface, render_cover_page, render_markdown_document
from mdpdf.classifier import Block, BlockKind
from mdpdf.debug import visualize_margins
from mdpdf.flow import FlowController
from mdpdf.pages import apply_document_info, format_cover_date, parse_metadata_date
from mdpdf.surface import RenderContext
from mdpdf.theme import merge_theme

SAMPLE = """# Table of Contents

1. [Introduction](#introduction)
2. [Usage](#usage)

---

# Introduction

<a name="introduction"></a>
This is **bold** and _italic_ and `code`.

- Short item
- A much longer bullet item that keeps going long enough to wrap over more than a single line of the page
  - nested item with https://example.com

> A quote to close the section.

## Usage

```python
def main():
\treturn 1
```

3. third
"""


def test_rejects_bad_input():
    pdf = create_surface()
    with pytest.raises(RenderInputError):
        render_markdown_document(pdf, "")
    with pytest.raises(RenderInputError):
        render_markdown_document(pdf, "   \n ")
    with pytest.raises(RenderInputError):
        render_markdown_document(pdf, 123)
    with pytest.raises(RenderInputError):
        render_markdown_document(None, "# Title")
    assert pdf.page == 0


def test_sample_document_renders():
    pdf = create_surface()
    seen: list[tuple[BlockKind, list[str]]] = []

    def on_block(block: Block, drawn: list[str]) -> None:
        # Margins and text chains never leak out of a block.
        assert pdf.l_margin == 72
        assert pdf.r_margin == 72
        seen.append((block.kind, drawn))

    pages = render_markdown_document(pdf, SAMPLE, footer_text="Sample", on_block=on_block)
    assert pages == pdf.page
    kinds = [kind for kind, _ in seen]
    assert kinds.count(BlockKind.TOC_ITEM) == 2
    assert kinds.count(BlockKind.CODE_BLOCK) == 1
    assert BlockKind.NUMBERED_ITEM in kinds
    bullets = [drawn for kind, drawn in seen if kind is BlockKind.BULLET_ITEM]
    assert len(bullets[0]) == 1
    assert len(bullets[1]) >= 2
    assert all(len(line.strip()) > 1 for drawn in bullets for line in drawn)
    assert bytes(pdf.output()).startswith(b"%PDF")


def test_cursor_moves_down_within_a_page():
    pdf = create_surface()
    positions: list[tuple[int, float]] = []
    render_markdown_document(pdf, SAMPLE, on_block=lambda block, drawn: positions.append((pdf.page, pdf.get_y())))
    for (page_a, y_a), (page_b, y_b) in zip(positions, positions[1:]):
        if page_a == page_b:
            assert y_b >= y_a


def test_long_document_counts_pages():
    pdf = create_surface()
    markdown = "\n".join(f"Paragraph {n} with a few words to fill the line." for n in range(200))
    pages = render_markdown_document(pdf, markdown, footer_text="Report")
    assert pages > 1
    assert pages == pdf.page
    assert "header" not in vars(pdf)


def test_cover_page_then_content():
    pdf = create_surface()
    render_cover_page(pdf, {"title": "Handbook", "author": "Docs Team", "keywords": ["a", "b"]})
    assert pdf.page == 2
    assert pdf.title == "Handbook"
    assert pdf.author == "Docs Team"
    assert pdf.keywords == "a, b"
    assert pdf.subject == "Markdown Rendered PDF"
    pages = render_markdown_document(pdf, "# Body\n\nText")
    assert pages == 1
    assert pdf.page == 2
    assert pdf.title == "Handbook"


def test_cover_page_with_invalid_date(caplog):
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)
    pdf = create_surface()
    pdf.compress = False
    with caplog.at_level(logging.WARNING, logger="mdpdf"):
        render_cover_page(pdf, {"title": "T", "date": "not-a-date"}, now=now)
    assert pdf.page == 2
    assert "Invalid metadata date" in caplog.text
    assert b"(January 1, 2030)" in bytes(pdf.output())


def test_cover_page_date_defaults_to_today():
    before = datetime.now(timezone.utc)
    pdf = create_surface()
    pdf.compress = False
    render_cover_page(pdf, {"title": "T", "date": "not-a-date"})
    after = datetime.now(timezone.utc)
    content = bytes(pdf.output())
    assert any(f"({format_cover_date(day)})".encode() in content for day in (before, after))


def test_numbered_items_keep_source_digits():
    pdf = create_surface()
    numbered: list[list[str]] = []

    def on_block(block: Block, drawn: list[str]) -> None:
        if block.kind is BlockKind.NUMBERED_ITEM:
            numbered.append(drawn)

    render_markdown_document(pdf, "0. zero item\n07. seven", on_block=on_block)
    assert numbered == [["0. zero item"], ["07. seven"]]


def test_unknown_theme_fonts_fall_back_to_core_fonts():
    pdf = create_surface()
    theme = {"fonts": {"body": "Georgia", "heading": "Georgia-Bold", "code": "Fira Mono"}}
    pages = render_markdown_document(pdf, "# Title\n\nbody text\n\n```\ncode\n```", theme)
    assert pages == 1
    assert bytes(pdf.output()).startswith(b"%PDF")


def test_cover_image(tmp_path: Path, caplog):
    image = tmp_path / "cover.png"
    Image.new("RGB", (120, 60), "navy").save(image)
    pdf = create_surface()
    render_cover_page(pdf, {"title": "T", "image": str(image)})
    assert pdf.page == 2

    pdf = create_surface()
    with caplog.at_level(logging.WARNING, logger="mdpdf"):
        render_cover_page(pdf, {"title": "T", "image": str(tmp_path / "missing.png")})
    assert pdf.page == 2
    assert "Cover image not found" in caplog.text


def test_parse_metadata_date():
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)
    assert parse_metadata_date("not-a-date", now=now) == now
    assert parse_metadata_date(None, now=now) == now
    assert parse_metadata_date("2024-03-05", now=now).date().isoformat() == "2024-03-05"
    assert parse_metadata_date("2024-03-05T10:00:00Z", now=now).hour == 10
    assert parse_metadata_date("March 5, 2024", now=now).day == 5
    assert format_cover_date(datetime(2024, 3, 5)) == "March 5, 2024"


def test_document_info_defaults():
    pdf = create_surface()
    apply_document_info(pdf, {"description": "About things"})
    assert pdf.title == "Generated Document"
    assert pdf.subject == "About things"
    assert pdf.creator == "mdpdf"


def test_debug_overlay_keeps_cursor():
    pdf = create_surface()
    pdf.add_page()
    ctx = RenderContext(pdf, merge_theme(None))
    ctx.use_body()
    pdf.set_xy(100, 200)
    visualize_margins(ctx, fill_background=True)
    assert pdf.get_x() == 100
    assert pdf.get_y() == 200
    assert pdf.font_family == "helvetica"
    assert pdf.font_size_pt == 12


def test_debug_render():
    pdf = create_surface()
    assert render_markdown_document(pdf, SAMPLE, debug=True) >= 1


def test_geometry_per_block_kind():
    pdf = create_surface()
    controller = FlowController(RenderContext(pdf, merge_theme(None)))
    plain = controller.geometry(Block(BlockKind.PARAGRAPH))
    assert (plain.x, plain.width) == (72, 468)
    bullet = controller.geometry(Block(BlockKind.BULLET_ITEM, depth=1))
    assert (bullet.x, bullet.width) == (97, 438)
    toc = controller.geometry(Block(BlockKind.TOC_ITEM))
    assert (toc.x, toc.width) == (77, 458)
    quote = controller.geometry(Block(BlockKind.BLOCKQUOTE))
    assert (quote.x, quote.width) == (92, 448)
    code = controller.geometry(Block(BlockKind.CODE_BLOCK))
    assert (code.x, code.width) == (82, 448)
