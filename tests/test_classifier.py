from __future__ import annotations

import logging

from mdpdf.classifier import Block, BlockKind, TocState, TocTracker, classify_line, iter_blocks, list_depth


def kinds(lines):
    return [block.kind for _, block in iter_blocks(lines)]


def test_headings():
    assert classify_line("# Title") == Block(BlockKind.HEADING, "Title", level=1)
    assert classify_line("## Sub").level == 2
    assert classify_line("### Small").level == 3


def test_list_items():
    assert classify_line("- item") == Block(BlockKind.BULLET_ITEM, "item")
    assert classify_line("* item").kind is BlockKind.BULLET_ITEM
    numbered = classify_line("3. third")
    assert numbered.kind is BlockKind.NUMBERED_ITEM
    assert numbered.ordinal == 3
    assert numbered.text == "third"
    assert classify_line("07. seven").prefix == "07."


def test_other_blocks():
    assert classify_line("> quoted").kind is BlockKind.BLOCKQUOTE
    assert classify_line("---").kind is BlockKind.HORIZONTAL_RULE
    assert classify_line("***").kind is BlockKind.HORIZONTAL_RULE
    assert classify_line("plain words") == Block(BlockKind.PARAGRAPH, "plain words")
    assert classify_line("   ") == Block(BlockKind.SKIP)


def test_anchor_tag_is_skipped_without_spacing():
    block = classify_line('<a name="intro"></a>')
    assert block.kind is BlockKind.SKIP
    assert block.text


def test_classification_is_idempotent():
    for line in ("# A", "- b", "1. c", "> d", "---", "text", ""):
        assert classify_line(line) == classify_line(line)


def test_toc_items_only_inside_toc():
    assert classify_line("1. [Intro](#intro)", TocState.IN_TOC).kind is BlockKind.TOC_ITEM
    assert classify_line("1. [Intro](#intro)", TocState.IN_TOC).prefix == "1."
    assert classify_line("- [Intro](#intro)", TocState.IN_TOC).prefix == "•"
    assert classify_line("- no link", TocState.IN_TOC).kind is BlockKind.BULLET_ITEM
    assert classify_line("1. [Intro](#intro)").kind is BlockKind.NUMBERED_ITEM


def test_toc_section_ends_at_next_h1():
    lines = ["# Table of Contents", "1. [A](#a)", "## Part", "2. [B](#b)", "# Intro", "1. first"]
    assert kinds(lines) == [
        BlockKind.HEADING,
        BlockKind.TOC_ITEM,
        BlockKind.HEADING,
        BlockKind.TOC_ITEM,
        BlockKind.HEADING,
        BlockKind.NUMBERED_ITEM,
    ]


def test_toc_section_ends_at_rule():
    lines = ["# Table of Contents", "- [A](#a)", "---", "- [B](#b)"]
    assert kinds(lines) == [
        BlockKind.HEADING,
        BlockKind.TOC_ITEM,
        BlockKind.HORIZONTAL_RULE,
        BlockKind.BULLET_ITEM,
    ]


def test_tracker_transitions():
    tracker = TocTracker()
    assert tracker.on_heading(1, "Table of Contents") is TocState.IN_TOC
    assert tracker.on_heading(2, "Anything") is TocState.IN_TOC
    assert tracker.on_rule() is TocState.NORMAL
    tracker.on_heading(1, "TABLE OF CONTENTS")
    assert tracker.active
    assert tracker.on_heading(1, "Chapter") is TocState.NORMAL


def test_fenced_code_keeps_lines_verbatim():
    lines = ["```python", "x = 1", "  # not a heading", "```", "after"]
    blocks = list(iter_blocks(lines))
    assert len(blocks) == 2
    index, code = blocks[0]
    assert index == 3
    assert code.kind is BlockKind.CODE_BLOCK
    assert code.lines == ("x = 1", "  # not a heading")
    assert code.text == "python"
    assert blocks[1][1] == Block(BlockKind.PARAGRAPH, "after")


def test_unterminated_fence_takes_rest_of_document(caplog):
    with caplog.at_level(logging.WARNING, logger="mdpdf"):
        blocks = list(iter_blocks(["intro", "```", "a", "- b"]))
    assert [b.kind for _, b in blocks] == [BlockKind.PARAGRAPH, BlockKind.CODE_BLOCK]
    assert blocks[-1] == (3, Block(BlockKind.CODE_BLOCK, lines=("a", "- b")))
    assert "Unterminated code fence" in caplog.text


def test_empty_fence_pair():
    blocks = list(iter_blocks(["```", "```"]))
    assert blocks == [(1, Block(BlockKind.CODE_BLOCK))]


def test_nested_list_depth():
    assert list_depth("- top") == 0
    assert list_depth("  - one") == 1
    assert list_depth("\t- tab") == 2
    assert list_depth(" " * 20 + "- deep") == 4
    assert classify_line("    - nested").depth == 2
