from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

from .logging_utils import get_logger

log = get_logger(__name__)

FENCE = "```"
MAX_LIST_DEPTH = 4

_NUMBERED_RE = re.compile(r"^(\d+)\.\s+(.*)$")
_RULE_RE = re.compile(r"^[-*_]{3,}$")
_TOC_LINK_RE = re.compile(r"\[[^\]]+\]")
_ANCHOR_RE = re.compile(r"^<a\s+(?:name|id)=[^>]*>.*</a>$", re.IGNORECASE)
_TOC_TITLE = "table of contents"


class BlockKind(str, Enum):
    HEADING = "heading"
    BULLET_ITEM = "bullet_item"
    NUMBERED_ITEM = "numbered_item"
    TOC_ITEM = "toc_item"
    BLOCKQUOTE = "blockquote"
    CODE_BLOCK = "code_block"
    HORIZONTAL_RULE = "horizontal_rule"
    PARAGRAPH = "paragraph"
    SKIP = "skip"


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    text: str = ""
    level: int = 0
    ordinal: int | None = None
    prefix: str = ""
    lines: tuple[str, ...] = ()
    depth: int = 0


class TocState(str, Enum):
    NORMAL = "normal"
    IN_TOC = "in_toc"


class TocTracker:
    """Tracks whether the line stream is inside a table of contents.

    A level-1 heading mentioning "table of contents" enters the section; any
    other level-1 heading or a horizontal rule leaves it.
    """

    def __init__(self, state: TocState = TocState.NORMAL) -> None:
        self.state = state

    @property
    def active(self) -> bool:
        return self.state is TocState.IN_TOC

    def on_heading(self, level: int, text: str) -> TocState:
        if level == 1:
            self.state = TocState.IN_TOC if _TOC_TITLE in text.lower() else TocState.NORMAL
        return self.state

    def on_rule(self) -> TocState:
        self.state = TocState.NORMAL
        return self.state

    def observe(self, block: Block) -> TocState:
        if block.kind is BlockKind.HEADING:
            return self.on_heading(block.level, block.text)
        if block.kind is BlockKind.HORIZONTAL_RULE:
            return self.on_rule()
        return self.state


def is_fence(line: str) -> bool:
    return line.strip().startswith(FENCE)


def list_depth(line: str) -> int:
    indent = len(line.expandtabs(4)) - len(line.expandtabs(4).lstrip(" "))
    return min(MAX_LIST_DEPTH, indent // 2)


def classify_line(line: str, toc_state: TocState = TocState.NORMAL) -> Block:
    """Classify one raw line; fenced code is handled by :func:`iter_blocks`.

    An opening fence seen here comes back as an empty CODE_BLOCK.
    """
    stripped = line.strip()
    if not stripped:
        return Block(BlockKind.SKIP)
    if stripped.startswith("# "):
        return Block(BlockKind.HEADING, stripped[2:].strip(), level=1)
    if stripped.startswith("## "):
        return Block(BlockKind.HEADING, stripped[3:].strip(), level=2)
    if stripped.startswith("### "):
        return Block(BlockKind.HEADING, stripped[4:].strip(), level=3)

    numbered = _NUMBERED_RE.match(stripped)
    bulleted = stripped.startswith("- ") or stripped.startswith("* ")
    depth = list_depth(line)
    if toc_state is TocState.IN_TOC:
        if numbered:
            return Block(
                BlockKind.TOC_ITEM,
                numbered.group(2),
                ordinal=int(numbered.group(1)),
                prefix=f"{numbered.group(1)}.",
                depth=depth,
            )
        if bulleted and _TOC_LINK_RE.search(stripped):
            return Block(BlockKind.TOC_ITEM, stripped[2:], prefix="•", depth=depth)
    if bulleted:
        return Block(BlockKind.BULLET_ITEM, stripped[2:], depth=depth)
    if numbered:
        return Block(
            BlockKind.NUMBERED_ITEM,
            numbered.group(2),
            ordinal=int(numbered.group(1)),
            prefix=f"{numbered.group(1)}.",
            depth=depth,
        )
    if stripped.startswith("> "):
        return Block(BlockKind.BLOCKQUOTE, stripped[2:])
    if _RULE_RE.match(stripped):
        return Block(BlockKind.HORIZONTAL_RULE)
    if stripped.startswith(FENCE):
        return Block(BlockKind.CODE_BLOCK)
    if _ANCHOR_RE.match(stripped):
        return Block(BlockKind.SKIP, stripped)
    return Block(BlockKind.PARAGRAPH, stripped)


def iter_blocks(lines: Sequence[str], tracker: TocTracker | None = None) -> Iterator[tuple[int, Block]]:
    """Yield ``(index, block)`` pairs; ``index`` is the last source line consumed.

    A fenced code block consumes every line up to its closing fence; an
    unterminated fence takes the rest of the document.
    """
    tracker = tracker or TocTracker()
    i = 0
    while i < len(lines):
        line = lines[i]
        block = classify_line(line, tracker.state)
        if block.kind is BlockKind.CODE_BLOCK:
            end = i + 1
            while end < len(lines) and not is_fence(lines[end]):
                end += 1
            if end >= len(lines):
                log.warning("Unterminated code fence at line %d; treating the rest of the document as code", i + 1)
            block = Block(BlockKind.CODE_BLOCK, lines=tuple(lines[i + 1 : end]), text=line.strip()[len(FENCE) :].strip())
            i = min(end, len(lines) - 1)
            yield i, block
            i += 1
            continue
        tracker.observe(block)
        yield i, block
        i += 1
