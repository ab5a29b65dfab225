from __future__ import annotations

import re
from typing import Any

from .logging_utils import get_logger

log = get_logger(__name__)

URL_RE = re.compile(
    r"https?://[^\s()<>]+(?:\([^\s()<>]+\)|[^,\s`!()\[\]{};:'\".,<>?«»“”‘’])"
)
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]*)\)")
# Inline delimiters; \x00 marks text already claimed by an earlier pass.
CODE_RE = re.compile(r"`([^`\x00]+)`")
BOLD_RE = re.compile(r"\*\*([^*\x00]+)\*\*|__([^_\x00]+)__")
ITALIC_RE = re.compile(r"_([^_\x00]+)_")
_TOKEN_SPLIT_RE = re.compile(r"(\s+)")

# Stand-ins for characters the active core font encoding cannot represent.
_FALLBACKS = {
    "\u2022": "*",
    "\u2013": "-",
    "\u2014": "--",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": "\"",
    "\u201d": "\"",
    "\u2026": "...",
    "\u00a0": " ",
    "\u2007": " ",
    "\u2009": " ",
    "\u200b": "",
    "\u2010": "-",
    "\u2011": "-",
    "\u2012": "-",
    "\u2015": "--",
    "\u2212": "-",
    "\u2190": "<-",
    "\u2192": "->",
    "\u2194": "<->",
    "\u21d0": "<=",
    "\u21d2": "=>",
    "\u21d4": "<=>",
    "\u2713": "v",
    "\u2714": "v",
    "\u2717": "x",
}


def coerce_text(content: Any, *, kind: str = "block") -> str:
    if isinstance(content, str):
        return content
    if content is None:
        log.warning("Missing %s content; rendering empty text", kind)
        return ""
    if isinstance(content, (list, tuple)):
        log.warning("Expected text for %s, got %s; joining items", kind, type(content).__name__)
        return " ".join(coerce_text(item, kind=kind) for item in content)
    log.warning("Expected text for %s, got %s; coercing", kind, type(content).__name__)
    try:
        return str(content)
    except Exception:
        log.exception("Could not coerce %s content; rendering placeholder", kind)
        return "?"


def has_url(text: str) -> bool:
    return bool(text) and URL_RE.search(text) is not None


def sanitize_pdf_text(text: str, *, encoding: str | None = "windows-1252") -> str:
    """Make ``text`` drawable with a core font using ``encoding``.

    ``encoding=None`` means a Unicode (TTF) font is active and the text is
    returned unchanged.
    """
    if not text or encoding is None:
        return text
    try:
        text.encode(encoding)
        return text
    except UnicodeEncodeError:
        pass
    except LookupError:
        log.warning("Unknown core font encoding %r; falling back to latin-1", encoding)
        encoding = "latin-1"
    out: list[str] = []
    for ch in text:
        try:
            ch.encode(encoding)
        except UnicodeEncodeError:
            fallback = _FALLBACKS.get(ch, "?")
            try:
                fallback.encode(encoding)
            except UnicodeEncodeError:
                fallback = "?"
            out.append(fallback)
            continue
        out.append(ch)
    return "".join(out)


def split_long_tokens(text: str, max_len: int = 60) -> str:
    parts = _TOKEN_SPLIT_RE.split(text)
    out: list[str] = []
    for part in parts:
        if not part or part.isspace() or len(part) <= max_len:
            out.append(part)
            continue
        if URL_RE.fullmatch(part):
            out.append(part)
            continue
        chunks = [part[i : i + max_len] for i in range(0, len(part), max_len)]
        out.append(" ".join(chunks))
    return "".join(out)


def _link_label(match: re.Match[str]) -> str:
    label, target = match.group(1), match.group(2).strip()
    if not target or target.startswith("#"):
        return label
    return f"{label} ({target})"


def strip_inline_markers(text: str) -> str:
    """Flatten inline markdown for text drawn in a single unstyled call."""
    text = _LINK_RE.sub(_link_label, text)
    text = CODE_RE.sub(lambda m: m.group(1), text)
    text = BOLD_RE.sub(lambda m: m.group(1) or m.group(2), text)
    text = ITALIC_RE.sub(lambda m: m.group(1), text)
    return text
