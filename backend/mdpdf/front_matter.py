from __future__ import annotations

import re

from .logging_utils import get_logger

log = get_logger(__name__)

_KEY_RE = re.compile(r"^([A-Za-z0-9_-]+)\s*:\s*(.*)$")
_DASH_FENCE = "---"
_YAML_FENCE_RE = re.compile(r"^```ya?ml\s*$", re.IGNORECASE)
_CODE_FENCE = "```"

Metadata = dict[str, str | list[str]]


def _strip_quotes(value: str) -> str:
    text = str(value or "").strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        text = text[1:-1]
    return text.strip()


def _split_block(markdown: str) -> tuple[str | None, str]:
    src = str(markdown or "")
    if src.startswith("\ufeff"):
        src = src.lstrip("\ufeff")
    lines = src.splitlines()
    if not lines:
        return None, markdown
    first = lines[0].strip()
    if first == _DASH_FENCE:
        closing = _DASH_FENCE
    elif _YAML_FENCE_RE.match(first):
        closing = _CODE_FENCE
    else:
        return None, markdown
    for idx in range(1, len(lines)):
        if lines[idx].strip() == closing:
            front = "\n".join(lines[1:idx])
            body = "\n".join(lines[idx + 1 :]).lstrip("\n")
            return front, body
    log.warning("Front matter block is not closed; leaving it in the document body")
    return None, markdown


def parse_front_matter(front: str) -> Metadata:
    """Parse flat ``key: value`` lines; comma-separated values become lists."""
    meta: Metadata = {}
    for raw in str(front or "").splitlines():
        if not raw.strip() or raw.lstrip().startswith("#"):
            continue
        m = _KEY_RE.match(raw.strip())
        if not m:
            log.debug("Skipping front matter line %r", raw)
            continue
        key = m.group(1).strip()
        value = m.group(2).strip()
        if value.startswith("[") and value.endswith("]"):
            value = value[1:-1]
            meta[key] = [_strip_quotes(v) for v in value.split(",") if _strip_quotes(v)]
        elif "," in value and not (value[:1] in ("'", '"') and value[-1:] == value[:1]):
            meta[key] = [_strip_quotes(v) for v in value.split(",") if _strip_quotes(v)]
        else:
            meta[key] = _strip_quotes(value)
    return meta


def split_front_matter(markdown: str) -> tuple[Metadata, str]:
    """Split a leading metadata block off ``markdown``.

    Accepts a ``---`` delimited block or a fenced ```` ```yaml ```` block at the
    very start of the document. Returns ``({}, markdown)`` when there is none.
    """
    front, body = _split_block(markdown)
    if front is None:
        return {}, markdown
    return parse_front_matter(front), body
