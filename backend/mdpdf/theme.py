from __future__ import annotations

import functools
import re
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .logging_utils import get_logger

log = get_logger(__name__)

_HEX_COLOR_RE = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
_FONT_STYLE_SUFFIXES = {
    "bold": "B",
    "oblique": "I",
    "italic": "I",
    "boldoblique": "BI",
    "bolditalic": "BI",
    "roman": "",
}
_FONT_FAMILY_ALIASES = {
    "times-roman": "Times",
    "times": "Times",
    "helvetica": "Helvetica",
    "arial": "Helvetica",
    "courier": "Courier",
    "symbol": "Symbol",
    "zapfdingbats": "ZapfDingbats",
}
_CORE_FAMILIES = {"courier", "helvetica", "times", "symbol", "zapfdingbats"}


class _ThemeSection(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)


class ThemeFonts(_ThemeSection):
    heading: str = "Helvetica-Bold"
    body: str = "Helvetica"
    italic: str = "Helvetica-Oblique"
    bold: str = "Helvetica-Bold"
    code: str = "Courier"


class ThemeFontSize(_ThemeSection):
    h1: float = Field(default=24, gt=0)
    h2: float = Field(default=20, gt=0)
    h3: float = Field(default=16, gt=0)
    body: float = Field(default=12, gt=0)
    code: float = Field(default=10, gt=0)
    footer: float = Field(default=8, gt=0)


class ThemeColors(_ThemeSection):
    text: str = "#000000"
    heading: str = "#000000"
    blockquote: str = "#666666"
    code_background: str = Field(default="#f4f4f4", alias="codeBackground")
    footer: str = "#666666"
    link: str = "#0000EE"


class ThemeMargins(_ThemeSection):
    top: float = Field(default=72, ge=0)
    bottom: float = Field(default=72, ge=0)
    left: float = Field(default=72, ge=0)
    right: float = Field(default=72, ge=0)


class ThemeSpacing(_ThemeSection):
    paragraph: float = Field(default=0.8, ge=0)
    heading1: float = Field(default=1, ge=0)
    heading2: float = Field(default=0.8, ge=0)
    heading3: float = Field(default=0.7, ge=0)
    list: float = Field(default=0.8, ge=0)
    blockquote: float = Field(default=0.8, ge=0)
    code_block: float = Field(default=1, ge=0, alias="codeBlock")
    line_gap: float = Field(default=4, ge=0, alias="lineGap")


class Theme(_ThemeSection):
    fonts: ThemeFonts = Field(default_factory=ThemeFonts)
    font_size: ThemeFontSize = Field(default_factory=ThemeFontSize, alias="fontSize")
    colors: ThemeColors = Field(default_factory=ThemeColors)
    margins: ThemeMargins = Field(default_factory=ThemeMargins)
    spacing: ThemeSpacing = Field(default_factory=ThemeSpacing)


DEFAULT_THEME = Theme()

_SECTIONS: dict[str, tuple[str, type[_ThemeSection]]] = {
    "fonts": ("fonts", ThemeFonts),
    "font_size": ("font_size", ThemeFontSize),
    "fontSize": ("font_size", ThemeFontSize),
    "colors": ("colors", ThemeColors),
    "margins": ("margins", ThemeMargins),
    "spacing": ("spacing", ThemeSpacing),
}


def _canonical_keys(model: type[_ThemeSection], values: Mapping[str, Any]) -> dict[str, Any]:
    aliases = {f.alias: name for name, f in model.model_fields.items() if f.alias}
    return {aliases.get(str(k), str(k)): v for k, v in values.items()}


def _merge_section(section: str, model: type[_ThemeSection], base: _ThemeSection, override: Any) -> _ThemeSection:
    if override is None:
        return base
    if isinstance(override, BaseModel):
        override = override.model_dump(exclude_unset=True)
    if not isinstance(override, Mapping):
        log.warning("Ignoring theme section %r: expected a mapping, got %s", section, type(override).__name__)
        return base
    merged = base.model_dump()
    merged.update(_canonical_keys(model, override))
    defaults = model().model_dump()
    names = {f.alias: name for name, f in model.model_fields.items() if f.alias}
    for _ in range(len(merged) + 1):
        try:
            return model.model_validate(merged)
        except ValidationError as e:
            for err in e.errors():
                loc = err.get("loc") or ()
                if not loc:
                    continue
                key = names.get(str(loc[0]), str(loc[0]))
                log.warning(
                    "Invalid theme value %s.%s=%r (%s); using default",
                    section,
                    key,
                    merged.get(key),
                    err.get("msg"),
                )
                if key in defaults:
                    merged[key] = defaults[key]
                else:
                    merged.pop(key, None)
    return model.model_validate(defaults)


def merge_theme(partial: Theme | Mapping[str, Any] | None = None) -> Theme:
    """Merge a partial theme over the defaults, one category at a time.

    Each of fonts/font_size/colors/margins/spacing is merged independently, so
    a partial theme only needs the leaf keys it wants to change. Unknown keys
    pass through untouched; values that cannot be coerced fall back to the
    default with a warning.
    """
    if partial is None:
        return DEFAULT_THEME
    if isinstance(partial, Theme):
        partial = partial.model_dump(exclude_unset=True)
    if not isinstance(partial, Mapping):
        log.warning("Ignoring theme of type %s; using defaults", type(partial).__name__)
        return DEFAULT_THEME

    sections: dict[str, _ThemeSection] = {}
    extras: dict[str, Any] = {}
    for key, value in partial.items():
        if key in _SECTIONS:
            field, model = _SECTIONS[key]
            base = sections.get(field) or getattr(DEFAULT_THEME, field)
            sections[field] = _merge_section(field, model, base, value)
        else:
            extras[str(key)] = value
    return Theme.model_validate({**extras, **sections})


def hex_to_rgb(color: str, default: tuple[int, int, int] = (0, 0, 0)) -> tuple[int, int, int]:
    match = _HEX_COLOR_RE.match(str(color or "").strip())
    if not match:
        log.warning("Unrecognised color %r; using %s", color, default)
        return default
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def _fallback_family(family: str) -> str:
    key = family.lower()
    if "mono" in key or "courier" in key:
        return "Courier"
    if "serif" in key and "sans" not in key:
        return "Times"
    return "Helvetica"


@functools.lru_cache(maxsize=64)
def _warn_unknown_font(identifier: str, fallback: str) -> None:
    log.warning("Font %r is not available; using %s", identifier, fallback)


def resolve_font(
    identifier: str | None,
    *,
    default: str = "Helvetica",
    registered: Iterable[str] = (),
) -> tuple[str, str]:
    """Map a PostScript-style font name ("Helvetica-Bold") to an fpdf family and style.

    Families that are neither core fonts nor in ``registered`` (fonts added to
    the surface) fall back to the closest core family.
    """
    if not identifier:
        return default, ""
    raw = str(identifier).strip()
    key = raw.lower()
    if key in _FONT_FAMILY_ALIASES:
        return _FONT_FAMILY_ALIASES[key], ""
    family, _, suffix = raw.partition("-")
    style = _FONT_STYLE_SUFFIXES.get(suffix.lower().replace("-", ""), "")
    family = _FONT_FAMILY_ALIASES.get(family.lower(), family)
    known = {str(name).lower() for name in registered}
    if family.lower() in _CORE_FAMILIES or family.lower() in known or f"{family}{style}".lower() in known:
        return family, style
    fallback = _fallback_family(family)
    _warn_unknown_font(raw, fallback)
    return fallback, style
