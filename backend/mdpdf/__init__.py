from __future__ import annotations

from .document import RenderInputError, create_surface, render_cover_page, render_markdown_document
from .front_matter import split_front_matter
from .theme import DEFAULT_THEME, Theme, merge_theme

__all__ = [
    "DEFAULT_THEME",
    "RenderInputError",
    "Theme",
    "create_surface",
    "merge_theme",
    "render_cover_page",
    "render_markdown_document",
    "split_front_matter",
]
