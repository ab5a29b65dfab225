from __future__ import annotations

import os


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


LOG_LEVEL = os.getenv("MDPDF_LOG_LEVEL", "INFO").upper()

DEBUG_LAYOUT = _env_flag("MDPDF_DEBUG_LAYOUT")

PAGE_FORMAT = os.getenv("MDPDF_PAGE_FORMAT", "letter")

CORE_FONTS_ENCODING = os.getenv("MDPDF_CORE_FONTS_ENCODING", "windows-1252")

CREATOR = os.getenv("MDPDF_CREATOR", "mdpdf")
