from __future__ import annotations

import math
import re
from typing import Any

from .models import Selection

VIDEO_SUFFIX = re.compile(r"\.mp4$", re.IGNORECASE)
BREADCRUMB_SEPARATOR = " › "
NO_CATEGORY = "カテゴリ未選択"


def display_title(name: str) -> str:
    return VIDEO_SUFFIX.sub("", name)


def format_bytes(size: Any) -> str:
    if isinstance(size, bool) or not isinstance(size, (int, float)):
        return ""
    if not math.isfinite(size):
        return ""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / 1024 / 1024:.1f} MB"
    return f"{size / 1024 / 1024 / 1024:.1f} GB"


def breadcrumb_text(selection: Selection) -> str:
    # Last crumb is the video itself, shown as the title instead
    return BREADCRUMB_SEPARATOR.join(selection.breadcrumbs[:-1]) or NO_CATEGORY


__all__ = ["breadcrumb_text", "display_title", "format_bytes"]
