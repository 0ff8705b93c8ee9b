"""Resolve manifest paths to fetchable video sources.

When the site is published on GitHub Pages the videos are too large to be
served from there, so sources are streamed through the jsDelivr CDN from the
same repository instead.
"""

from __future__ import annotations

import re
import urllib.parse
from pathlib import Path
from typing import Optional

from .config import SCAN_ROOT_LABEL
from .manifest import is_remote

PAGES_HOST = re.compile(r"^([^.]+)\.github\.io$", re.IGNORECASE)
CDN_TEMPLATE = "https://cdn.jsdelivr.net/gh/{account}/{repository}@main/"
# Characters encodeURIComponent leaves alone
URI_COMPONENT_SAFE = "!'()*-._~"


def ensure_trailing_slash(value: str) -> str:
    if not value:
        return ""
    return value if value.endswith("/") else value + "/"


def compute_video_path_prefix(site: str, override: Optional[str] = None) -> str:
    if isinstance(override, str) and override.strip():
        return ensure_trailing_slash(override.strip())
    if not is_remote(site):
        return ""
    parts = urllib.parse.urlsplit(site)
    match = PAGES_HOST.match(parts.hostname or "")
    if not match:
        return ""
    account = match.group(1)
    segments = [s for s in parts.path.split("/") if s]
    repository = segments[0] if segments else f"{account}.github.io"
    return ensure_trailing_slash(CDN_TEMPLATE.format(account=account, repository=repository))


def encode_path(path: str) -> str:
    return "/".join(urllib.parse.quote(seg, safe=URI_COMPONENT_SAFE) for seg in path.split("/"))


def resolve_video_src(path: str, prefix: str = "", label: str = SCAN_ROOT_LABEL) -> str:
    if not path:
        return ""
    encoded = encode_path(path)
    if path.startswith(f"{label}/"):
        return f"{prefix}{encoded}"
    return encoded


def resolve_playable_source(path: str, site: str, prefix: str = "", label: str = SCAN_ROOT_LABEL) -> str:
    """Source to hand to a media player.

    Remote sites (or any configured prefix) yield a URL. A local site maps the
    manifest path onto the checkout next to it, e.g. ``site/`` and ``videos/``
    siblings, falling back to the encoded relative source.
    """
    src = resolve_video_src(path, prefix, label)
    if not path or prefix:
        return src
    if is_remote(site):
        return urllib.parse.urljoin(ensure_trailing_slash(site), src)
    candidate = Path(site).resolve().parent / Path(*path.split("/"))
    if candidate.exists():
        return str(candidate)
    return src


__all__ = [
    "compute_video_path_prefix",
    "encode_path",
    "ensure_trailing_slash",
    "resolve_playable_source",
    "resolve_video_src",
]
