from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

from .models import Manifest, ManifestFormatError

MANIFEST_FILENAME = "videos.json"
INDENT = 2


class ManifestLoadError(RuntimeError):
    pass


def is_remote(location: str) -> bool:
    return urllib.parse.urlsplit(location).scheme in ("http", "https")


def iter_json(value: Any, indent: int = INDENT) -> Iterator[str]:
    """Yield the text of ``json.dumps(value, indent=indent, ensure_ascii=False)``.

    Containers are walked with an explicit stack, so arbitrarily deep
    directory trees serialize without hitting the recursion limit.
    """
    stack: List[Tuple[Iterator[Tuple[Optional[str], Any]], str]] = []

    def enter(item: Any) -> str:
        if isinstance(item, dict) and item:
            stack.append((iter(item.items()), "}"))
            return "{"
        if isinstance(item, list) and item:
            stack.append((iter((None, v) for v in item), "]"))
            return "["
        return json.dumps(item, ensure_ascii=False)

    yield enter(value)
    first = True
    while stack:
        entries, closer = stack[-1]
        depth = len(stack)
        entry = next(entries, None)
        if entry is None:
            stack.pop()
            first = False
            yield "\n" + " " * (indent * len(stack)) + closer
            continue
        key, item = entry
        head = ("\n" if first else ",\n") + " " * (indent * depth)
        if key is not None:
            head += json.dumps(key, ensure_ascii=False) + ": "
        opened = enter(item)
        # A freshly opened container starts with its first entry
        first = len(stack) > depth
        yield head + opened


def write_manifest(manifest: Manifest, output_file: Path) -> Path:
    # Serialize before touching the file so a failure never leaves a partial manifest
    payload = "".join(iter_json(manifest.to_dict()))
    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(payload, encoding="utf-8")
    return output_file


def resolve_manifest_location(site: str, manifest_url: str) -> str:
    if is_remote(site):
        base = site if site.endswith("/") else site + "/"
        return urllib.parse.urljoin(base, manifest_url)
    return str(Path(site) / manifest_url)


def _read_remote(location: str, timeout: int) -> bytes:
    try:
        with urllib.request.urlopen(location, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise ManifestLoadError(f"Failed to fetch video data (HTTP {status})")
            return response.read()
    except urllib.error.HTTPError as e:
        raise ManifestLoadError(f"Failed to fetch video data (HTTP {e.code})") from e
    except urllib.error.URLError as e:
        raise ManifestLoadError(f"Failed to fetch video data: {e.reason}") from e
    except http.client.HTTPException as e:  # truncated bodies, bad status lines
        raise ManifestLoadError(f"Failed to fetch video data: {e}") from e
    except (OSError, ValueError) as e:  # timeouts, resets, malformed URLs
        raise ManifestLoadError(f"Failed to fetch video data: {e}") from e


def _read_local(location: str) -> bytes:
    try:
        return Path(location).read_bytes()
    except OSError as e:
        raise ManifestLoadError(f"Failed to read video data: {e}") from e


def load_manifest(location: str, timeout: int = 10) -> Manifest:
    """Fetch and parse the manifest from a URL or a local file. No retry."""
    raw = _read_remote(location, timeout) if is_remote(location) else _read_local(location)
    try:
        return Manifest.from_dict(json.loads(raw.decode("utf-8")))
    except (ManifestFormatError, TypeError, ValueError) as e:
        raise ManifestLoadError(f"Malformed video data: {e}") from e
    except RecursionError as e:
        raise ManifestLoadError("Video data is nested too deeply to parse") from e


__all__ = [
    "MANIFEST_FILENAME",
    "ManifestLoadError",
    "is_remote",
    "iter_json",
    "load_manifest",
    "resolve_manifest_location",
    "write_manifest",
]
