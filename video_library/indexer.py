"""Directory walk producing the video manifest tree."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

from .config import SCAN_ROOT_LABEL
from .logging_utils import get_logger
from .models import DirectoryNode, Manifest, VideoNode
from .ordering import sort_entries

VIDEO_EXTS = {".mp4"}


class IndexerError(OSError):
    pass


def _identifier(root: Path, full_path: Path, label: str) -> str:
    relative = full_path.relative_to(root).as_posix()
    if relative in ("", "."):
        return label
    return f"{label}/{relative}"


def _ensure_root(root: Path) -> None:
    if not root.exists():
        raise IndexerError(f"Videos directory not found: {root}")
    if not root.is_dir():
        raise IndexerError(f"'{root.name}' is not a directory: {root}")


def build_tree(root: Path, label: str = SCAN_ROOT_LABEL) -> DirectoryNode:
    """Walk ``root`` and return its directory node with sorted, counted children.

    The walk keeps an explicit worklist instead of recursing. Each directory is
    pushed twice: once to list its entries, and once more (beneath its
    subdirectories) to sort and total its children after they are complete.
    Symlinked directories are never followed and each real directory is listed
    at most once.
    """
    log = get_logger()
    root = Path(root)
    _ensure_root(root)
    root = root.resolve()

    root_node = DirectoryNode(name=root.name, path=label)
    pending: List[Tuple[Path, DirectoryNode, bool]] = [(root, root_node, False)]
    visited: set[str] = set()
    dropped = 0

    while pending:
        dir_path, node, listed = pending.pop()
        if listed:
            node.children = sort_entries(node.children)
            node.video_count = sum(child.video_count for child in node.children)
            continue

        real = os.path.realpath(dir_path)
        if real in visited:
            log.debug(f"Skipping already visited directory: {dir_path}")
            continue
        visited.add(real)
        pending.append((dir_path, node, True))

        with os.scandir(dir_path) as entries:
            for entry in entries:
                if entry.name.startswith("."):
                    continue
                entry_path = Path(entry.path)
                if entry.is_dir(follow_symlinks=False):
                    child = DirectoryNode(
                        name=entry.name, path=_identifier(root, entry_path, label)
                    )
                    node.children.append(child)
                    pending.append((entry_path, child, False))
                elif entry.is_file() and entry_path.suffix.lower() in VIDEO_EXTS:
                    node.children.append(
                        VideoNode(
                            name=entry.name,
                            path=_identifier(root, entry_path, label),
                            size=entry.stat().st_size,
                        )
                    )
                else:
                    dropped += 1
                    log.debug(f"Ignoring non-video entry: {entry_path}")

    log.debug(f"Walked {len(visited)} directories ({dropped} entries ignored)")
    return root_node


def build_manifest(
    root: Path, label: str = SCAN_ROOT_LABEL, now: Optional[datetime] = None
) -> Manifest:
    root_node = build_tree(root, label)
    if not root_node.children:
        raise IndexerError(f"Could not build video data: no entries under {root}")
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    generated = stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    get_logger().info(
        f"Indexed {root_node.video_count} videos in {len(root_node.children)} categories"
    )
    return Manifest(generated_at=generated, categories=root_node.children)


__all__ = ["IndexerError", "VIDEO_EXTS", "build_manifest", "build_tree"]
