"""Viewer session state: category/tree selection and completion tracking.

``LibraryViewer`` owns a single ``ViewerState`` for the lifetime of one viewer
session. Rendering code never mutates the state directly; it calls the
operations below and re-renders whatever the emitted ``ViewEvent`` names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Set

from .logging_utils import get_logger
from .models import DirectoryNode, Manifest, ManifestNode, Selection, VideoNode, ViewerState
from .progress import Progress, compute_progress
from .storage import KeyValueStore, persist_completed_videos, read_completed_videos

LOAD_FAILED_MESSAGE = "動画データの読み込みに失敗しました。ページを再読み込みしてください。"
NO_CATEGORIES_MESSAGE = "動画カテゴリが見つかりませんでした。"
EMPTY_CATEGORY_MESSAGE = "このカテゴリには動画が登録されていません。"
NO_SELECTION_MESSAGE = "動画を選択してください"

# ViewEvent kinds
CATEGORIES = "categories"
TREE = "tree"
PLAYER = "player"
PROGRESS = "progress"
LEAF = "leaf"
FOCUS_PLAYER = "focus_player"
EMPTY = "empty"


@dataclass(frozen=True)
class ViewEvent:
    kind: str
    path: Optional[str] = None


@dataclass
class VideoStats:
    total: int = 0
    paths: Set[str] = field(default_factory=set)


@dataclass
class TreeItem:
    """A node placed in the tree, with the context a click on it needs."""

    node: ManifestNode
    breadcrumbs: List[str]
    directories: List[str]
    depth: int = 0

    @property
    def is_directory(self) -> bool:
        return isinstance(self.node, DirectoryNode)

    def selection(self) -> Optional[Selection]:
        if not isinstance(self.node, VideoNode):
            return None
        return Selection(
            node=self.node,
            breadcrumbs=[*self.breadcrumbs, self.node.name],
            directories=list(self.directories),
        )


def collect_video_stats(categories: Iterable[ManifestNode]) -> VideoStats:
    stats = VideoStats()
    pending: List[ManifestNode] = list(categories)
    while pending:
        node = pending.pop()
        if isinstance(node, VideoNode):
            stats.total += 1
            if node.path:
                stats.paths.add(node.path)
        else:
            pending.extend(node.children)
    return stats


def find_first_video(
    node: Optional[ManifestNode], breadcrumbs: List[str], directories: List[str]
) -> Optional[Selection]:
    """Return the first video under ``node`` in sorted, depth-first order."""
    if node is None:
        return None
    if isinstance(node, VideoNode):
        return Selection(node=node, breadcrumbs=breadcrumbs, directories=directories)
    # Children are pushed reversed so the earliest sibling is visited first
    pending = [(child, breadcrumbs, directories) for child in reversed(node.children)]
    while pending:
        child, crumbs, dirs = pending.pop()
        if isinstance(child, VideoNode):
            return Selection(node=child, breadcrumbs=[*crumbs, child.name], directories=list(dirs))
        next_crumbs = [*crumbs, child.name]
        next_dirs = [*dirs, child.path]
        pending.extend((c, next_crumbs, next_dirs) for c in reversed(child.children))
    return None


def root_items(category: ManifestNode) -> List[TreeItem]:
    if isinstance(category, VideoNode):
        # A video at the scan root is its own category with a single leaf
        return [TreeItem(category, [], [], 0)]
    items = []
    for child in category.children:
        if isinstance(child, DirectoryNode):
            items.append(TreeItem(child, [category.name, child.name], [], 0))
        else:
            items.append(TreeItem(child, [category.name], [], 0))
    return items


def child_items(item: TreeItem) -> List[TreeItem]:
    if not isinstance(item.node, DirectoryNode):
        return []
    next_dirs = [*item.directories, item.node.path]
    items = []
    for child in item.node.children:
        if isinstance(child, DirectoryNode):
            items.append(
                TreeItem(child, [*item.breadcrumbs, child.name], next_dirs, item.depth + 1)
            )
        else:
            items.append(TreeItem(child, item.breadcrumbs, next_dirs, item.depth + 1))
    return items


class LibraryViewer:
    def __init__(self, store: KeyValueStore):
        self.store = store
        self.state = ViewerState()
        self.progress: Progress = compute_progress(0, 0)
        self.message: Optional[str] = None
        self._listeners: List[Callable[[ViewEvent], None]] = []
        self._log = get_logger()
        # Read once per session; every later change is written through
        self.state.completed_videos, self._stored_list_clean = read_completed_videos(store)

    # --- Listeners -------------------------------------------------
    def on_change(self, callback: Callable[[ViewEvent], None]) -> None:
        self._listeners.append(callback)

    def _emit(self, kind: str, path: Optional[str] = None) -> None:
        event = ViewEvent(kind, path)
        for callback in list(self._listeners):
            callback(event)

    # --- Loading ---------------------------------------------------
    def load(self, manifest: Manifest) -> None:
        state = self.state
        state.categories = list(manifest.categories)
        stats = collect_video_stats(state.categories)
        state.total_videos = stats.total
        state.valid_video_paths = stats.paths
        self._prune_completed_videos()
        self._update_progress()
        self._log.info(
            f"Loaded {len(state.categories)} categories ({stats.total} videos)"
        )
        if not state.categories:
            self._show_empty(NO_CATEGORIES_MESSAGE)
        else:
            self.select_category(0)

    def fail(self, message: str = LOAD_FAILED_MESSAGE) -> None:
        self._show_empty(message)

    def _show_empty(self, message: str) -> None:
        self.message = message
        self._emit(EMPTY)

    def _persist(self) -> bool:
        return persist_completed_videos(self.store, self.state.completed_videos)

    def _prune_completed_videos(self) -> None:
        state = self.state
        kept = {p for p in state.completed_videos if p in state.valid_video_paths}
        stale = len(state.completed_videos) - len(kept)
        if stale or not self._stored_list_clean:
            if stale:
                self._log.info(f"Dropping {stale} stale completion entries")
            state.completed_videos = kept
            self._stored_list_clean = self._persist()

    def _update_progress(self) -> None:
        self.progress = compute_progress(
            len(self.state.completed_videos), self.state.total_videos
        )
        self._emit(PROGRESS)

    # --- Selection -------------------------------------------------
    @property
    def current_category(self) -> Optional[ManifestNode]:
        index = self.state.selected_category_index
        if 0 <= index < len(self.state.categories):
            return self.state.categories[index]
        return None

    def select_category(self, index: int) -> None:
        state = self.state
        if index < 0 or index >= len(state.categories):
            return
        category = state.categories[index]
        selection = find_first_video(category, [category.name], [])
        state.selected_category_index = index
        state.selected_video = selection
        state.open_paths = {p for p in (selection.directories if selection else []) if p}
        self.message = None
        self._emit(CATEGORIES)
        self._emit(TREE)
        self._emit(PLAYER)

    def apply_video_selection(
        self, selection: Optional[Selection], focus_player: bool = False
    ) -> None:
        if selection is None:
            return
        self.state.open_paths.update(p for p in selection.directories if p)
        self.state.selected_video = selection
        self._emit(TREE)
        self._emit(PLAYER)
        if focus_player:
            self._emit(FOCUS_PLAYER)

    def is_directory_open(self, path: str, depth: int) -> bool:
        return depth < 1 or path in self.state.open_paths

    def set_directory_open(self, path: str, is_open: bool) -> None:
        if not path:
            return
        if is_open:
            self.state.open_paths.add(path)
        else:
            self.state.open_paths.discard(path)

    def is_playing(self, path: str) -> bool:
        selected = self.state.selected_video
        return selected is not None and selected.node.path == path

    # --- Completion ------------------------------------------------
    def is_completed(self, path: str) -> bool:
        return path in self.state.completed_videos

    def toggle_video_completion(self, path: Optional[str], is_completed: bool) -> bool:
        """Mark a video watched or unwatched. Unknown paths are ignored."""
        if not path or path not in self.state.valid_video_paths:
            return False
        if is_completed:
            self.state.completed_videos.add(path)
        else:
            self.state.completed_videos.discard(path)
        if self._persist():
            self._stored_list_clean = True
        self._update_progress()
        self._emit(LEAF, path)
        return True


__all__ = [
    "LibraryViewer",
    "TreeItem",
    "VideoStats",
    "ViewEvent",
    "child_items",
    "collect_video_stats",
    "find_first_video",
    "root_items",
]
