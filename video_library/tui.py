# tui.py

import logging
import threading
from logging import Handler, LogRecord
from typing import Dict, Optional

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import (
    Footer,
    Header,
    Label,
    ListItem,
    ListView,
    ProgressBar,
    RichLog,
    Static,
    Tree,
)
from textual.widgets.tree import TreeNode

from .config import AppConfig
from .logging_utils import get_logger
from .manifest import ManifestLoadError, load_manifest, resolve_manifest_location
from .models import ManifestNode
from .naming import breadcrumb_text, display_title, format_bytes
from .player import PlayerError, launch_player
from .sources import compute_video_path_prefix, resolve_playable_source, resolve_video_src
from .state import (
    CATEGORIES,
    EMPTY,
    EMPTY_CATEGORY_MESSAGE,
    FOCUS_PLAYER,
    LEAF,
    NO_SELECTION_MESSAGE,
    PLAYER,
    PROGRESS,
    TREE,
    LibraryViewer,
    TreeItem,
    ViewEvent,
    child_items,
    root_items,
)
from .storage import JsonFileStore


class TuiLogHandler(Handler):
    """A logging handler that sends records to a Textual RichLog widget.

    Records may come from the manifest loader thread or from the UI thread
    itself; the former are marshalled through ``call_from_thread``.
    """

    def __init__(self, log_widget: RichLog, app: App):
        super().__init__()
        self._log_widget = log_widget
        self._app = app
        self._lock = threading.Lock()

    def emit(self, record: LogRecord):
        with self._lock:
            try:
                raw = record.getMessage()
                if record.levelno >= logging.ERROR:
                    prefix = "[bold red]ERROR[/bold red] "
                elif record.levelno >= logging.WARNING:
                    prefix = "[yellow]WARN[/yellow] "
                else:
                    prefix = ""
                line = f"{prefix}{escape(raw)}"
                try:
                    self._app.call_from_thread(self._log_widget.write, line)
                except RuntimeError:
                    # Already on the app thread
                    self._log_widget.write(line)
            except Exception:
                self.handleError(record)


def leaf_label(item: TreeItem, completed: bool, playing: bool) -> Text:
    label = Text()
    label.append("✔ " if completed else "□ ", style="green" if completed else "dim")
    label.append(display_title(item.node.name), style="bold" if playing else "")
    if playing:
        label.append(" ▶", style="cyan")
    label.append(f"  {format_bytes(item.node.size)}", style="dim")
    return label


def directory_label(item: TreeItem) -> Text:
    return Text.assemble(item.node.name, (f" ({item.node.video_count}本)", "dim"))


def category_heading(category: ManifestNode) -> Text:
    return Text.assemble(
        (category.name, "bold"), (f"  {category.video_count}本の動画", "dim")
    )


class LibraryApp(App):
    """Browse the video library and track watched videos."""

    CSS_PATH = "tui.css"
    TITLE = "Video Library"
    BINDINGS = [
        ("c", "toggle_complete", "Mark watched"),
        ("p", "play", "Play"),
        ("d", "toggle_dark", "Toggle dark mode"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, config: Optional[AppConfig] = None, viewer: Optional[LibraryViewer] = None):
        super().__init__()
        self.app_config = config or AppConfig()
        self.viewer = viewer or LibraryViewer(JsonFileStore(self.app_config.storage_path))
        self.viewer.on_change(self.handle_view_event)
        self.video_prefix = compute_video_path_prefix(
            self.app_config.site, self.app_config.video_path_prefix
        )
        self._leaves: Dict[str, TreeNode] = {}
        self._library_log = get_logger()

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main_layout"):
            with Vertical(id="sidebar"):
                yield Static("カテゴリ", classes="label")
                yield ListView(id="category_list")
                with Container(id="progress_card"):
                    yield ProgressBar(id="progress_bar", total=100, show_eta=False)
                    yield Static("0%", id="progress_text")
                    yield Static("0 / 0 本", id="progress_count")
            with Vertical(id="content"):
                with Container(id="player_card"):
                    yield Static(NO_SELECTION_MESSAGE, id="video_title")
                    yield Static("", id="video_breadcrumb")
                    yield Static("", id="video_meta")
                    yield Static("", id="video_src")
                yield Static("", id="category_heading")
                yield Static("", id="tree_message")
                yield Tree("", id="tree")
                yield RichLog(id="log_view", markup=True)
        yield Footer()

    def on_mount(self) -> None:
        log_widget = self.query_one(RichLog)
        root_logger = get_logger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        root_logger.addHandler(TuiLogHandler(log_widget, self))

        tree = self.query_one(Tree)
        tree.show_root = False
        tree.display = False
        self.render_progress()
        self.load_library()

    # --- Loading ---------------------------------------------------
    def load_library(self) -> None:
        """Fetch the manifest off the UI thread; the only suspension point."""
        location = resolve_manifest_location(self.app_config.site, self.app_config.manifest_url)

        def worker():
            self._library_log.info(f"Loading video data from {location}")
            try:
                manifest = load_manifest(location, self.app_config.timeout_seconds)
            except ManifestLoadError as e:
                self._library_log.error(str(e))
                self.call_from_thread(self.viewer.fail)
                return
            except Exception as e:
                self._library_log.error(f"An unexpected error occurred while loading: {e!r}")
                self.call_from_thread(self.viewer.fail)
                return
            self.call_from_thread(self.viewer.load, manifest)

        thread = threading.Thread(target=worker, daemon=True)
        thread.start()

    # --- Rendering -------------------------------------------------
    def handle_view_event(self, event: ViewEvent) -> None:
        if event.kind == CATEGORIES:
            self.render_categories()
        elif event.kind == TREE:
            self.render_tree()
        elif event.kind == PLAYER:
            self.render_player()
        elif event.kind == PROGRESS:
            self.render_progress()
        elif event.kind == LEAF and event.path:
            self.render_leaf(event.path)
        elif event.kind == FOCUS_PLAYER:
            self.query_one("#player_card").scroll_visible()
        elif event.kind == EMPTY:
            self.render_empty(self.viewer.message or "")

    def render_empty(self, message: str) -> None:
        self.query_one(Tree).display = False
        msg = self.query_one("#tree_message", Static)
        msg.update(Text(message))
        msg.display = True

    def render_categories(self) -> None:
        state = self.viewer.state
        list_view = self.query_one("#category_list", ListView)
        if len(list_view.children) != len(state.categories):
            list_view.clear()
            for category in state.categories:
                list_view.append(
                    ListItem(Label(Text(f"{category.name}  {category.video_count}本")))
                )
        for index, item in enumerate(list_view.children):
            item.set_class(index == state.selected_category_index, "is-active")
        list_view.index = state.selected_category_index

    def render_tree(self) -> None:
        category = self.viewer.current_category
        if category is None:
            self.render_empty("カテゴリを選択してください。")
            return
        tree = self.query_one(Tree)
        self.query_one("#category_heading", Static).update(category_heading(category))
        tree.reset("")
        self._leaves = {}
        items = root_items(category)
        if not items:
            self.render_empty(EMPTY_CATEGORY_MESSAGE)
            return
        self.query_one("#tree_message", Static).display = False
        tree.display = True
        playing_node = None
        pending = [(tree.root, item) for item in items]
        # Nodes are appended in list order so siblings keep manifest order
        while pending:
            parent, item = pending.pop(0)
            if item.is_directory:
                node = parent.add(
                    directory_label(item),
                    data=item,
                    expand=self.viewer.is_directory_open(item.node.path, item.depth),
                )
                pending[0:0] = [(node, child) for child in child_items(item)]
            else:
                playing = self.viewer.is_playing(item.node.path)
                node = parent.add_leaf(
                    leaf_label(item, self.viewer.is_completed(item.node.path), playing),
                    data=item,
                )
                self._leaves[item.node.path] = node
                if playing:
                    playing_node = node
        tree.root.expand()
        if playing_node is not None:
            self.call_after_refresh(tree.move_cursor, playing_node)

    def render_leaf(self, path: str) -> None:
        node = self._leaves.get(path)
        if node is None or node.data is None:
            return
        node.set_label(
            leaf_label(node.data, self.viewer.is_completed(path), self.viewer.is_playing(path))
        )

    def render_player(self) -> None:
        selection = self.viewer.state.selected_video
        title = self.query_one("#video_title", Static)
        crumb = self.query_one("#video_breadcrumb", Static)
        meta = self.query_one("#video_meta", Static)
        src = self.query_one("#video_src", Static)
        if selection is None:
            title.update(NO_SELECTION_MESSAGE)
            crumb.update("")
            meta.update("")
            src.update("")
            return
        title.update(Text(display_title(selection.node.name), style="bold"))
        crumb.update(Text(breadcrumb_text(selection)))
        meta.update(f"ファイルサイズ: {format_bytes(selection.node.size)}")
        src.update(Text(resolve_video_src(selection.node.path, self.video_prefix), style="dim"))

    def render_progress(self) -> None:
        progress = self.viewer.progress
        self.query_one("#progress_bar", ProgressBar).update(total=100, progress=progress.percent)
        self.query_one("#progress_text", Static).update(progress.percent_text)
        self.query_one("#progress_count", Static).update(progress.count_text)

    # --- Events ----------------------------------------------------
    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.list_view.id == "category_list" and event.list_view.index is not None:
            self.viewer.select_category(event.list_view.index)

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        index = event.list_view.index
        # Rendering the list also moves the highlight to the selected index
        if (
            event.list_view.id == "category_list"
            and index is not None
            and index != self.viewer.state.selected_category_index
        ):
            self.viewer.select_category(index)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        item = event.node.data
        if isinstance(item, TreeItem) and not item.is_directory:
            self.viewer.apply_video_selection(item.selection(), focus_player=True)

    def on_tree_node_expanded(self, event: Tree.NodeExpanded) -> None:
        item = event.node.data
        if isinstance(item, TreeItem) and item.is_directory:
            self.viewer.set_directory_open(item.node.path, True)

    def on_tree_node_collapsed(self, event: Tree.NodeCollapsed) -> None:
        item = event.node.data
        if isinstance(item, TreeItem) and item.is_directory:
            self.viewer.set_directory_open(item.node.path, False)

    def action_toggle_complete(self) -> None:
        node = self.query_one(Tree).cursor_node
        item = node.data if node is not None else None
        if not isinstance(item, TreeItem) or item.is_directory:
            return
        path = item.node.path
        self.viewer.toggle_video_completion(path, not self.viewer.is_completed(path))

    def action_play(self) -> None:
        selection = self.viewer.state.selected_video
        if selection is None:
            return
        src = resolve_playable_source(selection.node.path, self.app_config.site, self.video_prefix)
        try:
            launch_player(src, self.app_config.player_command)
            self._library_log.info(f"Playing {display_title(selection.node.name)}")
        except PlayerError as e:
            self._library_log.error(str(e))


if __name__ == "__main__":
    app = LibraryApp()
    app.run()
