import json
import pytest
from video_library.models import DirectoryNode, Manifest, VideoNode
from video_library.state import (
    NO_CATEGORIES_MESSAGE,
    LibraryViewer,
    TreeItem,
    child_items,
    collect_video_stats,
    find_first_video,
    root_items,
)
from video_library.storage import COMPLETED_VIDEOS_KEY, MemoryStore


def v(path, size=1):
    return VideoNode(path.rsplit("/", 1)[-1], path, size)


def d(path, *children):
    return DirectoryNode(
        path.rsplit("/", 1)[-1], path, sum(c.video_count for c in children), list(children)
    )


@pytest.fixture()
def manifest():
    return Manifest(
        "2024-01-01T00:00:00Z",
        [
            d("videos/A",
              d("videos/A/empty"),
              d("videos/A/s1", d("videos/A/s1/deep", v("videos/A/s1/deep/1.mp4")), v("videos/A/s1/2.mp4")),
              v("videos/A/3.mp4")),
            d("videos/B", v("videos/B/1.mp4"), d("videos/B/s", v("videos/B/s/2.mp4"))),
            v("videos/root.mp4"),
        ],
    )


@pytest.fixture()
def events():
    return []


@pytest.fixture()
def viewer(events):
    vw = LibraryViewer(MemoryStore())
    vw.on_change(lambda e: events.append(e.kind))
    return vw


def test_collect_stats_idempotent(manifest):
    first = collect_video_stats(manifest.categories)
    second = collect_video_stats(manifest.categories)
    assert first.total == second.total == 6
    assert first.paths == second.paths
    assert "videos/B/s/2.mp4" in first.paths


def test_find_first_video_skips_empty_directories(manifest):
    cat = manifest.categories[0]
    sel = find_first_video(cat, [cat.name], [])
    assert sel.node.path == "videos/A/s1/deep/1.mp4"
    assert sel.breadcrumbs == ["A", "s1", "deep", "1.mp4"]
    assert sel.directories == ["videos/A/s1", "videos/A/s1/deep"]


def test_find_first_video_prefers_earlier_leaf(manifest):
    cat = manifest.categories[1]
    sel = find_first_video(cat, [cat.name], [])
    assert sel.node.path == "videos/B/1.mp4"
    assert sel.directories == []


def test_find_first_video_none():
    assert find_first_video(d("videos/E", d("videos/E/x")), ["E"], []) is None
    assert find_first_video(None, [], []) is None


def test_load_selects_first_category(viewer, manifest, events):
    viewer.load(manifest)
    assert viewer.state.selected_category_index == 0
    assert viewer.state.selected_video.node.path == "videos/A/s1/deep/1.mp4"
    assert viewer.state.open_paths == {"videos/A/s1", "videos/A/s1/deep"}
    assert viewer.state.total_videos == 6
    assert events[-3:] == ["categories", "tree", "player"]


def test_load_empty_manifest(viewer, events):
    viewer.load(Manifest("t", []))
    assert viewer.message == NO_CATEGORIES_MESSAGE
    assert viewer.state.selected_category_index == -1
    assert events[-1] == "empty"


def test_fail_sets_message(viewer, events):
    viewer.fail()
    assert viewer.message
    assert events == ["empty"]


def test_select_category_out_of_range_is_noop(viewer, manifest, events):
    viewer.load(manifest)
    events.clear()
    viewer.select_category(7)
    viewer.select_category(-1)
    assert events == []
    assert viewer.state.selected_category_index == 0


def test_select_category_replaces_open_paths(viewer, manifest):
    viewer.load(manifest)
    viewer.set_directory_open("videos/A/empty", True)
    viewer.select_category(1)
    assert viewer.state.open_paths == set()
    assert viewer.current_category.name == "B"


def test_select_video_category(viewer, manifest):
    viewer.load(manifest)
    viewer.select_category(2)
    assert viewer.state.selected_video.node.path == "videos/root.mp4"
    assert viewer.state.selected_video.breadcrumbs == ["root.mp4"]


def test_apply_selection_merges_open_paths(viewer, manifest, events):
    viewer.load(manifest)
    viewer.select_category(1)
    viewer.set_directory_open("videos/B/other", True)
    item = [i for i in child_items(root_items(manifest.categories[1])[1])][0]
    events.clear()
    viewer.apply_video_selection(item.selection(), focus_player=True)
    assert viewer.state.open_paths == {"videos/B/other", "videos/B/s"}
    assert viewer.is_playing("videos/B/s/2.mp4")
    assert events == ["tree", "player", "focus_player"]


def test_apply_none_selection_is_noop(viewer, manifest, events):
    viewer.load(manifest)
    events.clear()
    viewer.apply_video_selection(None)
    assert events == []


def test_directory_default_open_state(viewer, manifest):
    viewer.load(manifest)
    assert viewer.is_directory_open("videos/A/empty", 0)
    assert not viewer.is_directory_open("videos/X/y", 1)
    viewer.set_directory_open("videos/X/y", True)
    assert viewer.is_directory_open("videos/X/y", 1)
    viewer.set_directory_open("videos/X/y", False)
    assert not viewer.is_directory_open("videos/X/y", 1)
    viewer.set_directory_open("", True)
    assert "" not in viewer.state.open_paths


def test_tree_items_breadcrumbs(manifest):
    items = root_items(manifest.categories[0])
    assert [i.node.name for i in items] == ["empty", "s1", "3.mp4"]
    s1 = items[1]
    assert s1.breadcrumbs == ["A", "s1"] and s1.directories == [] and s1.depth == 0
    deep, leaf = child_items(s1)
    assert deep.depth == 1 and deep.directories == ["videos/A/s1"]
    sel = leaf.selection()
    assert sel.breadcrumbs == ["A", "s1", "2.mp4"]
    assert sel.directories == ["videos/A/s1"]
    assert items[2].selection().breadcrumbs == ["A", "3.mp4"]
    assert s1.selection() is None


def test_root_items_for_video_category(manifest):
    (item,) = root_items(manifest.categories[2])
    assert not item.is_directory
    assert item.selection().breadcrumbs == ["root.mp4"]


def test_toggle_completion(viewer, manifest, events):
    viewer.load(manifest)
    events.clear()
    assert viewer.toggle_video_completion("videos/A/3.mp4", True)
    assert viewer.is_completed("videos/A/3.mp4")
    assert viewer.progress.count_text == "1 / 6 本"
    assert json.loads(viewer.store.get(COMPLETED_VIDEOS_KEY)) == ["videos/A/3.mp4"]
    assert events == ["progress", "leaf"]
    viewer.toggle_video_completion("videos/A/3.mp4", False)
    assert not viewer.is_completed("videos/A/3.mp4")
    assert viewer.progress.percent_text == "0.0%"


def test_toggle_unknown_path_ignored(viewer, manifest, events):
    viewer.load(manifest)
    writes = viewer.store.writes
    events.clear()
    assert viewer.toggle_video_completion("videos/nope.mp4", True) is False
    assert viewer.toggle_video_completion("", True) is False
    assert viewer.toggle_video_completion(None, True) is False
    assert len(viewer.state.completed_videos) == 0
    assert viewer.store.writes == writes
    assert events == []


def test_load_prunes_stale_completions_once(manifest):
    store = MemoryStore({COMPLETED_VIDEOS_KEY: json.dumps(["videos/gone.mp4", "videos/B/1.mp4"])})
    vw = LibraryViewer(store)
    assert store.writes == 0
    vw.load(manifest)
    assert vw.state.completed_videos == {"videos/B/1.mp4"}
    assert store.writes == 1
    assert json.loads(store.get(COMPLETED_VIDEOS_KEY)) == ["videos/B/1.mp4"]
    assert vw.progress.count_text == "1 / 6 本"


def test_load_without_stale_entries_does_not_write(manifest):
    store = MemoryStore({COMPLETED_VIDEOS_KEY: json.dumps(["videos/B/1.mp4"])})
    LibraryViewer(store).load(manifest)
    assert store.writes == 0


def test_corrupted_store_starts_empty(manifest):
    vw = LibraryViewer(MemoryStore({COMPLETED_VIDEOS_KEY: "not json"}))
    vw.load(manifest)
    assert vw.state.completed_videos == set()


def test_load_rewrites_non_string_entries_once(manifest):
    store = MemoryStore({COMPLETED_VIDEOS_KEY: json.dumps(["videos/B/1.mp4", 5, None])})
    vw = LibraryViewer(store)
    vw.load(manifest)
    assert store.writes == 1
    assert json.loads(store.get(COMPLETED_VIDEOS_KEY)) == ["videos/B/1.mp4"]
    vw.load(manifest)
    assert store.writes == 1


def test_deep_tree_stats_and_first_video():
    leaf = v("videos/c/" + "a/" * 900 + "x.mp4")
    node = leaf
    for depth in range(900, -1, -1):
        node = d("videos/c" + "/a" * depth, node)
    category = node
    stats = collect_video_stats([category, v("videos/root.mp4")])
    assert stats.total == 2
    assert leaf.path in stats.paths
    sel = find_first_video(category, [category.name], [])
    assert sel.node is leaf
    assert len(sel.directories) == 900
    assert len(sel.breadcrumbs) == 902
    assert Manifest.from_dict(Manifest("t", [category]).to_dict()).categories[0].video_count == 1
