from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple, Union

# Core data models for the video manifest and the viewer session


class ManifestFormatError(ValueError):
    pass


@dataclass
class VideoNode:
    name: str
    path: str
    size: int = 0

    @property
    def video_count(self) -> int:
        return 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "video",
            "name": self.name,
            "path": self.path,
            "size": self.size,
            "videoCount": 1,
        }


@dataclass
class DirectoryNode:
    name: str
    path: str
    video_count: int = 0
    children: List["ManifestNode"] = field(default_factory=list)

    def _head(self) -> Dict[str, Any]:
        return {
            "type": "directory",
            "name": self.name,
            "path": self.path,
            "videoCount": self.video_count,
            "children": [],
        }

    def to_dict(self) -> Dict[str, Any]:
        # Explicit stack: directory depth is not limited by the recursion limit
        root = self._head()
        pending = [(self, root)]
        while pending:
            node, data = pending.pop()
            for child in node.children:
                if isinstance(child, DirectoryNode):
                    child_data = child._head()
                    pending.append((child, child_data))
                else:
                    child_data = child.to_dict()
                data["children"].append(child_data)
        return root


ManifestNode = Union[DirectoryNode, VideoNode]


def _parse_node(data: Any) -> Tuple[ManifestNode, List[Any]]:
    """Build one node without its children; return it with its raw children."""
    if not isinstance(data, dict):
        raise ManifestFormatError(f"Manifest node must be an object, got {type(data).__name__}")
    kind = data.get("type")
    name = str(data.get("name", ""))
    path = str(data.get("path", ""))
    if kind == "video":
        return VideoNode(name=name, path=path, size=int(data.get("size") or 0)), []
    if kind == "directory":
        children = data.get("children")
        if children is None:
            children = []
        if not isinstance(children, list):
            raise ManifestFormatError(f"'children' of {path!r} must be a list")
        node = DirectoryNode(name=name, path=path, video_count=int(data.get("videoCount") or 0))
        return node, children
    raise ManifestFormatError(f"Unknown manifest node type: {kind!r}")


def node_from_dict(data: Any) -> ManifestNode:
    """Rebuild a node (and its subtree) from its JSON form."""
    root, raw_children = _parse_node(data)
    pending = [(root, raw_children)]
    while pending:
        node, raw_children = pending.pop()
        for raw in raw_children:
            child, grandchildren = _parse_node(raw)
            node.children.append(child)
            if grandchildren:
                pending.append((child, grandchildren))
    return root


@dataclass
class Manifest:
    generated_at: str
    categories: List[ManifestNode] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": self.generated_at,
            "categories": [c.to_dict() for c in self.categories],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Manifest":
        if not isinstance(data, dict):
            raise ManifestFormatError("Manifest root must be an object")
        categories = data.get("categories")
        if categories is None:
            categories = []
        if not isinstance(categories, list):
            raise ManifestFormatError("'categories' must be a list")
        return cls(
            generated_at=str(data.get("generatedAt", "")),
            categories=[node_from_dict(c) for c in categories],
        )


@dataclass
class Selection:
    node: VideoNode
    breadcrumbs: List[str]
    directories: List[str]


@dataclass
class ViewerState:
    categories: List[ManifestNode] = field(default_factory=list)
    selected_category_index: int = -1
    selected_video: Optional[Selection] = None
    open_paths: Set[str] = field(default_factory=set)
    completed_videos: Set[str] = field(default_factory=set)
    total_videos: int = 0
    valid_video_paths: Set[str] = field(default_factory=set)


__all__ = [
    "DirectoryNode",
    "Manifest",
    "ManifestFormatError",
    "ManifestNode",
    "Selection",
    "VideoNode",
    "ViewerState",
    "node_from_dict",
]
