"""Configuration management for the video library indexer and viewer."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, List, Optional

CONFIG_DIR = Path.home() / ".config" / "video_library"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.json"
SCAN_ROOT_LABEL = "videos"


@dataclass
class AppConfig:
    videos_dir: Path = field(default_factory=lambda: Path(SCAN_ROOT_LABEL))
    output_file: Path = field(
        default_factory=lambda: Path("site") / "data" / "videos.json"
    )
    site: str = "site"  # local directory or http(s) base URL of the published site
    manifest_url: str = "data/videos.json"
    video_path_prefix: Optional[str] = None
    storage_path: Path = field(default_factory=lambda: CONFIG_DIR / "storage.json")
    player_command: List[str] = field(default_factory=list)
    timeout_seconds: int = 10

    def __post_init__(self):
        # Ensure path fields are Path objects (JSON round-trips them as str)
        for name in ("videos_dir", "output_file", "storage_path"):
            value = getattr(self, name)
            if not isinstance(value, Path):
                setattr(self, name, Path(value))

    def save(self, path: Path) -> None:
        """Saves the configuration to a JSON file."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=2, cls=PathEncoder)

    @classmethod
    def from_file(cls, path: Path) -> "AppConfig":
        """Loads configuration from a JSON file."""
        if not path.exists():
            return cls()
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls(**data)


class PathEncoder(json.JSONEncoder):
    def default(self, o: Any) -> Any:
        if isinstance(o, Path):
            return str(o)
        return super().default(o)
