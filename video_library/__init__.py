"""Local video library: manifest indexer and progress-tracking viewer.

Public surface kept intentionally small; internal modules may evolve.
"""

from .config import DEFAULT_CONFIG_PATH, AppConfig
from .indexer import build_manifest
from .manifest import load_manifest, write_manifest
from .state import LibraryViewer

__all__ = [
    "AppConfig",
    "LibraryViewer",
    "build_manifest",
    "load_manifest",
    "write_manifest",
]


def main():
    """Launch the Textual viewer."""
    from .tui import LibraryApp

    app = LibraryApp(AppConfig.from_file(DEFAULT_CONFIG_PATH))
    app.run()
