"""Command-line interface: manifest indexing and the terminal viewer."""

from __future__ import annotations

import argparse
import shlex
import sys
from pathlib import Path

from rich import print as rprint

from .config import DEFAULT_CONFIG_PATH, SCAN_ROOT_LABEL, AppConfig
from .indexer import build_manifest
from .logging_utils import get_logger
from .manifest import write_manifest


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Local video library indexer and viewer")
    p.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command")

    index = sub.add_parser("index", help="Generate the video manifest (default)")
    index.add_argument("--videos-dir", type=Path, help="Directory to scan (default: videos)")
    index.add_argument(
        "--output", type=Path, help="Manifest file (default: site/data/videos.json)"
    )
    index.add_argument(
        "--label",
        default=SCAN_ROOT_LABEL,
        help="Leading path segment used in manifest identifiers",
    )

    view = sub.add_parser("view", help="Browse the library in the terminal")
    view.add_argument("--site", help="Site directory or URL hosting data/videos.json")
    view.add_argument("--prefix", help="Explicit prefix for video source URLs")
    view.add_argument("--storage", type=Path, help="Completion store file")
    view.add_argument(
        "--player", help="External player command, e.g. \"mpv --force-window\""
    )
    return p


def _load_config(path: Path) -> AppConfig:
    try:
        return AppConfig.from_file(path)
    except (OSError, ValueError, TypeError) as e:
        get_logger().warning(f"Ignoring unreadable config {path}: {e}")
        return AppConfig()


def run_index(config: AppConfig, label: str = SCAN_ROOT_LABEL) -> int:
    try:
        manifest = build_manifest(config.videos_dir, label)
        output = write_manifest(manifest, config.output_file)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    rprint(
        f"[bold green]Manifest written:[/] {output} "
        f"(categories: {len(manifest.categories)})"
    )
    return 0


def run_view(config: AppConfig) -> int:
    from .tui import LibraryApp

    app = LibraryApp(config)
    app.run()
    return 0


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    get_logger(verbose=args.verbose)
    config = _load_config(args.config)

    if args.command == "view":
        if args.site:
            config.site = args.site
        if args.prefix:
            config.video_path_prefix = args.prefix
        if args.storage:
            config.storage_path = args.storage
        if args.player:
            config.player_command = shlex.split(args.player)
        return run_view(config)

    label = SCAN_ROOT_LABEL
    if args.command == "index":
        if args.videos_dir:
            config.videos_dir = args.videos_dir
        if args.output:
            config.output_file = args.output
        label = args.label
    return run_index(config, label)


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
