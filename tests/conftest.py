import sys
from pathlib import Path
import pytest

# Ensure project root on sys.path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from video_library.logging_utils import get_logger  # noqa: E402


def make_file(path: Path, size: int = 1) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x" * size)
    return path


def make_deep_tree(root: Path, depth: int) -> Path:
    """Create ``depth`` nested ``a/`` directories with one video at the bottom."""
    current = root
    current.mkdir(parents=True, exist_ok=True)
    for _ in range(depth):
        current = current / "a"
        current.mkdir()
    return make_file(current / "x.mp4")


@pytest.fixture(autouse=True)
def restore_log_handlers():
    logger = get_logger()
    handlers = logger.handlers[:]
    level = logger.level
    yield
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


@pytest.fixture()
def videos_dir(tmp_path):
    """A small library:

    videos/
      ①Intro/01_hello.mp4, 02_next.MP4, notes.txt, .hidden.mp4
      ②Advanced/10_part.mp4, 2_part.mp4, sub/a.mp4
      3_Extra/x.mp4
      Misc/z.mp4, .secret/y.mp4
      .git/HEAD
    """
    root = tmp_path / "videos"
    make_file(root / "①Intro" / "01_hello.mp4", 5)
    make_file(root / "①Intro" / "02_next.MP4", 2048)
    make_file(root / "①Intro" / "notes.txt")
    make_file(root / "①Intro" / ".hidden.mp4")
    make_file(root / "②Advanced" / "10_part.mp4")
    make_file(root / "②Advanced" / "2_part.mp4")
    make_file(root / "②Advanced" / "sub" / "a.mp4")
    make_file(root / "3_Extra" / "x.mp4")
    make_file(root / "Misc" / "z.mp4")
    make_file(root / "Misc" / ".secret" / "y.mp4")
    make_file(root / ".git" / "HEAD")
    return root


@pytest.fixture()
def run_cli(capsys, tmp_path):
    from video_library.cli import run_cli as _run_cli

    def runner(args):
        try:
            code = _run_cli(["--config", str(tmp_path / "config.json"), *args])
        except SystemExit as e:
            code = e.code
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    return runner
