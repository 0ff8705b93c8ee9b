"""Hand a resolved video source to an external media player."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from typing import List, Optional, Sequence


class PlayerError(RuntimeError):
    pass


def build_player_command(src: str, command: Optional[Sequence[str]] = None) -> List[str]:
    if command:
        return [*command, src]
    if sys.platform == "darwin":
        return ["open", src]
    for opener in ("xdg-open", "wslview"):
        if shutil.which(opener):
            return [opener, src]
    raise PlayerError("No media player configured and no system opener found")


def launch_player(src: str, command: Optional[Sequence[str]] = None) -> None:
    if not src:
        raise PlayerError("No video selected")
    if os.name == "nt" and not command:
        try:
            os.startfile(src)  # type: ignore[attr-defined]
        except OSError as e:
            raise PlayerError(f"Could not open {src}: {e}") from e
        return
    argv = build_player_command(src, command)
    try:
        subprocess.Popen(
            argv,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        raise PlayerError(f"Could not start {argv[0]}: {e}") from e


__all__ = ["PlayerError", "build_player_command", "launch_player"]
