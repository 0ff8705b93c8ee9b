from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Progress:
    completed: int
    total: int
    percent: float

    @property
    def percent_text(self) -> str:
        if self.total == 0:
            return "0%"
        return f"{self.percent:.1f}%"

    @property
    def count_text(self) -> str:
        return f"{self.completed} / {self.total} 本"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["percentText"] = self.percent_text
        data["countText"] = self.count_text
        return data


def compute_progress(completed_count: int, total: int) -> Progress:
    total = max(total or 0, 0)
    # A corrupted store may hold more entries than there are videos
    completed = min(completed_count, total)
    percent = 0.0 if total == 0 else completed / total * 100
    return Progress(completed=completed, total=total, percent=percent)


__all__ = ["Progress", "compute_progress"]
