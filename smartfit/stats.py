"""
Stats Recorder

Diagnostic data about the most recent fit call: whether a face anchored the crop, its quality and
scale, the chosen rectangle and how long the call took. The report tool and the debug logs read
these back after each call.

A StatsRecorder holds exactly one record and every fit overwrites it. It is not safe to share one
recorder between fits running concurrently; give each worker its own engine and recorder.
"""

from dataclasses import dataclass
from enum import Enum

from smartfit.geometry import Rect
from smartfit.geometry import EMPTY_RECT


class FitPath(Enum):
    """Decision branch taken by the fit engine."""

    NONE = "none"
    IDENTITY = "identity"
    SCALE = "scale"
    CROP = "crop"
    REJECTED = "rejected"


@dataclass(frozen=True)
class FitStats:
    found: bool = False
    quality: float = 0.0
    scale: int = 0
    rect: Rect = EMPTY_RECT
    duration: float = 0.0
    path: FitPath = FitPath.NONE
    face_rect: Rect = EMPTY_RECT

    def summary(self) -> str:
        """One line description, used by the CLI and the report grid."""

        text = f"{self.path.value} in {self.duration * 1000:.0f}ms"
        if self.found:
            text += f", face Q:{self.quality:.1f} S:{self.scale}"
        if not self.rect.is_empty:
            text += f", rect {tuple(self.rect)}"
        return text


class StatsRecorder:
    def __init__(self):
        self._last = FitStats()

    @property
    def last(self) -> FitStats:
        return self._last

    def record(self, stats: FitStats) -> FitStats:
        """Replace the stored record. Previous values are discarded, never merged."""

        self._last = stats
        return stats
