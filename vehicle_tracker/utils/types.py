from dataclasses import dataclass
from typing import Tuple

# (x, y, width, height) in pixels, (x, y) is the top-left corner.
Box = Tuple[float, float, float, float]


@dataclass
class FramePacket:
    frame: object
    timestamp: float


@dataclass
class Detection:
    box: Box
    label: str
    score: float


@dataclass(frozen=True)
class VisibleTrack:
    track_id: int
    box: Box
    label: str
    score: float
