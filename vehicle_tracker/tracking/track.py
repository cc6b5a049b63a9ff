from __future__ import annotations

from dataclasses import dataclass, field

from vehicle_tracker.tracking.motion_filter import BaseMotionFilter
from vehicle_tracker.utils.types import Box, VisibleTrack


@dataclass
class Track:
    track_id: int
    box: Box
    motion_filter: BaseMotionFilter = field(repr=False)
    label: str = "car"
    score: float = 0.0
    age: int = 1
    total_visible_count: int = 1
    consecutive_invisible_count: int = 0

    @property
    def is_visible(self) -> bool:
        return self.consecutive_invisible_count == 0

    def predict(self) -> Box:
        self.box = self.motion_filter.predict()
        return self.box

    def mark_matched(self, box: Box, label: str, score: float) -> None:
        self.motion_filter.correct(box)
        self.box = self.motion_filter.box
        self.label = label
        self.score = score
        self.age += 1
        self.total_visible_count += 1
        self.consecutive_invisible_count = 0

    def mark_missed(self) -> None:
        # Box keeps the uncorrected prediction.
        self.age += 1
        self.consecutive_invisible_count += 1

    def to_visible(self) -> VisibleTrack:
        return VisibleTrack(track_id=self.track_id, box=self.box, label=self.label, score=self.score)
