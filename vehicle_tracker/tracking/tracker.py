from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any, Dict, Iterable, List, Optional, Tuple

from vehicle_tracker.perception.detection.base_detector import BaseDetector
from vehicle_tracker.tracking.motion_filter import (
    DEFAULT_INITIAL_ESTIMATE_ERROR,
    DEFAULT_MEASUREMENT_NOISE,
    DEFAULT_MOTION_NOISE,
    KalmanBoxFilter,
)
from vehicle_tracker.tracking.track import Track
from vehicle_tracker.tracking.track_manager import TrackManager
from vehicle_tracker.utils.config import get
from vehicle_tracker.utils.logger import get_logger
from vehicle_tracker.utils.types import Detection, VisibleTrack


@dataclass
class TrackerConfig:
    invisibility_threshold: int = 15
    max_assignment_cost: float = 0.7  # reject pairs with IoU < 0.3
    detection_threshold: float = 0.5
    trackable_labels: Tuple[str, ...] = ("car", "truck", "bus")
    motion_noise: Tuple[float, float] = DEFAULT_MOTION_NOISE
    measurement_noise: float = DEFAULT_MEASUREMENT_NOISE
    initial_estimate_error: Tuple[float, float] = DEFAULT_INITIAL_ESTIMATE_ERROR

    def __post_init__(self):
        if not 0.0 <= self.detection_threshold <= 1.0:
            raise ValueError(f"detection_threshold must be in [0, 1], got {self.detection_threshold}")
        if self.invisibility_threshold < 1:
            raise ValueError(f"invisibility_threshold must be >= 1, got {self.invisibility_threshold}")
        if not 0.0 <= self.max_assignment_cost <= 1.0:
            raise ValueError(f"max_assignment_cost must be in [0, 1], got {self.max_assignment_cost}")
        if self.measurement_noise <= 0:
            raise ValueError(f"measurement_noise must be positive, got {self.measurement_noise}")
        if not isinstance(self.trackable_labels, (list, tuple, set, frozenset)):
            raise ValueError(f"trackable_labels must be a list of class names, got {self.trackable_labels!r}")
        self.trackable_labels = tuple(str(lbl) for lbl in self.trackable_labels)
        self.motion_noise = tuple(float(v) for v in self.motion_noise)
        self.initial_estimate_error = tuple(float(v) for v in self.initial_estimate_error)
        for name in ("motion_noise", "initial_estimate_error"):
            values = getattr(self, name)
            if len(values) != 2 or min(values) < 0:
                raise ValueError(f"{name} must be two non-negative numbers [position, velocity], got {values}")

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "TrackerConfig":
        """Build from the `tracking` section of a loaded YAML config."""
        defaults = cls()
        return cls(
            invisibility_threshold=int(get(cfg, "tracking.invisibility_threshold", defaults.invisibility_threshold)),
            max_assignment_cost=float(get(cfg, "tracking.max_assignment_cost", defaults.max_assignment_cost)),
            detection_threshold=float(get(cfg, "tracking.detection_threshold", defaults.detection_threshold)),
            trackable_labels=get(cfg, "tracking.trackable_labels", defaults.trackable_labels),
            motion_noise=tuple(get(cfg, "tracking.kalman.motion_noise", defaults.motion_noise)),
            measurement_noise=float(get(cfg, "tracking.kalman.measurement_noise", defaults.measurement_noise)),
            initial_estimate_error=tuple(
                get(cfg, "tracking.kalman.initial_estimate_error", defaults.initial_estimate_error)
            ),
        )


class VehicleTracker:
    """
    Tracking-by-detection frame loop.

    Each call runs the detector, keeps only trackable classes and hands the
    result to the TrackManager. Frames must be fed one at a time, in order.
    """

    def __init__(
        self,
        detector: Optional[BaseDetector] = None,
        cfg: TrackerConfig | None = None,
        manager: Optional[TrackManager] = None,
    ):
        self.cfg = cfg or TrackerConfig()
        self.detector = detector
        self.logger = get_logger(__name__)
        self.manager = manager or TrackManager(
            invisibility_threshold=self.cfg.invisibility_threshold,
            max_assignment_cost=self.cfg.max_assignment_cost,
            filter_factory=partial(
                KalmanBoxFilter.create,
                motion_noise=self.cfg.motion_noise,
                measurement_noise=self.cfg.measurement_noise,
                initial_estimate_error=self.cfg.initial_estimate_error,
            ),
        )
        self._busy = False
        self.last_detection_count = 0

    @property
    def tracks(self) -> Tuple[Track, ...]:
        return self.manager.tracks

    def reset(self) -> None:
        self.manager.reset()

    def filter_detections(self, detections: Iterable[Detection]) -> List[Detection]:
        allowed = set(self.cfg.trackable_labels)
        return [d for d in detections if d.label in allowed]

    def process_frame(self, frame: Any) -> List[VisibleTrack]:
        if self.detector is None:
            raise RuntimeError("VehicleTracker has no detector; use process_detections() for pre-computed boxes")
        self._enter()
        try:
            # The detector runs before any track state is touched.
            detections = self.detector.detect(frame, self.cfg.detection_threshold)
            return self._update(detections)
        finally:
            self._busy = False

    def process_detections(self, detections: Iterable[Detection]) -> List[VisibleTrack]:
        self._enter()
        try:
            return self._update(detections)
        finally:
            self._busy = False

    def _enter(self) -> None:
        if self._busy:
            raise RuntimeError("VehicleTracker is already processing a frame")
        self._busy = True

    def _update(self, detections: Iterable[Detection]) -> List[VisibleTrack]:
        detections = list(detections)
        kept = self.filter_detections(detections)
        self.last_detection_count = len(detections)
        visible = self.manager.step(kept)
        self.logger.debug(
            "Frame %d: %d/%d detections kept, %d active, %d visible",
            self.manager.frame_count,
            len(kept),
            len(detections),
            len(self.manager.tracks),
            len(visible),
        )
        return visible
