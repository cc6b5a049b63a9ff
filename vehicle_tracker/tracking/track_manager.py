from __future__ import annotations

import math
from copy import deepcopy
from typing import Callable, List, Optional, Sequence, Tuple

from vehicle_tracker.tracking.association import DEFAULT_MAX_ASSIGNMENT_COST, AssociationResult, associate
from vehicle_tracker.tracking.geometry import is_valid_box
from vehicle_tracker.tracking.motion_filter import BaseMotionFilter, KalmanBoxFilter
from vehicle_tracker.tracking.track import Track
from vehicle_tracker.utils.logger import get_logger
from vehicle_tracker.utils.types import Box, Detection, VisibleTrack

DEFAULT_INVISIBILITY_THRESHOLD = 15

FilterFactory = Callable[[Box], BaseMotionFilter]


class TrackManager:
    """
    Owns the track set and runs the per-frame lifecycle:
    predict -> associate -> correct matched -> age unmatched -> spawn -> prune -> emit.

    A frame either commits fully or, if a collaborator raises, leaves the
    track set exactly as it was before the call.
    """

    def __init__(
        self,
        invisibility_threshold: int = DEFAULT_INVISIBILITY_THRESHOLD,
        max_assignment_cost: float = DEFAULT_MAX_ASSIGNMENT_COST,
        filter_factory: Optional[FilterFactory] = None,
    ):
        if invisibility_threshold < 1:
            raise ValueError(f"invisibility_threshold must be >= 1, got {invisibility_threshold}")
        if not 0.0 <= max_assignment_cost <= 1.0:
            raise ValueError(f"max_assignment_cost must be in [0, 1], got {max_assignment_cost}")
        self.invisibility_threshold = int(invisibility_threshold)
        self.max_assignment_cost = float(max_assignment_cost)
        self.filter_factory: FilterFactory = filter_factory or KalmanBoxFilter.create
        self.logger = get_logger(__name__)

        self._tracks: List[Track] = []
        self._next_id = 1
        self.frame_count = 0

    @property
    def tracks(self) -> Tuple[Track, ...]:
        return tuple(self._tracks)

    @property
    def next_id(self) -> int:
        return self._next_id

    def reset(self) -> None:
        self._tracks = []
        self._next_id = 1
        self.frame_count = 0

    def step(self, detections: Sequence[Detection]) -> List[VisibleTrack]:
        snapshot = (deepcopy(self._tracks), self._next_id, self.frame_count)
        try:
            return self._step(detections)
        except Exception:
            self._tracks, self._next_id, self.frame_count = snapshot
            self.logger.warning("Frame %d failed; track set rolled back to %d tracks", self.frame_count + 1, len(self._tracks))
            raise

    def _step(self, detections: Sequence[Detection]) -> List[VisibleTrack]:
        self.frame_count += 1

        predicted = [trk.predict() for trk in self._tracks]

        result = associate(predicted, [d.box for d in detections], max_cost=self.max_assignment_cost)
        self._check_result(result, len(self._tracks), len(detections))

        for trk_idx, det_idx in result.matches:
            det = detections[det_idx]
            self._tracks[trk_idx].mark_matched(det.box, det.label, det.score)

        for trk_idx in result.unmatched_tracks:
            self._tracks[trk_idx].mark_missed()

        for det_idx in result.unmatched_detections:
            self._spawn(detections[det_idx])

        self._prune()

        return [trk.to_visible() for trk in self._tracks if trk.is_visible]

    def _spawn(self, det: Detection) -> None:
        box = tuple(float(v) for v in det.box)
        if not all(math.isfinite(v) for v in box):
            self.logger.warning("Frame %d: dropped detection with non-finite box %s", self.frame_count, box)
            return
        if not is_valid_box(box):
            # Zero-area tracks never match; they coast until pruned.
            self.logger.debug("Frame %d: spawning track from degenerate box %s", self.frame_count, box)
        trk = Track(
            track_id=self._next_id,
            box=box,
            motion_filter=self.filter_factory(box),
            label=det.label,
            score=float(det.score),
        )
        self._tracks.append(trk)
        self._next_id += 1
        self.logger.debug("Frame %d: new track %d (%s) at %s", self.frame_count, trk.track_id, trk.label, box)

    def _prune(self) -> None:
        kept: List[Track] = []
        for trk in self._tracks:
            if trk.consecutive_invisible_count >= self.invisibility_threshold:
                self.logger.debug(
                    "Frame %d: pruned track %d (age=%d, visible=%d)",
                    self.frame_count,
                    trk.track_id,
                    trk.age,
                    trk.total_visible_count,
                )
                continue
            kept.append(trk)
        self._tracks = kept

    @staticmethod
    def _check_result(result: AssociationResult, n_tracks: int, n_dets: int) -> None:
        seen_tracks = [t for t, _ in result.matches] + list(result.unmatched_tracks)
        seen_dets = [d for _, d in result.matches] + list(result.unmatched_detections)
        assert sorted(seen_tracks) == list(range(n_tracks)), f"bad track partition: {result}"
        assert sorted(seen_dets) == list(range(n_dets)), f"bad detection partition: {result}"
