import json

import numpy as np
import pytest

from tests.fakes import FakeDetector, car
from vehicle_tracker.inputs.video_input import VideoInput
from vehicle_tracker.runtime.runner import run_tracking
from vehicle_tracker.tracking.tracker import VehicleTracker


def write_clip(path, n_frames=3):
    import cv2

    writer = cv2.VideoWriter(str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    for i in range(n_frames):
        writer.write(np.full((48, 64, 3), 40 * i, dtype=np.uint8))
    writer.release()
    return path


def test_run_tracking_writes_metrics_per_frame(tmp_path):
    clip = write_clip(tmp_path / "clip.avi")
    detector = FakeDetector([[car(5, 5, w=20, h=20)], [car(6, 5, w=20, h=20)], []])
    tracker = VehicleTracker(detector=detector)

    with VideoInput(clip) as vin:
        metrics = run_tracking(vin, tracker, tmp_path, save_video=False)

    saved = json.loads((tmp_path / "metrics.json").read_text())
    assert saved["completed"] is True
    assert [f["visible_track_count"] for f in saved["frames"]] == [1, 1, 0]
    assert [f["active_track_count"] for f in saved["frames"]] == [1, 1, 1]
    assert saved["frames"][1]["tracks"][0]["id"] == 1
    assert metrics["frames"][0]["stages_ms"]["detect+track"] >= 0.0


def test_failed_frame_still_saves_partial_metrics_and_releases_video(tmp_path):
    clip = write_clip(tmp_path / "clip.avi")

    class FailsOnSecondFrame(FakeDetector):
        def detect(self, frame, threshold):
            if len(self.thresholds) == 1:
                self.fail = True
            return super().detect(frame, threshold)

    tracker = VehicleTracker(detector=FailsOnSecondFrame([[car(5, 5, w=20, h=20)]]))
    with pytest.raises(IOError):
        with VideoInput(clip) as vin:
            run_tracking(vin, tracker, tmp_path, save_video=False)

    assert vin.cap is None
    saved = json.loads((tmp_path / "metrics.json").read_text())
    assert saved["completed"] is False
    assert len(saved["frames"]) == 1
