from __future__ import annotations

import json
from collections import defaultdict, deque
from dataclasses import asdict
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Tuple

try:
    import cv2
except ImportError:  # pragma: no cover
    cv2 = None

from tqdm import tqdm

from vehicle_tracker.inputs.video_input import VideoInput
from vehicle_tracker.tracking.tracker import VehicleTracker
from vehicle_tracker.utils.logger import get_logger
from vehicle_tracker.utils.timing import FPSMeter, StageTimer
from vehicle_tracker.utils.types import VisibleTrack
from vehicle_tracker.visualization.overlay import draw_hud, draw_tracks

logger = get_logger(__name__)


def update_trajectories(
    trajectories: Dict[int, Deque[Tuple[int, int]]],
    visible: List[VisibleTrack],
    active_ids: set,
) -> Dict[int, List[Tuple[int, int]]]:
    for tid in [tid for tid in trajectories if tid not in active_ids]:
        del trajectories[tid]
    live = {t.track_id for t in visible}
    for t in visible:
        x, y, w, h = t.box
        trajectories[t.track_id].append((int(x + w / 2), int(y + h / 2)))
    return {tid: list(pts) for tid, pts in trajectories.items() if tid in live}


def _open_writer(path: Path, vin: VideoInput):
    if cv2 is None:
        raise ImportError("opencv-python is required to save video output")
    fourcc = cv2.VideoWriter_fourcc(*"mp4v")
    writer = cv2.VideoWriter(str(path), fourcc, vin.fps, (vin.meta.width, vin.meta.height))
    if not writer.isOpened():
        raise RuntimeError("Could not open VideoWriter (mp4v). Try a different codec/container.")
    return writer


def run_tracking(
    vin: VideoInput,
    tracker: VehicleTracker,
    run_dir: Path,
    save_video: bool = True,
    save_metrics: bool = True,
    overlay_enabled: bool = True,
    fps_smoothing: float = 0.9,
    project: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Track every frame of an opened video.

    Writes output.mp4 and metrics.json into `run_dir`. Both are finalised
    even if a frame fails; the failure is then re-raised.
    """
    fps_meter = FPSMeter(smoothing=fps_smoothing)
    metrics: Dict[str, Any] = {
        "project": project or {},
        "input": {"path": str(vin.path), "meta": asdict(vin.meta) if vin.meta else {}},
        "tracker": asdict(tracker.cfg),
        "frames": [],
        "completed": False,
    }
    trajectories: Dict[int, Deque[Tuple[int, int]]] = defaultdict(lambda: deque(maxlen=30))

    out_video_path = run_dir / "output.mp4"
    writer = _open_writer(out_video_path, vin) if save_video else None
    total = vin.meta.frame_count if vin.meta and vin.meta.frame_count > 0 else None
    try:
        for frame_id, packet in tqdm(vin.frames(), total=total, desc="Tracking"):
            timer = StageTimer()
            with timer.stage("detect+track"):
                visible = tracker.process_frame(packet.frame)

            fps = fps_meter.tick()
            active_ids = {t.track_id for t in tracker.tracks}
            traj_out = update_trajectories(trajectories, visible, active_ids)

            if writer is not None:
                render = packet.frame
                if overlay_enabled:
                    render = draw_tracks(render, visible, traj_out)
                    render = draw_hud(render, fps, timer.stages_ms, len(active_ids), len(visible))
                writer.write(render)

            metrics["frames"].append(
                {
                    "frame_id": frame_id,
                    "fps": fps,
                    "stages_ms": timer.stages_ms,
                    "detection_count": tracker.last_detection_count,
                    "active_track_count": len(active_ids),
                    "visible_track_count": len(visible),
                    "tracks": [
                        {"id": t.track_id, "box": list(t.box), "label": t.label, "score": t.score} for t in visible
                    ],
                }
            )
        metrics["completed"] = True
    finally:
        if writer is not None:
            writer.release()
            logger.info("Saved video: %s", out_video_path)
        if save_metrics:
            metrics_path = run_dir / "metrics.json"
            metrics_path.write_text(json.dumps(metrics, indent=2), encoding="utf-8")
            logger.info("Saved metrics: %s (%d frames)", metrics_path, len(metrics["frames"]))

    logger.info("Done. %d track ids issued.", tracker.manager.next_id - 1)
    return metrics
