from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from rich.console import Console

from vehicle_tracker.inputs.video_input import VideoInput
from vehicle_tracker.perception.detection.yolo import YOLODetector
from vehicle_tracker.runtime.runner import run_tracking
from vehicle_tracker.tracking.tracker import TrackerConfig, VehicleTracker
from vehicle_tracker.utils.config import get, load_yaml
from vehicle_tracker.utils.logger import setup_logger


def make_run_dir(base_dir: str | Path) -> Path:
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(base_dir) / f"run_{ts}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def main():
    parser = argparse.ArgumentParser(description="Vehicle tracker: YOLO detections + Kalman/IoU tracking")
    parser.add_argument("--config", default="configs/tracker.yaml", help="Path to YAML config")
    parser.add_argument("--input", required=True, help="Path to input video")
    args = parser.parse_args()

    cfg: Dict[str, Any] = load_yaml(args.config)

    output_base = get(cfg, "runtime.output_dir", "results")
    run_dir = make_run_dir(output_base)
    logger = setup_logger(log_dir=run_dir, level=get(cfg, "runtime.log_level", "INFO"))

    console = Console()
    console.print(f"[bold]vehicle_tracker[/bold] run dir: {run_dir}")

    tracker_cfg = TrackerConfig.from_dict(cfg)
    logger.info("Tracker config: %s", tracker_cfg)
    detector = YOLODetector(
        model_name=get(cfg, "perception.detector_model", "yolov8n.pt"),
        device=get(cfg, "perception.device"),
    )
    tracker = VehicleTracker(detector=detector, cfg=tracker_cfg)

    logger.info("Input video: %s", args.input)
    with VideoInput(args.input) as vin:
        metrics = run_tracking(
            vin,
            tracker,
            run_dir,
            save_video=bool(get(cfg, "runtime.save_video", True)),
            save_metrics=bool(get(cfg, "runtime.save_metrics", True)),
            overlay_enabled=bool(get(cfg, "runtime.overlay.enabled", True)),
            fps_smoothing=float(get(cfg, "performance.fps_smoothing", 0.9)),
            project=cfg.get("project", {}),
        )

    console.print(f"Tracked {len(metrics['frames'])} frames, {tracker.manager.next_id - 1} track ids")


if __name__ == "__main__":
    main()
