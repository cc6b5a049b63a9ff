#!/usr/bin/env python3
import json
import sys
from collections import defaultdict
from pathlib import Path
from statistics import mean, median


def safe_mean(xs):
    xs = [x for x in xs if x is not None]
    return mean(xs) if xs else None


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/summarize_run.py results/run_YYYYMMDD_HHMMSS")
        sys.exit(1)

    run_dir = Path(sys.argv[1])
    metrics_path = run_dir / "metrics.json"
    if not metrics_path.exists():
        raise FileNotFoundError(f"Missing: {metrics_path}")

    m = json.loads(metrics_path.read_text())
    frames = m.get("frames", [])
    n = len(frames)
    if n == 0:
        print("No frames found in metrics.json")
        return

    fps_vals = [f.get("fps") for f in frames if f.get("fps") is not None]
    step_ms = [f.get("stages_ms", {}).get("detect+track") for f in frames]

    visible_frames = defaultdict(int)
    labels = {}
    for f in frames:
        for t in f.get("tracks", []):
            visible_frames[t["id"]] += 1
            labels[t["id"]] = t.get("label", "?")

    label_counts = defaultdict(int)
    for lbl in labels.values():
        label_counts[lbl] += 1

    print("\n============ VEHICLE TRACKER RUN SUMMARY ============")
    print(f"Run dir: {run_dir}")
    print(f"Frames: {n}")
    if fps_vals:
        print(f"FPS  avg={mean(fps_vals):.2f}  med={median(fps_vals):.2f}  min={min(fps_vals):.2f}  max={max(fps_vals):.2f}")
    else:
        print("FPS: (missing)")

    sm = safe_mean(step_ms)
    print(f"\ndetect+track latency (ms, avg): {sm:.2f}" if sm is not None else "\ndetect+track latency: (missing)")

    print(f"\nTrack ids seen: {len(visible_frames)}")
    for lbl, c in sorted(label_counts.items()):
        print(f"  {lbl:8s}: {c}")
    if visible_frames:
        lifetimes = list(visible_frames.values())
        print(f"Visible frames per track: avg={mean(lifetimes):.1f}  med={median(lifetimes):.1f}  max={max(lifetimes)}")

    active = [f.get("active_track_count", 0) for f in frames]
    visible = [f.get("visible_track_count", 0) for f in frames]
    print(f"Active tracks per frame:  avg={mean(active):.2f}  max={max(active)}")
    print(f"Visible tracks per frame: avg={mean(visible):.2f}  max={max(visible)}")
    print("=====================================================\n")


if __name__ == "__main__":
    main()
