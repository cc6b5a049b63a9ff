from __future__ import annotations

from typing import Any, Dict, List, Optional

try:
    import cv2
except ImportError:  # pragma: no cover
    cv2 = None

from vehicle_tracker.utils.types import VisibleTrack

# BGR
LABEL_COLORS = {
    "car": (255, 200, 0),
    "truck": (0, 165, 255),
    "bus": (0, 255, 0),
}
DEFAULT_COLOR = (255, 255, 255)


def draw_hud(frame: Any, fps: float, stages_ms: Dict[str, float], active_tracks: int, visible_tracks: int):
    """Minimal HUD overlay with FPS, stage timings and track counts."""
    if cv2 is None:
        return frame

    render = frame.copy()
    y = 25
    cv2.putText(render, f"FPS: {fps:5.1f}", (15, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (255, 255, 255), 2)
    y += 28
    cv2.putText(
        render,
        f"tracks: {visible_tracks} visible / {active_tracks} active",
        (15, y),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.6,
        (220, 220, 220),
        2,
    )
    y += 22

    for name, ms in list(stages_ms.items())[:4]:
        cv2.putText(render, f"{name}: {ms:5.1f} ms", (15, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (220, 220, 220), 2)
        y += 22

    return render


def draw_tracks(frame: Any, tracks: List[VisibleTrack], trajectories: Optional[Dict[int, List[tuple]]] = None) -> Any:
    if cv2 is None:
        return frame
    render = frame.copy()
    trajectories = trajectories or {}

    for tr in tracks:
        x, y, w, h = tr.box
        x1, y1, x2, y2 = int(round(x)), int(round(y)), int(round(x + w)), int(round(y + h))
        color = LABEL_COLORS.get(tr.label, DEFAULT_COLOR)
        cv2.rectangle(render, (x1, y1), (x2, y2), color, 2)
        label = f"ID {tr.track_id} | {tr.label} {tr.score:.2f}"
        cv2.putText(render, label, (x1, max(12, y1 - 6)), cv2.FONT_HERSHEY_SIMPLEX, 0.55, color, 2)

    for tid, pts in trajectories.items():
        if len(pts) < 2:
            continue
        for i in range(1, len(pts)):
            cv2.line(render, pts[i - 1], pts[i], (255, 200, 0), 2)

    return render
