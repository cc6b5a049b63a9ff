from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Generator, Optional, Tuple

try:
    import cv2
except ImportError:  # pragma: no cover
    cv2 = None

from vehicle_tracker.inputs.base_input import BaseInput
from vehicle_tracker.utils.logger import get_logger
from vehicle_tracker.utils.types import FramePacket


@dataclass
class VideoMeta:
    fps: float
    width: int
    height: int
    frame_count: int


class VideoInput(BaseInput):
    """
    Frame source over a video file.

    The capture is opened by start() and released by stop(); use it as a
    context manager so the capture is released even when tracking fails:

        with VideoInput("drive.mp4") as vin:
            for idx, packet in vin.frames():
                ...
    """

    def __init__(self, path: str | Path, frame_rate: Optional[float] = None):
        self.path = Path(path)
        self.frame_rate = frame_rate
        self.logger = get_logger(__name__)
        self.cap = None
        self.meta: Optional[VideoMeta] = None

    def __enter__(self) -> "VideoInput":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def fps(self) -> float:
        return self.meta.fps if self.meta else (self.frame_rate or 30.0)

    def start(self) -> None:
        if self.cap is not None:
            return
        if not self.path.exists():
            raise FileNotFoundError(f"Video not found: {self.path}")
        if cv2 is None:
            raise ImportError("opencv-python is required for VideoInput")

        cap = cv2.VideoCapture(str(self.path))
        if not cap.isOpened():
            cap.release()
            raise RuntimeError(f"Could not open video: {self.path}")

        self.cap = cap
        self.meta = VideoMeta(
            fps=float(cap.get(cv2.CAP_PROP_FPS) or (self.frame_rate or 30.0)),
            width=int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
            height=int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
            frame_count=int(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0),
        )
        self.logger.info(
            "Video opened: %s fps=%.2f size=%dx%d frames=%d",
            self.path,
            self.meta.fps,
            self.meta.width,
            self.meta.height,
            self.meta.frame_count,
        )

    def frames(self) -> Generator[Tuple[int, FramePacket], None, None]:
        """Yields (1-based frame index, packet) in decode order."""
        if self.cap is None:
            raise RuntimeError("VideoInput not started; call start() or use it as a context manager")
        idx = 0
        while self.cap is not None:
            ok, frame = self.cap.read()
            if not ok:
                break
            idx += 1
            yield idx, FramePacket(frame=frame, timestamp=idx / self.fps)

    def stop(self) -> None:
        if self.cap is None:
            return
        self.cap.release()
        self.cap = None
        self.logger.info("Closed video %s", self.path)
