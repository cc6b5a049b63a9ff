from __future__ import annotations

from typing import Dict, List

import numpy as np
import torch
from ultralytics import YOLO

from vehicle_tracker.perception.detection.base_detector import BaseDetector
from vehicle_tracker.tracking.geometry import xyxy_to_xywh
from vehicle_tracker.utils.types import Detection


class YOLODetector(BaseDetector):
    """
    YOLOv8 wrapper with MPS/CUDA acceleration where available.
    Emits every COCO class; the tracker decides which labels it follows.
    """

    def __init__(self, model_name: str = "yolov8n.pt", device: str | None = None):
        if device is None:
            if torch.cuda.is_available():
                device = "cuda"
            elif torch.backends.mps.is_available():
                device = "mps"
            else:
                device = "cpu"
        self.device = device
        self.model = YOLO(model_name)
        self.model.to(self.device)
        self.class_names: Dict[int, str] = dict(self.model.names)

    def detect(self, frame: np.ndarray, threshold: float = 0.5) -> List[Detection]:
        results = self.model(
            frame,
            device=self.device,
            conf=threshold,
            verbose=False,
        )[0]

        detections: List[Detection] = []

        if results.boxes is None:
            return detections

        for box in results.boxes:
            cls_id = int(box.cls.item())
            x1, y1, x2, y2 = box.xyxy[0].tolist()
            detections.append(
                Detection(
                    box=xyxy_to_xywh(x1, y1, x2, y2),
                    label=self.class_names.get(cls_id, str(cls_id)),
                    score=float(box.conf.item()),
                )
            )

        return detections
