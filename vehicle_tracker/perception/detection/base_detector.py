from __future__ import annotations

import abc
from typing import List

import numpy as np

from vehicle_tracker.utils.types import Detection


class BaseDetector(abc.ABC):
    @abc.abstractmethod
    def detect(self, frame: np.ndarray, threshold: float) -> List[Detection]:
        """
        Input:
            frame: BGR image (H, W, 3)
            threshold: minimum confidence score
        Output:
            list of Detection with boxes as (x, y, w, h) in pixels
        """
        raise NotImplementedError
