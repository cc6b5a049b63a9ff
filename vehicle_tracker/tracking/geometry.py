from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from vehicle_tracker.utils.types import Box


def is_valid_box(box: Sequence[float]) -> bool:
    """A box is usable for overlap only if it is finite and has positive extent."""
    if len(box) != 4:
        return False
    x, y, w, h = (float(v) for v in box)
    if not all(math.isfinite(v) for v in (x, y, w, h)):
        return False
    return w > 0 and h > 0


def xyxy_to_xywh(x1: float, y1: float, x2: float, y2: float) -> Box:
    return (float(x1), float(y1), float(x2 - x1), float(y2 - y1))


def xywh_to_xyxy(box: Sequence[float]) -> tuple:
    x, y, w, h = box
    return (x, y, x + w, y + h)


def iou(a: Sequence[float], b: Sequence[float]) -> float:
    if not (is_valid_box(a) and is_valid_box(b)):
        return 0.0
    ax1, ay1, ax2, ay2 = xywh_to_xyxy(a)
    bx1, by1, bx2, by2 = xywh_to_xyxy(b)

    iw = min(ax2, bx2) - max(ax1, bx1)
    ih = min(ay2, by2) - max(ay1, by1)
    if iw <= 0 or ih <= 0:
        return 0.0
    inter = iw * ih
    union = a[2] * a[3] + b[2] * b[3] - inter
    if union <= 0:
        return 0.0
    return float(min(1.0, inter / union))


def iou_matrix(boxes_a: Sequence[Sequence[float]], boxes_b: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Pairwise IoU between two box lists.

    Returns an (len(boxes_a), len(boxes_b)) float matrix. Invalid boxes get
    zero overlap with everything.
    """
    a = np.asarray(boxes_a, dtype=np.float64).reshape(-1, 4)
    b = np.asarray(boxes_b, dtype=np.float64).reshape(-1, 4)
    if a.shape[0] == 0 or b.shape[0] == 0:
        return np.zeros((a.shape[0], b.shape[0]), dtype=np.float64)

    valid_a = np.isfinite(a).all(axis=1) & (a[:, 2] > 0) & (a[:, 3] > 0)
    valid_b = np.isfinite(b).all(axis=1) & (b[:, 2] > 0) & (b[:, 3] > 0)
    # Zero out invalid rows so the arithmetic below stays finite.
    a = np.where(valid_a[:, None], a, 0.0)
    b = np.where(valid_b[:, None], b, 0.0)

    a = a[:, None, :]  # [M, 1, 4]
    b = b[None, :, :]  # [1, N, 4]

    ix1 = np.maximum(a[..., 0], b[..., 0])
    iy1 = np.maximum(a[..., 1], b[..., 1])
    ix2 = np.minimum(a[..., 0] + a[..., 2], b[..., 0] + b[..., 2])
    iy2 = np.minimum(a[..., 1] + a[..., 3], b[..., 1] + b[..., 3])

    inter = np.maximum(0.0, ix2 - ix1) * np.maximum(0.0, iy2 - iy1)
    union = a[..., 2] * a[..., 3] + b[..., 2] * b[..., 3] - inter

    out = np.zeros_like(inter)
    np.divide(inter, union, out=out, where=union > 0)
    out[~valid_a, :] = 0.0
    out[:, ~valid_b] = 0.0
    return np.clip(out, 0.0, 1.0)
