from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np
from scipy.optimize import linear_sum_assignment

from vehicle_tracker.tracking.geometry import iou_matrix

DEFAULT_MAX_ASSIGNMENT_COST = 0.7
# Cost of a pair with no overlap (disjoint or invalid boxes); never assignable.
NO_OVERLAP_COST = 1.0


@dataclass
class AssociationResult:
    matches: List[Tuple[int, int]] = field(default_factory=list)  # (track_idx, detection_idx)
    unmatched_tracks: List[int] = field(default_factory=list)
    unmatched_detections: List[int] = field(default_factory=list)


def cost_matrix(track_boxes: Sequence[Sequence[float]], detection_boxes: Sequence[Sequence[float]]) -> np.ndarray:
    """cost = 1 - IoU; 0 for perfect overlap, 1 for disjoint or invalid boxes."""
    return 1.0 - iou_matrix(track_boxes, detection_boxes)


def assign(costs: np.ndarray, max_cost: float = DEFAULT_MAX_ASSIGNMENT_COST) -> AssociationResult:
    """
    Optimal (Hungarian / Jonker-Volgenant) assignment over the full cost
    matrix, then gating: pairs costing more than `max_cost`, or pairs with no
    overlap at all, are split back into the unmatched sets.
    """
    costs = np.asarray(costs, dtype=np.float64)
    if costs.ndim != 2:
        raise ValueError(f"Cost matrix must be 2-D, got shape {costs.shape}")
    n_tracks, n_dets = costs.shape

    if n_tracks == 0 or n_dets == 0:
        return AssociationResult(
            unmatched_tracks=list(range(n_tracks)),
            unmatched_detections=list(range(n_dets)),
        )

    rows, cols = linear_sum_assignment(costs)

    matches: List[Tuple[int, int]] = []
    unmatched_tracks = set(range(n_tracks))
    unmatched_dets = set(range(n_dets))
    for r, c in zip(rows.tolist(), cols.tolist()):
        if costs[r, c] > max_cost or costs[r, c] >= NO_OVERLAP_COST:
            continue
        matches.append((r, c))
        unmatched_tracks.discard(r)
        unmatched_dets.discard(c)

    return AssociationResult(
        matches=sorted(matches),
        unmatched_tracks=sorted(unmatched_tracks),
        unmatched_detections=sorted(unmatched_dets),
    )


def associate(
    track_boxes: Sequence[Sequence[float]],
    detection_boxes: Sequence[Sequence[float]],
    max_cost: float = DEFAULT_MAX_ASSIGNMENT_COST,
) -> AssociationResult:
    if len(track_boxes) == 0:
        return AssociationResult(unmatched_detections=list(range(len(detection_boxes))))
    if len(detection_boxes) == 0:
        return AssociationResult(unmatched_tracks=list(range(len(track_boxes))))
    return assign(cost_matrix(track_boxes, detection_boxes), max_cost=max_cost)
