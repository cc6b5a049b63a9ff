import numpy as np
import pytest

from vehicle_tracker.tracking.association import assign, associate, cost_matrix


def test_cost_is_one_minus_iou():
    costs = cost_matrix([(0, 0, 10, 10)], [(0, 0, 10, 10), (50, 50, 10, 10)])
    assert costs[0, 0] == 0.0
    assert costs[0, 1] == 1.0


def test_assignment_is_optimal_not_greedy():
    result = assign(np.array([[0.1, 0.9], [0.9, 0.1]]), max_cost=0.7)
    assert result.matches == [(0, 0), (1, 1)]
    assert result.unmatched_tracks == []
    assert result.unmatched_detections == []


def test_optimal_assignment_beats_greedy_first_pick():
    # Greedy would take (0, 0) at 0.1 and leave (1, 1) at 0.9.
    costs = np.array([[0.1, 0.2], [0.15, 0.9]])
    result = assign(costs, max_cost=1.0)
    assert result.matches == [(0, 1), (1, 0)]


def test_pairs_above_threshold_are_rejected():
    result = assign(np.array([[0.8]]), max_cost=0.7)
    assert result.matches == []
    assert result.unmatched_tracks == [0]
    assert result.unmatched_detections == [0]


def test_pair_at_threshold_is_kept():
    result = assign(np.array([[0.7]]), max_cost=0.7)
    assert result.matches == [(0, 0)]


def test_disjoint_pair_is_rejected_at_loosest_gate():
    result = assign(np.array([[1.0, 0.2]]), max_cost=1.0)
    assert result.matches == [(0, 1)]

    result = associate([(0, 0, 10, 10)], [(500, 500, 10, 10)], max_cost=1.0)
    assert result.matches == []
    assert result.unmatched_tracks == [0]
    assert result.unmatched_detections == [0]


def test_rectangular_matrix_leaves_extras_unmatched():
    tracks = [(0, 0, 10, 10), (100, 0, 10, 10)]
    dets = [(101, 0, 10, 10), (300, 300, 10, 10), (1, 0, 10, 10)]
    result = associate(tracks, dets)
    assert result.matches == [(0, 2), (1, 0)]
    assert result.unmatched_tracks == []
    assert result.unmatched_detections == [1]


def test_no_tracks_means_all_detections_unmatched():
    result = associate([], [(0, 0, 10, 10), (20, 20, 5, 5)])
    assert result.matches == []
    assert result.unmatched_tracks == []
    assert result.unmatched_detections == [0, 1]


def test_no_detections_means_all_tracks_unmatched():
    result = associate([(0, 0, 10, 10)], [])
    assert result.matches == []
    assert result.unmatched_tracks == [0]
    assert result.unmatched_detections == []


def test_invalid_boxes_never_match():
    result = associate([(0, 0, 0, 10)], [(0, 0, 0, 10)])
    assert result.matches == []
    assert result.unmatched_tracks == [0]
    assert result.unmatched_detections == [0]


def test_assign_rejects_non_matrix():
    with pytest.raises(ValueError):
        assign(np.zeros(3))
