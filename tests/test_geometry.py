import math

import numpy as np

from vehicle_tracker.tracking.geometry import iou, iou_matrix, is_valid_box, xyxy_to_xywh


def test_identical_boxes_have_full_overlap():
    box = (10.0, 20.0, 30.0, 40.0)
    assert iou(box, box) == 1.0


def test_disjoint_boxes_have_zero_overlap():
    assert iou((0, 0, 10, 10), (50, 50, 10, 10)) == 0.0
    # Touching edges share no area.
    assert iou((0, 0, 10, 10), (10, 0, 10, 10)) == 0.0


def test_partial_overlap():
    # 10x10 boxes offset by 5 in x: inter 50, union 150.
    assert math.isclose(iou((0, 0, 10, 10), (5, 0, 10, 10)), 50 / 150)


def test_invalid_geometry_yields_zero_not_nan():
    good = (0, 0, 10, 10)
    for bad in [(0, 0, 0, 10), (0, 0, 10, -5), (float("nan"), 0, 10, 10), (0, 0, float("inf"), 10)]:
        assert not is_valid_box(bad)
        assert iou(good, bad) == 0.0
        assert iou(bad, good) == 0.0


def test_iou_matrix_shape_and_values():
    tracks = [(0, 0, 10, 10), (100, 100, 10, 10)]
    dets = [(0, 0, 10, 10), (5, 0, 10, 10), (200, 200, 10, 10)]
    m = iou_matrix(tracks, dets)
    assert m.shape == (2, 3)
    assert m[0, 0] == 1.0
    assert math.isclose(m[0, 1], 50 / 150)
    assert m[1].sum() == 0.0


def test_iou_matrix_invalid_rows_are_finite_zero():
    m = iou_matrix([(0, 0, 10, 10), (float("nan"), 0, 10, 10)], [(0, 0, 10, 10), (0, 0, 0, 0)])
    assert np.isfinite(m).all()
    assert m[0, 0] == 1.0
    assert m[1, 0] == 0.0
    assert m[0, 1] == 0.0


def test_iou_matrix_empty_inputs():
    assert iou_matrix([], [(0, 0, 1, 1)]).shape == (0, 1)
    assert iou_matrix([(0, 0, 1, 1)], []).shape == (1, 0)


def test_xyxy_to_xywh():
    assert xyxy_to_xywh(10, 20, 40, 60) == (10.0, 20.0, 30.0, 40.0)
