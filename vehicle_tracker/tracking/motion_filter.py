from __future__ import annotations

import abc
from typing import Sequence, Tuple

import numpy as np
from filterpy.kalman import KalmanFilter

from vehicle_tracker.utils.types import Box

DEFAULT_MOTION_NOISE: Tuple[float, float] = (100.0, 25.0)
DEFAULT_MEASUREMENT_NOISE: float = 100.0
DEFAULT_INITIAL_ESTIMATE_ERROR: Tuple[float, float] = (200.0, 50.0)


class BaseMotionFilter(abc.ABC):
    """Per-track recursive box estimator."""

    @property
    @abc.abstractmethod
    def box(self) -> Box:
        ...

    @abc.abstractmethod
    def predict(self) -> Box:
        """Advance the state one frame and return the predicted box."""
        raise NotImplementedError

    @abc.abstractmethod
    def correct(self, box: Box) -> None:
        """Fuse an observed box into the state."""
        raise NotImplementedError


def _pair(values: Sequence[float], name: str) -> Tuple[float, float]:
    if len(values) != 2:
        raise ValueError(f"{name} must be [position, velocity], got {values!r}")
    pos, vel = float(values[0]), float(values[1])
    if pos < 0 or vel < 0:
        raise ValueError(f"{name} must be non-negative, got {values!r}")
    return pos, vel


class KalmanBoxFilter(BaseMotionFilter):
    """
    Constant-velocity Kalman filter over a box (x, y, w, h).

    State vector: [x, vx, y, vy, w, vw, h, vh]
    Measurement:  [x, y, w, h]

    Each box coordinate is an independent position/velocity pair, so the
    noise parameters are given once per pair as [position, velocity].
    """

    dim_x = 8
    dim_z = 4

    def __init__(
        self,
        initial_box: Box,
        motion_noise: Sequence[float] = DEFAULT_MOTION_NOISE,
        measurement_noise: float = DEFAULT_MEASUREMENT_NOISE,
        initial_estimate_error: Sequence[float] = DEFAULT_INITIAL_ESTIMATE_ERROR,
    ):
        q_pos, q_vel = _pair(motion_noise, "motion_noise")
        p_pos, p_vel = _pair(initial_estimate_error, "initial_estimate_error")
        if measurement_noise <= 0:
            raise ValueError(f"measurement_noise must be positive, got {measurement_noise}")

        kf = KalmanFilter(dim_x=self.dim_x, dim_z=self.dim_z)

        block = np.array([[1.0, 1.0], [0.0, 1.0]])
        kf.F = np.kron(np.eye(self.dim_z), block)

        kf.H = np.zeros((self.dim_z, self.dim_x))
        for i in range(self.dim_z):
            kf.H[i, 2 * i] = 1.0

        kf.P = np.diag([p_pos, p_vel] * self.dim_z)
        kf.Q = np.diag([q_pos, q_vel] * self.dim_z)
        kf.R = np.eye(self.dim_z) * float(measurement_noise)

        x = np.zeros((self.dim_x, 1))
        x[0::2, 0] = np.asarray(initial_box, dtype=np.float64)
        kf.x = x

        self.kf = kf

    @classmethod
    def create(
        cls,
        initial_box: Box,
        motion_noise: Sequence[float] = DEFAULT_MOTION_NOISE,
        measurement_noise: float = DEFAULT_MEASUREMENT_NOISE,
        initial_estimate_error: Sequence[float] = DEFAULT_INITIAL_ESTIMATE_ERROR,
    ) -> "KalmanBoxFilter":
        return cls(initial_box, motion_noise, measurement_noise, initial_estimate_error)

    @property
    def box(self) -> Box:
        x, y, w, h = self.kf.x[0::2, 0].tolist()
        return (x, y, w, h)

    @property
    def velocity(self) -> Tuple[float, float]:
        return float(self.kf.x[1, 0]), float(self.kf.x[3, 0])

    def predict(self) -> Box:
        self.kf.predict()
        return self.box

    def correct(self, box: Box) -> None:
        z = np.asarray(box, dtype=np.float64).reshape(self.dim_z, 1)
        self.kf.update(z)
