"""Z-up trackball camera controls and mesh-name cycling used by the viewers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np

from .vecmath import angle_axis, quat_multiply, quat_rotate, quat_to_mat3

_PI = 3.1415926
MIN_RADIUS = 1e-1
MAX_RADIUS = 1e6


def _round_half_away(x: float) -> float:
    return math.copysign(math.floor(abs(x) + 0.5), x)


def _wrap_angle(angle: float) -> float:
    turns = angle / (2.0 * _PI)
    turns -= _round_half_away(turns)
    return turns * 2.0 * _PI


@dataclass
class OrbitCamera:
    """Camera orbiting ``target`` at ``radius``; azimuth is ccw of -y, elevation above ground."""

    radius: float = 2.0
    azimuth: float = 0.3
    elevation: float = 0.2
    target: np.ndarray = field(default_factory=lambda: np.zeros(3))
    flip_x: bool = False

    def __post_init__(self) -> None:
        self.target = np.array(self.target, dtype=float)

    def begin_tumble(self) -> None:
        """Start a drag; reverse horizontal motion if the camera is upside-down."""
        self.flip_x = abs(self.elevation) > 0.5 * _PI

    def drag(self, xrel: float, yrel: float, window_size, pan: bool = False,
             camera_rotation=None) -> None:
        """Apply a mouse drag of (xrel, yrel) pixels: pan the target or tumble the view."""
        width, height = (float(v) for v in window_size)
        dx = xrel / width * 2.0
        dx *= height / width
        dy = yrel / height * -2.0

        if pan:
            rotation = self.rotation() if camera_rotation is None else camera_rotation
            frame = quat_to_mat3(rotation)
            self.target = self.target - (
                frame[:, 0] * (dx * self.radius) + frame[:, 1] * (dy * self.radius)
            )
        else:
            self.azimuth -= 3.0 * dx * (-1.0 if self.flip_x else 1.0)
            self.elevation -= 3.0 * dy
            self.azimuth = _wrap_angle(self.azimuth)
            self.elevation = _wrap_angle(self.elevation)

    def dolly(self, wheel_y: float) -> None:
        """Move toward or away from the target by mouse-wheel steps."""
        self.radius *= math.pow(0.5, 0.1 * wheel_y)
        self.radius = min(MAX_RADIUS, max(MIN_RADIUS, self.radius))

    def rotation(self) -> np.ndarray:
        """Camera orientation as a (w, x, y, z) quaternion."""
        return quat_multiply(
            angle_axis(self.azimuth, (0.0, 0.0, 1.0)),
            angle_axis(0.5 * _PI - self.elevation, (1.0, 0.0, 0.0)),
        )

    def position(self) -> np.ndarray:
        """Camera location: ``radius`` along the camera's +z axis from the target."""
        return self.target + self.radius * quat_rotate(self.rotation(), (0.0, 0.0, 1.0))

    def apply(self, transform) -> None:
        """Place a scene transform at this camera's position and orientation."""
        transform.rotation = self.rotation()
        transform.position = self.position()
        transform.scale = np.ones(3)


def select_prev(names: Iterable[str], current: Optional[str]) -> str:
    """Name before ``current`` in sorted order; stays on the first; "" if there are none."""
    ordered = sorted(set(names))
    if not ordered:
        return ""
    if current in ordered:
        index = ordered.index(current)
        return ordered[max(0, index - 1)]
    return ordered[0]


def select_next(names: Iterable[str], current: Optional[str]) -> str:
    """Name after ``current`` in sorted order; stays on the last; "" if there are none."""
    ordered = sorted(set(names))
    if not ordered:
        return ""
    if current in ordered:
        index = ordered.index(current)
        return ordered[min(len(ordered) - 1, index + 1)]
    return ordered[-1]