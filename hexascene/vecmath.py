"""Small vector, quaternion and matrix helpers.

Quaternions are arrays in (w, x, y, z) order. Matrices are numpy arrays in
row/column order, so ``m @ v`` applies ``m`` to ``v``; a 3x4 matrix is an
affine transform whose last column is the translation.
"""

from __future__ import annotations

import math

import numpy as np


def _vec(v) -> np.ndarray:
    return np.asarray(v, dtype=float)


def quat_multiply(a, b) -> np.ndarray:
    """Hamilton product a * b."""
    aw, ax, ay, az = _vec(a)
    bw, bx, by, bz = _vec(b)
    return np.array([
        aw * bw - ax * bx - ay * by - az * bz,
        aw * bx + ax * bw + ay * bz - az * by,
        aw * by - ax * bz + ay * bw + az * bx,
        aw * bz + ax * by - ay * bx + az * bw,
    ])


def quat_inverse(q) -> np.ndarray:
    """Multiplicative inverse of a quaternion."""
    q = _vec(q)
    return q * np.array([1.0, -1.0, -1.0, -1.0]) / float(np.dot(q, q))


def quat_to_mat3(q) -> np.ndarray:
    """Rotation matrix of a quaternion."""
    w, x, y, z = _vec(q)
    return np.array([
        [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)],
        [2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)],
        [2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)],
    ])


def quat_rotate(q, v) -> np.ndarray:
    """Rotate vector v by quaternion q."""
    return quat_to_mat3(q) @ _vec(v)


def angle_axis(angle: float, axis) -> np.ndarray:
    """Quaternion rotating by ``angle`` radians about ``axis``."""
    s = math.sin(angle * 0.5)
    x, y, z = _vec(axis) * s
    return np.array([math.cos(angle * 0.5), x, y, z])


def normalize(v) -> np.ndarray:
    """Scale v to unit length (a zero vector yields NaNs)."""
    v = _vec(v)
    with np.errstate(invalid="ignore", divide="ignore"):
        return v / np.linalg.norm(v)


def pad_mat4(m) -> np.ndarray:
    """Extend a 3x4 affine matrix to 4x4 with a (0, 0, 0, 1) row."""
    return np.vstack([_vec(m), [0.0, 0.0, 0.0, 1.0]])


def infinite_perspective(fovy: float, aspect: float, near: float) -> np.ndarray:
    """Perspective projection with the far plane at infinity."""
    extent = math.tan(fovy / 2.0) * near
    left, right = -extent * aspect, extent * aspect
    bottom, top = -extent, extent
    m = np.zeros((4, 4))
    m[0, 0] = (2.0 * near) / (right - left)
    m[1, 1] = (2.0 * near) / (top - bottom)
    m[2, 2] = -1.0
    m[3, 2] = -1.0
    m[2, 3] = -2.0 * near
    return m