"""Orbit camera circling the plant, plus a look-at helper."""

import math

import numpy as np


def look_at(
    cam_pos: np.ndarray,
    target: np.ndarray = None,
    up: np.ndarray = None,
) -> np.ndarray:
    """Compute camera-to-world matrix for a camera looking at a target.

    Args:
        cam_pos: (3,) camera position in world space
        target: (3,) point to look at (default: origin)
        up: (3,) world up vector (default: +Y)

    Returns:
        (4, 4) camera-to-world matrix (OpenGL convention, camera looks down -Z)
    """
    if target is None:
        target = np.array([0.0, 0.0, 0.0])
    if up is None:
        up = np.array([0.0, 1.0, 0.0])

    cam_pos = np.asarray(cam_pos, dtype=np.float64)
    forward = np.asarray(target, dtype=np.float64) - cam_pos
    forward = forward / np.linalg.norm(forward)

    right = np.cross(forward, np.asarray(up, dtype=np.float64))
    norm = np.linalg.norm(right)
    if norm < 1e-6:
        right = np.array([1.0, 0.0, 0.0])
    else:
        right = right / norm
    new_up = np.cross(right, forward)

    c2w = np.eye(4)
    c2w[:3, 0] = right
    c2w[:3, 1] = new_up
    c2w[:3, 2] = -forward
    c2w[:3, 3] = cam_pos
    return c2w


class OrbitCamera:
    """Camera on a sphere around a target point.

    Controls:
        Mouse drag: orbit (azimuth/elevation)
        +/-: dolly in/out
    """

    def __init__(
        self,
        target: np.ndarray = None,
        distance: float = 5.0,
        azimuth: float = 90.0,
        elevation: float = 20.0,
        fov: float = 75.0,
        rotate_speed: float = 0.3,
    ):
        self.target = np.array(target if target is not None else [0.0, 1.2, 0.0], dtype=np.float64)
        self.distance = distance
        self.azimuth = azimuth  # degrees
        self.elevation = elevation  # degrees
        self.fov = fov  # degrees
        self.rotate_speed = rotate_speed

        self.min_elevation = -10.0
        self.max_elevation = 85.0
        self.min_distance = 1.5
        self.max_distance = 15.0

    @property
    def position(self) -> np.ndarray:
        az = math.radians(self.azimuth)
        el = math.radians(self.elevation)
        offset = np.array([
            math.cos(el) * math.cos(az),
            math.sin(el),
            math.cos(el) * math.sin(az),
        ])
        return self.target + self.distance * offset

    def process_mouse(self, dx: float, dy: float):
        """Orbit by a mouse drag of (dx, dy) pixels."""
        self.azimuth = (self.azimuth + dx * self.rotate_speed) % 360.0
        self.elevation += dy * self.rotate_speed
        self.elevation = max(self.min_elevation, min(self.max_elevation, self.elevation))

    def zoom(self, amount: float):
        """Positive moves closer, negative moves away."""
        self.distance -= amount
        self.distance = max(self.min_distance, min(self.max_distance, self.distance))

    def get_c2w_matrix(self) -> np.ndarray:
        return look_at(self.position, self.target)

    def get_view_matrix(self) -> np.ndarray:
        """4x4 world-to-camera matrix."""
        return np.linalg.inv(self.get_c2w_matrix())
