"""
Pinhole look-at camera for projecting world points to pixels.
"""

import math

import numpy as np

NEAR_PLANE = 0.1


class Camera:
    """Perspective camera with a vertical field of view."""

    def __init__(
        self,
        position=(0.0, 5.0, 15.0),
        target=(0.0, 0.0, 0.0),
        fov_degrees: float = 75.0,
        width: int = 1920,
        height: int = 1080,
    ):
        self.position = np.asarray(position, dtype=np.float64)
        self.width = width
        self.height = height
        self.focal = (height / 2) / math.tan(math.radians(fov_degrees) / 2)

        forward = np.asarray(target, dtype=np.float64) - self.position
        forward /= np.linalg.norm(forward)
        right = np.cross(forward, np.array([0.0, 1.0, 0.0]))
        right /= np.linalg.norm(right)
        up = np.cross(right, forward)
        # Rows: right, up, forward
        self.basis = np.stack([right, up, forward])

    def project(self, points: np.ndarray):
        """
        Project world points to pixel coordinates.

        Args:
            points: (N, 3) world-space array.

        Returns:
            Tuple of (N, 2) float pixel coordinates and an (N,) bool mask of
            points in front of the near plane. Coordinates of masked-out
            points are meaningless.
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        cam = (pts - self.position) @ self.basis.T
        depth = cam[:, 2]
        visible = depth > NEAR_PLANE
        safe = np.where(visible, depth, 1.0)

        xy = np.empty((len(pts), 2), dtype=np.float64)
        xy[:, 0] = self.width / 2 + cam[:, 0] * self.focal / safe
        xy[:, 1] = self.height / 2 - cam[:, 1] * self.focal / safe
        return xy, visible
