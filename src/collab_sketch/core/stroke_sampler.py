"""
Stroke sampling for the draw gesture
Turns per-frame camera poses into line segments while sketching
"""

from typing import Optional

import numpy as np

from ..models.anchor import Point3
from .events import StrokeDrawn


class StrokeSampler:
    """
    Tracks a point a fixed distance in front of the camera

    Each rendered frame calls sample(); while the sketch button is held,
    consecutive points are joined into StrokeDrawn segments.
    """

    def __init__(self, distance: float = 0.1):
        if distance <= 0:
            raise ValueError("Stroke distance must be positive")
        self.distance = distance
        self._previous: Optional[Point3] = None

    def point_in_front(self, camera_transform: np.ndarray) -> Point3:
        matrix = np.asarray(camera_transform, dtype=float)
        if matrix.shape != (4, 4):
            raise ValueError("Camera transform must be 4x4 matrix")

        # Camera looks down its negative z axis
        forward = -matrix[:3, 2]
        point = matrix[:3, 3] + forward * self.distance
        return (float(point[0]), float(point[1]), float(point[2]))

    def sample(self, camera_transform: np.ndarray, pressed: bool) -> Optional[StrokeDrawn]:
        current = self.point_in_front(camera_transform)

        segment = None
        if pressed and self._previous is not None:
            segment = StrokeDrawn(source_point=self._previous, destination_point=current)

        self._previous = current
        return segment

    def reset(self) -> None:
        self._previous = None
