"""
Sketch Data Models
Spatial anchors and full-state map snapshots shared between devices
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Sequence, Tuple

import numpy as np

Point3 = Tuple[float, float, float]
Transform = Tuple[Tuple[float, float, float, float], ...]

RIGID_TOLERANCE = 1e-3


def make_anchor_id(device_name: str, sequence: int) -> str:
    """Build a stroke anchor id unique across devices with distinct names"""
    return f"stroke-{device_name}-{sequence}"


def _as_transform(value) -> Transform:
    matrix = np.asarray(value, dtype=float)
    if matrix.shape != (4, 4):
        raise ValueError(f"Placement transform must be 4x4, got shape {matrix.shape}")
    if not np.all(np.isfinite(matrix)):
        raise ValueError("Placement transform contains non-finite values")
    if not np.allclose(matrix[3], [0.0, 0.0, 0.0, 1.0], atol=RIGID_TOLERANCE):
        raise ValueError("Placement transform bottom row must be [0, 0, 0, 1]")

    rotation = matrix[:3, :3]
    if not np.allclose(rotation @ rotation.T, np.eye(3), atol=RIGID_TOLERANCE):
        raise ValueError("Placement transform rotation block is not orthonormal")
    if np.linalg.det(rotation) <= 0:
        raise ValueError("Placement transform must preserve handedness")

    return tuple(tuple(float(v) for v in row) for row in matrix)


def _as_point(value) -> Optional[Point3]:
    if value is None:
        return None
    point = np.asarray(value, dtype=float)
    if point.shape != (3,):
        raise ValueError(f"Point must be 3D vector, got shape {point.shape}")
    if not np.all(np.isfinite(point)):
        raise ValueError("Point contains non-finite values")
    return (float(point[0]), float(point[1]), float(point[2]))


@dataclass(frozen=True)
class SpatialAnchor:
    """A single placed point or segment in the shared map frame"""
    id: str
    transform: Transform
    source_point: Optional[Point3] = None
    destination_point: Optional[Point3] = None

    def __post_init__(self):
        """Normalize geometry to plain float tuples and validate it"""
        if not self.id:
            raise ValueError("Anchor id must not be empty")
        object.__setattr__(self, "transform", _as_transform(self.transform))
        object.__setattr__(self, "source_point", _as_point(self.source_point))
        object.__setattr__(self, "destination_point", _as_point(self.destination_point))

    @classmethod
    def from_matrix(cls, anchor_id: str, matrix: np.ndarray,
                    source_point: Optional[Sequence[float]] = None,
                    destination_point: Optional[Sequence[float]] = None) -> "SpatialAnchor":
        return cls(id=anchor_id, transform=matrix,
                   source_point=source_point, destination_point=destination_point)

    @property
    def matrix(self) -> np.ndarray:
        """Placement transform as a 4x4 numpy array"""
        return np.array(self.transform, dtype=float)

    @property
    def position(self) -> np.ndarray:
        return self.matrix[:3, 3]

    @property
    def is_segment(self) -> bool:
        return self.source_point is not None and self.destination_point is not None


@dataclass(frozen=True)
class MapSnapshot:
    """Full-state spatial reference frame, optionally carrying a thumbnail"""
    source_frame: bytes
    anchors: Tuple[SpatialAnchor, ...] = field(default_factory=tuple)
    thumbnail: Optional[bytes] = None

    def __post_init__(self):
        object.__setattr__(self, "anchors", tuple(self.anchors))
        if not isinstance(self.source_frame, (bytes, bytearray)):
            raise ValueError("Snapshot source frame must be bytes")
        object.__setattr__(self, "source_frame", bytes(self.source_frame))

    def with_thumbnail(self, thumbnail: Optional[bytes]) -> "MapSnapshot":
        return replace(self, thumbnail=thumbnail)

    def without_thumbnail(self) -> "MapSnapshot":
        """Copy suitable for handing to the perception subsystem"""
        return replace(self, thumbnail=None)

    @property
    def anchor_ids(self) -> Tuple[str, ...]:
        return tuple(anchor.id for anchor in self.anchors)
