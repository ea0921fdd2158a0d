"""
Perception subsystem interface
Camera tracking, world mapping, hit testing and anchor rendering are owned
by the platform AR runtime; the sync engine only talks to it through here
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from ..models.anchor import MapSnapshot, SpatialAnchor
from ..models.session import MappingProgress, TrackingQuality


class PerceptionSubsystem(ABC):

    @abstractmethod
    def current_tracking_quality(self) -> TrackingQuality:
        ...

    @abstractmethod
    def current_mapping_progress(self) -> MappingProgress:
        ...

    @abstractmethod
    async def capture_map_snapshot(self) -> MapSnapshot:
        """Current world map without thumbnail; raises MapCaptureError"""

    @abstractmethod
    async def adopt_map_snapshot(self, snapshot: MapSnapshot) -> None:
        """
        Restart tracking against a received or loaded map

        Existing anchors are removed and replaced by the snapshot's.
        Raises if the runtime rejects the snapshot.
        """

    @abstractmethod
    def add_anchor(self, anchor: SpatialAnchor) -> None:
        ...

    @abstractmethod
    def hit_test_at_screen_center(self) -> Optional[np.ndarray]:
        """World transform (4x4) of the surface under the screen centre"""

    def capture_view_image(self) -> Optional[np.ndarray]:
        """Current camera view as an HxWx3 image, used for thumbnails"""
        return None

    def contains_anchor(self, anchor_id: str) -> bool:
        """Whether the runtime currently tracks the given anchor"""
        return False

    def reset(self) -> None:
        """Restart tracking with no map and no anchors"""
