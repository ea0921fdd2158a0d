"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from collab_sketch.core.perception import PerceptionSubsystem
from collab_sketch.core.sync_engine import SyncEngine
from collab_sketch.errors import MapCaptureError
from collab_sketch.models import MapSnapshot, MappingProgress, SpatialAnchor, TrackingQuality
from collab_sketch.services import FileSnapshotStore
from collab_sketch.transport import InMemoryPeerHub, PeerChannel
from collab_sketch.utils.config import Settings


def translation(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> np.ndarray:
    matrix = np.eye(4)
    matrix[:3, 3] = [x, y, z]
    return matrix


def rotation_z(angle: float) -> np.ndarray:
    c, s = np.cos(angle), np.sin(angle)
    matrix = np.eye(4)
    matrix[:2, :2] = [[c, -s], [s, c]]
    return matrix


def make_anchor(anchor_id: str = "stroke-bob-0", x: float = 0.5) -> SpatialAnchor:
    return SpatialAnchor.from_matrix(anchor_id, translation(x, 0.0, -1.0),
                                     source_point=(0.0, 0.0, -0.1),
                                     destination_point=(0.01, 0.0, -0.1))


class FakePerception(PerceptionSubsystem):
    """Scriptable stand-in for the AR runtime"""

    def __init__(self):
        self.tracking = TrackingQuality.normal()
        self.mapping = MappingProgress.MAPPED
        self.source_frame = b"world-map-state"
        self.anchors: List[SpatialAnchor] = []
        self.added: List[SpatialAnchor] = []
        self.adopted: List[MapSnapshot] = []
        self.hit: Optional[np.ndarray] = translation(0.0, 0.0, -1.0)
        self.view_image: Optional[np.ndarray] = np.full((48, 64, 3), 128, dtype=np.uint8)
        self.reject_adoption = False
        self.capture_fails = False
        self.reset_count = 0
        self.on_add: Optional[Callable[[SpatialAnchor], None]] = None

    def current_tracking_quality(self) -> TrackingQuality:
        return self.tracking

    def current_mapping_progress(self) -> MappingProgress:
        return self.mapping

    async def capture_map_snapshot(self) -> MapSnapshot:
        if self.capture_fails:
            raise MapCaptureError("world map not available")
        return MapSnapshot(source_frame=self.source_frame, anchors=tuple(self.anchors))

    async def adopt_map_snapshot(self, snapshot: MapSnapshot) -> None:
        if self.reject_adoption:
            raise RuntimeError("invalid world map")
        self.adopted.append(snapshot)
        self.anchors = list(snapshot.anchors)

    def add_anchor(self, anchor: SpatialAnchor) -> None:
        if self.on_add is not None:
            self.on_add(anchor)
        self.added.append(anchor)
        self.anchors.append(anchor)

    def hit_test_at_screen_center(self) -> Optional[np.ndarray]:
        return self.hit

    def capture_view_image(self) -> Optional[np.ndarray]:
        return self.view_image

    def contains_anchor(self, anchor_id: str) -> bool:
        return any(anchor.id == anchor_id for anchor in self.anchors)

    def reset(self) -> None:
        self.reset_count += 1
        self.anchors = []


@pytest.fixture
def settings(tmp_path):
    return Settings(DATA_DIR=str(tmp_path), _env_file=None)


@pytest.fixture
def hub():
    return InMemoryPeerHub()


@pytest.fixture
def perception():
    return FakePerception()


@pytest.fixture
def store(tmp_path):
    return FileSnapshotStore(tmp_path / "mymap.arexperience")


@pytest.fixture
def make_engine(hub, settings, tmp_path):
    """Build engines for named devices sharing one hub"""

    def _make(name: str, perception: Optional[FakePerception] = None, with_store: bool = True):
        perception = perception or FakePerception()
        store = FileSnapshotStore(tmp_path / name / "mymap.arexperience") if with_store else None
        return SyncEngine(perception, PeerChannel(hub.join(name)), store=store, settings=settings)

    return _make
