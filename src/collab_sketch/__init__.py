"""
Collaborative Sketch - Shared AR sketching across devices
One device's world map becomes the common reference frame; strokes are
synchronized between peers as spatial anchors
"""

__version__ = "1.0.0"

from .core import (
    PerceptionSubsystem,
    SessionStatus,
    StatusKind,
    StrokeSampler,
    SyncEngine,
    SyncState,
    classify_status,
)
from .models import (
    LimitedReason,
    MapSnapshot,
    MappingProgress,
    SessionSignals,
    SpatialAnchor,
    TrackingQuality,
    TrackingState,
)
from .session import create_session
from .transport import InMemoryPeerHub, PeerChannel, PeerTransport

__all__ = [
    "SpatialAnchor",
    "MapSnapshot",
    "TrackingState",
    "LimitedReason",
    "TrackingQuality",
    "MappingProgress",
    "SessionSignals",
    "PerceptionSubsystem",
    "SyncEngine",
    "SyncState",
    "StatusKind",
    "SessionStatus",
    "classify_status",
    "StrokeSampler",
    "PeerChannel",
    "PeerTransport",
    "InMemoryPeerHub",
    "create_session",
]
