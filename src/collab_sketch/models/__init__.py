from .anchor import MapSnapshot, SpatialAnchor, make_anchor_id
from .session import (
    LimitedReason,
    MappingProgress,
    SessionNotice,
    SessionSignals,
    TrackingQuality,
    TrackingState,
)

__all__ = [
    "SpatialAnchor",
    "MapSnapshot",
    "make_anchor_id",
    "TrackingState",
    "LimitedReason",
    "TrackingQuality",
    "MappingProgress",
    "SessionNotice",
    "SessionSignals",
]
