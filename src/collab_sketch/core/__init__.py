from . import wire_codec
from .events import (
    LoadRequested,
    PeerDataReceived,
    PeersChanged,
    RelocalizationTimedOut,
    ResetRequested,
    SaveRequested,
    SessionFailed,
    SessionInterrupted,
    SessionInterruptionEnded,
    ShareRequested,
    StrokeDrawn,
    TrackingChanged,
)
from .perception import PerceptionSubsystem
from .status_classifier import (
    ControlState,
    SessionStatus,
    StatusKind,
    classify_controls,
    classify_status,
    mapping_status_text,
)
from .stroke_sampler import StrokeSampler
from .sync_engine import SyncEngine, SyncState

__all__ = [
    "wire_codec",
    "PeerDataReceived",
    "PeersChanged",
    "TrackingChanged",
    "StrokeDrawn",
    "ShareRequested",
    "SaveRequested",
    "LoadRequested",
    "ResetRequested",
    "RelocalizationTimedOut",
    "SessionInterrupted",
    "SessionInterruptionEnded",
    "SessionFailed",
    "PerceptionSubsystem",
    "StatusKind",
    "SessionStatus",
    "ControlState",
    "classify_status",
    "classify_controls",
    "mapping_status_text",
    "StrokeSampler",
    "SyncEngine",
    "SyncState",
]
