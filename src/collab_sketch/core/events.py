"""
Sync engine events
Everything that mutates engine state arrives as one of these, whether it
originates from the transport, the perception runtime or the UI
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from ..models.anchor import Point3
from ..models.session import TrackingQuality


@dataclass(frozen=True)
class PeerDataReceived:
    data: bytes
    peer: str


@dataclass(frozen=True)
class PeersChanged:
    peers: FrozenSet[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class TrackingChanged:
    quality: TrackingQuality


@dataclass(frozen=True)
class StrokeDrawn:
    """Draw gesture sampled a segment; placement comes from the hit test"""
    source_point: Optional[Point3] = None
    destination_point: Optional[Point3] = None


@dataclass(frozen=True)
class ShareRequested:
    pass


@dataclass(frozen=True)
class SaveRequested:
    pass


@dataclass(frozen=True)
class LoadRequested:
    pass


@dataclass(frozen=True)
class ResetRequested:
    pass


@dataclass(frozen=True)
class RelocalizationTimedOut:
    generation: int


@dataclass(frozen=True)
class SessionInterrupted:
    pass


@dataclass(frozen=True)
class SessionInterruptionEnded:
    pass


@dataclass(frozen=True)
class SessionFailed:
    """The perception runtime stopped with an error"""
    error: str
