"""
Session Signal Models
Tracking and mapping quality as reported by the perception subsystem,
plus the combined signal tuple the status classifier consumes
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class TrackingState(str, Enum):
    """Camera tracking states"""
    NOT_AVAILABLE = "not_available"
    LIMITED = "limited"
    NORMAL = "normal"


class LimitedReason(str, Enum):
    """Why tracking is limited"""
    INITIALIZING = "initializing"
    RELOCALIZING = "relocalizing"
    EXCESSIVE_MOTION = "excessive_motion"
    INSUFFICIENT_FEATURES = "insufficient_features"


class MappingProgress(str, Enum):
    """World mapping progress"""
    NOT_AVAILABLE = "not_available"
    LIMITED = "limited"
    EXTENDING = "extending"
    MAPPED = "mapped"

    @property
    def is_mapped(self) -> bool:
        return self in (MappingProgress.EXTENDING, MappingProgress.MAPPED)


class SessionNotice(str, Enum):
    """Session lifecycle notices from the perception runtime"""
    INTERRUPTED = "interrupted"
    INTERRUPTION_ENDED = "interruption_ended"
    FAILED = "failed"


_DEFAULT_FEEDBACK = {
    (TrackingState.NOT_AVAILABLE, None): "Tracking unavailable.",
    (TrackingState.NORMAL, None): "",
    (TrackingState.LIMITED, LimitedReason.INITIALIZING): "Initializing AR session.",
    (TrackingState.LIMITED, LimitedReason.RELOCALIZING):
        "Resuming session, move to where you were when the session was interrupted.",
    (TrackingState.LIMITED, LimitedReason.EXCESSIVE_MOTION): "Move the device more slowly.",
    (TrackingState.LIMITED, LimitedReason.INSUFFICIENT_FEATURES):
        "Point the device at an area with visible surface detail, or improve lighting conditions.",
    (TrackingState.LIMITED, None): "Tracking limited.",
}


@dataclass(frozen=True)
class TrackingQuality:
    """Tracking state with optional limitation reason and user feedback text"""
    state: TrackingState
    reason: Optional[LimitedReason] = None
    description: Optional[str] = None

    def __post_init__(self):
        if self.reason is not None and self.state != TrackingState.LIMITED:
            raise ValueError("Only limited tracking carries a reason")
        if self.description is None:
            object.__setattr__(self, "description",
                               _DEFAULT_FEEDBACK.get((self.state, self.reason), ""))

    @classmethod
    def normal(cls) -> "TrackingQuality":
        return cls(TrackingState.NORMAL)

    @classmethod
    def limited(cls, reason: Optional[LimitedReason] = None) -> "TrackingQuality":
        return cls(TrackingState.LIMITED, reason)

    @classmethod
    def not_available(cls) -> "TrackingQuality":
        return cls(TrackingState.NOT_AVAILABLE)

    @property
    def is_normal(self) -> bool:
        return self.state == TrackingState.NORMAL

    def is_limited_by(self, *reasons: LimitedReason) -> bool:
        return self.state == TrackingState.LIMITED and self.reason in reasons

    @property
    def label(self) -> str:
        """Short label for the mapping status overlay"""
        if self.reason is not None:
            return f"{self.state.value}({self.reason.value})"
        return self.state.value


@dataclass(frozen=True)
class SessionSignals:
    """Everything the status classifier looks at, captured at one instant"""
    tracking: TrackingQuality
    mapping: MappingProgress
    has_saved_map: bool = False
    relocalizing: bool = False
    peer_names: Tuple[str, ...] = field(default_factory=tuple)
    map_authority: Optional[str] = None
    has_user_drawn_anchor: bool = False
    session_notice: Optional[SessionNotice] = None
    session_error: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "peer_names", tuple(self.peer_names))

    @property
    def peer_count(self) -> int:
        return len(self.peer_names)

    @property
    def map_authority_set(self) -> bool:
        return self.map_authority is not None
