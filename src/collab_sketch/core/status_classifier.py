"""
Status Classifier - One user-facing message per session observation

Rules are evaluated in order and the first match wins; reordering them
changes behavior. Nothing here holds or mutates state.
"""

from dataclasses import dataclass
from enum import Enum

from ..models.session import (
    LimitedReason,
    MappingProgress,
    SessionNotice,
    SessionSignals,
    TrackingQuality,
)


class StatusKind(str, Enum):
    READY_TO_SAVE = "ready_to_save"
    TAP_TO_SKETCH = "tap_to_sketch"
    LOAD_OR_MAP = "load_or_map"
    WAIT_FOR_SHARED_SESSION = "wait_for_shared_session"
    CONNECTED_WITH = "connected_with"
    RELOCALIZE_TO_IMAGE = "relocalize_to_image"
    RECEIVED_MAP = "received_map"
    TRACKING_FEEDBACK = "tracking_feedback"
    SESSION_INTERRUPTED = "session_interrupted"
    SESSION_INTERRUPTION_ENDED = "session_interruption_ended"
    SESSION_FAILED = "session_failed"


@dataclass(frozen=True)
class SessionStatus:
    kind: StatusKind
    message: str
    show_thumbnail: bool = False


@dataclass(frozen=True)
class ControlState:
    save_enabled: bool
    load_enabled: bool


def classify_status(signals: SessionSignals) -> SessionStatus:
    # A pending session notice replaces whatever tracking would say
    if signals.session_notice is not None:
        return _notice_status(signals)

    tracking = signals.tracking
    mapped = signals.mapping.is_mapped

    if tracking.is_normal and mapped and signals.has_user_drawn_anchor:
        return SessionStatus(StatusKind.READY_TO_SAVE,
                             "Tap 'Save Experience' to save the current map.")

    if tracking.is_normal and mapped:
        return SessionStatus(StatusKind.TAP_TO_SKETCH, "Tap Sketch to draw on screen.")

    if tracking.is_normal and signals.has_saved_map and not signals.relocalizing:
        return SessionStatus(StatusKind.LOAD_OR_MAP,
                             "Move around to map the environment, "
                             "or tap 'Load Experience' to load a saved experience.")

    if tracking.is_normal and (
            not signals.has_saved_map
            or (not signals.has_user_drawn_anchor and signals.peer_count == 0)):
        return SessionStatus(StatusKind.WAIT_FOR_SHARED_SESSION,
                             "Move around to map the environment, "
                             "or wait to join a shared session.")

    if tracking.is_normal and signals.peer_count > 0 and not signals.map_authority_set:
        return SessionStatus(StatusKind.CONNECTED_WITH,
                             f"Connected with {','.join(signals.peer_names)}.")

    if tracking.is_limited_by(LimitedReason.RELOCALIZING) and signals.relocalizing:
        return SessionStatus(StatusKind.RELOCALIZE_TO_IMAGE,
                             "Move your device to the location shown in the image.",
                             show_thumbnail=True)

    if (tracking.is_limited_by(LimitedReason.INITIALIZING, LimitedReason.RELOCALIZING)
            and signals.map_authority_set):
        return SessionStatus(StatusKind.RECEIVED_MAP,
                             f"Received map from {signals.map_authority}.")

    return SessionStatus(StatusKind.TRACKING_FEEDBACK, tracking.description or "")


def _notice_status(signals: SessionSignals) -> SessionStatus:
    notice = signals.session_notice
    if notice == SessionNotice.INTERRUPTED:
        return SessionStatus(StatusKind.SESSION_INTERRUPTED, "Session was interrupted")
    if notice == SessionNotice.INTERRUPTION_ENDED:
        return SessionStatus(StatusKind.SESSION_INTERRUPTION_ENDED, "Session interruption ended")
    error = signals.session_error or "unknown error"
    return SessionStatus(StatusKind.SESSION_FAILED, f"Session failed: {error}")


def classify_controls(signals: SessionSignals, last_local_anchor_in_map: bool) -> ControlState:
    """Save needs a mapped world containing the latest local stroke; load needs a saved map"""
    return ControlState(
        save_enabled=signals.mapping.is_mapped and last_local_anchor_in_map,
        load_enabled=signals.has_saved_map,
    )


def mapping_status_text(tracking: TrackingQuality, mapping: MappingProgress) -> str:
    return f"Mapping: {mapping.value}\nTracking: {tracking.label}"
