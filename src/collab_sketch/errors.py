"""
Collaborative Sketch Error Hierarchy
Recoverable error types raised across codec, engine and storage layers
"""

from typing import Any, Dict, Optional


class CollabSketchError(Exception):
    """Base error for all collaborative sketch exceptions"""

    code = "COLLAB_SKETCH_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Wire codec errors
class DecodeError(CollabSketchError):
    """Inbound payload could not be decoded"""

    code = "DECODE_ERROR"


class MalformedPayloadError(DecodeError):
    """Payload is empty, truncated or its body is corrupt"""

    code = "MALFORMED_PAYLOAD"


class UnknownKindError(DecodeError):
    """Payload carries a kind tag this codec does not know"""

    code = "UNKNOWN_KIND"

    def __init__(self, message: str, tag: Optional[int] = None):
        super().__init__(message, {"tag": tag})
        self.tag = tag


# Perception errors
class AdoptionError(CollabSketchError):
    """Perception subsystem rejected a map snapshot"""

    code = "ADOPTION_FAILED"


class MapCaptureError(CollabSketchError):
    """Perception subsystem could not produce the current map"""

    code = "MAP_CAPTURE_FAILED"


# Transport errors
class TransportError(CollabSketchError):
    """Sending to a single peer failed"""

    code = "TRANSPORT_ERROR"

    def __init__(self, message: str, peer: Optional[str] = None):
        super().__init__(message, {"peer": peer})
        self.peer = peer


# Storage errors
class PersistenceError(CollabSketchError):
    """Saving or loading a persisted map snapshot failed"""

    code = "PERSISTENCE_ERROR"
