"""
Wire Codec - Self-describing peer payloads
Encodes spatial anchors and map snapshots as [1-byte kind tag][JSON body]
"""

import base64
import binascii
from enum import IntEnum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import MalformedPayloadError, UnknownKindError
from ..models.anchor import MapSnapshot, SpatialAnchor


Entity = Union[SpatialAnchor, MapSnapshot]

# Shorter than the smallest valid tagged body
MIN_PAYLOAD_LENGTH = 8


class PayloadKind(IntEnum):
    """Discriminant tag preceding every payload body"""
    SPATIAL_ANCHOR = 0x01
    MAP_SNAPSHOT = 0x02


class AnchorBody(BaseModel):
    """Serialized spatial anchor"""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    transform: List[List[float]]
    source_point: Optional[List[float]] = None
    destination_point: Optional[List[float]] = None

    @field_validator("transform")
    @classmethod
    def validate_transform_shape(cls, v):
        if len(v) != 4 or any(len(row) != 4 for row in v):
            raise ValueError("Transform must be a 4x4 matrix")
        return v

    @field_validator("source_point", "destination_point")
    @classmethod
    def validate_point(cls, v):
        if v is not None and len(v) != 3:
            raise ValueError("Point must have exactly 3 components")
        return v

    @classmethod
    def from_anchor(cls, anchor: SpatialAnchor) -> "AnchorBody":
        return cls(
            id=anchor.id,
            transform=[list(row) for row in anchor.transform],
            source_point=list(anchor.source_point) if anchor.source_point is not None else None,
            destination_point=list(anchor.destination_point) if anchor.destination_point is not None else None,
        )

    def to_anchor(self) -> SpatialAnchor:
        return SpatialAnchor(
            id=self.id,
            transform=self.transform,
            source_point=self.source_point,
            destination_point=self.destination_point,
        )


class SnapshotBody(BaseModel):
    """Serialized map snapshot; binary fields travel as base64 text"""
    model_config = ConfigDict(extra="forbid")

    source_frame: str
    anchors: List[AnchorBody] = Field(default_factory=list)
    thumbnail: Optional[str] = None

    @classmethod
    def from_snapshot(cls, snapshot: MapSnapshot) -> "SnapshotBody":
        return cls(
            source_frame=_b64encode(snapshot.source_frame),
            anchors=[AnchorBody.from_anchor(anchor) for anchor in snapshot.anchors],
            thumbnail=_b64encode(snapshot.thumbnail) if snapshot.thumbnail is not None else None,
        )

    def to_snapshot(self) -> MapSnapshot:
        return MapSnapshot(
            source_frame=_b64decode(self.source_frame),
            anchors=tuple(body.to_anchor() for body in self.anchors),
            thumbnail=_b64decode(self.thumbnail) if self.thumbnail is not None else None,
        )


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(text: str) -> bytes:
    return base64.b64decode(text.encode("ascii"), validate=True)


def encode(entity: Entity) -> bytes:
    """Encode an anchor or snapshot; identical entities give identical bytes"""
    if isinstance(entity, SpatialAnchor):
        kind = PayloadKind.SPATIAL_ANCHOR
        body = AnchorBody.from_anchor(entity)
    elif isinstance(entity, MapSnapshot):
        kind = PayloadKind.MAP_SNAPSHOT
        body = SnapshotBody.from_snapshot(entity)
    else:
        raise TypeError(f"Cannot encode {type(entity).__name__}")

    return bytes([kind]) + body.model_dump_json().encode("utf-8")


def peek_kind(payload: bytes) -> PayloadKind:
    """Read the kind tag without decoding the body"""
    if not payload:
        raise MalformedPayloadError("Empty payload", {"length": 0})
    try:
        return PayloadKind(payload[0])
    except ValueError:
        raise UnknownKindError(f"Unknown payload kind 0x{payload[0]:02x}", tag=payload[0])


def decode(payload: bytes) -> Entity:
    """
    Decode a payload produced by encode()

    Raises:
        UnknownKindError: the tag is not a known payload kind
        MalformedPayloadError: the payload is truncated or its body is corrupt
    """
    if len(payload) < MIN_PAYLOAD_LENGTH:
        raise MalformedPayloadError("Truncated payload", {"length": len(payload)})

    kind = peek_kind(payload)
    body = bytes(payload[1:])

    try:
        if kind == PayloadKind.SPATIAL_ANCHOR:
            return AnchorBody.model_validate_json(body).to_anchor()
        return SnapshotBody.model_validate_json(body).to_snapshot()
    except ValidationError as e:
        raise MalformedPayloadError(
            f"Invalid {kind.name.lower()} body",
            {"kind": kind.name, "errors": e.error_count()},
        ) from e
    except (ValueError, binascii.Error) as e:
        raise MalformedPayloadError(
            f"Corrupt {kind.name.lower()} body: {e}",
            {"kind": kind.name},
        ) from e
