from .memory import InMemoryPeerHub, InMemoryTransport
from .peer_channel import PeerChannel, PeerTransport

__all__ = [
    "PeerChannel",
    "PeerTransport",
    "InMemoryPeerHub",
    "InMemoryTransport",
]
