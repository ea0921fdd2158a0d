"""
In-process peer transport
Every device that joins a hub is connected to every other device;
delivery is reliable and ordered per peer
"""

import logging
from typing import Dict, List, Set

from ..errors import TransportError
from .peer_channel import PeerTransport

logger = logging.getLogger(__name__)


class InMemoryTransport(PeerTransport):
    """Transport endpoint for one device on an InMemoryPeerHub"""

    def __init__(self, hub: "InMemoryPeerHub", name: str):
        self.hub = hub
        self.name = name
        self.channel = None

    @property
    def local_peer(self) -> str:
        return self.name

    def connected_peers(self) -> List[str]:
        return [peer for peer in self.hub.members() if peer != self.name]

    def send(self, data: bytes, peer: str) -> None:
        self.hub.route(self.name, peer, data)


class InMemoryPeerHub:
    """Shared medium connecting in-process transports"""

    def __init__(self):
        self._transports: Dict[str, InMemoryTransport] = {}
        self._unreachable: Set[str] = set()

    def members(self) -> List[str]:
        return list(self._transports)

    def join(self, name: str) -> InMemoryTransport:
        if name in self._transports:
            raise ValueError(f"Peer name {name} already joined")

        transport = InMemoryTransport(self, name)
        self._transports[name] = transport

        for other_name, other in self._transports.items():
            if other_name != name and other.channel is not None:
                other.channel.peer_joined(name)

        logger.debug(f"{name} joined in-memory hub ({len(self._transports)} members)")
        return transport

    def leave(self, name: str) -> None:
        if self._transports.pop(name, None) is None:
            return
        self._unreachable.discard(name)

        for other in self._transports.values():
            if other.channel is not None:
                other.channel.peer_left(name)

    def set_reachable(self, name: str, reachable: bool) -> None:
        """Simulate a peer that stays in the roster but cannot be sent to"""
        if reachable:
            self._unreachable.discard(name)
        else:
            self._unreachable.add(name)

    def route(self, sender: str, recipient: str, data: bytes) -> None:
        target = self._transports.get(recipient)
        if target is None or recipient in self._unreachable:
            raise TransportError(f"Peer {recipient} is not reachable", peer=recipient)
        if target.channel is None:
            raise TransportError(f"Peer {recipient} has no channel attached", peer=recipient)

        target.channel.deliver(bytes(data), sender)
