"""
Peer Channel - Adapter over a reliable multi-peer transport
Broadcasts payloads to connected peers and relays inbound messages
and roster changes to the sync engine
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)

ReceiveHandler = Callable[[bytes, str], None]
RosterHandler = Callable[[Set[str]], None]


class PeerTransport(ABC):
    """
    External reliable, per-peer ordered byte transport

    Implementations report inbound data and roster changes to the channel
    passed to attach().
    """

    @property
    @abstractmethod
    def local_peer(self) -> str:
        """Name of this device on the transport"""

    @abstractmethod
    def connected_peers(self) -> Iterable[str]:
        """Peers currently reachable"""

    @abstractmethod
    def send(self, data: bytes, peer: str) -> None:
        """Send to a single peer; raises on failure"""

    def attach(self, channel: "PeerChannel") -> None:
        self.channel = channel


class PeerChannel:
    """
    Broadcast-oriented view of a transport
    Send failures are per peer and never abort the broadcast
    """

    def __init__(self, transport: PeerTransport):
        self.transport = transport
        self._receive_handler: Optional[ReceiveHandler] = None
        self._roster_handlers: List[RosterHandler] = []

        self.stats = {
            'messages_sent': 0,
            'messages_received': 0,
            'send_failures': 0,
            'peers_joined': 0,
            'peers_left': 0
        }

        transport.attach(self)

    @property
    def local_peer(self) -> str:
        return self.transport.local_peer

    def connected_peers(self) -> Set[str]:
        return set(self.transport.connected_peers())

    def on_receive(self, handler: ReceiveHandler) -> None:
        """Register the single inbound message handler"""
        self._receive_handler = handler

    def on_roster_change(self, handler: RosterHandler) -> None:
        self._roster_handlers.append(handler)

    def send_to_all(self, data: bytes) -> List[str]:
        """
        Send a payload to every connected peer

        Returns:
            Peers the payload could not be delivered to
        """
        failed = []
        for peer in sorted(self.connected_peers()):
            try:
                self.transport.send(data, peer)
                self.stats['messages_sent'] += 1
            except Exception as e:
                logger.error(f"Failed to send {len(data)} bytes to peer {peer}: {e}")
                self.stats['send_failures'] += 1
                failed.append(peer)

        return failed

    def deliver(self, data: bytes, peer: str) -> None:
        """Called by the transport once per inbound message"""
        self.stats['messages_received'] += 1

        if self._receive_handler is None:
            logger.warning(f"Dropping {len(data)} bytes from {peer}: no receive handler registered")
            return

        self._receive_handler(data, peer)

    def peer_joined(self, peer: str) -> None:
        self.stats['peers_joined'] += 1
        logger.info(f"Peer {peer} joined")
        self._notify_roster()

    def peer_left(self, peer: str) -> None:
        self.stats['peers_left'] += 1
        logger.info(f"Peer {peer} left")
        self._notify_roster()

    def _notify_roster(self) -> None:
        peers = self.connected_peers()
        for handler in self._roster_handlers:
            try:
                handler(peers)
            except Exception as e:
                logger.error(f"Roster handler failed: {e}")

    def get_metrics(self) -> Dict[str, Any]:
        return {
            'statistics': dict(self.stats),
            'active_state': {
                'local_peer': self.local_peer,
                'connected_peers': sorted(self.connected_peers())
            },
            'timestamp': datetime.utcnow().isoformat()
        }
