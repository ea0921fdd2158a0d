"""
Session assembly
Wires transport, storage, logging and metrics around a sync engine
"""

import logging
from typing import Optional

from .core.perception import PerceptionSubsystem
from .core.sync_engine import SyncEngine
from .services.snapshot_store import FileSnapshotStore, SnapshotStore
from .transport.peer_channel import PeerChannel, PeerTransport
from .utils.config import Settings, get_settings
from .utils.logging_config import setup_logging
from .utils.metrics import setup_metrics

logger = logging.getLogger(__name__)


def create_session(perception: PerceptionSubsystem, transport: PeerTransport,
                   store: Optional[SnapshotStore] = None,
                   settings: Optional[Settings] = None,
                   configure_logging: bool = True) -> SyncEngine:
    """
    Build a sync engine for one device

    The engine still has to be started with ``await engine.start()`` on the
    event loop that will own it.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)

    channel = PeerChannel(transport)
    if store is None:
        store = FileSnapshotStore(settings.snapshot_path)

    engine = SyncEngine(
        perception=perception,
        channel=channel,
        store=store,
        settings=settings,
        metrics=setup_metrics(settings.ENABLE_METRICS)
    )

    logger.info(f"Session created for {channel.local_peer}, saved map at "
                f"{getattr(store, 'path', type(store).__name__)}")
    return engine
