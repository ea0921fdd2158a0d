"""
Sync Engine - Map hand-off and anchor synchronization between peers

Owns the session state (map authority, relocalization phase, tracked
anchor ids). All mutations happen on one asyncio processing context:
events from the transport, the perception runtime and the UI are queued
and handled strictly one at a time.
"""

import asyncio
import concurrent.futures
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from ..errors import AdoptionError, DecodeError, MapCaptureError, PersistenceError
from ..models.anchor import MapSnapshot, SpatialAnchor, make_anchor_id
from ..models.session import SessionNotice, SessionSignals, TrackingQuality
from ..services.snapshot_store import SnapshotStore
from ..transport.peer_channel import PeerChannel
from ..utils.config import Settings, get_settings
from ..utils.metrics import SimpleMetrics
from ..utils.thumbnail import make_thumbnail
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
from .stroke_sampler import StrokeSampler
from .status_classifier import (
    ControlState,
    SessionStatus,
    classify_controls,
    classify_status,
    mapping_status_text,
)

logger = logging.getLogger(__name__)

# Delay before a watchdog timeout that found the queue full is retried
WATCHDOG_RETRY_SECONDS = 0.1


class SyncState(str, Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    AWAITING_RELOCALIZATION = "awaiting_relocalization"
    SYNCED = "synced"


class SyncEngine:
    """
    Peer synchronization for a shared sketch session

    A received map snapshot replaces the local map and makes its sender the
    map authority; until tracking recovers, inbound anchors are dropped.
    """

    def __init__(self, perception: PerceptionSubsystem, channel: PeerChannel,
                 store: Optional[SnapshotStore] = None,
                 settings: Optional[Settings] = None,
                 metrics: Optional[SimpleMetrics] = None):
        self.perception = perception
        self.channel = channel
        self.store = store
        self.settings = settings or get_settings()
        self.metrics = metrics or SimpleMetrics(enabled=self.settings.ENABLE_METRICS)

        # Session state
        self.map_authority: Optional[str] = None
        self.relocalizing = False
        self.anchor_ids: Set[str] = set()
        self.local_anchor_ids: List[str] = []
        self.reference_thumbnail: Optional[bytes] = None
        self.session_notice: Optional[SessionNotice] = None
        self.session_error: Optional[str] = None
        self._sequence = 0

        # Relocalization watchdog
        self._reloc_generation = 0
        self._watchdog: Optional[asyncio.TimerHandle] = None

        # Processing context
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._posted: Set[concurrent.futures.Future] = set()

        # Render loop side of the draw gesture
        self.stroke_sampler = StrokeSampler(self.settings.STROKE_DISTANCE)

        channel.on_receive(self._on_transport_data)
        channel.on_roster_change(self._on_roster_change)

    @property
    def device_name(self) -> str:
        return self.channel.local_peer

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def state(self) -> SyncState:
        if self.relocalizing:
            return SyncState.AWAITING_RELOCALIZATION
        if self.map_authority is not None:
            return SyncState.SYNCED
        if self.channel.connected_peers():
            return SyncState.CONNECTED
        return SyncState.IDLE

    # Lifecycle

    async def start(self) -> None:
        """Start the processing context on the running event loop"""
        if self.is_running:
            return

        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self.settings.EVENT_QUEUE_SIZE)
        self._worker = asyncio.create_task(self._process_events())
        logger.info(f"✅ Sync engine started for {self.device_name}")

    async def stop(self) -> None:
        self._cancel_watchdog()

        if self._worker:
            self._worker.cancel()
            await asyncio.gather(self._worker, return_exceptions=True)
            self._worker = None

        if self._queue is not None:
            while not self._queue.empty():
                _, future = self._queue.get_nowait()
                future.cancel()
            self._queue = None

        logger.info(f"Sync engine for {self.device_name} stopped")

    async def dispatch(self, event) -> Any:
        """Queue an event from within the loop and wait for its result"""
        if not self.is_running:
            raise RuntimeError("Sync engine is not running")

        future = self._loop.create_future()
        await self._queue.put((event, future))
        return await future

    def post_threadsafe(self, event) -> concurrent.futures.Future:
        """Queue an event from any thread"""
        if self._loop is None or not self.is_running:
            raise RuntimeError("Sync engine is not running")
        future = asyncio.run_coroutine_threadsafe(self.dispatch(event), self._loop)
        self._posted.add(future)
        future.add_done_callback(self._posted.discard)
        return future

    async def drain(self) -> None:
        """Wait until every posted and queued event has been handled"""
        while self._posted:
            pending = [asyncio.wrap_future(f) for f in list(self._posted)]
            await asyncio.gather(*pending, return_exceptions=True)
        if self._queue is not None:
            await self._queue.join()

    async def _process_events(self):
        while True:
            event, future = await self._queue.get()
            try:
                result = await self.handle_event(event)
            except asyncio.CancelledError:
                future.cancel()
                raise
            except Exception as e:
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._queue.task_done()

    def _enqueue_nowait(self, event) -> bool:
        future = self._loop.create_future()
        try:
            self._queue.put_nowait((event, future))
        except asyncio.QueueFull:
            future.cancel()
            return False
        return True

    # Callbacks from the transport (any thread)

    def _on_transport_data(self, data: bytes, peer: str) -> None:
        if not self.is_running:
            logger.warning(f"Dropping {len(data)} bytes from {peer}: engine not running")
            return
        self.post_threadsafe(PeerDataReceived(data=bytes(data), peer=peer))

    def _on_roster_change(self, peers: Set[str]) -> None:
        if self.is_running:
            self.post_threadsafe(PeersChanged(peers=frozenset(peers)))

    def sample_frame(self, camera_transform, sketching: bool) -> Optional[concurrent.futures.Future]:
        """Called from the render loop once per frame while the session runs"""
        segment = self.stroke_sampler.sample(camera_transform, sketching)
        if segment is None:
            return None
        return self.post_threadsafe(segment)

    # Event handling

    async def handle_event(self, event) -> Any:
        """Apply one event; callers must not run two of these concurrently"""
        if isinstance(event, PeerDataReceived):
            return await self._handle_peer_data(event.data, event.peer)

        elif isinstance(event, TrackingChanged):
            return self._handle_tracking_changed(event.quality)

        elif isinstance(event, StrokeDrawn):
            return self._handle_stroke(event)

        elif isinstance(event, ShareRequested):
            return await self._share_map()

        elif isinstance(event, SaveRequested):
            return await self._save_map()

        elif isinstance(event, LoadRequested):
            return await self._load_map()

        elif isinstance(event, ResetRequested):
            return self._reset()

        elif isinstance(event, PeersChanged):
            logger.info(f"Peers now {sorted(event.peers)}, state {self.state.value}")
            return None

        elif isinstance(event, RelocalizationTimedOut):
            return self._handle_relocalization_timeout(event.generation)

        elif isinstance(event, (SessionInterrupted, SessionInterruptionEnded, SessionFailed)):
            return self._handle_session_notice(event)

        logger.warning(f"Unknown event type: {type(event).__name__}")
        return None

    async def _handle_peer_data(self, data: bytes, peer: str):
        self.metrics.increment_counter('messages_received')

        try:
            entity = wire_codec.decode(data)
        except DecodeError as e:
            self.metrics.increment_counter('decode_failures')
            logger.warning(f"Can't decode {len(data)} bytes from {peer}: {e}")
            return None

        if isinstance(entity, MapSnapshot):
            self.metrics.increment_counter('snapshots_received')
            try:
                await self._adopt_snapshot(entity, authority=peer)
            except AdoptionError as e:
                logger.error(f"❌ Map from {peer} rejected: {e}")
                return None
            return entity

        return self._apply_remote_anchor(entity, peer)

    def _apply_remote_anchor(self, anchor: SpatialAnchor, peer: str) -> Optional[SpatialAnchor]:
        if self.relocalizing:
            self.metrics.increment_counter('anchors_dropped_relocalizing')
            logger.info(f"Dropping anchor {anchor.id} from {peer}: relocalizing")
            return None

        if anchor.id in self.anchor_ids:
            self.metrics.increment_counter('anchors_duplicate')
            logger.debug(f"Ignoring duplicate anchor {anchor.id} from {peer}")
            return None

        try:
            self.perception.add_anchor(anchor)
        except Exception as e:
            logger.error(f"Failed to add anchor {anchor.id} from {peer}: {e}")
            return None

        self.anchor_ids.add(anchor.id)
        self.metrics.increment_counter('anchors_received')
        return anchor

    async def _adopt_snapshot(self, snapshot: MapSnapshot, authority: Optional[str]) -> None:
        """Hand a snapshot to perception; state changes only if it is accepted"""
        thumbnail = snapshot.thumbnail
        stripped = snapshot.without_thumbnail()

        try:
            await self.perception.adopt_map_snapshot(stripped)
        except AdoptionError:
            raise
        except Exception as e:
            raise AdoptionError(f"Perception rejected map snapshot: {e}",
                                {"authority": authority, "anchors": len(stripped.anchors)}) from e

        if authority is not None:
            self.map_authority = authority
        self.relocalizing = True
        self.reference_thumbnail = thumbnail
        self.anchor_ids = set(stripped.anchor_ids)
        self.local_anchor_ids = []
        self._arm_watchdog()

        if thumbnail is None:
            logger.warning("No thumbnail in map snapshot")
        source = authority or "saved experience"
        logger.info(f"Adopted map from {source} with {len(stripped.anchors)} anchors, relocalizing")

    def _handle_tracking_changed(self, quality: TrackingQuality) -> SyncState:
        # The next tracking update replaces a resumed-session notice
        if self.session_notice == SessionNotice.INTERRUPTION_ENDED:
            self.session_notice = None

        if self.relocalizing and quality.is_normal:
            self._finish_relocalization("tracking recovered")
        return self.state

    def _handle_session_notice(self, event) -> SyncState:
        """Interruption and failure stay on screen until superseded or reset"""
        if isinstance(event, SessionInterrupted):
            self.session_notice = SessionNotice.INTERRUPTED
            logger.warning("Perception session interrupted")
        elif isinstance(event, SessionInterruptionEnded):
            self.session_notice = SessionNotice.INTERRUPTION_ENDED
            logger.info("Perception session interruption ended")
        else:
            self.session_notice = SessionNotice.FAILED
            self.session_error = event.error
            logger.error(f"❌ Perception session failed: {event.error}")
        return self.state

    def _handle_relocalization_timeout(self, generation: int) -> SyncState:
        if generation == self._reloc_generation and self.relocalizing:
            self._finish_relocalization("watchdog timeout")
        return self.state

    def _finish_relocalization(self, reason: str) -> None:
        self._cancel_watchdog()
        self.relocalizing = False
        logger.info(f"Relocalization finished ({reason}), state {self.state.value}")

    def _handle_stroke(self, stroke: StrokeDrawn) -> Optional[SpatialAnchor]:
        hit = self.perception.hit_test_at_screen_center()
        if hit is None:
            return None

        anchor = SpatialAnchor.from_matrix(
            make_anchor_id(self.device_name, self._sequence), hit,
            source_point=stroke.source_point,
            destination_point=stroke.destination_point
        )
        self._sequence += 1

        self.perception.add_anchor(anchor)
        self.anchor_ids.add(anchor.id)
        self.local_anchor_ids.append(anchor.id)

        self._broadcast(wire_codec.encode(anchor))
        self.metrics.increment_counter('anchors_sent')
        return anchor

    async def _share_map(self) -> MapSnapshot:
        snapshot = await self._capture_snapshot()
        failed = self._broadcast(wire_codec.encode(snapshot))
        self.metrics.increment_counter('snapshots_shared')
        logger.info(f"Shared map with {len(snapshot.anchors)} anchors ({len(failed)} peers failed)")
        return snapshot

    async def _save_map(self) -> MapSnapshot:
        if self.store is None:
            raise PersistenceError("No snapshot store configured")

        snapshot = await self._capture_snapshot()
        self.store.save_snapshot_bytes(wire_codec.encode(snapshot))
        self.metrics.increment_counter('snapshots_saved')
        return snapshot

    async def _load_map(self) -> MapSnapshot:
        if self.store is None:
            raise PersistenceError("No snapshot store configured")

        data = self.store.load_snapshot_bytes()
        if data is None:
            raise PersistenceError("No saved map to load")

        try:
            entity = wire_codec.decode(data)
        except DecodeError as e:
            raise PersistenceError(f"Saved map is unreadable: {e}", e.details) from e
        if not isinstance(entity, MapSnapshot):
            raise PersistenceError("Saved data is not a map snapshot")

        await self._adopt_snapshot(entity, authority=None)
        return entity

    def _reset(self) -> SyncState:
        """Unconditional; discards any in-flight relocalization"""
        self._cancel_watchdog()
        self._reloc_generation += 1

        self.map_authority = None
        self.relocalizing = False
        self.anchor_ids.clear()
        self.local_anchor_ids.clear()
        self.reference_thumbnail = None
        self.session_notice = None
        self.session_error = None

        try:
            self.perception.reset()
        except Exception as e:
            logger.error(f"Perception reset failed: {e}")

        logger.info("Session reset")
        return self.state

    # Helpers

    async def _capture_snapshot(self) -> MapSnapshot:
        try:
            snapshot = await self.perception.capture_map_snapshot()
        except MapCaptureError:
            raise
        except Exception as e:
            raise MapCaptureError(f"Can't get current world map: {e}") from e

        return snapshot.with_thumbnail(self._capture_thumbnail())

    def _capture_thumbnail(self) -> Optional[bytes]:
        image = self.perception.capture_view_image()
        if image is None:
            logger.warning("No view image available, sending map without thumbnail")
            return None

        try:
            return make_thumbnail(image, self.settings.THUMBNAIL_MAX_SIZE, self.settings.THUMBNAIL_QUALITY)
        except (ValueError, OSError) as e:
            logger.warning(f"Can't create thumbnail: {e}")
            return None

    def _broadcast(self, payload: bytes) -> List[str]:
        failed = self.channel.send_to_all(payload)
        if failed:
            self.metrics.increment_counter('send_failures', len(failed))
        return failed

    def _arm_watchdog(self) -> None:
        self._cancel_watchdog()
        self._reloc_generation += 1

        timeout = self.settings.RELOCALIZATION_TIMEOUT_SECONDS
        if timeout is None:
            return

        loop = asyncio.get_running_loop()
        self._watchdog = loop.call_later(timeout, self._on_watchdog, self._reloc_generation)

    def _cancel_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None

    def _on_watchdog(self, generation: int) -> None:
        self._watchdog = None
        if not self.is_running:
            self._handle_relocalization_timeout(generation)
            return

        if not self._enqueue_nowait(RelocalizationTimedOut(generation)):
            logger.warning(f"Event queue full, retrying relocalization timeout in {WATCHDOG_RETRY_SECONDS}s")
            self._watchdog = self._loop.call_later(WATCHDOG_RETRY_SECONDS, self._on_watchdog, generation)

    # Observation

    def signals(self) -> SessionSignals:
        return SessionSignals(
            tracking=self.perception.current_tracking_quality(),
            mapping=self.perception.current_mapping_progress(),
            has_saved_map=self.store.has_saved_snapshot() if self.store else False,
            relocalizing=self.relocalizing,
            peer_names=tuple(sorted(self.channel.connected_peers())),
            map_authority=self.map_authority,
            has_user_drawn_anchor=bool(self.anchor_ids),
            session_notice=self.session_notice,
            session_error=self.session_error
        )

    def status(self) -> SessionStatus:
        return classify_status(self.signals())

    def controls(self) -> ControlState:
        last_in_map = bool(self.local_anchor_ids) and self.perception.contains_anchor(self.local_anchor_ids[-1])
        return classify_controls(self.signals(), last_in_map)

    def mapping_status(self) -> str:
        return mapping_status_text(self.perception.current_tracking_quality(),
                                   self.perception.current_mapping_progress())

    async def get_metrics(self) -> Dict[str, Any]:
        self.metrics.set_gauge('tracked_anchors', len(self.anchor_ids))
        self.metrics.set_gauge('connected_peers', len(self.channel.connected_peers()))

        return {
            'statistics': self.metrics.get_metrics(),
            'transport': self.channel.get_metrics(),
            'active_state': {
                'state': self.state.value,
                'map_authority': self.map_authority,
                'relocalizing': self.relocalizing,
                'tracked_anchors': len(self.anchor_ids),
                'is_running': self.is_running
            },
            'timestamp': datetime.utcnow().isoformat()
        }

    async def health_check(self) -> bool:
        return self.is_running
