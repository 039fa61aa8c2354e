"""In-process change feed: services publish row changes, websocket subscribers receive them per room."""
import asyncio
import logging
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional

from app.config import settings
from app.database.supabase_client import utcnow_iso

logger = logging.getLogger(__name__)

EVENTS = ("INSERT", "UPDATE", "DELETE")


def build_change_event(
    room_id: str,
    table: str,
    event: str,
    new: Optional[Dict[str, Any]] = None,
    old: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Payload shaped like a Supabase postgres_changes message."""
    if event not in EVENTS:
        raise ValueError(f"Unknown change event: {event}")
    return {
        "event": event,
        "schema": "public",
        "table": table,
        "room_id": room_id,
        "new": new or {},
        "old": old or {},
        "commit_timestamp": utcnow_iso(),
    }


@dataclass
class Subscription:
    room_id: str
    tables: Optional[FrozenSet[str]]
    queue: asyncio.Queue
    loop: asyncio.AbstractEventLoop
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    dropped: int = 0

    def wants(self, table: str) -> bool:
        return self.tables is None or table in self.tables

    def deliver(self, payload: Dict[str, Any]) -> None:
        """Runs on the subscriber's loop. Drops the oldest event when the queue is full."""
        if self.queue.full():
            try:
                self.queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            self.dropped += 1
            logger.warning(f"Realtime subscriber {self.id} on room {self.room_id} is slow; dropped {self.dropped} event(s)")
        self.queue.put_nowait(payload)

    async def get(self) -> Dict[str, Any]:
        return await self.queue.get()


class RealtimeHub:
    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._lock = threading.Lock()
        self._rooms: Dict[str, Dict[str, Subscription]] = {}

    def subscribe(self, room_id: str, tables: Optional[set] = None) -> Subscription:
        """Must be called from the event loop that will consume the subscription."""
        sub = Subscription(
            room_id=room_id,
            tables=frozenset(tables) if tables else None,
            queue=asyncio.Queue(maxsize=self.queue_size),
            loop=asyncio.get_running_loop(),
        )
        with self._lock:
            self._rooms.setdefault(room_id, {})[sub.id] = sub
        logger.debug(f"Realtime subscribe {sub.id} room={room_id} tables={sorted(sub.tables) if sub.tables else '*'}")
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            bucket = self._rooms.get(subscription.room_id)
            if bucket is None:
                return
            bucket.pop(subscription.id, None)
            if not bucket:
                self._rooms.pop(subscription.room_id, None)
        logger.debug(f"Realtime unsubscribe {subscription.id} room={subscription.room_id}")

    def subscriber_count(self, room_id: str) -> int:
        with self._lock:
            return len(self._rooms.get(room_id, {}))

    def publish(
        self,
        room_id: str,
        table: str,
        event: str,
        new: Optional[Dict[str, Any]] = None,
        old: Optional[Dict[str, Any]] = None,
    ) -> int:
        """Fan a change out to the room's subscribers. Safe to call from any thread. Returns the number notified."""
        if not room_id:
            return 0
        payload = build_change_event(room_id, table, event, new, old)
        with self._lock:
            targets = [s for s in self._rooms.get(room_id, {}).values() if s.wants(table)]
        notified = 0
        for sub in targets:
            try:
                sub.loop.call_soon_threadsafe(sub.deliver, payload)
                notified += 1
            except RuntimeError:
                # Loop already closed; the websocket handler will unsubscribe
                logger.debug(f"Realtime subscriber {sub.id} loop closed")
        return notified


hub = RealtimeHub(queue_size=settings.realtime_queue_size)
