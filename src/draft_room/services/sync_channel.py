"""Best-effort broadcast channel between execution contexts.

A ``SyncHub`` holds named channels; every context subscribed to a channel
gets its own ``SyncChannel`` endpoint with a bounded FIFO queue. Delivery
is at-most-once with no replay: a context that is not subscribed when a
message is published never sees it, and a full queue drops the message.
Messages from one sender arrive in publish order; messages from different
senders carry no ordering guarantee relative to each other.
"""

import asyncio
import logging
import uuid
from collections import defaultdict
from typing import Optional

from draft_room.models.messages import SyncMessage

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 256


class SyncChannel:
    """One context's endpoint on a named channel."""

    def __init__(self, hub: "SyncHub", name: str, context_id: str, queue_size: int):
        self.hub = hub
        self.name = name
        self.context_id = context_id
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self.closed = False

    def broadcast(self, message: SyncMessage) -> int:
        """Stamp ``message`` with this context as sender and publish it.

        Returns the number of endpoints the message was delivered to.
        """
        if self.closed:
            logger.debug(f"Broadcast on closed channel {self.name} by {self.context_id}")
            return 0
        stamped = message.model_copy(update={"sender": self.context_id})
        return self.hub.publish(self.name, stamped)

    async def receive(self) -> SyncMessage:
        """Wait for the next message addressed to this endpoint."""
        return await self._queue.get()

    def drain(self) -> list[SyncMessage]:
        """Take every queued message without waiting."""
        messages = []
        while True:
            try:
                messages.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                return messages

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def _deliver(self, message: SyncMessage) -> bool:
        try:
            self._queue.put_nowait(message)
            return True
        except asyncio.QueueFull:
            logger.warning(
                f"Sync queue full for {self.context_id} on {self.name}, dropping {message.type}"
            )
            return False

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.hub.unsubscribe(self)


class SyncHub:
    """In-process registry of named broadcast channels."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE):
        self.queue_size = queue_size
        self._channels: dict[str, dict[str, SyncChannel]] = defaultdict(dict)

    def subscribe(self, name: str, context_id: Optional[str] = None) -> SyncChannel:
        """Join channel ``name``. Only messages published afterwards are delivered."""
        context_id = context_id or uuid.uuid4().hex[:12]
        if context_id in self._channels[name]:
            raise ValueError(f"Context {context_id} already subscribed to {name}")
        endpoint = SyncChannel(self, name, context_id, self.queue_size)
        self._channels[name][context_id] = endpoint
        logger.debug(f"{context_id} joined {name} ({len(self._channels[name])} subscribers)")
        return endpoint

    def unsubscribe(self, endpoint: SyncChannel) -> None:
        subscribers = self._channels.get(endpoint.name)
        if not subscribers:
            return
        subscribers.pop(endpoint.context_id, None)
        if not subscribers:
            del self._channels[endpoint.name]
        logger.debug(f"{endpoint.context_id} left {endpoint.name}")

    def publish(self, name: str, message: SyncMessage) -> int:
        """Deliver ``message`` to every subscriber except its sender."""
        delivered = 0
        for context_id, endpoint in list(self._channels.get(name, {}).items()):
            if context_id == message.sender:
                continue
            if endpoint._deliver(message):
                delivered += 1
        return delivered

    def subscribers(self, name: str) -> list[str]:
        return list(self._channels.get(name, {}))
