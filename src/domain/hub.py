import asyncio
import itertools
import logging
from dataclasses import dataclass

from domain.events import MessageFormat, RelayEvent, encode_event
from ports.subscriber import SubscriberPort

logger = logging.getLogger(__name__)

SubscriberHandle = int


@dataclass(frozen=True)
class Connected:
    subscriber: SubscriberPort


@dataclass(frozen=True)
class Disconnected:
    handle: SubscriberHandle


@dataclass(frozen=True)
class FrameReceived:
    handle: SubscriberHandle
    text: str


ConnectionEvent = Connected | Disconnected | FrameReceived


class BroadcastHub:
    """Fans every published event out to the currently connected subscribers.

    Membership changes are plain synchronous methods so they never interleave
    with another task on the event loop. ``publish`` works on a snapshot of
    the membership taken when it is called; each delivery is bounded by
    ``send_timeout`` and a failing subscriber is dropped without affecting
    the others.
    """

    def __init__(
        self,
        send_timeout: float = 2.0,
        message_format: MessageFormat = "token",
    ) -> None:
        self._send_timeout = send_timeout
        self._message_format = message_format
        self._subscribers: dict[SubscriberHandle, SubscriberPort] = {}
        self._handles = itertools.count(1)
        self._close_tasks: set[asyncio.Task] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, subscriber: SubscriberPort) -> SubscriberHandle:
        handle = next(self._handles)
        self._subscribers[handle] = subscriber
        logger.info(
            "Subscriber %d connected (%s), %d active",
            handle, subscriber.name, len(self._subscribers),
        )
        return handle

    def unsubscribe(self, handle: SubscriberHandle) -> bool:
        subscriber = self._subscribers.pop(handle, None)
        if subscriber is None:
            return False
        logger.info(
            "Subscriber %d disconnected (%s), %d active",
            handle, subscriber.name, len(self._subscribers),
        )
        return True

    def handle(self, event: ConnectionEvent) -> SubscriberHandle | None:
        if isinstance(event, Connected):
            return self.subscribe(event.subscriber)
        if isinstance(event, Disconnected):
            self.unsubscribe(event.handle)
            return event.handle
        if isinstance(event, FrameReceived):
            logger.debug("Subscriber %d sent %r (ignored)", event.handle, event.text)
            return event.handle
        raise TypeError(f"Unknown connection event: {event!r}")

    async def publish(self, event: RelayEvent) -> int:
        targets = list(self._subscribers.items())
        if not targets:
            return 0

        text = encode_event(event, self._message_format)
        results = await asyncio.gather(
            *(self._deliver(handle, subscriber, text) for handle, subscriber in targets)
        )
        delivered = sum(1 for ok in results if ok)
        logger.debug("Published %r to %d/%d subscribers", text, delivered, len(targets))
        return delivered

    async def _deliver(
        self, handle: SubscriberHandle, subscriber: SubscriberPort, text: str
    ) -> bool:
        try:
            await asyncio.wait_for(subscriber.send(text), timeout=self._send_timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("Subscriber %d timed out, dropping", handle)
        except Exception as exc:
            logger.warning("Subscriber %d send failed, dropping: %s", handle, exc)

        if self.unsubscribe(handle):
            self._close_in_background(subscriber)
        return False

    def _close_in_background(self, subscriber: SubscriberPort) -> None:
        task = asyncio.create_task(self._close_quietly(subscriber))
        self._close_tasks.add(task)
        task.add_done_callback(self._close_tasks.discard)

    async def _close_quietly(self, subscriber: SubscriberPort) -> None:
        try:
            await asyncio.wait_for(subscriber.close(), timeout=self._send_timeout)
        except Exception as exc:
            logger.debug("Closing %s failed: %s", subscriber.name, exc)
