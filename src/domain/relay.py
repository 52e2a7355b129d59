import asyncio
import logging
from collections.abc import Awaitable, Callable

from domain.events import RelayEvent
from domain.hub import BroadcastHub
from domain.parser import parse_line
from domain.power import DisplayPowerController
from domain.retry import BackoffPolicy
from ports.line_source import LineSourcePort, SerialLinkError

logger = logging.getLogger(__name__)


class GestureRelay:
    """Reads sensor lines and hands each recognized event to the hub and the
    power controller, reopening the serial link with backoff when it fails.
    """

    def __init__(
        self,
        source: LineSourcePort,
        hub: BroadcastHub,
        power: DisplayPowerController,
        backoff: BackoffPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._source = source
        self._hub = hub
        self._power = power
        self._backoff = backoff or BackoffPolicy()
        self._sleep = sleep

        self._running = False
        self._failed_attempts = 0
        self._events_relayed = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def events_relayed(self) -> int:
        return self._events_relayed

    @property
    def failed_attempts(self) -> int:
        return self._failed_attempts

    async def run(self) -> None:
        self._running = True
        self._failed_attempts = 0
        logger.info("Gesture relay started")

        try:
            while True:
                try:
                    async for line in self._source.lines():
                        self._failed_attempts = 0
                        await self.dispatch(line)
                    logger.warning("Serial source ended, reopening")
                except SerialLinkError as exc:
                    logger.error("Serial link failed: %s", exc)

                if self._backoff.exhausted(self._failed_attempts):
                    logger.error(
                        "Giving up on serial link after %d attempts, still serving subscribers",
                        self._failed_attempts,
                    )
                    return

                delay = self._backoff.delay(self._failed_attempts)
                self._failed_attempts += 1
                logger.info(
                    "Reopening serial link in %.1fs (attempt %d)", delay, self._failed_attempts
                )
                await self._sleep(delay)
        finally:
            self._running = False

    async def dispatch(self, line: str) -> RelayEvent | None:
        event = parse_line(line)
        if event is None:
            return None

        logger.info("Relayed %s: %s", type(event).__name__, event.token)
        self._events_relayed += 1

        try:
            self._power.handle(event)
        except Exception:
            logger.exception("Power controller failed on %s", event)

        try:
            await self._hub.publish(event)
        except Exception:
            logger.exception("Broadcast failed on %s", event)

        return event

    def status(self) -> dict:
        return {
            "display": self._power.state.name,
            "off_timer_pending": self._power.off_timer_pending,
            "power_saving": self._power.enabled,
            "subscribers": self._hub.subscriber_count,
            "serial_connected": self._source.connected,
            "reading": self._running,
            "events_relayed": self._events_relayed,
        }
