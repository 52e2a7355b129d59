import asyncio
import logging
from enum import Enum, auto

from domain.events import AWAY, PRESENT, PresenceEvent, RelayEvent
from ports.display import DisplayPowerPort

logger = logging.getLogger(__name__)


class PowerState(Enum):
    ON = auto()
    OFF = auto()


class DisplayPowerController:
    """Debounced display power saving driven by presence events.

    The display goes on as soon as someone is present and off only after
    ``off_delay_seconds`` without a newer presence event. Commands run as
    background tasks, serialized so an "on" requested during an "off" runs
    after it, and ``state`` only changes when a command reports success.
    """

    def __init__(
        self,
        display: DisplayPowerPort,
        off_delay_seconds: float = 60.0,
        enabled: bool = True,
    ) -> None:
        self._display = display
        self._off_delay_seconds = off_delay_seconds
        self._enabled = enabled

        self._state = PowerState.ON
        self._off_timer: asyncio.Task | None = None
        self._command_lock = asyncio.Lock()
        self._command_tasks: set[asyncio.Task] = set()
        self._requested: PowerState | None = None
        self._command_seq = 0

    @property
    def state(self) -> PowerState:
        return self._state

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def off_timer_pending(self) -> bool:
        return self._off_timer is not None and not self._off_timer.done()

    @property
    def command_in_flight(self) -> bool:
        return self._requested is not None

    def handle(self, event: RelayEvent) -> None:
        if not isinstance(event, PresenceEvent) or not self._enabled:
            return

        logger.debug(
            "Presence %s (display=%s, timer_pending=%s)",
            event.value, self._state.name, self.off_timer_pending,
        )
        self._cancel_off_timer()

        if event.value == PRESENT:
            if self._expected_state() == PowerState.OFF:
                logger.info("Person present, turning display on")
                self._issue(PowerState.ON)
        elif event.value == AWAY:
            if self._expected_state() == PowerState.ON:
                logger.info("Person away, display off in %.0fs", self._off_delay_seconds)
                self._off_timer = asyncio.create_task(self._off_timer_countdown())

    def toggle(self) -> bool:
        self._enabled = not self._enabled
        logger.info("Power saving %s", "enabled" if self._enabled else "disabled")
        if not self._enabled:
            self._cancel_off_timer()
            if self._expected_state() == PowerState.OFF:
                self._issue(PowerState.ON)
        return self._enabled

    async def shutdown(self) -> None:
        self._cancel_off_timer()
        if self._command_tasks:
            await asyncio.gather(*self._command_tasks, return_exceptions=True)

    def _expected_state(self) -> PowerState:
        return self._requested if self._requested is not None else self._state

    def _cancel_off_timer(self) -> None:
        if self._off_timer and not self._off_timer.done():
            if self._off_timer is not asyncio.current_task():
                self._off_timer.cancel()
                logger.debug("Cancelled pending display-off timer")
        self._off_timer = None

    async def _off_timer_countdown(self) -> None:
        try:
            await asyncio.sleep(self._off_delay_seconds)
        except asyncio.CancelledError:
            return
        # Once fired the timer is detached, so a late cancel cannot touch the command.
        self._off_timer = None
        logger.info("Nobody present for %.0fs, turning display off", self._off_delay_seconds)
        self._issue(PowerState.OFF)

    def _issue(self, target: PowerState) -> None:
        self._command_seq += 1
        self._requested = target
        task = asyncio.create_task(self._run_command(target, self._command_seq))
        self._command_tasks.add(task)
        task.add_done_callback(self._command_tasks.discard)

    async def _run_command(self, target: PowerState, seq: int) -> None:
        async with self._command_lock:
            try:
                ok = await self._display.set_power(target == PowerState.ON)
            except Exception:
                logger.exception("Display power %s command raised", target.name)
                ok = False
            self._complete(target, seq, ok)

    def _complete(self, target: PowerState, seq: int, ok: bool) -> None:
        if seq == self._command_seq:
            self._requested = None

        if not ok:
            logger.warning(
                "Display power %s failed, display still considered %s",
                target.name, self._state.name,
            )
            return

        if self._state != target:
            logger.info("Display: %s -> %s", self._state.name, target.name)
        self._state = target
