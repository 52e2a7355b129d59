import asyncio
from collections.abc import AsyncIterator

import pytest

from domain.hub import BroadcastHub
from domain.power import DisplayPowerController
from ports.line_source import SerialLinkError


OFF_DELAY_SECONDS = 0.05


async def settle(rounds: int = 50) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeSubscriber:
    def __init__(self, name: str = "fake") -> None:
        self._name = name
        self.received: list[str] = []
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    async def send(self, text: str) -> None:
        self.received.append(text)

    async def close(self) -> None:
        self.closed = True


class FailingSubscriber(FakeSubscriber):
    async def send(self, text: str) -> None:
        raise ConnectionResetError("peer went away")


class StalledSubscriber(FakeSubscriber):
    async def send(self, text: str) -> None:
        await asyncio.sleep(3600)


class FakeDisplay:
    def __init__(self, succeed: bool = True) -> None:
        self.succeed = succeed
        self.commands: list[bool] = []
        self.gate: asyncio.Event | None = None

    @property
    def on_commands(self) -> int:
        return sum(1 for on in self.commands if on)

    @property
    def off_commands(self) -> int:
        return sum(1 for on in self.commands if not on)

    def hold(self) -> None:
        self.gate = asyncio.Event()

    def release(self) -> None:
        if self.gate:
            self.gate.set()

    async def set_power(self, on: bool) -> bool:
        self.commands.append(on)
        if self.gate:
            await self.gate.wait()
        return self.succeed


class FakeLineSource:
    """Each session is a list of lines, optionally ending in an exception.

    ``lines()`` plays the next session per call; once all sessions are used
    it blocks forever, like an idle serial port.
    """

    def __init__(self, sessions: list[list] | None = None) -> None:
        self._sessions = list(sessions or [])
        self.opened = 0
        self.connected = False

    async def lines(self) -> AsyncIterator[str]:
        self.opened += 1
        if not self._sessions:
            self.connected = True
            await asyncio.Event().wait()
        session = self._sessions.pop(0)
        self.connected = True
        try:
            for item in session:
                if isinstance(item, Exception):
                    raise item
                yield item
        finally:
            self.connected = False


def open_failure(message: str = "No serial device matches /dev/ttyACM*") -> list:
    return [SerialLinkError(message)]


@pytest.fixture
def fake_display():
    return FakeDisplay()


@pytest.fixture
def hub():
    return BroadcastHub(send_timeout=0.1)


@pytest.fixture
def power(fake_display):
    return DisplayPowerController(display=fake_display, off_delay_seconds=OFF_DELAY_SECONDS)
