import asyncio
import glob
import logging
from collections.abc import AsyncIterator, Callable

import serial

from domain.line_buffer import LineBuffer
from ports.line_source import DeviceResolutionError, SerialLinkError

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 256

GLOB_CHARACTERS = set("*?[")


def resolve_device(pattern: str) -> str:
    if not GLOB_CHARACTERS.intersection(pattern):
        return pattern

    matches = sorted(glob.glob(pattern))
    if not matches:
        raise DeviceResolutionError(f"No serial device matches {pattern}")
    if len(matches) > 1:
        raise DeviceResolutionError(
            f"Ambiguous serial device {pattern}: {', '.join(matches)}"
        )
    return matches[0]


class SerialLineReader:
    def __init__(
        self,
        device: str = "/dev/ttyACM*",
        baud_rate: int = 9600,
        read_timeout: float = 1.0,
        serial_factory: Callable[..., serial.Serial] = serial.Serial,
    ) -> None:
        self._device = device
        self._baud_rate = baud_rate
        self._read_timeout = read_timeout
        self._serial_factory = serial_factory
        self._port: serial.Serial | None = None
        self._buffer = LineBuffer()

    @property
    def connected(self) -> bool:
        return self._port is not None

    async def lines(self) -> AsyncIterator[str]:
        port = self._open()
        try:
            while True:
                chunk = await asyncio.to_thread(self._read_chunk, port)
                for line in self._buffer.feed(chunk):
                    yield line
        finally:
            self._close(port)

    def _open(self) -> serial.Serial:
        path = resolve_device(self._device)
        try:
            port = self._serial_factory(
                port=path, baudrate=self._baud_rate, timeout=self._read_timeout
            )
        except (serial.SerialException, OSError, ValueError) as exc:
            raise SerialLinkError(f"Cannot open {path}: {exc}") from exc

        self._buffer.reset()
        self._port = port
        logger.info("Serial port %s opened (%d baud)", path, self._baud_rate)
        return port

    def _read_chunk(self, port: serial.Serial) -> bytes:
        try:
            return port.read(max(1, min(port.in_waiting, READ_CHUNK_SIZE)))
        except (serial.SerialException, OSError) as exc:
            raise SerialLinkError(f"Read from {port.port} failed: {exc}") from exc

    def _close(self, port: serial.Serial) -> None:
        self._port = None
        try:
            port.close()
        except (serial.SerialException, OSError) as exc:
            logger.debug("Closing serial port failed: %s", exc)
