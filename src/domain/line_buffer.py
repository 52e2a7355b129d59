LINE_TERMINATOR = b"\n"


class LineBuffer:
    """Reassembles newline-delimited frames from arbitrarily chunked bytes.

    A frame is only emitted once its terminator has arrived, so a line split
    across two reads comes out whole and two lines in one read come out
    separately. A trailing carriage return is dropped.
    """

    def __init__(self, encoding: str = "ascii") -> None:
        self._encoding = encoding
        self._pending = bytearray()

    @property
    def pending(self) -> bytes:
        return bytes(self._pending)

    def feed(self, chunk: bytes) -> list[str]:
        self._pending.extend(chunk)
        lines: list[str] = []

        while True:
            end = self._pending.find(LINE_TERMINATOR)
            if end < 0:
                break
            frame = bytes(self._pending[:end])
            del self._pending[: end + 1]
            if frame.endswith(b"\r"):
                frame = frame[:-1]
            lines.append(frame.decode(self._encoding, errors="replace"))

        return lines

    def reset(self) -> None:
        self._pending.clear()
