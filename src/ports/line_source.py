from typing import Protocol, AsyncIterator


class SerialLinkError(Exception):
    pass


class DeviceResolutionError(SerialLinkError):
    pass


class LineSourcePort(Protocol):
    @property
    def connected(self) -> bool: ...
    def lines(self) -> AsyncIterator[str]: ...
