from dataclasses import dataclass
from typing import Protocol, Callable


@dataclass(frozen=True)
class ControlCommand:
    action: str
    payload: dict | None = None


ControlHandler = Callable[[ControlCommand], dict]


class ControlPort(Protocol):
    async def start(self) -> None: ...
    async def stop(self) -> None: ...
