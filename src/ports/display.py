from typing import Protocol


class DisplayPowerPort(Protocol):
    async def set_power(self, on: bool) -> bool: ...
