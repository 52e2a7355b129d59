from typing import Protocol


class SubscriberPort(Protocol):
    @property
    def name(self) -> str: ...
    async def send(self, text: str) -> None: ...
    async def close(self) -> None: ...
