import logging

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from domain.hub import BroadcastHub, Connected, Disconnected, FrameReceived

logger = logging.getLogger(__name__)


class WebSocketSubscriber:
    def __init__(self, connection: ServerConnection) -> None:
        self._connection = connection

    @property
    def name(self) -> str:
        address = self._connection.remote_address
        if isinstance(address, tuple) and len(address) >= 2:
            return f"{address[0]}:{address[1]}"
        return str(address)

    async def send(self, text: str) -> None:
        await self._connection.send(text)

    async def close(self) -> None:
        await self._connection.close()


class WebSocketServer:
    def __init__(
        self,
        hub: BroadcastHub,
        host: str = "0.0.0.0",
        port: int = 8004,
    ) -> None:
        self._hub = hub
        self._host = host
        self._port = port
        self._server: Server | None = None

    @property
    def port(self) -> int:
        if self._server:
            for sock in self._server.sockets:
                return sock.getsockname()[1]
        return self._port

    async def start(self) -> None:
        self._server = await serve(self._handle_connection, self._host, self._port)
        logger.info("WebSocket server listening on %s:%d", self._host, self.port)

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def _handle_connection(self, connection: ServerConnection) -> None:
        handle = self._hub.handle(Connected(WebSocketSubscriber(connection)))
        try:
            async for message in connection:
                text = message if isinstance(message, str) else message.decode(errors="replace")
                self._hub.handle(FrameReceived(handle, text))
        except ConnectionClosed:
            pass
        except Exception:
            logger.exception("Error on subscriber %d", handle)
        finally:
            self._hub.handle(Disconnected(handle))
