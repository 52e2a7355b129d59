import pytest

from adapters.unix_control import (
    UnixSocketControlServer,
    UnixSocketControlClient,
)
from ports.control import ControlCommand


def echo_handler(received: list[ControlCommand]):
    def handle(command: ControlCommand) -> dict:
        received.append(command)
        return {"status": "ok", "action": command.action}

    return handle


class TestUnixSocketControl:
    @pytest.mark.asyncio
    async def test_server_start_stop(self, tmp_path):
        socket_path = str(tmp_path / "test.sock")
        server = UnixSocketControlServer(handler=echo_handler([]), socket_path=socket_path)
        await server.start()
        assert (tmp_path / "test.sock").exists()
        await server.stop()
        assert not (tmp_path / "test.sock").exists()

    @pytest.mark.asyncio
    async def test_client_server_status(self, tmp_path):
        socket_path = str(tmp_path / "test.sock")
        received: list[ControlCommand] = []
        server = UnixSocketControlServer(handler=echo_handler(received), socket_path=socket_path)
        await server.start()

        client = UnixSocketControlClient(socket_path=socket_path)
        result = await client.send_command("status")
        assert result == {"status": "ok", "action": "status"}
        assert received == [ControlCommand(action="status")]

        await server.stop()

    @pytest.mark.asyncio
    async def test_payload_forwarded(self, tmp_path):
        socket_path = str(tmp_path / "test.sock")
        received: list[ControlCommand] = []
        server = UnixSocketControlServer(handler=echo_handler(received), socket_path=socket_path)
        await server.start()

        client = UnixSocketControlClient(socket_path=socket_path)
        await client.send_command("toggle", {"source": "test"})
        assert received[0].payload == {"source": "test"}

        await server.stop()

    @pytest.mark.asyncio
    async def test_stale_socket_file_replaced(self, tmp_path):
        socket_file = tmp_path / "test.sock"
        socket_file.write_text("stale")
        server = UnixSocketControlServer(handler=echo_handler([]), socket_path=str(socket_file))
        await server.start()

        result = await UnixSocketControlClient(socket_path=str(socket_file)).send_command("status")
        assert result["status"] == "ok"
        await server.stop()

    @pytest.mark.asyncio
    async def test_client_connection_refused(self):
        client = UnixSocketControlClient(socket_path="/tmp/nonexistent-gesture-relay.sock")
        with pytest.raises((ConnectionRefusedError, FileNotFoundError)):
            await client.send_command("status")
