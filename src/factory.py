import logging
from dataclasses import dataclass

from config import GestureRelayConfig
from adapters.serial_reader import SerialLineReader
from adapters.shell_display import ShellDisplayPower
from adapters.unix_control import UnixSocketControlServer
from adapters.websocket_server import WebSocketServer
from domain.hub import BroadcastHub
from domain.power import DisplayPowerController
from domain.relay import GestureRelay
from domain.retry import BackoffPolicy
from ports.control import ControlCommand, ControlHandler

logger = logging.getLogger(__name__)


@dataclass
class RelayComponents:
    relay: GestureRelay
    hub: BroadcastHub
    power: DisplayPowerController
    websocket: WebSocketServer
    control: UnixSocketControlServer


def create_reader(config: GestureRelayConfig) -> SerialLineReader:
    return SerialLineReader(
        device=config.serial_device,
        baud_rate=config.baud_rate,
        read_timeout=config.serial_read_timeout,
    )


def create_power_controller(config: GestureRelayConfig) -> DisplayPowerController:
    display = ShellDisplayPower(
        on_command=config.power_on_command,
        off_command=config.power_off_command,
        timeout=config.power_command_timeout,
    )
    return DisplayPowerController(
        display=display,
        off_delay_seconds=config.power_off_delay_seconds,
        enabled=config.power_saving_enabled,
    )


def create_backoff(config: GestureRelayConfig) -> BackoffPolicy:
    return BackoffPolicy(
        initial_delay=config.serial_retry_initial_delay,
        max_delay=config.serial_retry_max_delay,
        max_attempts=config.serial_retry_max_attempts,
    )


def create_control_handler(
    relay: GestureRelay, power: DisplayPowerController
) -> ControlHandler:
    def handle(command: ControlCommand) -> dict:
        if command.action == "status":
            return {"status": "ok", "action": "status", **relay.status()}
        if command.action == "toggle":
            enabled = power.toggle()
            return {"status": "ok", "action": "toggle", "power_saving": enabled}
        logger.warning("Unknown control action: %s", command.action)
        return {"status": "error", "action": command.action, "error": "unknown action"}

    return handle


def create_relay(config: GestureRelayConfig) -> RelayComponents:
    hub = BroadcastHub(
        send_timeout=config.send_timeout,
        message_format=config.message_format,
    )
    power = create_power_controller(config)
    relay = GestureRelay(
        source=create_reader(config),
        hub=hub,
        power=power,
        backoff=create_backoff(config),
    )
    websocket = WebSocketServer(
        hub=hub,
        host=config.websocket_host,
        port=config.websocket_port,
    )
    control = UnixSocketControlServer(
        handler=create_control_handler(relay, power),
        socket_path=config.socket_path,
    )
    return RelayComponents(
        relay=relay,
        hub=hub,
        power=power,
        websocket=websocket,
        control=control,
    )
