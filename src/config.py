from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class GestureRelayConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GESTURE_RELAY_")

    serial_device: str = "/dev/ttyACM*"
    baud_rate: int = 9600
    serial_read_timeout: float = 1.0

    serial_retry_initial_delay: float = 1.0
    serial_retry_max_delay: float = 30.0
    serial_retry_max_attempts: int = 0

    websocket_host: str = "0.0.0.0"
    websocket_port: int = 8004
    send_timeout: float = 2.0
    message_format: Literal["token", "notification"] = "token"

    power_saving_enabled: bool = True
    power_off_delay_seconds: float = 60.0
    power_on_command: str = "vcgencmd display_power 1"
    power_off_command: str = "vcgencmd display_power 0"
    power_command_timeout: float = 10.0

    socket_path: str = "/tmp/gesture-relay.sock"
    log_file: str = ""
