import pytest
from pydantic import ValidationError

import cli
from config import GestureRelayConfig


class TestConfig:
    def test_defaults(self):
        config = GestureRelayConfig()
        assert config.baud_rate == 9600
        assert config.websocket_port == 8004
        assert config.message_format == "token"
        assert config.power_saving_enabled

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("GESTURE_RELAY_SERIAL_DEVICE", "/dev/ttyUSB0")
        monkeypatch.setenv("GESTURE_RELAY_POWER_OFF_DELAY_SECONDS", "300")
        monkeypatch.setenv("GESTURE_RELAY_MESSAGE_FORMAT", "notification")

        config = GestureRelayConfig()

        assert config.serial_device == "/dev/ttyUSB0"
        assert config.power_off_delay_seconds == 300.0
        assert config.message_format == "notification"

    def test_invalid_message_format_rejected(self, monkeypatch):
        monkeypatch.setenv("GESTURE_RELAY_MESSAGE_FORMAT", "xml")
        with pytest.raises(ValidationError):
            GestureRelayConfig()


class TestEnvFile:
    def test_loads_missing_keys_only(self, tmp_path, monkeypatch):
        env_file = tmp_path / "env"
        env_file.write_text(
            "# relay settings\n"
            "GESTURE_RELAY_BAUD_RATE=115200\n"
            "GESTURE_RELAY_SERIAL_DEVICE='/dev/ttyUSB1'\n"
            "not a setting\n"
        )
        monkeypatch.setattr(cli, "ENV_FILE_PATH", env_file)
        monkeypatch.setenv("GESTURE_RELAY_BAUD_RATE", "0")
        monkeypatch.delenv("GESTURE_RELAY_BAUD_RATE")
        monkeypatch.setenv("GESTURE_RELAY_SERIAL_DEVICE", "/dev/ttyACM3")

        cli._load_env_file()

        config = GestureRelayConfig()
        assert config.baud_rate == 115200
        assert config.serial_device == "/dev/ttyACM3"

    def test_missing_file_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setattr(cli, "ENV_FILE_PATH", tmp_path / "absent")
        cli._load_env_file()
