import socket

from config import GestureRelayConfig
from health import HealthCheckResult, has_critical_failures, run_startup_checks


def by_name(results: list[HealthCheckResult]) -> dict[str, HealthCheckResult]:
    return {r.name: r for r in results}


class TestStartupChecks:
    def test_all_pass(self, tmp_path):
        (tmp_path / "ttyACM0").touch()
        config = GestureRelayConfig(
            serial_device=str(tmp_path / "ttyACM*"),
            power_on_command="true",
            power_off_command="true",
            websocket_host="127.0.0.1",
            websocket_port=0,
        )

        results = by_name(run_startup_checks(config))

        assert all(r.passed for r in results.values())
        assert str(tmp_path / "ttyACM0") in results["serial_device"].detail

    def test_missing_device_is_not_critical(self, tmp_path):
        config = GestureRelayConfig(
            serial_device=str(tmp_path / "ttyACM*"),
            websocket_host="127.0.0.1",
            websocket_port=0,
        )

        results = run_startup_checks(config)

        assert not by_name(results)["serial_device"].passed
        assert not has_critical_failures(results)

    def test_missing_power_command_reported(self):
        config = GestureRelayConfig(
            power_on_command="no-such-display-tool 1",
            power_off_command="true",
            websocket_host="127.0.0.1",
            websocket_port=0,
        )

        result = by_name(run_startup_checks(config))["power_commands"]

        assert not result.passed
        assert "no-such-display-tool" in result.detail

    def test_power_commands_skipped_when_disabled(self):
        config = GestureRelayConfig(
            power_saving_enabled=False,
            power_on_command="no-such-display-tool 1",
            websocket_host="127.0.0.1",
            websocket_port=0,
        )

        assert by_name(run_startup_checks(config))["power_commands"].passed

    def test_port_in_use_is_critical(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
            taken.bind(("127.0.0.1", 0))
            taken.listen()
            port = taken.getsockname()[1]
            config = GestureRelayConfig(websocket_host="127.0.0.1", websocket_port=port)

            results = run_startup_checks(config)

        assert not by_name(results)["websocket_port"].passed
        assert has_critical_failures(results)
