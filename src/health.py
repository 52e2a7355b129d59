import logging
import shlex
import shutil
import socket
from dataclasses import dataclass

from config import GestureRelayConfig
from adapters.serial_reader import resolve_device
from ports.line_source import DeviceResolutionError

logger = logging.getLogger(__name__)


@dataclass
class HealthCheckResult:
    name: str
    passed: bool
    detail: str


def run_startup_checks(config: GestureRelayConfig) -> list[HealthCheckResult]:
    results = [
        _check_serial_device(config),
        _check_power_commands(config),
        _check_websocket_port(config),
    ]

    passed = sum(1 for r in results if r.passed)

    logger.info("Health check: %d/%d passed", passed, len(results))
    for result in results:
        level = logging.INFO if result.passed else logging.WARNING
        symbol = "OK" if result.passed else "FAIL"
        logger.log(level, "  [%s] %s: %s", symbol, result.name, result.detail)

    return results


def has_critical_failures(results: list[HealthCheckResult]) -> bool:
    critical_checks = {"websocket_port"}
    return any(not r.passed and r.name in critical_checks for r in results)


def _check_serial_device(config: GestureRelayConfig) -> HealthCheckResult:
    name = "serial_device"
    try:
        path = resolve_device(config.serial_device)
    except DeviceResolutionError as exc:
        return HealthCheckResult(name=name, passed=False, detail=f"{exc}, will keep retrying")
    return HealthCheckResult(name=name, passed=True, detail=f"Using {path}")


def _check_power_commands(config: GestureRelayConfig) -> HealthCheckResult:
    name = "power_commands"
    if not config.power_saving_enabled:
        return HealthCheckResult(name=name, passed=True, detail="Power saving disabled, skipping")

    missing = []
    for command in (config.power_on_command, config.power_off_command):
        try:
            executable = shlex.split(command)[0]
        except (ValueError, IndexError):
            missing.append(command or "<empty>")
            continue
        if shutil.which(executable) is None:
            missing.append(executable)

    if missing:
        return HealthCheckResult(
            name=name, passed=False, detail=f"Not found on PATH: {', '.join(sorted(set(missing)))}"
        )
    return HealthCheckResult(name=name, passed=True, detail="Power commands available")


def _check_websocket_port(config: GestureRelayConfig) -> HealthCheckResult:
    name = "websocket_port"
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((config.websocket_host, config.websocket_port))
    except OSError as exc:
        return HealthCheckResult(
            name=name,
            passed=False,
            detail=f"Cannot bind {config.websocket_host}:{config.websocket_port}: {exc}",
        )
    return HealthCheckResult(
        name=name, passed=True, detail=f"{config.websocket_host}:{config.websocket_port} available"
    )
