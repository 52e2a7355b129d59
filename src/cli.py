import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path

from config import GestureRelayConfig
from log_format import ColoredFormatter

ENV_FILE_PATH = Path.home() / ".config" / "gesture-relay" / "env"


def _load_env_file() -> None:
    if not ENV_FILE_PATH.exists():
        return
    with open(ENV_FILE_PATH) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            value = value.strip("'\"")
            if key not in os.environ:
                os.environ[key] = value


def _configure_logging(verbose: bool, log_file: str) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    console = logging.StreamHandler()
    console.setFormatter(ColoredFormatter(datefmt="%H:%M:%S"))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
        )
        root.addHandler(file_handler)

    if verbose:
        logging.getLogger("websockets").setLevel(logging.INFO)
    else:
        logging.getLogger("websockets").setLevel(logging.WARNING)


def main() -> None:
    _load_env_file()
    parser = argparse.ArgumentParser(description="Serial gesture sensor relay")
    parser.add_argument("--device", help="Serial device path or glob")
    parser.add_argument("--port", type=int, help="WebSocket port")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("status", help="Query relay status")
    subparsers.add_parser("toggle", help="Toggle display power saving on/off")

    args = parser.parse_args()

    config = GestureRelayConfig()
    if args.device:
        config.serial_device = args.device
    if args.port:
        config.websocket_port = args.port

    _configure_logging(args.verbose, config.log_file)

    if args.command in ("status", "toggle"):
        asyncio.run(_run_client_command(args, config))
    else:
        asyncio.run(_run_daemon(config))


async def _run_client_command(args: argparse.Namespace, config: GestureRelayConfig) -> None:
    from adapters.unix_control import UnixSocketControlClient

    client = UnixSocketControlClient(socket_path=config.socket_path)

    try:
        result = await client.send_command(args.command)
        print(f"{result}")
    except ConnectionRefusedError:
        print("Gesture relay is not running", file=sys.stderr)
        sys.exit(1)
    except FileNotFoundError:
        print("Gesture relay is not running", file=sys.stderr)
        sys.exit(1)


async def _run_daemon(config: GestureRelayConfig) -> None:
    from health import run_startup_checks, has_critical_failures
    from factory import create_relay

    results = run_startup_checks(config)
    if has_critical_failures(results):
        logging.error("Critical health check failures, aborting startup")
        sys.exit(1)

    components = create_relay(config)

    shutdown_event = asyncio.Event()
    shutdown_triggered = False

    def handle_signal() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            logging.warning("Forced exit")
            sys.exit(1)
        shutdown_triggered = True
        logging.info("Shutting down...")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal)

    await components.websocket.start()
    await components.control.start()

    relay_task = asyncio.create_task(components.relay.run())

    try:
        await shutdown_event.wait()
    finally:
        relay_task.cancel()
        try:
            await asyncio.wait_for(relay_task, timeout=3.0)
        except (asyncio.CancelledError, asyncio.TimeoutError):
            pass
        except Exception:
            logging.exception("Relay stopped with an error")
        await components.power.shutdown()
        await components.control.stop()
        await components.websocket.stop()
