import asyncio
import logging

logger = logging.getLogger(__name__)


class ShellDisplayPower:
    def __init__(
        self,
        on_command: str = "vcgencmd display_power 1",
        off_command: str = "vcgencmd display_power 0",
        timeout: float = 10.0,
    ) -> None:
        self._on_command = on_command
        self._off_command = off_command
        self._timeout = timeout

    async def set_power(self, on: bool) -> bool:
        command = self._on_command if on else self._off_command
        process: asyncio.subprocess.Process | None = None

        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr_output = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError:
            logger.error("Display command timed out after %.1fs: %s", self._timeout, command)
            if process:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()
            return False
        except OSError as exc:
            logger.error("Display command could not start: %s (%s)", command, exc)
            return False

        if process.returncode != 0:
            logger.error(
                "Display command exited with code %d: %s: %s",
                process.returncode,
                command,
                stderr_output.decode(errors="replace").strip(),
            )
            return False

        logger.debug("Display command succeeded: %s", command)
        return True
