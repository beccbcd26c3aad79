from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from devboard.components.tui.events import CONSOLE, NEW_SESSION
from devboard.components.tui.renderer import split_specifier

if TYPE_CHECKING:
    from devboard.components.tui.event_bus import EventBus

logger = logging.getLogger(__name__)


class PackageInstaller:
    """Runs the install or record command for an approved dependency.

    Progress is published on the bus as console messages. A successful run
    publishes NEW_SESSION, which dismisses the prompt.
    """

    def __init__(
        self,
        bus: EventBus,
        install_command: list[str],
        record_command: list[str] | None = None,
        cwd: str | None = None,
    ) -> None:
        self._bus = bus
        self.install_command = install_command
        self.record_command = record_command
        self.cwd = cwd
        self._in_flight: set[str] = set()
        self._tasks: set[asyncio.Task] = set()

    def _console(self, level: str, message: str) -> None:
        self._bus.emit(CONSOLE, {"level": level, "args": [message]})

    def add_package(self, name: str, needs_install: bool) -> None:
        """Schedule the command for name on the running event loop."""
        if name in self._in_flight:
            logger.info(f"{name} is already being installed")
            return

        command = self.install_command if needs_install else self.record_command
        if not command:
            logger.info(f"No command to record {name}, treating it as added")
            self._console("info", f"{name} is already installed.")
            self._bus.emit(NEW_SESSION, {})
            return

        package_name, _deep_path = split_specifier(name)
        argv = [part.replace("{package}", package_name) for part in command]
        self._in_flight.add(name)
        task = asyncio.get_running_loop().create_task(self.run(name, argv))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def run(self, name: str, argv: list[str]) -> int:
        """Run one install command and report its outcome. Returns the exit code."""
        try:
            self._console("info", f"Installing {name}...")
            try:
                process = await asyncio.create_subprocess_exec(
                    *argv,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,
                    cwd=self.cwd,
                )
            except OSError as e:
                logger.error(f"Could not start {argv[0]}: {e}")
                self._console("error", f"Could not run {argv[0]}: {e}")
                return 127

            output, _ = await process.communicate()
            text = output.decode("utf-8", errors="replace").strip() if output else ""
            if text:
                self._console("log", text)

            if process.returncode == 0:
                logger.info(f"Installed {name}")
                self._console("info", f"Installed {name}.")
                self._bus.emit(NEW_SESSION, {})
            else:
                logger.error(f"Installing {name} failed with exit code {process.returncode}")
                self._console(
                    "error", f"Installing {name} failed (exit code {process.returncode})."
                )
            return process.returncode
        finally:
            self._in_flight.discard(name)
