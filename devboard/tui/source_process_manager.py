import asyncio
import logging
import os
from typing import Dict, List, Optional

from devboard.common.utils import STREAM_LIMIT

logger = logging.getLogger(__name__)


class SourceProcessManager:
    """Manages the lifecycle of the event source subprocess."""

    def __init__(
        self,
        command: List[str],
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        limit: Optional[int] = None,
    ):
        if not command:
            raise ValueError("Event source command is empty")
        self.command = list(command)
        self.cwd = cwd
        self.env = env or {}
        self.limit = limit
        self.process: Optional[asyncio.subprocess.Process] = None

    async def start(self) -> asyncio.subprocess.Process:
        """Starts the source subprocess with stderr merged into stdout."""
        env = os.environ.copy()
        env.update(self.env)

        logger.info(f"Starting event source: {' '.join(self.command)}")
        self.process = await asyncio.create_subprocess_exec(
            *self.command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            stdin=asyncio.subprocess.DEVNULL,
            cwd=self.cwd or os.getcwd(),
            env=env,
            limit=self.limit or STREAM_LIMIT,
        )
        return self.process

    def terminate(self):
        """Terminates the source subprocess."""
        if self.process and self.process.returncode is None:
            logger.info(f"Terminating event source (pid {self.process.pid})")
            try:
                self.process.terminate()
            except ProcessLookupError:
                logger.debug("Event source already exited")

    async def stop(self, timeout: float = 5.0) -> Optional[int]:
        """Terminates the source and waits for it, killing it after timeout seconds."""
        if self.process is None:
            return None
        self.terminate()
        try:
            return await asyncio.wait_for(self.process.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Event source ignored SIGTERM, killing pid {self.process.pid}")
            try:
                self.process.kill()
            except ProcessLookupError:
                logger.debug("Event source already exited")
            return await self.process.wait()
