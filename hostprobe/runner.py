from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from typing import Sequence

from hostprobe.errors import ToolUnavailable

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs external inspection tools and returns their stdout.

    Commands are argv lists executed without a shell. A missing binary,
    a non-zero exit status and a timeout all raise ``ToolUnavailable``;
    a tool that succeeds with no output returns an empty string.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        # Tool output is parsed positionally, so keep it unlocalized.
        self._env = {**os.environ, "LC_ALL": "C"}

    async def run(self, command: Sequence[str]) -> str:
        argv = list(command)
        logger.debug("Running %s", " ".join(argv))
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
                env=self._env,
            )
        except OSError as exc:
            logger.debug("%s not runnable: %s", argv[0], exc)
            raise ToolUnavailable(argv, f"cannot execute {argv[0]}") from exc

        try:
            stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            logger.debug("%s timed out after %.1fs", argv[0], self.timeout)
            raise ToolUnavailable(argv, f"timed out after {self.timeout:g}s") from exc

        if proc.returncode != 0:
            logger.debug("%s exited with status %d", argv[0], proc.returncode)
            raise ToolUnavailable(argv, f"exited with status {proc.returncode}")

        return stdout.decode(errors="replace")
