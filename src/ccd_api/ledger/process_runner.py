"""
Process Execution Bridge

Runs the ledger client tools as child processes. Commands are always passed as
an argument vector, never through a shell. Non-zero exits, spawn failures and
timeouts are all reported through ExecResult rather than raised.
"""

import asyncio
import contextlib
import os
import time
from typing import Dict
from typing import List
from typing import Optional

from loguru import logger
from pydantic import BaseModel

SPAWN_FAILED_EXIT_CODE = -1
TIMEOUT_EXIT_CODE = -2


class ExecResult(BaseModel):
    """Outcome of one external tool invocation."""

    argv: List[str]
    workdir: Optional[str] = None
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProcessRunner:
    """
    Executes external commands with a timeout and a cap on concurrent processes.

    Args:
        timeout_seconds: Default wall-clock limit per invocation
        max_concurrency: Maximum number of child processes running at once
    """

    def __init__(self, timeout_seconds: float = 120.0, max_concurrency: int = 4):
        self.timeout_seconds = timeout_seconds
        self.max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def execute(
        self,
        argv: List[str],
        workdir: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> ExecResult:
        """
        Run a command and capture its output.

        Args:
            argv: Program followed by its arguments
            workdir: Working directory for the child (None keeps the current one)
            env: Extra environment variables merged over the service environment
            timeout: Per-call limit in seconds (defaults to timeout_seconds)

        Returns:
            ExecResult with exit code and decoded stdout/stderr
        """
        argv = [str(arg) for arg in argv or []]
        workdir = workdir or None
        limit = timeout if timeout is not None else self.timeout_seconds

        if not argv:
            return self._spawn_failed(argv, workdir, "empty command")

        child_env = None
        if env:
            child_env = {**os.environ, **env}

        async with self._semaphore:
            start_time = time.time()
            try:
                proc = await asyncio.create_subprocess_exec(
                    *argv,
                    cwd=workdir,
                    env=child_env,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except (OSError, ValueError) as e:
                return self._spawn_failed(argv, workdir, str(e))

            try:
                stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=limit)
            except asyncio.TimeoutError:
                await self._kill(proc)
                duration_ms = round((time.time() - start_time) * 1000, 2)
                logger.warning(
                    "External command timed out",
                    program=argv[0],
                    workdir=workdir,
                    timeout_seconds=limit,
                    duration_ms=duration_ms,
                )
                return ExecResult(
                    argv=argv,
                    workdir=workdir,
                    exit_code=TIMEOUT_EXIT_CODE,
                    stderr=f"Command timed out after {limit}s",
                    timed_out=True,
                )
            except asyncio.CancelledError:
                await self._kill(proc)
                logger.warning("External command cancelled, child process killed", program=argv[0], workdir=workdir)
                raise

        stdout = (stdout_b or b"").decode("utf-8", errors="replace")
        stderr = (stderr_b or b"").decode("utf-8", errors="replace")
        duration_ms = round((time.time() - start_time) * 1000, 2)

        logger.debug(
            "External command finished",
            argv=argv,
            workdir=workdir,
            exit_code=proc.returncode,
            duration_ms=duration_ms,
        )

        return ExecResult(
            argv=argv,
            workdir=workdir,
            exit_code=proc.returncode,
            stdout=stdout,
            stderr=stderr,
        )

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        """Kill the child and reap it."""
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        with contextlib.suppress(Exception):
            await asyncio.shield(proc.wait())

    @staticmethod
    def _spawn_failed(argv: List[str], workdir: Optional[str], message: str) -> ExecResult:
        logger.error("Failed to start external command", argv=argv, workdir=workdir, error=message)
        return ExecResult(
            argv=argv,
            workdir=workdir,
            exit_code=SPAWN_FAILED_EXIT_CODE,
            stderr=f"Exception ejecutando comando: {message}",
        )
