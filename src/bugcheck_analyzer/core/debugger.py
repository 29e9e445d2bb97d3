"""CDB automation wrapper for running scripted debugger sessions against crash dumps."""

import asyncio
import os
from pathlib import Path
from typing import Sequence

from bugcheck_analyzer.config import settings
from bugcheck_analyzer.errors import InvocationError, InvocationTimeoutError
from bugcheck_analyzer.logging_utils import RequestLogger

# Stack dump, full automated analysis, quit
ANALYSIS_SCRIPT = "k; !analyze -v ; q"


def scripted_session(commands: str) -> str:
    """Wrap debugger commands in the stack-dump-then-quit script used by every invocation."""
    return f"k; {commands} ; q"


def decode_output(data: bytes | None) -> str:
    """Decode captured process output as UTF-8, replacing undecodable bytes."""
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


class DebuggerInvoker:
    """Runs the external debugger as a child process, one process per call."""

    def __init__(
        self,
        debugger_path: Path | str | None = None,
        symbol_path: str | None = None,
        timeout: float | None = None,
    ):
        """Initialize the invoker.

        Args:
            debugger_path: Path to cdb.exe (defaults to settings.cdb_path)
            symbol_path: Symbol path passed with -y (defaults to settings.symbol_path)
            timeout: Seconds before a process is killed (defaults to settings.invocation_timeout)
        """
        self.debugger_path = Path(debugger_path) if debugger_path is not None else settings.cdb_path
        self.symbol_path = symbol_path if symbol_path is not None else settings.symbol_path
        self.timeout = timeout if timeout is not None else settings.invocation_timeout

    def build_command(self, dump_path: Path, script: str = ANALYSIS_SCRIPT) -> list[str]:
        """Build the argv for a scripted session against a dump.

        -z: open crash dump
        -y: symbol path
        -c: commands to run on startup
        """
        argv = [str(self.debugger_path), "-z", str(dump_path)]
        if self.symbol_path:
            argv += ["-y", self.symbol_path]
        argv += ["-c", script]
        return argv

    async def invoke(self, dump_path: Path, log: RequestLogger) -> str:
        """Run the base analysis session against one dump.

        Args:
            dump_path: Path to the crash dump
            log: Request-scoped logger

        Returns:
            The raw debugger report (stdout)

        Raises:
            InvocationError: If the debugger could not run or exited with an error status
        """
        log.info("Analyzing %s", dump_path)
        return await self.run(self.build_command(dump_path), log)

    async def run(self, argv: Sequence[str], log: RequestLogger) -> str:
        """Execute a command and return its stdout.

        The child process has always exited (or been killed and reaped) by the
        time this returns or raises, including on timeout and cancellation.

        Args:
            argv: Program and arguments; no shell is involved
            log: Request-scoped logger

        Returns:
            Decoded stdout

        Raises:
            InvocationError: Invalid argv, spawn failure or nonzero exit status
            InvocationTimeoutError: The process exceeded the timeout and was killed
        """
        try:
            argv = [os.fspath(part) for part in argv]
        except TypeError as e:
            log.error("Invalid debugger command: %s", e)
            raise InvocationError(f"Invalid debugger command: {e}") from e
        if not argv:
            raise InvocationError("Empty debugger command")

        log.debug("Executing: %s", " ".join(argv))
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            log.error("Failed to start debugger: %s", e)
            raise InvocationError(f"Failed to start {argv[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            await self._kill(process)
            log.error("Debugger timed out after %s seconds (pid %s killed)", self.timeout, process.pid)
            raise InvocationTimeoutError(
                f"Debugger timed out after {self.timeout} seconds",
                returncode=process.returncode,
            )
        except asyncio.CancelledError:
            await self._kill(process)
            log.warning("Analysis cancelled, killed debugger (pid %s)", process.pid)
            raise

        out_text = decode_output(stdout)
        err_text = decode_output(stderr).strip()

        if process.returncode != 0:
            log.error("Debugger exited with status %s: %s", process.returncode, err_text)
            raise InvocationError(
                f"Debugger exited with status {process.returncode}",
                returncode=process.returncode,
                stderr=err_text,
            )

        if err_text:
            log.warning("Warnings during analysis: %s", err_text)

        return out_text

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        """Kill a child process and wait for it to exit."""
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()
