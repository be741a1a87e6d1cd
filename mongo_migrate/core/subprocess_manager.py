"""Centralized subprocess management with streamed output and proper cleanup."""

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from typing import Optional

import structlog

from ..utils import mask_arguments
from .exceptions import ProcessError, ProcessTimeoutError

logger = structlog.get_logger()

KILL_TIMEOUT = 5  # Time to wait after SIGTERM before SIGKILL
STREAM_LIMIT = 1024 * 1024  # Longest single output line accepted from a tool
STDERR_TAIL_LINES = 20  # Stderr lines kept for error messages


@dataclass(frozen=True)
class OutputLine:
    """One line of tool output."""

    stream: str  # "stdout" or "stderr"
    text: str


class ProcessExit:
    """Result of a finished subprocess."""

    def __init__(self, returncode: int, stderr: str):
        self.returncode = returncode
        self.stderr = stderr

    @property
    def success(self) -> bool:
        """Check if the command succeeded."""
        return self.returncode == 0


class RunningProcess:
    """Handle on a launched tool.

    ``lines()`` yields output as it arrives, stdout and stderr interleaved;
    ``wait()`` resolves once the process has exited and both streams are drained.
    """

    def __init__(
        self,
        executable: str,
        process: asyncio.subprocess.Process,
        on_exit: Callable[[asyncio.subprocess.Process], None],
    ):
        self.executable = executable
        self._process = process
        self._on_exit = on_exit
        self._queue: asyncio.Queue[OutputLine | None] = asyncio.Queue()
        self._stderr_tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        self._consumed = False
        self._readers = [
            asyncio.create_task(self._pump(process.stdout, "stdout")),
            asyncio.create_task(self._pump(process.stderr, "stderr")),
        ]

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    @property
    def stderr(self) -> str:
        """Tail of the stderr output seen so far."""
        return "\n".join(self._stderr_tail)

    async def _pump(self, stream: asyncio.StreamReader | None, name: str) -> None:
        try:
            if stream is None:
                return
            async for raw in stream:
                text = raw.decode(errors="replace").rstrip("\r\n")
                if name == "stderr":
                    self._stderr_tail.append(text)
                await self._queue.put(OutputLine(stream=name, text=text))
        finally:
            await self._queue.put(None)

    async def lines(self) -> AsyncIterator[OutputLine]:
        """Yield output lines until both streams close. Can only be consumed once."""
        if self._consumed:
            raise RuntimeError("Process output can only be consumed once")
        self._consumed = True

        open_streams = len(self._readers)
        while open_streams:
            line = await self._queue.get()
            if line is None:
                open_streams -= 1
                continue
            yield line

    async def wait(self, check: bool = True) -> ProcessExit:
        """Wait for the process to exit.

        Args:
            check: Raise ProcessError if the exit code is non-zero

        Returns:
            ProcessExit with the exit code and stderr tail

        Raises:
            ProcessError: If check=True and the process failed
        """
        try:
            await asyncio.gather(*self._readers)
            returncode = await self._process.wait()
        finally:
            if self._process.returncode is not None:
                self._on_exit(self._process)

        result = ProcessExit(returncode=returncode, stderr=self.stderr)
        if check and not result.success:
            raise ProcessError(self.executable, returncode, result.stderr)
        return result

    async def terminate(self) -> None:
        """Terminate the process if it is still running, escalating to SIGKILL."""
        try:
            if self._process.returncode is None:
                logger.warning("Terminating process", executable=self.executable, pid=self.pid)
                try:
                    self._process.terminate()
                    await asyncio.wait_for(self._process.wait(), timeout=KILL_TIMEOUT)
                except asyncio.TimeoutError:
                    logger.warning(
                        "Process did not terminate gracefully, sending SIGKILL", pid=self.pid
                    )
                    self._process.kill()
                    await self._process.wait()
                except ProcessLookupError:
                    # Process already terminated
                    pass
        finally:
            for reader in self._readers:
                if not reader.done():
                    reader.cancel()
            self._on_exit(self._process)


class SubprocessManager:
    """Launches external tools and tracks them for cleanup."""

    def __init__(self):
        self._active_processes: set[asyncio.subprocess.Process] = set()

    @property
    def active_count(self) -> int:
        return len(self._active_processes)

    def _forget(self, process: asyncio.subprocess.Process) -> None:
        self._active_processes.discard(process)

    async def start(
        self,
        executable: str,
        args: Sequence[str],
    ) -> RunningProcess:
        """Launch ``executable`` with ``args`` passed as a vector, never through a shell.

        Raises:
            ProcessError: If the executable could not be started
        """
        cmd = [executable, *args]
        logger.debug("Executing command", command=" ".join(mask_arguments(cmd)))

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                limit=STREAM_LIMIT,
            )
        except OSError as e:
            raise ProcessError(executable, None, e.strerror or str(e)) from e

        self._active_processes.add(process)
        return RunningProcess(executable, process, on_exit=self._forget)

    async def run(
        self,
        executable: str,
        args: Sequence[str],
        *,
        on_line: Callable[[OutputLine], None] | None = None,
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> ProcessExit:
        """Run a tool to completion, forwarding each output line to ``on_line`` as it arrives.

        Args:
            executable: Program name or path
            args: Arguments as a list
            on_line: Sink called for every stdout/stderr line before the process exits
            timeout: Seconds before the process is terminated (no limit when None)
            check: Raise ProcessError on non-zero exit

        Returns:
            ProcessExit for the finished process

        Raises:
            ProcessError: If the tool failed to start or exited non-zero
            ProcessTimeoutError: If the timeout elapsed
        """
        running = await self.start(executable, args)

        async def _consume() -> ProcessExit:
            async for line in running.lines():
                if on_line is not None:
                    on_line(line)
            return await running.wait(check=check)

        try:
            return await asyncio.wait_for(_consume(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Command timed out, terminating process",
                executable=executable,
                timeout=timeout,
                pid=running.pid,
            )
            raise ProcessTimeoutError(executable, timeout, running.stderr) from None
        finally:
            # Ensure process is fully terminated on timeout or cancellation
            await running.terminate()

    async def cleanup_all(self) -> None:
        """Terminate all active processes."""
        processes = list(self._active_processes)
        if not processes:
            return

        logger.info("Cleaning up active processes", count=len(processes))

        for process in processes:
            if process.returncode is None:
                try:
                    process.terminate()
                except ProcessLookupError:
                    pass

        try:
            await asyncio.wait_for(
                asyncio.gather(*(p.wait() for p in processes)), timeout=KILL_TIMEOUT
            )
        except asyncio.TimeoutError:
            for process in processes:
                if process.returncode is None:
                    try:
                        process.kill()
                        await process.wait()
                    except ProcessLookupError:
                        pass

        self._active_processes.clear()


# Global instance for convenience
_subprocess_manager = SubprocessManager()


def get_subprocess_manager() -> SubprocessManager:
    """Return the process-wide subprocess manager."""
    return _subprocess_manager


async def cleanup_all() -> None:
    """Cleanup all active subprocesses."""
    await _subprocess_manager.cleanup_all()
