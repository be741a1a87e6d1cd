"""
Raw keyboard input for the terminal UI.
Provides the raw-mode scope and a cancellable key reader.
"""

import asyncio
import os
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

# For Unix/Linux specific terminal control
if sys.platform != "win32":
    import termios
    import tty
else:
    termios = None
    tty = None

CTRL_C = "\x03"
ESCAPE = "\x1b"


def split_keys(data: str) -> list[str]:
    """Split a chunk of raw input into individual key tokens.

    Escape sequences (``ESC [ A``, ``ESC O B``, ``ESC [ 5 ~``) stay together;
    everything else is one token per character.
    """
    keys: list[str] = []
    i = 0
    while i < len(data):
        char = data[i]
        if char == ESCAPE and i + 1 < len(data) and data[i + 1] in "[O":
            j = i + 2
            while j < len(data) and (data[j].isdigit() or data[j] == ";"):
                j += 1
            end = min(j + 1, len(data))
            keys.append(data[i:end])
            i = end
        else:
            keys.append(char)
            i += 1
    return keys


class RawTerminal:
    """Keyboard source bound to a terminal input stream."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stdin

    @property
    def fd(self) -> int:
        return self.stream.fileno()

    def is_tty(self) -> bool:
        return self.stream.isatty()

    @contextmanager
    def raw_mode(self) -> Iterator[None]:
        """Put the terminal in raw input mode for the duration of the block.

        The previous attributes are restored on every exit path, including
        exceptions and cancellation. Output post-processing stays enabled so
        ``\\n`` still returns the carriage.
        """
        if termios is None or not self.is_tty():
            yield
            return

        fd = self.fd
        saved = termios.tcgetattr(fd)
        try:
            tty.setraw(fd, termios.TCSANOW)
            attrs = termios.tcgetattr(fd)
            attrs[1] |= termios.OPOST
            termios.tcsetattr(fd, termios.TCSANOW, attrs)
            yield
        finally:
            # Discard unread keystrokes so they don't leak into the next prompt
            termios.tcsetattr(fd, termios.TCSAFLUSH, saved)

    async def read_keys(self) -> list[str]:
        """Wait for input and return the keys it contains.

        Raises:
            EOFError: If the input stream is closed
        """
        fd = self.fd
        loop = asyncio.get_running_loop()
        ready = loop.create_future()

        def _on_readable() -> None:
            if not ready.done():
                ready.set_result(None)

        try:
            loop.add_reader(fd, _on_readable)
        except (NotImplementedError, OSError):
            # Not pollable here (regular file, or a loop without reader support)
            data = await self._read_in_thread(loop, fd)
        else:
            try:
                await ready
            finally:
                loop.remove_reader(fd)
            data = os.read(fd, 64)

        if not data:
            raise EOFError("Input stream closed")
        return split_keys(data.decode(errors="ignore"))

    @staticmethod
    async def _read_in_thread(loop: asyncio.AbstractEventLoop, fd: int) -> bytes:
        """Blocking read on a daemon thread that interpreter shutdown never joins."""
        result: asyncio.Future[bytes] = loop.create_future()

        def _deliver(data: bytes | None, error: BaseException | None) -> None:
            if result.done():
                return
            if error is not None:
                result.set_exception(error)
            else:
                result.set_result(data or b"")

        def _read() -> None:
            data, error = None, None
            try:
                data = os.read(fd, 64)
            except OSError as e:
                error = e
            try:
                loop.call_soon_threadsafe(_deliver, data, error)
            except RuntimeError:
                # Loop already closed; the reader was abandoned
                pass

        threading.Thread(target=_read, name="key-reader", daemon=True).start()
        return await result
