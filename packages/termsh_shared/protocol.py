"""Wire protocol for termsh: fixed server strings and UTF-8 line framing."""

import asyncio
from enum import Enum


ENCODING = "utf-8"

# Server -> client text
GREETING = "Welcome. This is a terminal-style server (whitelisted commands only)."
LOGIN_BANNER = "Please login."
USERNAME_PROMPT = "Username: "
PASSWORD_PROMPT = "Password: "
INVALID_CREDENTIALS = "Invalid credentials. Attempts left: {attempts_left}"
HELP_HINT = "Type 'help' to see available commands. Type 'exit' to quit."
COMMAND_PROMPT = "> "
FAREWELL = "Bye."
SERVER_BUSY = "Server busy. Try again later."

# Commands that end the session (matched case-insensitively)
EXIT_COMMANDS = frozenset({"exit", "quit"})


class AuthMarker(str, Enum):
    """Terminal outcome markers of the login sub-protocol."""
    OK = "AUTH OK"
    FAIL = "AUTH FAIL"


class TransportError(Exception):
    """Raised when the underlying connection fails or times out."""
    pass


def decode_line(data: bytes) -> str:
    """Decode a received line, dropping the trailing CR/LF."""
    return data.decode(ENCODING, errors="replace").rstrip("\r\n")


class LineStream:
    """Newline-delimited text I/O over an asyncio stream pair.

    All transport faults surface as TransportError so callers have a single
    failure path; a clean close by the peer is reported as None from the
    read methods instead.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        idle_timeout: float | None = None
    ):
        """Initialize the line stream.

        Args:
            reader: Stream to read from
            writer: Stream to write to
            idle_timeout: Seconds to wait for each read, or None to wait forever
        """
        self.reader = reader
        self.writer = writer
        self.idle_timeout = idle_timeout or None

    @property
    def peer(self) -> str:
        """Remote address as host:port (or 'unknown')."""
        peername = self.writer.get_extra_info("peername")
        if not peername:
            return "unknown"
        return f"{peername[0]}:{peername[1]}"

    async def _read(self, coro) -> bytes:
        try:
            if self.idle_timeout:
                return await asyncio.wait_for(coro, timeout=self.idle_timeout)
            return await coro
        except asyncio.TimeoutError as e:
            raise TransportError(f"Idle timeout after {self.idle_timeout}s") from e
        except asyncio.IncompleteReadError as e:
            # EOF before the separator; hand back what arrived
            return e.partial
        except ValueError as e:
            raise TransportError(f"Line too long: {e}") from e
        except (ConnectionError, OSError) as e:
            raise TransportError(f"Read failed: {e}") from e

    async def read_line(self) -> str | None:
        """Read one line.

        Returns:
            The line without its terminator, or None at end-of-stream.
        """
        data = await self._read(self.reader.readline())
        if not data:
            return None
        return decode_line(data)

    async def read_until(self, marker: str) -> str | None:
        """Read up to and including marker.

        Unlike read_line(), the text before the marker may be longer than the
        reader's buffer limit; it is collected chunk by chunk.

        Returns:
            Text before the marker, or None at end-of-stream. If the stream
            ends before the marker arrives, whatever was received is returned.
        """
        separator = marker.encode(ENCODING)
        data = bytearray()
        while True:
            try:
                data += await self._read(self.reader.readuntil(separator))
                break
            except asyncio.LimitOverrunError as e:
                # Bytes before e.consumed cannot start the separator
                data += await self._read(self.reader.readexactly(e.consumed))

        if not data:
            return None
        text = data.decode(ENCODING, errors="replace")
        if text.endswith(marker):
            text = text[:-len(marker)]
        return text

    async def write(self, text: str) -> None:
        """Write text as-is (no terminator)."""
        try:
            self.writer.write(text.encode(ENCODING))
            await self.writer.drain()
        except (ConnectionError, OSError) as e:
            raise TransportError(f"Write failed: {e}") from e

    async def write_line(self, text: str = "") -> None:
        """Write text followed by a newline."""
        await self.write(text + "\n")

    async def close(self) -> None:
        """Close the connection; errors from an already-broken peer are ignored."""
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass  # Peer already gone
